from api.endpoints import report, transcription
from fastapi import APIRouter

api_router = APIRouter()
api_router.include_router(report.router, prefix="/reports", tags=["Project Reports"])
api_router.include_router(transcription.router, prefix="/transcriptions", tags=["Audio Transcription"])
