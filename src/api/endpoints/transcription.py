import logging

from fastapi import APIRouter, Depends

from app.transcription.schema import TranscriptionRequest, TranscriptionResult
from app.transcription.service import TranscriptionService

logger = logging.getLogger(__name__)
router = APIRouter()


def get_transcription_service() -> TranscriptionService:
    return TranscriptionService()


@router.post("", response_model=TranscriptionResult)
async def transcribe(
    req: TranscriptionRequest,
    service: TranscriptionService = Depends(get_transcription_service),
):
    return await service.transcribe_audio(req.audio_path)


@router.get("/{transcript_id}", response_model=TranscriptionResult)
async def transcription_status(
    transcript_id: str,
    service: TranscriptionService = Depends(get_transcription_service),
):
    return await service.get_transcription_status(transcript_id)
