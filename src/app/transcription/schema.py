from typing import Optional

from pydantic import BaseModel


class TranscriptionRequest(BaseModel):
    # Stored resource path, e.g. "12/nota_1700000000.webm", or an absolute path
    audio_path: str


class TranscriptionResult(BaseModel):
    success: bool
    transcript_id: Optional[str] = None
    status: Optional[str] = None
    text: Optional[str] = None
    confidence: Optional[float] = None
    audio_duration: Optional[float] = None
    error: Optional[str] = None
