import asyncio
import logging
import time
from pathlib import Path
from typing import Optional

import aiofiles
import httpx

from core.config import configs
from app.transcription.schema import TranscriptionResult

logger = logging.getLogger(__name__)

_FINAL_STATES = ("completed", "error")


def resolve_audio_path(audio_path: str) -> Path:
    path = Path(audio_path)
    if path.is_absolute():
        return path
    return Path(configs.MEDIA_ROOT) / "uploads" / path


class TranscriptionService:
    """
    Speech-to-text through the AssemblyAI REST API.

    Failures are reported in the returned TranscriptionResult (``success=False``),
    never raised, so a caller can store the resource without a transcript.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        api_key: str = configs.ASSEMBLYAI_API_KEY,
        base_url: str = configs.ASSEMBLYAI_BASE_URL,
        language_code: str = configs.TRANSCRIPTION_LANGUAGE,
        poll_interval: float = configs.TRANSCRIPTION_POLL_INTERVAL,
        timeout: float = configs.TRANSCRIPTION_TIMEOUT,
    ):
        self._client = client
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.language_code = language_code
        self.poll_interval = poll_interval
        self.timeout = timeout

    def _new_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=60.0)

    @property
    def _headers(self) -> dict:
        return {"authorization": self.api_key}

    async def transcribe_audio(self, audio_path: str) -> TranscriptionResult:
        full_path = resolve_audio_path(audio_path)
        logger.info(f"🎙️ Starting transcription for: {full_path}")

        if not self.api_key:
            return TranscriptionResult(success=False, error="ASSEMBLYAI_API_KEY is not configured")

        try:
            async with aiofiles.open(full_path, "rb") as f:
                audio = await f.read()
        except OSError as e:
            logger.error(f"Cannot read audio file {full_path}: {e}")
            return TranscriptionResult(success=False, error=f"Cannot read audio file: {e.strerror or e}")

        client = self._client or self._new_client()
        try:
            upload = await client.post(f"{self.base_url}/upload", content=audio, headers=self._headers)
            upload.raise_for_status()

            created = await client.post(
                f"{self.base_url}/transcript",
                json={
                    "audio_url": upload.json()["upload_url"],
                    "speech_model": "universal",
                    "language_code": self.language_code,
                },
                headers=self._headers,
            )
            created.raise_for_status()
            transcript_id = created.json()["id"]

            return await self._wait_for(client, transcript_id)
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error(f"Transcription error: {e}")
            return TranscriptionResult(success=False, error=str(e))
        finally:
            if self._client is None:
                await client.aclose()

    async def get_transcription_status(self, transcript_id: str) -> TranscriptionResult:
        client = self._client or self._new_client()
        try:
            return await self._fetch(client, transcript_id)
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.error(f"Error getting transcription status: {e}")
            return TranscriptionResult(success=False, transcript_id=transcript_id, error=str(e))
        finally:
            if self._client is None:
                await client.aclose()

    async def _fetch(self, client: httpx.AsyncClient, transcript_id: str) -> TranscriptionResult:
        response = await client.get(f"{self.base_url}/transcript/{transcript_id}", headers=self._headers)
        response.raise_for_status()
        body = response.json()
        status = body["status"]
        return TranscriptionResult(
            success=status != "error",
            transcript_id=transcript_id,
            status=status,
            text=body.get("text"),
            confidence=body.get("confidence"),
            audio_duration=body.get("audio_duration"),
            error=body.get("error"),
        )

    async def _wait_for(self, client: httpx.AsyncClient, transcript_id: str) -> TranscriptionResult:
        deadline = time.monotonic() + self.timeout
        while True:
            result = await self._fetch(client, transcript_id)
            if result.status in _FINAL_STATES:
                logger.info(f"Transcript {transcript_id} finished with status '{result.status}'")
                return result
            if time.monotonic() >= deadline:
                return TranscriptionResult(
                    success=False,
                    transcript_id=transcript_id,
                    status=result.status,
                    error=f"Transcription not finished after {self.timeout:.0f}s",
                )
            await asyncio.sleep(self.poll_interval)
