import json
import os
import sys

import httpx
import pytest

# Add src to sys.path
sys.path.append(os.path.join(os.path.dirname(__file__), "../src"))

from app.transcription.service import TranscriptionService, resolve_audio_path

BASE = "https://api.assemblyai.test/v2"


def assembly_client(statuses, seen):
    """Fake AssemblyAI: upload, create transcript, then report ``statuses`` one poll at a time."""
    polls = iter(statuses)

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path, request.headers.get("authorization")))
        if request.url.path == "/v2/upload":
            return httpx.Response(200, json={"upload_url": "https://cdn.test/audio-1"})
        if request.url.path == "/v2/transcript":
            assert json.loads(request.content)["language_code"] == "es"
            return httpx.Response(200, json={"id": "t1", "status": "queued"})
        if request.url.path == "/v2/transcript/t1":
            return httpx.Response(200, json=next(polls))
        return httpx.Response(404)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def audio_file(tmp_path):
    path = tmp_path / "nota.webm"
    path.write_bytes(b"\x1aE\xdf\xa3fake-webm")
    return path


@pytest.mark.asyncio
async def test_transcribe_polls_until_completed(audio_file):
    seen = []
    statuses = [
        {"status": "processing"},
        {"status": "completed", "text": "Se instaló el DVR", "confidence": 0.93, "audio_duration": 12},
    ]
    async with assembly_client(statuses, seen) as client:
        service = TranscriptionService(client=client, api_key="key", base_url=BASE, poll_interval=0)
        result = await service.transcribe_audio(str(audio_file))

    assert result.success is True
    assert result.text == "Se instaló el DVR"
    assert result.confidence == pytest.approx(0.93)
    assert result.audio_duration == 12
    assert [path for _, path, _ in seen] == ["/v2/upload", "/v2/transcript", "/v2/transcript/t1", "/v2/transcript/t1"]
    assert all(auth == "key" for _, _, auth in seen)


@pytest.mark.asyncio
async def test_transcribe_reports_service_error(audio_file):
    seen = []
    async with assembly_client([{"status": "error", "error": "Audio too short"}], seen) as client:
        service = TranscriptionService(client=client, api_key="key", base_url=BASE, poll_interval=0)
        result = await service.transcribe_audio(str(audio_file))

    assert result.success is False
    assert result.error == "Audio too short"


@pytest.mark.asyncio
async def test_transcribe_times_out(audio_file):
    seen = []
    async with assembly_client([{"status": "processing"}] * 5, seen) as client:
        service = TranscriptionService(client=client, api_key="key", base_url=BASE, poll_interval=0, timeout=0)
        result = await service.transcribe_audio(str(audio_file))

    assert result.success is False
    assert result.status == "processing"


@pytest.mark.asyncio
async def test_transcribe_without_api_key(audio_file):
    result = await TranscriptionService(api_key="").transcribe_audio(str(audio_file))
    assert result.success is False
    assert "ASSEMBLYAI_API_KEY" in result.error


@pytest.mark.asyncio
async def test_transcribe_missing_file(tmp_path):
    result = await TranscriptionService(api_key="key").transcribe_audio(str(tmp_path / "missing.webm"))
    assert result.success is False


@pytest.mark.asyncio
async def test_upload_failure_is_reported(audio_file):
    def handler(request):
        return httpx.Response(500)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        service = TranscriptionService(client=client, api_key="key", base_url=BASE)
        result = await service.transcribe_audio(str(audio_file))

    assert result.success is False


@pytest.mark.asyncio
async def test_get_transcription_status():
    seen = []
    async with assembly_client([{"status": "processing"}], seen) as client:
        service = TranscriptionService(client=client, api_key="key", base_url=BASE)
        result = await service.get_transcription_status("t1")

    assert result.status == "processing"
    assert result.success is True


def test_relative_audio_paths_resolve_under_uploads():
    assert resolve_audio_path("7/nota.webm").parts[-3:] == ("uploads", "7", "nota.webm")
    assert resolve_audio_path("/abs/nota.webm").as_posix() == "/abs/nota.webm"
