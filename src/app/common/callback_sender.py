import asyncio
import logging
from typing import Any, Dict, Optional

import httpx

from app.schemas.enum import ExportStatus

logger = logging.getLogger(__name__)


class CallbackSender:
    """Posts task results to the caller's webhook, retrying connection and 5xx failures."""

    def __init__(self, max_attempts: int = 3, timeout: float = 10.0, backoff_base: float = 1.0):
        self.max_attempts = max_attempts
        self.timeout = timeout
        self.backoff_base = backoff_base

    async def send_result(self, url: str, payload: Dict[str, Any], task_id: str) -> bool:
        logger.info(f"📤 [Task {task_id}] Sending callback to {url}")
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for attempt in range(1, self.max_attempts + 1):
                try:
                    response = await client.post(url, json=payload)
                    response.raise_for_status()
                    logger.info(f"✅ [Task {task_id}] Callback sent. Status: {response.status_code}")
                    return True
                except httpx.HTTPStatusError as e:
                    logger.error(
                        f"❌ [Task {task_id}] Callback failed (attempt {attempt}/{self.max_attempts}): "
                        f"HTTP {e.response.status_code} - {e.response.text}"
                    )
                    if 400 <= e.response.status_code < 500:
                        # Client errors will not get better on retry
                        break
                except httpx.HTTPError as e:
                    logger.error(
                        f"❌ [Task {task_id}] Callback connection error "
                        f"(attempt {attempt}/{self.max_attempts}): {e}"
                    )

                if attempt < self.max_attempts:
                    await asyncio.sleep(self.backoff_base * 2 ** (attempt - 1))

        logger.error(f"❌ [Task {task_id}] Callback gave up after {attempt} attempt(s).")
        return False

    async def send_error(self, url: str, error_message: str, task_id: str, request_id: Optional[str] = None) -> bool:
        payload = {
            "task_id": task_id,
            "request_id": request_id,
            "status": ExportStatus.FAILED.value,
            "error": error_message,
        }
        return await self.send_result(url, payload, task_id)
