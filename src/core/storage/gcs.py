import asyncio
import logging
from typing import BinaryIO, Optional

from google.cloud import storage  # 동기 라이브러리

from .base import StorageService

logger = logging.getLogger(__name__)


class GCSStorageService(StorageService):
    _client: Optional[storage.Client] = None

    def __init__(self, bucket_name: str):
        if GCSStorageService._client is None:
            logger.info("Initializing new GCS Client...")
            GCSStorageService._client = storage.Client()

        self.client = GCSStorageService._client
        self.bucket_name = bucket_name
        self.bucket = self.client.bucket(self.bucket_name)

        logger.info(f"GCSStorageService initialized for bucket '{self.bucket_name}'")

    async def save_file(self, file: BinaryIO, path: str, content_type: str = None) -> str:
        blob = self.bucket.blob(path)
        content = await file.read()

        def upload_sync():
            blob.upload_from_string(content, content_type=content_type)
            logger.info(f"[GCS] Uploaded to {path}")
            return path

        return await asyncio.to_thread(upload_sync)

    def get_url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"https://storage.googleapis.com/{self.bucket_name}/{path}"
