import logging
from pathlib import Path
from typing import BinaryIO

import aiofiles

from .base import StorageService

logger = logging.getLogger(__name__)


class LocalStorageService(StorageService):
    """Implementation of StorageService for local filesystem."""

    def __init__(self, media_root: str, media_url: str, base_url: str = ""):
        self.media_root = Path(media_root)
        self.media_root.mkdir(parents=True, exist_ok=True)
        self.media_url = media_url
        self.base_url = base_url.rstrip("/")
        logger.debug(f"LocalStorageService initialized with base path {self.media_root}")

    async def save_file(self, file: BinaryIO, path: str, content_type: str = None) -> str:
        full_path = self.media_root / path
        full_path.parent.mkdir(parents=True, exist_ok=True)

        logger.debug(f"Saving file to local storage: {full_path}")
        async with aiofiles.open(full_path, "wb") as out_file:
            content = await file.read()
            await out_file.write(content)

        logger.info(f"Successfully saved file: {full_path}")
        return path

    def get_url(self, path: str) -> str:
        url = self.base_url + f"/{self.media_url}/{path}".replace("//", "/")
        logger.debug(f"Generating URL for local path: {path} -> {url}")
        return url
