import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Union

import aiofiles
import httpx
from PIL import Image, UnidentifiedImageError

from core.config import configs
from app.report.exceptions import ImageLoadError
from app.utils.image import downscale_to_jpeg

logger = logging.getLogger(__name__)

# Turns a stored relative path (e.g. "12/foto_1700000000.jpg") into a fetchable URL or local path.
Resolver = Callable[[str], str]


def default_resolver(file_path: str) -> str:
    base = configs.STATIC_BASE_URL.rstrip("/")
    return f"{base}/uploads/{file_path.lstrip('/')}"


@dataclass(frozen=True)
class FetchedImage:
    source: str
    data: bytes  # JPEG
    width: int  # px
    height: int  # px


FetchResult = Union[FetchedImage, ImageLoadError]


class ImageFetcher:
    """
    Retrieves images over HTTP(S) or from the local filesystem and downscales them
    into embeddable JPEG data.

    Fetches may run concurrently (bounded by ``concurrency``); results always come
    back in input order so placement can stay strictly sequential.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        max_width: int = configs.IMAGE_MAX_WIDTH_PX,
        max_height: int = configs.IMAGE_MAX_HEIGHT_PX,
        quality: int = configs.IMAGE_JPEG_QUALITY,
        timeout: float = configs.IMAGE_FETCH_TIMEOUT,
        concurrency: int = configs.IMAGE_FETCH_CONCURRENCY,
    ):
        self._client = client
        self.max_width = max_width
        self.max_height = max_height
        self.quality = quality
        self.timeout = timeout
        self.concurrency = max(1, concurrency)

    @asynccontextmanager
    async def _http_client(self):
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            yield client

    async def fetch(self, source: str, client: Optional[httpx.AsyncClient] = None) -> FetchedImage:
        """Fetch and downscale a single image. Raises ImageLoadError on any failure."""
        if client is None:
            async with self._http_client() as own_client:
                raw = await self._read(source, own_client)
        else:
            raw = await self._read(source, client)

        try:
            data, width, height = await asyncio.to_thread(
                downscale_to_jpeg, raw, self.max_width, self.max_height, self.quality
            )
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
            raise ImageLoadError(source, f"cannot decode image ({e})") from e

        logger.debug(f"Fetched image {source} -> {width}x{height}px, {len(data)} bytes")
        return FetchedImage(source=source, data=data, width=width, height=height)

    async def fetch_all(self, sources: Sequence[str]) -> List[FetchResult]:
        """Fetch every source; failures are returned in place as ImageLoadError, never raised."""
        if not sources:
            return []

        semaphore = asyncio.Semaphore(self.concurrency)

        async with self._http_client() as client:

            async def _guarded(source: str) -> FetchResult:
                async with semaphore:
                    try:
                        return await self.fetch(source, client)
                    except ImageLoadError as e:
                        logger.warning(f"⚠️ Image unavailable, using placeholder: {e}")
                        return e
                    except Exception as e:
                        logger.error(f"💥 Unexpected error fetching {source}: {e}")
                        return ImageLoadError(source, f"unexpected error ({e.__class__.__name__})")

            return list(await asyncio.gather(*(_guarded(s) for s in sources)))

    async def _read(self, source: str, client: httpx.AsyncClient) -> bytes:
        if source.startswith(("http://", "https://")):
            try:
                response = await client.get(source)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise ImageLoadError(source, f"HTTP {e.response.status_code}") from e
            except httpx.HTTPError as e:
                raise ImageLoadError(source, f"request failed ({e.__class__.__name__})") from e
            return response.content

        try:
            async with aiofiles.open(source, "rb") as f:
                return await f.read()
        except OSError as e:
            raise ImageLoadError(source, f"cannot read file ({e.strerror or e})") from e
