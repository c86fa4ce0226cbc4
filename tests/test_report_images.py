import io
import os
import struct
import sys
import zlib
from unittest.mock import patch

import httpx
import pytest
from PIL import Image

# Add src to sys.path
sys.path.append(os.path.join(os.path.dirname(__file__), "../src"))

from app.report.exceptions import ImageLoadError
from app.report.images import FetchedImage, ImageFetcher, default_resolver
from app.utils.image import downscale_to_jpeg, fit_within


def image_bytes(width, height, fmt="JPEG", mode="RGB"):
    buf = io.BytesIO()
    Image.new(mode, (width, height), color=(200, 30, 30, 255)[: len(mode)]).save(buf, format=fmt)
    return buf.getvalue()


def mock_client(routes):
    def handler(request: httpx.Request) -> httpx.Response:
        body = routes.get(request.url.path)
        if body is None:
            return httpx.Response(404)
        return httpx.Response(200, content=body)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def oversized_png(width=20000, height=20000):
    """A tiny PNG whose header declares a size past Pillow's decompression bomb limit."""

    def chunk(tag, data):
        return struct.pack(">I", len(data)) + tag + data + struct.pack(">I", zlib.crc32(tag + data))

    header = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + chunk(b"IHDR", header)
        + chunk(b"IDAT", zlib.compress(b""))
        + chunk(b"IEND", b"")
    )


# --- fit_within ---

def test_fit_within_width_then_height():
    # width clamp gives 800x2400, height clamp then gives 200x600
    assert fit_within(1000, 3000, 800, 600) == (200, 600)


def test_fit_within_only_width():
    assert fit_within(1600, 900, 800, 600) == (800, 450)


def test_fit_within_leaves_small_images_alone():
    assert fit_within(100, 50, 800, 600) == (100, 50)


def test_fit_within_rejects_empty_sizes():
    with pytest.raises(ValueError):
        fit_within(0, 10, 800, 600)


# --- downscale_to_jpeg ---

def test_downscale_respects_both_bounds_and_ratio():
    data, width, height = downscale_to_jpeg(image_bytes(1000, 3000), 800, 600)
    assert (width, height) == (200, 600)
    with Image.open(io.BytesIO(data)) as img:
        assert img.format == "JPEG"
        assert img.size == (200, 600)


def test_downscale_converts_transparent_png_to_rgb():
    data, width, height = downscale_to_jpeg(image_bytes(40, 20, fmt="PNG", mode="RGBA"), 800, 600)
    assert (width, height) == (40, 20)
    with Image.open(io.BytesIO(data)) as img:
        assert img.mode == "RGB"


# --- ImageFetcher ---

def test_default_resolver_builds_uploads_url():
    assert default_resolver("12/foto_1.jpg").endswith("/uploads/12/foto_1.jpg")


@pytest.mark.asyncio
async def test_fetch_remote_image():
    async with mock_client({"/uploads/1/a.jpg": image_bytes(1600, 1200)}) as client:
        fetcher = ImageFetcher(client=client, max_width=800, max_height=600)
        image = await fetcher.fetch("http://files.local/uploads/1/a.jpg")

    assert isinstance(image, FetchedImage)
    assert (image.width, image.height) == (800, 600)


@pytest.mark.asyncio
async def test_fetch_http_error_is_recoverable():
    async with mock_client({}) as client:
        fetcher = ImageFetcher(client=client)
        with pytest.raises(ImageLoadError) as exc_info:
            await fetcher.fetch("http://files.local/uploads/missing.jpg")

    assert exc_info.value.reason == "HTTP 404"


@pytest.mark.asyncio
async def test_fetch_undecodable_body_is_recoverable():
    async with mock_client({"/broken.jpg": b"not an image"}) as client:
        fetcher = ImageFetcher(client=client)
        with pytest.raises(ImageLoadError):
            await fetcher.fetch("http://files.local/broken.jpg")


@pytest.mark.asyncio
async def test_fetch_local_file(tmp_path):
    path = tmp_path / "foto.png"
    path.write_bytes(image_bytes(300, 200, fmt="PNG"))

    image = await ImageFetcher().fetch(str(path))
    assert (image.width, image.height) == (300, 200)


@pytest.mark.asyncio
async def test_fetch_missing_local_file(tmp_path):
    with pytest.raises(ImageLoadError):
        await ImageFetcher().fetch(str(tmp_path / "nope.jpg"))


@pytest.mark.asyncio
async def test_fetch_all_keeps_order_and_returns_failures_in_place():
    routes = {
        "/a.jpg": image_bytes(100, 10),
        "/c.jpg": image_bytes(300, 30),
        "/d.jpg": image_bytes(400, 40),
    }
    sources = [f"http://files.local/{name}.jpg" for name in ("a", "b", "c", "d")]

    async with mock_client(routes) as client:
        results = await ImageFetcher(client=client, concurrency=3).fetch_all(sources)

    assert [type(r) for r in results] == [FetchedImage, ImageLoadError, FetchedImage, FetchedImage]
    assert [r.width for r in results if isinstance(r, FetchedImage)] == [100, 300, 400]
    assert results[1].source == sources[1]


@pytest.mark.asyncio
async def test_fetch_all_sequential_mode():
    routes = {"/a.jpg": image_bytes(10, 10), "/b.jpg": image_bytes(20, 20)}
    async with mock_client(routes) as client:
        results = await ImageFetcher(client=client, concurrency=1).fetch_all(
            ["http://x/a.jpg", "http://x/b.jpg"]
        )
    assert [r.width for r in results] == [10, 20]


@pytest.mark.asyncio
async def test_fetch_all_empty():
    assert await ImageFetcher().fetch_all([]) == []


@pytest.mark.asyncio
async def test_fetch_oversized_image_is_recoverable():
    async with mock_client({"/gigante.png": oversized_png()}) as client:
        fetcher = ImageFetcher(client=client)
        with pytest.raises(ImageLoadError) as exc_info:
            await fetcher.fetch("http://files.local/gigante.png")

    assert "cannot decode image" in exc_info.value.reason


@pytest.mark.asyncio
async def test_fetch_all_returns_oversized_image_failure_in_place():
    routes = {"/a.jpg": image_bytes(100, 10), "/gigante.png": oversized_png()}
    sources = ["http://files.local/a.jpg", "http://files.local/gigante.png"]

    async with mock_client(routes) as client:
        results = await ImageFetcher(client=client).fetch_all(sources)

    assert isinstance(results[0], FetchedImage)
    assert isinstance(results[1], ImageLoadError)
    assert results[1].source == sources[1]


@pytest.mark.asyncio
async def test_fetch_all_contains_unexpected_errors():
    routes = {"/a.jpg": image_bytes(100, 10), "/b.jpg": image_bytes(200, 20)}
    sources = ["http://files.local/a.jpg", "http://files.local/b.jpg"]

    async with mock_client(routes) as client:
        fetcher = ImageFetcher(client=client)
        original_fetch = fetcher.fetch

        async def flaky_fetch(source, client=None):
            if source.endswith("b.jpg"):
                raise RuntimeError("decoder crashed")
            return await original_fetch(source, client)

        with patch.object(fetcher, "fetch", side_effect=flaky_fetch):
            results = await fetcher.fetch_all(sources)

    assert results[0].width == 100
    assert isinstance(results[1], ImageLoadError)
    assert results[1].reason == "unexpected error (RuntimeError)"
