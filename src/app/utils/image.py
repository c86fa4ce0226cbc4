import io
import logging
from typing import Tuple

from PIL import Image, ImageFile, ImageOps

logger = logging.getLogger(__name__)
ImageFile.LOAD_TRUNCATED_IMAGES = True


def fit_within(width: float, height: float, max_width: float, max_height: float) -> Tuple[float, float]:
    """
    Scale (width, height) down to fit inside (max_width, max_height), keeping the aspect ratio.

    The width clamp is applied first and the height clamp second, on the already
    width-clamped size. Report placement relies on this order: after both steps the
    result satisfies both bounds. Sizes already inside the bounds are returned unchanged.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image size: {width}x{height}")

    if width > max_width:
        ratio = max_width / width
        width = max_width
        height = height * ratio

    if height > max_height:
        ratio = max_height / height
        height = max_height
        width = width * ratio

    return width, height


def downscale_to_jpeg(
    image_data: bytes, max_width: int, max_height: int, quality: int = 80
) -> Tuple[bytes, int, int]:
    """
    image_data: encoded image bytes (any format Pillow can read).
    Returns: (JPEG bytes, width, height) of the downscaled RGB image.
    Raises PIL.UnidentifiedImageError / OSError when the data cannot be decoded.
    """
    with Image.open(io.BytesIO(image_data)) as img:
        # Phone photos carry their rotation in EXIF
        img = ImageOps.exif_transpose(img)

        if img.mode != "RGB":
            img = img.convert("RGB")

        width, height = fit_within(img.width, img.height, max_width, max_height)
        size = (max(1, round(width)), max(1, round(height)))
        if size != img.size:
            logger.debug(f"Downscaling image {img.size} -> {size}")
            img = img.resize(size, Image.Resampling.LANCZOS)

        out = io.BytesIO()
        img.save(out, format="JPEG", quality=quality, optimize=True)
        return out.getvalue(), img.width, img.height
