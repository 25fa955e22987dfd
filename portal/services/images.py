"""
Cover image ingestion using Pillow.

One upload becomes two WebP derivatives, each cropped to fill a fixed 1.9:1
frame around the centre:

    cover      1200x630  quality 80   covers/<name>-<token>.webp
    thumbnail   400x210  quality 75   thumbs/<name>-<token>.webp

Both are rendered from the original bytes (the thumbnail is not a downscale
of the cover), transparency is flattened onto white, and both are uploaded
concurrently. If either upload fails the other object is deleted again and
the caller sees a single error.
"""

import asyncio
import io
import logging
import secrets
import time
from dataclasses import dataclass

from PIL import Image, ImageOps, UnidentifiedImageError
from starlette.concurrency import run_in_threadpool

from portal.exceptions import DependencyFailureError, InvalidInputError
from portal.services.storage import ObjectStore
from portal.utils.text import filename_stem

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = ("image/jpeg", "image/png", "image/webp", "image/gif")
MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10 MiB

OUTPUT_FORMAT = "WEBP"
OUTPUT_EXTENSION = "webp"
OUTPUT_CONTENT_TYPE = "image/webp"

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


@dataclass(frozen=True)
class Variant:
    name: str
    prefix: str
    width: int
    height: int
    quality: int

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height


COVER = Variant("cover", "covers", 1200, 630, 80)
THUMBNAIL = Variant("thumbnail", "thumbs", 400, 210, 75)


@dataclass
class Derivatives:
    cover: bytes
    thumbnail: bytes
    cover_key: str
    thumb_key: str


def validate_image(content_type: str | None, size: int) -> None:
    """Reject by declared type and byte size; runs before any decoding."""
    if (content_type or "").lower() not in ALLOWED_CONTENT_TYPES:
        raise InvalidInputError("Invalid file type. Allowed: JPG, PNG, WebP, GIF")
    if size > MAX_UPLOAD_BYTES:
        raise InvalidInputError("File too large. Max 10MB")


def _base36(n: int) -> str:
    out = ""
    while True:
        n, r = divmod(n, 36)
        out = _BASE36[r] + out
        if not n:
            return out


def make_token() -> str:
    """Millisecond timestamp (base36) plus 32 random bits."""
    return f"{_base36(int(time.time() * 1000))}{secrets.token_hex(4)}"


def derive_keys(filename: str, token: str | None = None) -> tuple[str, str]:
    stem = filename_stem(filename) or "image"
    token = token or make_token()
    name = f"{stem}-{token}.{OUTPUT_EXTENSION}"
    return f"{COVER.prefix}/{name}", f"{THUMBNAIL.prefix}/{name}"


def _open(data: bytes) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(data))
        img.load()
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError) as e:
        raise InvalidInputError(f"Cannot read image: {e}") from e

    # Flatten transparency onto white
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        img = img.convert("RGBA")
        background = Image.new("RGB", img.size, (255, 255, 255))
        background.paste(img, mask=img.getchannel("A"))
        return background
    if img.mode != "RGB":
        return img.convert("RGB")
    return img


def render_derivative(data: bytes, size: tuple[int, int], quality: int) -> bytes:
    img = _open(data)
    fitted = ImageOps.fit(
        img,
        size,
        method=Image.Resampling.LANCZOS,
        centering=(0.5, 0.5),
    )
    output = io.BytesIO()
    fitted.save(output, format=OUTPUT_FORMAT, quality=quality, method=4)
    logger.debug(
        "Rendered %sx%s -> %sx%s q%s (%d bytes)",
        img.width, img.height, size[0], size[1], quality, output.tell(),
    )
    return output.getvalue()


def optimize_image(data: bytes, filename: str) -> Derivatives:
    cover_key, thumb_key = derive_keys(filename)
    return Derivatives(
        cover=render_derivative(data, COVER.size, COVER.quality),
        thumbnail=render_derivative(data, THUMBNAIL.size, THUMBNAIL.quality),
        cover_key=cover_key,
        thumb_key=thumb_key,
    )


async def ingest_image(
    storage: ObjectStore,
    data: bytes,
    filename: str,
    content_type: str | None,
) -> dict:
    """
    Validate, derive and store an uploaded cover.

    Returns {"coverUrl", "thumbnailUrl", "coverKey", "thumbKey"}.
    Raises InvalidInputError for rejected input and DependencyFailureError
    when storage fails.
    """
    validate_image(content_type, len(data))

    derived = await run_in_threadpool(optimize_image, data, filename or "image")

    uploads = (
        (derived.cover_key, derived.cover),
        (derived.thumb_key, derived.thumbnail),
    )
    results = await asyncio.gather(
        *(run_in_threadpool(storage.put, key, body, OUTPUT_CONTENT_TYPE) for key, body in uploads),
        return_exceptions=True,
    )

    failed = [r for r in results if isinstance(r, BaseException)]
    if failed:
        stored = [key for (key, _), r in zip(uploads, results) if not isinstance(r, BaseException)]
        for key in stored:
            try:
                await run_in_threadpool(storage.delete, key)
            except DependencyFailureError:
                logger.warning("Rollback failed, orphaned object %s", key)
        logger.error("Cover upload failed for %r: %s", filename, failed[0])
        if isinstance(failed[0], DependencyFailureError):
            raise failed[0]
        raise DependencyFailureError("Object storage", "upload failed") from failed[0]

    return {
        "coverUrl": storage.public_url(derived.cover_key),
        "thumbnailUrl": storage.public_url(derived.thumb_key),
        "coverKey": derived.cover_key,
        "thumbKey": derived.thumb_key,
    }
