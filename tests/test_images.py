import asyncio
import io
import re

import pytest
from PIL import Image

from portal.exceptions import DependencyFailureError, InvalidInputError
from portal.services import images
from portal.services.images import COVER, THUMBNAIL, derive_keys, ingest_image, render_derivative, validate_image


def _image_bytes(size, fmt="JPEG", mode="RGB", color=(200, 30, 30)):
    buf = io.BytesIO()
    Image.new(mode, size, color).save(buf, format=fmt)
    return buf.getvalue()


def _ingest(storage, data, filename="photo.jpg", content_type="image/jpeg"):
    return asyncio.run(ingest_image(storage, data, filename, content_type))


def test_validate_rejects_type_and_size():
    with pytest.raises(InvalidInputError, match="Invalid file type"):
        validate_image("application/pdf", 1000)
    with pytest.raises(InvalidInputError, match="File too large"):
        validate_image("image/png", 11 * 1024 * 1024)
    validate_image("IMAGE/JPEG", images.MAX_UPLOAD_BYTES)


@pytest.mark.parametrize("variant", [COVER, THUMBNAIL])
def test_render_derivative_crops_to_frame(variant):
    data = _image_bytes((5000, 3000))
    out = Image.open(io.BytesIO(render_derivative(data, variant.size, variant.quality)))
    assert out.format == "WEBP"
    assert out.size == (variant.width, variant.height)


def test_render_derivative_upscales_small_input():
    data = _image_bytes((300, 300), fmt="PNG")
    out = Image.open(io.BytesIO(render_derivative(data, COVER.size, COVER.quality)))
    assert out.size == (1200, 630)


def test_render_flattens_transparency_onto_white():
    data = _image_bytes((800, 800), fmt="PNG", mode="RGBA", color=(0, 0, 0, 0))
    out = Image.open(io.BytesIO(render_derivative(data, THUMBNAIL.size, THUMBNAIL.quality)))
    assert out.mode == "RGB"
    assert all(channel >= 245 for channel in out.getpixel((200, 105)))


def test_undecodable_bytes_rejected(storage, s3):
    with pytest.raises(InvalidInputError):
        _ingest(storage, b"not an image at all", "x.png", "image/png")
    assert s3.objects == {}


def test_derive_keys_shape():
    cover_key, thumb_key = derive_keys("My Cover Photo.png")
    assert re.fullmatch(r"covers/my-cover-photo-[0-9a-z]+\.webp", cover_key)
    assert thumb_key == "thumbs/" + cover_key.split("/", 1)[1]

    assert derive_keys("???.jpg", token="abc") == ("covers/image-abc.webp", "thumbs/image-abc.webp")


def test_tokens_are_unique():
    assert len({images.make_token() for _ in range(200)}) == 200


def test_ingest_stores_both_derivatives(storage, s3):
    result = _ingest(storage, _image_bytes((2000, 2000), fmt="PNG"), "My Cover Photo.png", "image/png")

    assert re.fullmatch(r"covers/my-cover-photo-[0-9a-z]+\.webp", result["coverKey"])
    assert result["coverUrl"] == f"https://cdn.example.com/{result['coverKey']}"
    assert result["thumbnailUrl"] == f"https://cdn.example.com/{result['thumbKey']}"

    assert set(s3.objects) == {result["coverKey"], result["thumbKey"]}
    for key, size in ((result["coverKey"], (1200, 630)), (result["thumbKey"], (400, 210))):
        stored = s3.objects[key]
        assert stored["ContentType"] == "image/webp"
        assert Image.open(io.BytesIO(stored["Body"])).size == size


def test_rejected_upload_never_decoded(storage, s3, monkeypatch):
    calls = []
    monkeypatch.setattr(images, "render_derivative", lambda *a: calls.append(a))

    with pytest.raises(InvalidInputError):
        _ingest(storage, b"%PDF-1.4", "doc.pdf", "application/pdf")
    with pytest.raises(InvalidInputError):
        _ingest(storage, b"\0" * (11 * 1024 * 1024), "big.png", "image/png")

    assert calls == []
    assert s3.objects == {}


def test_partial_upload_failure_rolls_back(storage, s3):
    s3.fail_on.add("thumbs/")

    with pytest.raises(DependencyFailureError):
        _ingest(storage, _image_bytes((1600, 900)))

    assert s3.objects == {}
    assert len(s3.deleted) == 1
    assert s3.deleted[0].startswith("covers/")
