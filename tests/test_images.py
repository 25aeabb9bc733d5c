"""Tests for image helpers."""

import base64
import io

from PIL import Image

from calorie_logger.services.images import detect_mime_type, make_preview, to_data_url


def _jpeg_bytes(width: int, height: int) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color=(100, 150, 200)).save(buf, format="JPEG")
    return buf.getvalue()


def _decode_data_url(data_url: str) -> Image.Image:
    encoded = data_url.split(",", 1)[1]
    img = Image.open(io.BytesIO(base64.b64decode(encoded)))
    img.load()
    return img


def test_detect_mime_type_signatures() -> None:
    assert detect_mime_type(b"\x89PNG\r\n\x1a\nrest") == "image/png"
    assert detect_mime_type(b"\xff\xd8\xffrest") == "image/jpeg"
    assert detect_mime_type(b"RIFF1234WEBPrest") == "image/webp"
    assert detect_mime_type(b"unknown") == "image/jpeg"


def test_to_data_url_prefers_explicit_mime_type() -> None:
    assert to_data_url(b"abc", "image/heic").startswith("data:image/heic;base64,")


def test_make_preview_scales_down_long_side() -> None:
    preview = make_preview(_jpeg_bytes(1000, 500), max_side=200)

    img = _decode_data_url(preview)
    assert img.size == (200, 100)


def test_make_preview_keeps_small_images() -> None:
    img = _decode_data_url(make_preview(_jpeg_bytes(120, 80), max_side=200))

    assert img.size == (120, 80)


def test_make_preview_flattens_transparency() -> None:
    buf = io.BytesIO()
    Image.new("RGBA", (50, 50), color=(0, 0, 0, 0)).save(buf, format="PNG")

    img = _decode_data_url(make_preview(buf.getvalue()))

    assert img.mode == "RGB"


def test_make_preview_falls_back_on_invalid_bytes() -> None:
    preview = make_preview(b"not an image")

    assert preview == to_data_url(b"not an image")
