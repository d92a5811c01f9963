import io
from types import SimpleNamespace

import pytest

from src.timeclock.timeclock.core.exceptions import ValidationError
from src.timeclock.timeclock.qr.codec import build_employee_qr_token
from src.timeclock.timeclock.qr.image import decode_qr_image, render_qr_png

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


def _zbar():
    # pyzbar raises ImportError when the libzbar shared library is missing
    return pytest.importorskip("pyzbar.pyzbar", exc_type=ImportError)


def test_render_produces_png_bytes():
    png = render_qr_png("hello")

    assert png.startswith(PNG_MAGIC)


def test_decode_reads_back_a_rendered_badge():
    _zbar()
    token = build_employee_qr_token("c-1", "e-1", "secret")

    assert decode_qr_image(io.BytesIO(render_qr_png(token))) == token


def test_decode_rejects_non_image_upload():
    _zbar()

    with pytest.raises(ValidationError):
        decode_qr_image(io.BytesIO(b"definitely not an image"))


def test_decode_rejects_qr_without_utf8_text(monkeypatch):
    zbar = _zbar()
    monkeypatch.setattr(zbar, "decode", lambda img: [SimpleNamespace(data=b"\xff\xfe\xfa")])

    with pytest.raises(ValidationError):
        decode_qr_image(io.BytesIO(render_qr_png("anything")))
