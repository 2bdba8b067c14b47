import base64
from io import BytesIO

import qrcode
from qrcode.constants import ERROR_CORRECT_M


def build_short_url(base_url: str, code: str) -> str:
    return f"{base_url.rstrip('/')}/{code}"


def render_qr_png(data: str, box_size: int = 10, border: int = 4) -> bytes:
    qr = qrcode.QRCode(
        box_size=box_size, border=border,
        error_correction=ERROR_CORRECT_M
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buf = BytesIO()
    img.save(buf)
    return buf.getvalue()


def short_url_qr_base64(base_url: str, code: str) -> tuple[str, str]:
    """Return the public short URL for ``code`` and its QR code as base64 PNG."""
    short_url = build_short_url(base_url, code)
    return short_url, base64.b64encode(render_qr_png(short_url)).decode()
