"""
QR code generation for attendance.

Renders with qrcode's SVG path factory so no imaging library is needed.
The result is a data URL the frontend can drop straight into an <img>.
"""

import base64
import io

import qrcode
from qrcode.image.svg import SvgPathImage


def generate_qr_svg(payload: str) -> bytes:
    img = qrcode.make(payload, image_factory=SvgPathImage)
    buffer = io.BytesIO()
    img.save(buffer)
    return buffer.getvalue()


def generate_qr_data_url(payload: str) -> str:
    """Encode `payload` (usually the attendance form URL) as an SVG data URL."""
    if not payload:
        raise ValueError("QR payload must not be empty")
    encoded = base64.b64encode(generate_qr_svg(payload)).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"
