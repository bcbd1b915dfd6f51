import qrcode
from io import BytesIO
import base64
import secrets
import string
from datetime import datetime

QR_TOKEN_PREFIX = "TIXHUB"
QR_SUFFIX_ALPHABET = string.ascii_uppercase + string.digits
QR_SUFFIX_LENGTH = 7


def generate_qr_token() -> str:
    """
    Generate the opaque token printed on a ticket.

    Format: TIXHUB-{epoch ms}-{7 chars A-Z0-9}
    """
    timestamp_ms = int(datetime.now().timestamp() * 1000)
    suffix = ''.join(secrets.choice(QR_SUFFIX_ALPHABET) for _ in range(QR_SUFFIX_LENGTH))
    return f"{QR_TOKEN_PREFIX}-{timestamp_ms}-{suffix}"


def is_qr_token(value: str) -> bool:
    """Cheap shape check before hitting the database"""
    parts = (value or "").split("-")
    return (
        len(parts) == 3
        and parts[0] == QR_TOKEN_PREFIX
        and parts[1].isdigit()
        and len(parts[2]) == QR_SUFFIX_LENGTH
        and all(c in QR_SUFFIX_ALPHABET for c in parts[2])
    )


def generate_qr_image(data: str, size: int = 10, border: int = 2) -> bytes:
    """
    Generate QR code image as PNG bytes.
    """
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=size,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def render_qr_png_base64(token: str, size: int = 10) -> str:
    """QR code for a ticket token as base64 encoded PNG"""
    return base64.b64encode(generate_qr_image(token, size)).decode('utf-8')


def generate_data_url(base64_data: str) -> str:
    """
    Convert base64 to data URL for direct embedding in HTML.
    """
    return f"data:image/png;base64,{base64_data}"
