"""QR code helpers: the qrserver.com image URL and a local qrcode rendering."""

from __future__ import annotations

from urllib.parse import quote

import qrcode
from PIL import Image

import config


def qr_code_url(payload: str, size: int | None = None) -> str:
    side = int(size or config.QR_SIZE)
    return config.QR_URL_TEMPLATE.format(size=side, data=quote(str(payload), safe=""))


def qr_image(payload: str, size: int | None = None) -> Image.Image:
    """Render the QR locally, scaled to a size x size square."""
    side = int(size or config.QR_SIZE)
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=2,
    )
    qr.add_data(str(payload))
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white").get_image().convert("RGB")
    return img.resize((side, side), Image.NEAREST)
