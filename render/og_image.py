"""OG card compositing with Pillow."""

from __future__ import annotations

import asyncio
import base64
import binascii
import io
import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from PIL import Image, ImageDraw, ImageFilter, ImageFont, ImageOps

import config
from render.identicon import identicon_image
from render.qr import qr_code_url, qr_image
from resolver.errors import ErrorKind, OgImageError
from resolver.identity import ResolvedIdentity
from utils.http_client import SharedHttpClient

logger = logging.getLogger(__name__)

WHITE = (255, 255, 255)
PANEL_BG = (239, 246, 255)
BORDER = (203, 213, 225)
TEXT = (15, 23, 42)
SHADOW = (15, 23, 42, 70)

HEADER_HEIGHT = 125
CARD_HEIGHT = 400
CARD_RADIUS = 64
CARD_PADDING = 32
CARD_MARGIN = 32
BODY_LEFT_PAD = 40
BODY_TOP_PAD = 24


def format_balance(balance: str | None) -> str:
    try:
        value = Decimal(str(balance or "0"))
    except InvalidOperation:
        value = Decimal(0)
    if not value.is_finite():
        value = Decimal(0)
    return f"{value.quantize(Decimal('0.0001'), rounding=ROUND_HALF_UP):.4f}"


def _load_font(size: int, bold: bool = False) -> ImageFont.ImageFont:
    candidates = [config.FONT_BOLD_PATH if bold else config.FONT_PATH]
    candidates.append("DejaVuSans-Bold.ttf" if bold else "DejaVuSans.ttf")
    for path in candidates:
        if not path:
            continue
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            continue
    try:
        return ImageFont.load_default(size=size)
    except TypeError:
        # Pillow < 10.1 has no sized default font.
        return ImageFont.load_default()


def _fit_text(draw: ImageDraw.ImageDraw, text: str, font: ImageFont.ImageFont, max_width: int) -> str:
    if draw.textlength(text, font=font) <= max_width:
        return text
    ellipsis = "…"
    cut = text
    while cut and draw.textlength(cut + ellipsis, font=font) > max_width:
        cut = cut[:-1]
    return cut + ellipsis


def decode_data_url(url: str) -> bytes | None:
    header, sep, payload = url.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        return None
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        return None


def open_image(raw: bytes | None) -> Image.Image | None:
    if not raw:
        return None
    try:
        img = Image.open(io.BytesIO(raw))
        img.load()
        return img.convert("RGBA")
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        logger.debug("IMAGE_DECODE_FAIL err=%s", exc)
        return None


async def load_image(url: str, http: SharedHttpClient, source: str = "asset") -> Image.Image | None:
    if url.startswith("data:"):
        return open_image(decode_data_url(url))
    result = await http.get_bytes(url, source=source)
    if not result.ok:
        logger.warning("IMAGE_FETCH_FAIL source=%s status=%s url=%s err=%s", source, result.status, url, result.error)
        return None
    return open_image(result.data)


def _circle_crop(img: Image.Image, size: int) -> Image.Image:
    fitted = ImageOps.fit(img.convert("RGBA"), (size, size), method=Image.LANCZOS)
    mask = Image.new("L", (size, size), 0)
    ImageDraw.Draw(mask).ellipse((0, 0, size - 1, size - 1), fill=255)
    fitted.putalpha(mask)
    return fitted


def _draw_card(canvas: Image.Image, box: tuple[int, int, int, int]) -> None:
    x0, y0, x1, y1 = box
    shadow = Image.new("RGBA", canvas.size, (0, 0, 0, 0))
    ImageDraw.Draw(shadow).rounded_rectangle((x0, y0 + 12, x1, y1 + 12), radius=CARD_RADIUS, fill=SHADOW)
    shadow = shadow.filter(ImageFilter.GaussianBlur(18))
    canvas.alpha_composite(shadow)
    ImageDraw.Draw(canvas).rounded_rectangle(box, radius=CARD_RADIUS, fill=WHITE)


def render_og_png(identity: ResolvedIdentity, avatar: Image.Image, qr: Image.Image) -> bytes:
    width, height = config.OG_WIDTH, config.OG_HEIGHT
    canvas = Image.new("RGBA", (width, height), PANEL_BG)
    draw = ImageDraw.Draw(canvas)

    brand_font = _load_font(60, bold=True)
    pill_font = _load_font(36)
    name_font = _load_font(36, bold=True)
    body_font = _load_font(36)

    # Header band: brand + display-name pill.
    draw.rectangle((0, 0, width, HEADER_HEIGHT), fill=WHITE)
    brand_x, brand_y = 16, 34
    draw.text((brand_x, brand_y), config.OG_BRAND_TEXT, font=brand_font, fill=TEXT)
    pill_x = brand_x + int(draw.textlength(config.OG_BRAND_TEXT, font=brand_font)) + 48
    pill_text = _fit_text(draw, identity.display_name, pill_font, max(40, width - pill_x - 64))
    pill_w = int(draw.textlength(pill_text, font=pill_font)) + 48
    draw.rounded_rectangle(
        (pill_x, 26, pill_x + pill_w, 26 + 76), radius=38, fill=PANEL_BG, outline=BORDER, width=1
    )
    draw.text((pill_x + 24, 44), pill_text, font=pill_font, fill=TEXT)

    card_y = HEADER_HEIGHT + BODY_TOP_PAD + CARD_MARGIN
    qr_card_w = CARD_PADDING * 2 + config.QR_SIZE
    qr_card_x = width - CARD_MARGIN - qr_card_w
    left_x = BODY_LEFT_PAD + CARD_MARGIN
    left_box = (left_x, card_y, qr_card_x - CARD_MARGIN, card_y + CARD_HEIGHT)
    qr_box = (qr_card_x, card_y, qr_card_x + qr_card_w, card_y + CARD_HEIGHT)

    _draw_card(canvas, left_box)
    _draw_card(canvas, qr_box)
    draw = ImageDraw.Draw(canvas)

    avatar_size = config.AVATAR_SIZE
    avatar_x = left_box[0] + CARD_PADDING
    avatar_y = card_y + (CARD_HEIGHT - avatar_size) // 2
    canvas.alpha_composite(_circle_crop(avatar, avatar_size), (avatar_x, avatar_y))

    text_x = avatar_x + avatar_size + CARD_PADDING
    text_w = max(40, left_box[2] - CARD_PADDING - text_x)
    name_text = _fit_text(draw, identity.display_name, name_font, text_w)
    balance_text = _fit_text(draw, f"Balance: {format_balance(identity.balance)} ETH", body_font, text_w)
    draw.text((text_x, card_y + CARD_HEIGHT // 2 - 52), name_text, font=name_font, fill=TEXT)
    draw.text((text_x, card_y + CARD_HEIGHT // 2 + 8), balance_text, font=body_font, fill=TEXT)

    qr_side = config.QR_SIZE
    qr_img = qr.convert("RGBA")
    if qr_img.size != (qr_side, qr_side):
        qr_img = qr_img.resize((qr_side, qr_side), Image.NEAREST)
    canvas.alpha_composite(qr_img, (qr_card_x + CARD_PADDING, card_y + (CARD_HEIGHT - qr_side) // 2))

    buffer = io.BytesIO()
    canvas.convert("RGB").save(buffer, format="PNG", optimize=True)
    return buffer.getvalue()


async def build_og_image(identity: ResolvedIdentity, http: SharedHttpClient) -> bytes:
    """Load avatar and QR images, then composite the card. Raises OgImageError(RENDER)."""
    avatar = await load_image(identity.avatar_url, http, source="ens_avatar")
    if avatar is None:
        logger.info("AVATAR_IMAGE_FALLBACK token=%s", identity.token)
        avatar = identicon_image(identity.address or identity.token, config.AVATAR_SIZE)

    qr = await load_image(qr_code_url(identity.qr_payload), http, source="qrserver")
    if qr is None:
        logger.info("QR_IMAGE_FALLBACK token=%s", identity.token)
        qr = qr_image(identity.qr_payload)

    try:
        return await asyncio.to_thread(render_og_png, identity, avatar, qr)
    except (OSError, ValueError, TypeError) as exc:
        raise OgImageError(ErrorKind.RENDER, "Failed to generate the image", cause=exc) from exc

