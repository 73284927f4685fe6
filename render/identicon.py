"""Deterministic blockies-style identicons derived from an address.

The seed is the lowercase address string. A 128-bit xorshift generator
(32-bit signed lanes) draws three HSL colours (foreground, background,
spot) and an 8x8 grid whose right half mirrors the left. Nothing here
touches the network, so an identicon can always be produced.
"""

from __future__ import annotations

import base64
import colorsys
import io

from PIL import Image

GRID_SIZE = 8


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


class BlockiesRandom:
    def __init__(self, seed: str) -> None:
        self.state = [0, 0, 0, 0]
        for i, ch in enumerate(seed):
            j = i % 4
            self.state[j] = _to_int32(_to_int32(self.state[j] << 5) - self.state[j] + ord(ch))

    def next(self) -> float:
        s = self.state
        t = _to_int32(s[0] ^ _to_int32(s[0] << 11))
        s[0], s[1], s[2] = s[1], s[2], s[3]
        s[3] = _to_int32(s[3] ^ (s[3] >> 19) ^ t ^ (t >> 8))
        return (s[3] & 0xFFFFFFFF) / 0x80000000


def _create_color(rand: BlockiesRandom) -> tuple[int, int, int]:
    hue = int(rand.next() * 360)
    saturation = rand.next() * 60 + 40
    lightness = (rand.next() + rand.next() + rand.next() + rand.next()) * 25
    r, g, b = colorsys.hls_to_rgb(
        hue / 360.0,
        min(100.0, lightness) / 100.0,
        min(100.0, saturation) / 100.0,
    )
    return int(round(r * 255)), int(round(g * 255)), int(round(b * 255))


def blockies(address: str) -> tuple[list[tuple[int, int, int]], list[int]]:
    """Return (palette, cells) where palette is [background, color, spot] and
    cells holds GRID_SIZE*GRID_SIZE palette indexes in row-major order."""
    rand = BlockiesRandom(str(address or "").lower())
    color = _create_color(rand)
    background = _create_color(rand)
    spot = _create_color(rand)

    data_width = (GRID_SIZE + 1) // 2
    mirror_width = GRID_SIZE - data_width
    cells: list[int] = []
    for _ in range(GRID_SIZE):
        row = [int(rand.next() * 2.3) for _ in range(data_width)]
        row = row + list(reversed(row[:mirror_width]))
        cells.extend(row)
    return [background, color, spot], cells


def identicon_image(address: str, size: int = 200) -> Image.Image:
    palette, cells = blockies(address)
    small = Image.new("RGB", (GRID_SIZE, GRID_SIZE))
    small.putdata([palette[min(2, max(0, c))] for c in cells])
    return small.resize((size, size), Image.NEAREST)


def identicon_png(address: str, size: int = 200) -> bytes:
    buffer = io.BytesIO()
    identicon_image(address, size).save(buffer, format="PNG")
    return buffer.getvalue()


def identicon_data_url(address: str, size: int = 200) -> str:
    encoded = base64.b64encode(identicon_png(address, size)).decode("ascii")
    return f"data:image/png;base64,{encoded}"
