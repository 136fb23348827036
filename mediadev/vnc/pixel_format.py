"""Pixel formats, colors and pointer button masks of the RFB protocol."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import BinaryIO

PIXEL_FORMAT_SIZE = 16

_TRUE_COLOR_LAYOUT = struct.Struct(">BBBBHHHBBB")
_HEADER_LAYOUT = struct.Struct(">BBBB")


@dataclass(frozen=True)
class Color:
    """A single color, as held in a color map."""

    r: int = 0
    g: int = 0
    b: int = 0


class ButtonMask(enum.IntFlag):
    """Pointer buttons; a set bit means the button is pressed."""

    LEFT = 1 << 0
    MIDDLE = 1 << 1
    RIGHT = 1 << 2
    BUTTON4 = 1 << 3
    BUTTON5 = 1 << 4
    BUTTON6 = 1 << 5
    BUTTON7 = 1 << 6
    BUTTON8 = 1 << 7


@dataclass
class PixelFormat:
    """How a pixel is laid out on the wire (RFC 6143 section 7.4)."""

    bpp: int = 0
    depth: int = 0
    big_endian: bool = False
    true_color: bool = False
    red_max: int = 0
    green_max: int = 0
    blue_max: int = 0
    red_shift: int = 0
    green_shift: int = 0
    blue_shift: int = 0


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = bytearray()
    while len(data) < size:
        chunk = stream.read(size - len(data))
        if not chunk:
            raise EOFError(f"expected {size} bytes, got {len(data)}")
        data += chunk
    return bytes(data)


def read_pixel_format(stream: BinaryIO) -> PixelFormat:
    """Read a 16-byte pixel format from a binary stream."""
    raw = _read_exact(stream, PIXEL_FORMAT_SIZE)
    bpp, depth, big_endian, true_color = _HEADER_LAYOUT.unpack_from(raw)
    result = PixelFormat(bpp=bpp, depth=depth, big_endian=big_endian != 0)
    if true_color:
        (
            _, _, _, _,
            result.red_max,
            result.green_max,
            result.blue_max,
            result.red_shift,
            result.green_shift,
            result.blue_shift,
        ) = _TRUE_COLOR_LAYOUT.unpack_from(raw)
        result.true_color = True
    return result


def write_pixel_format(pixel_format: PixelFormat) -> bytes:
    """Encode a pixel format as its 16-byte wire form."""
    if pixel_format.true_color:
        data = _TRUE_COLOR_LAYOUT.pack(
            pixel_format.bpp,
            pixel_format.depth,
            int(pixel_format.big_endian),
            1,
            pixel_format.red_max,
            pixel_format.green_max,
            pixel_format.blue_max,
            pixel_format.red_shift,
            pixel_format.green_shift,
            pixel_format.blue_shift,
        )
    else:
        data = _HEADER_LAYOUT.pack(
            pixel_format.bpp, pixel_format.depth, int(pixel_format.big_endian), 0
        )
    return data.ljust(PIXEL_FORMAT_SIZE, b"\x00")