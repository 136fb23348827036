"""Pixel data encodings a server may use for framebuffer rectangles."""

from __future__ import annotations

import abc
import itertools
import struct
import zlib
from dataclasses import dataclass, field
from typing import Any, BinaryIO, ClassVar, Sequence

from .pixel_format import Color, PixelFormat

_UINT32 = 0xFFFFFFFF
_UINT16 = 0xFFFF


@dataclass
class Rectangle:
    """A rectangle of pixel data within the framebuffer."""

    x: int = 0
    y: int = 0
    width: int = 0
    height: int = 0
    enc: "Encoding | None" = None


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = bytearray()
    while len(data) < size:
        chunk = stream.read(size - len(data))
        if not chunk:
            raise EOFError(f"expected {size} bytes, got {len(data)}")
        data += chunk
    return bytes(data)


def _to_color(pf: PixelFormat, color_map: Sequence[Color], value: int) -> Color:
    if not pf.true_color:
        return color_map[value]
    r = (value >> pf.red_shift) & pf.red_max & _UINT16
    g = (value >> pf.green_shift) & pf.green_max & _UINT16
    b = (value >> pf.blue_shift) & pf.blue_max & _UINT16
    if pf.bpp == 16:
        b = (b << 3 | b >> 2) & _UINT16
        g = (g << 2 | g >> 2) & _UINT16
        r = (r << 3 | r >> 2) & _UINT16
    return Color(r, g, b)


def _decode_pixels(conn: Any, data: bytes, count: int) -> tuple[list[Color], list[int]]:
    """Turn raw pixel bytes into colors and 0xAABBGGRR values."""
    pf: PixelFormat = conn.pixel_format
    size = pf.bpp // 8
    order = "big" if pf.big_endian else "little"
    if size:
        chunks = (data[i:i + size] for i in range(0, size * count, size))
    else:
        chunks = itertools.repeat(b"", count)
    colors: list[Color] = []
    raw_pixels: list[int] = []
    for chunk in chunks:
        value = int.from_bytes(chunk, order) if pf.bpp in (8, 16, 32) else 0
        color = _to_color(pf, conn.color_map, value)
        colors.append(color)
        raw_pixels.append((0xFF << 24 | color.b << 16 | color.g << 8 | color.r) & _UINT32)
    return colors, raw_pixels


def _rect_bytes(conn: Any, rect: Rectangle) -> tuple[int, int]:
    count = rect.width * rect.height
    return count, count * (conn.pixel_format.bpp // 8)


class Encoding(abc.ABC):
    """A method of encoding pixel data sent by the server."""

    encoding_type: ClassVar[int]

    @abc.abstractmethod
    def read(self, conn: Any, rect: Rectangle, stream: BinaryIO) -> "Encoding":
        """Read one rectangle's data and return a new encoding holding it."""


@dataclass
class CursorEncoding(Encoding):
    """Remote cursor shape; its data is read and discarded."""

    encoding_type: ClassVar[int] = -239

    def read(self, conn: Any, rect: Rectangle, stream: BinaryIO) -> "CursorEncoding":
        size = rect.height * rect.width * conn.pixel_format.bpp // 8
        _read_exact(stream, size)
        _read_exact(stream, (rect.width + 7) // 8 * rect.height)
        return CursorEncoding()


@dataclass
class RawEncoding(Encoding):
    """Uncompressed pixel data (RFC 6143 section 7.7.1)."""

    encoding_type: ClassVar[int] = 0

    colors: list[Color] = field(default_factory=list)
    raw_pixels: list[int] = field(default_factory=list)

    def read(self, conn: Any, rect: Rectangle, stream: BinaryIO) -> "RawEncoding":
        count, size = _rect_bytes(conn, rect)
        colors, raw_pixels = _decode_pixels(conn, _read_exact(stream, size), count)
        return RawEncoding(colors, raw_pixels)


@dataclass
class ZlibEncoding(Encoding):
    """Pixel data compressed with a single zlib stream kept across rectangles."""

    encoding_type: ClassVar[int] = 6

    colors: list[Color] = field(default_factory=list)
    raw_pixels: list[int] = field(default_factory=list)
    _decompressor: Any = field(default=None, init=False, repr=False, compare=False)
    _pending: bytearray = field(
        default_factory=bytearray, init=False, repr=False, compare=False
    )

    def read(self, conn: Any, rect: Rectangle, stream: BinaryIO) -> "ZlibEncoding":
        (length,) = struct.unpack(">I", _read_exact(stream, 4))
        compressed = _read_exact(stream, length)
        if self._decompressor is None:
            self._decompressor = zlib.decompressobj()
            self._pending = bytearray()
        self._pending += self._decompressor.decompress(compressed)

        count, size = _rect_bytes(conn, rect)
        if len(self._pending) < size:
            raise EOFError(
                f"zlib data ended early: need {size} bytes, have {len(self._pending)}"
            )
        data = bytes(self._pending[:size])
        del self._pending[:size]
        colors, raw_pixels = _decode_pixels(conn, data, count)
        return ZlibEncoding(colors=colors, raw_pixels=raw_pixels)

    def close(self) -> None:
        """Drop the zlib stream so the next rectangle starts a new one."""
        self._decompressor = None
        self._pending = bytearray()