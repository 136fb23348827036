"""Messages a server sends to the client (RFC 6143 section 7.6)."""

from __future__ import annotations

import abc
import struct
from dataclasses import dataclass, field
from typing import Any, BinaryIO, ClassVar

from .encoding import Encoding, RawEncoding, Rectangle
from .pixel_format import Color

_RECT_HEADER = struct.Struct(">HHHHi")
_COLOR = struct.Struct(">HHH")


def _read_exact(stream: BinaryIO, size: int) -> bytes:
    data = bytearray()
    while len(data) < size:
        chunk = stream.read(size - len(data))
        if not chunk:
            raise EOFError(f"expected {size} bytes, got {len(data)}")
        data += chunk
    return bytes(data)


class ServerMessage(abc.ABC):
    """A message sent from the server; its type byte has already been read."""

    message_type: ClassVar[int]

    @abc.abstractmethod
    def read(self, conn: Any, stream: BinaryIO) -> "ServerMessage":
        """Read the message body and return a new message holding it."""


@dataclass
class FramebufferUpdateMessage(ServerMessage):
    """A sequence of rectangles of pixel data for the framebuffer."""

    message_type: ClassVar[int] = 0

    rectangles: list[Rectangle] = field(default_factory=list)

    def read(self, conn: Any, stream: BinaryIO) -> "FramebufferUpdateMessage":
        _read_exact(stream, 1)
        (count,) = struct.unpack(">H", _read_exact(stream, 2))

        encodings: dict[int, Encoding] = {
            enc.encoding_type: enc for enc in conn.encodings
        }
        # Raw encoding is always supported.
        encodings[RawEncoding.encoding_type] = RawEncoding()

        rectangles = []
        for _ in range(count):
            x, y, width, height, encoding_type = _RECT_HEADER.unpack(
                _read_exact(stream, _RECT_HEADER.size)
            )
            encoding = encodings.get(encoding_type)
            if encoding is None:
                raise ValueError(f"unsupported encoding type: {encoding_type}")
            rect = Rectangle(x, y, width, height)
            rect.enc = encoding.read(conn, rect, stream)
            rectangles.append(rect)
        return FramebufferUpdateMessage(rectangles)


@dataclass
class SetColorMapEntriesMessage(ServerMessage):
    """New color map entries; the connection's color map is updated too."""

    message_type: ClassVar[int] = 1

    first_color: int = 0
    colors: list[Color] = field(default_factory=list)

    def read(self, conn: Any, stream: BinaryIO) -> "SetColorMapEntriesMessage":
        _read_exact(stream, 1)
        first_color, count = struct.unpack(">HH", _read_exact(stream, 4))
        colors = [
            Color(*_COLOR.unpack(_read_exact(stream, _COLOR.size)))
            for _ in range(count)
        ]
        if first_color + count > len(conn.color_map):
            raise ValueError(
                f"color map entries {first_color}..{first_color + count - 1} "
                f"out of range"
            )
        conn.color_map[first_color:first_color + count] = colors
        return SetColorMapEntriesMessage(first_color, colors)


@dataclass
class BellMessage(ServerMessage):
    """A request to sound an audible bell."""

    message_type: ClassVar[int] = 2

    def read(self, conn: Any, stream: BinaryIO) -> "BellMessage":
        return BellMessage()


@dataclass
class ServerCutTextMessage(ServerMessage):
    """New text in the server's cut buffer."""

    message_type: ClassVar[int] = 3

    text: str = ""

    def read(self, conn: Any, stream: BinaryIO) -> "ServerCutTextMessage":
        _read_exact(stream, 3)
        (length,) = struct.unpack(">I", _read_exact(stream, 4))
        return ServerCutTextMessage(_read_exact(stream, length).decode("latin-1"))