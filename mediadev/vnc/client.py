"""An RFB (VNC) client connection (RFC 6143)."""

from __future__ import annotations

import contextlib
import queue
import re
import socket
import struct
import threading
from dataclasses import dataclass, field
from typing import Sequence

from .auth import ClientAuth, ClientAuthNone
from .encoding import Encoding
from .messages import (
    BellMessage,
    FramebufferUpdateMessage,
    ServerCutTextMessage,
    ServerMessage,
    SetColorMapEntriesMessage,
)
from .pixel_format import (
    ButtonMask,
    Color,
    PixelFormat,
    read_pixel_format,
    write_pixel_format,
)

PROTOCOL_VERSION_LENGTH = 12
_VERSION = re.compile(rb"RFB (\d+)\.(\d+)\n")
_MAX_LATIN1 = 0xFF


class VncError(Exception):
    """A protocol-level failure talking to a VNC server."""


@dataclass
class ClientConfig:
    """Settings for a client connection; do not change after connecting.

    Parsed server messages are put on message_queue when it is set, and
    dropped otherwise. server_messages adds or replaces message handlers.
    """

    auth: list[ClientAuth] | None = None
    exclusive: bool = False
    message_queue: queue.Queue | None = None
    server_messages: list[ServerMessage] = field(default_factory=list)


def parse_protocol_version(data: bytes) -> tuple[int, int]:
    """Parse a 12-byte ProtocolVersion message into (major, minor)."""
    if len(data) < PROTOCOL_VERSION_LENGTH:
        raise VncError(
            f"ProtocolVersion message too short "
            f"({len(data)} < {PROTOCOL_VERSION_LENGTH})"
        )
    match = _VERSION.match(bytes(data))
    if match is None:
        raise VncError("error parsing ProtocolVersion.")
    return int(match.group(1)), int(match.group(2))


class ClientConn:
    """A connection to a VNC server over a connected socket."""

    def __init__(self, sock: socket.socket, config: ClientConfig | None = None) -> None:
        self._sock = sock
        self._file = sock.makefile("rwb")
        self.config = config or ClientConfig()
        self.color_map: list[Color] = [Color()] * 256
        self.encodings: list[Encoding] = []
        self.frame_buffer_width = 0
        self.frame_buffer_height = 0
        self.desktop_name = ""
        self.pixel_format = PixelFormat()
        self._closed = False
        self._close_lock = threading.Lock()
        self._thread: threading.Thread | None = None

    def __enter__(self) -> "ClientConn":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the connection; the message loop stops."""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
        with contextlib.suppress(OSError):
            self._sock.shutdown(socket.SHUT_RDWR)
        with contextlib.suppress(OSError, ValueError):
            self._file.close()
        with contextlib.suppress(OSError):
            self._sock.close()

    def _read(self, size: int) -> bytes:
        data = bytearray()
        while len(data) < size:
            chunk = self._file.read(size - len(data))
            if not chunk:
                raise EOFError(f"expected {size} bytes, got {len(data)}")
            data += chunk
        return bytes(data)

    def _send(self, data: bytes) -> None:
        self._file.write(data)
        self._file.flush()

    def cut_text(self, text: str) -> None:
        """Tell the server the client's cut buffer holds text (Latin-1 only)."""
        for char in text:
            if ord(char) > _MAX_LATIN1:
                raise VncError(f"Character '{ord(char)}' is not valid Latin-1")
        self._send(struct.pack(">BBBBI", 6, 0, 0, 0, len(text)) + text.encode("latin-1"))

    def framebuffer_update_request(
        self, incremental: bool, x: int, y: int, width: int, height: int
    ) -> None:
        """Ask the server for a framebuffer update of the given area."""
        self._send(struct.pack(">BBHHHH", 3, int(bool(incremental)), x, y, width, height))

    def key_event(self, keysym: int, down: bool) -> None:
        """Send a key press or release given as an X keysym."""
        self._send(struct.pack(">BBBBI", 4, int(bool(down)), 0, 0, keysym))

    def pointer_event(self, mask: ButtonMask | int, x: int, y: int) -> None:
        """Send the pointer position and the buttons held down."""
        self._send(struct.pack(">BBHH", 5, int(mask), x, y))

    def set_encodings(self, encodings: Sequence[Encoding]) -> None:
        """Tell the server which encodings the client accepts, in preference order."""
        encodings = list(encodings)
        data = struct.pack(">BBH", 2, 0, len(encodings))
        data += b"".join(struct.pack(">i", enc.encoding_type) for enc in encodings)
        self._send(data)
        self.encodings = encodings

    def set_pixel_format(self, pixel_format: PixelFormat) -> None:
        """Ask the server to send pixels in the given format."""
        self._send(bytes(4) + write_pixel_format(pixel_format))
        self.color_map = [Color()] * 256

    def _read_error_reason(self) -> str:
        try:
            (length,) = struct.unpack(">I", self._read(4))
            return self._read(length).decode("utf-8", errors="replace")
        except (EOFError, OSError, ValueError):
            return "<error>"

    def _handshake(self) -> None:
        major, minor = parse_protocol_version(self._read(PROTOCOL_VERSION_LENGTH))
        if major < 3:
            raise VncError(f"unsupported major version, less than 3: {major}")
        if minor < 3:
            raise VncError(f"unsupported minor version, less than 3: {minor}")

        if minor < 8:
            self._send(b"RFB 003.003\n")
            (security_type,) = struct.unpack(">I", self._read(4))
            if security_type == 0:
                raise VncError(f"no security types: {self._read_error_reason()}")
        else:
            self._send(b"RFB 003.008\n")
            (count,) = self._read(1)
            if count == 0:
                raise VncError(f"no security types: {self._read_error_reason()}")
            server_types = list(self._read(count))

            candidates = self.config.auth or [ClientAuthNone()]
            auth = next(
                (a for a in candidates if a.security_type() in server_types), None
            )
            if auth is None:
                raise VncError(
                    f"no suitable auth schemes found. server supported: {server_types}"
                )
            self._send(bytes([auth.security_type()]))
            auth.handshake(self._file)

            (result,) = struct.unpack(">I", self._read(4))
            if result == 1:
                raise VncError(f"security handshake failed: {self._read_error_reason()}")

        self._send(b"\x00" if self.config.exclusive else b"\x01")

        self.frame_buffer_width, self.frame_buffer_height = struct.unpack(
            ">HH", self._read(4)
        )
        self.pixel_format = read_pixel_format(self._file)
        (name_length,) = struct.unpack(">I", self._read(4))
        self.desktop_name = self._read(name_length).decode("utf-8", errors="replace")

    def _main_loop(self) -> None:
        handlers: dict[int, ServerMessage] = {
            m.message_type: m
            for m in (
                FramebufferUpdateMessage(),
                SetColorMapEntriesMessage(),
                BellMessage(),
                ServerCutTextMessage(),
            )
        }
        handlers.update({m.message_type: m for m in self.config.server_messages})
        try:
            while True:
                (message_type,) = self._read(1)
                handler = handlers.get(message_type)
                if handler is None:
                    break
                message = handler.read(self, self._file)
                if self.config.message_queue is not None:
                    self.config.message_queue.put(message)
        except Exception:
            # Any read or parse failure ends the session.
            pass
        finally:
            self.close()

    def _start(self) -> None:
        self._thread = threading.Thread(
            target=self._main_loop, name="vnc-client", daemon=True
        )
        self._thread.start()


def client(conn: socket.socket, config: ClientConfig | None = None) -> ClientConn:
    """Perform the handshake over a connected socket and start reading messages."""
    client_conn = ClientConn(conn, config)
    try:
        client_conn._handshake()
    except BaseException:
        client_conn.close()
        raise
    client_conn._start()
    return client_conn