"""A video driver that captures the framebuffer of a VNC server."""

from __future__ import annotations

import contextlib
import logging
import queue
import socket
import struct
import threading
import time
from typing import Callable

from .driver import Media
from .frame import RGBA, Format
from .vnc.client import ClientConfig, ClientConn, client
from .vnc.encoding import CursorEncoding, RawEncoding, ZlibEncoding
from .vnc.messages import FramebufferUpdateMessage

logger = logging.getLogger(__name__)

DEFAULT_FRAME_RATE = 30.0
UPDATE_TIMEOUT = 10.0
_POLL_INTERVAL = 0.1


def _split_address(address: str) -> tuple[str, int]:
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid VNC address: {address!r}")
    return host.strip("[]") or "localhost", int(port)


class VncDevice:
    """A screen of a remote VNC server, delivered as RGBA frames."""

    def __init__(self, vnc_addr: str) -> None:
        self.vnc_addr = vnc_addr
        self.width = 0
        self.height = 0
        self._raw_pixel = bytearray()
        self._lock = threading.Lock()
        self._client: ClientConn | None = None
        self._closed = threading.Event()
        self._updater: threading.Thread | None = None

    def pointer_event(self, mask: int, x: int, y: int) -> None:
        """Forward a pointer event to the server, if connected."""
        conn = self._client
        if conn is not None:
            conn.pointer_event(int(mask), x, y)

    def key_event(self, keysym: int, down: bool) -> None:
        """Forward a key press or release to the server, if connected."""
        conn = self._client
        if conn is not None:
            conn.key_event(keysym, down)

    def open(self) -> None:
        """Connect to the server and start tracking framebuffer updates."""
        with self._lock:
            if self._client is not None:
                return
            closed = threading.Event()
            messages: queue.Queue = queue.Queue()
            sock = socket.create_connection(_split_address(self.vnc_addr))
            conn = client(sock, ClientConfig(exclusive=False, message_queue=messages))
            try:
                conn.set_encodings([ZlibEncoding(), RawEncoding(), CursorEncoding()])
            except BaseException:
                conn.close()
                raise
            self._closed = closed
            self._client = conn
            self.width = conn.frame_buffer_width
            self.height = conn.frame_buffer_height
            self._raw_pixel = bytearray(self.width * self.height * 4)
        self._updater = threading.Thread(
            target=self._update_loop,
            args=(conn, messages, closed),
            name="vnc-framebuffer",
            daemon=True,
        )
        self._updater.start()

    def _request_update(self, conn: ClientConn) -> None:
        conn.framebuffer_update_request(True, 0, 0, self.width, self.height)

    def _update_loop(
        self, conn: ClientConn, messages: queue.Queue, closed: threading.Event
    ) -> None:
        with contextlib.suppress(OSError, ValueError):
            self._request_update(conn)
        deadline = time.monotonic() + UPDATE_TIMEOUT
        while not closed.is_set():
            try:
                message = messages.get(timeout=_POLL_INTERVAL)
            except queue.Empty:
                if time.monotonic() >= deadline:
                    try:
                        self._request_update(conn)
                    except (OSError, ValueError):
                        closed.set()
                        return
                    deadline = time.monotonic() + UPDATE_TIMEOUT
                continue
            deadline = time.monotonic() + UPDATE_TIMEOUT
            if isinstance(message, FramebufferUpdateMessage):
                self._apply(message)
                with contextlib.suppress(OSError, ValueError):
                    self._request_update(conn)

    def _apply(self, message: FramebufferUpdateMessage) -> None:
        width, height = self.width, self.height
        with self._lock:
            for rect in message.rectangles:
                enc = rect.enc
                if enc is None or isinstance(enc, CursorEncoding):
                    continue
                pixels = getattr(enc, "raw_pixels", None)
                if not pixels:
                    continue
                x_end = min(rect.x + rect.width, width)
                if x_end <= rect.x:
                    continue
                span = x_end - rect.x
                for row in range(rect.height):
                    y = rect.y + row
                    if y >= height:
                        break
                    start = row * rect.width
                    values = pixels[start:start + span]
                    offset = (y * width + rect.x) * 4
                    self._raw_pixel[offset:offset + 4 * len(values)] = struct.pack(
                        f"<{len(values)}I", *values
                    )

    def close(self) -> None:
        """Stop tracking updates and disconnect from the server."""
        self._closed.set()
        with self._lock:
            conn, self._client = self._client, None
        if conn is not None:
            conn.close()

    def video_record(self, media: Media) -> Callable[[], RGBA]:
        """Return a reader that yields the framebuffer at the requested frame rate.

        The reader raises EOFError once the device is closed.
        """
        frame_rate = media.frame_rate or DEFAULT_FRAME_RATE
        interval = 1.0 / frame_rate
        closed = self._closed
        next_tick = time.monotonic() + interval

        def read() -> RGBA:
            nonlocal next_tick
            if closed.is_set():
                logger.debug("stopped recording video from %s", self.vnc_addr)
                raise EOFError("VNC device is closed")
            delay = next_tick - time.monotonic()
            if delay > 0:
                time.sleep(delay)
                next_tick += interval
            else:
                next_tick = time.monotonic() + interval
            with self._lock:
                return RGBA(
                    pix=bytearray(self._raw_pixel),
                    stride=4 * self.width,
                    width=self.width,
                    height=self.height,
                )

        return read

    def properties(self) -> list[Media]:
        """The single RGBA format at the framebuffer size."""
        return [Media(width=self.width, height=self.height, frame_format=Format.RGBA)]