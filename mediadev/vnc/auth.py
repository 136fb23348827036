"""Client authentication schemes of the RFB security handshake."""

from __future__ import annotations

import abc
from dataclasses import dataclass
from typing import Any

from Crypto.Cipher import DES

CHALLENGE_SIZE = 16
_KEY_SIZE = 8


def reverse_bits(value: int) -> int:
    """Reverse the bit order of a byte."""
    return int(f"{value & 0xFF:08b}"[::-1], 2)


def _read_exact(conn: Any, size: int) -> bytes:
    data = bytearray()
    while len(data) < size:
        chunk = conn.read(size - len(data))
        if not chunk:
            raise EOFError(f"expected {size} bytes, got {len(data)}")
        data += chunk
    return bytes(data)


class ClientAuth(abc.ABC):
    """A way of authenticating with a server."""

    @abc.abstractmethod
    def security_type(self) -> int:
        """The byte the server uses to identify this scheme."""

    @abc.abstractmethod
    def handshake(self, conn: Any) -> None:
        """Run the scheme's part of the handshake over a binary stream."""


class ClientAuthNone(ClientAuth):
    """No authentication."""

    def security_type(self) -> int:
        return 1

    def handshake(self, conn: Any) -> None:
        return None


@dataclass
class PasswordAuth(ClientAuth):
    """VNC authentication: a DES-encrypted challenge response."""

    password: str = ""

    def security_type(self) -> int:
        return 2

    def handshake(self, conn: Any) -> None:
        challenge = _read_exact(conn, CHALLENGE_SIZE)
        conn.write(self.encrypt(self.password, challenge))
        flush = getattr(conn, "flush", None)
        if callable(flush):
            flush()

    def encrypt(self, key: str | bytes, challenge: bytes) -> bytes:
        """Encrypt the 16-byte challenge with the first 8 bytes of key."""
        if len(challenge) < CHALLENGE_SIZE:
            raise ValueError(
                f"challenge must be {CHALLENGE_SIZE} bytes, got {len(challenge)}"
            )
        raw_key = key.encode("utf-8") if isinstance(key, str) else bytes(key)
        key_bytes = bytes(reverse_bits(b) for b in raw_key[:_KEY_SIZE])
        cipher = DES.new(key_bytes.ljust(_KEY_SIZE, b"\x00"), DES.MODE_ECB)
        return cipher.encrypt(bytes(challenge[:CHALLENGE_SIZE]))