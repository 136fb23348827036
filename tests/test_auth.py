import io

import pytest

from mediadev.vnc.auth import ClientAuth, ClientAuthNone, PasswordAuth, reverse_bits


class FakeConn:
    def __init__(self, incoming: bytes) -> None:
        self._incoming = io.BytesIO(incoming)
        self.written = bytearray()

    def read(self, size: int) -> bytes:
        return self._incoming.read(size)

    def write(self, data: bytes) -> int:
        self.written += data
        return len(data)


CHALLENGE = bytes(range(16))


def test_reverse_bits_table_values():
    assert reverse_bits(1) == 128
    assert reverse_bits(2) == 64
    assert reverse_bits(255) == 255
    assert reverse_bits(0) == 0


def test_reverse_bits_is_an_involution():
    assert all(reverse_bits(reverse_bits(v)) == v for v in range(256))


def test_client_auth_is_abstract():
    with pytest.raises(TypeError):
        ClientAuth()


def test_none_auth_does_no_exchange():
    auth = ClientAuthNone()
    conn = FakeConn(b"untouched")
    auth.handshake(conn)
    assert auth.security_type() == 1
    assert conn.written == b""
    assert conn.read(100) == b"untouched"


def test_password_auth_security_type():
    password = "password"
    assert PasswordAuth(password=password).security_type() == 2


def test_encrypt_returns_sixteen_bytes():
    password = "password"
    auth = PasswordAuth(password=password)
    assert len(auth.encrypt(password, CHALLENGE)) == 16


def test_encrypt_blocks_independently():
    auth = PasswordAuth()
    result = auth.encrypt("password", b"ABCDEFGH" * 2)
    assert result[:8] == result[8:]


def test_encrypt_uses_only_first_eight_key_bytes():
    auth = PasswordAuth()
    assert auth.encrypt("password", CHALLENGE) == auth.encrypt(
        "password" + "extra", CHALLENGE
    )


def test_short_key_is_zero_padded():
    auth = PasswordAuth()
    assert auth.encrypt("", CHALLENGE) == auth.encrypt(b"\x00" * 8, CHALLENGE)


def test_encrypt_depends_on_key():
    auth = PasswordAuth()
    first = auth.encrypt("password", CHALLENGE)
    second = auth.encrypt("secret", CHALLENGE)
    assert len(first) == len(second) == 16
    assert first != second


def test_encrypt_short_challenge_raises():
    with pytest.raises(ValueError):
        PasswordAuth().encrypt("password", b"short")


def test_handshake_sends_encrypted_challenge():
    password = "password"
    auth = PasswordAuth(password=password)
    conn = FakeConn(CHALLENGE + b"after")
    auth.handshake(conn)
    assert bytes(conn.written) == auth.encrypt(password, CHALLENGE)
    assert conn.read(100) == b"after"


def test_handshake_truncated_challenge_raises():
    password = "password"
    with pytest.raises(EOFError):
        PasswordAuth(password=password).handshake(FakeConn(b"\x01\x02"))