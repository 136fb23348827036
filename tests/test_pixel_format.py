import io

import pytest

from mediadev.vnc.pixel_format import (
    PIXEL_FORMAT_SIZE,
    PixelFormat,
    read_pixel_format,
    write_pixel_format,
)


TRUE_COLOR_32 = PixelFormat(
    bpp=32,
    depth=24,
    big_endian=False,
    true_color=True,
    red_max=255,
    green_max=255,
    blue_max=255,
    red_shift=16,
    green_shift=8,
    blue_shift=0,
)


def test_write_true_color_wire_bytes():
    assert write_pixel_format(TRUE_COLOR_32) == bytes(
        [32, 24, 0, 1, 0, 255, 0, 255, 0, 255, 16, 8, 0, 0, 0, 0]
    )


def test_write_is_always_sixteen_bytes():
    assert len(write_pixel_format(PixelFormat(bpp=8, depth=8))) == PIXEL_FORMAT_SIZE
    assert len(write_pixel_format(TRUE_COLOR_32)) == PIXEL_FORMAT_SIZE


def test_true_color_round_trip():
    data = write_pixel_format(TRUE_COLOR_32)
    assert read_pixel_format(io.BytesIO(data)) == TRUE_COLOR_32


def test_big_endian_round_trip():
    fmt = PixelFormat(
        bpp=16, depth=16, big_endian=True, true_color=True,
        red_max=31, green_max=63, blue_max=31,
        red_shift=11, green_shift=5, blue_shift=0,
    )
    assert read_pixel_format(io.BytesIO(write_pixel_format(fmt))) == fmt


def test_color_map_format_round_trip():
    fmt = PixelFormat(bpp=8, depth=8, big_endian=False, true_color=False)
    assert read_pixel_format(io.BytesIO(write_pixel_format(fmt))) == fmt


def test_read_ignores_color_fields_without_true_color():
    data = bytes([8, 8, 0, 0, 0, 255, 0, 255, 0, 255, 16, 8, 0, 0, 0, 0])
    result = read_pixel_format(io.BytesIO(data))
    assert result == PixelFormat(bpp=8, depth=8)


def test_read_consumes_exactly_sixteen_bytes():
    stream = io.BytesIO(write_pixel_format(TRUE_COLOR_32) + b"rest")
    read_pixel_format(stream)
    assert stream.read() == b"rest"


def test_read_short_stream_raises():
    with pytest.raises(EOFError):
        read_pixel_format(io.BytesIO(b"\x20\x18\x00"))