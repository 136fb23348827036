"""Decoders that turn raw camera frames into images."""

from __future__ import annotations

import enum
import io
from dataclasses import dataclass
from typing import Any, Callable

from PIL import Image, UnidentifiedImageError


class Format(str, enum.Enum):
    """Pixel formats a device can deliver."""

    I420 = "I420"
    I444 = "I444"
    NV21 = "NV21"
    NV12 = "NV12"
    YUY2 = "YUY2"
    YUYV = "YUYV"
    UYVY = "UYVY"
    RGBA = "RGBA"
    MJPEG = "MJPEG"
    Z16 = "Z16"


class SubsampleRatio(enum.Enum):
    """Chroma subsampling of a YCbCr image."""

    RATIO_444 = "4:4:4"
    RATIO_422 = "4:2:2"
    RATIO_420 = "4:2:0"
    RATIO_440 = "4:4:0"
    RATIO_411 = "4:1:1"
    RATIO_410 = "4:1:0"


class FrameDecodeError(ValueError):
    """Raised when a frame cannot be decoded."""


@dataclass(frozen=True)
class YCbCr:
    """A planar Y'CbCr image."""

    y: bytes
    y_stride: int
    cb: bytes
    cr: bytes
    c_stride: int
    subsample_ratio: SubsampleRatio
    width: int
    height: int


@dataclass(frozen=True)
class Gray16:
    """A 16-bit grayscale image; samples are stored big-endian, row by row."""

    pix: bytes
    stride: int
    width: int
    height: int

    def at(self, x: int, y: int) -> int:
        """Return the sample at (x, y), or 0 outside the image."""
        if not (0 <= x < self.width and 0 <= y < self.height):
            return 0
        offset = y * self.stride + 2 * x
        return int.from_bytes(self.pix[offset:offset + 2], "big")


@dataclass
class RGBA:
    """An 8-bit RGBA image, four bytes per pixel, row by row."""

    pix: bytearray
    stride: int
    width: int
    height: int


Decoder = Callable[[bytes, int, int], Any]


def _too_short(length: int, expected: int) -> FrameDecodeError:
    return FrameDecodeError(f"frame length ({length}) less than expected ({expected})")


def decode_i420(frame: bytes, width: int, height: int) -> YCbCr:
    """Decode a planar 4:2:0 frame (Y, then Cb, then Cr)."""
    yi = width * height
    cbi = yi + width * height // 4
    cri = cbi + width * height // 4
    if cri > len(frame):
        raise _too_short(len(frame), cri)
    return YCbCr(
        y=bytes(frame[:yi]),
        y_stride=width,
        cb=bytes(frame[yi:cbi]),
        cr=bytes(frame[cbi:cri]),
        c_stride=width // 2,
        subsample_ratio=SubsampleRatio.RATIO_420,
        width=width,
        height=height,
    )


def decode_nv21(frame: bytes, width: int, height: int) -> YCbCr:
    """Decode a semi-planar 4:2:0 frame with interleaved Cr/Cb pairs."""
    yi = width * height
    ci = yi + width * height // 2
    if ci > len(frame):
        raise _too_short(len(frame), ci)
    cr = bytes(frame[yi:ci:2])
    cb = bytes(frame[yi + 1:ci + 1:2])
    if len(cb) != len(cr):
        raise _too_short(len(frame), ci + 1)
    return YCbCr(
        y=bytes(frame[:yi]),
        y_stride=width,
        cb=cb,
        cr=cr,
        c_stride=width // 2,
        subsample_ratio=SubsampleRatio.RATIO_420,
        width=width,
        height=height,
    )


def decode_nv12(frame: bytes, width: int, height: int) -> YCbCr:
    """Decode a semi-planar 4:2:0 frame with interleaved Cb/Cr pairs."""
    img = decode_nv21(frame, width, height)
    return YCbCr(
        y=img.y,
        y_stride=img.y_stride,
        cb=img.cr,
        cr=img.cb,
        c_stride=img.c_stride,
        subsample_ratio=img.subsample_ratio,
        width=img.width,
        height=img.height,
    )


def _packed_422(frame: bytes, width: int, height: int, order: str) -> YCbCr:
    yi = width * height
    ci = yi // 2
    fi = yi + 2 * ci
    if len(frame) < fi:
        raise _too_short(len(frame), fi)
    if yi % 2:
        raise FrameDecodeError(f"packed 4:2:2 frame needs an even pixel count, got {yi}")
    data = bytes(frame[:fi])
    lanes = {name: data[i::4] for i, name in enumerate(order)}
    y = bytearray(yi)
    y[0::2] = lanes["y"]
    y[1::2] = lanes["Y"]
    return YCbCr(
        y=bytes(y),
        y_stride=width,
        cb=lanes["b"],
        cr=lanes["r"],
        c_stride=width // 2,
        subsample_ratio=SubsampleRatio.RATIO_422,
        width=width,
        height=height,
    )


def decode_yuy2(frame: bytes, width: int, height: int) -> YCbCr:
    """Decode a packed 4:2:2 frame laid out as Y0 Cb Y1 Cr."""
    return _packed_422(frame, width, height, "ybYr")


def decode_uyvy(frame: bytes, width: int, height: int) -> YCbCr:
    """Decode a packed 4:2:2 frame laid out as Cb Y0 Cr Y1."""
    return _packed_422(frame, width, height, "bygY".replace("g", "r"))


def decode_z16(frame: bytes, width: int, height: int) -> Gray16:
    """Decode a frame of little-endian 16-bit depth samples."""
    expected = 2 * (width * height)
    if expected != len(frame):
        raise FrameDecodeError(
            f"frame length ({len(frame)}) not expected size ({expected})"
        )
    pix = bytearray(expected)
    pix[0::2] = frame[1::2]
    pix[1::2] = frame[0::2]
    return Gray16(pix=bytes(pix), stride=2 * width, width=width, height=height)


_DHT_MARKER = b"\xff\xc4"
_SOS_MARKER = b"\xff\xda"
_DHT = bytes([
    1, 162, 0, 0, 1, 5, 1, 1, 1, 1, 1, 1, 0, 0, 0, 0, 0, 0, 0, 0, 1, 2, 3, 4, 5, 6, 7, 8, 9,
    10, 11, 1, 0, 3, 1, 1, 1, 1, 1, 1, 1, 1, 1, 0, 0, 0, 0, 0, 0, 1, 2, 3, 4, 5, 6, 7, 8, 9,
    10, 11, 16, 0, 2, 1, 3, 3, 2, 4, 3, 5, 5, 4, 4, 0, 0, 1, 125, 1, 2, 3, 0, 4, 17, 5, 18,
    33, 49, 65, 6, 19, 81, 97, 7, 34, 113, 20, 50, 129, 145, 161, 8, 35, 66, 177, 193, 21,
    82, 209, 240, 36, 51, 98, 114, 130, 9, 10, 22, 23, 24, 25, 26, 37, 38, 39, 40, 41, 42,
    52, 53, 54, 55, 56, 57, 58, 67, 68, 69, 70, 71, 72, 73, 74, 83, 84, 85, 86, 87, 88, 89,
    90, 99, 100, 101, 102, 103, 104, 105, 106, 115, 116, 117, 118, 119, 120, 121, 122, 131,
    132, 133, 134, 135, 136, 137, 138, 146, 147, 148, 149, 150, 151, 152, 153, 154, 162,
    163, 164, 165, 166, 167, 168, 169, 170, 178, 179, 180, 181, 182, 183, 184, 185, 186,
    194, 195, 196, 197, 198, 199, 200, 201, 202, 210, 211, 212, 213, 214, 215, 216, 217,
    218, 225, 226, 227, 228, 229, 230, 231, 232, 233, 234, 241, 242, 243, 244, 245, 246,
    247, 248, 249, 250, 17, 0, 2, 1, 2, 4, 4, 3, 4, 7, 5, 4, 4, 0, 1, 2, 119, 0, 1, 2, 3,
    17, 4, 5, 33, 49, 6, 18, 65, 81, 7, 97, 113, 19, 34, 50, 129, 8, 20, 66, 145, 161, 177,
    193, 9, 35, 51, 82, 240, 21, 98, 114, 209, 10, 22, 36, 52, 225, 37, 241, 23, 24, 25,
    26, 38, 39, 40, 41, 42, 53, 54, 55, 56, 57, 58, 67, 68, 69, 70, 71, 72, 73, 74, 83, 84,
    85, 86, 87, 88, 89, 90, 99, 100, 101, 102, 103, 104, 105, 106, 115, 116, 117, 118, 119,
    120, 121, 122, 130, 131, 132, 133, 134, 135, 136, 137, 138, 146, 147, 148, 149, 150,
    151, 152, 153, 154, 162, 163, 164, 165, 166, 167, 168, 169, 170, 178, 179, 180, 181,
    182, 183, 184, 185, 186, 194, 195, 196, 197, 198, 199, 200, 201, 202, 210, 211, 212,
    213, 214, 215, 216, 217, 218, 226, 227, 228, 229, 230, 231, 232, 233, 234, 242, 243,
    244, 245, 246, 247, 248, 249, 250,
])


def add_motion_dht(frame: bytes) -> bytes:
    """Insert the standard motion-JPEG Huffman tables before the scan.

    Frames that do not split into exactly two parts at the start-of-scan
    marker are returned unchanged.
    """
    parts = bytes(frame).split(_SOS_MARKER)
    if len(parts) != 2:
        return frame
    head, scan = parts
    return head + _DHT_MARKER + _DHT + _SOS_MARKER + scan


def _open_jpeg(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


def decode_mjpeg(frame: bytes, width: int, height: int) -> Image.Image:
    """Decode a motion-JPEG frame, supplying default Huffman tables if it has none."""
    try:
        return _open_jpeg(bytes(frame))
    except (OSError, SyntaxError, ValueError, UnidentifiedImageError) as err:
        first_error = err
    if _DHT_MARKER not in bytes(frame):
        try:
            return _open_jpeg(add_motion_dht(bytes(frame)))
        except (OSError, SyntaxError, ValueError, UnidentifiedImageError) as err:
            raise FrameDecodeError(f"invalid JPEG format: {err}") from err
    raise FrameDecodeError(f"invalid JPEG format: {first_error}") from first_error


_DECODERS: dict[Format, Decoder] = {
    Format.I420: decode_i420,
    Format.NV21: decode_nv21,
    Format.NV12: decode_nv12,
    Format.YUY2: decode_yuy2,
    Format.YUYV: decode_yuy2,
    Format.UYVY: decode_uyvy,
    Format.MJPEG: decode_mjpeg,
    Format.Z16: decode_z16,
}


def new_decoder(frame_format: Format | str) -> Decoder:
    """Return the decoder for a frame format."""
    try:
        return _DECODERS[Format(frame_format)]
    except (KeyError, ValueError):
        name = frame_format.value if isinstance(frame_format, Format) else frame_format
        raise FrameDecodeError(f"{name} is not supported") from None