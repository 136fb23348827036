"""Camera driver helpers: labels, read timeout and frame rate enumeration.

Device labels join the discovered name and the real device name with
LABEL_SEPARATOR, e.g. ``pci-0000:00:00.0-usb-0:0:0.0-video-index0;video0``
or ``video0;video0`` when no by-path link exists.
"""

from __future__ import annotations

import math
import os
import re
import struct
from dataclasses import dataclass

LABEL_SEPARATOR = ";"
PRIORITIZED_DEVICE = "video0"
MAX_EMPTY_FRAME_COUNT = 5
BUFFER_COUNT = 2
READ_TIMEOUT_ENV = "MEDIADEV_CAMERA_READ_TIMEOUT"
DEFAULT_READ_TIMEOUT = 5

SUPPORTED_RESOLUTIONS: tuple[tuple[int, int], ...] = (
    (320, 240), (640, 480), (768, 576), (800, 600), (1024, 768),
    (1280, 854), (1280, 960), (1280, 1024), (1400, 1050), (1600, 1200),
    (2048, 1536), (320, 200), (800, 480), (854, 480), (1024, 600),
    (1152, 768), (1280, 720), (1280, 768), (1366, 768), (1280, 800),
    (1440, 900), (1440, 960), (1680, 1050), (1920, 1080), (2048, 1080),
    (1920, 1200), (2560, 1600),
)

_INTEGER = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class FrameRate:
    """A frame interval range as reported by the device, in fractions of a second."""

    min_numerator: int = 0
    max_numerator: int = 0
    step_numerator: int = 0
    min_denominator: int = 0
    max_denominator: int = 0
    step_denominator: int = 0


def _to_float32(value: float) -> float:
    return struct.unpack("f", struct.pack("f", value))[0]


def calc_framerate(numerator: int, denominator: int) -> float:
    """Turn a frame interval fraction into frames per second, rounded to 3 decimals."""
    if denominator == 0:
        raise ValueError("framerate denominator is zero")
    if numerator == 0:
        return math.inf
    fps = 1000.0 / (numerator / denominator)
    return _to_float32(math.floor(fps + 0.5) / 1000)


def _steps(start: int, stop: int, step: int) -> range:
    return range(start, stop + 1, step) if step else range(start, min(start, stop) + 1)


def enum_framerate(framerate: FrameRate) -> list[float]:
    """List the frame rates a discrete or stepwise interval description allows."""
    if framerate.step_numerator == 0 and framerate.step_denominator == 0:
        try:
            return [calc_framerate(framerate.max_numerator, framerate.max_denominator)]
        except ValueError:
            return []
    rates = []
    for n in _steps(framerate.min_numerator, framerate.max_numerator, framerate.step_numerator):
        for d in _steps(
            framerate.min_denominator, framerate.max_denominator, framerate.step_denominator
        ):
            if d == 0:
                continue
            rates.append(calc_framerate(n, d))
    return rates


def get_camera_read_timeout() -> int:
    """Seconds to wait for a frame; a positive integer from the environment, else 5."""
    value = os.environ.get(READ_TIMEOUT_ENV)
    if value is not None and _INTEGER.fullmatch(value):
        seconds = int(value)
        if seconds > 0:
            return seconds
    return DEFAULT_READ_TIMEOUT