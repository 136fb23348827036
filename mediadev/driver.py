"""Device drivers: types, state tracking and the adapter wrapper."""

from __future__ import annotations

import contextlib
import dataclasses
import enum
import uuid
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from . import availability

T = TypeVar("T")


class DeviceType(str, enum.Enum):
    """Human readable kind of device."""

    CAMERA = "camera"
    MICROPHONE = "microphone"
    SCREEN = "screen"


class Priority(float, enum.Enum):
    """Device selection priority."""

    HIGH = 0.1
    NORMAL = 0.0
    LOW = -0.1


class State(str, enum.Enum):
    """Lifecycle state of a driver."""

    CLOSED = "closed"
    OPENED = "opened"
    RUNNING = "running"


class InvalidStateError(Exception):
    """Raised when a driver is asked for a transition it cannot make."""


class StateMachine:
    """Tracks a driver state and applies guarded transitions."""

    def __init__(self, state: State = State.CLOSED) -> None:
        self.state = State(state)

    def update(self, next_state: State, func: Callable[[], T]) -> T:
        """Move to next_state if allowed and func succeeds; return func's result."""
        next_state = State(next_state)
        self._check(next_state)
        result = func()
        self.state = next_state
        return result

    def _check(self, next_state: State) -> None:
        if next_state is State.OPENED and self.state is not State.CLOSED:
            raise InvalidStateError("invalid state: driver is already opened")
        if next_state is State.RUNNING:
            if self.state is State.CLOSED:
                raise InvalidStateError("invalid state: driver is closed")
            if self.state is State.RUNNING:
                raise InvalidStateError("invalid state: driver is already running")


@dataclass(frozen=True)
class Info:
    """Descriptive information about a registered device."""

    label: str = ""
    device_type: DeviceType | None = None
    priority: float = Priority.NORMAL
    name: str = ""


@dataclass
class Media:
    """Media properties a device supports or is asked to produce.

    Durations are in seconds.
    """

    device_id: str = ""
    width: int = 0
    height: int = 0
    frame_format: str | None = None
    frame_rate: float = 0.0
    discard_frames_older_than: float = 0.0
    channel_count: int = 0
    latency: float = 0.0
    sample_rate: int = 0
    sample_size: int = 0
    is_big_endian: bool = False
    is_float: bool = False
    is_interleaved: bool = False


class Driver:
    """An adapter wrapped with an identity, device information and a state."""

    def __init__(self, adapter: Any, info: Info, driver_id: str | None = None) -> None:
        self._adapter = adapter
        self._info = info
        self._id = driver_id or str(uuid.uuid4())
        self._state = StateMachine()
        self._is_available: Callable[[], bool] | None = getattr(
            adapter, "is_available", None
        )

    @property
    def id(self) -> str:
        return self._id

    @property
    def info(self) -> Info:
        return self._info

    @property
    def status(self) -> State:
        return self._state.state

    def open(self) -> None:
        """Open the underlying adapter."""
        self._state.update(State.OPENED, self._adapter.open)

    def close(self) -> None:
        """Close the underlying adapter."""
        self._state.update(State.CLOSED, self._adapter.close)

    def properties(self) -> list[Media]:
        """Supported media properties; empty while the driver is closed."""
        if self._state.state is State.CLOSED:
            return []
        return [
            dataclasses.replace(p, device_id=self._id)
            for p in self._adapter.properties() or []
        ]

    def is_available(self) -> bool:
        """Ask the adapter whether the device can be used now."""
        if self._is_available is None:
            raise availability.AvailabilityError(availability.UNIMPLEMENTED.message)
        return self._is_available()

    def _record(self, start: Callable[[], T]) -> T:
        try:
            return self._state.update(State.RUNNING, start)
        except Exception:
            with contextlib.suppress(Exception):
                self.close()
            raise

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self._id!r}, info={self._info!r})"


class VideoDriver(Driver):
    """A driver for a device that records video."""

    def video_record(self, media: Media) -> Any:
        """Start recording and return the adapter's video reader."""
        return self._record(lambda: self._adapter.video_record(media))


class AudioDriver(Driver):
    """A driver for a device that records audio."""

    def audio_record(self, media: Media) -> Any:
        """Start recording and return the adapter's audio reader."""
        return self._record(lambda: self._adapter.audio_record(media))


def wrap_adapter(adapter: Any, info: Info) -> Driver:
    """Wrap an adapter as a video or audio driver with a fresh random id."""
    if callable(getattr(adapter, "video_record", None)):
        return VideoDriver(adapter, info)
    if callable(getattr(adapter, "audio_record", None)):
        return AudioDriver(adapter, info)
    raise TypeError("adapter has to be either VideoRecorder/AudioRecorder")


def is_available(driver: Any) -> bool:
    """Ask a driver whether its device can be used now."""
    check = getattr(driver, "is_available", None)
    if check is None:
        raise availability.AvailabilityError(availability.UNIMPLEMENTED.message)
    return check()