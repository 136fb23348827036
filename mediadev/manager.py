"""A registry of drivers that can be filtered and queried."""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, List

from .driver import AudioDriver, DeviceType, Driver, Info, VideoDriver, wrap_adapter

FilterFn = Callable[[Driver], bool]


def filter_video_recorder() -> FilterFn:
    """Select drivers that record video."""
    return lambda d: isinstance(d, VideoDriver)


def filter_audio_recorder() -> FilterFn:
    """Select drivers that record audio."""
    return lambda d: isinstance(d, AudioDriver)


def filter_id(driver_id: str) -> FilterFn:
    """Select the driver with the given id."""
    return lambda d: d.id == driver_id


def filter_device_type(device_type: DeviceType) -> FilterFn:
    """Select drivers of the given device type."""
    return lambda d: d.info.device_type == device_type


def filter_and(*args: FilterFn) -> FilterFn:
    """Select drivers accepted by every given filter."""
    return lambda d: all(f(d) for f in args)


def filter_not(filter_fn: FilterFn) -> FilterFn:
    """Select drivers the given filter rejects."""
    return lambda d: not filter_fn(d)


class Manager:
    """Holds registered drivers, keyed by id."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._drivers: Dict[str, Driver] = {}

    def register(self, adapter: Any, info: Info) -> Driver:
        """Wrap an adapter and make it discoverable by query."""
        driver = wrap_adapter(adapter, info)
        with self._lock:
            self._drivers[driver.id] = driver
        return driver

    def query(self, filter_fn: FilterFn) -> List[Driver]:
        """Return the registered drivers accepted by filter_fn."""
        with self._lock:
            drivers = list(self._drivers.values())
        return [d for d in drivers if filter_fn(d)]

    def delete(self, driver_id: str) -> None:
        """Remove a driver by id; unknown ids are ignored."""
        with self._lock:
            self._drivers.pop(driver_id, None)


_manager = Manager()


def get_manager() -> Manager:
    """Return the process-wide manager."""
    return _manager