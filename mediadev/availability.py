"""Errors that describe whether a device can currently be used."""

from __future__ import annotations


class AvailabilityError(Exception):
    """A device availability problem, such as a busy or missing device."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AvailabilityError):
            return NotImplemented
        return self.message == other.message

    def __hash__(self) -> int:
        return hash((AvailabilityError, self.message))


UNIMPLEMENTED = AvailabilityError("not implemented")
BUSY = AvailabilityError("device or resource busy")
NO_DEVICE = AvailabilityError("no such device")


def is_error(err: BaseException | None) -> bool:
    """Tell whether err, or an exception it was raised from, is an AvailabilityError."""
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        if isinstance(err, AvailabilityError):
            return True
        seen.add(id(err))
        err = err.__cause__
    return False