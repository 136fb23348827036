import pytest

from mediadev.availability import (
    BUSY,
    NO_DEVICE,
    UNIMPLEMENTED,
    AvailabilityError,
    is_error,
)


@pytest.mark.parametrize(
    "err, message",
    [
        (UNIMPLEMENTED, "not implemented"),
        (BUSY, "device or resource busy"),
        (NO_DEVICE, "no such device"),
    ],
)
def test_known_errors_are_recognised(err, message):
    assert is_error(err) is True
    assert str(err) == message
    assert AvailabilityError(message) == err


def test_is_error_accepts_availability_errors():
    assert is_error(AvailabilityError("anything")) is True
    assert is_error(BUSY) is True


def test_is_error_rejects_other_errors():
    assert is_error(ValueError("not implemented")) is False
    assert is_error(None) is False


def test_is_error_follows_cause_chain():
    with pytest.raises(RuntimeError) as info:
        try:
            raise AvailabilityError("no such device")
        except AvailabilityError as exc:
            raise RuntimeError("wrapped") from exc
    assert is_error(info.value) is True


def test_equality_by_message():
    assert AvailabilityError("not implemented") == UNIMPLEMENTED
    assert AvailabilityError("no such device") != BUSY
    assert len({AvailabilityError("no such device"), NO_DEVICE}) == 1