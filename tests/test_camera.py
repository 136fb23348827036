import pytest

from mediadev.camera import (
    READ_TIMEOUT_ENV,
    FrameRate,
    calc_framerate,
    enum_framerate,
    get_camera_read_timeout,
)


def test_get_camera_read_timeout(monkeypatch):
    monkeypatch.delenv(READ_TIMEOUT_ENV, raising=False)
    assert get_camera_read_timeout() == 5

    monkeypatch.setenv(READ_TIMEOUT_ENV, "text")
    assert get_camera_read_timeout() == 5

    monkeypatch.setenv(READ_TIMEOUT_ENV, "-1")
    assert get_camera_read_timeout() == 5

    monkeypatch.setenv(READ_TIMEOUT_ENV, "1")
    assert get_camera_read_timeout() == 1


@pytest.mark.parametrize(
    "numerator, denominator, expected",
    [(1, 10, 10.0), (1, 15, 15.0), (1, 30, 30.0), (1, 60, 60.0), (1, 120, 120.0)],
)
def test_calc_framerate(numerator, denominator, expected):
    assert calc_framerate(numerator, denominator) == expected


def test_calc_framerate_zero_denominator():
    with pytest.raises(ValueError):
        calc_framerate(1, 0)


def test_enum_framerate_discrete():
    fr = FrameRate(max_numerator=1, max_denominator=30)
    assert enum_framerate(fr) == [30.0]


def test_enum_framerate_discrete_zero_denominator():
    assert enum_framerate(FrameRate(max_numerator=1, max_denominator=0)) == []


def test_enum_framerate_stepwise():
    fr = FrameRate(
        min_numerator=1,
        max_numerator=1,
        step_numerator=1,
        min_denominator=30,
        max_denominator=60,
        step_denominator=30,
    )
    assert enum_framerate(fr) == [30.0, 60.0]


def test_enum_framerate_stepwise_matches_calc():
    fr = FrameRate(
        min_numerator=1,
        max_numerator=1,
        step_numerator=1,
        min_denominator=10,
        max_denominator=15,
        step_denominator=5,
    )
    assert enum_framerate(fr) == [calc_framerate(1, 10), calc_framerate(1, 15)]