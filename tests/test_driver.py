import pytest

from mediadev import availability
from mediadev.driver import (
    AudioDriver,
    DeviceType,
    Info,
    InvalidStateError,
    Media,
    State,
    StateMachine,
    VideoDriver,
    is_available,
    wrap_adapter,
)


class RecordError(Exception):
    pass


class AdapterMock:
    def open(self):
        pass

    def close(self):
        pass

    def properties(self):
        return [Media()]


class VideoAdapterMock(AdapterMock):
    def video_record(self, media):
        return "video-reader"


class VideoAdapterBrokenMock(AdapterMock):
    def video_record(self, media):
        raise RecordError("failed to start recording")


class AudioAdapterMock(AdapterMock):
    def audio_record(self, media):
        return "audio-reader"


class AudioAdapterBrokenMock(AdapterMock):
    def audio_record(self, media):
        raise RecordError("failed to start recording")


class AvailabilityAdapterMock(VideoAdapterMock):
    def is_available(self):
        return True


def noop():
    return None


def test_update_sequence():
    s = StateMachine(State.CLOSED)
    s.update(State.OPENED, noop)
    assert s.state is State.OPENED
    s.update(State.CLOSED, noop)
    assert s.state is State.CLOSED
    s.update(State.OPENED, noop)
    assert s.state is State.OPENED


def test_update_rejects_invalid_transitions():
    s = StateMachine()
    with pytest.raises(InvalidStateError, match="driver is closed"):
        s.update(State.RUNNING, noop)
    s.update(State.OPENED, noop)
    with pytest.raises(InvalidStateError, match="already opened"):
        s.update(State.OPENED, noop)
    s.update(State.RUNNING, noop)
    with pytest.raises(InvalidStateError, match="already running"):
        s.update(State.RUNNING, noop)
    assert s.state is State.RUNNING


def test_update_keeps_state_when_func_fails():
    s = StateMachine()

    def fail():
        raise RecordError("boom")

    with pytest.raises(RecordError):
        s.update(State.OPENED, fail)
    assert s.state is State.CLOSED


def test_update_returns_func_result():
    s = StateMachine()
    assert s.update(State.OPENED, lambda: 42) == 42


def test_video_wrapper_state():
    d = wrap_adapter(VideoAdapterMock(), Info())
    assert isinstance(d, VideoDriver)
    assert d.properties() == []
    with pytest.raises(InvalidStateError):
        d.video_record(Media())
    d.open()
    assert d.video_record(Media()) == "video-reader"
    assert d.status is State.RUNNING


def test_video_wrapper_with_broken_recorder_state():
    d = wrap_adapter(VideoAdapterBrokenMock(), Info())
    d.open()
    with pytest.raises(RecordError, match="failed to start recording"):
        d.video_record(Media())
    assert d.status is State.CLOSED


def test_audio_wrapper_state():
    d = wrap_adapter(AudioAdapterMock(), Info())
    assert isinstance(d, AudioDriver)
    assert d.properties() == []
    with pytest.raises(InvalidStateError):
        d.audio_record(Media())
    d.open()
    assert d.audio_record(Media()) == "audio-reader"


def test_audio_wrapper_with_broken_recorder_state():
    d = wrap_adapter(AudioAdapterBrokenMock(), Info())
    d.open()
    with pytest.raises(RecordError):
        d.audio_record(Media())
    assert d.status is State.CLOSED


def test_wrapper_availability_adapter():
    d = wrap_adapter(AvailabilityAdapterMock(), Info())
    assert is_available(d) is True

    d = wrap_adapter(VideoAdapterMock(), Info())
    with pytest.raises(availability.AvailabilityError) as exc:
        is_available(d)
    assert exc.value == availability.UNIMPLEMENTED

    d = wrap_adapter(AudioAdapterMock(), Info())
    with pytest.raises(availability.AvailabilityError):
        is_available(d)


def test_wrap_rejects_plain_adapter():
    with pytest.raises(TypeError):
        wrap_adapter(AdapterMock(), Info())


def test_properties_carry_driver_id_when_open():
    d = wrap_adapter(VideoAdapterMock(), Info(label="cam", device_type=DeviceType.CAMERA))
    d.open()
    props = d.properties()
    assert len(props) == 1
    assert props[0].device_id == d.id
    assert d.info.label == "cam"


def test_driver_ids_are_unique():
    first = wrap_adapter(VideoAdapterMock(), Info())
    second = wrap_adapter(VideoAdapterMock(), Info())
    assert first.id != second.id
    assert len(first.id) == 36