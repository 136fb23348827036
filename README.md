# mediadev

Building blocks for working with video sources:

- **Drivers and a registry** (`mediadev.driver`, `mediadev.manager`).
  Adapters are wrapped into drivers. Each driver moves through a
  closed → opened → running state machine. A process-wide manager keeps the
  registered drivers and lets you look them up with composable filters.
- **Frame decoders** (`mediadev.frame`). These turn raw camera buffers in
  I420, NV12, NV21, YUY2/YUYV, UYVY, Z16 (16-bit depth) and MJPEG into image
  objects. Some MJPEG frames leave out their Huffman tables, as many webcams
  do. Such frames are repaired with the standard motion-JPEG table before
  decoding.
- **Camera helpers** (`mediadev.camera`). These cover frame-rate calculation
  and enumeration for V4L2-style frame intervals, and the camera read timeout
  setting.
- **A VNC (RFB) client** (`mediadev.vnc`). It handles the protocol handshake
  for versions 3.3 and 3.8, using either no authentication or VNC password
  authentication. It supports raw, zlib and cursor encodings, and sends
  pointer, key and clipboard events. A video device built on it,
  `mediadev.vncdriver.VncDevice`, serves a remote desktop as RGBA frames.

## Requirements

Python 3.10 or later. Pillow is used for MJPEG decoding. pycryptodome is used
for the DES challenge in VNC password authentication.

```
pip install .
pip install ".[test]"   # adds pytest
```

## Decoding raw frames

```python
from mediadev.frame import Format, new_decoder

decode = new_decoder(Format.YUY2)
image = decode(raw_bytes, 640, 480)   # a YCbCr image
```

The decoders return different image types:

| Formats | Result |
| --- | --- |
| I420, NV12, NV21 | `YCbCr` (4:2:0) |
| YUY2/YUYV, UYVY | `YCbCr` (4:2:2) |
| Z16 | `Gray16` (`Gray16.at(x, y)` gives a sample) |
| MJPEG | Pillow `Image` |

`new_decoder` raises `FrameDecodeError` for a format that has no decoder,
such as `Format.RGBA` or `Format.I444`. A decoder raises `FrameDecodeError`
in these cases:

- a buffer is shorter than the width and height need;
- a Z16 buffer is not exactly the expected size;
- a JPEG cannot be decoded.

The decoders can also be called directly: `decode_i420`, `decode_nv12`,
`decode_nv21`, `decode_yuy2`, `decode_uyvy`, `decode_z16` and
`decode_mjpeg`. Each takes `(frame, width, height)`. `add_motion_dht(frame)`
inserts the default Huffman tables into a JPEG frame. If the frame does not
have exactly one start-of-scan marker, it is returned unchanged.

## Registering and finding drivers

```python
from mediadev.driver import DeviceType, Info, Media
from mediadev.manager import (
    filter_and,
    filter_device_type,
    filter_video_recorder,
    get_manager,
)

manager = get_manager()
driver = manager.register(my_adapter, Info(label="cam", device_type=DeviceType.CAMERA))

cameras = manager.query(
    filter_and(filter_video_recorder(), filter_device_type(DeviceType.CAMERA))
)
driver.open()
reader = driver.video_record(Media(width=640, height=480))
```

An adapter is any object with `open()`, `close()` and `properties()` that also
has either `video_record(media)` or `audio_record(media)`. `register` raises
`TypeError` for an adapter that has neither.

Each registered driver gets a random identifier, available as `driver.id`.
`filter_id` and `Manager.delete` use this identifier. More filters are
available: `filter_audio_recorder`, `filter_not`, and `filter_and`, which
accepts any number of filters.

Driver state follows these rules:

- Opening a driver that is already open raises `InvalidStateError`.
- Starting to record from a closed or already running driver also raises
  `InvalidStateError`.
- If the adapter fails to start recording, the driver is closed again and
  the error propagates.
- `properties()` is empty while the driver is closed. Otherwise each `Media`
  it returns carries the driver's id.

`is_available(driver)` reports whether a device can be used now. If the
adapter has no `is_available` method, it raises an `AvailabilityError`
("not implemented"). `mediadev.availability.is_error(err)` tells whether an
exception, or one it was raised from, is an `AvailabilityError`.

## Camera helpers

- `calc_framerate(numerator, denominator)` turns a frame interval into frames
  per second, rounded to three decimals. It raises `ValueError` for a zero
  denominator.
- `enum_framerate(FrameRate(...))` lists the rates allowed by a discrete or
  stepwise interval description.
- `get_camera_read_timeout()` reads a positive whole number of seconds from
  the `MEDIADEV_CAMERA_READ_TIMEOUT` environment variable. It returns 5
  otherwise.

## Talking to a VNC server

```python
import queue
import socket

from mediadev.vnc.auth import PasswordAuth
from mediadev.vnc.client import ClientConfig, client

password = "password"
messages = queue.Queue()
sock = socket.create_connection(("localhost", 5900))
conn = client(sock, ClientConfig(auth=[PasswordAuth(password=password)], message_queue=messages))
conn.framebuffer_update_request(False, 0, 0, conn.frame_buffer_width, conn.frame_buffer_height)
update = messages.get()
```

`client` performs the handshake, then reads server messages on a background
thread. Each parsed message is put on `message_queue`, or dropped if no queue
is set. The possible messages are `FramebufferUpdateMessage`,
`SetColorMapEntriesMessage`, `BellMessage` and `ServerCutTextMessage`. Any
read or parse error ends the session and closes the connection.

Handshake failures raise `VncError`, including:

- a bad version string;
- no shared security type;
- a rejected password.

The connection is closed on any such failure. `ClientConn` also offers
`key_event`, `pointer_event` (with `ButtonMask` flags), `cut_text`
(Latin-1 only), `set_encodings` and `set_pixel_format`. It works as a
context manager.

To use a remote desktop as a video source, use `VncDevice`:

```python
from mediadev.driver import Media
from mediadev.vncdriver import VncDevice

device = VncDevice("localhost:5900")
device.open()
read = device.video_record(Media(frame_rate=10))
frame = read()        # an RGBA image of the current framebuffer
device.close()
```

`VncDevice` keeps a local RGBA framebuffer up to date from the server's
updates. The reader returned by `video_record` paces itself to the requested
frame rate, 30 by default. After `close()` the reader raises `EOFError`.

## What this package does not do

It does not find or talk to local hardware. There is no local capture for
cameras, microphones or screens, and no code that registers such devices. The
manager starts empty, and you register your own adapters with it. There is no
audio processing and no video encoding, and the package has no command-line
program.