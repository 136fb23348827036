"""Media device drivers and registry, raw frame decoders, camera helpers and a VNC client."""

__version__ = "0.1.0"