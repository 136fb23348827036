"""VNC (RFB protocol) client: handshake, authentication, pixel formats, encodings and messages."""