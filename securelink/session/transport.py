"""
Line-oriented transport over a connected socket.

Each frame is one UTF-8 line terminated by a newline.
"""

import socket


class LineTransport:
    """Read and write newline-terminated frames on a connected socket."""

    def __init__(self, sock: socket.socket):
        self.sock = sock
        self._reader = sock.makefile('r', encoding='utf-8', newline='\n')
        self._writer = sock.makefile('w', encoding='utf-8', newline='\n')

    def read_line(self) -> str:
        """
        Read one frame.

        Returns:
            The line without its terminator

        Raises:
            EOFError: If the peer closed the connection
            OSError: On socket failure
        """
        line = self._reader.readline()
        if not line:
            raise EOFError("Connection closed by peer")
        return line.rstrip('\r\n')

    def write_line(self, text: str) -> None:
        """
        Write one frame and flush it.

        Raises:
            ValueError: If text contains a line break
            OSError: On socket failure
        """
        if '\n' in text or '\r' in text:
            raise ValueError("Frame must not contain line breaks")
        self._writer.write(text + '\n')
        self._writer.flush()

    def close(self) -> None:
        """Close the reader, writer and underlying socket."""
        for stream in (self._reader, self._writer):
            try:
                stream.close()
            except OSError:
                pass
        self.sock.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
