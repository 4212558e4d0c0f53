"""Byte stream over a Socket."""

import errno
import os

from .sock import _format_address
from .stream import Stream


def _not_connected():
    return OSError(errno.ENOTCONN, os.strerror(errno.ENOTCONN))


class SocketStream(Stream):
    """Stream that reads from and writes to a connected Socket.

    When ``owner`` is true the stream owns the socket and closes it when the
    stream is left as a context manager or garbage-collected.
    """

    def __init__(self, sock, owner=True):
        self._socket = sock
        self._owner = owner

    @property
    def socket(self):
        """The wrapped Socket, or None."""
        return self._socket

    @property
    def owner(self):
        return self._owner

    def is_connected(self):
        """Tell whether there is a socket and it is connected."""
        return self._socket is not None and self._socket.is_connected()

    def read(self, length):
        """Receive up to ``length`` bytes; empty bytes mean the peer closed."""
        if not self.is_connected():
            raise _not_connected()
        return self._socket.recv(length)

    def write(self, data):
        """Send some of ``data`` and return how many bytes went out."""
        if not self.is_connected():
            raise _not_connected()
        return self._socket.send(data)

    def close(self):
        """Close the underlying socket."""
        if self._socket is not None:
            self._socket.close()

    def remote_address(self):
        """Address of the peer, or None."""
        if self._socket is None:
            return None
        return self._socket.remote_address()

    def local_address(self):
        """Local address of the socket, or None."""
        if self._socket is None:
            return None
        return self._socket.local_address()

    def remote_address_string(self):
        """Peer address as text, empty when unknown."""
        addr = self.remote_address()
        if addr is None:
            return ""
        return _format_address(self._socket.family, addr)

    def local_address_string(self):
        """Local address as text, empty when unknown."""
        addr = self.local_address()
        if addr is None:
            return ""
        return _format_address(self._socket.family, addr)

    def __enter__(self):
        return self

    def __exit__(self, *args):
        if self._owner:
            self.close()
        return False

    def __del__(self):
        try:
            if self._owner and self._socket is not None:
                self._socket.close()
        except Exception:
            pass