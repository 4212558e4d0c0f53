"""Socket wrapper with TCP/UDP/Unix factories and cached local and remote addresses."""

import contextlib
import errno
import ipaddress
import logging
import os
import socket
import struct

from .util import unlink

_log = logging.getLogger(__name__)

TCP = socket.SOCK_STREAM
UDP = socket.SOCK_DGRAM
IPV4 = socket.AF_INET
IPV6 = socket.AF_INET6
UNIX = socket.AF_UNIX

_TIMEVAL = struct.Struct("ll")


def address_family(address):
    """Return the address family that ``address`` belongs to.

    A ``str``, ``bytes`` or path-like address is a Unix socket path; a 4-tuple or a
    tuple whose host is an IPv6 literal is IPv6; any other 2-tuple is IPv4.
    """
    if isinstance(address, (str, bytes, os.PathLike)):
        return socket.AF_UNIX
    if isinstance(address, tuple) and len(address) in (2, 4):
        if len(address) == 4:
            return socket.AF_INET6
        host = address[0]
        if isinstance(host, bytes):
            host = host.decode("ascii", "replace")
        try:
            ip = ipaddress.ip_address(host.split("%", 1)[0])
        except ValueError:
            return socket.AF_INET
        return socket.AF_INET6 if ip.version == 6 else socket.AF_INET
    raise TypeError(f"not a socket address: {address!r}")


def _format_address(family, address):
    if isinstance(address, tuple):
        host, port = address[0], address[1]
        if family == socket.AF_INET6 or ":" in str(host):
            return f"[{host}]:{port}"
        return f"{host}:{port}"
    if isinstance(address, bytes):
        return address.decode("utf-8", "backslashreplace")
    return os.fspath(address)


def _not_connected():
    return OSError(errno.ENOTCONN, os.strerror(errno.ENOTCONN))


def _bad_descriptor():
    return OSError(errno.EBADF, os.strerror(errno.EBADF))


class Socket:
    """A socket of a fixed family, type and protocol, created lazily when needed."""

    def __init__(self, family, type, protocol=0):
        self._sock = None
        self._family = family
        self._type = type
        self._protocol = protocol
        self._connected = False
        self._local_addr = None
        self._remote_addr = None

    # --- factories ------------------------------------------------------

    @classmethod
    def create_tcp(cls, address):
        """TCP socket of the family ``address`` belongs to."""
        return cls(address_family(address), TCP, 0)

    @classmethod
    def create_udp(cls, address):
        """Open UDP socket of the family ``address`` belongs to."""
        return cls._open_udp(address_family(address))

    @classmethod
    def create_tcp_socket(cls):
        return cls(IPV4, TCP, 0)

    @classmethod
    def create_udp_socket(cls):
        return cls._open_udp(IPV4)

    @classmethod
    def create_tcp_socket6(cls):
        return cls(IPV6, TCP, 0)

    @classmethod
    def create_udp_socket6(cls):
        return cls._open_udp(IPV6)

    @classmethod
    def create_unix_tcp_socket(cls):
        return cls(UNIX, TCP, 0)

    @classmethod
    def create_unix_udp_socket(cls):
        return cls(UNIX, UDP, 0)

    @classmethod
    def _open_udp(cls, family):
        sock = cls(family, UDP, 0)
        sock._new_sock()
        sock._connected = True
        return sock

    # --- attributes -----------------------------------------------------

    @property
    def family(self):
        return self._family

    @property
    def type(self):
        return self._type

    @property
    def protocol(self):
        return self._protocol

    @property
    def send_timeout(self):
        """Send timeout in milliseconds, 0 for none, -1 when there is no socket."""
        return self._get_timeout(socket.SO_SNDTIMEO)

    @send_timeout.setter
    def send_timeout(self, ms):
        self._set_timeout(socket.SO_SNDTIMEO, ms)

    @property
    def recv_timeout(self):
        """Receive timeout in milliseconds, 0 for none, -1 when there is no socket."""
        return self._get_timeout(socket.SO_RCVTIMEO)

    @recv_timeout.setter
    def recv_timeout(self, ms):
        self._set_timeout(socket.SO_RCVTIMEO, ms)

    def _get_timeout(self, option):
        if not self.is_valid():
            return -1
        sec, usec = _TIMEVAL.unpack(self.get_option(socket.SOL_SOCKET, option, _TIMEVAL.size))
        return sec * 1000 + usec // 1000

    def _set_timeout(self, option, ms):
        ms = int(ms)
        self.set_option(socket.SOL_SOCKET, option, _TIMEVAL.pack(ms // 1000, ms % 1000 * 1000))

    # --- options --------------------------------------------------------

    def get_option(self, level, option, buflen=0):
        """Read a socket option: an int, or ``buflen`` raw bytes when ``buflen`` is given."""
        if self._sock is None:
            raise _bad_descriptor()
        if buflen:
            return self._sock.getsockopt(level, option, buflen)
        return self._sock.getsockopt(level, option)

    def set_option(self, level, option, value):
        """Set a socket option to an int or raw bytes."""
        if self._sock is None:
            raise _bad_descriptor()
        self._sock.setsockopt(level, option, value)

    # --- lifecycle ------------------------------------------------------

    def _init_sock(self):
        try:
            self.set_option(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        except OSError as exc:
            _log.debug("SO_REUSEADDR on fd=%d failed: %s", self.fileno(), exc)
        if self._type == socket.SOCK_STREAM and self._family != socket.AF_UNIX:
            try:
                self.set_option(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
            except OSError as exc:
                _log.debug("TCP_NODELAY on fd=%d failed: %s", self.fileno(), exc)

    def _new_sock(self):
        try:
            self._sock = socket.socket(self._family, self._type, self._protocol)
        except OSError:
            _log.error("socket(%d, %d, %d) failed", self._family, self._type, self._protocol)
            raise
        self._init_sock()

    def _adopt(self, raw):
        self._sock = raw
        self._connected = True
        self._init_sock()
        self.local_address()
        self.remote_address()

    def accept(self):
        """Accept a pending connection and return it as a new connected Socket."""
        if self._sock is None:
            raise _bad_descriptor()
        raw, _ = self._sock.accept()
        client = type(self)(self._family, self._type, self._protocol)
        client._adopt(raw)
        return client

    def _check_family(self, addr, action):
        family = address_family(addr)
        if family != self._family:
            raise ValueError(
                f"{action}: socket family {int(self._family)} does not match "
                f"address family {int(family)} of {addr!r}"
            )

    def bind(self, addr):
        """Bind to ``addr``; a stale Unix socket file is removed, a live one is refused."""
        self._check_family(addr, "bind")
        if not self.is_valid():
            self._new_sock()
        if self._family == socket.AF_UNIX:
            path = os.fspath(addr)
            probe = Socket.create_unix_tcp_socket()
            try:
                probe.connect(path)
            except OSError:
                if path and path[:1] not in ("\0", b"\0"):
                    with contextlib.suppress(OSError):
                        unlink(os.fsdecode(path), True)
            else:
                probe.close()
                raise OSError(errno.EADDRINUSE, os.strerror(errno.EADDRINUSE), path)
            addr = path
        try:
            self._sock.bind(addr)
        except OSError:
            _log.error("bind to %r failed", addr)
            raise
        self._local_addr = None
        self.local_address()

    def connect(self, addr, timeout_ms=None):
        """Connect to ``addr``, giving up after ``timeout_ms`` milliseconds if given.

        On failure the socket is closed and the error is raised.
        """
        self._check_family(addr, "connect")
        self._remote_addr = addr
        if not self.is_valid():
            self._new_sock()
        try:
            if timeout_ms is None:
                self._sock.connect(addr)
            else:
                self._sock.settimeout(timeout_ms / 1000)
                try:
                    self._sock.connect(addr)
                finally:
                    self._sock.settimeout(None)
        except OSError:
            _log.error("connect to %r failed", addr)
            self.close()
            raise
        self._connected = True
        self._local_addr = None
        self.local_address()

    def reconnect(self, timeout_ms=None):
        """Connect again to the last remote address."""
        if self._remote_addr is None:
            raise RuntimeError("reconnect: no remote address")
        self._local_addr = None
        self.connect(self._remote_addr, timeout_ms)

    def listen(self, backlog=socket.SOMAXCONN):
        """Start listening; the socket must be bound first."""
        if self._sock is None:
            raise _bad_descriptor()
        self._sock.listen(backlog)

    def close(self):
        """Close the socket; closing twice does nothing."""
        self._connected = False
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
        return False

    # --- data -----------------------------------------------------------

    def _require_connected(self):
        if not self._connected or self._sock is None:
            raise _not_connected()

    @staticmethod
    def _is_buffer_list(data):
        return isinstance(data, (list, tuple))

    def send(self, data, flags=0):
        """Send bytes, or a list of buffers in one call; return the count sent."""
        self._require_connected()
        if self._is_buffer_list(data):
            return self._sock.sendmsg(data, [], flags)
        return self._sock.send(data, flags)

    def send_to(self, data, to, flags=0):
        """Send bytes, or a list of buffers, to address ``to``; return the count sent."""
        self._require_connected()
        if self._is_buffer_list(data):
            return self._sock.sendmsg(data, [], flags, to)
        return self._sock.sendto(data, flags, to)

    def recv(self, length, flags=0):
        """Receive up to ``length`` bytes; empty bytes mean the peer closed."""
        self._require_connected()
        return self._sock.recv(length, flags)

    def recv_from(self, length, flags=0):
        """Receive up to ``length`` bytes and return them with the sender's address."""
        self._require_connected()
        return self._sock.recvfrom(length, flags)

    # --- addresses and state -------------------------------------------

    def remote_address(self):
        """Address of the peer, or None if it cannot be found."""
        if self._remote_addr is not None:
            return self._remote_addr
        if self._sock is None:
            return None
        try:
            self._remote_addr = self._sock.getpeername()
        except OSError as exc:
            _log.error("getpeername on fd=%d failed: %s", self.fileno(), exc)
            return None
        return self._remote_addr

    def local_address(self):
        """Local address of the socket, or None if it cannot be found."""
        if self._local_addr is not None:
            return self._local_addr
        if self._sock is None:
            return None
        try:
            self._local_addr = self._sock.getsockname()
        except OSError as exc:
            _log.error("getsockname on fd=%d failed: %s", self.fileno(), exc)
            return None
        return self._local_addr

    def is_connected(self):
        return self._connected

    def is_valid(self):
        return self._sock is not None

    def get_error(self):
        """Pending error code of the socket (SO_ERROR)."""
        try:
            return self.get_option(socket.SOL_SOCKET, socket.SO_ERROR)
        except OSError as exc:
            return exc.errno or 0

    def fileno(self):
        """Descriptor of the socket, -1 when there is none."""
        return self._sock.fileno() if self._sock is not None else -1

    def __str__(self):
        parts = [
            f"[Socket sock={self.fileno()}",
            f"is_connected={int(self._connected)}",
            f"family={int(self._family)}",
            f"type={int(self._type)}",
            f"protocol={int(self._protocol)}",
        ]
        if self._local_addr is not None:
            parts.append(f"local_address={_format_address(self._family, self._local_addr)}")
        if self._remote_addr is not None:
            parts.append(f"remote_address={_format_address(self._family, self._remote_addr)}")
        return " ".join(parts) + "]"

    def __repr__(self):
        return str(self)