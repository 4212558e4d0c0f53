"""URI parsing and formatting."""

import re

_MAX_PORT = 65535

_URL_RE = re.compile(
    r"""
    (?:
        (?P<scheme>[A-Za-z]+)://
        (?:(?P<userinfo>[^@/?#\s]*)@)?
        (?:\[(?P<ipv6>[0-9A-Fa-f:.]+)\]|(?P<host>[^:/?#@\s\[\]]+))
        (?::(?P<port>[0-9]+))?
    )?
    (?P<path>/[^?#\s]*)?
    (?:\?(?P<query>[^#\s]*))?
    (?:\#(?P<fragment>\S*))?
    """,
    re.VERBOSE,
)


class Uri:
    """A URI split into scheme, user info, host, port, path, query and fragment."""

    def __init__(self, scheme="", userinfo="", host="", path="", query="",
                 fragment="", port=0):
        self.scheme = scheme
        self.userinfo = userinfo
        self.host = host
        self._path = path
        self.query = query
        self.fragment = fragment
        self._port = port

    @classmethod
    def create(cls, urlstr):
        """Parse ``urlstr``; raise ValueError if it is not a valid URL."""
        match = _URL_RE.fullmatch(urlstr)
        if match is None or not urlstr:
            raise ValueError(f"invalid url: {urlstr!r}")
        parts = match.groupdict()
        if parts["scheme"] is None and parts["path"] is None:
            raise ValueError(f"invalid url: {urlstr!r}")
        uri = cls(
            scheme=parts["scheme"] or "",
            userinfo=parts["userinfo"] or "",
            host=parts["ipv6"] or parts["host"] or "",
            path=parts["path"] or "",
            query=parts["query"] or "",
            fragment=parts["fragment"] or "",
        )
        if parts["port"] is not None:
            port = int(parts["port"])
            if port > _MAX_PORT:
                raise ValueError(f"invalid port in url: {urlstr!r}")
            uri.port = port
        elif uri.scheme in ("http", "ws"):
            uri.port = 80
        elif uri.scheme == "https":
            uri.port = 443
        return uri

    @property
    def port(self):
        """Explicit port, else the scheme's default, else 0."""
        if self._port:
            return self._port
        if self.scheme in ("http", "ws"):
            return 80
        if self.scheme in ("https", "wss"):
            return 443
        return self._port

    @port.setter
    def port(self, value):
        self._port = value

    @property
    def path(self):
        """Path, '/' when empty."""
        return self._path or "/"

    @path.setter
    def path(self, value):
        self._path = value

    def is_default_port(self):
        """Tell whether the stored port is the default for the scheme."""
        if self.scheme in ("http", "ws"):
            return self._port == 80
        if self.scheme == "https":
            return self._port == 443
        return False

    def __str__(self):
        return "".join((
            self.scheme,
            "://",
            self.userinfo,
            "@" if self.userinfo else "",
            self.host,
            "" if self.is_default_port() else f":{self._port}",
            self.path,
            "?" if self.query else "",
            self.query,
            "#" if self.fragment else "",
            self.fragment,
        ))

    def __repr__(self):
        return f"Uri({str(self)!r})"