"""Socket wrapper, byte streams, URI parsing, byte-order and utility helpers."""

__version__ = "0.1.0"