"""Abstract byte stream with fixed-size read and write helpers."""

from abc import ABC, abstractmethod


class Stream(ABC):
    """A bidirectional byte stream."""

    @abstractmethod
    def read(self, length):
        """Read up to ``length`` bytes; an empty result means the stream is closed."""

    @abstractmethod
    def write(self, data):
        """Write some of ``data`` and return how many bytes were written."""

    @abstractmethod
    def close(self):
        """Close the stream."""

    def read_fix_size(self, length):
        """Read exactly ``length`` bytes, raising EOFError if the stream closes first."""
        chunks = []
        left = length
        while left > 0:
            chunk = self.read(left)
            if not chunk:
                raise EOFError(f"stream closed with {left} of {length} bytes unread")
            chunks.append(bytes(chunk))
            left -= len(chunk)
        return b"".join(chunks)

    def write_fix_size(self, data):
        """Write all of ``data`` and return its length."""
        view = memoryview(data).cast("B")
        total = len(view)
        offset = 0
        while offset < total:
            written = self.write(view[offset:])
            if written <= 0:
                raise ConnectionError(
                    f"stream refused data with {total - offset} of {total} bytes unwritten"
                )
            offset += written
        return total