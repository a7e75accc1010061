import struct
import functools
import numpy as np
from typing import Tuple, Union, Any

from ..errors import BufferTruncatedError

BufferLike = Union[bytes, bytearray, memoryview]


# Struct caching with LRU cache to reduce struct objects
@functools.lru_cache(maxsize=128)
def _get_struct(format_str: str) -> struct.Struct:
    return struct.Struct(format_str)


class ByteCursor:
    """
    Forward-only reader over an in-memory buffer.

    Every read checks the remaining length first and raises
    BufferTruncatedError (with the source name and offset) instead of
    returning short or zero-filled data. All multi-byte values are
    little-endian.
    """

    __slots__ = ('_view', '_offset', 'source')

    def __init__(self, buffer: BufferLike, source: str = "<buffer>"):
        self._view = memoryview(buffer).cast("B")
        self._offset = 0
        self.source = source

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def size(self) -> int:
        return len(self._view)

    @property
    def remaining(self) -> int:
        return len(self._view) - self._offset

    def at_end(self) -> bool:
        return self._offset >= len(self._view)

    def _require(self, num_bytes: int, what: str) -> None:
        if num_bytes > self.remaining:
            raise BufferTruncatedError(
                f"need {num_bytes} bytes for {what} but only {self.remaining} remain",
                self.source, self._offset)

    def read(self, format_char_sequence: str) -> Tuple[Any, ...]:
        """Unpack the next values described by a struct format (without endian prefix)."""
        struct_obj = _get_struct("<" + format_char_sequence)
        self._require(struct_obj.size, f"'{format_char_sequence}'")
        values = struct_obj.unpack_from(self._view, self._offset)
        self._offset += struct_obj.size
        return values

    def read_one(self, format_char: str) -> Any:
        return self.read(format_char)[0]

    def read_array(self, dtype: np.dtype, count: int) -> np.ndarray:
        """Read `count` consecutive items of `dtype` into a new (owned) array."""
        dtype = np.dtype(dtype)
        if count < 0:
            raise ValueError("count must be non-negative")
        if count == 0:
            return np.empty(0, dtype=dtype)
        num_bytes = dtype.itemsize * count
        self._require(num_bytes, f"{count} x {dtype.itemsize}-byte items")
        # Copy so the result does not keep the source buffer alive
        arr = np.frombuffer(self._view, dtype=dtype, count=count, offset=self._offset).copy()
        self._offset += num_bytes
        return arr

    def read_cstring(self, encoding: str = "utf-8") -> str:
        """Read a null-terminated string. The terminator is consumed but not returned.

        Bytes that are not valid in `encoding` decode to lone surrogates
        (surrogateescape), so `name.encode(encoding, "surrogateescape")`
        gives back the original bytes. Such strings cannot be printed to a
        strict UTF-8 stream as-is.
        """
        start = self._offset
        end = start
        size = len(self._view)
        while end < size and self._view[end] != 0:
            end += 1
        if end >= size:
            raise BufferTruncatedError(
                "string is not null-terminated before end of buffer", self.source, start)
        self._offset = end + 1
        return bytes(self._view[start:end]).decode(encoding, errors="surrogateescape")
