"""Bounds-checked sequential reader over an in-memory byte buffer.

All reads go through :mod:`struct` with an explicit byte order.  The
cursor never copies or mutates the underlying buffer; sub-views returned
by :meth:`ByteCursor.read_bytes` are :class:`memoryview` slices.
"""

from __future__ import annotations

import struct

from glfreader.errors import OutOfBounds

_BYTE_ORDER = {"little": "<", "big": ">"}


def _prefix(endian: str) -> str:
    try:
        return _BYTE_ORDER[endian]
    except KeyError:
        raise ValueError(f"Unknown endian: {endian!r}") from None


def buffer_view(buffer: bytes | bytearray | memoryview, start: int,
                length: int, index: int | None = None) -> memoryview:
    """Return a read-only view of ``buffer[start:start + length]``.

    Raises
    ------
    OutOfBounds
        If the range is negative or extends past the end of *buffer*.
    """
    view = memoryview(buffer)
    if start < 0 or length < 0 or start + length > len(view):
        raise OutOfBounds(
            f"view [{start}, {start + length}) exceeds buffer of {len(view)} bytes",
            index=index,
        )
    return view[start:start + length].toreadonly()


class ByteCursor:
    """Sequential reader with explicit endianness per read.

    Parameters
    ----------
    buffer : bytes, bytearray or memoryview
        Data to read.  Held by reference, never modified.
    offset : int
        Starting position.
    endian : str
        Default byte order, ``"little"`` or ``"big"``.  Each ``read_*``
        call may override it.
    """

    __slots__ = ("_buf", "_pos", "_endian")

    def __init__(self, buffer: bytes | bytearray | memoryview, offset: int = 0,
                 endian: str = "little"):
        self._buf = memoryview(buffer)
        self._endian = _prefix(endian)
        self._pos = 0
        self.seek(offset)

    def __len__(self) -> int:
        return len(self._buf)

    @property
    def remaining(self) -> int:
        return len(self._buf) - self._pos

    def tell(self) -> int:
        return self._pos

    def seek(self, offset: int) -> None:
        """Move to an absolute *offset*; the end of the buffer is allowed."""
        if offset < 0 or offset > len(self._buf):
            raise OutOfBounds(f"seek to {offset} outside buffer of {len(self._buf)} bytes")
        self._pos = offset

    def skip(self, n: int) -> None:
        self.seek(self._pos + n)

    def read_bytes(self, n: int) -> memoryview:
        """Return the next *n* bytes as a view and advance."""
        self._require(n)
        view = self._buf[self._pos:self._pos + n]
        self._pos += n
        return view

    def peek_bytes(self, n: int) -> memoryview:
        self._require(n)
        return self._buf[self._pos:self._pos + n]

    def _require(self, n: int) -> None:
        if n < 0 or self._pos + n > len(self._buf):
            raise OutOfBounds(
                f"need {n} bytes at offset {self._pos}, only {self.remaining} remain"
            )

    def _unpack(self, code: str, size: int, endian: str | None):
        order = self._endian if endian is None else _prefix(endian)
        self._require(size)
        (value,) = struct.unpack_from(order + code, self._buf, self._pos)
        self._pos += size
        return value

    def read_u8(self, endian: str | None = None) -> int:
        return self._unpack("B", 1, endian)

    def read_u16(self, endian: str | None = None) -> int:
        return self._unpack("H", 2, endian)

    def read_u32(self, endian: str | None = None) -> int:
        return self._unpack("I", 4, endian)

    def read_i32(self, endian: str | None = None) -> int:
        return self._unpack("i", 4, endian)

    def read_u64(self, endian: str | None = None) -> int:
        return self._unpack("Q", 8, endian)

    def read_f32(self, endian: str | None = None) -> float:
        return self._unpack("f", 4, endian)

    def read_f64(self, endian: str | None = None) -> float:
        return self._unpack("d", 8, endian)

    def read_array(self, code: str, count: int, endian: str | None = None) -> tuple:
        """Read *count* consecutive values of struct type *code*."""
        order = self._endian if endian is None else _prefix(endian)
        size = struct.calcsize(order + code) * count
        self._require(size)
        values = struct.unpack_from(f"{order}{count}{code}", self._buf, self._pos)
        self._pos += size
        return values
