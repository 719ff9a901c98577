"""Record header parsing for the Gemini ``.dat`` record stream.

Every record starts with a 21-byte CI header:

  - ``*`` marker, version byte
  - record length (uint32, includes the CI header)
  - timestamp (float64 seconds since the Gemini epoch)
  - record type (uint8), device id (uint16), node id (uint16), spare (uint16)

followed by a type-specific body.  Subclasses of :class:`RecordParser`
decode the body for one record type.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from typing import Any

from glfreader.cursor import ByteCursor
from glfreader.errors import BadMagic, MalformedHeader, OutOfBounds
from glfreader.timebase import seconds_to_ticks, ticks_to_datetime

CI_HEADER_SIZE = 21
RECORD_MARKER = 0x2A  # '*'

RECORD_IMAGE = 0
RECORD_V4 = 1
RECORD_ANALOG_VIDEO = 2
RECORD_STATUS = 3
RECORD_RAW_SERIAL = 98
RECORD_GENERIC = 99

RECORD_TYPE_NAMES = {
    RECORD_IMAGE: "image",
    RECORD_V4: "V4 protocol",
    RECORD_ANALOG_VIDEO: "analog video",
    RECORD_STATUS: "Gemini status",
    RECORD_RAW_SERIAL: "raw serial",
    RECORD_GENERIC: "generic",
}


def record_type_name(record_type: int) -> str:
    return RECORD_TYPE_NAMES.get(record_type, f"unknown type {record_type}")


@dataclass(frozen=True)
class CIHeader:
    """The common header preceding every record."""

    ci_version: int
    record_length: int
    time_ticks: int
    record_type: int
    device_id: int
    node_id: int

    @property
    def payload_length(self) -> int:
        """Bytes following the CI header."""
        return self.record_length - CI_HEADER_SIZE

    def timestamp(self, tz: str = "UTC") -> datetime.datetime:
        return ticks_to_datetime(self.time_ticks, tz)


def read_ci_header(cursor: ByteCursor, index: int | None = None) -> CIHeader:
    """Decode a CI header at the cursor position and advance past it."""
    start = cursor.tell()
    marker = cursor.read_u8()
    if marker != RECORD_MARKER:
        raise BadMagic(f"expected record marker '*' at offset {start}, found 0x{marker:02x}",
                       index=index)
    ci_version = cursor.read_u8()
    record_length = cursor.read_u32()
    seconds = cursor.read_f64()
    record_type = cursor.read_u8()
    device_id = cursor.read_u16()
    node_id = cursor.read_u16()
    cursor.skip(2)
    return CIHeader(
        ci_version=ci_version,
        record_length=record_length,
        time_ticks=seconds_to_ticks(seconds),
        record_type=record_type,
        device_id=device_id,
        node_id=node_id,
    )


class RecordParser:
    """Base class for record-type specific parsers.

    Subclasses set :attr:`record_type` and override :meth:`_parse_body`.
    """

    name: str = "base"
    record_type: int = -1

    def parse(self, view: memoryview, index: int, start: int = 0) -> Any:
        """Parse one complete record.

        Parameters
        ----------
        view : memoryview
            Exactly the bytes of the record, CI header included.
        index : int
            Position of the record among records of its type.
        start : int
            Absolute offset of *view* within the record stream.
        """
        cursor = ByteCursor(view, endian="little")
        try:
            ci = read_ci_header(cursor, index)
            if ci.record_type != self.record_type:
                raise MalformedHeader(
                    f"{self.name} parser given a {record_type_name(ci.record_type)} record",
                    index=index,
                )
            record = self._parse_body(cursor, ci, index, start)
        except OutOfBounds as exc:
            raise MalformedHeader(
                f"{self.name} record fields overrun its declared length of {len(view)} bytes",
                index=index,
            ) from exc
        if cursor.remaining:
            raise MalformedHeader(
                f"{self.name} record parsed to {cursor.tell()} bytes but declares "
                f"{len(view)}",
                index=index,
            )
        return record

    def _parse_body(self, cursor: ByteCursor, ci: CIHeader, index: int, start: int) -> Any:
        raise NotImplementedError
