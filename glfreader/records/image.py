"""Parser for Gemini image records (record type 0).

Body layout after the CI header (all little-endian):

  - record type word (uint16, always 1) and format marker (uint16, 0xEFEF)
  - image version (uint16)
  - range start/end (uint32 each), range compression (uint16)
  - bearing start/end (uint32 each)
  - compression type (uint16), present in version 3 only
  - payload size (uint32) followed by the payload itself
  - bearing table, one float64 per beam
  - state flags, modulation frequency (uint32 each)
  - beamforming aperture (float32), transmit time (float64 seconds)
  - ping flags (uint16), speed of sound at transducer (float32)
  - gain percentage (uint16), chirp, sonar type, platform (uint8 each)
  - one pad byte, end tag (uint16, 0xDEDE)

The image is ``bearing_end - bearing_start`` beams wide and
``range_end - range_start`` range lines high.  Values are kept in their
on-disk types; no unit conversion happens here.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass

from glfreader.cursor import ByteCursor
from glfreader.errors import MalformedHeader, UnsupportedVersion
from glfreader.payload import CompressionType
from glfreader.records import RECORD_IMAGE, CIHeader, RecordParser
from glfreader.timebase import seconds_to_ticks, ticks_to_datetime

IMAGE_RECORD_TYPE_WORD = 1
IMAGE_FORMAT_MARKER = 0xEFEF
IMAGE_END_TAG = 0xDEDE

#: Offset of the image version word from the start of the record.
IMAGE_VERSION_OFFSET = 25


@dataclass(frozen=True)
class ImageRecordHeader:
    """Metadata for one sonar image record."""

    ci: CIHeader
    image_version: int
    range_start: int
    range_end: int
    range_compression: int
    bearing_start: int
    bearing_end: int
    compression: CompressionType
    data_offset: int
    data_size: int
    bearing_table: tuple[float, ...]
    state_flags: int
    modulation_frequency: int
    beam_form_app: float
    tx_time_ticks: int
    ping_flags: int
    sos_at_xd: float
    percent_gain: int
    chirp: int
    sonar_type: int
    platform: int
    record_size: int

    @property
    def time_ticks(self) -> int:
        return self.ci.time_ticks

    @property
    def device_id(self) -> int:
        return self.ci.device_id

    @property
    def width(self) -> int:
        """Number of beams."""
        return self.bearing_end - self.bearing_start

    @property
    def height(self) -> int:
        """Number of range lines."""
        return self.range_end - self.range_start

    @property
    def sample_count(self) -> int:
        return self.width * self.height

    @property
    def is_compressed(self) -> bool:
        return self.compression != CompressionType.NONE

    @property
    def bearing_resolution(self) -> float:
        """Mean spacing between adjacent bearing table entries.

        Expressed in the bearing table's own units; 0.0 for a single beam.
        """
        if len(self.bearing_table) < 2:
            return 0.0
        return abs(self.bearing_table[-1] - self.bearing_table[0]) / (len(self.bearing_table) - 1)

    def timestamp(self, tz: str = "UTC") -> datetime.datetime:
        """Capture time as an aware datetime in zone *tz*."""
        return ticks_to_datetime(self.ci.time_ticks, tz)

    def tx_timestamp(self, tz: str = "UTC") -> datetime.datetime:
        """Transmit time as an aware datetime in zone *tz*."""
        return ticks_to_datetime(self.tx_time_ticks, tz)


class ImageRecordParser(RecordParser):
    """Decode the fixed metadata of an image record.

    Parameters
    ----------
    supported_versions : iterable of int
        Image versions accepted.
    max_inflate_ratio : int
        Upper bound on ``decoded bytes / payload bytes``; declared
        geometries beyond it are treated as corrupt.
    bytes_per_sample : int
        Size of one decoded sample.
    """

    name = "image"
    record_type = RECORD_IMAGE

    def __init__(self, supported_versions=frozenset({1, 2, 3}),
                 max_inflate_ratio: int = 1032, bytes_per_sample: int = 1):
        self.supported_versions = frozenset(supported_versions)
        self.max_inflate_ratio = max_inflate_ratio
        self.bytes_per_sample = bytes_per_sample

    def _parse_body(self, cursor: ByteCursor, ci: CIHeader, index: int,
                    start: int) -> ImageRecordHeader:
        type_word = cursor.read_u16()
        marker = cursor.read_u16()
        if type_word != IMAGE_RECORD_TYPE_WORD or marker != IMAGE_FORMAT_MARKER:
            raise MalformedHeader(
                f"bad image record preamble 0x{type_word:04x}/0x{marker:04x}",
                index=index,
            )

        image_version = cursor.read_u16()
        if image_version not in self.supported_versions:
            raise UnsupportedVersion(f"image record version {image_version}", index=index)

        range_start = cursor.read_u32()
        range_end = cursor.read_u32()
        range_compression = cursor.read_u16()
        bearing_start = cursor.read_u32()
        bearing_end = cursor.read_u32()

        if range_end < range_start or bearing_end < bearing_start:
            raise MalformedHeader(
                f"inverted geometry: range {range_start}..{range_end}, "
                f"bearing {bearing_start}..{bearing_end}",
                index=index,
            )
        width = bearing_end - bearing_start
        height = range_end - range_start
        if width == 0 or height == 0:
            raise MalformedHeader(f"empty geometry {width} x {height}", index=index)

        compression_code = cursor.read_u16() if image_version == 3 else None

        data_size = cursor.read_u32()
        data_offset = start + cursor.tell()
        cursor.skip(data_size)

        expected = width * height * self.bytes_per_sample
        if compression_code is None:
            # Older versions carry no flag; a size other than the raw
            # geometry means the payload is zlib compressed.
            compression = CompressionType.NONE if data_size == expected else CompressionType.ZLIB
        else:
            try:
                compression = CompressionType(compression_code)
            except ValueError:
                raise MalformedHeader(f"unknown compression type {compression_code}",
                                      index=index) from None

        ratio = 1 if compression is CompressionType.NONE else self.max_inflate_ratio
        if expected > data_size * ratio:
            raise MalformedHeader(
                f"declared {width} x {height} samples cannot come from a "
                f"{data_size} byte payload",
                index=index,
            )

        bearing_table = cursor.read_array("d", width)
        state_flags = cursor.read_u32()
        modulation_frequency = cursor.read_u32()
        beam_form_app = cursor.read_f32()
        tx_time_ticks = seconds_to_ticks(cursor.read_f64())
        ping_flags = cursor.read_u16()
        sos_at_xd = cursor.read_f32()
        percent_gain = cursor.read_u16()
        chirp = cursor.read_u8()
        sonar_type = cursor.read_u8()
        platform = cursor.read_u8()
        cursor.skip(1)

        end_tag = cursor.read_u16()
        if end_tag != IMAGE_END_TAG:
            raise MalformedHeader(f"bad end tag 0x{end_tag:04x}", index=index)

        return ImageRecordHeader(
            ci=ci,
            image_version=image_version,
            range_start=range_start,
            range_end=range_end,
            range_compression=range_compression,
            bearing_start=bearing_start,
            bearing_end=bearing_end,
            compression=compression,
            data_offset=data_offset,
            data_size=data_size,
            bearing_table=bearing_table,
            state_flags=state_flags,
            modulation_frequency=modulation_frequency,
            beam_form_app=beam_form_app,
            tx_time_ticks=tx_time_ticks,
            ping_flags=ping_flags,
            sos_at_xd=sos_at_xd,
            percent_gain=percent_gain,
            chirp=chirp,
            sonar_type=sonar_type,
            platform=platform,
            record_size=cursor.tell(),
        )
