"""Image payload extraction and decompression.

The compression schemes a Gemini image record can declare form a closed
set, so decoding dispatches through a fixed table keyed by
:class:`CompressionType`.  The inflate step itself is a collaborator:
any callable ``(compressed, expected_length) -> bytes`` may replace the
default zlib implementation.
"""

from __future__ import annotations

import enum
import logging
import zlib
from typing import TYPE_CHECKING, Callable

import numpy as np

from glfreader.cursor import buffer_view
from glfreader.errors import (
    DecompressionFailed,
    GlfError,
    SizeMismatch,
    UnsupportedCompression,
)

if TYPE_CHECKING:
    from glfreader.records.image import ImageRecordHeader

logger = logging.getLogger(__name__)

Inflate = Callable[[bytes, int], bytes]


class CompressionType(enum.IntEnum):
    """Payload storage schemes, as numbered in the image record."""

    ZLIB = 0
    NONE = 1
    H264 = 2


def zlib_inflate(data: bytes | memoryview, expected_length: int) -> bytes:
    """Inflate a zlib stream, producing at most one byte beyond *expected_length*.

    The extra byte lets the caller detect an oversized payload without
    inflating all of it.

    Raises
    ------
    zlib.error
        On a corrupt stream, or one that ends before its final block.
    """
    decoder = zlib.decompressobj()
    out = decoder.decompress(data, expected_length + 1)
    if len(out) <= expected_length and not decoder.eof:
        raise zlib.error("unexpected end of compressed stream")
    return out


def _decode_none(payload: memoryview, expected: int, inflate: Inflate) -> memoryview:
    return payload


def _decode_zlib(payload: memoryview, expected: int, inflate: Inflate) -> bytes:
    return inflate(payload, expected)


_DECODERS = {
    CompressionType.NONE: _decode_none,
    CompressionType.ZLIB: _decode_zlib,
}


class PayloadExtractor:
    """Slice a record's payload out of the record stream and decode it.

    Parameters
    ----------
    inflate : callable, optional
        Decompression collaborator.  Defaults to :func:`zlib_inflate`.
    sample_dtype : str
        Sample type of the decoded payload; fixes the bytes per sample.
    """

    def __init__(self, inflate: Inflate | None = None, sample_dtype: str = "uint8"):
        self.inflate = inflate if inflate is not None else zlib_inflate
        self.bytes_per_sample = np.dtype(sample_dtype).itemsize

    def expected_size(self, header: ImageRecordHeader) -> int:
        return header.sample_count * self.bytes_per_sample

    def extract(self, raw: bytes | memoryview, header: ImageRecordHeader,
                index: int | None = None) -> bytes | memoryview:
        """Return the decoded sample bytes for one image record.

        Uncompressed payloads come back as a view into *raw*; callers
        must copy before the view could outlive the buffer.

        Raises
        ------
        UnsupportedCompression
            For schemes without a decoder (H.264).
        DecompressionFailed
            If the inflate collaborator raises.
        SizeMismatch
            If the decoded size differs from ``width * height * bytes_per_sample``.
        """
        payload = buffer_view(raw, header.data_offset, header.data_size, index=index)
        expected = self.expected_size(header)

        decoder = _DECODERS.get(header.compression)
        if decoder is None:
            raise UnsupportedCompression(
                f"{header.compression.name} compressed payloads cannot be decoded",
                index=index,
            )

        try:
            decoded = decoder(payload, expected, self.inflate)
        except GlfError:
            raise
        except Exception as exc:
            raise DecompressionFailed(
                f"{header.compression.name} payload of {header.data_size} bytes: {exc}",
                index=index,
            ) from exc

        if len(decoded) != expected:
            raise SizeMismatch(
                f"decoded payload is {len(decoded)} bytes, header declares "
                f"{header.width} x {header.height} x {self.bytes_per_sample} = {expected}",
                index=index,
            )
        logger.debug("Record %s: %s payload %d -> %d bytes", index,
                     header.compression.name, header.data_size, len(decoded))
        return decoded
