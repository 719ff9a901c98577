"""Exception hierarchy for GLF decoding.

Every failure carries the record index it relates to (``None`` for
container-level problems) and a readable message.  Open-time failures
derive from :class:`CorruptContainer`; extraction failures are scoped to
a single record.
"""

from __future__ import annotations


class GlfError(Exception):
    """Base class for all GLF decoding errors."""

    def __init__(self, message: str, index: int | None = None):
        self.index = index
        self.cause = message
        if index is not None:
            message = f"record {index}: {message}"
        super().__init__(message)


class CorruptContainer(GlfError):
    """The container structure is invalid; no document can be built."""


class BadMagic(CorruptContainer):
    """A signature byte pattern did not match."""


class UnsupportedVersion(CorruptContainer):
    """A version or record type outside the supported set."""


class TruncatedContainer(CorruptContainer):
    """A record extends past the end of the buffer."""


class MissingMember(CorruptContainer):
    """The GLF archive holds no ``.dat`` record stream."""


class MalformedHeader(GlfError):
    """A record header failed a self-consistency check."""


class IndexOutOfRange(GlfError, IndexError):
    """A record index outside ``[0, record_count)``."""


class OutOfBounds(GlfError):
    """A read or seek past the end of a buffer."""


class DecompressionFailed(GlfError):
    """The decompression collaborator rejected a payload."""


class UnsupportedCompression(DecompressionFailed):
    """The record uses a compression scheme this package cannot decode."""


class SizeMismatch(GlfError):
    """Decoded payload size differs from the size implied by the header."""


class GeometryMismatch(GlfError):
    """Payload does not divide evenly into the declared image geometry."""


class EncodingFailed(GlfError):
    """The image encoding collaborator could not write the image."""
