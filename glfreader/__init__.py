"""glfreader - read Tritech Gemini GLF sonar files and reconstruct their images."""

__version__ = "0.1.0"

from glfreader.config import GlfConfig, load_config
from glfreader.container import ContainerHeader, ContainerIndex, OffsetEntry
from glfreader.cursor import ByteCursor, buffer_view
from glfreader.document import GlfDocument
from glfreader.errors import (
    BadMagic,
    CorruptContainer,
    DecompressionFailed,
    EncodingFailed,
    GeometryMismatch,
    GlfError,
    IndexOutOfRange,
    MalformedHeader,
    MissingMember,
    OutOfBounds,
    SizeMismatch,
    TruncatedContainer,
    UnsupportedCompression,
    UnsupportedVersion,
)
from glfreader.imaging import ImageReconstructor, IntensityMap, SonarImage, save_image
from glfreader.payload import CompressionType, PayloadExtractor, zlib_inflate
from glfreader.records import CIHeader
from glfreader.records.image import ImageRecordHeader, ImageRecordParser
from glfreader.records.status import StatusRecord, StatusRecordParser
from glfreader.scanner import DirectoryScanner
from glfreader.timebase import GEMINI_EPOCH, ticks_to_datetime

__all__ = [
    "GlfConfig",
    "load_config",
    "ContainerHeader",
    "ContainerIndex",
    "OffsetEntry",
    "ByteCursor",
    "buffer_view",
    "GlfDocument",
    "GlfError",
    "CorruptContainer",
    "BadMagic",
    "UnsupportedVersion",
    "TruncatedContainer",
    "MissingMember",
    "MalformedHeader",
    "IndexOutOfRange",
    "OutOfBounds",
    "DecompressionFailed",
    "UnsupportedCompression",
    "SizeMismatch",
    "GeometryMismatch",
    "EncodingFailed",
    "ImageReconstructor",
    "IntensityMap",
    "SonarImage",
    "save_image",
    "CompressionType",
    "PayloadExtractor",
    "zlib_inflate",
    "CIHeader",
    "ImageRecordHeader",
    "ImageRecordParser",
    "StatusRecord",
    "StatusRecordParser",
    "DirectoryScanner",
    "GEMINI_EPOCH",
    "ticks_to_datetime",
]
