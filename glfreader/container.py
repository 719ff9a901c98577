"""Container-level parsing: signature check, archive unwrap, record index.

A ``.glf`` file is a zip archive whose ``.dat`` member holds a chain of
length-prefixed records.  A bare ``.dat`` stream is accepted too.  The
index built here records where each image and status record lives; the
record bodies are decoded separately.
"""

from __future__ import annotations

import io
import logging
import struct
import zipfile
import zlib
from dataclasses import dataclass, field

from glfreader.config import GlfConfig
from glfreader.errors import (
    BadMagic,
    MalformedHeader,
    MissingMember,
    TruncatedContainer,
    UnsupportedVersion,
)
from glfreader.records import (
    CI_HEADER_SIZE,
    RECORD_IMAGE,
    RECORD_MARKER,
    RECORD_STATUS,
    record_type_name,
)
from glfreader.records.image import IMAGE_VERSION_OFFSET

logger = logging.getLogger(__name__)

ZIP_MAGIC = b"PK\x03\x04"
DAT_MAGIC = bytes([RECORD_MARKER])

#: Loggers may pad the record stream with up to this many bytes.
TRAILING_PAD_LIMIT = 2


@dataclass(frozen=True)
class OffsetEntry:
    """Location of one record within the record stream."""

    start: int
    length: int
    record_type: int

    @property
    def end(self) -> int:
        return self.start + self.length


@dataclass(frozen=True)
class ContainerHeader:
    """Summary of a validated GLF container."""

    magic: bytes
    kind: str  # "zip" or "dat"
    record_count: int
    status_count: int = 0
    versions: tuple[int, ...] = ()
    member_names: tuple[str, ...] = ()
    dat_member: str | None = None


@dataclass(frozen=True)
class ContainerIndexResult:
    """Everything :meth:`ContainerIndex.parse` produces."""

    header: ContainerHeader
    raw: bytes | memoryview
    images: tuple[OffsetEntry, ...] = ()
    statuses: tuple[OffsetEntry, ...] = ()
    skipped: tuple[OffsetEntry, ...] = field(default=(), repr=False)


def _unwrap_zip(buffer: memoryview) -> tuple[bytes, tuple[str, ...], str]:
    """Return the ``.dat`` member of a GLF archive and the member names."""
    try:
        with zipfile.ZipFile(io.BytesIO(buffer)) as archive:
            names = tuple(archive.namelist())
            dat_names = [n for n in names if ".dat" in n.lower()]
            if not dat_names:
                raise MissingMember(f"archive has no .dat member (members: {', '.join(names)})")
            return archive.read(dat_names[0]), names, dat_names[0]
    except (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError, zlib.error) as exc:
        raise TruncatedContainer(f"unreadable GLF archive: {exc}") from exc


class ContainerIndex:
    """Validate a GLF container and index its records.

    Parameters
    ----------
    config : GlfConfig or None
        Supplies the accepted image versions and the policy for record
        types this package does not decode.  Defaults to ``GlfConfig()``.
    """

    def __init__(self, config: GlfConfig | None = None):
        self.config = config if config is not None else GlfConfig()

    def parse(self, buffer: bytes | bytearray | memoryview) -> ContainerIndexResult:
        """Validate *buffer* and build the record offset tables.

        Raises
        ------
        BadMagic
            If the buffer is neither a zip archive nor a record stream, or a
            record does not start with the ``*`` marker.
        TruncatedContainer
            If the archive is damaged or a record runs past the end.
        MissingMember
            If the archive holds no ``.dat`` member.
        UnsupportedVersion
            For image versions or record types outside the supported set.
        MalformedHeader
            For a record length shorter than the CI header.
        """
        view = memoryview(buffer).cast("B").toreadonly()
        magic = bytes(view[:len(ZIP_MAGIC)])
        if magic == ZIP_MAGIC:
            raw, names, dat_member = _unwrap_zip(view)
            kind = "zip"
        elif magic[:1] == DAT_MAGIC:
            raw, names, dat_member = view, (), None
            magic = DAT_MAGIC
            kind = "dat"
        else:
            raise BadMagic(f"not a GLF container (leading bytes {magic.hex(' ') or 'none'})")

        images, statuses, skipped, versions = self._walk(raw)
        header = ContainerHeader(
            magic=magic,
            kind=kind,
            record_count=len(images),
            status_count=len(statuses),
            versions=tuple(sorted(versions)),
            member_names=names,
            dat_member=dat_member,
        )
        logger.debug("Indexed %d image and %d status records (%d skipped) from %s stream",
                     len(images), len(statuses), len(skipped), kind)
        return ContainerIndexResult(header=header, raw=raw, images=tuple(images),
                                    statuses=tuple(statuses), skipped=tuple(skipped))

    def _walk(self, raw: bytes | memoryview):
        """Follow the record chain from offset 0 to the end of *raw*."""
        images: list[OffsetEntry] = []
        statuses: list[OffsetEntry] = []
        skipped: list[OffsetEntry] = []
        versions: set[int] = set()
        offset = 0
        position = 0
        size = len(raw)

        while offset < size:
            if size - offset <= TRAILING_PAD_LIMIT:
                logger.debug("Ignoring %d pad bytes at end of record stream", size - offset)
                break
            if offset + CI_HEADER_SIZE > size:
                raise TruncatedContainer(
                    f"{size - offset} trailing bytes at offset {offset} are too short "
                    f"for a record header",
                    index=position,
                )
            if raw[offset] != RECORD_MARKER:
                raise BadMagic(f"no record marker at offset {offset}", index=position)

            (length,) = struct.unpack_from("<I", raw, offset + 2)
            record_type = raw[offset + 14]
            if length < CI_HEADER_SIZE:
                raise MalformedHeader(
                    f"record length {length} at offset {offset} is shorter than its header",
                    index=position,
                )
            if offset + length > size:
                raise TruncatedContainer(
                    f"record at offset {offset} declares {length} bytes, "
                    f"only {size - offset} remain",
                    index=position,
                )

            entry = OffsetEntry(start=offset, length=length, record_type=record_type)
            if record_type == RECORD_IMAGE:
                versions.add(self._check_image_version(raw, entry, len(images)))
                images.append(entry)
            elif record_type == RECORD_STATUS:
                statuses.append(entry)
            elif self.config.skip_unsupported_records:
                logger.warning("Skipping %s record at offset %d",
                               record_type_name(record_type), offset)
                skipped.append(entry)
            else:
                raise UnsupportedVersion(
                    f"{record_type_name(record_type)} records are not supported "
                    f"(offset {offset})",
                    index=position,
                )

            offset += length
            position += 1

        return images, statuses, skipped, versions

    def _check_image_version(self, raw: bytes | memoryview, entry: OffsetEntry, index: int) -> int:
        if entry.length < IMAGE_VERSION_OFFSET + 2:
            raise MalformedHeader(
                f"image record of {entry.length} bytes has no version field", index=index
            )
        (version,) = struct.unpack_from("<H", raw, entry.start + IMAGE_VERSION_OFFSET)
        if version not in self.config.supported_image_versions:
            supported = ", ".join(str(v) for v in sorted(self.config.supported_image_versions))
            raise UnsupportedVersion(
                f"image record version {version} (supported: {supported})", index=index
            )
        return version
