"""The GLF document: an opened container with random access to records."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

from glfreader.config import GlfConfig
from glfreader.container import ContainerHeader, ContainerIndex, OffsetEntry
from glfreader.cursor import buffer_view
from glfreader.errors import CorruptContainer, GlfError, IndexOutOfRange
from glfreader.imaging import ImageReconstructor, IntensityMap, SonarImage, sample_dtype
from glfreader.payload import Inflate, PayloadExtractor
from glfreader.records.image import ImageRecordHeader, ImageRecordParser
from glfreader.records.status import StatusRecord, StatusRecordParser

logger = logging.getLogger(__name__)


class GlfDocument:
    """A validated GLF file with every record header decoded.

    Build one with :meth:`open` or :meth:`open_file`.  Headers are decoded
    eagerly; images are decoded on each :meth:`extract_image` call and
    never cached.  A document is not modified after construction, so
    one instance may serve concurrent readers.
    """

    def __init__(self, raw: bytes, container: ContainerHeader,
                 table: tuple[OffsetEntry, ...],
                 headers: tuple[ImageRecordHeader, ...],
                 statuses: tuple[StatusRecord, ...] = (),
                 config: GlfConfig | None = None,
                 inflate: Inflate | None = None,
                 source: str | None = None):
        if not (len(headers) == len(table) == container.record_count):
            raise CorruptContainer(
                f"{len(headers)} headers, {len(table)} offset entries and "
                f"{container.record_count} declared records disagree"
            )
        self._raw = raw
        self.container = container
        self.table = table
        self._headers = headers
        self.status_records = statuses
        self.config = config if config is not None else GlfConfig()
        self.source = source
        self._extractor = PayloadExtractor(inflate=inflate, sample_dtype=self.config.sample_dtype)
        self._reconstructor = ImageReconstructor(
            intensity=IntensityMap.from_config(self.config),
            dtype=self.config.sample_dtype,
        )

    @classmethod
    def open(cls, buffer: bytes | bytearray | memoryview, config: GlfConfig | None = None,
             inflate: Inflate | None = None, source: str | None = None) -> GlfDocument:
        """Parse a complete GLF file held in memory.

        Raises the first error found; no partial document is returned.
        """
        config = config if config is not None else GlfConfig()
        index = ContainerIndex(config).parse(buffer)
        raw = index.raw

        image_parser = ImageRecordParser(
            supported_versions=config.supported_image_versions,
            max_inflate_ratio=config.max_inflate_ratio,
            bytes_per_sample=sample_dtype(config.sample_dtype).itemsize,
        )
        headers = tuple(
            image_parser.parse(buffer_view(raw, e.start, e.length, index=i), i, e.start)
            for i, e in enumerate(index.images)
        )
        status_parser = StatusRecordParser()
        statuses = tuple(
            status_parser.parse(buffer_view(raw, e.start, e.length, index=i), i, e.start)
            for i, e in enumerate(index.statuses)
        )
        logger.info("Opened %s: %d images, %d status records",
                    source or "GLF buffer", len(headers), len(statuses))
        return cls(raw, index.header, index.images, headers, statuses,
                   config=config, inflate=inflate, source=source)

    @classmethod
    def open_file(cls, path: str | Path, config: GlfConfig | None = None,
                  inflate: Inflate | None = None) -> GlfDocument:
        """Read *path* and :meth:`open` it."""
        path = Path(path)
        with open(path, "rb") as fh:
            data = fh.read()
        return cls.open(data, config=config, inflate=inflate, source=str(path))

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return f"GlfDocument({self.source or '<buffer>'!s}, records={len(self)})"

    def record_count(self) -> int:
        return len(self._headers)

    @property
    def headers(self) -> tuple[ImageRecordHeader, ...]:
        return self._headers

    def _check_index(self, i: int) -> None:
        if not 0 <= i < len(self._headers):
            raise IndexOutOfRange(
                f"index outside [0, {len(self._headers)})", index=i
            )

    def header(self, i: int) -> ImageRecordHeader:
        """Return the header of image record *i*."""
        self._check_index(i)
        return self._headers[i]

    def extract_image(self, i: int, intensity: IntensityMap | None = None) -> SonarImage:
        """Decode image record *i* from the raw buffer.

        Parameters
        ----------
        i : int
            Record index.
        intensity : IntensityMap, optional
            Overrides the configured intensity mapping for this call.
        """
        self._check_index(i)
        header = self._headers[i]
        payload = self._extractor.extract(self._raw, header, index=i)
        return self._reconstructor.build(payload, header, index=i, intensity=intensity)

    def device_ids(self) -> list[int]:
        """Sonar ids present in the image records, in ascending order."""
        return sorted({h.device_id for h in self._headers})

    def indices_for_device(self, device_id: int) -> list[int]:
        return [i for i, h in enumerate(self._headers) if h.device_id == device_id]

    def next_image_for_device(self, i: int, device_id: int) -> tuple[SonarImage, int | None] | None:
        """Extract the first image at or after *i* from sonar *device_id*.

        Returns ``(image, next_index)`` where *next_index* is the following
        record from the same sonar, or None when it was the last one.
        Returns None when no record at or after *i* matches.
        """
        self._check_index(i)
        matches = (j for j in range(i, len(self._headers))
                   if self._headers[j].device_id == device_id)
        current = next(matches, None)
        if current is None:
            return None
        return self.extract_image(current), next(matches, None)

    def iter_images(self, device_id: int | None = None, skip_corrupt: bool = False,
                    intensity: IntensityMap | None = None) -> Iterator[SonarImage]:
        """Yield images in record order, optionally for one sonar only.

        With *skip_corrupt*, records that fail to decode are logged and
        skipped; otherwise the first failure propagates.
        """
        for i, header in enumerate(self._headers):
            if device_id is not None and header.device_id != device_id:
                continue
            try:
                image = self.extract_image(i, intensity=intensity)
            except GlfError as exc:
                if not skip_corrupt:
                    raise
                logger.warning("Skipping corrupt record %d: %s", i, exc)
                continue
            yield image
