"""Directory scanner for batch GLF summaries.

Walks data folders, opens every GLF file found and reports its record
counts, sonar ids and time span.  Files that fail to open are reported
with the error instead of stopping the scan.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from glfreader.config import GlfConfig
from glfreader.document import GlfDocument
from glfreader.errors import GlfError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = frozenset({".glf"})


@dataclass
class FileReport:
    """Summary of a single GLF file."""

    path: str
    size: int = 0
    kind: str | None = None
    record_count: int = 0
    status_count: int = 0
    device_ids: list[int] = field(default_factory=list)
    versions: list[int] = field(default_factory=list)
    first_time: str | None = None
    last_time: str | None = None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "size": self.size,
            "kind": self.kind,
            "record_count": self.record_count,
            "status_count": self.status_count,
            "device_ids": self.device_ids,
            "versions": self.versions,
            "first_time": self.first_time,
            "last_time": self.last_time,
            "errors": self.errors,
        }


class DirectoryScanner:
    """Scan directories for GLF files and summarise them.

    Parameters
    ----------
    config : GlfConfig or None
        Decoder configuration.  Defaults to ``GlfConfig()``.
    extensions : set[str] or None
        File suffixes to consider.  When *None* only ``.glf`` files are
        scanned.
    """

    def __init__(self, config: GlfConfig | None = None, extensions: set[str] | None = None):
        self.config = config if config is not None else GlfConfig()
        self.extensions = {e.lower() for e in extensions} if extensions else set(DEFAULT_EXTENSIONS)

    def scan_file(self, path: str | Path) -> FileReport:
        """Open a single file and summarise it.

        Parameters
        ----------
        path : str or Path
            File to summarise.

        Returns
        -------
        FileReport
        """
        path = Path(path)
        report = FileReport(path=str(path))

        if not path.is_file():
            report.errors.append("Not a file")
            return report

        report.size = path.stat().st_size
        if report.size == 0:
            report.errors.append("Empty file")
            return report

        try:
            doc = GlfDocument.open_file(path, config=self.config)
        except GlfError as exc:
            report.errors.append(f"{type(exc).__name__}: {exc}")
            return report
        except OSError as exc:
            report.errors.append(f"Read error: {exc}")
            return report

        report.kind = doc.container.kind
        report.record_count = doc.record_count()
        report.status_count = len(doc.status_records)
        report.device_ids = doc.device_ids()
        report.versions = list(doc.container.versions)
        if doc.headers:
            tz = self.config.timezone
            report.first_time = doc.header(0).timestamp(tz).isoformat()
            report.last_time = doc.header(len(doc) - 1).timestamp(tz).isoformat()
        return report

    def scan_directory(self, root: str | Path, recursive: bool = True) -> list[FileReport]:
        """Scan a directory tree for GLF files.

        Parameters
        ----------
        root : str or Path
            Root directory to scan.
        recursive : bool
            Whether to recurse into subdirectories.

        Returns
        -------
        list[FileReport]
            Reports for every matching file, in path order.
        """
        root = Path(root)
        reports: list[FileReport] = []

        if not root.is_dir():
            return reports

        iterator = root.rglob("*") if recursive else root.glob("*")

        for entry in sorted(iterator):
            if not entry.is_file():
                continue
            if entry.suffix.lower() not in self.extensions:
                continue
            logger.debug("Scanning %s", entry)
            reports.append(self.scan_file(entry))

        return reports
