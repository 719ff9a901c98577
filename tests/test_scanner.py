"""Tests for glfreader.scanner."""

from builders import glf_archive, image_record
from glfreader.config import GlfConfig
from glfreader.scanner import DirectoryScanner, FileReport


class TestDirectoryScanner:
    def test_scan_file(self, sample_glf_file):
        report = DirectoryScanner().scan_file(sample_glf_file)
        assert report.ok
        assert report.size > 0
        assert report.kind == "zip"
        assert report.record_count == 3
        assert report.status_count == 1
        assert report.device_ids == [1, 2]
        assert report.versions == [1, 3]
        assert report.first_time == "1980-01-01T00:01:40+00:00"
        assert report.last_time == "1980-01-01T00:01:42.250000+00:00"

    def test_display_timezone(self, sample_glf_file):
        scanner = DirectoryScanner(config=GlfConfig(timezone="Asia/Tokyo"))
        report = scanner.scan_file(sample_glf_file)
        assert report.first_time == "1980-01-01T09:01:40+09:00"

    def test_scan_nonexistent(self, tmp_path):
        report = DirectoryScanner().scan_file(tmp_path / "nope.glf")
        assert report.errors == ["Not a file"]
        assert not report.ok

    def test_scan_empty_file(self, tmp_path):
        empty = tmp_path / "empty.glf"
        empty.write_bytes(b"")
        report = DirectoryScanner().scan_file(empty)
        assert "Empty file" in report.errors

    def test_scan_corrupt_file(self, tmp_path):
        bad = tmp_path / "bad.glf"
        bad.write_bytes(b"\x00" * 100)
        report = DirectoryScanner().scan_file(bad)
        assert len(report.errors) == 1
        assert report.errors[0].startswith("BadMagic:")
        assert report.record_count == 0

    def test_scan_directory(self, tmp_path, sample_glf):
        (tmp_path / "a.glf").write_bytes(sample_glf)
        (tmp_path / "b.GLF").write_bytes(b"\x00" * 100)
        (tmp_path / "notes.txt").write_text("not sonar")
        reports = DirectoryScanner().scan_directory(tmp_path)
        assert [r.path.rsplit("/", 1)[-1] for r in reports] == ["a.glf", "b.GLF"]
        assert reports[0].ok
        assert not reports[1].ok

    def test_scan_directory_with_extension_filter(self, tmp_path, sample_dat):
        (tmp_path / "a.glf").write_bytes(glf_archive(sample_dat))
        (tmp_path / "b.dat").write_bytes(sample_dat)
        reports = DirectoryScanner(extensions={".dat"}).scan_directory(tmp_path)
        assert len(reports) == 1
        assert reports[0].kind == "dat"

    def test_scan_directory_recursive(self, tmp_path):
        sub = tmp_path / "sub"
        sub.mkdir()
        (tmp_path / "top.glf").write_bytes(glf_archive(image_record()))
        (sub / "deep.glf").write_bytes(glf_archive(image_record()))
        assert len(DirectoryScanner().scan_directory(tmp_path)) == 2
        assert len(DirectoryScanner().scan_directory(tmp_path, recursive=False)) == 1

    def test_scan_missing_directory(self, tmp_path):
        assert DirectoryScanner().scan_directory(tmp_path / "missing") == []


class TestFileReport:
    def test_to_dict(self):
        report = FileReport(path="x.glf", size=10, record_count=2, device_ids=[1])
        d = report.to_dict()
        assert d["path"] == "x.glf"
        assert d["record_count"] == 2
        assert d["device_ids"] == [1]
        assert d["errors"] == []
