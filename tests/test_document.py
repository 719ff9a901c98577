"""Tests for glfreader.document."""

import struct

import numpy as np
import pytest

from builders import glf_archive, image_record, ramp, status_record
from glfreader.config import GlfConfig
from glfreader.document import GlfDocument
from glfreader.errors import (
    BadMagic,
    CorruptContainer,
    DecompressionFailed,
    GlfError,
    IndexOutOfRange,
    MalformedHeader,
    SizeMismatch,
    TruncatedContainer,
)


class TestOpen:
    def test_record_count(self, sample_glf):
        doc = GlfDocument.open(sample_glf)
        assert doc.record_count() == 3
        assert len(doc) == 3
        assert doc.container.record_count == doc.record_count()
        assert len(doc.table) == doc.record_count()

    def test_status_records(self, sample_glf):
        doc = GlfDocument.open(sample_glf)
        assert len(doc.status_records) == 1
        assert doc.status_records[0].ci.time_ticks == 100500

    @pytest.mark.parametrize("n", [0, 1, 4, 12])
    def test_round_trip_count(self, n):
        dat = b"".join(image_record(seconds=float(i), width=3, height=2) for i in range(n))
        doc = GlfDocument.open(glf_archive(dat))
        assert doc.record_count() == n
        assert [doc.header(i).time_ticks for i in range(n)] == [i * 1000 for i in range(n)]

    def test_zip_and_bare_stream_agree(self, sample_glf, sample_dat):
        zipped = GlfDocument.open(sample_glf)
        bare = GlfDocument.open(sample_dat)
        assert zipped.headers == bare.headers

    def test_open_file(self, sample_glf_file):
        doc = GlfDocument.open_file(sample_glf_file)
        assert doc.source == str(sample_glf_file)
        assert doc.record_count() == 3
        assert "sample.glf" in repr(doc)

    def test_bad_magic(self, sample_glf):
        data = bytearray(sample_glf)
        data[0:2] = b"XX"
        with pytest.raises(BadMagic):
            GlfDocument.open(bytes(data))

    def test_truncated(self, sample_dat):
        with pytest.raises(TruncatedContainer):
            GlfDocument.open(glf_archive(sample_dat[:-3]))

    def test_malformed_record_aborts_open(self):
        dat = image_record() + image_record(end_tag=0x0000)
        with pytest.raises(MalformedHeader) as exc_info:
            GlfDocument.open(dat)
        assert exc_info.value.index == 1

    def test_inconsistent_counts(self, sample_glf):
        doc = GlfDocument.open(sample_glf)
        with pytest.raises(CorruptContainer):
            GlfDocument(b"", doc.container, doc.table[:2], doc.headers)


class TestHeaders:
    def test_header_fields(self, sample_glf):
        doc = GlfDocument.open(sample_glf)
        h = doc.header(1)
        assert (h.width, h.height) == (5, 2)
        assert h.device_id == 2
        assert h.time_ticks == 101000

    def test_header_deterministic(self, sample_glf):
        doc = GlfDocument.open(sample_glf)
        for i in range(doc.record_count()):
            assert doc.header(i) == doc.header(i)
            assert doc.header(i) is doc.header(i)

    def test_header_boundaries(self, sample_glf):
        doc = GlfDocument.open(sample_glf)
        n = doc.record_count()
        doc.header(n - 1)
        for bad in (n, n + 1, -1):
            with pytest.raises(IndexOutOfRange):
                doc.header(bad)

    def test_index_error_compatible(self, sample_glf):
        doc = GlfDocument.open(sample_glf)
        with pytest.raises(IndexError):
            doc.header(99)


class TestExtractImage:
    def test_geometry_matches_header(self, sample_glf):
        doc = GlfDocument.open(sample_glf)
        for i in range(doc.record_count()):
            image = doc.extract_image(i)
            h = doc.header(i)
            assert (image.width, image.height) == (h.width, h.height)
            assert image.pixels.size == h.width * h.height
            assert image.index == i

    def test_pixels(self, sample_glf):
        doc = GlfDocument.open(sample_glf)
        expected = np.frombuffer(ramp(4, 3), dtype=np.uint8).reshape(3, 4)
        np.testing.assert_array_equal(doc.extract_image(0).pixels, expected)

    def test_compressed_matches_uncompressed(self, sample_glf):
        doc = GlfDocument.open(sample_glf)
        np.testing.assert_array_equal(doc.extract_image(0).pixels, doc.extract_image(2).pixels)

    def test_extract_boundaries(self, sample_glf):
        doc = GlfDocument.open(sample_glf)
        n = doc.record_count()
        doc.extract_image(n - 1)
        for bad in (n, -1):
            with pytest.raises(IndexOutOfRange):
                doc.extract_image(bad)

    def test_not_cached(self, sample_glf):
        doc = GlfDocument.open(sample_glf)
        assert doc.extract_image(0) is not doc.extract_image(0)

    def test_size_mismatch(self):
        dat = image_record() + image_record(version=3, compression=1, data=ramp(4, 3) + b"\x00\x00")
        doc = GlfDocument.open(dat)
        doc.extract_image(0)
        with pytest.raises(SizeMismatch) as exc_info:
            doc.extract_image(1)
        assert exc_info.value.index == 1

    def test_short_uncompressed_payload_rejected_at_open(self):
        dat = image_record() + image_record(version=3, compression=1, data=b"\x01" * 5)
        with pytest.raises(MalformedHeader, match="cannot come from") as exc_info:
            GlfDocument.open(dat)
        assert exc_info.value.index == 1

    def test_open_from_bytearray(self, sample_dat):
        doc = GlfDocument.open(bytearray(sample_dat))
        np.testing.assert_array_equal(doc.extract_image(0).pixels,
                                      GlfDocument.open(sample_dat).extract_image(0).pixels)

    def test_corrupt_record_does_not_spoil_others(self):
        dat = image_record() + image_record(compression=0, data=b"\x78\x9c\xff\xff") + image_record()
        doc = GlfDocument.open(dat)
        with pytest.raises(DecompressionFailed):
            doc.extract_image(1)
        assert doc.extract_image(2).pixels.shape == (3, 4)

    def test_palette_from_config(self, sample_glf):
        config = GlfConfig(palettes={"red": [(0, 0, 0), (255, 0, 0)]})
        config.intensity.palette = "red"
        doc = GlfDocument.open(sample_glf, config=config)
        assert doc.extract_image(0).mode == "RGB"

    def test_custom_inflate(self, sample_glf):
        calls = []

        def inflate(data, expected):
            calls.append(expected)
            return bytes(expected)

        doc = GlfDocument.open(sample_glf, inflate=inflate)
        assert not doc.extract_image(1).pixels.any()
        assert calls == [10]


class TestIteration:
    def test_device_ids(self, sample_glf):
        doc = GlfDocument.open(sample_glf)
        assert doc.device_ids() == [1, 2]
        assert doc.indices_for_device(1) == [0, 2]

    def test_iter_images(self, sample_glf):
        doc = GlfDocument.open(sample_glf)
        assert [img.index for img in doc.iter_images()] == [0, 1, 2]
        assert [img.index for img in doc.iter_images(device_id=1)] == [0, 2]

    def test_iter_images_stops_on_corrupt(self):
        dat = image_record() + image_record(compression=1, data=ramp(4, 3) + b"\x00") + image_record()
        doc = GlfDocument.open(dat)
        with pytest.raises(GlfError):
            list(doc.iter_images())

    def test_iter_images_skip_corrupt(self, caplog):
        dat = image_record() + image_record(compression=1, data=ramp(4, 3) + b"\x00") + image_record()
        doc = GlfDocument.open(dat)
        assert [img.index for img in doc.iter_images(skip_corrupt=True)] == [0, 2]
        assert "Skipping corrupt record 1" in caplog.text

    def test_next_image_for_device(self, sample_glf):
        doc = GlfDocument.open(sample_glf)
        image, nxt = doc.next_image_for_device(0, 1)
        assert image.index == 0
        assert nxt == 2
        image, nxt = doc.next_image_for_device(1, 1)
        assert image.index == 2
        assert nxt is None
        assert doc.next_image_for_device(2, 2) is None


class TestMultiSonarStream:
    def test_interleaved_status(self):
        dat = b"".join([
            status_record(device_id=1),
            image_record(device_id=1),
            status_record(device_id=2),
            image_record(device_id=2, width=6, height=2),
        ])
        doc = GlfDocument.open(glf_archive(dat))
        assert doc.record_count() == 2
        assert [s.device_id for s in doc.status_records] == [1, 2]
        assert doc.extract_image(1).pixels.shape == (2, 6)

    def test_data_offset_absolute(self):
        dat = status_record() + image_record(width=2, height=2, samples=b"\x01\x02\x03\x04")
        doc = GlfDocument.open(dat)
        h = doc.header(0)
        assert dat[h.data_offset:h.data_offset + h.data_size] == b"\x01\x02\x03\x04"
        assert struct.unpack_from("<I", dat, h.data_offset - 4)[0] == 4
