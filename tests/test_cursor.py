"""Tests for glfreader.cursor."""

import struct

import pytest

from glfreader.cursor import ByteCursor, buffer_view
from glfreader.errors import OutOfBounds


class TestByteCursor:
    def test_little_endian_reads(self):
        data = struct.pack("<BHIQ", 0x12, 0x3456, 0x789ABCDE, 0x0102030405060708)
        c = ByteCursor(data)
        assert c.read_u8() == 0x12
        assert c.read_u16() == 0x3456
        assert c.read_u32() == 0x789ABCDE
        assert c.read_u64() == 0x0102030405060708
        assert c.remaining == 0

    def test_endian_override_per_read(self):
        data = b"\x00\x01\x00\x01"
        c = ByteCursor(data)
        assert c.read_u16(endian="big") == 1
        assert c.read_u16() == 0x0100

    def test_big_endian_default(self):
        c = ByteCursor(struct.pack(">i", -5), endian="big")
        assert c.read_i32() == -5

    def test_floats(self):
        c = ByteCursor(struct.pack("<fd", 1.5, -2.25))
        assert c.read_f32() == 1.5
        assert c.read_f64() == -2.25

    def test_read_array(self):
        c = ByteCursor(struct.pack("<3d", 1.0, 2.0, 3.0))
        assert c.read_array("d", 3) == (1.0, 2.0, 3.0)
        assert c.tell() == 24

    def test_read_past_end(self):
        c = ByteCursor(b"\x01\x02\x03")
        c.read_u16()
        with pytest.raises(OutOfBounds):
            c.read_u16()
        # A failed read does not move the cursor
        assert c.tell() == 2
        assert c.read_u8() == 3

    def test_read_bytes_is_a_view(self):
        data = b"abcdef"
        c = ByteCursor(data, offset=2)
        view = c.read_bytes(3)
        assert isinstance(view, memoryview)
        assert view.obj is data
        assert bytes(view) == b"cde"
        assert c.tell() == 5

    def test_seek(self):
        c = ByteCursor(b"\x00" * 8)
        c.seek(8)
        assert c.remaining == 0
        with pytest.raises(OutOfBounds):
            c.seek(9)
        with pytest.raises(OutOfBounds):
            c.seek(-1)

    def test_skip(self):
        c = ByteCursor(b"\x00\x00\x07")
        c.skip(2)
        assert c.read_u8() == 7
        with pytest.raises(OutOfBounds):
            c.skip(1)

    def test_unknown_endian(self):
        with pytest.raises(ValueError):
            ByteCursor(b"", endian="middle")

    def test_buffer_not_modified(self):
        data = bytearray(b"\x01\x02\x03\x04")
        c = ByteCursor(data)
        c.read_u32()
        assert data == bytearray(b"\x01\x02\x03\x04")


class TestBufferView:
    def test_view(self):
        data = b"0123456789"
        view = buffer_view(data, 2, 4)
        assert bytes(view) == b"2345"
        assert view.readonly

    def test_view_at_end(self):
        assert len(buffer_view(b"abc", 3, 0)) == 0

    def test_view_out_of_range(self):
        with pytest.raises(OutOfBounds):
            buffer_view(b"abc", 2, 2)

    def test_view_negative(self):
        with pytest.raises(OutOfBounds):
            buffer_view(b"abc", -1, 1)

    def test_view_error_carries_index(self):
        with pytest.raises(OutOfBounds) as exc_info:
            buffer_view(b"abc", 0, 10, index=4)
        assert exc_info.value.index == 4
        assert "record 4" in str(exc_info.value)
