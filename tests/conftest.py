"""Shared test fixtures for glfreader."""

import pytest

from builders import glf_archive, image_record, status_record


@pytest.fixture
def tmp_dir(tmp_path):
    """Provide a temporary directory Path."""
    return tmp_path


@pytest.fixture
def sample_dat():
    """Record stream: three images from two sonars around one status record.

    0: version 3, uncompressed, 4 x 3, sonar 1
    1: version 3, zlib, 5 x 2, sonar 2
    2: version 1, zlib implied by size, 4 x 3, sonar 1
    """
    return b"".join([
        image_record(seconds=100.0, device_id=1, width=4, height=3, version=3, compression=1),
        status_record(seconds=100.5, device_id=1),
        image_record(seconds=101.0, device_id=2, width=5, height=2, version=3, compression=0),
        image_record(seconds=102.25, device_id=1, width=4, height=3, version=1, compression=0),
    ])


@pytest.fixture
def sample_glf(sample_dat):
    """The sample record stream inside a GLF archive."""
    return glf_archive(sample_dat)


@pytest.fixture
def sample_glf_file(tmp_dir, sample_glf):
    """Write the sample GLF to a temp file and return its path."""
    p = tmp_dir / "sample.glf"
    p.write_bytes(sample_glf)
    return p
