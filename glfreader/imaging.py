"""Turn decoded sample bytes into a raster image.

Samples are laid out as stored: ``height`` rows of range lines, each
``width`` beams across.  No polar-to-Cartesian resampling is done; the
result is the sonar's native fan flattened into a rectangle.

Intensity mapping is a linear stretch of ``[low, high]`` onto 0-255 with
clamping, optionally followed by a colour palette.  The default (full
sample range, greyscale) is an identity for 8-bit Gemini data and is a
display policy, not a calibrated transform.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Sequence

import numpy as np
from PIL import Image

from glfreader.config import GlfConfig
from glfreader.errors import EncodingFailed, GeometryMismatch

if TYPE_CHECKING:
    from glfreader.records.image import ImageRecordHeader

logger = logging.getLogger(__name__)

Encoder = Callable[[np.ndarray, "str | Path", "str | None"], None]


def sample_dtype(name: str) -> np.dtype:
    """Little-endian numpy dtype for a configured sample type name."""
    return np.dtype(name).newbyteorder("<")


def palette_lut(stops: Sequence[tuple[int, int, int]]) -> np.ndarray:
    """Interpolate colour *stops* into a 256 x 3 uint8 lookup table."""
    stops = np.asarray(stops, dtype=np.float64)
    positions = np.linspace(0, 255, len(stops))
    levels = np.arange(256)
    channels = [np.interp(levels, positions, stops[:, c]) for c in range(3)]
    return np.rint(np.stack(channels, axis=1)).astype(np.uint8)


class IntensityMap:
    """Linear sample-to-pixel transform with clamping and optional palette.

    Parameters
    ----------
    low, high : int, optional
        Sample values mapped to 0 and 255.  Default to the full range of
        *dtype*.
    palette : sequence of (r, g, b), optional
        Colour stops; when given, pixels are RGB instead of greyscale.
    dtype : str
        Sample type the map will be applied to.
    """

    def __init__(self, low: int | None = None, high: int | None = None,
                 palette: Sequence[tuple[int, int, int]] | None = None,
                 dtype: str = "uint8"):
        info = np.iinfo(sample_dtype(dtype))
        self.low = info.min if low is None else low
        self.high = info.max if high is None else high
        if self.high <= self.low:
            raise ValueError(f"high ({self.high}) must exceed low ({self.low})")

        levels = np.arange(info.max + 1, dtype=np.float64)
        grey = np.clip((levels - self.low) * 255.0 / (self.high - self.low), 0, 255)
        grey = np.rint(grey).astype(np.uint8)
        self.is_colour = palette is not None
        self.lut = palette_lut(palette)[grey] if self.is_colour else grey

    @classmethod
    def from_config(cls, config: GlfConfig, palette: str | None = None) -> IntensityMap:
        name = palette if palette is not None else config.intensity.palette
        return cls(low=config.intensity.low, high=config.intensity.high,
                   palette=config.palette_stops(name), dtype=config.sample_dtype)

    def apply(self, samples: np.ndarray) -> np.ndarray:
        """Map *samples* through the table, returning a new array."""
        return self.lut[samples]


def save_image(pixels: np.ndarray, path: str | Path, format: str | None = None) -> None:
    """Encode *pixels* to *path* with Pillow.

    The format is inferred from the file suffix when *format* is None.

    Raises
    ------
    EncodingFailed
        For unknown formats or I/O errors.
    """
    try:
        Image.fromarray(pixels).save(path, format=format)
    except (ValueError, KeyError, OSError) as exc:
        raise EncodingFailed(f"cannot write {path}: {exc}") from exc


@dataclass(frozen=True, eq=False)
class SonarImage:
    """A rendered record: pixel grid plus the header it came from."""

    pixels: np.ndarray
    header: ImageRecordHeader
    index: int | None = None

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def mode(self) -> str:
        return "RGB" if self.pixels.ndim == 3 else "L"

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self.pixels)

    def save(self, path: str | Path, format: str | None = None,
             encoder: Encoder | None = None) -> Path:
        """Write the image through *encoder* (Pillow by default)."""
        (encoder or save_image)(self.pixels, path, format)
        logger.debug("Wrote record %s (%d x %d %s) to %s",
                     self.index, self.width, self.height, self.mode, path)
        return Path(path)


class ImageReconstructor:
    """Build :class:`SonarImage` objects from decoded payloads."""

    def __init__(self, intensity: IntensityMap | None = None, dtype: str = "uint8"):
        self.dtype = sample_dtype(dtype)
        self.intensity = intensity if intensity is not None else IntensityMap(dtype=dtype)

    def build(self, payload: bytes | memoryview, header: ImageRecordHeader,
              index: int | None = None, intensity: IntensityMap | None = None) -> SonarImage:
        """Reshape *payload* to the header geometry and map it to pixels.

        Raises
        ------
        GeometryMismatch
            If the payload does not fill ``header.height`` rows of
            ``header.width`` samples exactly.
        """
        width, height = header.width, header.height
        nbytes = len(payload)
        if nbytes % self.dtype.itemsize:
            raise GeometryMismatch(
                f"{nbytes} bytes is not a whole number of {self.dtype.itemsize}-byte samples",
                index=index,
            )
        count = nbytes // self.dtype.itemsize
        if width == 0 or count % width or count // width != height:
            raise GeometryMismatch(
                f"{count} samples do not form {height} rows of {width} beams",
                index=index,
            )

        grid = np.frombuffer(payload, dtype=self.dtype).reshape(height, width)
        pixels = (intensity or self.intensity).apply(grid)
        return SonarImage(pixels=pixels, header=header, index=index)
