"""Configuration for GLF decoding and rendering.

Loads a YAML document describing which image record versions are
accepted, decoder limits, the sample type of the acoustic payload, the
display timezone, and the intensity/palette policy used when rendering.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pytz
import yaml

DEFAULT_CONFIG_PATH = Path(__file__).parent / "configs" / "default.yaml"

#: Struct/numpy compatible names accepted for ``sample_dtype``.
SAMPLE_DTYPES = ("uint8", "uint16")


@dataclass
class IntensityConfig:
    """Linear sample-to-pixel mapping and the palette applied after it."""

    low: int = 0
    high: int = 255
    palette: str = "greyscale"


@dataclass
class GlfConfig:
    """Complete decoder configuration."""

    supported_image_versions: frozenset[int] = frozenset({1, 2, 3})
    skip_unsupported_records: bool = False
    max_inflate_ratio: int = 1032
    sample_dtype: str = "uint8"
    timezone: str = "UTC"
    intensity: IntensityConfig = field(default_factory=IntensityConfig)
    palettes: dict[str, list[tuple[int, int, int]]] = field(default_factory=dict)

    def palette_stops(self, name: str) -> list[tuple[int, int, int]] | None:
        """Return the colour stops for palette *name*, or None for greyscale."""
        if name == "greyscale":
            return None
        try:
            return self.palettes[name]
        except KeyError:
            known = ", ".join(["greyscale", *sorted(self.palettes)])
            raise ValueError(f"Unknown palette {name!r} (known: {known})") from None


def _parse_stops(value: list) -> list[tuple[int, int, int]]:
    """Validate a list of ``[r, g, b]`` colour stops."""
    stops = []
    for stop in value:
        if len(stop) != 3 or not all(0 <= int(c) <= 255 for c in stop):
            raise ValueError(f"Palette stop must be three values in 0..255, got {stop!r}")
        stops.append((int(stop[0]), int(stop[1]), int(stop[2])))
    if len(stops) < 2:
        raise ValueError("A palette needs at least two colour stops")
    return stops


def _parse_intensity(data: dict) -> IntensityConfig:
    cfg = IntensityConfig(
        low=int(data.get("low", 0)),
        high=int(data.get("high", 255)),
        palette=data.get("palette", "greyscale"),
    )
    if cfg.high <= cfg.low:
        raise ValueError(f"intensity.high ({cfg.high}) must exceed intensity.low ({cfg.low})")
    return cfg


def _parse_config(data: dict[str, Any]) -> GlfConfig:
    """Build a :class:`GlfConfig` from a dictionary."""
    glf = data.get("glf", {})
    sample_dtype = glf.get("sample_dtype", "uint8")
    if sample_dtype not in SAMPLE_DTYPES:
        raise ValueError(f"sample_dtype must be one of {SAMPLE_DTYPES}, got {sample_dtype!r}")
    palettes = {name: _parse_stops(stops) for name, stops in data.get("palettes", {}).items()}
    cfg = GlfConfig(
        supported_image_versions=frozenset(glf.get("supported_image_versions", [1, 2, 3])),
        skip_unsupported_records=bool(glf.get("skip_unsupported_records", False)),
        max_inflate_ratio=int(glf.get("max_inflate_ratio", 1032)),
        sample_dtype=sample_dtype,
        timezone=glf.get("timezone", "UTC"),
        intensity=_parse_intensity(data.get("intensity", {})),
        palettes=palettes,
    )
    # Fail at load time rather than at first render.
    cfg.palette_stops(cfg.intensity.palette)
    try:
        pytz.timezone(cfg.timezone)
    except pytz.UnknownTimeZoneError:
        raise ValueError(f"Unknown timezone {cfg.timezone!r}") from None
    return cfg


def load_config(path: str | Path | None = None) -> GlfConfig:
    """Load decoder configuration from a YAML file.

    Parameters
    ----------
    path : str or Path, optional
        Path to a YAML configuration file.  When *None* the built-in
        ``default.yaml`` shipped with the package is used.

    Returns
    -------
    GlfConfig
        Parsed configuration.
    """
    path = DEFAULT_CONFIG_PATH if path is None else Path(path)

    with open(path, "r") as fh:
        data = yaml.safe_load(fh) or {}

    return _parse_config(data)
