"""Data classes and path management."""

import pathlib
from dataclasses import dataclass
from typing import Optional

from .constants import OUTPUT_DIR, GLYPH_LIBRARY


class PathManager:
    """Manage output paths for exported markers and textures."""

    @staticmethod
    def get_output_path(filename: str) -> pathlib.Path:
        """Get the output file path, creating the output directory."""
        path = pathlib.Path(filename)
        if path.is_absolute():
            return path
        OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
        return OUTPUT_DIR / path


@dataclass(frozen=True)
class Dimensions:
    width: float
    height: float
    depth: float


@dataclass(frozen=True)
class CrackSpec:
    length: float
    thickness: float
    angle: float
    offset_x: float
    offset_y: float


@dataclass(frozen=True)
class EmberSpec:
    radius: float
    orbit_radius: float
    height_offset: float
    speed: float
    phase: float


@dataclass(frozen=True)
class CandleSpec:
    # Pedestal position relative to the marker origin (y is always 0)
    offset: tuple
    height: float
    phase: float


@dataclass(frozen=True)
class Variation:
    """Full deterministic parameter bundle for one marker.

    Immutable: re-derive from the identifier instead of editing fields.
    """
    identifier: str
    category: str
    shape_archetype: str
    dimensions: Dimensions
    base_height_offset: float
    tilt: float
    float_phase: float
    cracks: tuple
    glyph_path_index: int
    glyph_scale: float
    glyph_y_offset: float
    glow_height: float
    ember_configs: tuple
    candle_configs: tuple
    orb_height: float
    backplate_height: float
    style_hint: Optional[str] = None

    @property
    def glyph_path(self) -> list:
        return GLYPH_LIBRARY[self.glyph_path_index]

    @property
    def inscription_size(self) -> tuple:
        return (self.dimensions.width * 0.75, 0.42)

    @property
    def inscription_y_offset(self) -> float:
        return -self.dimensions.height * 0.18

    def glyph_points(self) -> list:
        """Glyph outline placed on the front face, in marker-local 3D."""
        z = self.dimensions.depth / 2 + 0.002
        return [(x * self.glyph_scale, y * self.glyph_scale + self.glyph_y_offset, z)
                for x, y in self.glyph_path]
