"""Procedural granite rasters and the shared texture cache.

Rasters are drawn with Pillow. Speckle and vein placement comes from a
``SeededStream`` keyed by the cache key, so a key always yields the same
detail for the same base colour.
"""

import math
import logging
import threading
from dataclasses import dataclass
from typing import Optional

from PIL import Image, ImageColor, ImageDraw, ImageFont

from .constants import (
    HEADLESS, TEXTURE_SIZE, SPECKLE_COUNT, VEIN_COUNT,
    ROUGHNESS_BASE, STONE_COLORS, INSCRIPTION_SIZE,
)
from .seeding import SeededStream

logger = logging.getLogger(__name__)


def granite_key(identifier: str, day_mode: bool) -> str:
    """Cache key for a marker's stone texture in the given lighting mode."""
    return f"{identifier}-{'day' if day_mode else 'night'}"


def stone_color(day_mode: bool) -> str:
    return STONE_COLORS['day' if day_mode else 'night']


def normalize_color(color) -> tuple:
    """RGB triple for a CSS colour string or an RGB(A) sequence."""
    if isinstance(color, str):
        return ImageColor.getrgb(color)[:3]
    return tuple(int(c) for c in color[:3])


@dataclass
class TextureAsset:
    """Albedo/roughness raster pair for one cache key."""
    key: str
    color: tuple
    albedo: Image.Image
    roughness: Image.Image

    def release(self) -> None:
        self.albedo.close()
        self.roughness.close()


def _draw_speckles(draw, rand, size, radius, shade, alpha):
    """Scatter *SPECKLE_COUNT* translucent grey dots.

    ``radius``, ``shade`` and ``alpha`` are (base, span) pairs.
    """
    for _ in range(SPECKLE_COUNT):
        x = rand() * size
        y = rand() * size
        r = radius[0] + rand() * radius[1]
        grey = shade[0] + math.floor(rand() * shade[1])
        a = alpha[0] + rand() * alpha[1]
        draw.ellipse([x - r, y - r, x + r, y + r],
                     fill=(grey, grey, grey, round(a * 255)))


def _draw_veins(draw, rand, size):
    for _ in range(VEIN_COUNT):
        start_x = rand() * size
        start_y = rand() * size
        length = size * (0.45 + rand() * 0.3)
        angle = rand() * math.pi * 2
        thickness = 0.8 + rand() * 1.5
        a = 0.04 + rand() * 0.05
        end = (start_x + math.cos(angle) * length, start_y + math.sin(angle) * length)
        draw.line([(start_x, start_y), end],
                  fill=(210, 216, 230, round(a * 255)),
                  width=max(1, round(thickness)))


def render_granite(cache_key: str, color: tuple, size: int = TEXTURE_SIZE):
    """Draw the (albedo, roughness) pair for *cache_key*.

    Albedo speckles and veins are drawn first, then the roughness speckles,
    all from one stream, so both rasters are reproducible per key.
    """
    rand = SeededStream(cache_key)

    albedo = Image.new('RGB', (size, size), color)
    draw = ImageDraw.Draw(albedo, 'RGBA')
    _draw_speckles(draw, rand, size, radius=(0.4, 1.4), shade=(170, 50), alpha=(0.14, 0.18))
    _draw_veins(draw, rand, size)

    roughness = Image.new('RGB', (size, size), ROUGHNESS_BASE)
    draw = ImageDraw.Draw(roughness, 'RGBA')
    _draw_speckles(draw, rand, size, radius=(0.7, 1.8), shade=(150, 60), alpha=(0.18, 0.22))

    return albedo, roughness.convert('L')


class TextureCache:
    """One granite texture pair per cache key.

    Lookups and builds run under a lock so concurrent callers never build
    the same key twice.
    """

    def __init__(self, raster_enabled: Optional[bool] = None, size: int = TEXTURE_SIZE):
        self.raster_enabled = (not HEADLESS) if raster_enabled is None else raster_enabled
        self.size = size
        self._entries: dict[str, TextureAsset] = {}
        self._lock = threading.Lock()
        self.builds = 0

    def synthesize(self, cache_key: str, base_color) -> Optional[TextureAsset]:
        """Return the texture pair for *cache_key*, building it if needed.

        Returns ``None`` when raster drawing is unavailable; callers then
        render the flat base colour.
        """
        if not self.raster_enabled:
            return None

        color = normalize_color(base_color)
        with self._lock:
            existing = self._entries.get(cache_key)
            if existing is not None and existing.color == color:
                logger.debug(f"Texture cache hit: {cache_key}")
                return existing
            if existing is not None:
                logger.debug(f"Texture colour changed for {cache_key}: "
                             f"{existing.color} -> {color}")
                existing.release()
                del self._entries[cache_key]

            albedo, roughness = render_granite(cache_key, color, self.size)
            asset = TextureAsset(key=cache_key, color=color,
                                 albedo=albedo, roughness=roughness)
            self._entries[cache_key] = asset
            self.builds += 1
            logger.debug(f"Built granite texture {cache_key} ({self.size}px)")
            return asset

    def get(self, cache_key: str) -> Optional[TextureAsset]:
        with self._lock:
            return self._entries.get(cache_key)

    def release(self, cache_key: str) -> None:
        with self._lock:
            asset = self._entries.pop(cache_key, None)
        if asset is not None:
            asset.release()

    def release_all(self) -> None:
        with self._lock:
            assets = list(self._entries.values())
            self._entries.clear()
        for asset in assets:
            asset.release()
        logger.debug(f"Released {len(assets)} texture(s)")

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, cache_key: str) -> bool:
        return cache_key in self._entries


def render_inscription(primary: str, secondary: str,
                       raster_enabled: Optional[bool] = None) -> Optional[Image.Image]:
    """Transparent plate with the display name over the handle."""
    if raster_enabled is None:
        raster_enabled = not HEADLESS
    if not raster_enabled:
        return None

    width, height = INSCRIPTION_SIZE
    image = Image.new('RGBA', (width, height), (15, 23, 42, 0))
    draw = ImageDraw.Draw(image)

    title_font = ImageFont.load_default(size=58)
    subtitle_font = ImageFont.load_default(size=36)

    # Soft shadow under the title
    draw.text((width / 2 + 2, height / 2 - 16), primary, font=title_font,
              fill=(15, 23, 42, 102), anchor='mm')
    draw.text((width / 2, height / 2 - 18), primary, font=title_font,
              fill=(203, 213, 225, 140), anchor='mm')
    draw.text((width / 2, height / 2 + 22), secondary, font=subtitle_font,
              fill=(148, 163, 184, 102), anchor='mm')
    return image
