"""Identifier → deterministic Variation bundle.

Draw order below is part of the persisted contract: every marker already
shown to a user was derived with it. Append new draws at the end only.
"""

import math
import logging
from typing import Optional

from .constants import (
    ARCHETYPE_DIMENSIONS, FALLBACK_ARCHETYPE,
    CATEGORY_SHAPE_OPTIONS, DEFAULT_SHAPE_OPTIONS,
    GLYPH_LIBRARY, MAX_EMBERS, MAX_CANDLES,
)
from .models import Dimensions, CrackSpec, EmberSpec, CandleSpec, Variation
from .seeding import SeededStream

logger = logging.getLogger(__name__)


def shape_candidates(category: Optional[str]) -> list:
    """Candidate archetypes for a category, or the default list."""
    return CATEGORY_SHAPE_OPTIONS.get(category or '', DEFAULT_SHAPE_OPTIONS)


def base_dimensions(archetype: str) -> dict:
    return ARCHETYPE_DIMENSIONS.get(archetype, ARCHETYPE_DIMENSIONS[FALLBACK_ARCHETYPE])


def _draw_cracks(rand, width, height):
    count = 2 + math.floor(rand() * 3)
    cracks = []
    for _ in range(count):
        cracks.append(CrackSpec(
            length=0.25 + rand() * 0.55,
            thickness=0.01 + rand() * 0.015,
            angle=(rand() - 0.5) * 0.6,
            offset_x=(rand() - 0.5) * width * 0.6,
            offset_y=height * (0.2 + rand() * 0.55),
        ))
    return tuple(cracks)


def _draw_embers(rand):
    embers = []
    for _ in range(MAX_EMBERS):
        embers.append(EmberSpec(
            radius=0.012 + rand() * 0.025,
            orbit_radius=0.35 + rand() * 0.55,
            height_offset=0.35 + rand() * 1.4,
            speed=0.6 + rand() * 0.6,
            phase=rand() * math.pi * 2,
        ))
    return tuple(embers)


def _draw_candles(rand, width, depth):
    candles = []
    for _ in range(MAX_CANDLES):
        offset_x = (rand() - 0.5) * width * 0.55
        offset_z = depth / 2 + 0.4 + (rand() - 0.5) * 0.16
        candles.append(CandleSpec(
            offset=(offset_x, 0.0, offset_z),
            height=0.32 + rand() * 0.2,
            phase=rand() * math.pi * 2,
        ))
    return tuple(candles)


def generate(identifier: str, category_hint: Optional[str] = None,
             style_hint: Optional[str] = None) -> Variation:
    """Derive the Variation for *identifier*.

    A non-empty *style_hint* is used verbatim as the archetype, even when
    it is not a candidate for the category, and consumes no draw.
    Unknown categories use the default candidate list. Never raises.
    """
    rand = SeededStream(identifier)

    if style_hint:
        shape = style_hint
    else:
        choices = shape_candidates(category_hint)
        shape = choices[rand.choice_index(len(choices))]

    base = base_dimensions(shape)
    width = base['width'] * (0.9 + rand() * 0.25)
    height = base['height'] * (0.85 + rand() * 0.45)
    depth = base['depth']

    cracks = _draw_cracks(rand, width, height)
    glyph_index = rand.choice_index(len(GLYPH_LIBRARY))
    embers = _draw_embers(rand)
    candles = _draw_candles(rand, width, depth)

    orb_height = 0.55 + rand() * 0.25
    backplate_height = height * (0.6 + rand() * 0.15)

    variation = Variation(
        identifier=identifier,
        category=category_hint or '',
        shape_archetype=shape,
        dimensions=Dimensions(width=width, height=height, depth=depth),
        base_height_offset=0.12 + rand() * 0.12,
        tilt=(rand() - 0.5) * 0.1,
        float_phase=rand() * math.pi * 2,
        cracks=cracks,
        glyph_path_index=glyph_index,
        glyph_scale=0.65 + rand() * 0.25,
        glyph_y_offset=height * (0.35 + rand() * 0.1),
        glow_height=height * (0.55 + rand() * 0.12),
        ember_configs=embers,
        candle_configs=candles,
        orb_height=orb_height,
        backplate_height=backplate_height,
        style_hint=style_hint or None,
    )
    logger.debug(f"Variation {identifier!r}: {shape} "
                 f"{width:.2f}x{height:.2f}x{depth:.2f}, {rand.draws} draws")
    return variation


class VariationCache:
    """Lazily computed variations, kept while an instance is visible."""

    def __init__(self):
        self._entries: dict[str, Variation] = {}

    def get(self, identifier: str, category_hint: Optional[str] = None,
            style_hint: Optional[str] = None) -> Variation:
        cached = self._entries.get(identifier)
        if (cached is not None and cached.category == (category_hint or '')
                and cached.style_hint == (style_hint or None)):
            return cached
        variation = generate(identifier, category_hint, style_hint)
        self._entries[identifier] = variation
        return variation

    def discard(self, identifier: str) -> None:
        self._entries.pop(identifier, None)

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._entries

    def __len__(self) -> int:
        return len(self._entries)
