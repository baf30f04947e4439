"""Quality-tier budgets applied to a Variation's effect parameters."""

import logging
from dataclasses import dataclass
from typing import Optional

from .constants import (
    QUALITY_TIERS, TIER_BUDGETS,
    CATEGORY_GLOW_PALETTE, RUNE_TINT, RUNE_TINT_AMOUNT,
)
from .models import Variation
from .textures import normalize_color

logger = logging.getLogger(__name__)


def normalize_tier(tier: Optional[str]) -> str:
    """Lower-cased tier name; anything unrecognised becomes ``medium``."""
    if not isinstance(tier, str):
        if tier is not None:
            logger.debug(f"Non-string quality tier {tier!r}, using medium")
        return 'medium'
    name = tier.strip().lower()
    if name in QUALITY_TIERS:
        return name
    if name:
        logger.debug(f"Unknown quality tier {tier!r}, using medium")
    return 'medium'


def glow_palette(category: Optional[str], base_color: str) -> list:
    return list(CATEGORY_GLOW_PALETTE.get(category or '', [base_color]))


def mix_colors(color: str, target: str, amount: float) -> str:
    """Linear blend of two colours, returned as ``#rrggbb``."""
    start = normalize_color(color)
    end = normalize_color(target)
    mixed = [round(a + (b - a) * amount) for a, b in zip(start, end)]
    return '#{:02x}{:02x}{:02x}'.format(*mixed)


def rune_color(base_color: str) -> str:
    """Glyph tint: the base colour pulled toward a pale blue-white."""
    try:
        return mix_colors(base_color, RUNE_TINT, RUNE_TINT_AMOUNT)
    except (ValueError, TypeError):
        logger.warning(f"Unparseable base colour {base_color!r}, using plain rune tint")
        return RUNE_TINT


@dataclass(frozen=True)
class AuraLayer:
    color: str
    radius: float
    light_offset: float
    light_distance: float


@dataclass(frozen=True)
class EffectsBundle:
    """Tier-limited effect parameters for one marker instance."""
    tier: str
    ember_configs: tuple
    candle_configs: tuple
    aura_layers: tuple
    shadow_map_size: int
    spotlight_enabled: bool
    rune_color: str

    @property
    def casts_shadow(self) -> bool:
        return self.shadow_map_size > 0


class EffectsDeriver:
    """Apply per-tier budgets to a Variation.

    Budgets are passed in rather than read from the constants module, so a
    host can tune them without touching code.
    """

    def __init__(self, budgets: Optional[dict] = None):
        self.budgets = budgets if budgets is not None else TIER_BUDGETS

    def derive(self, variation: Variation, quality_tier: Optional[str],
               category: Optional[str], base_color: str) -> EffectsBundle:
        tier = normalize_tier(quality_tier)
        budget = self.budgets[tier]

        palette = glow_palette(category, base_color)
        layer_count = min(budget['aura_layers'], len(palette))
        width = variation.dimensions.width
        aura_layers = tuple(
            AuraLayer(
                color=palette[i],
                radius=width * (0.32 + 0.22 * i),
                light_offset=0.1 + 0.2 * i,
                light_distance=4 + 1.8 * i,
            )
            for i in range(layer_count)
        )

        bundle = EffectsBundle(
            tier=tier,
            ember_configs=variation.ember_configs[:budget['embers']],
            candle_configs=variation.candle_configs[:budget['candles']],
            aura_layers=aura_layers,
            shadow_map_size=budget['shadow_map'],
            spotlight_enabled=budget['spotlight'],
            rune_color=rune_color(base_color),
        )
        logger.debug(f"Effects for {variation.identifier!r} at {tier}: "
                     f"{len(bundle.ember_configs)} embers, "
                     f"{len(bundle.candle_configs)} candles, "
                     f"{layer_count} aura layers")
        return bundle


_default_deriver = EffectsDeriver()


def derive_effects(variation: Variation, quality_tier: Optional[str] = None,
                   category: Optional[str] = None,
                   base_color: str = '#a8b2c1') -> EffectsBundle:
    return _default_deriver.derive(variation, quality_tier,
                                   category if category is not None else variation.category,
                                   base_color)
