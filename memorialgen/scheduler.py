"""Per-frame animation state for every mounted marker.

The scheduler owns one ``AnimationState`` per registered marker and hands
out integer indices; renderers read state by index after each ``tick``.
Cheap motion (float, sway, aura height) advances every tick. Everything
else is recomputed only when the instance's accumulator passes its
update interval, which keeps per-frame cost bounded on slow hosts.
"""

import math
import logging
from dataclasses import dataclass, field
from typing import Optional

from .constants import (
    TIER_UPDATE_INTERVALS, REDUCED_MOTION_INTERVAL, HOVER_UPDATE_INTERVAL,
)
from .effects import EffectsBundle, normalize_tier
from .models import Variation

logger = logging.getLogger(__name__)


def base_interval_for(quality_tier: Optional[str], reduced_motion: bool = False) -> float:
    """Seconds between recompute passes for an un-hovered marker.

    Reduced motion never updates more often than 1/32 s, and never more
    often than the tier itself allows.
    """
    interval = TIER_UPDATE_INTERVALS[normalize_tier(quality_tier)]
    if reduced_motion:
        return max(interval, REDUCED_MOTION_INTERVAL)
    return interval


@dataclass
class AnimationState:
    """Mutable per-instance animation outputs."""
    float_offset: float = 0.0
    sway_rotation: float = 0.0
    aura_height: float = 0.0
    aura_opacities: list = field(default_factory=list)
    aura_intensities: list = field(default_factory=list)
    spotlight_intensity: float = 0.0
    ember_positions: list = field(default_factory=list)
    ember_opacities: list = field(default_factory=list)
    candle_intensities: list = field(default_factory=list)
    flame_scales: list = field(default_factory=list)
    flame_heights: list = field(default_factory=list)
    flame_opacities: list = field(default_factory=list)
    accumulator: float = 0.0
    last_update: float = 0.0
    hovered: bool = False
    passes: int = 0


@dataclass
class _Slot:
    variation: Variation
    effects: EffectsBundle
    position_x: float
    state: AnimationState


class UpdateScheduler:
    """Drives animation state for all registered markers."""

    def __init__(self):
        self._slots: list[Optional[_Slot]] = []
        self.elapsed = 0.0

    def register(self, variation: Variation, effects: EffectsBundle,
                 position_x: float = 0.0) -> int:
        slot = _Slot(variation, effects, position_x, AnimationState())
        # Reuse the first free slot so indices stay dense
        index = next((i for i, s in enumerate(self._slots) if s is None), len(self._slots))
        if index == len(self._slots):
            self._slots.append(slot)
        else:
            self._slots[index] = slot
        logger.debug(f"Registered {variation.identifier!r} in slot {index}")
        return index

    def unregister(self, index: int) -> None:
        if 0 <= index < len(self._slots) and self._slots[index] is not None:
            logger.debug(f"Released slot {index} ({self._slots[index].variation.identifier!r})")
            self._slots[index] = None

    def update_effects(self, index: int, effects: EffectsBundle) -> None:
        """Swap in a re-derived bundle, e.g. after a tier change."""
        slot = self._slot(index)
        if slot is not None:
            slot.effects = effects

    def set_hovered(self, index: int, hovered: bool) -> None:
        slot = self._slot(index)
        if slot is not None:
            slot.state.hovered = bool(hovered)

    def state(self, index: int) -> Optional[AnimationState]:
        slot = self._slot(index)
        return slot.state if slot is not None else None

    def active_indices(self) -> list:
        return [i for i, slot in enumerate(self._slots) if slot is not None]

    def __len__(self) -> int:
        return len(self.active_indices())

    def _slot(self, index: int) -> Optional[_Slot]:
        if 0 <= index < len(self._slots):
            return self._slots[index]
        return None

    def tick(self, delta: float, quality_tier: Optional[str] = None,
             reduced_motion: bool = False, day_mode: bool = False) -> int:
        """Advance the clock by *delta* seconds.

        Returns the number of recompute passes run this tick.
        """
        if not math.isfinite(delta) or delta < 0:
            delta = 0.0
        self.elapsed += delta
        t = self.elapsed
        base_interval = base_interval_for(quality_tier, reduced_motion)

        passes = 0
        for slot in self._slots:
            if slot is None:
                continue
            state = slot.state
            self._update_motion(slot, t)

            state.accumulator += delta
            interval = HOVER_UPDATE_INTERVAL if state.hovered else base_interval
            if state.accumulator >= interval:
                state.accumulator = 0.0
                state.last_update = t
                self._recompute(slot, t, reduced_motion, day_mode)
                state.passes += 1
                passes += 1
        return passes

    @staticmethod
    def _update_motion(slot: _Slot, t: float) -> None:
        variation = slot.variation
        state = slot.state
        bob = math.sin(t * 0.4 + variation.float_phase) * 0.08
        state.float_offset = bob + (0.08 if state.hovered else 0.0)
        state.sway_rotation = variation.tilt + math.sin(t * 0.25 + variation.float_phase) * 0.04
        state.aura_height = variation.glow_height + math.sin(t * 0.6) * 0.05

    @staticmethod
    def _recompute(slot: _Slot, t: float, reduced_motion: bool, day_mode: bool) -> None:
        variation = slot.variation
        effects = slot.effects
        state = slot.state
        hovered = state.hovered

        oscillation = 0.03 if reduced_motion else 0.05
        base_opacity = 0.24 if hovered else 0.14
        state.aura_opacities = [base_opacity + math.sin(t * 2.5 + i) * oscillation
                                for i in range(len(effects.aura_layers))]

        light_base = (0.18 if day_mode else 0.42) + (0.6 if hovered else 0.0)
        state.aura_intensities = [light_base + math.sin(t * 3 + i) * oscillation
                                  for i in range(len(effects.aura_layers))]

        if effects.spotlight_enabled:
            base = (0.25 if day_mode else 1.05) + (0.65 if hovered else 0.0)
            flicker = 1 + math.sin(t * 7.5 + slot.position_x) * (0.04 if reduced_motion else 0.08)
            state.spotlight_intensity = base * flicker
        else:
            state.spotlight_intensity = 0.0

        ember_pulse = 0.08 if reduced_motion else 0.15
        positions = []
        opacities = []
        for ember in effects.ember_configs:
            time = t * ember.speed + ember.phase
            positions.append((
                math.sin(time) * ember.orbit_radius,
                ember.height_offset + math.cos(time * 0.8) * 0.2,
                math.cos(time * 0.6) * ember.orbit_radius * 0.6,
            ))
            opacities.append(0.25 + math.sin(time * 4) * ember_pulse)
        state.ember_positions = positions
        state.ember_opacities = opacities

        candle_base = (0.2 if day_mode else 0.38) + (0.22 if hovered else 0.0)
        flame_pulse = 0.08 if reduced_motion else 0.12
        lift = 0.015 if reduced_motion else 0.025
        opacity_pulse = 0.05 if reduced_motion else 0.08
        candles = effects.candle_configs
        state.candle_intensities = [candle_base + math.sin(t * 6.4 + c.phase) * oscillation
                                    for c in candles]
        state.flame_scales = [1 + math.sin(t * 7.8 + c.phase) * flame_pulse for c in candles]
        state.flame_heights = [
            variation.base_height_offset + c.height + 0.1 + math.sin(t * 4.6 + c.phase) * lift
            for c in candles
        ]
        state.flame_opacities = [0.42 + math.sin(t * 6.2 + c.phase) * opacity_pulse
                                 for c in candles]
