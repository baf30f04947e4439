"""MarkerField — thin orchestrator that mounts catalog entries as markers."""

import math
import logging
from dataclasses import dataclass
from typing import Optional

from PIL import Image

from .catalog import CatalogEntry, arrange
from .constants import DEFAULT_QUALITY_TIER, TIER_CHECK_INTERVAL
from .effects import EffectsDeriver, EffectsBundle, normalize_tier
from .geometry import GeometryAsset, build_marker_geometry, build_plinth
from .models import Variation
from .performance import FrameRateMonitor
from .scheduler import UpdateScheduler, AnimationState
from .textures import (
    TextureCache, TextureAsset, granite_key, render_inscription, stone_color,
)
from .variation import VariationCache

logger = logging.getLogger(__name__)


@dataclass
class MountedMarker:
    """Everything a renderer needs for one visible marker."""
    entry: CatalogEntry
    position: tuple
    variation: Variation
    geometry: GeometryAsset
    plinth: GeometryAsset
    effects: EffectsBundle
    texture: Optional[TextureAsset]
    slot: int
    # Name plate on the front face, centred at (0, inscription_y_offset)
    inscription: Optional[Image.Image] = None
    inscription_size: tuple = (0.0, 0.0)
    inscription_y_offset: float = 0.0

    @property
    def texture_key(self) -> Optional[str]:
        return self.texture.key if self.texture is not None else None


class MarkerField:
    def __init__(self, quality_tier: Optional[str] = None, reduced_motion: bool = False,
                 day_mode: bool = False, texture_cache: Optional[TextureCache] = None,
                 deriver: Optional[EffectsDeriver] = None,
                 monitor: Optional[FrameRateMonitor] = None):
        """
        quality_tier: initial tier; defaults to MEMORIALGEN_QUALITY_TIER.
        texture_cache: shared cache; a fresh one is created when omitted.
        monitor: when given, the tier follows the measured frame rate,
            re-evaluated every TIER_CHECK_INTERVAL seconds of ticks.
        """
        self.quality_tier = normalize_tier(quality_tier or DEFAULT_QUALITY_TIER)
        self.reduced_motion = reduced_motion
        self.day_mode = day_mode
        self.variations = VariationCache()
        self.textures = texture_cache if texture_cache is not None else TextureCache()
        self.deriver = deriver or EffectsDeriver()
        self.scheduler = UpdateScheduler()
        self.monitor = monitor
        self._since_tier_check = 0.0
        self.markers: dict[str, MountedMarker] = {}

    def mount(self, entry: CatalogEntry, position: Optional[tuple] = None) -> MountedMarker:
        """Mount *entry*, replacing any marker already mounted under its identifier."""
        if entry.identifier in self.markers:
            self.unmount(entry.identifier)

        if position is None:
            position = (entry.position.x, 0.0, entry.position.z)

        variation = self.variations.get(entry.identifier, entry.category,
                                        entry.style_preference)
        geometry = build_marker_geometry(variation)
        plinth = build_plinth(variation)
        effects = self.deriver.derive(variation, self.quality_tier,
                                      entry.category, entry.base_color)
        texture = self.textures.synthesize(granite_key(entry.identifier, self.day_mode),
                                           stone_color(self.day_mode))
        inscription = render_inscription(entry.display_name, entry.handle,
                                         raster_enabled=self.textures.raster_enabled)
        slot = self.scheduler.register(variation, effects, position[0])

        marker = MountedMarker(entry=entry, position=position, variation=variation,
                               geometry=geometry, plinth=plinth, effects=effects,
                               texture=texture, slot=slot, inscription=inscription,
                               inscription_size=variation.inscription_size,
                               inscription_y_offset=variation.inscription_y_offset)
        self.markers[entry.identifier] = marker
        logger.info(f"Mounted {entry.identifier!r} as {variation.shape_archetype} "
                    f"({len(geometry.faces)} faces) in slot {slot}")
        return marker

    def mount_all(self, entries) -> list:
        return [self.mount(p.entry, p.position) for p in arrange(entries)]

    def unmount(self, identifier: str) -> None:
        marker = self.markers.pop(identifier, None)
        if marker is None:
            return
        self.scheduler.unregister(marker.slot)
        self.variations.discard(identifier)
        self._release_texture(marker.texture_key)
        if marker.inscription is not None:
            marker.inscription.close()
        logger.info(f"Unmounted {identifier!r}")

    def _release_texture(self, key: Optional[str]) -> None:
        """Drop *key* from the cache unless a mounted marker still uses it."""
        if key is None:
            return
        if any(m.texture_key == key for m in self.markers.values()):
            return
        self.textures.release(key)

    def set_hovered(self, identifier: str, hovered: bool) -> None:
        marker = self.markers.get(identifier)
        if marker is not None:
            self.scheduler.set_hovered(marker.slot, hovered)

    def set_settings(self, quality_tier: Optional[str] = None,
                     reduced_motion: Optional[bool] = None,
                     day_mode: Optional[bool] = None) -> None:
        """Update live settings; effects and textures follow on change."""
        if quality_tier is not None:
            tier = normalize_tier(quality_tier)
            if tier != self.quality_tier:
                logger.info(f"Quality tier {self.quality_tier} -> {tier}")
                self.quality_tier = tier
                for marker in self.markers.values():
                    marker.effects = self.deriver.derive(
                        marker.variation, tier, marker.entry.category, marker.entry.base_color)
                    self.scheduler.update_effects(marker.slot, marker.effects)

        if reduced_motion is not None:
            self.reduced_motion = reduced_motion

        if day_mode is not None and day_mode != self.day_mode:
            self.day_mode = day_mode
            stale = set()
            for marker in self.markers.values():
                if marker.texture_key is not None:
                    stale.add(marker.texture_key)
                marker.texture = self.textures.synthesize(
                    granite_key(marker.entry.identifier, day_mode), stone_color(day_mode))
            for key in stale:
                self._release_texture(key)

    def tick(self, delta: float) -> int:
        if self.monitor is not None:
            self._follow_frame_rate(delta)
        return self.scheduler.tick(delta, self.quality_tier,
                                   self.reduced_motion, self.day_mode)

    def _follow_frame_rate(self, delta: float) -> None:
        self.monitor.record(delta)
        if math.isfinite(delta) and delta > 0:
            self._since_tier_check += delta
        if self._since_tier_check >= TIER_CHECK_INTERVAL:
            self._since_tier_check = 0.0
            tier = self.monitor.quality_tier()
            if tier != self.quality_tier:
                logger.info(f"Measured {self.monitor.average_fps():.1f} FPS, "
                            f"switching to {tier}")
            self.set_settings(quality_tier=tier)

    def state(self, identifier: str) -> Optional[AnimationState]:
        marker = self.markers.get(identifier)
        return self.scheduler.state(marker.slot) if marker is not None else None

    def close(self) -> None:
        for identifier in list(self.markers):
            self.unmount(identifier)
        self.textures.release_all()
