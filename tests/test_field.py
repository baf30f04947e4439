import unittest

from memorialgen.catalog import parse_catalog
from memorialgen.field import MarkerField
from memorialgen.performance import FrameRateMonitor
from memorialgen.textures import TextureCache

ENTRIES = parse_catalog([
    {"identifier": "alpha-1", "category": "twitter", "base_color": "#7FB4FF",
     "display_name": "Alpha", "handle": "@alpha", "position": {"x": 0.0, "z": 0.0}},
    {"identifier": "beta-2", "category": "github", "style_preference": "obelisk",
     "base_color": "#9FB3C8", "position": {"x": 4.0, "z": -6.0}},
])


class TestMarkerField(unittest.TestCase):
    def setUp(self) -> None:
        self.field = MarkerField(quality_tier="high",
                                 texture_cache=TextureCache(raster_enabled=False))

    def tearDown(self) -> None:
        self.field.close()

    def test_mount_all(self) -> None:
        markers = self.field.mount_all(ENTRIES)
        self.assertEqual(len(markers), 2)
        beta = self.field.markers["beta-2"]
        self.assertEqual(beta.variation.shape_archetype, "obelisk")
        self.assertTrue(beta.geometry.is_closed)
        self.assertIsNone(beta.texture)
        self.assertEqual(len(beta.effects.ember_configs), 8)
        self.assertEqual(len(self.field.scheduler), 2)

    def test_unmount_releases_everything(self) -> None:
        self.field.mount_all(ENTRIES)
        slot = self.field.markers["alpha-1"].slot
        self.field.unmount("alpha-1")
        self.assertNotIn("alpha-1", self.field.markers)
        self.assertNotIn("alpha-1", self.field.variations)
        self.assertIsNone(self.field.scheduler.state(slot))
        self.field.unmount("alpha-1")

    def test_remount_replaces(self) -> None:
        self.field.mount(ENTRIES[0])
        self.field.mount(ENTRIES[0])
        self.assertEqual(len(self.field.scheduler), 1)

    def test_tier_change_rederives_effects(self) -> None:
        self.field.mount_all(ENTRIES)
        self.field.set_settings(quality_tier="low")
        for marker in self.field.markers.values():
            self.assertEqual(marker.effects.tier, "low")
            self.assertEqual(len(marker.effects.ember_configs), 0)
        self.field.tick(1 / 20)
        state = self.field.state("alpha-1")
        self.assertEqual(state.ember_positions, [])
        self.assertEqual(state.spotlight_intensity, 0.0)

    def test_tick_and_hover(self) -> None:
        self.field.mount_all(ENTRIES)
        self.field.set_hovered("alpha-1", True)
        self.assertEqual(self.field.tick(1 / 60), 1)
        self.assertEqual(self.field.tick(1 / 60), 2)
        self.assertIsNone(self.field.state("missing"))


class TestMarkerFieldTextures(unittest.TestCase):
    def test_day_switch_rekeys_textures(self) -> None:
        cache = TextureCache(raster_enabled=True, size=32)
        field = MarkerField(quality_tier="medium", texture_cache=cache)
        try:
            marker = field.mount(ENTRIES[0])
            self.assertEqual(marker.texture.key, "alpha-1-night")
            field.set_settings(day_mode=True)
            self.assertEqual(marker.texture.key, "alpha-1-day")
            self.assertEqual(marker.texture.color, (168, 178, 193))
            self.assertEqual(len(cache), 1)
            self.assertNotIn("alpha-1-night", cache)
        finally:
            field.close()
        self.assertEqual(len(cache), 0)


class TestMarkerFieldResources(unittest.TestCase):
    def setUp(self) -> None:
        self.cache = TextureCache(raster_enabled=True, size=16)
        self.field = MarkerField(quality_tier="low", texture_cache=self.cache)

    def tearDown(self) -> None:
        self.field.close()

    def test_mount_unmount_churn_leaves_cache_empty(self) -> None:
        for i in range(20):
            entry = ENTRIES[0].model_copy(update={"identifier": f"churn-{i}"})
            self.field.mount(entry)
            self.assertEqual(len(self.cache), 1)
            self.field.unmount(entry.identifier)
        self.assertEqual(len(self.field.markers), 0)
        self.assertEqual(len(self.cache), 0)

    def test_day_night_toggling_keeps_one_key_per_marker(self) -> None:
        self.field.mount_all(ENTRIES)
        for day in (True, False, True, False):
            self.field.set_settings(day_mode=day)
        self.assertEqual(len(self.cache), 2)
        self.assertIn("alpha-1-night", self.cache)
        self.assertIn("beta-2-night", self.cache)

    def test_inscription_attached_and_released(self) -> None:
        marker = self.field.mount(ENTRIES[0])
        self.assertEqual(marker.inscription.size, (512, 256))
        self.assertEqual(marker.inscription_size, marker.variation.inscription_size)
        self.assertEqual(marker.inscription_y_offset, marker.variation.inscription_y_offset)
        self.field.unmount("alpha-1")
        with self.assertRaises(ValueError):
            marker.inscription.load()

    def test_headless_field_has_no_inscription(self) -> None:
        field = MarkerField(texture_cache=TextureCache(raster_enabled=False))
        try:
            marker = field.mount(ENTRIES[1])
            self.assertIsNone(marker.inscription)
            self.assertIsNone(marker.texture_key)
        finally:
            field.close()


class TestMarkerFieldFrameRate(unittest.TestCase):
    def test_tier_follows_measured_frame_rate(self) -> None:
        field = MarkerField(quality_tier="high", monitor=FrameRateMonitor(),
                            texture_cache=TextureCache(raster_enabled=False))
        try:
            field.mount_all(ENTRIES)
            # Checked every two seconds, so a short slow spell changes nothing
            for _ in range(10):
                field.tick(1 / 20)
            self.assertEqual(field.quality_tier, "high")
            for _ in range(35):
                field.tick(1 / 20)
            self.assertEqual(field.quality_tier, "low")
            for marker in field.markers.values():
                self.assertEqual(marker.effects.tier, "low")
        finally:
            field.close()

    def test_without_monitor_tier_is_fixed(self) -> None:
        field = MarkerField(quality_tier="high",
                            texture_cache=TextureCache(raster_enabled=False))
        try:
            for _ in range(100):
                field.tick(1 / 20)
            self.assertEqual(field.quality_tier, "high")
        finally:
            field.close()


if __name__ == "__main__":
    unittest.main()
