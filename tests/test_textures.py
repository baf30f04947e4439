import threading
import unittest

from memorialgen.textures import (
    TextureCache, granite_key, normalize_color, render_granite,
    render_inscription, stone_color,
)


class TestGraniteKey(unittest.TestCase):
    def test_key_includes_lighting_mode(self) -> None:
        self.assertEqual(granite_key("alpha-1", True), "alpha-1-day")
        self.assertEqual(granite_key("alpha-1", False), "alpha-1-night")

    def test_stone_palette(self) -> None:
        self.assertEqual(stone_color(True), "#a8b2c1")
        self.assertEqual(stone_color(False), "#3a4558")

    def test_normalize_color(self) -> None:
        self.assertEqual(normalize_color("#3a4558"), (58, 69, 88))
        self.assertEqual(normalize_color((58, 69, 88, 255)), (58, 69, 88))


class TestTextureCache(unittest.TestCase):
    def setUp(self) -> None:
        self.cache = TextureCache(raster_enabled=True, size=64)

    def tearDown(self) -> None:
        self.cache.release_all()

    def test_headless_returns_none(self) -> None:
        cache = TextureCache(raster_enabled=False)
        self.assertIsNone(cache.synthesize("alpha-1-night", "#3a4558"))
        self.assertEqual(len(cache), 0)

    def test_raster_shapes(self) -> None:
        asset = self.cache.synthesize("alpha-1-night", "#3a4558")
        self.assertEqual(asset.albedo.size, (64, 64))
        self.assertEqual(asset.albedo.mode, "RGB")
        self.assertEqual(asset.roughness.mode, "L")

    def test_same_key_and_colour_hits_cache(self) -> None:
        first = self.cache.synthesize("alpha-1-night", "#3a4558")
        second = self.cache.synthesize("alpha-1-night", (58, 69, 88))
        self.assertIs(first, second)
        self.assertEqual(self.cache.builds, 1)

    def test_colour_change_rebuilds(self) -> None:
        first = self.cache.synthesize("alpha-1-night", "#3a4558")
        second = self.cache.synthesize("alpha-1-night", "#a8b2c1")
        self.assertIsNot(first, second)
        self.assertEqual(second.color, (168, 178, 193))
        self.assertIs(self.cache.get("alpha-1-night"), second)
        # Previous rasters were closed when replaced
        with self.assertRaises(ValueError):
            first.albedo.load()
        with self.assertRaises(ValueError):
            first.roughness.load()
        self.assertEqual(self.cache.builds, 2)
        self.assertEqual(len(self.cache), 1)

    def test_content_reproducible_per_key(self) -> None:
        a_albedo, a_rough = render_granite("beta-day", (168, 178, 193), 64)
        b_albedo, b_rough = render_granite("beta-day", (168, 178, 193), 64)
        self.assertEqual(a_albedo.tobytes(), b_albedo.tobytes())
        self.assertEqual(a_rough.tobytes(), b_rough.tobytes())
        c_albedo, _ = render_granite("gamma-day", (168, 178, 193), 64)
        self.assertNotEqual(a_albedo.tobytes(), c_albedo.tobytes())

    def test_concurrent_callers_build_once(self) -> None:
        results = []

        def worker():
            results.append(self.cache.synthesize("shared-night", "#3a4558"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        self.assertEqual(self.cache.builds, 1)
        self.assertTrue(all(r is results[0] for r in results))

    def test_release(self) -> None:
        self.cache.synthesize("one-day", "#a8b2c1")
        self.cache.synthesize("two-day", "#a8b2c1")
        self.cache.release("one-day")
        self.assertNotIn("one-day", self.cache)
        self.cache.release_all()
        self.assertEqual(len(self.cache), 0)


class TestInscription(unittest.TestCase):
    def test_headless_returns_none(self) -> None:
        self.assertIsNone(render_inscription("Alpha", "@alpha", raster_enabled=False))

    def test_plate_size(self) -> None:
        image = render_inscription("Alpha", "@alpha", raster_enabled=True)
        self.assertEqual(image.size, (512, 256))
        self.assertEqual(image.mode, "RGBA")
        self.assertIsNotNone(image.getbbox())


if __name__ == "__main__":
    unittest.main()
