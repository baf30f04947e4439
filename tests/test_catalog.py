import json
import math
import pathlib
import tempfile
import unittest

from memorialgen.catalog import arrange, load_catalog, parse_catalog

ENTRIES = [
    {"identifier": "alpha-1", "category": "twitter", "base_color": "#7FB4FF",
     "display_name": "Alpha", "handle": "@alpha", "position": {"x": 0.0, "z": 0.0}},
    {"identifier": "beta-2", "category": "github", "style_preference": "obelisk",
     "display_name": "Beta", "handle": "@beta", "position": {"x": 4.0, "z": -6.0}},
    {"identifier": "gamma-3", "category": "myspace",
     "position": {"x": -4.0, "z": 6.0}},
]


class TestParseCatalog(unittest.TestCase):
    def test_list_and_profiles_object(self) -> None:
        self.assertEqual(len(parse_catalog(ENTRIES)), 3)
        entries = parse_catalog({"profiles": ENTRIES})
        self.assertEqual(entries[1].style_preference, "obelisk")
        self.assertIsNone(entries[0].style_preference)

    def test_invalid_entry_named_in_error(self) -> None:
        bad = ENTRIES + [{"identifier": "broken", "position": {"x": "left"}}]
        with self.assertRaises(ValueError) as ctx:
            parse_catalog(bad)
        self.assertIn("broken", str(ctx.exception))

    def test_wrong_top_level_type(self) -> None:
        with self.assertRaises(ValueError):
            parse_catalog("profiles")

    def test_load_catalog(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = pathlib.Path(tmp) / "catalog.json"
            path.write_text(json.dumps(ENTRIES), encoding="utf-8")
            self.assertEqual([e.identifier for e in load_catalog(path)],
                             ["alpha-1", "beta-2", "gamma-3"])

    def test_load_catalog_bad_json(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = pathlib.Path(tmp) / "catalog.json"
            path.write_text("{not json", encoding="utf-8")
            with self.assertRaises(ValueError):
                load_catalog(path)


class TestArrange(unittest.TestCase):
    def test_sorted_by_depth(self) -> None:
        placements = arrange(parse_catalog(ENTRIES))
        depths = [p.position[2] for p in placements]
        self.assertEqual(depths, sorted(depths))
        self.assertEqual(placements[0].entry.identifier, "beta-2")

    def test_jitter_formula(self) -> None:
        entries = parse_catalog(ENTRIES)
        placements = {p.entry.identifier: p.position for p in arrange(entries)}
        self.assertEqual(placements["alpha-1"], (0.0, 0.1, 0.0))
        x, y, z = placements["beta-2"]
        self.assertAlmostEqual(x, 4.0 + math.sin(-6.0 * 0.18 + 0.37) * 1.4)
        self.assertAlmostEqual(z, -6.0 + math.sin(4.0 * 0.15 + 0.22) * 0.9)
        self.assertEqual(y, 0.1)


if __name__ == "__main__":
    unittest.main()
