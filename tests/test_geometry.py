import unittest

import numpy as np

from memorialgen.constants import ARCHETYPE_DIMENSIONS
from memorialgen.geometry import (
    CompositeShape, ProfileShape, PrimitiveSpec,
    build_marker_geometry, build_mesh, build_plinth, build_primitive,
    build_shape, rect_tablet_profile, shape_definition,
)
from memorialgen.models import Dimensions
from memorialgen.variation import generate


class TestMarkerGeometry(unittest.TestCase):
    def _assert_centred(self, asset) -> None:
        (min_x, min_y, min_z), (max_x, max_y, max_z) = asset.bounds
        self.assertAlmostEqual(min_y, 0.0, places=9)
        self.assertAlmostEqual(min_x + max_x, 0.0, places=9)
        self.assertAlmostEqual(min_z + max_z, 0.0, places=9)
        self.assertGreater(max_y, 0.0)

    def test_every_archetype_is_closed_and_centred(self) -> None:
        for archetype in list(ARCHETYPE_DIMENSIONS) + ["pyramid"]:
            with self.subTest(archetype=archetype):
                v = generate(f"geo-{archetype}", style_hint=archetype)
                asset = build_marker_geometry(v)
                self.assertTrue(asset.is_closed)
                self._assert_centred(asset)
                self.assertEqual(asset.positions.shape, asset.normals.shape)
                self.assertEqual(asset.faces.max(), len(asset.positions) - 1)

    def test_profile_and_composite_dispatch(self) -> None:
        dims = Dimensions(1.4, 2.2, 0.3)
        self.assertIsInstance(shape_definition("gothic", dims), ProfileShape)
        self.assertIsInstance(shape_definition("obelisk", dims), CompositeShape)
        fallback = shape_definition("pyramid", dims)
        self.assertIsInstance(fallback, CompositeShape)
        self.assertEqual(len(fallback.parts), 1)
        self.assertEqual(fallback.parts[0].kind, "box")

    def test_bevel_adds_width_and_depth(self) -> None:
        mesh = build_mesh(rect_tablet_profile(1.0, 2.0), 0.3, 0.05)
        extents = mesh.extents
        self.assertAlmostEqual(extents[0], 1.1, places=6)
        self.assertAlmostEqual(extents[1], 2.1, places=6)
        self.assertAlmostEqual(extents[2], 0.3 + 2 * 0.05 * 0.9, places=6)

    def test_vertex_normals_are_unit_length(self) -> None:
        asset = build_marker_geometry(generate("normals", style_hint="rounded"))
        lengths = np.linalg.norm(asset.normals, axis=1)
        np.testing.assert_allclose(lengths, 1.0, atol=1e-6)

    def test_cone_primitive_points_outward(self) -> None:
        cone = build_primitive(PrimitiveSpec("cone", (0.4, 0.6), (0.0, 1.0, 0.0), sections=5))
        self.assertTrue(cone.is_watertight)
        self.assertGreater(cone.volume, 0.0)

    def test_composite_parts_recentred_together(self) -> None:
        parts = (PrimitiveSpec("box", (1.0, 1.0, 1.0), (3.0, 5.0, 1.0)),
                 PrimitiveSpec("box", (0.5, 0.5, 0.5), (3.0, 5.75, 1.0)))
        asset = build_shape(CompositeShape(parts))
        self._assert_centred(asset)
        self.assertAlmostEqual(asset.bounds[1][1], 1.5, places=9)

    def test_plinth_is_wider_than_stone(self) -> None:
        v = generate("plinth-check", style_hint="tablet")
        plinth = build_plinth(v)
        self.assertTrue(plinth.is_closed)
        self.assertGreater(plinth.mesh.extents[0], v.dimensions.width + 0.6)
        self.assertAlmostEqual(plinth.bounds[0][1], 0.0, places=9)


if __name__ == "__main__":
    unittest.main()
