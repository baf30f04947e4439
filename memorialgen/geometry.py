"""Marker silhouettes, bevelled extrusion, and composite primitives.

Coordinates are Y-up: profiles live in the XY plane (x across the stone,
y up) and are extruded along +Z. Every built shape is recentred so its
bounding box is centred on X/Z and sits on Y = 0.
"""

import math
import logging
from dataclasses import dataclass, field
from typing import Union

import numpy as np
import trimesh
from shapely.geometry import Polygon
from shapely.geometry.polygon import orient

from .models import Dimensions, Variation

logger = logging.getLogger(__name__)

BEVEL_SEGMENTS = 2
BEVEL_THICKNESS_RATIO = 0.9
ARCH_SEGMENTS = 28
# Cap on mitre length so needle-sharp corners don't spike outward
MAX_MITER = 3.0


# ── Shape definitions ───────────────────────────────────────────────────

@dataclass(frozen=True)
class ProfileShape:
    """Closed 2D outline extruded along Z with a bevel."""
    points: tuple
    depth: float
    bevel_size: float


@dataclass(frozen=True)
class PrimitiveSpec:
    """One closed primitive of a composite marker.

    ``size`` is (width, height, depth) for a box and (radius, height) for a
    cone; ``center`` is the primitive's mid-point in marker space.
    """
    kind: str
    size: tuple
    center: tuple = (0.0, 0.0, 0.0)
    rotation_z: float = 0.0
    sections: int = 4


@dataclass(frozen=True)
class CompositeShape:
    parts: tuple


ShapeDefinition = Union[ProfileShape, CompositeShape]


@dataclass
class GeometryAsset:
    """Meshes owned by one marker instance."""
    archetype: str
    parts: list = field(default_factory=list)

    @property
    def mesh(self) -> trimesh.Trimesh:
        if len(self.parts) == 1:
            return self.parts[0]
        return trimesh.util.concatenate(self.parts)

    @property
    def positions(self) -> np.ndarray:
        return np.vstack([p.vertices for p in self.parts])

    @property
    def normals(self) -> np.ndarray:
        return np.vstack([p.vertex_normals for p in self.parts])

    @property
    def faces(self) -> np.ndarray:
        out = []
        offset = 0
        for p in self.parts:
            out.append(np.asarray(p.faces) + offset)
            offset += len(p.vertices)
        return np.vstack(out)

    @property
    def bounds(self) -> np.ndarray:
        return _combined_bounds(self.parts)

    @property
    def is_closed(self) -> bool:
        """True when every part is a closed, consistently wound surface."""
        return all(p.is_watertight and p.is_winding_consistent for p in self.parts)


# ── Profile constructors ────────────────────────────────────────────────

def arched_tablet_profile(width: float, height: float) -> list:
    """Rectangle with a half-ellipse arch over the top third."""
    arch_height = height * 0.32
    half_w = width / 2
    body_height = height - arch_height
    points = [(-half_w, -height / 2), (-half_w, -height / 2 + body_height)]
    for i in range(ARCH_SEGMENTS + 1):
        t = i / ARCH_SEGMENTS
        angle = math.pi * (1 - t)
        x = math.cos(angle) * half_w
        y = -height / 2 + body_height + math.sin(angle) * arch_height
        points.append((x, y))
    points.append((half_w, -height / 2))
    return points


def rect_tablet_profile(width: float, height: float) -> list:
    half_w = width / 2
    half_h = height / 2
    return [(-half_w, -half_h), (-half_w, half_h), (half_w, half_h), (half_w, -half_h)]


def footstone_profile(width: float, height: float) -> list:
    # Same outline as a tablet; footstones differ in proportions and bevel.
    return rect_tablet_profile(width, height)


def gothic_profile(width: float, height: float) -> list:
    """Upright slab rising to a pointed arch."""
    half_w = width / 2
    half_h = height / 2
    shoulder = height * 0.55 - half_h
    tip_height = height - (shoulder + half_h)
    return [
        (-half_w, -half_h),
        (-half_w, shoulder),
        (-half_w * 0.4, shoulder + tip_height * 0.6),
        (0.0, half_h),
        (half_w * 0.4, shoulder + tip_height * 0.6),
        (half_w, shoulder),
        (half_w, -half_h),
    ]


def angular_profile(width: float, height: float) -> list:
    """Slab with an asymmetric peaked top."""
    half_w = width / 2
    half_h = height / 2
    slope_start = half_h * 0.2
    return [
        (-half_w, -half_h),
        (-half_w, slope_start),
        (0.0, half_h),
        (half_w, slope_start * 0.85),
        (half_w, -half_h),
    ]


def cross_profile(width: float, height: float) -> list:
    half_w = width / 2
    half_h = height / 2
    arm_h = height * 0.2
    arm_w = width * 0.65
    return [
        (-arm_w / 2, -half_h),
        (-arm_w / 2, -arm_h / 2),
        (-half_w, -arm_h / 2),
        (-half_w, arm_h / 2),
        (-arm_w / 2, arm_h / 2),
        (-arm_w / 2, half_h),
        (arm_w / 2, half_h),
        (arm_w / 2, arm_h / 2),
        (half_w, arm_h / 2),
        (half_w, -arm_h / 2),
        (arm_w / 2, -arm_h / 2),
        (arm_w / 2, -half_h),
    ]


# archetype → (profile constructor, height scale, bevel as fraction of width)
PROFILE_ARCHETYPES = {
    'rounded':   (arched_tablet_profile, 1.0, 0.035),
    'curved':    (arched_tablet_profile, 1.05, 0.035),
    'tablet':    (rect_tablet_profile, 1.0, 0.03),
    'wide':      (rect_tablet_profile, 1.0, 0.03),
    'footstone': (footstone_profile, 0.85, 0.025),
    'gothic':    (gothic_profile, 1.0, 0.03),
    'angular':   (angular_profile, 1.0, 0.03),
    'cross':     (cross_profile, 1.0, 0.025),
}


# ── Composite constructors ──────────────────────────────────────────────

def _obelisk_parts(w, h, d):
    return (
        PrimitiveSpec('box', (w * 0.9, h * 0.44, d * 0.9), (0.0, h * 0.22, 0.0)),
        PrimitiveSpec('box', (w * 0.65, h * 0.46, d * 0.65), (0.0, h * 0.62, 0.0)),
        PrimitiveSpec('cone', (w * 0.35, h * 0.3), (0.0, h * 0.96, 0.0), sections=5),
    )


def _stepped_parts(w, h, d):
    return (
        PrimitiveSpec('box', (w * 0.95, h * 0.4, d * 0.95), (0.0, h * 0.2, 0.0)),
        PrimitiveSpec('box', (w * 0.78, h * 0.32, d * 0.82), (0.0, h * 0.48, 0.0)),
        PrimitiveSpec('box', (w * 0.58, h * 0.28, d * 0.7), (0.0, h * 0.72, 0.0)),
    )


def _modern_parts(w, h, d):
    return (
        PrimitiveSpec('box', (w, h * 0.6, d), (0.0, h * 0.35, 0.0)),
        PrimitiveSpec('box', (w * 0.85, h * 0.35, d * 0.92), (0.0, h * 0.75, 0.0),
                      rotation_z=-0.12),
    )


COMPOSITE_ARCHETYPES = {
    'obelisk': _obelisk_parts,
    'stepped': _stepped_parts,
    'modern':  _modern_parts,
}


def shape_definition(archetype: str, dimensions: Dimensions) -> ShapeDefinition:
    """Pick the profile or composite construction for *archetype*.

    Archetypes with neither rule fall back to a single plain box.
    """
    w, h, d = dimensions.width, dimensions.height, dimensions.depth
    if archetype in PROFILE_ARCHETYPES:
        builder, height_scale, bevel_ratio = PROFILE_ARCHETYPES[archetype]
        points = builder(w, h * height_scale)
        return ProfileShape(tuple(points), d, w * bevel_ratio)
    if archetype in COMPOSITE_ARCHETYPES:
        return CompositeShape(COMPOSITE_ARCHETYPES[archetype](w, h, d))
    return CompositeShape((PrimitiveSpec('box', (w, h, d)),))


# ── Bevelled extrusion ──────────────────────────────────────────────────

def _clean_contour(points) -> np.ndarray:
    """Drop repeated points and orient the outline counter-clockwise."""
    kept = []
    for x, y in points:
        if kept and abs(x - kept[-1][0]) < 1e-9 and abs(y - kept[-1][1]) < 1e-9:
            continue
        kept.append((float(x), float(y)))
    if len(kept) > 1 and abs(kept[0][0] - kept[-1][0]) < 1e-9 \
            and abs(kept[0][1] - kept[-1][1]) < 1e-9:
        kept.pop()
    poly = orient(Polygon(kept), sign=1.0)
    return np.array(poly.exterior.coords[:-1], dtype=np.float64)


def _bevel_vectors(contour: np.ndarray) -> np.ndarray:
    """Mitred outward offset direction per vertex (unit distance to both edges)."""
    prev_pts = np.roll(contour, 1, axis=0)
    next_pts = np.roll(contour, -1, axis=0)
    e_in = contour - prev_pts
    e_out = next_pts - contour
    e_in /= np.linalg.norm(e_in, axis=1)[:, None]
    e_out /= np.linalg.norm(e_out, axis=1)[:, None]
    # Outward normal of a CCW edge (dx, dy) is (dy, -dx)
    n_in = np.column_stack([e_in[:, 1], -e_in[:, 0]])
    n_out = np.column_stack([e_out[:, 1], -e_out[:, 0]])
    denom = np.maximum(1.0 + np.sum(n_in * n_out, axis=1), 1e-6)
    vec = (n_in + n_out) / denom[:, None]
    length = np.linalg.norm(vec, axis=1)
    too_long = length > MAX_MITER
    vec[too_long] *= (MAX_MITER / length[too_long])[:, None]
    return vec


def _cap_faces(contour: np.ndarray) -> np.ndarray:
    """Earcut-triangulate the outline, indexed into *contour*, wound CCW."""
    verts_2d, faces = trimesh.creation.triangulate_polygon(
        Polygon(contour), engine='earcut')
    # Map triangulation vertices (may repeat the closing point) back to
    # contour indices.
    dist = np.linalg.norm(verts_2d[:, None, :] - contour[None, :, :], axis=2)
    faces = np.argmin(dist, axis=1)[faces]
    a, b, c = contour[faces[:, 0]], contour[faces[:, 1]], contour[faces[:, 2]]
    signed = ((b[:, 0] - a[:, 0]) * (c[:, 1] - a[:, 1])
              - (b[:, 1] - a[:, 1]) * (c[:, 0] - a[:, 0]))
    faces[signed < 0] = faces[signed < 0][:, [0, 2, 1]]
    return faces


def _ring_layout(depth: float, bevel_size: float) -> list:
    """(z, offset) per ring from the front cap to the back cap."""
    if bevel_size <= 0:
        return [(0.0, 0.0), (depth, 0.0)]
    thickness = bevel_size * BEVEL_THICKNESS_RATIO
    front = []
    for b in range(BEVEL_SEGMENTS + 1):
        t = b / BEVEL_SEGMENTS
        front.append((-thickness * math.cos(t * math.pi / 2),
                      bevel_size * math.sin(t * math.pi / 2)))
    back = [(depth - z, offset) for z, offset in reversed(front)]
    return front + back


def recenter(meshes) -> np.ndarray:
    """Translate meshes together: centred on X/Z, bottom on Y = 0."""
    bounds = _combined_bounds(meshes)
    (min_x, min_y, min_z), (max_x, _, max_z) = bounds
    offset = np.array([-(min_x + max_x) / 2, -min_y, -(min_z + max_z) / 2])
    for mesh in meshes:
        mesh.apply_translation(offset)
    return offset


def _combined_bounds(meshes) -> np.ndarray:
    stacked = np.vstack([m.bounds for m in meshes])
    return np.array([stacked.min(axis=0), stacked.max(axis=0)])


def build_mesh(profile_points, depth: float, bevel_size: float) -> trimesh.Trimesh:
    """Extrude a closed 2D profile along +Z with a two-segment bevel.

    The bevel grows outward from the profile by *bevel_size* and adds
    ``0.9 * bevel_size`` of thickness in front of and behind the slab.
    The result is a single closed mesh, recentred, with vertex normals
    recomputed from the adjacent faces.
    """
    contour = _clean_contour(profile_points)
    n = len(contour)
    bevel = _bevel_vectors(contour)

    rings = []
    for z, offset in _ring_layout(depth, bevel_size):
        ring_xy = contour + bevel * offset
        rings.append(np.column_stack([ring_xy, np.full(n, z)]))
    vertices = np.vstack(rings)
    n_rings = len(rings)

    # Side walls between consecutive rings
    i = np.arange(n)
    j = (i + 1) % n
    side = []
    for k in range(n_rings - 1):
        a_i, a_j = k * n + i, k * n + j
        b_i, b_j = (k + 1) * n + i, (k + 1) * n + j
        side.append(np.column_stack([a_i, a_j, b_j]))
        side.append(np.column_stack([a_i, b_j, b_i]))

    # Front cap faces -Z, back cap faces +Z
    cap = _cap_faces(contour)
    front_cap = cap[:, [0, 2, 1]]
    back_cap = cap + (n_rings - 1) * n

    faces = np.vstack(side + [front_cap, back_cap])
    mesh = trimesh.Trimesh(vertices=vertices, faces=faces, process=False)
    recenter([mesh])
    mesh.vertex_normals = trimesh.geometry.mean_vertex_normals(
        len(mesh.vertices), mesh.faces, mesh.face_normals)
    logger.debug(f"Extruded profile: {n} pts, {len(mesh.vertices)} verts, "
                 f"{len(mesh.faces)} faces")
    return mesh


# ── Primitives ──────────────────────────────────────────────────────────

def _make_tapered_prism(y_bot, y_top, r_bot, r_top, nsides=8, rotation=0.0):
    """Create a closed frustum (or cone when *r_top* is 0) around the Y axis.

    Returns (verts, faces) with outward winding.
    """
    verts = []
    faces = []

    for i in range(nsides):
        angle = 2.0 * math.pi * i / nsides + rotation
        verts.append([r_bot * math.cos(angle), y_bot, r_bot * math.sin(angle)])

    if r_top > 0:
        for i in range(nsides):
            angle = 2.0 * math.pi * i / nsides + rotation
            verts.append([r_top * math.cos(angle), y_top, r_top * math.sin(angle)])
        for i in range(nsides):
            j = (i + 1) % nsides
            b0, b1 = i, j
            t0, t1 = nsides + i, nsides + j
            faces.append([b0, t1, b1])
            faces.append([b0, t0, t1])
        ctop = len(verts)
        verts.append([0.0, y_top, 0.0])
        for i in range(nsides):
            j = (i + 1) % nsides
            faces.append([ctop, nsides + j, nsides + i])
    else:
        apex = len(verts)
        verts.append([0.0, y_top, 0.0])
        for i in range(nsides):
            j = (i + 1) % nsides
            faces.append([i, apex, j])

    # Bottom cap (fan from centre)
    cbot = len(verts)
    verts.append([0.0, y_bot, 0.0])
    for i in range(nsides):
        j = (i + 1) % nsides
        faces.append([cbot, i, j])

    return verts, faces


def build_primitive(spec: PrimitiveSpec) -> trimesh.Trimesh:
    """Build one closed primitive placed at ``spec.center``."""
    if spec.kind == 'cone':
        radius, height = spec.size
        v, f = _make_tapered_prism(-height / 2, height / 2, radius, 0.0,
                                   nsides=spec.sections)
        mesh = trimesh.Trimesh(vertices=v, faces=f, process=False)
    else:
        mesh = trimesh.creation.box(extents=spec.size)

    if spec.rotation_z:
        mesh.apply_transform(trimesh.transformations.rotation_matrix(
            spec.rotation_z, [0, 0, 1]))
    mesh.apply_translation(spec.center)
    return mesh


# ── Dispatch ────────────────────────────────────────────────────────────

def build_shape(definition: ShapeDefinition, archetype: str = '') -> GeometryAsset:
    """Build the geometry for either shape variant."""
    if isinstance(definition, ProfileShape):
        parts = [build_mesh(definition.points, definition.depth, definition.bevel_size)]
    else:
        parts = [build_primitive(spec) for spec in definition.parts]
        recenter(parts)
    return GeometryAsset(archetype=archetype, parts=parts)


def build_marker_geometry(variation: Variation) -> GeometryAsset:
    """Stone body for a variation (plinth excluded)."""
    definition = shape_definition(variation.shape_archetype, variation.dimensions)
    asset = build_shape(definition, variation.shape_archetype)
    logger.debug(f"Built {variation.shape_archetype} for {variation.identifier!r}: "
                 f"{len(asset.parts)} part(s)")
    return asset


def build_plinth(variation: Variation) -> GeometryAsset:
    """Base slab under the stone, slightly wider and deeper than it."""
    dims = variation.dimensions
    plinth_height = variation.base_height_offset
    bevel = min(0.04, plinth_height * 0.2)
    points = rect_tablet_profile(dims.width + 0.6, plinth_height)
    mesh = build_mesh(points, dims.depth + 0.55, bevel)
    return GeometryAsset(archetype='plinth', parts=[mesh])
