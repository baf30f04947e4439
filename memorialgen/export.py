"""GLB export of markers and whole fields."""

import logging

import numpy as np
import trimesh
from PIL import Image, ImageColor

from .constants import PLINTH_COLORS, STONE_COLORS
from .geometry import GeometryAsset, build_marker_geometry, build_plinth
from .models import PathManager, Variation
from .textures import TextureAsset

logger = logging.getLogger(__name__)


def _color_factor(color: str) -> list:
    r, g, b = ImageColor.getrgb(color)[:3]
    return [r / 255.0, g / 255.0, b / 255.0, 1.0]


def _planar_uv(vertices: np.ndarray) -> np.ndarray:
    """Front-on XY projection normalised to the mesh bounds."""
    xy = vertices[:, :2]
    lo = xy.min(axis=0)
    span = np.maximum(xy.max(axis=0) - lo, 1e-9)
    return (xy - lo) / span


def _stone_material(texture: TextureAsset = None, color: str = STONE_COLORS['night']):
    if texture is None:
        return trimesh.visual.material.PBRMaterial(
            baseColorFactor=_color_factor(color),
            roughnessFactor=0.85,
            metallicFactor=0.05,
        )
    # glTF reads roughness from the green channel and metalness from blue
    black = Image.new('L', texture.roughness.size, 0)
    metallic_roughness = Image.merge('RGB', (black, texture.roughness, black))
    return trimesh.visual.material.PBRMaterial(
        baseColorTexture=texture.albedo,
        metallicRoughnessTexture=metallic_roughness,
        roughnessFactor=1.0,
        metallicFactor=0.05,
    )


def marker_meshes(geometry: GeometryAsset, plinth: GeometryAsset, base_height: float,
                  texture: TextureAsset = None, day_mode: bool = False,
                  offset=(0.0, 0.0, 0.0)) -> list:
    """(name, mesh) pairs for one marker, placed at *offset*."""
    mode = 'day' if day_mode else 'night'
    meshes = []

    stone = geometry.mesh.copy()
    stone.apply_translation([offset[0], offset[1] + base_height, offset[2]])
    stone.visual = trimesh.visual.TextureVisuals(
        uv=_planar_uv(stone.vertices) if texture is not None else None,
        material=_stone_material(texture, STONE_COLORS[mode]))
    meshes.append(('stone', stone))

    base = plinth.mesh.copy()
    base.apply_translation(offset)
    base.visual = trimesh.visual.TextureVisuals(
        material=trimesh.visual.material.PBRMaterial(
            baseColorFactor=_color_factor(PLINTH_COLORS[mode]),
            roughnessFactor=0.95,
        ))
    meshes.append(('plinth', base))
    return meshes


def export_variation(variation: Variation, output_path: str,
                     texture: TextureAsset = None, day_mode: bool = False) -> str:
    """Write a single marker with its plinth to a GLB file."""
    output_path = PathManager.get_output_path(output_path)
    geometry = build_marker_geometry(variation)
    plinth = build_plinth(variation)

    scene = trimesh.Scene()
    for name, mesh in marker_meshes(geometry, plinth, variation.base_height_offset,
                                    texture, day_mode):
        scene.add_geometry(mesh, geom_name=name)

    scene.export(str(output_path), file_type='glb')
    logger.info(f"GLB file generated successfully: {output_path}")
    return str(output_path)


def export_field(field, output_path: str) -> str:
    """Write every mounted marker of a ``MarkerField`` to one GLB file."""
    if not field.markers:
        raise ValueError("No mounted markers to export")

    output_path = PathManager.get_output_path(output_path)
    scene = trimesh.Scene()
    for identifier, marker in field.markers.items():
        for name, mesh in marker_meshes(marker.geometry, marker.plinth,
                                        marker.variation.base_height_offset,
                                        marker.texture, field.day_mode,
                                        offset=marker.position):
            scene.add_geometry(mesh, geom_name=f"{identifier}_{name}")

    scene.export(str(output_path), file_type='glb')
    logger.info(f"Exported {len(field.markers)} markers to {output_path}")
    return str(output_path)
