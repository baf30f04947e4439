"""Click CLI commands for memorialgen."""

import json
import logging
from dataclasses import asdict

import click

from .catalog import load_catalog
from .constants import DEFAULT_QUALITY_TIER, QUALITY_TIERS
from .effects import derive_effects
from .export import export_variation, export_field
from .field import MarkerField
from .geometry import build_marker_geometry
from .models import PathManager
from .scheduler import UpdateScheduler
from .textures import TextureCache, granite_key, stone_color
from .variation import generate

logger = logging.getLogger(__name__)

TIER_CHOICE = click.Choice(QUALITY_TIERS, case_sensitive=False)


@click.group()
def cli():
    """memorialgen CLI for deterministic memorial markers and their effects."""
    pass


@cli.command()
@click.argument('identifier')
@click.option('--category', '-c', default=None, help='Catalog category hint')
@click.option('--style', '-s', default=None, help='Explicit archetype, skips the shape draw')
def variation(identifier: str, category: str, style: str):
    """Print the Variation for IDENTIFIER as JSON."""
    try:
        result = generate(identifier, category, style)
        click.echo(json.dumps(asdict(result), indent=2))
    except Exception as e:
        logger.error(f"Error generating variation: {e}")
        raise click.ClickException(str(e))


@cli.command()
@click.argument('identifier')
@click.option('--category', '-c', default=None, help='Catalog category hint')
@click.option('--style', '-s', default=None, help='Explicit archetype')
@click.option('--output', '-o', default=None, help='Output GLB file path')
@click.option('--day/--night', default=False, help='Lighting mode for the stone texture')
@click.option('--textured/--flat', default=True, help='Embed the granite texture')
def export(identifier: str, category: str, style: str, output: str,
           day: bool, textured: bool):
    """Export the marker for IDENTIFIER as a GLB file."""
    try:
        result = generate(identifier, category, style)
        geometry = build_marker_geometry(result)
        click.echo(f"{result.shape_archetype}: {len(geometry.positions)} vertices, "
                   f"{len(geometry.faces)} faces, closed={geometry.is_closed}")

        texture = None
        cache = TextureCache()
        if textured:
            texture = cache.synthesize(granite_key(identifier, day), stone_color(day))
        path = export_variation(result, output or f"{identifier}.glb", texture, day)
        cache.release_all()
        click.echo(f"Wrote {path}")
    except Exception as e:
        logger.error(f"Error exporting marker: {e}")
        raise click.ClickException(str(e))


@cli.command()
@click.argument('identifier')
@click.option('--day/--night', default=False, help='Lighting mode')
@click.option('--output', '-o', default=None, help='Output PNG path for the albedo map')
def texture(identifier: str, day: bool, output: str):
    """Render the granite albedo and roughness maps for IDENTIFIER."""
    try:
        cache = TextureCache()
        key = granite_key(identifier, day)
        asset = cache.synthesize(key, stone_color(day))
        if asset is None:
            raise click.ClickException("Raster drawing is disabled (MEMORIALGEN_HEADLESS)")
        albedo_path = PathManager.get_output_path(output or f"{key}-albedo.png")
        roughness_path = albedo_path.with_name(albedo_path.stem.replace('-albedo', '')
                                               + '-roughness.png')
        asset.albedo.save(albedo_path)
        asset.roughness.save(roughness_path)
        cache.release_all()
        click.echo(f"Wrote {albedo_path} and {roughness_path}")
    except click.ClickException:
        raise
    except Exception as e:
        logger.error(f"Error rendering texture: {e}")
        raise click.ClickException(str(e))


@cli.command()
@click.argument('identifier')
@click.option('--tier', '-t', type=TIER_CHOICE, default=DEFAULT_QUALITY_TIER,
              show_default=True, help='Quality tier')
@click.option('--frames', '-f', default=120, help='Number of frames to simulate')
@click.option('--fps', default=60.0, help='Simulated frame rate')
@click.option('--reduced-motion', is_flag=True, help='Simulate a reduced-motion preference')
@click.option('--hover', is_flag=True, help='Keep the marker hovered')
@click.option('--day/--night', default=False, help='Lighting mode')
def simulate(identifier: str, tier: str, frames: int, fps: float,
             reduced_motion: bool, hover: bool, day: bool):
    """Run the update scheduler for one marker and report recompute passes."""
    try:
        result = generate(identifier)
        effects = derive_effects(result, tier)
        scheduler = UpdateScheduler()
        index = scheduler.register(result, effects)
        scheduler.set_hovered(index, hover)

        passes = 0
        for _ in range(frames):
            passes += scheduler.tick(1.0 / fps, tier, reduced_motion, day)

        state = scheduler.state(index)
        click.echo(f"{frames} frames at {fps:g} fps ({tier}): {passes} recompute passes")
        click.echo(f"  embers={len(effects.ember_configs)} candles={len(effects.candle_configs)} "
                   f"aura_layers={len(effects.aura_layers)} shadow_map={effects.shadow_map_size}")
        click.echo(f"  float={state.float_offset:.4f} sway={state.sway_rotation:.4f} "
                   f"spotlight={state.spotlight_intensity:.4f}")
    except Exception as e:
        logger.error(f"Error simulating marker: {e}")
        raise click.ClickException(str(e))


@cli.command()
@click.argument('catalog_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--tier', '-t', type=TIER_CHOICE, default=DEFAULT_QUALITY_TIER,
              show_default=True, help='Quality tier')
@click.option('--day/--night', default=False, help='Lighting mode')
@click.option('--output', '-o', default=None, help='Also export the field as GLB')
def field(catalog_path: str, tier: str, day: bool, output: str):
    """Mount every entry of CATALOG_PATH and summarise the field."""
    marker_field = None
    try:
        entries = load_catalog(catalog_path)
        marker_field = MarkerField(quality_tier=tier, day_mode=day)
        for marker in marker_field.mount_all(entries):
            x, _, z = marker.position
            click.echo(f"  {marker.entry.identifier:<24} {marker.variation.shape_archetype:<10} "
                       f"({x:7.2f}, {z:7.2f})")
        click.echo(f"Mounted {len(marker_field.markers)} markers at {marker_field.quality_tier}")
        if output:
            click.echo(f"Wrote {export_field(marker_field, output)}")
    except Exception as e:
        logger.error(f"Error building field: {e}")
        raise click.ClickException(str(e))
    finally:
        if marker_field is not None:
            marker_field.close()
