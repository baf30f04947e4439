"""Configuration constants, paths, and tuning tables."""

import os
import pathlib
import logging

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Configure base paths
BASE_DIR = pathlib.Path(__file__).parent.parent.absolute()
OUTPUT_DIR = pathlib.Path(os.environ.get("MEMORIALGEN_OUTPUT_DIR", BASE_DIR / "output"))

# Set MEMORIALGEN_HEADLESS=1 on hosts without raster drawing
HEADLESS = os.environ.get("MEMORIALGEN_HEADLESS", "").strip().lower() in ("1", "true", "yes")

DEFAULT_QUALITY_TIER = os.environ.get("MEMORIALGEN_QUALITY_TIER", "medium").strip().lower()
if DEFAULT_QUALITY_TIER not in ("low", "medium", "high"):
    DEFAULT_QUALITY_TIER = "medium"

# Configure logging
logging.basicConfig(
    level=os.environ.get("MEMORIALGEN_LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)

# ── Archetypes ──────────────────────────────────────────────────────────
# Base (width, height, depth, radius) in metres before per-identifier jitter.
ARCHETYPE_DIMENSIONS = {
    'rounded':   {'width': 1.4, 'height': 2.2,  'depth': 0.32, 'radius': 0.24},
    'obelisk':   {'width': 0.9, 'height': 2.9,  'depth': 0.85, 'radius': 0.08},
    'cross':     {'width': 1.8, 'height': 2.5,  'depth': 0.22, 'radius': 0.06},
    'wide':      {'width': 2.3, 'height': 1.7,  'depth': 0.36, 'radius': 0.18},
    'gothic':    {'width': 1.5, 'height': 2.6,  'depth': 0.3,  'radius': 0.16},
    'modern':    {'width': 1.6, 'height': 2.1,  'depth': 0.4,  'radius': 0.12},
    'angular':   {'width': 1.4, 'height': 2.2,  'depth': 0.35, 'radius': 0.05},
    'curved':    {'width': 1.7, 'height': 2.0,  'depth': 0.32, 'radius': 0.18},
    'stepped':   {'width': 1.8, 'height': 2.4,  'depth': 0.34, 'radius': 0.12},
    'tablet':    {'width': 1.6, 'height': 2.15, 'depth': 0.28, 'radius': 0.22},
    'footstone': {'width': 1.1, 'height': 1.1,  'depth': 0.26, 'radius': 0.1},
}
FALLBACK_ARCHETYPE = 'rounded'

# Candidate archetypes per catalog category
CATEGORY_SHAPE_OPTIONS = {
    'twitter':   ['rounded', 'tablet', 'footstone'],
    'instagram': ['curved', 'gothic', 'stepped'],
    'tiktok':    ['cross', 'angular', 'stepped'],
    'youtube':   ['obelisk', 'tablet', 'wide'],
    'twitch':    ['gothic', 'modern', 'angular'],
    'linkedin':  ['modern', 'obelisk', 'tablet'],
    'github':    ['angular', 'rounded', 'footstone'],
    'discord':   ['curved', 'rounded', 'stepped'],
}
DEFAULT_SHAPE_OPTIONS = ['rounded', 'modern', 'gothic', 'stepped']

# Closed 2D glyph outlines traced on the stone face
GLYPH_LIBRARY = [
    [(-0.25, 0.3), (0.0, 0.45), (0.25, 0.3), (0.0, -0.35), (-0.25, 0.3)],
    [(-0.2, 0.35), (-0.2, -0.25), (0.2, -0.25), (0.2, 0.35), (-0.2, 0.35)],
    [(-0.22, 0.2), (0.22, 0.2), (0.0, -0.35), (-0.22, 0.2)],
    [(0.0, 0.4), (0.2, 0.0), (0.0, -0.4), (-0.2, 0.0), (0.0, 0.4)],
]

# Counts drawn into every Variation; tiers take prefixes of these.
MAX_EMBERS = 8
MAX_CANDLES = 3

# ── Materials ───────────────────────────────────────────────────────────
STONE_COLORS = {
    'day':   '#a8b2c1',
    'night': '#3a4558',
}
PLINTH_COLORS = {
    'day':   '#5a6878',
    'night': '#0f1419',
}
RUNE_TINT = '#e8eefb'
RUNE_TINT_AMOUNT = 0.35

# Aura glow colours per catalog category
CATEGORY_GLOW_PALETTE = {
    'twitter':   ['#7FB4FF', '#C6DCFF'],
    'tiktok':    ['#9AE6FF', '#C5F4FF'],
    'youtube':   ['#FF7A7A', '#FFC4B8'],
    'instagram': ['#FF8AB8', '#FBBFDF'],
    'twitch':    ['#B18AFF', '#D2C2FF'],
    'linkedin':  ['#81C7FF', '#BFE3FF'],
    'github':    ['#9FB3C8', '#D0DEEB'],
    'discord':   ['#95A9FF', '#CCD5FF'],
}

# ── Textures ────────────────────────────────────────────────────────────
TEXTURE_SIZE = 256
SPECKLE_COUNT = 2400
VEIN_COUNT = 14
ROUGHNESS_BASE = '#f1f1f1'
INSCRIPTION_SIZE = (512, 256)

# ── Quality tiers ───────────────────────────────────────────────────────
# Tunable budgets; the numbers are not semantic invariants but must stay
# monotonic from low to high.
QUALITY_TIERS = ('low', 'medium', 'high')
TIER_BUDGETS = {
    'high':   {'embers': 8, 'candles': 3, 'aura_layers': 3, 'shadow_map': 1024, 'spotlight': True},
    'medium': {'embers': 5, 'candles': 2, 'aura_layers': 2, 'shadow_map': 512,  'spotlight': True},
    'low':    {'embers': 0, 'candles': 1, 'aura_layers': 1, 'shadow_map': 0,    'spotlight': False},
}

# ── Scheduler ───────────────────────────────────────────────────────────
# Seconds between expensive recompute passes.
TIER_UPDATE_INTERVALS = {
    'high':   1 / 48,
    'medium': 1 / 36,
    'low':    1 / 28,
}
REDUCED_MOTION_INTERVAL = 1 / 32
HOVER_UPDATE_INTERVAL = 1 / 60
# Seconds between frame-rate driven tier re-evaluations
TIER_CHECK_INTERVAL = 2.0
