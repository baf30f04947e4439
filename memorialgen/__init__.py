"""memorialgen package — deterministic memorial markers and effect scheduling.

Import constants FIRST so .env overrides and logging are configured
before any other module reads them.
"""

from memorialgen import constants as _constants  # noqa: F401

from memorialgen.variation import generate, VariationCache
from memorialgen.geometry import build_marker_geometry
from memorialgen.textures import TextureCache
from memorialgen.effects import EffectsDeriver, derive_effects
from memorialgen.scheduler import UpdateScheduler
from memorialgen.field import MarkerField
