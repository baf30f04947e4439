"""Catalog entries and their placement on the memorial field."""

import json
import math
import logging
import pathlib
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

# Markers rest slightly above the ground plane
FIELD_ELEVATION = 0.1


class Position(BaseModel):
    x: float
    z: float


class CatalogEntry(BaseModel):
    identifier: str
    category: str = ""
    style_preference: Optional[str] = None
    base_color: str = "#7FB4FF"
    display_name: str = ""
    handle: str = ""
    position: Position


@dataclass(frozen=True)
class Placement:
    entry: CatalogEntry
    position: tuple


def parse_catalog(data) -> list:
    """Validate raw catalog data into ``CatalogEntry`` objects.

    Accepts a list of entries or a mapping with a ``profiles`` list.
    Raises ``ValueError`` naming the first entry that fails validation.
    """
    if isinstance(data, dict):
        data = data.get("profiles")
    if not isinstance(data, list):
        raise ValueError("Catalog must be a list of entries or an object with a 'profiles' list")

    entries = []
    for index, raw in enumerate(data):
        try:
            entries.append(CatalogEntry.model_validate(raw))
        except ValidationError as e:
            name = raw.get("identifier", f"#{index}") if isinstance(raw, dict) else f"#{index}"
            raise ValueError(f"Invalid catalog entry {name}: {e}") from e
    return entries


def load_catalog(path) -> list:
    """Read and validate a JSON catalog file."""
    path = pathlib.Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Catalog {path} is not valid JSON: {e}") from e
    entries = parse_catalog(data)
    logger.info(f"Loaded {len(entries)} catalog entries from {path}")
    return entries


def arrange(entries) -> list:
    """Jitter catalog positions into a less regular grid, nearest row first."""
    placements = []
    for index, entry in enumerate(entries):
        x = entry.position.x
        z = entry.position.z
        offset_x = math.sin(z * 0.18 + index * 0.37) * 1.4
        offset_z = math.sin(x * 0.15 + index * 0.22) * 0.9
        placements.append(Placement(entry, (x + offset_x, FIELD_ELEVATION, z + offset_z)))

    placements.sort(key=lambda p: p.position[2])
    return placements
