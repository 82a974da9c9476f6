"""
Atlas Schema: packing inputs and results

UNITS:
- Every size and offset is in PIXELS.
- Block coordinates only exist inside the packer; they are multiplied by the
  block size before a Placement is built.

ATLAS FILE FORMAT:
The atlas written next to the texture is a flat mapping, one entry per tag:

    {
      "sprites/hero.png": {"offset": [0, 0], "size": [32, 32]},
      "sprites/coin.png": {"offset": [32, 0], "size": [8, 8]}
    }

This shape is what renderers consuming the atlas parse, so it must not grow
wrapper keys. The canvas size travels with the texture itself.
"""

from __future__ import annotations
import math
from typing import Dict, Any, Tuple
from pydantic import BaseModel, ConfigDict, Field, PositiveInt, NonNegativeInt

# Type aliases for better readability
Vec2 = Tuple[int, int]


class SourceRect(BaseModel):
    """
    One input image, described by its pixel dimensions.

    Created once per input before packing begins and never mutated.
    """
    model_config = ConfigDict(frozen=True, extra='forbid')

    tag: str = Field(..., min_length=1, description="Unique identifier (usually the image path relative to the base dir).")
    width: PositiveInt = Field(..., description="Width in pixels.")
    height: PositiveInt = Field(..., description="Height in pixels.")

    @property
    def longest_side(self) -> int:
        return max(self.width, self.height)

    def size_in_blocks(self, block_size: int) -> Tuple[int, int]:
        """Return (columns, rows) needed to cover this rect with blocks of block_size pixels."""
        if block_size < 1:
            raise ValueError(f"block_size must be positive, got {block_size}")
        return math.ceil(self.width / block_size), math.ceil(self.height / block_size)


class Placement(BaseModel):
    """Where a tagged rect landed on the canvas."""
    model_config = ConfigDict(frozen=True, extra='forbid')

    tag: str
    offset: Tuple[NonNegativeInt, NonNegativeInt] = Field(..., description="Top-left corner in pixels [x, y].")
    size: Tuple[PositiveInt, PositiveInt] = Field(..., description="True pixel size [w, h] (not block-rounded).")

    def to_atlas_entry(self) -> Dict[str, list]:
        return {"offset": list(self.offset), "size": list(self.size)}

    def box(self) -> Tuple[int, int, int, int]:
        """Pixel box as (left, top, right, bottom), the form Pillow crops and pastes with."""
        x, y = self.offset
        w, h = self.size
        return x, y, x + w, y + h


class MapDefinition(BaseModel):
    """
    Complete packing result: canvas size plus per-tag placement.

    An empty input produces canvas_size (0, 0) and no placements.
    """
    model_config = ConfigDict(extra='forbid')

    canvas_size: Tuple[NonNegativeInt, NonNegativeInt] = (0, 0)
    placements: Dict[str, Placement] = Field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return not self.placements

    def to_atlas(self) -> Dict[str, Dict[str, list]]:
        """Serialize placements to the flat atlas mapping."""
        return {tag: p.to_atlas_entry() for tag, p in self.placements.items()}


def parse_atlas(data: Dict[str, Any]) -> Dict[str, Placement]:
    """
    Parse a flat atlas mapping back into Placements.

    Args:
        data: Mapping of tag -> {"offset": [x, y], "size": [w, h]}

    Returns:
        Dict of tag -> Placement

    Raises:
        ValueError: If the mapping is not a dict or an entry is malformed
    """
    if not isinstance(data, dict):
        raise ValueError(f"Atlas must be a JSON object, got {type(data).__name__}")

    placements = {}
    for tag, entry in data.items():
        if not isinstance(entry, dict) or 'offset' not in entry or 'size' not in entry:
            raise ValueError(f"Atlas entry for '{tag}' must carry 'offset' and 'size'")
        placements[tag] = Placement(tag=tag, offset=entry['offset'], size=entry['size'])
    return placements
