"""Schema definitions for packing inputs and atlas results"""

from .atlas import (
    SourceRect,
    Placement,
    MapDefinition,
    parse_atlas,
)

__all__ = [
    "SourceRect",
    "Placement",
    "MapDefinition",
    "parse_atlas",
]
