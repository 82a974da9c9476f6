"""
pngpack - Pack PNG images into a single power-of-two texture atlas

Finds a block size shared by every image, searches canvas sizes from small
to large with a first-fit placer, then composites the images and writes the
texture with a JSON atlas describing where each one landed.
"""

__version__ = "0.1.0"

from pngpack.schema.atlas import SourceRect, Placement, MapDefinition
from pngpack.packing.packer import pack, DEFAULT_MAX_ORDER
from pngpack.packager import Packager, build_atlas, read_atlas
from pngpack.exceptions import PackError, DuplicateTagError, CanvasExceededError, PackagingError

__all__ = [
    "SourceRect",
    "Placement",
    "MapDefinition",
    "pack",
    "DEFAULT_MAX_ORDER",
    "Packager",
    "build_atlas",
    "read_atlas",
    "PackError",
    "DuplicateTagError",
    "CanvasExceededError",
    "PackagingError",
]
