"""
Packing core: block size quantization and first-fit canvas search.
"""
from .quantizer import gcd_of, block_size_for
from .grid import BlockGrid, FREE
from .packer import (
    DEFAULT_MAX_ORDER,
    GrowthState,
    check_unique_tags,
    sort_for_packing,
    place_all,
    pack,
)

__all__ = [
    'gcd_of',
    'block_size_for',
    'BlockGrid',
    'FREE',
    'DEFAULT_MAX_ORDER',
    'GrowthState',
    'check_unique_tags',
    'sort_for_packing',
    'place_all',
    'pack',
]
