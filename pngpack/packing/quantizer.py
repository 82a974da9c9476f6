"""
Block size quantization.

Every rect dimension is a whole multiple of the greatest common divisor of
all dimensions, so the packer can search a grid of GCD-sized blocks instead
of single pixels.
"""

import math
from typing import Iterable, Optional

from pngpack.schema.atlas import SourceRect


def gcd_of(values: Iterable[int]) -> Optional[int]:
    """
    Greatest common divisor of a multiset of positive integers.

    Returns None for an empty input. Stops early once the running value is 1.
    """
    result = None
    for value in set(values):
        result = value if result is None else math.gcd(result, value)
        if result == 1:
            break
    return result


def block_size_for(rects: Iterable[SourceRect]) -> Optional[int]:
    """Block size shared by every width and height, or None when there are no rects."""
    dims = set()
    for r in rects:
        dims.add(r.width)
        dims.add(r.height)
    return gcd_of(dims)
