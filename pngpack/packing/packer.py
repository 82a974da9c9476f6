"""
First-fit block packer.

Packs SourceRects into the smallest power-of-2 canvas this search can find.

Search order:
    (2,2) -> (4,2) -> (4,4) -> (8,4) -> (8,8) -> ...

Only one axis doubles per retry: the one that is not ahead (X when both are
equal). Each retry starts from an empty grid; placements from a failed
attempt are thrown away, nothing is repaired or moved.

Cost is O(R * W * H) per attempt for R rects on a W x H block grid, times
the number of canvas sizes tried. Fine for tens to low hundreds of rects;
with a block size of 1 and large canvases it gets slow.
"""

import logging
from collections import Counter
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Tuple

from pngpack.exceptions import CanvasExceededError, DuplicateTagError
from pngpack.packing.grid import BlockGrid
from pngpack.packing.quantizer import block_size_for
from pngpack.schema.atlas import MapDefinition, Placement, SourceRect

logger = logging.getLogger(__name__)

# 2**13 = 8192px per side
DEFAULT_MAX_ORDER = 13


def _blocks(pixels: int, block_size: int) -> int:
    return -(-pixels // block_size)


@dataclass(frozen=True)
class GrowthState:
    """Canvas exponents for one attempt: the canvas is 2**order_x by 2**order_y pixels."""
    order_x: int = 1
    order_y: int = 1

    @property
    def canvas_size(self) -> Tuple[int, int]:
        return 2 ** self.order_x, 2 ** self.order_y

    def bumped(self) -> "GrowthState":
        """Grow the axis that is not ahead (X on ties)."""
        if self.order_x <= self.order_y:
            return replace(self, order_x=self.order_x + 1)
        return replace(self, order_y=self.order_y + 1)

    def exceeds(self, max_order: int) -> bool:
        return max(self.order_x, self.order_y) > max_order


def check_unique_tags(rects: Iterable[SourceRect]) -> None:
    """Raise DuplicateTagError if any tag appears more than once."""
    counts = Counter(r.tag for r in rects)
    duplicates = [tag for tag, n in counts.items() if n > 1]
    if duplicates:
        raise DuplicateTagError(duplicates)


def sort_for_packing(rects: Iterable[SourceRect]) -> List[SourceRect]:
    """Largest side first. Ties keep input order."""
    return sorted(rects, key=lambda r: r.longest_side, reverse=True)


def place_all(
    rects: List[SourceRect],
    block_size: int,
    state: GrowthState,
) -> Optional[Dict[str, Placement]]:
    """
    Try to place every rect on a fresh canvas for the given growth state.

    The grid has ceil(canvas / block_size) blocks per axis. When the block
    size does not divide the canvas side, the last block overhangs the
    canvas; an anchor is only accepted if the rect's true pixel extent stays
    inside the canvas. Layouts can therefore differ from a plain block-grid
    first-fit, which would let such a rect hang past the canvas edge.

    Args:
        rects: Rects in placement order
        block_size: Pixels per block side
        state: Canvas exponents for this attempt

    Returns:
        Dict of tag -> Placement in placement order, or None as soon as one
        rect has no free anchor
    """
    canvas_w, canvas_h = state.canvas_size
    grid = BlockGrid(_blocks(canvas_w, block_size), _blocks(canvas_h, block_size))
    logger.debug(f"Creating {canvas_w}x{canvas_h} map ({grid.cols}x{grid.rows} blocks of {block_size}px)")

    placements = {}
    for index, rect in enumerate(rects):
        cols, rows = rect.size_in_blocks(block_size)

        # Anchors whose true pixel extent would cross the canvas edge are
        # excluded even when the block-rounded grid has room for them
        max_col = (canvas_w - rect.width) // block_size
        max_row = (canvas_h - rect.height) // block_size
        if max_col < 0 or max_row < 0:
            logger.debug(f"Cannot fit #{index} ({rect.tag}) into {canvas_w}x{canvas_h}")
            return None

        anchor = grid.first_fit(cols, rows, max_col=max_col, max_row=max_row)
        if anchor is None:
            logger.debug(f"Cannot fit #{index} ({rect.tag}) into {canvas_w}x{canvas_h}")
            return None

        col, row = anchor
        grid.mark(row, col, rows, cols, index)
        logger.debug(f"Setting #{index} ({rect.tag}) at block ({col}, {row})")

        placements[rect.tag] = Placement(
            tag=rect.tag,
            offset=(col * block_size, row * block_size),
            size=(rect.width, rect.height),
        )

    return placements


def pack(
    rects: Iterable[SourceRect],
    max_order: int = DEFAULT_MAX_ORDER,
    block_size: Optional[int] = None,
) -> MapDefinition:
    """
    Pack rects into the smallest power-of-2 canvas the search reaches.

    Args:
        rects: Source rects with unique tags
        max_order: Largest canvas exponent to try (side = 2**max_order pixels)
        block_size: Fixed block size in pixels. If None, the GCD of all
                    rect dimensions is used.

    Returns:
        MapDefinition with every tag placed. An empty input returns an empty
        MapDefinition with canvas_size (0, 0).

    Raises:
        DuplicateTagError: If two rects share a tag (checked before any search)
        CanvasExceededError: If no arrangement fits within 2**max_order
        ValueError: If max_order or block_size is not positive

    Example:
        >>> defn = pack([SourceRect(tag="a", width=8, height=8)], max_order=4)
        >>> defn.canvas_size
        (8, 8)
    """
    rects = list(rects)
    check_unique_tags(rects)

    if not rects:
        logger.info("No source rects to pack")
        return MapDefinition()

    if max_order < 1:
        raise ValueError(f"max_order must be at least 1, got {max_order}")

    if block_size is None:
        block_size = block_size_for(rects)
    elif block_size < 1:
        raise ValueError(f"block_size must be positive, got {block_size}")

    limit = 2 ** max_order
    too_big = [r.tag for r in rects if r.longest_side > limit]
    if too_big:
        logger.debug(f"Rects larger than {limit}px: {too_big}")
        raise CanvasExceededError(max_order)

    ordered = sort_for_packing(rects)
    state = GrowthState()
    attempts = 0

    while not state.exceeds(max_order):
        canvas_w, canvas_h = state.canvas_size

        # we need to be at least 1x1 blocks
        if canvas_w < block_size or canvas_h < block_size:
            state = state.bumped()
            continue

        attempts += 1
        placements = place_all(ordered, block_size, state)
        if placements is not None:
            logger.info(
                f"Packed {len(placements)} rects into {canvas_w}x{canvas_h} "
                f"(block size {block_size}, {attempts} attempt(s))"
            )
            return MapDefinition(canvas_size=(canvas_w, canvas_h), placements=placements)

        logger.debug(f"Retrying with larger dimensions than {canvas_w}x{canvas_h}")
        state = state.bumped()

    raise CanvasExceededError(max_order)
