"""
Image packaging: collect source rects from image files, composite them
into one texture, and write the texture plus its atlas description.

Compositing runs one task per placement. Footprints never overlap; tasks
paste into the shared canvas without locking. All tasks are joined before
anything is written, and a single failure means no output at all.
"""

import json
import logging
import os
from io import BytesIO
from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from PIL import Image

from pngpack.exceptions import PackagingError
from pngpack.packing.packer import DEFAULT_MAX_ORDER, pack
from pngpack.schema.atlas import MapDefinition, Placement, SourceRect, parse_atlas

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def tag_for(path: PathLike, base_dir: PathLike) -> str:
    """Tag for an input file: its path relative to base_dir, with forward slashes."""
    rel = os.path.relpath(os.path.abspath(path), os.path.abspath(base_dir))
    return Path(rel).as_posix()


class Packager:
    """
    Reads source images and composites packed results.

    Examples:
        >>> packager = Packager("assets", ["assets/a.png", "assets/b.png"])
        >>> defn = pack(packager.source_rects())
        >>> packager.package(defn, "out.png", "out.json")
    """

    def __init__(
        self,
        base_dir: PathLike,
        in_files: Sequence[PathLike],
        max_workers: Optional[int] = None,
    ):
        """
        Args:
            base_dir: Directory tags are computed relative to
            in_files: Source image paths
            max_workers: Thread cap for compositing (None uses the executor default)
        """
        self.base_dir = Path(base_dir)
        self.in_files = [Path(f) for f in in_files]
        self.max_workers = max_workers

        # create ref tables
        self.file_tags: Dict[Path, str] = {}
        self.tag_files: Dict[str, Path] = {}
        for in_file in self.in_files:
            tag = tag_for(in_file, self.base_dir)
            self.file_tags[in_file] = tag
            self.tag_files[tag] = in_file

    def source_rects(self) -> List[SourceRect]:
        """
        Read the dimensions of every input image.

        Only the image header is decoded. Files that cannot be read are
        logged and skipped.
        """
        rects = []
        for in_file in self.in_files:
            tag = self.file_tags[in_file]
            try:
                with Image.open(in_file) as img:
                    width, height = img.size
                rects.append(SourceRect(tag=tag, width=width, height=height))
            except (OSError, ValueError) as e:
                logger.warning(f"Failed to read {in_file}... Skipping ({e})")
        return rects

    def _blit(self, canvas: Image.Image, placement: Placement) -> None:
        """Decode one source image and paste it into its footprint."""
        source = self.tag_files.get(placement.tag)
        if source is None:
            raise KeyError(f"Lost {placement.tag}")

        logger.debug(f"Processing {placement.tag}: {source}")
        with Image.open(source) as img:
            if img.size != tuple(placement.size):
                raise ValueError(
                    f"Decoded size {img.size[0]}x{img.size[1]} differs from "
                    f"placement size {placement.size[0]}x{placement.size[1]}"
                )
            rgba = img.convert('RGBA')

        logger.debug(f"Stitching {placement.tag} at {placement.offset}")
        canvas.paste(rgba, placement.box())

    def composite(self, defn: MapDefinition) -> Image.Image:
        """
        Build the packed texture in memory.

        Raises:
            PackagingError: If any source fails to decode or blit
        """
        canvas = Image.new('RGBA', tuple(defn.canvas_size), (0, 0, 0, 0))
        canvas.load()

        failures = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as ex:
            futures = {
                ex.submit(self._blit, canvas, placement): tag
                for tag, placement in defn.placements.items()
            }
            wait(futures)

        for fut, tag in futures.items():
            err = fut.exception()
            if err is not None:
                logger.error(f"Packaging failed on {tag}: {err}")
                failures[tag] = str(err)

        if failures:
            raise PackagingError(failures)
        return canvas

    def package(
        self,
        defn: MapDefinition,
        out_texture_file: PathLike,
        out_atlas_file: PathLike,
    ) -> None:
        """
        Composite every placement and write the texture and atlas files.

        Both outputs are encoded in memory first. If writing the atlas fails,
        the texture that was just written is removed again, so a failed run
        leaves no files behind. An empty MapDefinition writes nothing.

        Raises:
            PackagingError: If any source fails to decode or blit
            OSError: If either output file cannot be written
        """
        if defn.is_empty:
            logger.warning("Empty map definition, nothing to package")
            return

        texture = self.composite(defn)

        buf = BytesIO()
        texture.save(buf, format='PNG')
        atlas_text = atlas_json(defn)

        logger.debug(f"Writing texture to {out_texture_file}")
        with open(out_texture_file, 'wb') as f:
            f.write(buf.getvalue())

        logger.debug(f"Writing atlas to {out_atlas_file}")
        try:
            with open(out_atlas_file, 'w') as f:
                f.write(atlas_text)
        except OSError:
            logger.error(f"Failed to write atlas {out_atlas_file}, removing {out_texture_file}")
            Path(out_texture_file).unlink(missing_ok=True)
            raise


def atlas_json(defn: MapDefinition) -> str:
    """The flat tag -> {offset, size} atlas as indented JSON text."""
    return json.dumps(defn.to_atlas(), indent=2)


def write_atlas(defn: MapDefinition, path: PathLike) -> None:
    """Write the flat tag -> {offset, size} atlas as indented JSON."""
    with open(path, 'w') as f:
        f.write(atlas_json(defn))


def read_atlas(path: PathLike) -> Dict[str, Placement]:
    """
    Load an atlas file written by write_atlas.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the content is not a valid atlas mapping
    """
    with open(path) as f:
        data = json.load(f)
    return parse_atlas(data)


def default_atlas_path(texture_path: PathLike) -> Path:
    """Atlas path next to the texture: same stem, .json suffix."""
    return Path(texture_path).with_suffix('.json')


def build_atlas(
    in_files: Sequence[PathLike],
    texture_path: PathLike,
    atlas_path: Optional[PathLike] = None,
    base_dir: Optional[PathLike] = None,
    max_order: int = DEFAULT_MAX_ORDER,
    block_size: Optional[int] = None,
    max_workers: Optional[int] = None,
) -> MapDefinition:
    """
    Pack image files into one texture and write it with its atlas.

    Args:
        in_files: Source image paths
        texture_path: Output PNG path
        atlas_path: Output atlas JSON path (defaults to texture_path with .json)
        base_dir: Directory tags are relative to (defaults to the current directory)
        max_order: Largest canvas exponent to try
        block_size: Fixed block size, or None to derive it from the images
        max_workers: Thread cap for compositing

    Returns:
        The MapDefinition that was written. If no input could be read, an
        empty MapDefinition is returned and nothing is written.

    Raises:
        DuplicateTagError: If two inputs resolve to the same tag
        CanvasExceededError: If the images do not fit within 2**max_order
        PackagingError: If any image fails during compositing

    Examples:
        >>> build_atlas(["sprites/a.png", "sprites/b.png"], "atlas.png", base_dir="sprites")
    """
    packager = Packager(base_dir or os.getcwd(), in_files, max_workers=max_workers)
    rects = packager.source_rects()
    if not rects:
        logger.warning("No readable source images, nothing to package")
        return MapDefinition()

    defn = pack(rects, max_order=max_order, block_size=block_size)

    atlas_path = atlas_path or default_atlas_path(texture_path)
    packager.package(defn, texture_path, atlas_path)
    logger.info(f"Wrote {texture_path} and {atlas_path}")
    return defn
