"""
pngpack CLI - Command-line interface for packing images into a texture atlas
"""

import json
import logging
import sys
from pathlib import Path

import click

from pngpack import __version__
from pngpack.exceptions import PackError
from pngpack.packager import Packager, build_atlas, default_atlas_path
from pngpack.packing.packer import DEFAULT_MAX_ORDER, pack


def _expand_inputs(inputs):
    """Files are kept as given; directories contribute every .png below them (any case), sorted."""
    files = []
    for item in inputs:
        path = Path(item)
        if path.is_dir():
            files.extend(sorted(
                p for p in path.rglob('*') if p.is_file() and p.suffix.lower() == '.png'
            ))
        else:
            files.append(path)
    return files


def _setup_logging(verbose):
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s: %(message)s")


def _fail(message, verbose=False, show_traceback=False):
    click.secho(message, fg='red', err=True)
    if verbose and show_traceback:
        import traceback
        traceback.print_exc()
    sys.exit(1)


def packing_options(f):
    """Options shared by every command that runs the packer."""
    f = click.option('--verbose', '-v', is_flag=True, help='Log the packing search')(f)
    f = click.option('--block-size', type=click.IntRange(min=1), default=None, envvar='PNGPACK_BLOCK_SIZE',
                     help='Fixed block size in pixels (default: GCD of all image dimensions)')(f)
    f = click.option('--max-order', type=click.IntRange(min=1), default=DEFAULT_MAX_ORDER, show_default=True,
                     envvar='PNGPACK_MAX_ORDER', help='Largest canvas exponent (side = 2**N pixels)')(f)
    f = click.option('--base-dir', type=click.Path(exists=True, file_okay=False), default=None,
                     help='Directory tags are relative to (default: current directory)')(f)
    return f


@click.group()
@click.version_option(version=__version__)
def cli():
    """
    pngpack - Pack PNG images into a single power-of-two texture atlas.

    Examples:
        pngpack pack sprites/ -o atlas.png
        pngpack plan a.png b.png c.png
    """
    pass


@cli.command(name='pack')
@click.argument('inputs', nargs=-1, required=True, type=click.Path(exists=True))
@click.option('-o', '--output', required=True, help='Output texture path (.png)')
@click.option('-a', '--atlas', default=None, help='Output atlas path (default: texture path with .json)')
@click.option('--workers', type=click.IntRange(min=1), default=None, envvar='PNGPACK_WORKERS',
              help='Threads used for compositing')
@packing_options
def pack_command(inputs, output, atlas, workers, base_dir, max_order, block_size, verbose):
    """
    Pack images into a texture and write its atlas.

    INPUTS are PNG files or directories (searched recursively for .png).

    Examples:
        pngpack pack sprites/ -o atlas.png
        pngpack pack a.png b.png -o out.png -a out-atlas.json --max-order 10
    """
    _setup_logging(verbose)
    try:
        files = _expand_inputs(inputs)
        atlas_path = atlas or default_atlas_path(output)

        if verbose:
            click.echo(f"Packing {len(files)} file(s) into {output}")

        defn = build_atlas(
            files,
            output,
            atlas_path=atlas_path,
            base_dir=base_dir,
            max_order=max_order,
            block_size=block_size,
            max_workers=workers,
        )

        if defn.is_empty:
            click.echo("Nothing to pack")
            return

        width, height = defn.canvas_size
        click.secho(f"✓ Success! Packed {len(defn.placements)} image(s) into {width}x{height}", fg='green')
        click.echo(f"  Texture: {output}")
        click.echo(f"  Atlas: {atlas_path}")

    except PackError as e:
        _fail(f"Error: {e}")
    except FileNotFoundError as e:
        _fail(f"Error: {e}")
    except ValueError as e:
        _fail(f"Error: {e}")
    except Exception as e:
        _fail(f"Unexpected error: {e}", verbose, show_traceback=True)


@cli.command()
@click.argument('inputs', nargs=-1, required=True, type=click.Path(exists=True))
@packing_options
def plan(inputs, base_dir, max_order, block_size, verbose):
    """
    Compute a layout and print it as JSON without writing any image.

    Examples:
        pngpack plan sprites/
        pngpack plan a.png b.png --max-order 8
    """
    _setup_logging(verbose)
    try:
        packager = Packager(base_dir or Path.cwd(), _expand_inputs(inputs))
        defn = pack(packager.source_rects(), max_order=max_order, block_size=block_size)
        click.echo(json.dumps({
            'canvas_size': list(defn.canvas_size),
            'placements': defn.to_atlas(),
        }, indent=2))

    except PackError as e:
        _fail(f"Error: {e}")
    except ValueError as e:
        _fail(f"Error: {e}")
    except Exception as e:
        _fail(f"Unexpected error: {e}", verbose, show_traceback=True)


def main():
    """Entry point for the CLI"""
    cli()


if __name__ == '__main__':
    main()
