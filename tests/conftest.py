"""Shared fixtures: small solid-colour PNGs written to a temp directory"""
import pytest
from PIL import Image


def _write_png(path, size, color):
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new('RGBA', size, color).save(path, format='PNG')
    return path


@pytest.fixture
def write_png():
    """Callable (path, size, color) -> path that writes a solid PNG"""
    return _write_png


@pytest.fixture
def sprite_dir(tmp_path, write_png):
    """Directory with two 8x8 sprites and one 4x4 sprite in a subfolder"""
    src = tmp_path / "sprites"
    write_png(src / "a.png", (8, 8), (255, 0, 0, 255))
    write_png(src / "b.png", (8, 8), (0, 255, 0, 255))
    write_png(src / "ui" / "c.png", (4, 4), (0, 0, 255, 255))
    return src
