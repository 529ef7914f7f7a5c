"""
Pytest configuration and fixtures for the FrameCraft tests.

Provides generated frame assets, asset managers with isolated caches,
and a Flask test application wired to a temporary asset directory.
"""

import io
import pytest
from pathlib import Path
from PIL import Image

from framecraft import create_app
from framecraft.errors import AssetLoadFailure
from framecraft.frame_assets import FrameAssetManager, FrameSelection


FALLBACK_COLOR = (20, 20, 20, 255)
WALNUT_COLOR = (92, 64, 51, 255)


def make_frame_png(path: Path, color, size=(40, 30)) -> Path:
    """Write a solid-colour frame asset"""
    Image.new('RGBA', size, color=color).save(path, 'PNG')
    return path


def png_bytes(size, color=(0, 0, 255)) -> bytes:
    buffer = io.BytesIO()
    Image.new('RGB', size, color=color).save(buffer, 'PNG')
    return buffer.getvalue()


class CountingOpener:
    """Image opener that records every path it is asked to load"""

    def __init__(self, missing=()):
        self.missing = set(missing)
        self.calls = []

    def __call__(self, path):
        self.calls.append(path)
        if path in self.missing or Path(path).name in self.missing:
            raise AssetLoadFailure(path, "file not found")
        return Image.new('RGBA', (40, 30), color=WALNUT_COLOR)

    def count(self, path) -> int:
        return sum(1 for p in self.calls if p == path)


@pytest.fixture
def frames_dir(tmp_path):
    """Asset directory holding the fallback frame and one walnut frame."""
    directory = tmp_path / "assets" / "frames"
    directory.mkdir(parents=True)
    make_frame_png(directory / "black_wood_thin_4x3.png", FALLBACK_COLOR)
    make_frame_png(directory / "dark_walnut_wood_thin_4x3.png", WALNUT_COLOR)
    return directory


@pytest.fixture
def walnut_selection():
    return FrameSelection(color_name="Dark Walnut", material_type="Wood", thickness="Thin")


@pytest.fixture
def asset_manager(frames_dir):
    """Manager reading real PNG files from the temporary asset directory."""
    manager = FrameAssetManager(frames_dir, max_workers=2)
    yield manager
    manager.shutdown()


@pytest.fixture
def make_manager(tmp_path):
    """Build managers around a CountingOpener, shutting them down afterwards."""
    managers = []

    def _make(opener):
        manager = FrameAssetManager(tmp_path / "frames", max_workers=2, image_opener=opener)
        managers.append(manager)
        return manager

    yield _make

    for manager in managers:
        manager.shutdown()


@pytest.fixture
def app(frames_dir, tmp_path):
    """Create and configure a test Flask application."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-key',
        'FRAME_ASSET_DIR': str(frames_dir),
        'LOG_FILE': str(tmp_path / "logs" / "app.log"),
        'ASSET_LOADER_WORKERS': 2,
    })

    yield app

    app.extensions['frame_assets'].shutdown()


@pytest.fixture
def client(app):
    """Create a test client for the Flask application."""
    return app.test_client()
