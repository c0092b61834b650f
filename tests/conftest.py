import numpy as np
import pytest
from PIL import Image

from mipatlas.device import open_device
from mipatlas.models import MipmapConfig


def make_image(width: int, height: int, seed: int = 0) -> Image.Image:
    """Random opaque RGBA test image."""
    rng = np.random.default_rng(seed)
    pixels = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    pixels[..., 3] = 255
    return Image.fromarray(pixels)


def make_solid_image(width: int, height: int, color=(10, 200, 30, 255)) -> Image.Image:
    return Image.new("RGBA", (width, height), color)


@pytest.fixture
def config():
    return MipmapConfig()


@pytest.fixture
def context(config):
    with open_device(config) as ctx:
        yield ctx
