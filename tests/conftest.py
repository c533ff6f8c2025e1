import numpy as np
import pytest
from PIL import Image

from patternpic.raster import RasterImage


def solid(width, height, rgb, alpha=255):
    """Build a RasterImage filled with a single colour."""
    return RasterImage.filled(width, height, (*rgb, alpha))


def halves(width, height, left_rgb, right_rgb):
    """RasterImage split vertically into two colours."""
    arr = np.empty((height, width, 4), dtype=np.uint8)
    arr[:, : width // 2] = (*left_rgb, 255)
    arr[:, width // 2 :] = (*right_rgb, 255)
    return RasterImage(width, height, arr.reshape(-1))


@pytest.fixture
def black_stamp():
    return solid(8, 8, (0, 0, 0))


@pytest.fixture
def image_files(tmp_path):
    """A white source image and a black pattern image on disk."""
    source = tmp_path / "source.png"
    stamp = tmp_path / "stamp.png"
    Image.new("RGB", (64, 48), (255, 255, 255)).save(source)
    Image.new("RGBA", (8, 8), (0, 0, 0, 255)).save(stamp)
    return source, stamp
