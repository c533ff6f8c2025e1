import io
import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

CHANNELS = 4  # R, G, B, A


@dataclass(frozen=True, eq=False)
class RasterImage:
    """Decoded RGBA image. `pixels` is a flat uint8 buffer, row-major, 4 bytes per pixel."""

    width: int
    height: int
    pixels: np.ndarray

    @classmethod
    def placeholder(cls) -> "RasterImage":
        """1x1 white image standing in for an image that hasn't loaded yet."""
        return cls(1, 1, np.full(CHANNELS, 255, dtype=np.uint8))

    @classmethod
    def failed(cls, width: int = 0, height: int = 0) -> "RasterImage":
        """Image whose bytes could not be decoded: the pixel buffer is empty."""
        return cls(width, height, np.empty(0, dtype=np.uint8))

    @classmethod
    def from_pil(cls, image: Image.Image) -> "RasterImage":
        image = image.convert("RGBA")
        arr = np.asarray(image, dtype=np.uint8)
        return cls(image.width, image.height, arr.reshape(-1).copy())

    @classmethod
    def filled(cls, width: int, height: int, colour: tuple[int, int, int, int]) -> "RasterImage":
        arr = np.empty((height, width, CHANNELS), dtype=np.uint8)
        arr[:, :] = colour
        return cls(width, height, arr.reshape(-1))

    @property
    def is_placeholder(self) -> bool:
        # A failed decode is not a placeholder; it gets rendered as an error panel
        return not self.is_empty and (self.width <= 1 or self.height <= 1)

    @property
    def is_empty(self) -> bool:
        return self.pixels.size == 0

    def as_array(self) -> np.ndarray:
        """View the buffer as (height, width, 4)."""
        return self.pixels.reshape(self.height, self.width, CHANNELS)

    def to_pil(self) -> Image.Image:
        return Image.fromarray(self.as_array(), "RGBA")


def decode(data: str | Path | bytes) -> RasterImage:
    """Decode an image file (or its raw bytes) into RGBA. Raises on undecodable input."""
    if isinstance(data, bytes):
        data = io.BytesIO(data)
    with Image.open(data) as image:
        image.load()
        return RasterImage.from_pil(image)


def load(path: str | Path) -> RasterImage:
    """Decode an image, degrading to a failed (empty) image instead of raising."""
    try:
        return decode(path)
    except (OSError, Image.DecompressionBombError) as e:
        logger.warning("Could not decode %s: %s", path, e)
        return RasterImage.failed()


def save_png(image: RasterImage, path: str | Path) -> Path:
    path = Path(path)
    image.to_pil().save(path, format="PNG")
    logger.info("Wrote %dx%d image to %s", image.width, image.height, path)
    return path


def to_png_bytes(image: RasterImage) -> bytes:
    buf = io.BytesIO()
    image.to_pil().save(buf, format="PNG")
    return buf.getvalue()
