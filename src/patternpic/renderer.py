import logging
from dataclasses import dataclass

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from patternpic.grid import GridSpec, brightness_to_scale
from patternpic.raster import CHANNELS, RasterImage

logger = logging.getLogger(__name__)

BACKGROUND = (255, 255, 255, 255)
WARNING_COLOUR = (255, 196, 0, 255)
WARNING_TEXT_COLOUR = (0, 0, 0, 255)
SOURCE_DECODE_MESSAGE = "Source image could not be decoded"
STAMP_DECODE_MESSAGE = "Pattern image could not be decoded"


@dataclass(frozen=True)
class Placement:
    col: int
    row: int
    x: float  # stamp origin in target space
    y: float
    brightness: float
    scale: float


def plan(source: RasterImage, target_width: int, target_height: int, grid: GridSpec) -> list[Placement]:
    """Work out where each stamp goes and how big it is, without drawing anything.

    Cells whose sample falls outside the source buffer are left out.
    """
    xs, ys = grid.sample_points(source.width, source.height, target_width, target_height)
    if xs.size == 0:
        return []

    offsets = (ys * source.width + xs) * CHANNELS
    valid = offsets + 2 < source.pixels.size
    if not valid.all():
        logger.debug("Skipping %d cells with out-of-range samples", int((~valid).sum()))
    if not valid.any():
        return []

    safe = np.where(valid, offsets, 0)
    rgb = np.stack([source.pixels[safe + c] for c in range(3)]).astype(np.float64)
    brightness = rgb.sum(axis=0) / 3.0
    scales = brightness_to_scale(brightness)

    placements = []
    rows, cols = offsets.shape
    for row in range(rows):
        for col in range(cols):
            if not valid[row, col]:
                continue
            x, y = grid.origin(col, row)
            placements.append(
                Placement(col, row, x, y, float(brightness[row, col]), float(scales[row, col]))
            )
    return placements


def _error_panel(width: int, height: int, message: str) -> RasterImage:
    image = Image.new("RGBA", (width, height), WARNING_COLOUR)
    draw = ImageDraw.Draw(image)
    font = ImageFont.load_default()
    left, top, right, bottom = draw.textbbox((0, 0), message, font=font)
    x = (width - (right - left)) // 2 - left
    y = (height - (bottom - top)) // 2 - top
    draw.text((x, y), message, fill=WARNING_TEXT_COLOUR, font=font)
    return RasterImage.from_pil(image)


class PatternRenderer:
    """Halftone renderer: stamps a brightness-scaled pattern image into each grid cell."""

    def __init__(self, resample=Image.LANCZOS, background: tuple[int, int, int, int] = BACKGROUND):
        self.resample = resample
        self.background = background

    def render(
        self,
        source: RasterImage,
        stamp: RasterImage,
        target_width: int,
        target_height: int,
        reference_width: int,
        reference_height: int,
        cell_width: float,
        cell_height: float,
    ) -> RasterImage:
        """Render a target_width x target_height image.

        Nominal cell sizes are given at the reference resolution and scaled by
        target_width / reference_width. The same source and stamp should be passed
        for preview and full renders so that brightness sampling agrees.
        """
        if min(target_width, target_height, reference_width, reference_height) <= 0:
            raise ValueError(
                f"Dimensions must be positive, got target={target_width}x{target_height} "
                f"reference={reference_width}x{reference_height}"
            )

        if source.is_empty:
            logger.warning("Source image has no pixel data, drawing error panel")
            return _error_panel(target_width, target_height, SOURCE_DECODE_MESSAGE)
        if stamp.is_empty:
            logger.warning("Pattern image has no pixel data, drawing error panel")
            return _error_panel(target_width, target_height, STAMP_DECODE_MESSAGE)

        grid = GridSpec.for_target(cell_width, cell_height, target_width, reference_width)
        placements = plan(source, target_width, target_height, grid)
        logger.debug(
            "Rendering %dx%d: %dx%d cells of %.3fx%.3f px",
            target_width,
            target_height,
            grid.cols(target_width),
            grid.rows(target_height),
            grid.effective_width,
            grid.effective_height,
        )

        canvas = Image.new("RGBA", (target_width, target_height), self.background)
        stamp_image = stamp.to_pil()
        # Scales come from 256 brightness levels, so sizes repeat a lot
        resized: dict[tuple[int, int], Image.Image] = {}
        for p in placements:
            size = (
                max(1, round(grid.effective_width * p.scale)),
                max(1, round(grid.effective_height * p.scale)),
            )
            if size not in resized:
                resized[size] = stamp_image.resize(size, self.resample)
            canvas.alpha_composite(resized[size], dest=(round(p.x), round(p.y)))

        return RasterImage.from_pil(canvas)
