import math
from dataclasses import dataclass

import numpy as np

# Brightness -> stamp scale mapping
BRIGHTNESS_MAX = 255.0
SCALE_LOW = 0.1
SCALE_HIGH = 1.0
# Clamp bounds; the upper one sits above SCALE_HIGH and is only reachable by other scale sources
SCALE_MIN = 0.1
SCALE_MAX = 1.5


def brightness_to_scale(brightness):
    """Map brightness in [0, 255] linearly onto [0.1, 1.0], then clamp to [0.1, 1.5].

    Accepts a float or a numpy array.
    """
    mapped = SCALE_LOW + np.asarray(brightness, dtype=np.float64) / BRIGHTNESS_MAX * (SCALE_HIGH - SCALE_LOW)
    clamped = np.clip(mapped, SCALE_MIN, SCALE_MAX)
    return float(clamped) if clamped.ndim == 0 else clamped


@dataclass(frozen=True)
class GridSpec:
    cell_width: float
    cell_height: float
    scale_factor: float = 1.0

    def __post_init__(self):
        if self.effective_width <= 0 or self.effective_height <= 0:
            raise ValueError(
                f"Effective cell size must be positive, got {self.effective_width}x{self.effective_height}"
            )

    @classmethod
    def for_target(cls, cell_width: float, cell_height: float, target_width: int, reference_width: int) -> "GridSpec":
        """Scale nominal (reference-resolution) cells to a render target.

        Only the width ratio is used; a target whose aspect ratio differs from the
        reference gets cells that are stretched accordingly.
        """
        if target_width <= 0 or reference_width <= 0:
            raise ValueError(f"Widths must be positive, got target={target_width} reference={reference_width}")
        return cls(cell_width, cell_height, target_width / reference_width)

    @property
    def effective_width(self) -> float:
        return self.cell_width * self.scale_factor

    @property
    def effective_height(self) -> float:
        return self.cell_height * self.scale_factor

    def cols(self, target_width: int) -> int:
        return math.floor(target_width / self.effective_width)

    def rows(self, target_height: int) -> int:
        return math.floor(target_height / self.effective_height)

    def origin(self, col: int, row: int) -> tuple[float, float]:
        return col * self.effective_width, row * self.effective_height

    def sample_points(
        self, source_width: int, source_height: int, target_width: int, target_height: int
    ) -> tuple[np.ndarray, np.ndarray]:
        """Source pixel coordinates under each cell centre. Returns (xs, ys) of shape (rows, cols)."""
        cols = self.cols(target_width)
        rows = self.rows(target_height)
        cx = (np.arange(cols) + 0.5) * self.effective_width * (source_width / target_width)
        cy = (np.arange(rows) + 0.5) * self.effective_height * (source_height / target_height)
        xs = np.clip(np.floor(cx).astype(np.int64), 0, max(source_width - 1, 0))
        ys = np.clip(np.floor(cy).astype(np.int64), 0, max(source_height - 1, 0))
        return np.broadcast_to(xs[None, :], (rows, cols)), np.broadcast_to(ys[:, None], (rows, cols))
