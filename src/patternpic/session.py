import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path

from patternpic import raster
from patternpic.raster import RasterImage
from patternpic.renderer import PatternRenderer
from patternpic.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class RenderContext:
    """Images and dimensions for one editing session.

    The full output size doubles as the reference resolution that cell sizes are
    defined at; the preview is rendered relative to it.
    """

    source: RasterImage = field(default_factory=RasterImage.placeholder)
    stamp: RasterImage = field(default_factory=RasterImage.placeholder)
    settings: Settings = field(default_factory=Settings)
    renderer: PatternRenderer = field(default_factory=PatternRenderer)

    @classmethod
    async def load(cls, settings: Settings, renderer: PatternRenderer | None = None) -> "RenderContext":
        """Decode the source and stamp named in `settings` concurrently.

        Missing paths leave the placeholder in place. Files that fail to decode
        come back as failed (empty) images.
        """
        source, stamp = await asyncio.gather(
            _load_optional(settings.source_path),
            _load_optional(settings.stamp_path),
        )
        return cls(source=source, stamp=stamp, settings=settings, renderer=renderer or PatternRenderer())

    @property
    def ready(self) -> bool:
        return not (self.source.is_placeholder or self.stamp.is_placeholder)

    def render(self, width: int, height: int) -> RasterImage | None:
        if not self.ready:
            logger.info("Images not loaded yet, skipping %dx%d render", width, height)
            return None
        s = self.settings
        return self.renderer.render(
            self.source,
            self.stamp,
            width,
            height,
            s.output_width,
            s.output_height,
            s.cell_width,
            s.cell_height,
        )

    def render_preview(self) -> RasterImage | None:
        return self.render(self.settings.preview_width, self.settings.preview_height)

    def render_full(self) -> RasterImage | None:
        return self.render(self.settings.output_width, self.settings.output_height)

    def export(self, path: str | Path) -> Path | None:
        """Render at full size and write a PNG. Returns None if there was nothing to render."""
        image = self.render_full()
        if image is None:
            return None
        return raster.save_png(image, path)


async def _load_optional(path: str | None) -> RasterImage:
    if path is None:
        return RasterImage.placeholder()
    return await asyncio.to_thread(raster.load, path)
