import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path

from patternpic import raster
from patternpic.session import RenderContext
from patternpic.settings import Settings

logger = logging.getLogger(__name__)


def _cell_size(value: str) -> tuple[float, float]:
    try:
        w, h = (float(v) for v in value.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected WIDTHxHEIGHT, got {value!r}")
    if w <= 0 or h <= 0:
        raise argparse.ArgumentTypeError(f"Cell size must be positive, got {value!r}")
    return w, h


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render an image as a halftone mosaic of a pattern image")
    parser.add_argument("source", nargs="?", help="Path to source image (default: saved setting)")
    parser.add_argument("stamp", nargs="?", help="Path to pattern image (default: saved setting)")
    parser.add_argument("-o", "--output", default="pattern.png", help="Full-resolution PNG (default: pattern.png)")
    parser.add_argument("-p", "--preview", default=None, help="Also write a preview PNG here")
    parser.add_argument("--width", type=int, default=None, help="Output width in pixels")
    parser.add_argument("--height", type=int, default=None, help="Output height in pixels")
    parser.add_argument("--preview-width", type=int, default=None, help="Preview width in pixels")
    parser.add_argument("--preview-height", type=int, default=None, help="Preview height in pixels")
    parser.add_argument(
        "--cell", type=_cell_size, default=None, help="Cell size at output resolution, e.g. 24x10"
    )
    parser.add_argument("--config", default=None, help="Settings file (default: user config dir)")
    parser.add_argument("--save", action="store_true", default=False, help="Remember these choices for next time")
    parser.add_argument("-v", "--verbose", action="store_true", default=False, help="Debug logging")
    return parser


def _merge(settings: Settings, args: argparse.Namespace) -> Settings:
    overrides = {
        # Stored absolute so saved settings work from any directory
        "source_path": str(Path(args.source).resolve()) if args.source is not None else None,
        "stamp_path": str(Path(args.stamp).resolve()) if args.stamp is not None else None,
        "output_width": args.width,
        "output_height": args.height,
        "preview_width": args.preview_width,
        "preview_height": args.preview_height,
    }
    if args.cell is not None:
        overrides["cell_width"], overrides["cell_height"] = args.cell
    return replace(settings, **{k: v for k, v in overrides.items() if v is not None})


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = _merge(Settings.load(args.config), args)
        settings.validate()
    except ValueError as e:
        print(f"Bad settings: {e}", file=sys.stderr)
        return 1

    for label, path in (("source", settings.source_path), ("pattern", settings.stamp_path)):
        if path is None:
            print(f"No {label} image given and none saved", file=sys.stderr)
            return 1
        if not Path(path).exists():
            print(f"File not found: {path}", file=sys.stderr)
            return 1

    if args.save:
        settings.save(args.config)

    context = asyncio.run(RenderContext.load(settings))
    if not context.ready:
        logger.error("Images are still placeholders, nothing rendered")
        return 1

    if args.preview is not None:
        raster.save_png(context.render_preview(), args.preview)
    context.export(args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
