import argparse
import logging
import os

from svg2raster.errors import Svg2RasterError
from svg2raster.models import SUPPORTED_FORMATS
from svg2raster.renderer import render_sync

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Render an SVG file with a headless browser."
    )
    parser.add_argument("input", metavar="INPUT", type=str, help="Input SVG file.")
    parser.add_argument(
        "--output",
        metavar="PATH",
        default=None,
        help="Output file. default INPUT with the output type extension",
    )
    parser.add_argument(
        "--type",
        dest="output_type",
        metavar="FORMAT",
        choices=SUPPORTED_FORMATS,
        default="png",
        help="Output format (png, jpeg, webp). Default: png",
    )
    parser.add_argument(
        "--quality",
        metavar="Q",
        type=float,
        default=1.0,
        help="JPEG quality between 0 and 1. Default: 1",
    )
    parser.add_argument(
        "--scale",
        dest="device_scale_factor",
        metavar="SCALE",
        type=float,
        default=2.0,
        help="Device scale factor. Default: 2",
    )
    parser.add_argument(
        "--timeout",
        dest="timeout_ms",
        metavar="MS",
        type=float,
        default=30000.0,
        help="Content load timeout in milliseconds. Default: 30000",
    )
    parser.add_argument(
        "--browser",
        dest="browser_type",
        metavar="TYPE",
        choices=["chromium", "firefox", "webkit"],
        default="chromium",
        help="Browser engine. Default: chromium",
    )
    parser.add_argument(
        "--debug-dir",
        metavar="PATH",
        default=None,
        help="Write the HTML shell and the capture to this directory.",
    )
    parser.add_argument(
        "--loglevel",
        metavar="LEVEL",
        default="WARNING",
        help="Logging level, default WARNING",
    )
    return parser.parse_args()


def main() -> int:
    """Render an SVG file to a raster image."""
    args = parse_args()
    logging.basicConfig(level=getattr(logging, args.loglevel.upper(), "WARNING"))

    output = args.output or "{}.{}".format(
        os.path.splitext(args.input)[0], args.output_type
    )
    with open(args.input, encoding="utf-8") as f:
        svg = f.read()

    try:
        result = render_sync(
            svg,
            browser_type=args.browser_type,
            debug_dir=args.debug_dir,
            output_type=args.output_type,
            quality=args.quality,
            device_scale_factor=args.device_scale_factor,
            timeout_ms=args.timeout_ms,
            output_path=output,
        )
    except Svg2RasterError as e:
        logger.error(f"{e.kind}: {e.message}")
        return 1

    logger.info(f"Saved {result.width}x{result.height} {result.format} to {output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
