#!/usr/bin/env python3
"""
gif-text: turn a list of screenshots plus one annotated caption into a
captioned, looping GIF.

    python main.py step1.jpeg step2.jpeg step3.jpeg \
        --caption "Open the home page ✅ Click hire ❌ Fill in the user number ✅" \
        --output output.gif

Each caption fragment ends in a status glyph (✅, ❌, ...) that is drawn as
an icon next to the text.

Icons are looked up in `icons.folder` (default ./icons), which the repo does
not ship. Run `python scripts/generate_sample_assets.py` to draw the
default ✅/❌ icons, or point `icons.folder` at your own set in config.yaml.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from errors import GifTextError
from gif_assembler import save_gif
from gif_pipeline import GifPipeline
from gt_config import load_config, resolve_path


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(processName)s %(levelname)-7s %(message)s",
        datefmt="%H:%M:%S",
    )


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Build a captioned GIF from still images")
    parser.add_argument("images", nargs="+", help="Source images, in frame order")
    parser.add_argument(
        "--caption",
        "-c",
        required=True,
        help="Caption text with one status glyph closing each frame's caption",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        default=None,
        help="Output GIF path (defaults to config.output_path)",
    )
    parser.add_argument(
        "--delay",
        type=int,
        default=None,
        help="Per-frame delay in hundredths of a second (defaults to config.delay)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Number of frame workers (defaults to config.pipeline.max_workers)",
    )
    parser.add_argument(
        "--lenient",
        action="store_true",
        help="Skip frames that fail instead of aborting the run",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Optional path to config.yaml",
    )
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)
    log = logging.getLogger("GifText")

    overrides: dict = {}
    if args.workers and args.workers > 0:
        overrides["pipeline"] = {"max_workers": args.workers}
    if args.lenient:
        overrides.setdefault("pipeline", {})["hole_policy"] = "lenient"

    try:
        cfg = load_config(args.config, overrides)
        pipeline = GifPipeline(cfg)
        images = []
        for name in args.images:
            try:
                images.append(Path(name).expanduser().read_bytes())
            except OSError as exc:
                raise GifTextError(f"Cannot read image {name}: {exc}", stage="read") from exc
        result = pipeline.build(images, args.caption, delay=args.delay)
    except GifTextError as exc:
        log.error("Failed at %s stage: %s", exc.stage, exc)
        return 1

    output = Path(args.output) if args.output else Path(resolve_path(cfg.get("output_path", "./output.gif")))
    try:
        saved = save_gif(result.data, output)
    except OSError as exc:
        log.error("Failed at persist stage: %s", exc)
        return 1

    if result.holes:
        log.warning("Skipped frame(s): %s", sorted(result.holes))
    log.info("✅ GIF with %d frame(s) saved to %s", result.frame_count, saved)
    return 0


if __name__ == "__main__":
    sys.exit(main())
