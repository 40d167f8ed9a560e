#!/usr/bin/env python3
"""
Generate the status icons and a set of demo screenshots, then build a demo GIF.

Outputs:
- icons/verifica.png, icons/fechar.png (the ✅ and ❌ icons)
- assets/sample_frames/step_1.jpeg .. step_3.jpeg
- assets/gif-text-demo.gif
"""

from __future__ import annotations

import sys
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from gif_assembler import save_gif  # noqa: E402
from gif_pipeline import GifPipeline  # noqa: E402
from gt_config import load_config  # noqa: E402

ICON_DIR = ROOT / "icons"
FRAME_DIR = ROOT / "assets" / "sample_frames"
OUT_GIF = ROOT / "assets" / "gif-text-demo.gif"

ICON_SIZE = 128
FRAME_W = 640
FRAME_H = 480

GREEN = (40, 167, 69, 255)
RED = (220, 53, 69, 255)
WHITE = (255, 255, 255, 255)
NAVY = (0, 51, 102)
LIGHT_GRAY = (206, 212, 218)
OFFWHITE = (248, 249, 250)

CAPTION = "Visit the home page ✅ Click the hire button ❌ Fill in the user number ✅"
STEPS = ["Home", "Hire", "User form"]


def font(size: int) -> ImageFont.FreeTypeFont:
    return ImageFont.load_default(size=size)


def draw_check_icon() -> Image.Image:
    img = Image.new("RGBA", (ICON_SIZE, ICON_SIZE), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.ellipse((4, 4, ICON_SIZE - 4, ICON_SIZE - 4), fill=GREEN)
    draw.line([(34, 66), (56, 90), (96, 40)], fill=WHITE, width=14, joint="curve")
    return img


def draw_cross_icon() -> Image.Image:
    img = Image.new("RGBA", (ICON_SIZE, ICON_SIZE), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.ellipse((4, 4, ICON_SIZE - 4, ICON_SIZE - 4), fill=RED)
    draw.line([(40, 40), (88, 88)], fill=WHITE, width=14)
    draw.line([(88, 40), (40, 88)], fill=WHITE, width=14)
    return img


def draw_step_frame(index: int, title: str) -> Image.Image:
    img = Image.new("RGB", (FRAME_W, FRAME_H), OFFWHITE)
    draw = ImageDraw.Draw(img)
    draw.rectangle((0, 0, FRAME_W, 56), fill=NAVY)
    draw.text((24, 14), f"Step {index + 1}", font=font(28), fill=WHITE)
    draw.rectangle((40, 96, FRAME_W - 40, FRAME_H - 40), outline=LIGHT_GRAY, width=3)
    draw.text((72, 130), title, font=font(48), fill=NAVY)
    draw.rounded_rectangle((72, 300, 300, 360), radius=12, fill=NAVY)
    return img


def write_assets() -> list[Path]:
    ICON_DIR.mkdir(parents=True, exist_ok=True)
    FRAME_DIR.mkdir(parents=True, exist_ok=True)

    draw_check_icon().save(ICON_DIR / "verifica.png")
    draw_cross_icon().save(ICON_DIR / "fechar.png")

    paths = []
    for i, title in enumerate(STEPS):
        path = FRAME_DIR / f"step_{i + 1}.jpeg"
        draw_step_frame(i, title).save(path, format="JPEG", quality=90)
        paths.append(path)
    return paths


def main() -> None:
    print("Drawing icons and sample frames...")
    frame_paths = write_assets()

    print("Building GIF...")
    cfg = load_config(overrides={"icons": {"folder": str(ICON_DIR)}})
    pipeline = GifPipeline(cfg)
    result = pipeline.build([p.read_bytes() for p in frame_paths], CAPTION)
    save_gif(result.data, OUT_GIF)
    print(f"Done: {OUT_GIF} ({result.frame_count} frames)")


if __name__ == "__main__":
    main()
