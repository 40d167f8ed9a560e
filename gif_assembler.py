#!/usr/bin/env python3
"""
Multi-frame GIF encoding for frames that already share one palette.

The container is written block by block: one global colour table taken
from the first frame, a NETSCAPE loop extension, then every frame as its
own image block without a local colour table. Pillow's ``save_all`` would
fold identical consecutive frames into one, so it is not used here.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Sequence, Union

from PIL import GifImagePlugin, Image

from errors import EncodeError

log = logging.getLogger("GifText")

GIF_TRAILER = b";"


def assemble_gif(frames: Sequence[Image.Image], delay: int) -> bytes:
    """
    Encode ``frames`` in order into one looping GIF.

    ``delay`` is in hundredths of a second and applies to every frame. The
    frames must already be quantized to the same palette; that is not
    checked here.
    """
    if not frames:
        raise EncodeError("No frames to encode")
    if delay < 0:
        raise EncodeError(f"Frame delay must not be negative, got {delay}")

    duration = delay * 10
    # getheader rewrites the image it is given.
    first = frames[0].copy()
    buf = io.BytesIO()
    try:
        header, _ = GifImagePlugin.getheader(
            first, None, {"loop": 0, "duration": duration, "optimize": False}
        )
        buf.write(b"".join(header))
        for frame in [first, *frames[1:]]:
            buf.write(b"".join(GifImagePlugin.getdata(frame, duration=duration)))
        buf.write(GIF_TRAILER)
    except (OSError, ValueError) as exc:
        raise EncodeError(f"Failed to encode GIF: {exc}") from exc

    data = buf.getvalue()
    log.info("Encoded %d frame(s), %d bytes", len(frames), len(data))
    return data


def save_gif(data: bytes, path: Union[str, Path]) -> Path:
    out = Path(path).expanduser()
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(data)
    return out
