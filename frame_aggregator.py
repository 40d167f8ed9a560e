#!/usr/bin/env python3
"""Fan-in of per-frame results back into original frame order."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from PIL import Image

from errors import GifTextError
from frame_processor import ProcessedFrame


@dataclass
class AggregateResult:
    frames: list[Optional[Image.Image]]
    holes: frozenset[int]
    errors: dict[int, str] = field(default_factory=dict)

    def present(self) -> list[Image.Image]:
        """Rasters in original order with the holes left out."""
        return [frame for frame in self.frames if frame is not None]


def aggregate_frames(results: Iterable[ProcessedFrame], count: int) -> AggregateResult:
    """
    Consume exactly ``count`` results and place each one at its own index.

    Blocks until the result stream has produced all of them. Whether holes
    are acceptable is left to the caller.
    """
    frames: list[Optional[Image.Image]] = [None] * count
    seen: set[int] = set()
    errors: dict[int, str] = {}

    for result in results:
        if not 0 <= result.index < count:
            raise GifTextError(
                f"Frame index {result.index} outside 0..{count - 1}", stage="aggregate"
            )
        if result.index in seen:
            raise GifTextError(f"Frame {result.index} reported twice", stage="aggregate")
        seen.add(result.index)
        frames[result.index] = result.raster
        if result.raster is None:
            errors[result.index] = result.error or "unknown error"

    if len(seen) != count:
        missing = sorted(set(range(count)) - seen)
        raise GifTextError(
            f"Result stream ended with {len(missing)} frame(s) unreported: {missing}",
            stage="aggregate",
        )

    holes = frozenset(idx for idx, frame in enumerate(frames) if frame is None)
    return AggregateResult(frames=frames, holes=holes, errors=errors)
