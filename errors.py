#!/usr/bin/env python3
"""Error kinds raised by the gif-text pipeline, each tagged with its stage."""

from __future__ import annotations


class GifTextError(Exception):
    """Base error; ``stage`` names the pipeline step that failed."""

    stage = "pipeline"

    def __init__(self, message: str, stage: str | None = None):
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class ConfigError(GifTextError):
    stage = "config"


class SegmentationError(GifTextError):
    stage = "segment"


class DecodeError(GifTextError):
    stage = "decode"


class RenderError(GifTextError):
    stage = "render"


class EncodeError(GifTextError):
    stage = "encode"


class FrameHolesError(GifTextError):
    """Raised under the strict hole policy when any frame failed."""

    stage = "aggregate"

    def __init__(self, holes: list[int], errors: dict[int, str] | None = None):
        self.holes = sorted(holes)
        self.errors = dict(errors or {})
        detail = ", ".join(
            f"{idx}: {self.errors.get(idx, 'unknown')}" for idx in self.holes
        )
        super().__init__(f"{len(self.holes)} frame(s) failed ({detail})")
