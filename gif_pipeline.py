#!/usr/bin/env python3
"""
Caption-to-GIF pipeline.

Segments the caption, fans frames out to the worker pool, restores order,
applies the hole policy and encodes the result. A pipeline object only
holds configuration; every call to ``build`` is independent.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from caption_segmenter import segment_caption
from errors import ConfigError, EncodeError, FrameHolesError
from frame_aggregator import aggregate_frames
from frame_processor import FrameInput, FrameSettings, iter_processed_frames
from gif_assembler import assemble_gif
from gt_config import resolve_path
from overlay_renderer import FileIconStore, IconStore

log = logging.getLogger("GifText")


class HolePolicy(str, Enum):
    STRICT = "strict"
    LENIENT = "lenient"


@dataclass(frozen=True)
class GifResult:
    data: bytes
    frame_count: int
    holes: frozenset[int]
    errors: dict[int, str]


class GifPipeline:
    """Builds captioned GIFs from raw image bytes."""

    def __init__(self, cfg: dict, icon_store: Optional[IconStore] = None):
        self.cfg = cfg
        self.settings = FrameSettings.from_config(cfg)

        pipeline_cfg = cfg.get("pipeline", {})
        self.executor = str(pipeline_cfg.get("executor", "process"))
        if self.executor not in ("thread", "process"):
            raise ConfigError(f"Unknown executor '{self.executor}'. Allowed: thread, process")
        self.max_workers = int(pipeline_cfg.get("max_workers", 4))
        timeout = pipeline_cfg.get("frame_timeout_seconds")
        self.frame_timeout = float(timeout) if timeout else None
        self.poll_interval = float(pipeline_cfg.get("poll_interval_seconds", 0.05))
        self.hole_policy = self._parse_policy(pipeline_cfg.get("hole_policy", "strict"))
        self.delay = self._parse_delay(cfg.get("delay", 100))

        if icon_store is None:
            folder = resolve_path(cfg.get("icons", {}).get("folder", "./icons"))
            if not os.path.isdir(folder):
                log.warning(
                    "Icon folder %s does not exist; run scripts/generate_sample_assets.py "
                    "or set icons.folder in config.yaml",
                    folder,
                )
            icon_store = FileIconStore(folder)
        self.icon_store = icon_store

        log.info(
            "GifPipeline initialized (%dx%d, palette=%s, executor=%s x%d, policy=%s)",
            self.settings.width,
            self.settings.height,
            self.settings.palette,
            self.executor,
            self.max_workers,
            self.hole_policy.value,
        )

    @staticmethod
    def _parse_policy(value) -> HolePolicy:
        try:
            return HolePolicy(str(value).lower())
        except ValueError:
            raise ConfigError(f"Unknown hole policy '{value}'. Allowed: strict, lenient") from None

    @staticmethod
    def _parse_delay(value) -> int:
        delay = int(value)
        if delay < 0:
            raise ConfigError(f"Frame delay must not be negative, got {delay}")
        return delay

    def build_inputs(self, images: Sequence[bytes], caption: str) -> list[FrameInput]:
        tokens = segment_caption(caption)
        if len(tokens) < len(images):
            raise ConfigError(
                f"Not enough captions for all images ({len(tokens)} caption(s), {len(images)} image(s))"
            )
        if len(tokens) > len(images):
            log.warning("Ignoring %d extra caption(s)", len(tokens) - len(images))
        return [
            FrameInput(index=i, raw_bytes=raw, caption=tokens[i])
            for i, raw in enumerate(images)
        ]

    def build(
        self,
        images: Sequence[bytes],
        caption: str,
        delay: Optional[int] = None,
        hole_policy: Optional[str] = None,
        cancel_event=None,
    ) -> GifResult:
        """
        Produce one captioned GIF from ``images`` and ``caption``.

        Raises ``FrameHolesError`` under the strict policy when any frame
        failed, and ``EncodeError`` when no frame is left to encode.
        """
        delay = self.delay if delay is None else self._parse_delay(delay)
        policy = self.hole_policy if hole_policy is None else self._parse_policy(hole_policy)

        if not images:
            raise EncodeError("No images supplied")
        inputs = self.build_inputs(images, caption)

        log.info("Processing %d frame(s)", len(inputs))
        results = iter_processed_frames(
            inputs,
            self.settings,
            self.icon_store,
            executor=self.executor,
            max_workers=self.max_workers,
            frame_timeout=self.frame_timeout,
            poll_interval=self.poll_interval,
            cancel_event=cancel_event,
        )
        aggregate = aggregate_frames(results, len(inputs))

        if aggregate.holes:
            if policy is HolePolicy.STRICT:
                raise FrameHolesError(sorted(aggregate.holes), aggregate.errors)
            log.warning(
                "Continuing without %d failed frame(s): %s",
                len(aggregate.holes),
                sorted(aggregate.holes),
            )

        frames = aggregate.present()
        data = assemble_gif(frames, delay)
        return GifResult(
            data=data,
            frame_count=len(frames),
            holes=aggregate.holes,
            errors=aggregate.errors,
        )
