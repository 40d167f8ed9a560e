#!/usr/bin/env python3
"""
Per-frame processing: decode, resize, quantize, caption.

Every frame is an independent unit of work dispatched to a bounded pool.
A unit never raises into the batch; a failed frame comes back as a hole
(``ProcessedFrame.raster is None``) carrying its original index.
"""

from __future__ import annotations

import io
import logging
import multiprocessing as mp
import time
from concurrent.futures import (
    FIRST_COMPLETED,
    Executor,
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    wait,
)
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Iterator, Mapping, Optional, Sequence

from PIL import Image, UnidentifiedImageError

from caption_segmenter import CaptionToken
from errors import ConfigError, DecodeError, GifTextError
from overlay_renderer import IconStore, OverlayStyle, render_caption

log = logging.getLogger("GifText")

RESAMPLE_FILTERS = {
    "lanczos": Image.Resampling.LANCZOS,
    "bicubic": Image.Resampling.BICUBIC,
    "bilinear": Image.Resampling.BILINEAR,
    "nearest": Image.Resampling.NEAREST,
}


def _plan9_palette() -> bytes:
    """The 256-colour Plan 9 rgbv colour map."""
    colors: list[tuple[int, int, int]] = [(0, 0, 0)] * 256
    base = 0
    for r in range(4):
        for v in range(4):
            slot = v - r
            for g in range(4):
                for b in range(4):
                    den = max(r, g, b)
                    if den == 0:
                        c = 17 * v
                        rgb = (c, c, c)
                    else:
                        num = 17 * (4 * den + v)
                        rgb = (r * num // den, g * num // den, b * num // den)
                    colors[base + (slot & 0x0F)] = rgb
                    slot += 1
            base += 16
    return bytes(channel for rgb in colors for channel in rgb)


def _websafe_palette() -> bytes:
    steps = range(0, 256, 0x33)
    return bytes(channel for r in steps for g in steps for b in steps for channel in (r, g, b))


PALETTES: Mapping[str, bytes] = {
    "plan9": _plan9_palette(),
    "websafe": _websafe_palette(),
}


@lru_cache(maxsize=None)
def palette_image(name: str) -> Image.Image:
    """A 1x1 "P" image carrying the named palette, used as a quantize target."""
    try:
        data = PALETTES[name]
    except KeyError:
        raise ConfigError(f"Unknown palette '{name}'. Allowed: {', '.join(PALETTES)}") from None
    img = Image.new("P", (1, 1))
    img.putpalette(data)
    return img


@dataclass(frozen=True)
class FrameInput:
    index: int
    raw_bytes: bytes
    caption: CaptionToken


@dataclass(frozen=True)
class ProcessedFrame:
    index: int
    raster: Optional[Image.Image]
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.raster is not None


@dataclass(frozen=True)
class FrameSettings:
    width: int = 300
    height: int = 300
    resample: str = "lanczos"
    palette: str = "plan9"
    decoder_formats: tuple[str, ...] = ("JPEG", "PNG")
    style: OverlayStyle = field(default_factory=OverlayStyle)
    icon_map: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_config(cls, cfg: dict) -> "FrameSettings":
        frame_cfg = cfg.get("frame", {})
        settings = cls(
            width=int(frame_cfg.get("width", 300)),
            height=int(frame_cfg.get("height", 300)),
            resample=str(frame_cfg.get("resample", "lanczos")).lower(),
            palette=str(cfg.get("palette", "plan9")).lower(),
            decoder_formats=tuple(f.upper() for f in cfg.get("decoder_formats", ["JPEG", "PNG"])),
            style=OverlayStyle.from_config(cfg),
            icon_map=dict(cfg.get("icons", {}).get("glyphs", {})),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ConfigError(f"Frame size must be positive, got {self.width}x{self.height}")
        if self.resample not in RESAMPLE_FILTERS:
            raise ConfigError(
                f"Unknown resample filter '{self.resample}'. Allowed: {', '.join(RESAMPLE_FILTERS)}"
            )
        if not self.decoder_formats:
            raise ConfigError("At least one decoder format is required")
        palette_image(self.palette)


def decode_image(raw: bytes, formats: Sequence[str]) -> Image.Image:
    try:
        img = Image.open(io.BytesIO(raw), formats=list(formats))
        img.load()
    except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as exc:
        raise DecodeError(f"Unsupported or corrupt image data ({exc})") from exc
    return img.convert("RGB")


def quantize(img: Image.Image, palette_name: str) -> Image.Image:
    return img.convert("RGB").quantize(
        palette=palette_image(palette_name), dither=Image.Dither.NONE
    )


def process_frame(
    frame: FrameInput, settings: FrameSettings, icon_store: IconStore
) -> ProcessedFrame:
    """Run one frame through decode, resize, quantize and caption rendering."""
    try:
        img = decode_image(frame.raw_bytes, settings.decoder_formats)
        img = img.resize((settings.width, settings.height), RESAMPLE_FILTERS[settings.resample])
        img = quantize(img, settings.palette)
        composed = render_caption(
            img, frame.caption, settings.icon_map, icon_store, settings.style
        )
    except GifTextError as exc:
        log.warning("Frame %d dropped at %s stage: %s", frame.index, exc.stage, exc)
        return ProcessedFrame(frame.index, None, f"{type(exc).__name__}: {exc}")
    return ProcessedFrame(frame.index, quantize(composed, settings.palette))


def _make_executor(kind: str, max_workers: int) -> Executor:
    if kind == "thread":
        return ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="frame")
    if kind == "process":
        return ProcessPoolExecutor(max_workers=max_workers, mp_context=mp.get_context("spawn"))
    raise ConfigError(f"Unknown executor '{kind}'. Allowed: thread, process")


def _retire_executor(pool: Executor, stalled: bool) -> None:
    """Shut a pool down without waiting; kill its processes if units are stuck in them."""
    pool.shutdown(wait=False, cancel_futures=True)
    if not stalled or not isinstance(pool, ProcessPoolExecutor):
        return
    terminate = getattr(pool, "terminate_workers", None)
    if terminate is not None:
        terminate()
        return
    # Python < 3.14 has no public way to stop a busy worker process.
    for proc in list((getattr(pool, "_processes", None) or {}).values()):
        proc.terminate()


def iter_processed_frames(
    frames: Sequence[FrameInput],
    settings: FrameSettings,
    icon_store: IconStore,
    *,
    executor: str = "process",
    max_workers: int = 4,
    frame_timeout: Optional[float] = None,
    poll_interval: float = 0.05,
    cancel_event=None,
) -> Iterator[ProcessedFrame]:
    """
    Yield exactly one ProcessedFrame per input, in completion order.

    A unit observed running for longer than ``frame_timeout`` seconds is
    abandoned and reported as a hole. Once abandoned units occupy every
    worker of a pool, the units still queued on it move to a fresh pool.
    Setting ``cancel_event`` turns every unit still pending into a hole.
    """
    if not frames:
        return

    workers = max(1, min(max_workers, len(frames)))
    pool = _make_executor(executor, workers)
    retired: list[Executor] = []
    stalled_pools: set[int] = set()
    pending: dict[Future, FrameInput] = {}
    owner: dict[Future, Executor] = {}
    started: dict[Future, float] = {}
    stuck = 0

    def submit(frame: FrameInput) -> None:
        fut = pool.submit(process_frame, frame, settings, icon_store)
        pending[fut] = frame
        owner[fut] = pool

    try:
        for frame in frames:
            submit(frame)

        while pending:
            if cancel_event is not None and cancel_event.is_set():
                log.warning("Cancellation requested, abandoning %d frame(s)", len(pending))
                for fut, frame in list(pending.items()):
                    fut.cancel()
                    yield ProcessedFrame(frame.index, None, "cancelled")
                pending.clear()
                break

            done, _ = wait(list(pending), timeout=poll_interval, return_when=FIRST_COMPLETED)
            for fut in done:
                frame = pending.pop(fut)
                owner.pop(fut, None)
                started.pop(fut, None)
                try:
                    yield fut.result()
                except Exception as exc:
                    log.exception("Frame %d failed unexpectedly", frame.index)
                    yield ProcessedFrame(frame.index, None, f"{type(exc).__name__}: {exc}")

            if frame_timeout is None:
                continue
            now = time.monotonic()
            for fut, frame in list(pending.items()):
                if fut.running():
                    started.setdefault(fut, now)
                if fut in started and now - started[fut] > frame_timeout:
                    fut.cancel()
                    del pending[fut]
                    del started[fut]
                    stalled_pools.add(id(owner[fut]))
                    if owner.pop(fut) is pool:
                        stuck += 1
                    log.warning("Frame %d timed out after %.1fs", frame.index, frame_timeout)
                    yield ProcessedFrame(frame.index, None, "timeout")

            if stuck >= workers and pending:
                queued = [(fut, frame) for fut, frame in pending.items() if fut.cancel()]
                if queued:
                    log.warning(
                        "All %d worker(s) stalled, moving %d queued frame(s) to a fresh pool",
                        workers,
                        len(queued),
                    )
                    retired.append(pool)
                    pool = _make_executor(executor, workers)
                    stuck = 0
                    for fut, frame in queued:
                        del pending[fut]
                        del owner[fut]
                        submit(frame)
    finally:
        for old in [*retired, pool]:
            _retire_executor(old, id(old) in stalled_pools)
