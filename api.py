#!/usr/bin/env python3
"""FastAPI surface for building captioned GIFs from uploaded images.

Run with: uvicorn api:app
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from errors import ConfigError, EncodeError, FrameHolesError, GifTextError
from gif_pipeline import GifPipeline
from gt_config import load_config

CFG = load_config()
PIPELINE = GifPipeline(CFG)

app = FastAPI(
    title="gif-text API",
    version="1.0",
    description="Upload frames plus an annotated caption and receive an animated GIF.",
)


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}


@app.get("/glyphs")
def glyphs() -> dict:
    """Glyphs accepted in captions and the icon each one renders as."""
    return dict(PIPELINE.settings.icon_map)


@app.post("/gifs")
async def create_gif(
    files: list[UploadFile] = File(...),
    caption: str = Form(...),
    delay: Optional[int] = Form(None),
    lenient: bool = Form(False),
) -> Response:
    """Build a GIF; frames are taken in upload order."""
    images = [await upload.read() for upload in files]
    for upload in files:
        await upload.close()

    try:
        result = await run_in_threadpool(
            PIPELINE.build,
            images,
            caption,
            delay=delay,
            hole_policy="lenient" if lenient else None,
        )
    except FrameHolesError as exc:
        raise HTTPException(
            status_code=422,
            detail={"stage": exc.stage, "holes": exc.holes, "errors": exc.errors},
        ) from exc
    except (ConfigError, EncodeError) as exc:
        raise HTTPException(status_code=400, detail={"stage": exc.stage, "error": str(exc)}) from exc
    except GifTextError as exc:
        raise HTTPException(status_code=500, detail={"stage": exc.stage, "error": str(exc)}) from exc

    headers = {
        "X-Frame-Count": str(result.frame_count),
        "X-Frame-Holes": ",".join(str(idx) for idx in sorted(result.holes)),
    }
    return Response(content=result.data, media_type="image/gif", headers=headers)
