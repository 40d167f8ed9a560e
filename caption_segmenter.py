#!/usr/bin/env python3
"""
Caption segmentation.

A caption string interleaves plain text with status glyphs ("Other Symbol"
characters such as ✅ or ❌) and carries no other separators:

    "Open the home page ✅ Click hire ❌ Fill in the user number ✅"

Each glyph closes one frame caption. Segmentation is a fold over the glyphs
in order of appearance: every current segment is split on the glyph, the
pieces are trimmed, empty pieces dropped, and the glyph is re-attached to
every piece except the last one of each split.
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass
from itertools import groupby


@dataclass(frozen=True)
class CaptionToken:
    text: str
    glyph: str


def is_glyph_char(char: str) -> bool:
    return unicodedata.category(char) == "So"


def extract_glyphs(text: str) -> list[str]:
    """Return every run of consecutive symbol characters, repeats included."""
    return [
        "".join(run)
        for is_symbol, run in groupby(text, key=is_glyph_char)
        if is_symbol
    ]


def split_on_glyphs(segments: list[str], glyphs: list[str]) -> list[str]:
    parts = list(segments)
    for glyph in glyphs:
        next_parts: list[str] = []
        for part in parts:
            pieces = part.split(glyph)
            last = len(pieces) - 1
            for i, piece in enumerate(pieces):
                trimmed = piece.strip()
                if not trimmed:
                    continue
                next_parts.append(trimmed + glyph if i < last else trimmed)
        parts = next_parts
    return parts


def token_from_segment(segment: str) -> CaptionToken:
    """Split a folded segment into its text and its trailing glyph run."""
    end = len(segment)
    start = end
    while start > 0 and is_glyph_char(segment[start - 1]):
        start -= 1
    return CaptionToken(text=segment[:start].strip(), glyph=segment[start:end])


def segment_caption(text: str) -> list[CaptionToken]:
    """
    Turn one raw caption string into ordered caption tokens.

    A caption without any glyph yields a single token with an empty glyph;
    rejecting it is left to the renderer.
    """
    glyphs = extract_glyphs(text)
    if not glyphs:
        return [CaptionToken(text=text.strip(), glyph="")]
    return [token_from_segment(segment) for segment in split_on_glyphs([text], glyphs)]
