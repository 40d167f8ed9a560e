import pytest
from PIL import Image, ImageDraw

from caption_segmenter import CaptionToken
from errors import RenderError, SegmentationError
from overlay_renderer import FileIconStore, OverlayStyle, load_font, render_caption

ICON_MAP = {"✅": "verifica.png", "❌": "fechar.png"}


def _text_width(text, style):
    draw = ImageDraw.Draw(Image.new("RGB", (1, 1)))
    return draw.textlength(text, font=load_font(style.font_path, style.font_size))


def test_canvas_adds_caption_band_below_source(icon_store):
    src = Image.new("RGB", (200, 100), (10, 20, 30))
    out = render_caption(src, CaptionToken("Step", "✅"), ICON_MAP, icon_store)

    assert out.size == (200, 125)
    assert out.crop((0, 0, 200, 100)).tobytes() == src.tobytes()
    # far right of the band is plain background
    assert out.getpixel((199, 101)) == (255, 255, 255)


def test_source_image_is_not_mutated(icon_store):
    src = Image.new("RGB", (120, 80), (10, 20, 30))
    before = src.tobytes()
    render_caption(src, CaptionToken("Step", "❌"), ICON_MAP, icon_store)
    assert src.tobytes() == before
    assert src.size == (120, 80)


def test_icon_is_placed_after_text_and_above_bottom_edge(icon_store):
    style = OverlayStyle()
    src = Image.new("RGB", (300, 300), (0, 0, 255))
    text = "Click hire"
    out = render_caption(src, CaptionToken(text, "❌"), ICON_MAP, icon_store, style)

    icon_x = int(style.text_x + _text_width(text, style) + style.icon_margin)
    icon_y = out.height - style.icon_size - 1

    assert out.getpixel((icon_x + style.icon_size // 2, icon_y + style.icon_size // 2)) == (255, 0, 0)
    assert out.getpixel((icon_x + style.icon_size // 2, out.height - 1)) == (255, 255, 255)
    assert out.getpixel((icon_x + style.icon_size + 2, icon_y + 5)) == (255, 255, 255)


def test_icon_keeps_aspect_ratio():
    class WideIcons:
        def load(self, identifier):
            return Image.new("RGBA", (40, 20), (255, 0, 0, 255))

    style = OverlayStyle()
    src = Image.new("RGB", (300, 300), (0, 0, 255))
    out = render_caption(src, CaptionToken("", "✅"), ICON_MAP, WideIcons(), style)

    icon_x = int(style.text_x + style.icon_margin)
    # 40x20 scaled to 20x10: rows above the icon stay background
    top = out.height - 10 - 1
    assert out.getpixel((icon_x + 10, top + 5)) == (255, 0, 0)
    assert out.getpixel((icon_x + 10, top - 3)) == (255, 255, 255)


def test_text_is_drawn_in_band(icon_store):
    style = OverlayStyle()
    src = Image.new("RGB", (300, 300), (255, 255, 255))
    out = render_caption(src, CaptionToken("WWWW", "✅"), ICON_MAP, icon_store, style)
    text_end = int(style.text_x + _text_width("WWWW", style))
    band = out.crop((style.text_x, 300, text_end, out.height)).convert("L")
    assert min(band.getdata()) < 128


def test_missing_glyph_is_rejected(icon_store):
    src = Image.new("RGB", (50, 50))
    with pytest.raises(SegmentationError):
        render_caption(src, CaptionToken("no glyph", ""), ICON_MAP, icon_store)


def test_unknown_glyph_is_rejected(icon_store):
    src = Image.new("RGB", (50, 50))
    with pytest.raises(RenderError, match="No icon bound"):
        render_caption(src, CaptionToken("star", "★"), ICON_MAP, icon_store)


def test_file_icon_store_reads_by_identifier(tmp_path):
    Image.new("RGBA", (16, 16), (0, 170, 0, 255)).save(tmp_path / "verifica.png")
    store = FileIconStore(tmp_path)
    icon = store.load("verifica.png")
    assert icon.size == (16, 16)


def test_file_icon_store_missing_asset_is_render_error(tmp_path):
    store = FileIconStore(tmp_path, cache=False)
    with pytest.raises(RenderError, match="Icon asset unavailable"):
        store.load("fechar.png")


def test_unavailable_icon_fails_render(tmp_path):
    src = Image.new("RGB", (50, 50))
    with pytest.raises(RenderError):
        render_caption(src, CaptionToken("x", "✅"), ICON_MAP, FileIconStore(tmp_path))


def test_style_from_config():
    style = OverlayStyle.from_config({"caption_band": {"height": 40, "foreground": [1, 2, 3]}})
    assert style.band_height == 40
    assert style.foreground == (1, 2, 3)
    assert style.icon_size == 20
