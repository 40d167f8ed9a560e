import io

import pytest
from PIL import Image

from errors import RenderError
from gt_config import load_config

ICON_COLORS = {
    "verifica.png": (0, 170, 0, 255),
    "fechar.png": (255, 0, 0, 255),
}


class MemoryIconStore:
    """Solid-colour icons keyed by identifier, standing in for the icon folder."""

    def __init__(self, size=(40, 40)):
        self.size = size
        self.loaded = []

    def load(self, identifier):
        self.loaded.append(identifier)
        color = ICON_COLORS.get(identifier)
        if color is None:
            raise RenderError(f"Icon asset unavailable: {identifier}")
        return Image.new("RGBA", self.size, color)


def encode_image(color, fmt="PNG", size=(64, 48)):
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def icon_store():
    return MemoryIconStore()


@pytest.fixture
def image_bytes():
    return [
        encode_image((200, 30, 30), "PNG"),
        encode_image((30, 200, 30), "JPEG"),
        encode_image((30, 30, 200), "PNG"),
    ]


@pytest.fixture
def cfg(tmp_path):
    return load_config(
        tmp_path / "missing.yaml",
        overrides={
            "pipeline": {
                "executor": "thread",
                "max_workers": 3,
                "frame_timeout_seconds": 10.0,
                "poll_interval_seconds": 0.01,
            },
        },
    )
