import pytest

import gt_config
from errors import ConfigError
from gt_config import DEFAULT_CONFIG, load_config, resolve_path, validate_config


def test_defaults_when_file_missing(tmp_path):
    cfg = load_config(tmp_path / "missing.yaml")
    assert cfg == DEFAULT_CONFIG
    assert cfg is not DEFAULT_CONFIG


def test_yaml_values_are_deep_merged(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "delay: 40\n"
        "pipeline:\n"
        "  hole_policy: lenient\n"
        "icons:\n"
        "  glyphs:\n"
        "    '★': star.png\n",
        encoding="utf-8",
    )
    cfg = load_config(path)

    assert cfg["delay"] == 40
    assert cfg["pipeline"]["hole_policy"] == "lenient"
    assert cfg["pipeline"]["max_workers"] == DEFAULT_CONFIG["pipeline"]["max_workers"]
    assert cfg["icons"]["glyphs"]["★"] == "star.png"
    assert cfg["icons"]["glyphs"]["✅"] == "verifica.png"


def test_overrides_win_over_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("delay: 40\n", encoding="utf-8")
    cfg = load_config(path, overrides={"delay": 7})
    assert cfg["delay"] == 7


def test_empty_yaml_keeps_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == DEFAULT_CONFIG


def test_loading_does_not_mutate_defaults(tmp_path):
    cfg = load_config(tmp_path / "missing.yaml")
    cfg["pipeline"]["max_workers"] = 99
    assert DEFAULT_CONFIG["pipeline"]["max_workers"] != 99


def test_resolve_path_is_relative_to_project_root(tmp_path):
    assert resolve_path("icons") == str(gt_config.PROJECT_ROOT / "icons")
    assert resolve_path(tmp_path) == str(tmp_path)


def test_yaml_with_bad_glyph_map_is_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("icons:\n  glyphs:\n    '★': 3\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


@pytest.mark.parametrize(
    "overrides",
    [
        {"delay": -1},
        {"delay": "fast"},
        {"frame": {"width": 0}},
        {"caption_band": {"height": -3}},
        {"pipeline": {"executor": "fiber"}},
        {"pipeline": {"hole_policy": "maybe"}},
        {"pipeline": {"max_workers": 0}},
        {"pipeline": {"frame_timeout_seconds": "soon"}},
        {"icons": {"glyphs": ["✅"]}},
    ],
)
def test_malformed_settings_fail_at_load(tmp_path, overrides):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing.yaml", overrides)


def test_validate_config_accepts_defaults():
    validate_config(DEFAULT_CONFIG)
