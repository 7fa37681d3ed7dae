import json

import pytest

from pyimgscatter.config.io import load_config
from pyimgscatter.errors import ConfigError


def test_load_config_json(tmp_path):
    config_path = tmp_path / "cfg.json"
    payload = {"input_path": "in.png", "workers": 3, "filter": "invert", "output_path": None}
    config_path.write_text(json.dumps(payload), encoding="utf-8")

    assert load_config(config_path) == payload


def test_load_config_unknown_extension_raises(tmp_path):
    config_path = tmp_path / "cfg.txt"
    config_path.write_text("x", encoding="utf-8")

    with pytest.raises(ValueError) as exc:
        load_config(config_path)

    assert ".txt" in str(exc.value)


def test_load_config_missing_file_raises(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "nope.json")


def test_load_config_invalid_json_raises(tmp_path):
    config_path = tmp_path / "cfg.json"
    config_path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid JSON"):
        load_config(config_path)


def test_load_config_requires_top_level_object(tmp_path):
    config_path = tmp_path / "cfg.json"
    config_path.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(ConfigError, match="top level"):
        load_config(config_path)


def test_load_config_yaml_optional(tmp_path):
    config_path = tmp_path / "cfg.yaml"
    config_path.write_text("input_path: in.png\nworkers: 2\n", encoding="utf-8")

    try:
        import yaml  # noqa: F401
    except Exception:
        with pytest.raises(ImportError) as exc:
            load_config(config_path)
        msg = str(exc.value)
        assert "PyYAML" in msg
        assert "pip install" in msg
    else:
        assert load_config(config_path) == {"input_path": "in.png", "workers": 2}
