from __future__ import annotations

from pathlib import Path

import pytest

from infinite_context.common.config import load_settings
from infinite_context.common.errors import ConfigError


def test_missing_api_key_is_fatal() -> None:
    with pytest.raises(ConfigError, match="GEMINI_API_KEY"):
        load_settings(environ={})


def test_defaults() -> None:
    s = load_settings(environ={"GEMINI_API_KEY": "k"})
    assert s.gemini_model == "gemini-2.0-flash-lite"
    assert s.chunk_size == 500
    assert s.chunk_delay_s == pytest.approx(0.1)
    assert s.max_body_bytes == 10 * 1024 * 1024


def test_yaml_file_then_env_override(tmp_path: Path) -> None:
    cfg = tmp_path / "service.yaml"
    cfg.write_text("gemini_api_key: from-file\nchunk_size: 250\ngemini_model: file-model\n", encoding="utf-8")
    s = load_settings(environ={"INFINITE_CONTEXT_CONFIG": str(cfg), "GEMINI_MODEL": "env-model"})
    assert s.gemini_api_key == "from-file"
    assert s.chunk_size == 250
    assert s.gemini_model == "env-model"


@pytest.mark.parametrize("var,value", [("CHUNK_SIZE", "0"), ("CHUNK_SIZE", "many"), ("CHUNK_DELAY_MS", "-5")])
def test_invalid_numbers(var: str, value: str) -> None:
    with pytest.raises(ConfigError):
        load_settings(environ={"GEMINI_API_KEY": "k", var: value})
