"""Tests for configuration loading and validation."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from trading_assistant.config import DEFAULT_CONFIG_PATH, Config
from trading_assistant.config_provider import ConfigProvider


def test_config_load_defaults(tmp_path: Path) -> None:
    """Uses default values when the config file is missing."""
    config = Config.load(path=tmp_path / "missing.json")

    assert config.get_api_base_url() == "http://localhost:54321"
    assert config.get_image_api_base_url() == "http://localhost:54321"
    assert config.get_api_token() is None
    assert config.get_image_api_token() is None
    assert config.get_llm_model() == "gpt-4o"
    assert config.get_max_steps() == 10
    assert config.llm_max_attempts == 1
    assert config.tool_history_limit == 100


def test_config_load_from_file(tmp_path: Path) -> None:
    """Loads configuration values from JSON when present."""
    config_path = tmp_path / "config.json"
    config_path.write_text(
        """
        {
          "api_base_url": "https://project.supabase.co/",
          "api_token": "llm-token",
          "image_api_base_url": "https://images.example.com/",
          "image_api_token": "image-token",
          "llm_model": "gpt-4o-mini",
          "llm_temperature": 0.7,
          "max_steps": 5,
          "log_level": "debug"
        }
        """,
        encoding="utf-8",
    )

    config = Config.load(path=config_path)

    assert config.get_api_base_url() == "https://project.supabase.co"
    assert config.get_api_token() == "llm-token"
    assert config.get_image_api_base_url() == "https://images.example.com"
    assert config.get_image_api_token() == "image-token"
    assert config.get_llm_model() == "gpt-4o-mini"
    assert config.llm_temperature == 0.7
    assert config.get_max_steps() == 5
    assert config.log_level == "DEBUG"


def test_config_env_overrides_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Environment variables take precedence over the JSON file."""
    config_path = tmp_path / "config.json"
    config_path.write_text('{"llm_model": "from-file"}', encoding="utf-8")
    monkeypatch.setenv("LLM_MODEL", "from-env")

    config = Config.load(path=config_path)

    assert config.get_llm_model() == "from-env"


def test_config_secrets_are_hidden() -> None:
    """Tokens never appear in the config repr."""
    config = Config(api_token="llm-token")

    assert "llm-token" not in repr(config)
    assert config.get_api_token() == "llm-token"


@pytest.mark.parametrize(
    "field, value",
    [
        ("llm_temperature", 2.5),
        ("llm_max_tokens", 0),
        ("max_steps", 0),
        ("tool_history_limit", 0),
        ("llm_max_attempts", 0),
    ],
)
def test_config_rejects_out_of_range_values(field: str, value: object) -> None:
    """Out-of-range values are rejected."""
    with pytest.raises(ValidationError):
        Config(**{field: value})


def test_config_rejects_unknown_keys(tmp_path: Path) -> None:
    """Unknown keys in the JSON file are an error."""
    config_path = tmp_path / "config.json"
    config_path.write_text('{"unknown_key": 1}', encoding="utf-8")

    with pytest.raises(ValidationError):
        Config.load(path=config_path)


def test_config_provider_loads_path(tmp_path: Path) -> None:
    """ConfigProvider defers loading to Config.load."""
    config_path = tmp_path / "config.json"
    config_path.write_text('{"max_steps": 3}', encoding="utf-8")

    assert ConfigProvider(config_path).load().get_max_steps() == 3


def test_config_load_reads_default_path(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Without an explicit path the file under .trading_assistant is used."""
    monkeypatch.chdir(tmp_path)
    config_dir = tmp_path / ".trading_assistant"
    config_dir.mkdir()
    (config_dir / "config.json").write_text('{"max_steps": 4}', encoding="utf-8")

    assert DEFAULT_CONFIG_PATH == Path(".trading_assistant") / "config.json"
    assert Config.load().get_max_steps() == 4
