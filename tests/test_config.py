import json

import pytest

from wiki_agent import config as config_module
from wiki_agent.config import DEFAULTS, ENV_KEYS, load_config, validate_config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config_module, "load_dotenv", lambda: None)
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_file_or_env():
    config = load_config()
    assert config == DEFAULTS


def test_file_accepts_env_names_and_config_keys(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"ANTHROPIC_API_KEY": "file-key", "max_results": 3}))

    config = load_config(str(path))

    assert config["anthropic_api_key"] == "file-key"
    assert config["max_results"] == 3


def test_env_overrides_file(tmp_path, monkeypatch):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"ANTHROPIC_API_KEY": "file-key", "WIKI_TIMEOUT": 30}))
    monkeypatch.setenv("ANTHROPIC_API_KEY", "env-key")
    monkeypatch.setenv("WIKI_SITE", "wiki.example.org")

    config = load_config(str(path))

    assert config["anthropic_api_key"] == "env-key"
    assert config["site"] == "wiki.example.org"
    assert config["timeout"] == 30.0


def test_numeric_values_are_coerced(monkeypatch):
    monkeypatch.setenv("WIKI_MAX_RESULTS", "7")
    monkeypatch.setenv("WIKI_TIMEOUT", "not-a-number")

    config = load_config()

    assert config["max_results"] == 7
    assert config["timeout"] == DEFAULTS["timeout"]


def test_missing_or_broken_file_keeps_defaults(tmp_path):
    assert load_config(str(tmp_path / "absent.json")) == DEFAULTS

    broken = tmp_path / "broken.json"
    broken.write_text("{ not json")
    assert load_config(str(broken)) == DEFAULTS


@pytest.mark.parametrize("overrides, valid", [
    ({"anthropic_api_key": "key"}, True),
    ({}, False),
    ({"anthropic_api_key": ""}, False),
    ({"anthropic_api_key": "key", "max_results": 0}, False),
    ({"anthropic_api_key": "key", "timeout": 0}, False),
])
def test_validate_config(overrides, valid):
    assert validate_config({**DEFAULTS, **overrides}) is valid
