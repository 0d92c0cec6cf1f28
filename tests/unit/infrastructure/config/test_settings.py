from pathlib import Path

import pytest

from azbclient.infrastructure.config import settings as settings_module
from azbclient.infrastructure.config.settings import (
    ClientSettings, get_api_base_url, get_config, get_storage_dir, load_client_settings,
    load_configuration, reset_configuration, set_config_for_testing,
)

@pytest.fixture(autouse=True)
def fresh_configuration(monkeypatch):
    """Each test loads configuration from scratch and sees no AZB_* variables."""
    for name in ("AZB_API_BASE_URL", "AZB_STORAGE_DIR", "API_BASE_URL", "RESILIENCE_MAX_RETRIES"):
        monkeypatch.delenv(name, raising=False)
    reset_configuration()
    yield
    reset_configuration()

@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    path.write_text(
        "api:\n"
        "  base_url: https://shop.example.com/api\n"
        "resilience:\n"
        "  max_retries: 4\n"
        "health:\n"
        "  ttl_seconds: 10\n",
        encoding="utf-8",
    )
    return path

def test_defaults():
    settings = ClientSettings()
    assert settings.api_base_url == "http://localhost:4000/api"
    assert settings.max_retries == 2
    assert settings.default_timeout_seconds == 60
    assert settings.otp_timeout_seconds == 120
    assert settings.health_ttl_seconds == 30
    assert settings.health_timeout_seconds == 5
    assert settings.wake_max_attempts == 2
    assert settings.wake_base_delay_seconds == 1.5
    assert settings.token_skew_seconds == 300

@pytest.mark.parametrize("base, expected", [
    ("http://localhost:4000/api", "http://localhost:4000/health"),
    ("http://localhost:4000/api/", "http://localhost:4000/health"),
    ("https://shop.example.com", "https://shop.example.com/health"),
])
def test_health_url_strips_api_suffix(base, expected):
    assert ClientSettings(api_base_url=base).health_url == expected

def test_yaml_values_are_flattened(config_file: Path, tmp_path: Path):
    load_configuration(config_file=config_file, env_file=tmp_path / "missing.env")
    assert get_config("api.base_url") == "https://shop.example.com/api"
    assert get_config("resilience.max_retries") == 4
    assert get_config("unknown.key", "fallback") == "fallback"

def test_environment_overrides_yaml(config_file: Path, tmp_path: Path, monkeypatch):
    monkeypatch.setenv("RESILIENCE_MAX_RETRIES", "1")
    load_configuration(config_file=config_file, env_file=tmp_path / "missing.env")
    assert get_config("resilience.max_retries") == 1

def test_dotenv_is_loaded_without_overriding_environment(tmp_path: Path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("AZB_API_BASE_URL=https://dotenv.example.com/api\nAZB_STORAGE_DIR=/tmp/from-dotenv\n")
    monkeypatch.setenv("AZB_STORAGE_DIR", "/tmp/from-env")
    # load_dotenv writes into os.environ; register the key so monkeypatch removes it again
    monkeypatch.setenv("AZB_API_BASE_URL", "")
    monkeypatch.delenv("AZB_API_BASE_URL")

    load_configuration(config_file=tmp_path / "none.yaml", env_file=env_file)

    assert get_api_base_url() == "https://dotenv.example.com/api"
    assert get_storage_dir() == Path("/tmp/from-env")

def test_load_configuration_runs_once(config_file: Path, tmp_path: Path):
    load_configuration(config_file=config_file, env_file=tmp_path / "missing.env")
    config_file.write_text("api:\n  base_url: https://changed.example.com/api\n")
    load_configuration(config_file=config_file, env_file=tmp_path / "missing.env")
    assert get_config("api.base_url") == "https://shop.example.com/api"

def test_invalid_yaml_is_ignored(tmp_path: Path):
    broken = tmp_path / "config.yaml"
    broken.write_text("api: [unclosed\n")
    load_configuration(config_file=broken, env_file=tmp_path / "missing.env")
    assert get_api_base_url() == "http://localhost:4000/api"

def test_test_overrides_win(monkeypatch):
    monkeypatch.setenv("AZB_API_BASE_URL", "https://env.example.com/api")
    set_config_for_testing({"AZB_API_BASE_URL": "https://test.example.com/api"})
    assert get_api_base_url() == "https://test.example.com/api"

def test_storage_dir_default():
    assert get_storage_dir() == settings_module.DEFAULT_STORAGE_DIR

def test_load_client_settings(config_file: Path, tmp_path: Path):
    load_configuration(config_file=config_file, env_file=tmp_path / "missing.env")
    set_config_for_testing({"auth.token_skew_seconds": "60"})

    settings = load_client_settings()

    assert settings.api_base_url == "https://shop.example.com/api"
    assert settings.max_retries == 4
    assert settings.health_ttl_seconds == 10.0
    assert settings.token_skew_seconds == 60.0
    assert settings.otp_timeout_seconds == 120.0
