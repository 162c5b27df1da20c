from __future__ import annotations

import configparser
from pathlib import Path

import pytest

from ytdownloader import __version__
from ytdownloader.exceptions import ConfigurationError
from ytdownloader.models.config import DEFAULT_UPDATE_URL, AppConfig
from ytdownloader.storage.config_manager import ConfigManager


def test_missing_file_yields_defaults(tmp_path: Path) -> None:
    config = ConfigManager(tmp_path / "config.ini").load_config()

    assert config.update_url == DEFAULT_UPDATE_URL
    assert config.current_version == __version__
    assert config.max_redirects == 10
    assert config.installer_suffixes == [".exe"]
    assert not config.has_credentials
    assert not (tmp_path / "config.ini").exists()


def test_saved_config_round_trips(tmp_path: Path) -> None:
    manager = ConfigManager(tmp_path / "config.ini")
    manager.save_new_config(
        {"email": "svc@example.com", "password": "p%ss", "headless": True}
    )

    config = ConfigManager(tmp_path / "config.ini").load_config()

    assert config.email == "svc@example.com"
    assert config.password.get_secret_value() == "p%ss"
    assert config.headless is True
    assert config.credentials().email == "svc@example.com"


def test_environment_overrides_file_credentials(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    manager = ConfigManager(tmp_path / "config.ini")
    manager.save_new_config({"email": "file@example.com", "password": "file"})
    monkeypatch.setenv("YTDOWNLOADER_EMAIL", "env@example.com")
    monkeypatch.setenv("YTDOWNLOADER_PASSWORD", "env-secret")

    config = manager.load_config()

    assert config.email == "env@example.com"
    assert config.password.get_secret_value() == "env-secret"


def test_cli_options_override_everything(tmp_path: Path) -> None:
    manager = ConfigManager(tmp_path / "config.ini")
    manager.save_new_config({"headless": False})

    assert manager.load_config({"headless": True}).headless is True


def test_old_file_is_migrated_with_missing_keys(tmp_path: Path) -> None:
    path = tmp_path / "config.ini"
    path.write_text("[DEFAULT]\nemail = old@example.com\nmax_redirects = 5\n", encoding="utf-8")

    config = ConfigManager(path).load_config()

    assert config.email == "old@example.com"
    assert config.max_redirects == 5
    parser = configparser.ConfigParser()
    parser.read(path, encoding="utf-8")
    assert set(parser["DEFAULT"]) == AppConfig.get_ini_keys()
    assert parser["DEFAULT"]["email"] == "old@example.com"


@pytest.mark.parametrize(
    "line",
    ["max_redirects = 0", "max_redirects = many", "element_timeout = -1", "update_url = ftp://x"],
)
def test_invalid_values_raise_configuration_error(tmp_path: Path, line: str) -> None:
    path = tmp_path / "config.ini"
    path.write_text(f"[DEFAULT]\n{line}\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        ConfigManager(path).load_config()


def test_credentials_without_configuration_raise() -> None:
    with pytest.raises(ConfigurationError):
        AppConfig().credentials()


def test_installer_suffixes_are_normalized() -> None:
    config = AppConfig(installer_suffixes=["EXE", " .msi ", ""])

    assert config.installer_suffixes == [".exe", ".msi"]
