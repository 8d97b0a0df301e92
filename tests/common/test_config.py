from __future__ import annotations

import pytest

from wagon.common import config
from wagon.common.config import Settings, get_settings


@pytest.fixture()
def clean_env(monkeypatch, tmp_path):
    for key in (
        "S3_REGION",
        "S3_ENDPOINT_URL",
        "S3_ADDRESSING_STYLE",
        "WAGON_CONNECTION_TIMEOUT",
        "WAGON_READ_TIMEOUT",
        "MAVEN_WAGON_RTO",
        "WAGON_INTERACTIVE",
        "WAGON_FLATTEN_BASEDIR",
        "WAGON_LIST_PAGE_SIZE",
        "ENABLE_METRICS",
    ):
        # setenv first so monkeypatch restores keys loaded from .env
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)
    monkeypatch.setattr(config, "ENV_FILE", tmp_path / ".env")
    return monkeypatch


def test_defaults(clean_env) -> None:
    settings = Settings.from_environment()

    assert settings.S3_REGION is None
    assert settings.WAGON_CONNECTION_TIMEOUT == 60_000
    assert settings.WAGON_READ_TIMEOUT == 1_800_000
    assert settings.WAGON_INTERACTIVE is True
    assert settings.WAGON_FLATTEN_BASEDIR is True
    assert settings.S3_ADDRESSING_STYLE == "auto"


def test_environment_overrides(clean_env) -> None:
    clean_env.setenv("S3_REGION", "eu-west-1")
    clean_env.setenv("WAGON_CONNECTION_TIMEOUT", "1500")
    clean_env.setenv("WAGON_FLATTEN_BASEDIR", "false")
    clean_env.setenv("S3_ADDRESSING_STYLE", "PATH")

    settings = Settings.from_environment()

    assert settings.S3_REGION == "eu-west-1"
    assert settings.WAGON_CONNECTION_TIMEOUT == 1500
    assert settings.WAGON_FLATTEN_BASEDIR is False
    assert settings.S3_ADDRESSING_STYLE == "path"


def test_legacy_read_timeout_property(clean_env) -> None:
    clean_env.setenv("MAVEN_WAGON_RTO", "900")

    assert Settings.from_environment().WAGON_READ_TIMEOUT == 900


def test_explicit_read_timeout_beats_legacy(clean_env) -> None:
    clean_env.setenv("MAVEN_WAGON_RTO", "900")
    clean_env.setenv("WAGON_READ_TIMEOUT", "1200")

    assert Settings.from_environment().WAGON_READ_TIMEOUT == 1200


def test_blank_region_is_none(clean_env) -> None:
    clean_env.setenv("S3_REGION", "  ")

    assert Settings.from_environment().S3_REGION is None


def test_env_file_is_loaded(clean_env, tmp_path) -> None:
    (tmp_path / ".env").write_text(
        "# comment\nS3_REGION='ap-south-1'\nWAGON_LIST_PAGE_SIZE=50\n",
        encoding="utf-8",
    )

    settings = Settings.from_environment()

    assert settings.S3_REGION == "ap-south-1"
    assert settings.WAGON_LIST_PAGE_SIZE == 50


@pytest.mark.parametrize(
    "kwargs",
    [
        {"WAGON_CONNECTION_TIMEOUT": 0},
        {"WAGON_READ_TIMEOUT": -1},
        {"WAGON_LIST_PAGE_SIZE": 0},
        {"S3_ADDRESSING_STYLE": "sideways"},
    ],
)
def test_invalid_values_rejected(kwargs) -> None:
    with pytest.raises(ValueError):
        Settings(**kwargs)


def test_get_settings_is_cached(clean_env) -> None:
    assert get_settings() is get_settings()
