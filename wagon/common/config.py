from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

ENV_FILE = Path(".env")

DEFAULT_CONNECTION_TIMEOUT_MS = 60_000
DEFAULT_READ_TIMEOUT_MS = 1_800_000
DEFAULT_LIST_PAGE_SIZE = 1000

ADDRESSING_STYLES = ("auto", "path", "virtual")


def _load_env_file() -> None:
    if not ENV_FILE.exists():
        return
    for raw_line in ENV_FILE.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and key not in os.environ:
            os.environ[key] = value


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "t", "yes", "y", "on"}


def _as_optional(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass
class Settings:
    S3_REGION: str | None = None
    S3_ENDPOINT_URL: str | None = None
    S3_ADDRESSING_STYLE: str = "auto"
    WAGON_CONNECTION_TIMEOUT: int = DEFAULT_CONNECTION_TIMEOUT_MS
    WAGON_READ_TIMEOUT: int = DEFAULT_READ_TIMEOUT_MS
    WAGON_INTERACTIVE: bool = True
    WAGON_FLATTEN_BASEDIR: bool = True
    WAGON_LIST_PAGE_SIZE: int = DEFAULT_LIST_PAGE_SIZE
    ENABLE_METRICS: bool = True

    def __post_init__(self) -> None:
        if self.WAGON_CONNECTION_TIMEOUT <= 0:
            raise ValueError("WAGON_CONNECTION_TIMEOUT must be a positive number of ms.")
        if self.WAGON_READ_TIMEOUT <= 0:
            raise ValueError("WAGON_READ_TIMEOUT must be a positive number of ms.")
        if self.WAGON_LIST_PAGE_SIZE <= 0:
            raise ValueError("WAGON_LIST_PAGE_SIZE must be positive.")
        style = (self.S3_ADDRESSING_STYLE or "auto").strip().lower()
        if style not in ADDRESSING_STYLES:
            raise ValueError(
                f"S3_ADDRESSING_STYLE must be one of {', '.join(ADDRESSING_STYLES)}."
            )
        self.S3_ADDRESSING_STYLE = style

    @classmethod
    def from_environment(cls) -> "Settings":
        _load_env_file()
        # MAVEN_WAGON_RTO mirrors the maven.wagon.rto system property.
        read_timeout_env = os.environ.get("WAGON_READ_TIMEOUT") or os.environ.get(
            "MAVEN_WAGON_RTO"
        )
        return cls(
            S3_REGION=_as_optional(os.environ.get("S3_REGION")),
            S3_ENDPOINT_URL=_as_optional(os.environ.get("S3_ENDPOINT_URL")),
            S3_ADDRESSING_STYLE=os.environ.get(
                "S3_ADDRESSING_STYLE", cls.S3_ADDRESSING_STYLE
            ),
            WAGON_CONNECTION_TIMEOUT=int(
                os.environ.get(
                    "WAGON_CONNECTION_TIMEOUT", cls.WAGON_CONNECTION_TIMEOUT
                )
            ),
            WAGON_READ_TIMEOUT=int(read_timeout_env or cls.WAGON_READ_TIMEOUT),
            WAGON_INTERACTIVE=_as_bool(
                os.environ.get("WAGON_INTERACTIVE"), cls.WAGON_INTERACTIVE
            ),
            WAGON_FLATTEN_BASEDIR=_as_bool(
                os.environ.get("WAGON_FLATTEN_BASEDIR"), cls.WAGON_FLATTEN_BASEDIR
            ),
            WAGON_LIST_PAGE_SIZE=int(
                os.environ.get("WAGON_LIST_PAGE_SIZE", cls.WAGON_LIST_PAGE_SIZE)
            ),
            ENABLE_METRICS=_as_bool(
                os.environ.get("ENABLE_METRICS"), cls.ENABLE_METRICS
            ),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_environment()
