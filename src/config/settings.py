# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for network, manifest, chain backend and logging
settings. Every field can be overridden by an environment variable of the
same name in upper case (e.g. NETWORK=mainnet, LOG_FORMAT=text).
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hubdeploy.core.errors import ConfigurationError
from hubdeploy.logging.handlers import parse_size

_NETWORK_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Network ===
    network: str = "localhost"

    # === Plan ===
    plan_file: Path | None = None
    default_tags: str = ""

    # === Manifest ===
    manifest_backend: Literal["json"] = "json"
    manifest_dir: Path = Path("deployments")

    # === Chain backend ===
    chain_backend: Literal["local"] = "local"
    chain_state_file: Path | None = None

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("log_retention")
    @classmethod
    def validate_log_retention(cls, v: int) -> int:  # noqa: N805
        if v < 0:
            raise ValueError("log_retention must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if not _NETWORK_RE.match(self.network):
            errors.append(
                f"NETWORK {self.network!r} must contain only letters, digits, '.', '_' or '-'"
            )

        try:
            parse_size(self.log_rotation)
        except ValueError as exc:
            errors.append(f"LOG_ROTATION: {exc}")

        if self.chain_state_file is not None and self.chain_state_file.suffix != ".json":
            errors.append("CHAIN_STATE_FILE must be a .json file")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def default_tags_list(self) -> list[str]:
        """Parse comma-separated default tags."""
        return [t.strip() for t in self.default_tags.split(",") if t.strip()]


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
