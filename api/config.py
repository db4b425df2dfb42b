from __future__ import annotations

import os
import subprocess
from importlib import metadata
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

REPO_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(REPO_ROOT / ".env", override=False)


def _get_project_version() -> str:
    try:
        return metadata.version("geo-risk")
    except metadata.PackageNotFoundError:
        return "0.1.0"


def _get_git_commit() -> str:
    if (value := os.getenv("GIT_COMMIT")):
        return value

    if (REPO_ROOT / ".git").exists():
        try:
            result = subprocess.run(
                ["git", "rev-parse", "HEAD"],
                cwd=REPO_ROOT,
                capture_output=True,
                text=True,
                check=True,
            )
            return result.stdout.strip()
        except (OSError, subprocess.CalledProcessError):
            pass

    return "unknown"


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=False, extra="ignore")

    app_name: str = "Geo Risk API"
    version: str = Field(default_factory=_get_project_version)
    environment: str = Field(default="dev", validation_alias="APP_ENV")
    git_commit: str = Field(default_factory=_get_git_commit, validation_alias="GIT_COMMIT")

    # Risk assessment
    square_size_meters: float = Field(default=1500.0, validation_alias="RISK_SQUARE_SIZE_METERS")
    notification_cooldown_seconds: float = Field(
        default=300.0,
        validation_alias="NOTIFICATION_COOLDOWN_SECONDS",
    )

    # Rate-limit persistence
    store_url: str = Field(
        default=f"sqlite:///{REPO_ROOT / 'geo_risk_state.db'}",
        validation_alias="STORE_URL",
    )

    @field_validator("square_size_meters", "notification_cooldown_seconds", mode="before")
    @classmethod
    def _positive(cls, value: object) -> float:
        val = float(value)
        if val <= 0:
            raise ValueError("must be positive")
        return val

    @property
    def notification_cooldown_ms(self) -> int:
        return int(self.notification_cooldown_seconds * 1000)


settings = AppSettings()
