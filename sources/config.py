"""Configuration for the upstream crime, report and emergency-number sources."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


REPO_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(REPO_ROOT / ".env", override=False)


class SourceSettings(BaseSettings):
    """Environment-driven endpoints and limits for every outbound HTTP call."""

    model_config = SettingsConfigDict(
        env_file=None,
        case_sensitive=False,
        extra="ignore",
    )

    met_api_url: str = Field(
        default="https://data.police.uk/api/crimes-street/all-crime",
        validation_alias="MET_API_URL",
    )
    # Police data is published with a lag; query the month this many months back.
    met_month_lag: int = Field(default=2, validation_alias="MET_MONTH_LAG")
    reports_api_base_url: str = Field(
        default="https://doc.gold.ac.uk/usr/697/api",
        validation_alias="REPORTS_API_BASE_URL",
    )
    request_timeout_seconds: float = Field(
        default=10.0,
        validation_alias="SOURCE_REQUEST_TIMEOUT_SECONDS",
    )
    opencage_url: str = Field(
        default="https://api.opencagedata.com/geocode/v1/json",
        validation_alias="OPENCAGE_URL",
    )
    opencage_api_key: Optional[str] = Field(default=None, validation_alias="OPENCAGE_API_KEY")
    emergency_api_url: str = Field(
        default="https://emergencynumberapi.com/api/country",
        validation_alias="EMERGENCY_API_URL",
    )

    @field_validator("met_api_url", "reports_api_base_url", "opencage_url", "emergency_api_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: object) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Source URLs must be non-empty strings")
        return value.strip().rstrip("/")

    @field_validator("met_month_lag", mode="before")
    @classmethod
    def _validate_month_lag(cls, value: object) -> int:
        val = int(value)  # raises if not numeric
        if not 0 <= val <= 12:
            raise ValueError("MET_MONTH_LAG must be between 0 and 12")
        return val

    @field_validator("request_timeout_seconds", mode="before")
    @classmethod
    def _validate_timeout(cls, value: object) -> float:
        val = float(value)
        if val <= 0:
            raise ValueError("SOURCE_REQUEST_TIMEOUT_SECONDS must be positive")
        return val

    @property
    def reports_nearby_url(self) -> str:
        return f"{self.reports_api_base_url}/nearby"

    @property
    def reports_submit_url(self) -> str:
        return f"{self.reports_api_base_url}/report"


settings = SourceSettings()
