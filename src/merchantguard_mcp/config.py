"""Configuration models for the MerchantGuard MCP server.

``ClientConfig`` is the immutable configuration handed to the GuardScore
client; ``Settings`` loads it, together with server and logging options,
from environment variables and an optional YAML file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from . import __version__
from .exceptions import ConfigurationError
from .logging import VALID_LOG_LEVELS, get_logger

logger = get_logger(__name__)

DEMO_API_KEY = "demo"
DEFAULT_API_URL = "https://api.merchantguard.ai/v1"


class ClientConfig(BaseModel):
    """Immutable settings for one GuardScore client.

    Thresholds are expected to satisfy
    ``auto_decline_threshold < high_risk_threshold < medium_risk_threshold``.
    An inverted ordering is accepted and logged; classification then keeps
    its first-match order (critical, high, medium, low), so tiers whose
    threshold sits below an earlier one can never be produced.
    """

    model_config = ConfigDict(frozen=True)

    api_url: str = DEFAULT_API_URL
    api_key: Optional[str] = DEMO_API_KEY
    auto_decline_threshold: float = 15
    high_risk_threshold: float = 30
    medium_risk_threshold: float = 60
    timeout_seconds: float = Field(default=5.0, gt=0)
    user_agent: str = f"MerchantGuard-MCP/{__version__}"

    @property
    def demo_mode(self) -> bool:
        return not self.api_key or self.api_key == DEMO_API_KEY

    @property
    def thresholds_ordered(self) -> bool:
        return self.auto_decline_threshold < self.high_risk_threshold < self.medium_risk_threshold

    @model_validator(mode="after")
    def _warn_on_inverted_thresholds(self) -> "ClientConfig":
        if not self.thresholds_ordered:
            logger.warning(
                "Risk thresholds are not increasing; tier mapping will be inverted",
                auto_decline_threshold=self.auto_decline_threshold,
                high_risk_threshold=self.high_risk_threshold,
                medium_risk_threshold=self.medium_risk_threshold,
            )
        return self


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Server
    host: str = Field(default="127.0.0.1", validation_alias="HOST")
    port: int = Field(default=3002, ge=1, le=65535, validation_alias="PORT")

    # GuardScore API
    api_url: str = Field(default=DEFAULT_API_URL, validation_alias="MERCHANTGUARD_API_URL")
    api_key: str = Field(default=DEMO_API_KEY, validation_alias="MERCHANTGUARD_API_KEY")
    high_risk_threshold: float = Field(
        default=30, validation_alias="GUARDSCORE_HIGH_RISK_THRESHOLD"
    )
    medium_risk_threshold: float = Field(
        default=60, validation_alias="GUARDSCORE_MEDIUM_RISK_THRESHOLD"
    )
    auto_decline_threshold: float = Field(
        default=15, validation_alias="GUARDSCORE_AUTO_DECLINE_THRESHOLD"
    )
    timeout_seconds: float = Field(
        default=5.0, gt=0, validation_alias="GUARDSCORE_TIMEOUT_SECONDS"
    )

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field(default="console", validation_alias="LOG_FORMAT")

    def __init__(self, _config_file: Optional[str] = None, **values: Any) -> None:
        file_values = _load_config_file(_config_file) if _config_file else {}
        merged = {**file_values, **values}
        super().__init__(**merged)

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        level = (value or "INFO").upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {list(VALID_LOG_LEVELS)}")
        return level

    @field_validator("log_format", mode="before")
    @classmethod
    def _validate_log_format(cls, value: str) -> str:
        fmt = (value or "console").lower()
        if fmt not in {"json", "console"}:
            raise ValueError("log_format must be 'json' or 'console'")
        return fmt

    def client_config(self) -> ClientConfig:
        return ClientConfig(
            api_url=self.api_url,
            api_key=self.api_key,
            auto_decline_threshold=self.auto_decline_threshold,
            high_risk_threshold=self.high_risk_threshold,
            medium_risk_threshold=self.medium_risk_threshold,
            timeout_seconds=self.timeout_seconds,
            user_agent=f"MerchantGuard-MCP/{__version__}",
        )


def _load_config_file(path: str) -> Dict[str, Any]:
    cfg_path = Path(path)
    if not cfg_path.exists():
        raise ConfigurationError(f"Config file not found: {path}", config_key="config_file")
    try:
        loaded = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}", config_key="config_file") from exc
    if not isinstance(loaded, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping", config_key="config_file")
    return loaded
