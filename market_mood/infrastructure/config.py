"""
Runtime configuration read from the environment (after python-dotenv's
load_dotenv()), validated with pydantic.

Invalid values raise ValueError at startup rather than on the first refresh.
"""

import os
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

ProviderName = Literal["yahoo", "fmp", "alphavantage", "yfinance"]


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    provider: ProviderName = "yahoo"
    fmp_api_key: Optional[str] = None
    alphavantage_api_key: Optional[str] = None

    fetch_timeout: float = Field(default=10.0, gt=0)
    aggregate_timeout: float = Field(default=20.0, gt=0)
    max_concurrency: Optional[int] = Field(default=None, ge=1)

    mover_threshold: float = Field(default=0.015, ge=0)
    mover_cap: int = Field(default=2, ge=0)

    narration_enabled: bool = True
    narration_attempts: int = Field(default=2, ge=1)
    refresh_policy: Literal["ignore", "supersede"] = "ignore"

    store_path: str = ".market_mood/store.json"
    secret_arn: Optional[str] = None
    bedrock_model_id: Optional[str] = None
    aws_region: str = "us-east-1"
    log_level: str = "INFO"

    @field_validator("provider", "refresh_policy", mode="before")
    @classmethod
    def _lowercase(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("log_level")
    @classmethod
    def _valid_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value!r}")
        return level

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build Settings from *environ* (defaults to os.environ).

        Raises:
            ValueError: if any variable holds an invalid value.
        """
        env = os.environ if environ is None else environ
        mapping = {
            "provider": "MARKET_MOOD_PROVIDER",
            "fmp_api_key": "FMP_API_KEY",
            "alphavantage_api_key": "ALPHAVANTAGE_API_KEY",
            "fetch_timeout": "MARKET_MOOD_FETCH_TIMEOUT",
            "aggregate_timeout": "MARKET_MOOD_AGGREGATE_TIMEOUT",
            "max_concurrency": "MARKET_MOOD_MAX_CONCURRENCY",
            "mover_threshold": "MARKET_MOOD_MOVER_THRESHOLD",
            "mover_cap": "MARKET_MOOD_MOVER_CAP",
            "narration_enabled": "MARKET_MOOD_NARRATION",
            "narration_attempts": "MARKET_MOOD_NARRATION_ATTEMPTS",
            "refresh_policy": "MARKET_MOOD_REFRESH_POLICY",
            "store_path": "MARKET_MOOD_STORE_PATH",
            "secret_arn": "MARKET_MOOD_SECRET_ARN",
            "bedrock_model_id": "BEDROCK_MODEL_ID",
            "aws_region": "AWS_DEFAULT_REGION",
            "log_level": "LOG_LEVEL",
        }
        values = {
            field: env[var]
            for field, var in mapping.items()
            if env.get(var) not in (None, "")
        }
        try:
            return cls(**values)
        except ValidationError as exc:
            raise ValueError(f"Invalid MarketMood configuration: {exc}") from exc
