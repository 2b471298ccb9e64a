"""
Builder policy configuration using pydantic-settings.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from scripttx.constants import (
    DEFAULT_FEE_RATE,
    DEFAULT_LOCKTIME,
    DEFAULT_TX_VERSION,
    MAX_FEE_MULTIPLIER,
    STANDARD_DUST_LIMIT,
)
from scripttx.models import NetworkType


class BuilderSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SCRIPTTX_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Only affects address decoding, never serialization
    network: NetworkType = NetworkType.MAINNET

    fee_rate: int = Field(default=DEFAULT_FEE_RATE, ge=1, description="Fee units per byte")
    max_fee_multiplier: int = Field(
        default=MAX_FEE_MULTIPLIER,
        ge=1,
        description="Reject fees above this multiple of fee_rate * size",
    )
    dust_threshold: int = Field(default=STANDARD_DUST_LIMIT, ge=0)

    tx_version: int = Field(default=DEFAULT_TX_VERSION, ge=1, le=0xFFFFFFFF)
    locktime: int = Field(default=DEFAULT_LOCKTIME, ge=0, le=0xFFFFFFFF)

    log_level: str = "INFO"


def get_settings(**overrides: object) -> BuilderSettings:
    return BuilderSettings(**overrides)
