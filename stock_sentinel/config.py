"""Stock Sentinel configuration.

Loads from environment variables and .env file (pydantic-settings).
Prefix: SENTINEL_, e.g. ``SENTINEL_SLOW_COST=500``.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SentinelSettings(BaseSettings):
    """Default analysis thresholds and ingestion limits.

    The six threshold values are only defaults; callers can pass their
    own ``Thresholds`` for any individual computation.
    """

    # ----- Classification thresholds -----
    slow_cost: float = Field(
        default=400.0,
        description="Minimum on-hand cost for a slow-mover flag ($).",
    )
    dead_cost: float = Field(
        default=200.0,
        description="Minimum on-hand cost for a dead-stock flag ($).",
    )
    slow_days: float = Field(
        default=180.0,
        description="Days of inventory above which an item is slow.",
    )
    target_margin: float = Field(
        default=0.30,
        description="Target gross margin used for price headroom (0-1).",
    )
    ordering_cost: float = Field(
        default=50.0,
        description="Fixed cost per purchase order for EOQ ($).",
    )
    holding_cost_rate: float = Field(
        default=0.25,
        description="Annual holding cost as a fraction of unit cost.",
    )

    # ----- Ingestion -----
    header_scan_rows: int = Field(
        default=30,
        description="Rows searched for the header row in workbook exports.",
    )

    # ----- Reporting -----
    top_n: int = Field(
        default=10,
        description="Items listed in top profit / loss rankings.",
    )

    model_config = SettingsConfigDict(
        env_prefix="SENTINEL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


@lru_cache
def get_settings() -> SentinelSettings:
    """Get cached settings singleton."""
    return SentinelSettings()
