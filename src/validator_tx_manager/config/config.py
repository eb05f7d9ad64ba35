# -*- coding: utf-8 -*-
"""Configuration loaded from environment via Pydantic Settings.

Nested env vars use <section>__<key>, e.g. LOGGING__CONSOLE_LEVEL, LEDGER__RPC_URL.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """General application configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    app_name: str = "validator-tx-manager"
    service_name: Optional[str] = None
    service_version: Optional[str] = None
    environment: Literal["development", "test", "production"] = "development"
    event_history_size: int = Field(
        default=200,
        ge=1,
        le=100_000,
        description="Events kept in the bus history for inspection.",
    )


class LoggingSettings(BaseSettings):
    """Structured logging configuration for structlog/stdlib/Logfire."""

    model_config = SettingsConfigDict(extra="ignore")

    # Per-target levels (only the 5 standard levels)
    console_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    logfire_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Local outputs
    log_to_console: bool = True
    log_to_file: bool = False
    log_file_path: str = "logs/validator_tx_manager.log"
    # TimedRotatingFileHandler: when to rotate (S/M/H/D/W0–W6/midnight), interval, backups to keep
    log_file_when: Literal[
        "S", "M", "H", "D", "W0", "W1", "W2", "W3", "W4", "W5", "W6", "midnight"
    ] = "midnight"
    log_file_interval: int = 1
    log_file_backup_count: int = 30
    log_file_utc: bool = True

    # Main output format: JSONRenderer if True, ConsoleRenderer if False
    json_format: bool = False

    # Logfire integration via structlog
    logfire_enabled: bool = False
    logfire_token: Optional[str] = None


class LedgerSettings(BaseSettings):
    """Validator node connection and chain parameters (env LEDGER__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    rpc_url: str = Field(
        default="http://localhost:8545",
        description="JSON-RPC endpoint of the validator node.",
    )
    chain_id: Optional[int] = Field(
        default=None,
        ge=1,
        description="Chain identifier stamped on every transaction. Required to submit.",
    )
    decimals: int = Field(
        default=18,
        ge=0,
        le=36,
        description="Decimals of the native coin; used to convert whole-coin amounts to smallest units.",
    )
    fee_model: Literal["legacy", "eip1559"] = Field(
        default="legacy",
        description="Fee model used when querying fee parameters: gas price or max-fee pair.",
    )
    timeout_seconds: float = Field(
        default=15.0,
        ge=1.0,
        le=120.0,
        description="HTTP request timeout in seconds.",
    )
    max_retries: int = Field(
        default=3,
        ge=1,
        le=20,
        description="Maximum attempts for read-only RPC calls. Submissions are sent once.",
    )


class WatcherSettings(BaseSettings):
    """Confirmation polling (env WATCHER__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    poll_interval_seconds: float = Field(
        default=5.0,
        ge=0.0,
        le=300.0,
        description="Delay between two receipt polls for the same hash.",
    )
    max_retries: int = Field(
        default=60,
        ge=1,
        le=10_000,
        description="Polls without a receipt before the watcher gives up.",
    )
    timeout_policy: Literal["keep_pending", "fail"] = Field(
        default="keep_pending",
        description="What happens to a transaction whose watcher ran out of retries.",
    )
    sweep_interval_seconds: Optional[float] = Field(
        default=10.0,
        gt=0.0,
        le=3600.0,
        description="Delay between sweeps that re-watch pending transactions left without a watcher. None disables the sweep.",
    )


class FeeSettings(BaseSettings):
    """Fee estimation and replacement bumps (env FEES__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    cancel_multiplier: float = Field(default=1.10, gt=1.0, le=10.0)
    speed_up_multiplier: float = Field(default=1.25, gt=1.0, le=10.0)
    transfer_gas_limit: int = Field(
        default=21_000,
        ge=21_000,
        description="Gas limit for plain value transfers and cancellations.",
    )
    default_contract_gas_limit: int = Field(
        default=100_000,
        ge=21_000,
        description="Fallback gas limit for payload-bearing calls when estimation fails.",
    )
    estimate_cache_ttl_seconds: float = Field(default=60.0, gt=0.0, le=3600.0)
    estimate_cache_size: int = Field(default=256, ge=1, le=10_000)


class BatchSettings(BaseSettings):
    """Batch submission (env BATCH__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    failure_policy: Literal["abort", "continue"] = Field(
        default="abort",
        description="abort: stop at the first failed item. continue: attempt every item and tally failures.",
    )
    max_tracked_batches: int = Field(default=500, ge=1, le=100_000)


class HistorySettings(BaseSettings):
    """Transaction history (env HISTORY__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    max_entries: int = Field(default=1000, ge=1, le=1_000_000)
    user_id: str = Field(default="default", description="Key suffix under which history is persisted.")
    storage_key_prefix: str = "tx_history_"
    default_page_size: int = Field(default=50, ge=1, le=10_000)
    storage_dir: Optional[str] = Field(
        default=None,
        description="Directory for file-backed persistence. In-memory storage when unset.",
    )


class FeeDistributionSettings(BaseSettings):
    """Fee-distribution notification after a successful submission (env FEE_DISTRIBUTION__*)."""

    model_config = SettingsConfigDict(extra="ignore")

    enabled: bool = False
    endpoint_url: Optional[str] = None
    policy: str = "fixed"


class ConsoleNotificationSettings(BaseSettings):
    """Console notification settings."""

    model_config = SettingsConfigDict(extra="ignore")

    enabled: bool = True


class Settings(BaseSettings):
    """Root application configuration.

    Groups all sub-configurations so the rest of the code does not
    read environment variables directly. Nested overrides use
    <section>__<key>, e.g. LOGGING__CONSOLE_LEVEL, WATCHER__MAX_RETRIES.
    """

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app: AppSettings = Field(default_factory=AppSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    ledger: LedgerSettings = Field(default_factory=LedgerSettings)
    watcher: WatcherSettings = Field(default_factory=WatcherSettings)
    fees: FeeSettings = Field(default_factory=FeeSettings)
    batch: BatchSettings = Field(default_factory=BatchSettings)
    history: HistorySettings = Field(default_factory=HistorySettings)
    fee_distribution: FeeDistributionSettings = Field(default_factory=FeeDistributionSettings)
    console: ConsoleNotificationSettings = Field(default_factory=ConsoleNotificationSettings)

    @classmethod
    def from_env(cls, **overrides: Any) -> Settings:
        """Build settings from environment (and .env), with optional overrides.

        Nested overrides can be passed as nested dicts, e.g.:
        - from_env(watcher={"max_retries": 10})
        - from_env(ledger={"chain_id": 1, "rpc_url": "http://node:8545"})

        Returns:
            A new Settings instance.
        """
        return cls(**overrides)


@lru_cache
def get_settings() -> Settings:
    """Return a single cached instance of Settings.

    Typical usage:

        from validator_tx_manager.config import get_settings

        settings = get_settings()
        interval = settings.watcher.poll_interval_seconds
        chain_id = settings.ledger.chain_id
    """
    return Settings()
