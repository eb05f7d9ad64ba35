"""Configuration subpackage."""

from validator_tx_manager.config.config import (
    AppSettings,
    BatchSettings,
    ConsoleNotificationSettings,
    FeeDistributionSettings,
    FeeSettings,
    HistorySettings,
    LedgerSettings,
    LoggingSettings,
    Settings,
    WatcherSettings,
    get_settings,
)

__all__ = [
    "AppSettings",
    "BatchSettings",
    "ConsoleNotificationSettings",
    "FeeDistributionSettings",
    "FeeSettings",
    "HistorySettings",
    "LedgerSettings",
    "LoggingSettings",
    "Settings",
    "WatcherSettings",
    "get_settings",
]
