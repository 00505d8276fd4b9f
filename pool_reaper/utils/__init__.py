"""Utility modules for pool client access, configuration and logging."""

from pool_reaper.utils.config import ConfigurationError, ReaperConfig
from pool_reaper.utils.logging import ActionType, LogEntry, LogLevel, ReaperLogger
from pool_reaper.utils.pool_client import (
    PoolClient,
    PoolClientError,
    RequestError,
    ServiceUnavailableError,
)

__all__ = [
    "ActionType",
    "ConfigurationError",
    "LogEntry",
    "LogLevel",
    "PoolClient",
    "PoolClientError",
    "ReaperConfig",
    "ReaperLogger",
    "RequestError",
    "ServiceUnavailableError",
]
