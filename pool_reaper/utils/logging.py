"""Structured logging for pool reaper sweeps.

Every reset outcome is logged with the resource type, source state and
target state it belongs to. Transitioned resources get one line each,
carrying the resource name and the owner it was taken from. The same fields
are attached to the log record as ``extra`` attributes so that JSON
formatters can pick them up without parsing the message.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pool_reaper.models import ReapRequest, ReapResult, SweepResult
from pool_reaper.utils.security import LogSanitizer

# Configure module logger
logger = logging.getLogger(__name__)


class LogLevel(Enum):
    """Log levels for reaper operations."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ActionType(Enum):
    """Types of actions that can be logged."""

    SWEEP = "SWEEP"
    RESET = "RESET"
    ERROR = "ERROR"


_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARNING: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.CRITICAL: logging.CRITICAL,
}


@dataclass
class LogEntry:
    """Structured log entry."""

    timestamp: datetime
    level: LogLevel
    action: ActionType
    resource_type: str
    resource_name: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    error_info: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert log entry to dictionary for structured logging."""
        entry = {
            "timestamp": self.timestamp.isoformat(),
            "level": self.level.value,
            "action": self.action.value,
            "resource_type": self.resource_type,
            "resource_name": self.resource_name,
            "message": self.message,
        }
        if self.details:
            entry["details"] = self.details
        if self.error_info:
            entry["error"] = self.error_info
        return entry


class ReaperLogger:
    """Logs one sweep's reset requests and their outcomes.

    A new instance is used per sweep, so the entries it keeps for reporting
    never outlive the sweep that produced them.
    """

    def __init__(self, sweep_id: int = 0):
        """
        Initialize reaper logger.

        Args:
            sweep_id: Sequence number of the sweep, for correlating lines
        """
        self.sweep_id = sweep_id
        self._log_entries: List[LogEntry] = []

    def _create_entry(
        self,
        level: LogLevel,
        action: ActionType,
        resource_type: str,
        resource_name: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        error_info: Optional[Dict[str, Any]] = None,
    ) -> LogEntry:
        """Create a sanitized log entry."""
        return LogEntry(
            timestamp=datetime.now(timezone.utc),
            level=level,
            action=action,
            resource_type=resource_type,
            resource_name=LogSanitizer.sanitize(resource_name),
            message=LogSanitizer.sanitize(message),
            details=LogSanitizer.sanitize_dict(details) if details else {},
            error_info=LogSanitizer.sanitize_dict(error_info) if error_info else None,
        )

    def _log(self, entry: LogEntry) -> None:
        """Emit entry and store it for reporting."""
        self._log_entries.append(entry)

        log_message = (
            f"[{entry.action.value}] {entry.resource_type} "
            f"{entry.resource_name}: {entry.message}"
        )

        if entry.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in entry.details.items())
            log_message += f" ({detail_str})"

        if entry.error_info:
            log_message += f" - Error: {entry.error_info}"

        extra = {
            "sweep_id": self.sweep_id,
            "action": entry.action.value,
            "resource_type": entry.resource_type,
            "resource_name": entry.resource_name,
            **entry.details,
        }
        logger.log(_LEVELS[entry.level], log_message, extra={"fields": extra})

    # Reset logging

    def log_reset_request(self, request: ReapRequest, expire: str) -> None:
        """Log an outgoing reset request at DEBUG level."""
        entry = self._create_entry(
            level=LogLevel.DEBUG,
            action=ActionType.RESET,
            resource_type=request.resource_type,
            resource_name="*",
            message="Requesting reset of expired resources",
            details={**request.context(), "expire": expire},
        )
        self._log(entry)

    def log_reset_responses(self, request: ReapRequest, response: ReapResult) -> None:
        """Log each resource the pool service reset, one line per resource."""
        if not response:
            entry = self._create_entry(
                level=LogLevel.DEBUG,
                action=ActionType.RESET,
                resource_type=request.resource_type,
                resource_name="*",
                message="No expired resources",
                details=request.context(),
            )
            self._log(entry)
            return

        for name, previous_owner in response.items():
            entry = self._create_entry(
                level=LogLevel.INFO,
                action=ActionType.RESET,
                resource_type=request.resource_type,
                resource_name=name,
                message="Reset resource",
                details={
                    **request.context(),
                    "resource_name": name,
                    "previous_owner": previous_owner,
                },
            )
            self._log(entry)

    def log_reset_failed(self, request: ReapRequest, error: Exception) -> None:
        """Log a failed reset with its (type, state) context."""
        error_info: Dict[str, Any] = {
            "error_type": type(error).__name__,
            "error_message": str(error),
        }
        status_code = getattr(error, "status_code", None)
        if status_code is not None:
            error_info["status_code"] = status_code

        entry = self._create_entry(
            level=LogLevel.ERROR,
            action=ActionType.ERROR,
            resource_type=request.resource_type,
            resource_name="*",
            message="Reset failed",
            details=request.context(),
            error_info=error_info,
        )
        self._log(entry)

    # Summary logging

    def log_sweep_start(self, resource_types: List[str]) -> None:
        """Log start of a sweep."""
        entry = self._create_entry(
            level=LogLevel.DEBUG,
            action=ActionType.SWEEP,
            resource_type="*",
            resource_name="*",
            message=f"Starting sweep #{self.sweep_id}",
            details={"resource_types": list(resource_types)},
        )
        self._log(entry)

    def log_sweep_complete(self, result: SweepResult) -> None:
        """Log sweep totals; WARNING when any pair failed."""
        errors = result.total_errors()
        entry = self._create_entry(
            level=LogLevel.WARNING if errors else LogLevel.INFO,
            action=ActionType.SWEEP,
            resource_type="*",
            resource_name="*",
            message=f"Sweep #{self.sweep_id} complete",
            details={
                "requests": len(result.outcomes),
                "reset": result.total_reaped(),
                "errors": errors,
            },
        )
        self._log(entry)

    def get_log_entries(self) -> List[LogEntry]:
        """Get all log entries for reporting."""
        return self._log_entries.copy()
