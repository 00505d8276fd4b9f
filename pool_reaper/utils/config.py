"""Configuration management for the pool reaper.

Configuration is read once at startup from environment variables, optionally
overridden by command-line flags, and then frozen. Nothing mutates it while
the reaper runs.

Key configuration options:
- POOL_URL: Base URL of the pool service
- POOL_USERNAME / POOL_PASSWORD_FILE: Basic auth credentials
- RESOURCE_TYPES: Comma-separated resource types to sweep (required)
- EXPIRY_DURATION: Time a resource must sit in a busy state before reset
- TARGET_STATE: State reaped resources are moved into
- SWEEP_INTERVAL: Time between sweeps
- REQUEST_TIMEOUT_SECONDS: Optional per-request timeout
- LOG_LEVEL: Log level for output
"""

import dataclasses
import logging
import os
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Iterable, List, Mapping, Optional

from pool_reaper.models import DEFAULT_EXPIRY, DEFAULT_TARGET_STATE, ResourceState
from pool_reaper.utils.duration import parse_duration
from pool_reaper.utils.security import MAX_LENGTHS, InputValidator

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

DEFAULT_POOL_URL = "http://boskos"
DEFAULT_INTERVAL = timedelta(minutes=1)

# Module logger for configuration warnings
_config_logger = logging.getLogger(__name__)


class ConfigurationError(Exception):
    """Exception raised for configuration validation errors."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.message = message
        self.errors = errors or []
        super().__init__(self.message)


def parse_resource_types(values: Iterable[str]) -> tuple[str, ...]:
    """Split comma-separated resource types, keeping first-seen order.

    Accepts several values (repeated flags) each of which may itself hold a
    comma-separated list. Blank entries are dropped.
    """
    types: list[str] = []
    for value in values:
        for item in value.split(","):
            item = item.strip()
            if item and item not in types:
                types.append(item)
    return tuple(types)


def _parse_duration_option(name: str, value: str) -> timedelta:
    try:
        return parse_duration(value)
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid {name}: '{value}' is not a valid duration ({e})"
        ) from e


@dataclass(frozen=True)
class ReaperConfig:
    """Configuration for reaper execution.

    Attributes:
        pool_url: Base URL of the pool service.
        username: Username for basic auth against the pool service.
        password_file: Path to the file holding the basic auth password.
        resource_types: Resource types to sweep, in sweep order.
        expiry: Minimum time a resource must stay in a busy state before it
            is reset.
        target_state: Wire value of the state reaped resources move into.
        interval: Time between the start of consecutive sweeps.
        request_timeout: Per-request timeout in seconds, or None to wait for
            the transport.
        log_level: Log level for output.
    """

    pool_url: str = DEFAULT_POOL_URL
    username: str = ""
    password_file: str = ""
    resource_types: tuple[str, ...] = ()
    expiry: timedelta = DEFAULT_EXPIRY
    target_state: str = DEFAULT_TARGET_STATE.value
    interval: timedelta = DEFAULT_INTERVAL
    request_timeout: Optional[float] = None
    log_level: str = "INFO"

    @classmethod
    def from_environment(
        cls,
        validate: bool = True,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ReaperConfig":
        """Create configuration from environment variables.

        Args:
            validate: If True, validates the configuration and raises
                ConfigurationError if invalid.
            environ: Mapping to read instead of os.environ.

        Returns:
            ReaperConfig instance populated from environment variables.

        Raises:
            ConfigurationError: If a value cannot be parsed, or if validation
                is enabled and the configuration is invalid.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        values["pool_url"] = env.get("POOL_URL", DEFAULT_POOL_URL).strip()
        values["username"] = env.get("POOL_USERNAME", "").strip()
        values["password_file"] = env.get("POOL_PASSWORD_FILE", "").strip()
        values["resource_types"] = parse_resource_types([env.get("RESOURCE_TYPES", "")])

        expiry = env.get("EXPIRY_DURATION")
        if expiry:
            values["expiry"] = _parse_duration_option("EXPIRY_DURATION", expiry)

        target_state = env.get("TARGET_STATE")
        if target_state is not None:
            values["target_state"] = target_state.strip()

        interval = env.get("SWEEP_INTERVAL")
        if interval:
            values["interval"] = _parse_duration_option("SWEEP_INTERVAL", interval)

        timeout = env.get("REQUEST_TIMEOUT_SECONDS", "").strip()
        if timeout:
            try:
                values["request_timeout"] = float(timeout)
            except ValueError:
                raise ConfigurationError(
                    f"Invalid REQUEST_TIMEOUT_SECONDS: '{timeout}' is not a number"
                )

        values["log_level"] = normalize_log_level(env.get("LOG_LEVEL", "INFO"))

        config = cls(**values)

        if validate:
            config.raise_for_errors()

        return config

    def with_overrides(self, **overrides: Any) -> "ReaperConfig":
        """Return a copy with the given fields replaced, ignoring None values.

        ``resource_types`` may be any iterable of possibly comma-separated
        strings; ``expiry`` and ``interval`` may be duration strings.
        """
        changes: dict[str, Any] = {k: v for k, v in overrides.items() if v is not None}

        if "resource_types" in changes:
            types = changes["resource_types"]
            changes["resource_types"] = parse_resource_types(
                [types] if isinstance(types, str) else types
            )
        for name in ("expiry", "interval"):
            if isinstance(changes.get(name), str):
                changes[name] = _parse_duration_option(name, changes[name])
        if "log_level" in changes:
            changes["log_level"] = normalize_log_level(changes["log_level"])

        return dataclasses.replace(self, **changes)

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors.

        Returns:
            List of error messages. Empty list if configuration is valid.
        """
        errors = []

        if not self.resource_types:
            errors.append("--resource-type must not be empty")
        else:
            types_result = InputValidator.validate_resource_types(list(self.resource_types))
            errors.extend(types_result.errors)

        url_result = InputValidator.validate_url(self.pool_url)
        errors.extend(url_result.errors)

        if not self.target_state:
            errors.append("--target-state must not be empty")
        else:
            try:
                ResourceState.parse(self.target_state)
            except ValueError as e:
                errors.append(str(e))

        if self.expiry < timedelta(0):
            errors.append("Expiry duration must not be negative")

        if self.interval <= timedelta(0):
            errors.append("Sweep interval must be positive")

        if self.request_timeout is not None and self.request_timeout <= 0:
            errors.append("Request timeout must be positive")

        if bool(self.username) != bool(self.password_file):
            errors.append("Username and password file must be provided together")

        if len(self.username) > MAX_LENGTHS["username"]:
            errors.append(f"Username exceeds maximum length of {MAX_LENGTHS['username']}")

        return errors

    def raise_for_errors(self) -> None:
        """Raise ConfigurationError if validate() reports any problem."""
        errors = self.validate()
        if errors:
            raise ConfigurationError(
                f"Configuration validation failed: {errors}", errors=errors
            )

    def get_target_state(self) -> ResourceState:
        """Get the target state as an enum member.

        Raises:
            ValueError: If the configured target state is not recognized.
        """
        return ResourceState.parse(self.target_state)

    def get_numeric_log_level(self) -> int:
        """Get the numeric log level for use with logging module."""
        return getattr(logging, self.log_level, logging.INFO)


def normalize_log_level(value: str) -> str:
    """Upper-case a log level name, falling back to INFO with a warning."""
    level = (value or "INFO").upper().strip()
    if level in VALID_LOG_LEVELS:
        return level
    _config_logger.warning(f"Invalid LOG_LEVEL '{level}', defaulting to INFO")
    return "INFO"


def configure_logging(config: Optional["ReaperConfig"] = None) -> logging.Logger:
    """Configure logging based on LOG_LEVEL environment variable or config.

    Args:
        config: Optional ReaperConfig instance. If not provided, reads from environment.

    Returns:
        Configured logger instance for the reaper.
    """
    if config is None:
        level = normalize_log_level(os.environ.get("LOG_LEVEL", "INFO"))
        config = ReaperConfig(log_level=level)

    log_level = config.get_numeric_log_level()

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,
    )

    reaper_logger = logging.getLogger("pool_reaper")
    reaper_logger.setLevel(log_level)

    return reaper_logger
