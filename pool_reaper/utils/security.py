"""Input validation and log sanitization for the pool reaper.

Resource types and states end up in the query string of requests that
mutate the pool, so they are validated before any request is built. Log
output passes through ``LogSanitizer`` so credentials never reach the logs.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

# Resource types are short identifiers such as "gce-project" or "aws-account".
RESOURCE_TYPE_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.\-]*$")

# Characters that could be used in injection attacks
DANGEROUS_CHARACTERS = set("<>{}[]|\\`$;!&*()\"'\n\r\t?#=%")

# Maximum lengths for various inputs
MAX_LENGTHS = {
    "resource_type": 128,
    "url": 2048,
    "username": 256,
}

ALLOWED_URL_SCHEMES = {"http", "https"}


@dataclass
class ValidationResult:
    """Result of input validation."""

    is_valid: bool
    errors: List[str]
    sanitized_value: Optional[Any] = None

    @classmethod
    def valid(cls, sanitized_value: Any = None) -> "ValidationResult":
        """Create a valid result."""
        return cls(is_valid=True, errors=[], sanitized_value=sanitized_value)

    @classmethod
    def invalid(cls, errors: List[str]) -> "ValidationResult":
        """Create an invalid result."""
        return cls(is_valid=False, errors=errors)


class InputValidator:
    """Validates operator-supplied values before they reach the pool service."""

    @staticmethod
    def validate_resource_type(resource_type: str) -> ValidationResult:
        """
        Validate a resource type name.

        Args:
            resource_type: The resource type to validate

        Returns:
            ValidationResult with validation status and any errors
        """
        if not resource_type or not resource_type.strip():
            return ValidationResult.invalid(["Resource type cannot be empty"])

        value = resource_type.strip()
        errors = []

        if len(value) > MAX_LENGTHS["resource_type"]:
            errors.append(
                f"Resource type exceeds maximum length of {MAX_LENGTHS['resource_type']}"
            )

        if any(c in value for c in DANGEROUS_CHARACTERS):
            errors.append(f"Resource type '{value}' contains potentially dangerous characters")
        elif not RESOURCE_TYPE_PATTERN.match(value):
            errors.append(f"Resource type '{value}' contains invalid characters")

        if errors:
            return ValidationResult.invalid(errors)

        return ValidationResult.valid(value)

    @staticmethod
    def validate_resource_types(resource_types: List[str]) -> ValidationResult:
        """
        Validate a list of resource types, rejecting empty lists and duplicates.

        Args:
            resource_types: Resource type names in sweep order

        Returns:
            ValidationResult whose sanitized value preserves the input order
        """
        if not resource_types:
            return ValidationResult.invalid(["At least one resource type is required"])

        errors = []
        sanitized = []
        for resource_type in resource_types:
            result = InputValidator.validate_resource_type(resource_type)
            if not result.is_valid:
                errors.extend(result.errors)
                continue
            if result.sanitized_value in sanitized:
                errors.append(f"Duplicate resource type '{result.sanitized_value}'")
                continue
            sanitized.append(result.sanitized_value)

        if errors:
            return ValidationResult.invalid(errors)

        return ValidationResult.valid(sanitized)

    @staticmethod
    def validate_url(url: str) -> ValidationResult:
        """
        Validate the pool service URL.

        Args:
            url: Base URL of the pool service

        Returns:
            ValidationResult with validation status and any errors
        """
        if not url:
            return ValidationResult.invalid(["Pool URL cannot be empty"])

        errors = []

        if len(url) > MAX_LENGTHS["url"]:
            errors.append(f"Pool URL exceeds maximum length of {MAX_LENGTHS['url']}")

        parts = urlsplit(url)
        if parts.scheme not in ALLOWED_URL_SCHEMES:
            errors.append("Pool URL must use http or https")
        if not parts.hostname:
            errors.append("Pool URL must include a host")
        if parts.username or parts.password:
            errors.append("Pool URL must not embed credentials; use the password file")

        if errors:
            return ValidationResult.invalid(errors)

        return ValidationResult.valid(url.rstrip("/"))


class LogSanitizer:
    """Sanitizes log output to prevent sensitive data exposure."""

    # Patterns for sensitive data
    SENSITIVE_PATTERNS = [
        (re.compile(r"(?i)(https?://)[^/\s:@]+:[^/\s@]+@"), r"\1[REDACTED]@"),
        (re.compile(r"(?i)authorization\s*[=:]\s*(basic|bearer)\s+\S+"), "authorization=[REDACTED]"),
        (re.compile(r"(?i)password\s*[=:]\s*\S+"), "password=[REDACTED]"),
        (re.compile(r"(?i)secret\s*[=:]\s*\S+"), "secret=[REDACTED]"),
        (re.compile(r"(?i)token\s*[=:]\s*\S+"), "token=[REDACTED]"),
    ]

    @classmethod
    def sanitize(cls, message: str) -> str:
        """
        Sanitize a log message to remove sensitive data.

        Args:
            message: The message to sanitize

        Returns:
            Sanitized message
        """
        sanitized = message
        for pattern, replacement in cls.SENSITIVE_PATTERNS:
            sanitized = pattern.sub(replacement, sanitized)
        return sanitized

    @classmethod
    def sanitize_dict(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Sanitize a dictionary for logging.

        Args:
            data: Dictionary to sanitize

        Returns:
            Sanitized dictionary
        """
        sanitized = {}
        sensitive_keys = {"password", "secret", "token", "credential", "auth"}

        for key, value in data.items():
            key_lower = key.lower()
            if any(s in key_lower for s in sensitive_keys):
                sanitized[key] = "[REDACTED]"
            elif isinstance(value, str):
                sanitized[key] = cls.sanitize(value)
            elif isinstance(value, dict):
                sanitized[key] = cls.sanitize_dict(value)
            elif isinstance(value, list):
                sanitized[key] = [
                    cls.sanitize(v) if isinstance(v, str) else v for v in value
                ]
            else:
                sanitized[key] = value

        return sanitized
