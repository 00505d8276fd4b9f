"""HTTP client for the resource pool service."""

import json
import logging
from datetime import timedelta
from typing import Any

import requests
from requests.auth import HTTPBasicAuth

from pool_reaper.models import ReapResult, ResourceState
from pool_reaper.utils.config import ConfigurationError
from pool_reaper.utils.duration import format_duration
from pool_reaper.utils.security import LogSanitizer

logger = logging.getLogger(__name__)

# Gateway statuses that mean the service itself is not reachable right now.
UNAVAILABLE_STATUS_CODES = {502, 503, 504}


class PoolClientError(Exception):
    """Base exception for failed requests to the pool service."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = LogSanitizer.sanitize(message)
        self.status_code = status_code
        super().__init__(self.message)


class ServiceUnavailableError(PoolClientError):
    """The pool service could not be reached or is temporarily down."""


class RequestError(PoolClientError):
    """The pool service rejected the request or returned an unusable response."""


def load_password(password_file: str) -> str:
    """Read the service password from a file, stripping surrounding whitespace.

    Raises:
        ConfigurationError: If the file cannot be read or is empty.
    """
    try:
        with open(password_file, encoding="utf-8") as f:
            password = f.read().strip()
    except OSError as e:
        raise ConfigurationError(
            f"Unable to read password file '{password_file}': {e.strerror or e}"
        ) from e

    if not password:
        raise ConfigurationError(f"Password file '{password_file}' is empty")
    return password


class PoolClient:
    """Client for the pool service's conditional reset operation.

    Each call issues exactly one HTTP request. There is no retry here: a
    failed reset is reported to the caller and picked up by the next sweep.
    """

    def __init__(
        self,
        owner: str,
        url: str,
        username: str = "",
        password_file: str = "",
        timeout: float | None = None,
        session: requests.Session | None = None,
    ):
        """
        Initialize pool client.

        Args:
            owner: Name this client identifies itself with
            url: Base URL of the pool service
            username: Username for basic auth; requires password_file
            password_file: Path to a file holding the basic auth password
            timeout: Per-request timeout in seconds; None waits indefinitely
            session: Optional requests session, mainly for tests

        Raises:
            ConfigurationError: If the credentials are incomplete or unreadable.
        """
        if not owner:
            raise ConfigurationError("Client owner cannot be empty")
        if bool(username) != bool(password_file):
            raise ConfigurationError(
                "Username and password file must be provided together"
            )

        self.owner = owner
        self.url = url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": f"pool-reaper/{owner}"})

        if username:
            self._session.auth = HTTPBasicAuth(username, load_password(password_file))

    def reset(
        self,
        resource_type: str,
        state: ResourceState,
        expire: timedelta,
        dest: ResourceState,
    ) -> ReapResult:
        """
        Reset every resource of a type that has sat in ``state`` for at least ``expire``.

        The pool service performs the age check and the transition to ``dest``
        atomically per resource; only resources it actually moved are returned.

        Args:
            resource_type: Type of resources to reset
            state: Source state a resource must currently be in
            expire: Minimum time since the resource's last state change
            dest: State to move expired resources into

        Returns:
            Mapping of resource name to the owner it had when reset

        Raises:
            ServiceUnavailableError: If the service cannot be reached.
            RequestError: If the service rejects the request or the body is malformed.
        """
        params = {
            "type": resource_type,
            "state": state.value,
            "expire": format_duration(expire),
            "dest": dest.value,
        }
        logger.debug(f"POST {self.url}/reset {params}")
        response = self._post("reset", params)

        if response.status_code != 200:
            error_class = (
                ServiceUnavailableError
                if response.status_code in UNAVAILABLE_STATUS_CODES
                else RequestError
            )
            raise error_class(
                f"status {response.reason}, status code {response.status_code}",
                status_code=response.status_code,
            )

        return self._parse_reset_response(response.text)

    def _post(self, path: str, params: dict[str, str]) -> requests.Response:
        try:
            return self._session.post(
                f"{self.url}/{path}", params=params, timeout=self.timeout
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            raise ServiceUnavailableError(f"Pool service unreachable: {e}") from e
        except requests.RequestException as e:
            raise RequestError(f"Request to pool service failed: {e}") from e

    @staticmethod
    def _parse_reset_response(body: str) -> ReapResult:
        text = body.strip() if body else ""
        if not text or text == "null":
            return {}

        try:
            data: Any = json.loads(text)
        except ValueError as e:
            raise RequestError(f"Malformed reset response: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise RequestError(
                f"Malformed reset response: expected an object, got {type(data).__name__}"
            )

        result: ReapResult = {}
        for name, owner in data.items():
            if not isinstance(owner, str):
                raise RequestError(
                    f"Malformed reset response: owner of '{name}' is not a string"
                )
            result[name] = owner
        return result

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()
