"""Pytest configuration and shared fixtures."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import pytest

from pool_reaper.models import ReapResult, ResourceState
from pool_reaper.utils.pool_client import ServiceUnavailableError


@dataclass
class FakeResource:
    """A resource as the pool service tracks it."""

    name: str
    resource_type: str
    state: ResourceState
    owner: str
    last_update: datetime


class FakePool:
    """In-memory pool service implementing the conditional reset.

    A resource is reset when it is in the requested state and has not changed
    state for at least ``expire`` (age equal to the expiry counts).
    """

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
        self.resources: dict[str, FakeResource] = {}
        self.calls: list[tuple[str, ResourceState, timedelta, ResourceState]] = []
        self.failing_pairs: set[tuple[str, ResourceState]] = set()
        self.unavailable = False
        self.closed = False

    def add(
        self,
        name: str,
        resource_type: str,
        state: ResourceState,
        owner: str = "",
        age: timedelta = timedelta(0),
    ) -> FakeResource:
        resource = FakeResource(name, resource_type, state, owner, self.now - age)
        self.resources[name] = resource
        return resource

    def advance(self, delta: timedelta) -> None:
        self.now += delta

    def reset(
        self,
        resource_type: str,
        state: ResourceState,
        expire: timedelta,
        dest: ResourceState,
    ) -> ReapResult:
        self.calls.append((resource_type, state, expire, dest))
        if self.unavailable or (resource_type, state) in self.failing_pairs:
            raise ServiceUnavailableError("Pool service unreachable: connection refused")

        reset: ReapResult = {}
        for resource in self.resources.values():
            if resource.resource_type != resource_type or resource.state != state:
                continue
            if self.now - resource.last_update < expire:
                continue
            reset[resource.name] = resource.owner
            resource.state = dest
            resource.owner = ""
            resource.last_update = self.now
        return reset

    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def reset_reaper_logger():
    """Undo package log levels set by configure_logging between tests."""
    yield
    logging.getLogger("pool_reaper").setLevel(logging.NOTSET)


@pytest.fixture
def fake_pool() -> FakePool:
    """Empty in-memory pool service."""
    return FakePool()


@pytest.fixture
def password_file(tmp_path) -> str:
    """Password file with trailing whitespace, as written by secret mounts."""
    path = tmp_path / "password"
    path.write_text("s3cr3t-pass\n", encoding="utf-8")
    return str(path)


@pytest.fixture
def reaper_env(password_file) -> dict[str, str]:
    """Complete environment for a valid reaper configuration."""
    return {
        "POOL_URL": "http://pool.example.com:8080",
        "POOL_USERNAME": "reaper",
        "POOL_PASSWORD_FILE": password_file,
        "RESOURCE_TYPES": "project,vm",
        "EXPIRY_DURATION": "30m",
        "TARGET_STATE": "dirty",
        "SWEEP_INTERVAL": "1m",
    }


@pytest.fixture
def pool_factory() -> type[FakePool]:
    """FakePool class, for tests that need a fresh pool per example."""
    return FakePool
