"""Data models for the pool reaper."""

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum


class ResourceState(Enum):
    """States a pooled resource can be in.

    Values use the pool service's wire spelling.
    """

    FREE = "free"
    DIRTY = "dirty"
    BUSY = "busy"
    CLEANING = "cleaning"
    LEASED = "leased"
    TO_BE_DELETED = "toBeDeleted"
    TOMBSTONE = "tombstone"
    OTHER = "other"

    @classmethod
    def parse(cls, value: "str | ResourceState") -> "ResourceState":
        """Resolve a state from its wire value or member name, case-insensitively."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for state in cls:
            if text.lower() in (state.value.lower(), state.name.lower()):
                return state
        raise ValueError(f"Unknown resource state: '{value}'")


# Transient states a crashed holder can leave a resource in, swept in order:
# a lease holder died while busy, a cleanup agent died while cleaning, a
# provisioner died while leased. Must track the pool service's enumeration.
REAPABLE_STATES: tuple[ResourceState, ...] = (
    ResourceState.BUSY,
    ResourceState.CLEANING,
    ResourceState.LEASED,
)

DEFAULT_TARGET_STATE = ResourceState.DIRTY
DEFAULT_EXPIRY = timedelta(minutes=30)

# Resource name -> owner recorded at the time of the reset.
ReapResult = dict[str, str]


@dataclass(frozen=True)
class ReapRequest:
    """One conditional reset of a (resource type, source state) pair."""

    resource_type: str
    source_state: ResourceState
    target_state: ResourceState = DEFAULT_TARGET_STATE
    expiry: timedelta = DEFAULT_EXPIRY

    def context(self) -> dict[str, str]:
        """Logging context identifying this request."""
        return {
            "resource_type": self.resource_type,
            "source_state": self.source_state.value,
            "target_state": self.target_state.value,
        }


@dataclass
class ReapOutcome:
    """Result of reaping one (resource type, source state) pair."""

    request: ReapRequest
    reaped: ReapResult = field(default_factory=dict)
    error: Exception | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class SweepResult:
    """Outcomes of one complete pass over all resource types and states."""

    outcomes: list[ReapOutcome] = field(default_factory=list)

    def total_reaped(self) -> int:
        """Get total number of resources reset during the sweep."""
        return sum(len(outcome.reaped) for outcome in self.outcomes)

    def total_errors(self) -> int:
        """Get number of (type, state) pairs that failed."""
        return sum(1 for outcome in self.outcomes if not outcome.succeeded)

    def reaped_by_type(self) -> dict[str, int]:
        """Get number of resources reset per resource type."""
        totals: dict[str, int] = {}
        for outcome in self.outcomes:
            key = outcome.request.resource_type
            totals[key] = totals.get(key, 0) + len(outcome.reaped)
        return totals

    def errors(self) -> dict[str, str]:
        """Map 'type/state' to error message for failed pairs."""
        return {
            f"{o.request.resource_type}/{o.request.source_state.value}": str(o.error)
            for o in self.outcomes
            if o.error is not None
        }
