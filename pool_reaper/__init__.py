"""Pool Reaper - reset leased pool resources abandoned by crashed holders."""

__version__ = "1.0.0"

from pool_reaper.models import (
    REAPABLE_STATES,
    ReapOutcome,
    ReapRequest,
    ReapResult,
    ResourceState,
    SweepResult,
)

__all__ = [
    "REAPABLE_STATES",
    "ReapOutcome",
    "ReapRequest",
    "ReapResult",
    "ResourceState",
    "SweepResult",
]
