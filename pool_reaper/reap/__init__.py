"""Reap policy and sweep orchestration."""

from pool_reaper.reap.orchestrator import SweepOrchestrator
from pool_reaper.reap.policy import InvalidReapRequestError, ReapPolicy, ResetClient

__all__ = [
    "InvalidReapRequestError",
    "ReapPolicy",
    "ResetClient",
    "SweepOrchestrator",
]
