"""Sweep orchestration across resource types and busy states.

A sweep is a nested traversal: every configured resource type, in
configuration order, crossed with every reapable state, in the fixed order
of ``REAPABLE_STATES``. Each pair gets exactly one reset request. A failing
pair is logged and recorded, and the sweep moves on to the next pair; the
next sweep is the only retry.

Nothing is carried from one sweep to the next except the sweep counter
used to correlate log lines.
"""

import logging
from datetime import timedelta
from typing import Iterable, Optional, Sequence

from pool_reaper.models import (
    DEFAULT_EXPIRY,
    DEFAULT_TARGET_STATE,
    REAPABLE_STATES,
    ReapOutcome,
    ResourceState,
    SweepResult,
)
from pool_reaper.reap.policy import ReapPolicy
from pool_reaper.utils.config import ReaperConfig
from pool_reaper.utils.duration import format_duration
from pool_reaper.utils.logging import ReaperLogger

logger = logging.getLogger(__name__)


class SweepOrchestrator:
    """Drives the reap policy over every (resource type, busy state) pair."""

    def __init__(
        self,
        policy: ReapPolicy,
        resource_types: Iterable[str],
        target_state: ResourceState = DEFAULT_TARGET_STATE,
        expiry: timedelta = DEFAULT_EXPIRY,
        source_states: Sequence[ResourceState] = REAPABLE_STATES,
    ):
        """
        Initialize sweep orchestrator.

        Args:
            policy: Reap policy issuing the conditional resets
            resource_types: Resource types to sweep, in sweep order
            target_state: State reaped resources are moved into
            expiry: Minimum time in a busy state before a resource is reset
            source_states: Busy states to sweep, in sweep order
        """
        self.policy = policy
        self.resource_types = tuple(resource_types)
        self.target_state = target_state
        self.expiry = expiry
        self.source_states = tuple(source_states)
        self._sweep_count = 0

        if not self.resource_types:
            raise ValueError("At least one resource type is required")
        # Fail at construction rather than on every sweep
        for resource_type in self.resource_types:
            for source_state in self.source_states:
                policy.build_request(resource_type, source_state, target_state, expiry)

    @classmethod
    def from_config(cls, config: ReaperConfig, policy: ReapPolicy) -> "SweepOrchestrator":
        """Build an orchestrator from validated configuration."""
        return cls(
            policy=policy,
            resource_types=config.resource_types,
            target_state=config.get_target_state(),
            expiry=config.expiry,
        )

    @property
    def sweep_count(self) -> int:
        """Number of sweeps started so far."""
        return self._sweep_count

    def sweep(self, reaper_logger: Optional[ReaperLogger] = None) -> SweepResult:
        """
        Run one complete pass over all resource types and busy states.

        Args:
            reaper_logger: Logger for this sweep; a fresh one is created if omitted

        Returns:
            SweepResult with one outcome per (resource type, state) pair
        """
        self._sweep_count += 1
        log = reaper_logger or ReaperLogger(sweep_id=self._sweep_count)
        log.log_sweep_start(list(self.resource_types))

        result = SweepResult()
        for resource_type in self.resource_types:
            for source_state in self.source_states:
                result.outcomes.append(self._reap_one(log, resource_type, source_state))

        log.log_sweep_complete(result)
        return result

    def _reap_one(
        self,
        log: ReaperLogger,
        resource_type: str,
        source_state: ResourceState,
    ) -> ReapOutcome:
        request = self.policy.build_request(
            resource_type, source_state, self.target_state, self.expiry
        )
        log.log_reset_request(request, format_duration(request.expiry))

        try:
            reaped = self.policy.execute(request)
        except Exception as e:
            # Pairs are independent; a failure here must not stop the sweep
            log.log_reset_failed(request, e)
            return ReapOutcome(request=request, error=e)

        log.log_reset_responses(request, reaped)
        return ReapOutcome(request=request, reaped=reaped)
