"""Reap policy: one conditional reset per (resource type, source state).

The policy never decides on its own which resources are stale. It asks the
pool service to reset resources of one type that have sat in one source
state for at least the expiry, and the service performs the age check and
the transition atomically per resource. A request therefore always carries
an explicit source state and expiry; there is no unconditional reset.

Age exactly equal to the expiry counts as expired. That boundary is owned by
the pool service; the policy only guarantees it sends the same expiry every
time for the same configuration.
"""

import logging
from datetime import timedelta
from typing import Protocol

from pool_reaper.models import (
    DEFAULT_EXPIRY,
    DEFAULT_TARGET_STATE,
    ReapRequest,
    ReapResult,
    ResourceState,
)

logger = logging.getLogger(__name__)


class InvalidReapRequestError(ValueError):
    """Raised for a reap request that must not be sent to the pool service."""


class ResetClient(Protocol):
    """The part of the pool client the policy depends on."""

    def reset(
        self,
        resource_type: str,
        state: ResourceState,
        expire: timedelta,
        dest: ResourceState,
    ) -> ReapResult: ...


class ReapPolicy:
    """Issues conditional resets against the pool service."""

    def __init__(self, client: ResetClient):
        """
        Initialize reap policy.

        Args:
            client: Pool client exposing the conditional reset operation
        """
        self.client = client

    @staticmethod
    def build_request(
        resource_type: str,
        source_state: ResourceState | str,
        target_state: ResourceState | str = DEFAULT_TARGET_STATE,
        expiry: timedelta = DEFAULT_EXPIRY,
    ) -> ReapRequest:
        """
        Validate inputs and build a reap request.

        Raises:
            InvalidReapRequestError: If the type is empty, a state is not
                recognized, or the expiry is negative.
        """
        if not resource_type or not resource_type.strip():
            raise InvalidReapRequestError("Resource type cannot be empty")

        try:
            source = ResourceState.parse(source_state)
            target = ResourceState.parse(target_state)
        except ValueError as e:
            raise InvalidReapRequestError(str(e)) from e

        if not isinstance(expiry, timedelta):
            raise InvalidReapRequestError(
                f"Expiry must be a timedelta, got {type(expiry).__name__}"
            )
        if expiry < timedelta(0):
            raise InvalidReapRequestError("Expiry must not be negative")

        return ReapRequest(
            resource_type=resource_type.strip(),
            source_state=source,
            target_state=target,
            expiry=expiry,
        )

    def reap(
        self,
        resource_type: str,
        source_state: ResourceState | str,
        target_state: ResourceState | str = DEFAULT_TARGET_STATE,
        expiry: timedelta = DEFAULT_EXPIRY,
    ) -> ReapResult:
        """
        Reset resources of a type stuck in a source state past the expiry.

        Args:
            resource_type: Type of resources to reap
            source_state: Busy state to reap from
            target_state: State to move expired resources into
            expiry: Minimum time since the resource last changed state

        Returns:
            Mapping of reset resource name to previous owner; empty when
            nothing had expired

        Raises:
            InvalidReapRequestError: If the inputs are invalid.
            PoolClientError: If the reset call fails.
        """
        request = self.build_request(resource_type, source_state, target_state, expiry)
        return self.execute(request)

    def execute(self, request: ReapRequest) -> ReapResult:
        """Send a prepared reap request and return a copy of the reset map."""
        logger.debug(
            f"Reaping {request.resource_type} from {request.source_state.value} "
            f"to {request.target_state.value} after {request.expiry}"
        )
        response = self.client.reset(
            request.resource_type,
            request.source_state,
            request.expiry,
            request.target_state,
        )
        return dict(response or {})
