"""Entry points for the pool reaper.

The reaper runs as a long-lived process that sweeps once per interval, or
with ``--once`` for deployments where an external scheduler starts one sweep
at a time. Both modes build the same frozen configuration, client and
orchestrator.

Key Design Principles:
- Fail fast on configuration: invalid settings or unreadable credentials
  stop the process before any sweep.
- Stateless sweeps: each sweep recomputes everything from the pool
  service's current state.
- Errors stay inside their (resource type, state) pair and never stop the
  process.
"""

import argparse
import logging
import signal
import sys
import threading
from typing import Any, Optional, Sequence

from pool_reaper import __version__
from pool_reaper.models import SweepResult
from pool_reaper.reap.orchestrator import SweepOrchestrator
from pool_reaper.reap.policy import ReapPolicy, ResetClient
from pool_reaper.ticker import Ticker
from pool_reaper.utils.config import ConfigurationError, ReaperConfig, configure_logging
from pool_reaper.utils.pool_client import PoolClient
from pool_reaper.utils.security import LogSanitizer

logger = logging.getLogger(__name__)

CLIENT_OWNER = "Reaper"


def build_client(config: ReaperConfig) -> PoolClient:
    """Construct the pool client from configuration.

    Raises:
        ConfigurationError: If the client cannot be constructed.
    """
    client = PoolClient(
        owner=CLIENT_OWNER,
        url=config.pool_url,
        username=config.username,
        password_file=config.password_file,
        timeout=config.request_timeout,
    )
    logger.info(f"Initialized pool client for {LogSanitizer.sanitize(config.pool_url)}")
    return client


def build_orchestrator(config: ReaperConfig, client: ResetClient) -> SweepOrchestrator:
    """Wire the reap policy and orchestrator around a client."""
    return SweepOrchestrator.from_config(config, ReapPolicy(client))


def summarize(result: SweepResult) -> dict[str, Any]:
    """Summarize a SweepResult for reporting."""
    return {
        "requests": len(result.outcomes),
        "resources_reset": result.total_reaped(),
        "reset_by_type": result.reaped_by_type(),
        "errors": result.errors(),
    }


def run_once(config: ReaperConfig, client: Optional[ResetClient] = None) -> dict[str, Any]:
    """
    Run a single sweep and return its summary.

    Args:
        config: Validated reaper configuration
        client: Optional pool client; built from config if omitted

    Returns:
        Sweep summary
    """
    orchestrator = build_orchestrator(config, client or build_client(config))
    return summarize(orchestrator.sweep())


def run_forever(
    config: ReaperConfig,
    client: Optional[ResetClient] = None,
    stop_event: Optional[threading.Event] = None,
    max_ticks: Optional[int] = None,
) -> int:
    """
    Sweep once per configured interval until stopped.

    Args:
        config: Validated reaper configuration
        client: Optional pool client; built from config if omitted
        stop_event: Event that stops the loop when set
        max_ticks: Optional limit on the number of sweeps

    Returns:
        Number of sweeps run
    """
    orchestrator = build_orchestrator(config, client or build_client(config))
    ticker = Ticker(config.interval, stop_event=stop_event)

    logger.info(
        f"Reaping {', '.join(config.resource_types)} every {config.interval} "
        f"(expiry {config.expiry}, target state {config.target_state})"
    )
    return ticker.run(orchestrator.sweep, max_ticks=max_ticks)


def build_parser() -> argparse.ArgumentParser:
    """Command-line flags; each overrides the matching environment variable."""
    parser = argparse.ArgumentParser(
        prog="pool-reaper",
        description="Reset pool resources stuck in busy states past an expiry.",
    )
    parser.add_argument("--pool-url", dest="pool_url", help="Pool service URL")
    parser.add_argument("--username", help="Username used to access the pool service")
    parser.add_argument(
        "--password-file",
        dest="password_file",
        help="Path to the password file used to access the pool service",
    )
    parser.add_argument(
        "--resource-type",
        dest="resource_types",
        action="append",
        help="Comma-separated list of resource types to reset (repeatable)",
    )
    parser.add_argument(
        "--expire",
        dest="expiry",
        help="Time after which busy resources are reset, e.g. 30m",
    )
    parser.add_argument(
        "--target-state",
        dest="target_state",
        help="State to move resources to when reaped",
    )
    parser.add_argument("--interval", help="Time between sweeps, e.g. 1m")
    parser.add_argument(
        "--request-timeout",
        dest="request_timeout",
        type=float,
        help="Per-request timeout in seconds",
    )
    parser.add_argument("--log-level", dest="log_level", help="Log level")
    parser.add_argument(
        "--once", action="store_true", help="Run a single sweep and exit"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_config(argv: Optional[Sequence[str]] = None) -> tuple[ReaperConfig, bool]:
    """Build validated configuration from environment and flags.

    Returns:
        The configuration and whether a single sweep was requested.

    Raises:
        ConfigurationError: If the configuration is invalid.
    """
    args = build_parser().parse_args(argv)
    overrides = {k: v for k, v in vars(args).items() if k != "once"}
    config = ReaperConfig.from_environment(validate=False).with_overrides(**overrides)
    configure_logging(config)
    config.raise_for_errors()
    return config, args.once


def _install_signal_handlers(stop_event: threading.Event) -> None:
    def _stop(signum: int, frame: Any) -> None:
        logger.info(f"Received signal {signum}, stopping after the current sweep")
        stop_event.set()

    signal.signal(signal.SIGTERM, _stop)
    signal.signal(signal.SIGINT, _stop)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Process entry point. Returns the exit status."""
    try:
        config, once = load_config(argv)
        client = build_client(config)
    except ConfigurationError as e:
        if not logging.getLogger().handlers:
            configure_logging()
        logger.critical(f"Fatal configuration error: {LogSanitizer.sanitize(e.message)}")
        return 1

    try:
        if once:
            logger.info(f"Sweep summary: {run_once(config, client)}")
        else:
            stop_event = threading.Event()
            _install_signal_handlers(stop_event)
            run_forever(config, client, stop_event=stop_event)
    finally:
        client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
