"""Command-line entry point: drain the retry queue once or on a schedule."""

import argparse
import signal
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional, Tuple

from dotenv import load_dotenv

from intake.config.environment import EnvironmentConfig
from intake.config.exceptions import ConfigurationError
from intake.config.loader import load_config, validate_config_file
from intake.config.models import AppConfig
from intake.logging import get_logger
from intake.logging.config import configure_logging
from intake.notifications.drainer import RetryDrainer
from intake.notifications.factory import build_transport
from intake.persistence.database import close_database, init_database
from intake.persistence.exceptions import PersistenceError
from intake.scheduler import SchedulerService

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and settle the effective log level.

    Log level priority: CLI flag, then LOG_LEVEL, then the config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level

    return app_config, env_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Record intake service - retry queue drainer for undelivered notifications"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml, then built-in defaults)",
    )
    parser.add_argument(
        "--drain-once",
        action="store_true",
        help="Drain the retry queue once and exit (exit code 1 if entries failed)",
    )
    parser.add_argument(
        "--validate-config",
        action="store_true",
        help="Validate the configuration file and exit",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the service.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    start_time = time.time()
    args = build_parser().parse_args(argv)
    load_dotenv()

    if args.validate_config:
        config_path = args.config or Path("config.yaml")
        return 0 if validate_config_file(config_path) else 1

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )

        logger.info(
            "Record intake service starting",
            extra={
                "event": "service.starting",
                "config_path": str(args.config) if args.config else None,
                "log_level": env_config.log_level,
                "drain_once": args.drain_once,
                "mail_transport": env_config.resolved_transport(),
            },
        )

        init_database(env_config.database_url)

        drainer = RetryDrainer(
            transport=build_transport(env_config, app_config.delivery),
            delivery_config=app_config.delivery,
            retry_config=app_config.retry_queue,
        )

        if args.drain_once:
            result = drainer.drain_once()
            close_database()

            logger.info(
                "Record intake service stopped",
                extra={
                    "event": "service.stopping",
                    "uptime_seconds": round(time.time() - start_time, 2),
                },
            )
            return 1 if result.has_failures else 0

        shutdown_event = threading.Event()
        scheduler_service = SchedulerService(
            drain_callable=drainer.drain_once,
            interval_seconds=app_config.retry_queue.drain_interval_seconds,
            shutdown_event=shutdown_event,
        )

        def signal_handler(signum, frame):
            logger.info(
                f"Received signal {signum}, shutting down",
                extra={"event": "service.signal_received", "signal": signum},
            )
            scheduler_service.shutdown(wait=False)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        scheduler_service.start()
        logger.info(
            "Scheduler started. Press Ctrl+C to stop",
            extra={"event": "service.daemon_mode.started"},
        )

        try:
            shutdown_event.wait()
        except KeyboardInterrupt:
            logger.info(
                "Keyboard interrupt received, shutting down",
                extra={"event": "service.keyboard_interrupt"},
            )
            scheduler_service.shutdown(wait=False)

        close_database()
        logger.info(
            "Record intake service stopped",
            extra={
                "event": "service.stopping",
                "uptime_seconds": round(time.time() - start_time, 2),
            },
        )
        return 0

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e.message}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except PersistenceError as e:
        print(f"Database Error: {e}", file=sys.stderr)
        logger.critical(
            "Database unavailable",
            exc_info=True,
            extra={"event": "service.database.failed", "error_type": type(e).__name__},
        )
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0


if __name__ == "__main__":
    sys.exit(main())
