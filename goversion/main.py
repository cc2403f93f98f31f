#!/usr/bin/env python3
"""
Main entry point for the Go Release Watcher.

Two modes:
- serve (default): run the HTTP handler for Cloud Run / Cloud Scheduler
- once: run a single release check and exit, for cron

Usage:
    python -m goversion.main [serve|once]
"""

import sys
from typing import List, Optional

from goversion.app import create_app
from goversion.config import WatcherConfig
from goversion.utils import WatcherError, get_logger, setup_logging
from goversion.watcher import build_watcher


# Exit codes
EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_ENV_ERROR = 2


def run_once(config: WatcherConfig) -> int:
    """
    Run one release check.

    Args:
        config: Watcher configuration.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    logger = get_logger("main")

    try:
        outcome = build_watcher(config).check()
    except WatcherError as e:
        logger.error(f"Release check failed: {e}")
        return EXIT_FAILURE

    logger.info(f"Release check finished: {outcome.value}")
    return EXIT_SUCCESS


def serve(config: WatcherConfig) -> int:
    """Serve the release check over HTTP until interrupted."""
    logger = get_logger("main")
    logger.info(f"Listening on port {config.port}")

    app = create_app(config)
    app.run(host="0.0.0.0", port=config.port)
    return EXIT_SUCCESS


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the Go Release Watcher.

    Sets up logging, loads configuration and dispatches to the chosen mode.

    Returns:
        Exit code for the process.
    """
    args = sys.argv[1:] if argv is None else argv
    mode = args[0] if args else "serve"

    try:
        config = WatcherConfig.from_env()
    except ValueError as e:
        setup_logging("INFO")
        get_logger("main").error(f"Configuration error: {e}")
        return EXIT_ENV_ERROR

    setup_logging(config.log_level)
    logger = get_logger("main")

    if config.dry_run:
        logger.info("Running in DRY RUN mode - notifications will be skipped")

    try:
        if mode == "once":
            return run_once(config)
        if mode == "serve":
            return serve(config)

        logger.error(f"Unknown mode '{mode}', expected 'serve' or 'once'")
        return EXIT_ENV_ERROR

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return EXIT_FAILURE

    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
