"""
HTTP surface for the Go Release Watcher.

Any request to "/" runs one release check. The response is 200 when the
check succeeds and a generic 500 otherwise; details only go to the log.
"""

import time
from typing import Optional

from flask import Flask, g, request

from goversion.config import WatcherConfig
from goversion.utils import WatcherError, get_logger
from goversion.watcher import ReleaseWatcher, build_watcher


# Module logger
logger = get_logger("app")

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


def create_app(config: WatcherConfig, watcher: Optional[ReleaseWatcher] = None) -> Flask:
    """
    Create the Flask app.

    Args:
        config: Watcher configuration.
        watcher: Optional pre-built watcher, built from config otherwise.

    Returns:
        Configured Flask application.
    """
    if watcher is None:
        watcher = build_watcher(config)

    app = Flask(__name__)

    @app.before_request
    def _start_timer():
        g.start_time = time.monotonic()

    @app.after_request
    def _log_request(response):
        elapsed_ms = (time.monotonic() - g.get("start_time", time.monotonic())) * 1000
        logger.info(f"{request.method} {request.path} {response.status_code} {elapsed_ms:.1f}ms")
        return response

    @app.route("/healthz", methods=["GET"])
    def healthz():
        return "ok", 200

    @app.route("/", methods=ALL_METHODS)
    def check_release():
        try:
            outcome = watcher.check()
        except WatcherError as e:
            logger.error(str(e))
            return "Internal Server Error", 500
        except Exception as e:
            logger.exception(f"Unexpected error during release check: {e}")
            return "Internal Server Error", 500

        logger.info(f"Release check finished: {outcome.value}")
        return "OK", 200

    return app
