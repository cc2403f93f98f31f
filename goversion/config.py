"""
Configuration for the Go Release Watcher.

All settings are read from the environment once, at process start, into a
WatcherConfig that is passed explicitly to the watcher and the HTTP app.
"""

from dataclasses import dataclass
from typing import Optional

from goversion.utils import get_bool_env, get_env_var, get_logger


# Module logger
logger = get_logger("config")

# Defaults
DEFAULT_PORT = 8080
DEFAULT_LISTING_URL = "https://go.dev/dl/"
DEFAULT_COLLECTION = "goversion"
DEFAULT_EXTRACTOR = "markers"
DEFAULT_TIMEOUT = 30  # seconds


@dataclass
class WatcherConfig:
    """
    Settings for one watcher process.

    Attributes:
        webhook_url: Chat webhook that receives the release message.
        project_id: Google Cloud project holding the Firestore database.
        port: Port the HTTP server listens on.
        listing_url: Go download listing page.
        collection: Firestore collection holding the version record.
        extractor: Name of the version extraction strategy.
        timeout: Timeout in seconds for outbound HTTP calls.
        log_level: Logging level name.
        dry_run: If True, log the message instead of posting and recording it.
    """
    webhook_url: str
    project_id: Optional[str] = None
    port: int = DEFAULT_PORT
    listing_url: str = DEFAULT_LISTING_URL
    collection: str = DEFAULT_COLLECTION
    extractor: str = DEFAULT_EXTRACTOR
    timeout: int = DEFAULT_TIMEOUT
    log_level: str = "INFO"
    dry_run: bool = False

    @classmethod
    def from_env(cls) -> "WatcherConfig":
        """
        Build the configuration from environment variables.

        WEBHOOK_URL falls back to SLACK_URL and GOOGLE_CLOUD_PROJECT falls
        back to GCP_PROJECT. The project is only required outside dry runs;
        a dry run without one skips Firestore and treats every version as new.

        Raises:
            ValueError: If a required variable is missing or malformed.
        """
        dry_run = get_bool_env("DRY_RUN")

        webhook_url = get_env_var("WEBHOOK_URL", required=False) or get_env_var("SLACK_URL", required=False)
        if not webhook_url:
            raise ValueError("Required environment variable 'WEBHOOK_URL' (or 'SLACK_URL') is not set")

        project_id = (
            get_env_var("GOOGLE_CLOUD_PROJECT", required=False)
            or get_env_var("GCP_PROJECT", required=not dry_run)
        )

        config = cls(
            webhook_url=webhook_url,
            project_id=project_id,
            port=_get_int_env("PORT", DEFAULT_PORT),
            listing_url=get_env_var("GO_DL_URL", required=False, default=DEFAULT_LISTING_URL),
            collection=get_env_var("VERSION_COLLECTION", required=False, default=DEFAULT_COLLECTION),
            extractor=get_env_var("EXTRACTOR", required=False, default=DEFAULT_EXTRACTOR).lower(),
            timeout=_get_int_env("HTTP_TIMEOUT", DEFAULT_TIMEOUT),
            log_level=get_env_var("LOG_LEVEL", required=False, default="INFO").upper(),
            dry_run=dry_run,
        )
        # webhook_url is a secret, keep it out of the logs
        logger.debug(
            f"Loaded configuration: listing={config.listing_url} "
            f"collection={config.collection} extractor={config.extractor} dry_run={config.dry_run}"
        )
        return config


def _get_int_env(name: str, default: int) -> int:
    value = get_env_var(name, required=False)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable '{name}' must be an integer, got {value!r}")
