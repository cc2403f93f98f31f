"""
Orchestration for one release check.

The check runs these stages in order:
fetch -> extract -> check store -> notify -> persist

A record for the extracted version means nothing changed. Otherwise the
release message is posted and the record replaced. Any failure raises a
WatcherError; a failed post leaves the store untouched, so the next run
tries again.
"""

from enum import Enum
from typing import Optional

import requests
from google.cloud import firestore

from goversion.config import WatcherConfig
from goversion.fetch import create_session, fetch_listing_lines
from goversion.message import format_release_message
from goversion.notify import WebhookNotifier
from goversion.parse import VersionExtractor, get_extractor
from goversion.store import FirestoreVersionStore, VersionRecord, create_firestore_store
from goversion.utils import get_logger


# Module logger
logger = get_logger("watcher")


class CheckOutcome(Enum):
    """Result of a successful check."""
    UNCHANGED = "unchanged"
    NOTIFIED = "notified"
    DRY_RUN = "dry_run"


class ReleaseWatcher:
    """Checks the listing page and announces releases not seen before."""

    def __init__(
        self,
        config: WatcherConfig,
        store: Optional[FirestoreVersionStore],
        notifier: WebhookNotifier,
        extractor: Optional[VersionExtractor] = None,
        session: Optional[requests.Session] = None
    ):
        if store is None and not config.dry_run:
            raise ValueError("A version store is required outside dry runs")

        self.config = config
        self.store = store
        self.notifier = notifier
        self.extractor = extractor or get_extractor(config.extractor)
        self.session = session or create_session()

    def latest_version(self) -> str:
        """
        Fetch the listing page and extract the latest version.

        Raises:
            FetchError: If the page cannot be fetched.
            ExtractionNotFoundError: If no entry matches.
        """
        lines = fetch_listing_lines(self.config.listing_url, self.session, self.config.timeout)
        return self.extractor.extract(lines)

    def check(self) -> CheckOutcome:
        """
        Run one full release check.

        Returns:
            CheckOutcome describing what happened.

        Raises:
            WatcherError: If any stage fails.
        """
        version = self.latest_version()

        if self.store is None:
            logger.info(f"[DRY RUN] No store configured, treating {version} as new")
            text = format_release_message(version, self.config.listing_url)
            logger.info(f"[DRY RUN] Would post: {text}")
            return CheckOutcome.DRY_RUN

        def _check_and_record(transaction: firestore.Transaction) -> CheckOutcome:
            if self.store.get(version, transaction=transaction) is not None:
                logger.info(f"Current status matches latest: {version}")
                return CheckOutcome.UNCHANGED

            logger.info(f"New version! {version}")
            text = format_release_message(version, self.config.listing_url)

            if self.config.dry_run:
                logger.info(f"[DRY RUN] Would post: {text}")
                return CheckOutcome.DRY_RUN

            self.notifier.send(text)
            self.store.replace(VersionRecord.today(version), transaction=transaction)
            return CheckOutcome.NOTIFIED

        return self.store.run_in_transaction(_check_and_record)


def build_watcher(config: WatcherConfig) -> ReleaseWatcher:
    """
    Wire a watcher to Firestore and the configured webhook.

    A dry run without a project gets no store, so no Firestore client or
    credentials are needed.
    """
    store = None
    if config.project_id or not config.dry_run:
        store = create_firestore_store(config.project_id, collection=config.collection)

    notifier = WebhookNotifier(config.webhook_url, timeout=config.timeout)
    return ReleaseWatcher(config, store, notifier)
