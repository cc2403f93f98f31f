"""
Store module for the Go Release Watcher.

Persists the last notified release in a Firestore collection. Each record is
keyed by its version string (<collection>/<version>) and only one record is
kept: writing a new version deletes every other document in the collection.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, TypeVar

from google.api_core import exceptions as google_exceptions
from google.cloud import firestore

from goversion.config import DEFAULT_COLLECTION
from goversion.utils import WatcherError, get_logger


# Module logger
logger = get_logger("store")

T = TypeVar("T")


class StoreReadError(WatcherError):
    """Raised when the version record cannot be read."""


class StoreWriteError(WatcherError):
    """Raised when old records cannot be deleted or the new one written."""


@dataclass
class VersionRecord:
    """
    The last release the watcher notified about.

    Attributes:
        version: Release identifier, also the document id.
        date: Day the release was recorded, as YYYY-MM-DD.
    """
    version: str
    date: str

    @classmethod
    def today(cls, version: str) -> "VersionRecord":
        """Create a record dated today (UTC)."""
        return cls(version=version, date=datetime.now(timezone.utc).strftime("%Y-%m-%d"))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VersionRecord":
        return cls(version=str(data.get("version", "")), date=str(data.get("date", "")))

    def to_dict(self) -> Dict[str, str]:
        return {"version": self.version, "date": self.date}


class FirestoreVersionStore:
    """Version records in a single Firestore collection."""

    def __init__(self, client: firestore.Client, collection: str = DEFAULT_COLLECTION):
        self.client = client
        self.collection = collection

    def key(self, version: str) -> str:
        """Document path for a version."""
        return f"{self.collection}/{version}"

    def get(
        self,
        version: str,
        transaction: Optional[firestore.Transaction] = None
    ) -> Optional[VersionRecord]:
        """
        Look up the record for a version.

        Args:
            version: Release identifier.
            transaction: Optional transaction to read in.

        Returns:
            The stored VersionRecord, or None if no record exists.

        Raises:
            StoreReadError: On any error other than "not found".
        """
        key = self.key(version)
        try:
            snapshot = self.client.document(key).get(transaction=transaction)
        except google_exceptions.NotFound:
            logger.debug(f"No record at {key}")
            return None
        except google_exceptions.GoogleAPICallError as e:
            raise StoreReadError(f"unable to fetch firestore document {key}: {e}") from e

        if not snapshot.exists:
            logger.debug(f"No record at {key}")
            return None

        return VersionRecord.from_dict(snapshot.to_dict() or {})

    def replace(
        self,
        record: VersionRecord,
        transaction: Optional[firestore.Transaction] = None
    ) -> None:
        """
        Make record the only document in the collection.

        Every other document is deleted first, then the new one is created.
        Inside a transaction the writes are applied on commit.

        Raises:
            StoreWriteError: If listing, deleting or creating fails.
        """
        new_ref = self.client.document(self.key(record.version))

        try:
            old_refs = [
                snapshot.reference
                for snapshot in self.client.collection(self.collection).stream(transaction=transaction)
            ]
        except google_exceptions.GoogleAPICallError as e:
            raise StoreWriteError(f"unable to get old versions from firestore: {e}") from e

        for ref in old_refs:
            if ref.id == record.version:
                continue
            try:
                if transaction is not None:
                    transaction.delete(ref)
                else:
                    ref.delete()
            except google_exceptions.GoogleAPICallError as e:
                raise StoreWriteError(f"unable to delete old version {ref.path!r} from firestore: {e}") from e
            logger.info(f"Deleted old version record {ref.path}")

        try:
            if transaction is not None:
                transaction.create(new_ref, record.to_dict())
            else:
                new_ref.create(record.to_dict())
        except google_exceptions.GoogleAPICallError as e:
            raise StoreWriteError(f"unable to write new version to firestore: {e}") from e

        logger.info(f"Recorded version {record.version} ({record.date})")

    def run_in_transaction(self, fn: Callable[[firestore.Transaction], T]) -> T:
        """
        Run fn inside a single-attempt Firestore transaction.

        The client library would otherwise re-run fn on contention, posting
        the webhook again.

        Raises:
            StoreWriteError: If the commit fails. An aborted commit surfaces
                from the client library as ValueError once the single
                attempt is used up.
        """
        transaction = self.client.transaction(max_attempts=1)

        @firestore.transactional
        def _run(tx: firestore.Transaction) -> T:
            return fn(tx)

        try:
            return _run(transaction)
        except (google_exceptions.GoogleAPICallError, ValueError) as e:
            raise StoreWriteError(f"firestore transaction failed: {e}") from e


def create_firestore_store(
    project_id: Optional[str],
    collection: str = DEFAULT_COLLECTION
) -> FirestoreVersionStore:
    """Create a store backed by a new Firestore client."""
    logger.debug(f"Creating firestore client for project {project_id}")
    return FirestoreVersionStore(firestore.Client(project=project_id), collection=collection)
