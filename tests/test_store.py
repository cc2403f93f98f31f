"""
Tests for the store module.

Tests cover:
- Version record serialisation
- Reading a record (found, missing, errors)
- Replacing the current record
- Single-attempt transactions
"""

from unittest.mock import MagicMock, Mock, patch

import pytest
from google.api_core import exceptions as google_exceptions
from google.cloud.firestore_v1.transaction import Transaction

from goversion.store import (
    FirestoreVersionStore,
    StoreReadError,
    StoreWriteError,
    VersionRecord,
    create_firestore_store,
)


def make_doc_ref(doc_id, collection="goversion"):
    """Mock DocumentReference with id and path."""
    ref = Mock()
    ref.id = doc_id
    ref.path = f"{collection}/{doc_id}"
    return ref


def make_snapshot(doc_id, collection="goversion"):
    """Mock DocumentSnapshot pointing at its reference."""
    snapshot = Mock()
    snapshot.reference = make_doc_ref(doc_id, collection)
    return snapshot


@pytest.fixture
def client():
    """Mock Firestore client."""
    return MagicMock()


@pytest.fixture
def store(client):
    return FirestoreVersionStore(client, collection="goversion")


class TestVersionRecord:
    """Tests for the version record."""

    def test_to_dict(self):
        record = VersionRecord(version="go1.19.4", date="2022-12-06")

        assert record.to_dict() == {"version": "go1.19.4", "date": "2022-12-06"}

    def test_from_dict(self):
        record = VersionRecord.from_dict({"version": "go1.19.4", "date": "2022-12-06"})

        assert record == VersionRecord(version="go1.19.4", date="2022-12-06")

    def test_today_date_format(self):
        """Test records are dated YYYY-MM-DD."""
        record = VersionRecord.today("go1.19.4")

        assert record.version == "go1.19.4"
        assert len(record.date) == 10
        assert record.date[4] == "-" and record.date[7] == "-"


class TestGet:
    """Tests for reading a version record."""

    def test_key(self, store):
        assert store.key("go1.19.4") == "goversion/go1.19.4"

    def test_found(self, store, client):
        """Test an existing document is returned as a record."""
        snapshot = Mock(exists=True)
        snapshot.to_dict.return_value = {"version": "go1.19.4", "date": "2022-12-06"}
        client.document.return_value.get.return_value = snapshot

        record = store.get("go1.19.4")

        assert record == VersionRecord(version="go1.19.4", date="2022-12-06")
        client.document.assert_called_once_with("goversion/go1.19.4")

    def test_missing_document(self, store, client):
        """Test a snapshot that does not exist means no record."""
        client.document.return_value.get.return_value = Mock(exists=False)

        assert store.get("go1.19.4") is None

    def test_not_found_error(self, store, client):
        """Test a NotFound error means no record."""
        client.document.return_value.get.side_effect = google_exceptions.NotFound("missing")

        assert store.get("go1.19.4") is None

    def test_other_error_raises(self, store, client):
        """Test other API errors raise StoreReadError."""
        client.document.return_value.get.side_effect = google_exceptions.ServiceUnavailable("down")

        with pytest.raises(StoreReadError, match="unable to fetch firestore document"):
            store.get("go1.19.4")

    def test_reads_in_transaction(self, store, client):
        """Test the transaction is passed to the read."""
        client.document.return_value.get.return_value = Mock(exists=False)
        transaction = Mock()

        store.get("go1.19.4", transaction=transaction)

        client.document.return_value.get.assert_called_once_with(transaction=transaction)


class TestReplace:
    """Tests for replacing the current record."""

    def test_deletes_old_and_creates_new(self, store, client):
        """Test every other document is deleted before the new one is created."""
        old = make_snapshot("go1.19.3")
        client.collection.return_value.stream.return_value = [old]
        new_ref = make_doc_ref("go1.19.4")
        client.document.return_value = new_ref

        store.replace(VersionRecord(version="go1.19.4", date="2022-12-06"))

        old.reference.delete.assert_called_once_with()
        new_ref.create.assert_called_once_with({"version": "go1.19.4", "date": "2022-12-06"})
        client.collection.assert_called_with("goversion")

    def test_empty_collection(self, store, client):
        """Test the first record is written without deletes."""
        client.collection.return_value.stream.return_value = []
        new_ref = make_doc_ref("go1.19.4")
        client.document.return_value = new_ref

        store.replace(VersionRecord(version="go1.19.4", date="2022-12-06"))

        new_ref.create.assert_called_once()

    def test_writes_through_transaction(self, store, client):
        """Test deletes and create are buffered on the transaction."""
        old_a = make_snapshot("go1.19.2")
        old_b = make_snapshot("go1.19.3")
        client.collection.return_value.stream.return_value = [old_a, old_b]
        new_ref = make_doc_ref("go1.19.4")
        client.document.return_value = new_ref
        transaction = Mock()

        store.replace(VersionRecord(version="go1.19.4", date="2022-12-06"), transaction=transaction)

        client.collection.return_value.stream.assert_called_once_with(transaction=transaction)
        assert transaction.delete.call_count == 2
        transaction.create.assert_called_once_with(new_ref, {"version": "go1.19.4", "date": "2022-12-06"})
        new_ref.create.assert_not_called()
        old_a.reference.delete.assert_not_called()

    def test_list_failure_raises(self, store, client):
        """Test a failure listing old records raises StoreWriteError."""
        client.collection.return_value.stream.side_effect = google_exceptions.InternalServerError("boom")

        with pytest.raises(StoreWriteError, match="unable to get old versions"):
            store.replace(VersionRecord(version="go1.19.4", date="2022-12-06"))

    def test_delete_failure_raises(self, store, client):
        """Test a failed delete raises StoreWriteError and skips the create."""
        old = make_snapshot("go1.19.3")
        old.reference.delete.side_effect = google_exceptions.PermissionDenied("denied")
        client.collection.return_value.stream.return_value = [old]
        new_ref = make_doc_ref("go1.19.4")
        client.document.return_value = new_ref

        with pytest.raises(StoreWriteError, match="unable to delete old version"):
            store.replace(VersionRecord(version="go1.19.4", date="2022-12-06"))

        new_ref.create.assert_not_called()

    def test_create_failure_raises(self, store, client):
        """Test a failed create raises StoreWriteError."""
        client.collection.return_value.stream.return_value = []
        new_ref = make_doc_ref("go1.19.4")
        new_ref.create.side_effect = google_exceptions.AlreadyExists("exists")
        client.document.return_value = new_ref

        with pytest.raises(StoreWriteError, match="unable to write new version"):
            store.replace(VersionRecord(version="go1.19.4", date="2022-12-06"))


class TestRunInTransaction:
    """Tests for transaction handling."""

    @patch("goversion.store.firestore.transactional", side_effect=lambda fn: fn)
    def test_single_attempt(self, mock_transactional, store, client):
        """Test the transaction is created with one attempt and fn gets it."""
        result = store.run_in_transaction(lambda tx: ("ran", tx))

        client.transaction.assert_called_once_with(max_attempts=1)
        assert result == ("ran", client.transaction.return_value)

    def test_aborted_commit_raises(self, store, client):
        """Test a contended commit becomes StoreWriteError."""
        client.transaction.return_value = Transaction(client, max_attempts=1)
        client._firestore_api.commit.side_effect = google_exceptions.Aborted("contention")

        with pytest.raises(StoreWriteError, match="firestore transaction failed"):
            store.run_in_transaction(lambda tx: "body ran")

    def test_commit_api_error_raises(self, store, client):
        """Test a rejected commit becomes StoreWriteError."""
        client.transaction.return_value = Transaction(client, max_attempts=1)
        client._firestore_api.commit.side_effect = google_exceptions.PermissionDenied("denied")

        with pytest.raises(StoreWriteError, match="firestore transaction failed"):
            store.run_in_transaction(lambda tx: "body ran")

    def test_body_runs_once_on_abort(self, store, client):
        """Test the body is not re-run after an aborted commit."""
        client.transaction.return_value = Transaction(client, max_attempts=1)
        client._firestore_api.commit.side_effect = google_exceptions.Aborted("contention")
        body = Mock(return_value="posted")

        with pytest.raises(StoreWriteError):
            store.run_in_transaction(body)

        body.assert_called_once()

    def test_watcher_errors_propagate(self, store, client):
        """Test errors raised by fn are not rewrapped."""
        client.transaction.return_value = Transaction(client, max_attempts=1)

        def fail(tx):
            raise StoreReadError("read failed")

        with pytest.raises(StoreReadError):
            store.run_in_transaction(fail)


class TestCreateFirestoreStore:
    """Tests for the store factory."""

    @patch("goversion.store.firestore.Client")
    def test_builds_client_for_project(self, mock_client_class):
        store = create_firestore_store("my-project", collection="versions")

        mock_client_class.assert_called_once_with(project="my-project")
        assert store.collection == "versions"
        assert store.client is mock_client_class.return_value
