# app/services/firestore_service.py
import logging
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from firebase_admin import firestore
from google.api_core import exceptions as gcp_exceptions

from app.core.exceptions import BatchLimitExceeded, DocumentNotFound
from app.utils.datetime_utils import DateTimeUtils

# (field, operator, value) triples, e.g. ('isActive', '==', True)
WhereClause = Sequence[Tuple[str, str, Any]]


class FirestoreStore:
    """
    Thin document-store wrapper used by every event handler.

    Paths are slash-separated document/collection paths relative to the
    database root ('posts/abc', 'users/u1/feed'). Counters are only ever
    changed through server-side increments; nothing here does a
    read-modify-write on a counter.
    """
    MAX_BATCH_SIZE = 500
    SERVER_TIMESTAMP = firestore.SERVER_TIMESTAMP

    def __init__(self, client=None, dedup_collection: Optional[str] = None, dedup_ttl_days: int = 7):
        """
        :param client: Firestore client (defaults to the default app's client)
        :param dedup_collection: collection for processed-event markers; None disables dedup
        :param dedup_ttl_days: lifetime stamped on markers as `expireAt`
        """
        self.db = client or firestore.client()
        self.dedup_collection = dedup_collection
        self.dedup_ttl_days = dedup_ttl_days

    def get(self, path: str) -> Optional[Dict[str, Any]]:
        snapshot = self.db.document(path).get()
        if not snapshot.exists:
            return None
        return snapshot.to_dict() or {}

    def set(self, path: str, data: Dict[str, Any]) -> None:
        self.db.document(path).set(data)

    def create(self, path: str, data: Dict[str, Any]) -> bool:
        """Creates the document; returns False when it already exists."""
        try:
            self.db.document(path).create(data)
            return True
        except gcp_exceptions.Conflict:
            return False

    def update(self, path: str, fields: Dict[str, Any]) -> None:
        try:
            self.db.document(path).update(fields)
        except gcp_exceptions.NotFound:
            raise DocumentNotFound(path)

    def increment(self, path: str, field: str, delta: int = 1, event_id: Optional[str] = None) -> bool:
        """
        Atomically adds `delta` to `field` on an existing document.

        With dedup enabled and an event id, a marker document keyed by the
        event id is created in the same batch. Redelivery of the same event
        fails the marker create, so nothing is applied twice.

        :return: True if the increment was applied, False for a duplicate event
        :raises DocumentNotFound: the target document does not exist
        """
        doc_ref = self.db.document(path)
        change = {field: firestore.Increment(delta)}

        if not (event_id and self.dedup_collection):
            try:
                doc_ref.update(change)
            except gcp_exceptions.NotFound:
                raise DocumentNotFound(path)
            return True

        batch = self.db.batch()
        batch.create(self._marker_ref(event_id), {
            'path': path,
            'field': field,
            'delta': delta,
            'processedAt': self.SERVER_TIMESTAMP,
            'expireAt': DateTimeUtils.days_from_now(self.dedup_ttl_days)
        })
        batch.update(doc_ref, change)
        try:
            batch.commit()
        except gcp_exceptions.NotFound:
            raise DocumentNotFound(path)
        except gcp_exceptions.Conflict:
            logging.warning(f"Duplicate event {event_id}: {field} on {path} already applied")
            return False
        return True

    def batch_write(self, writes: List[Tuple[str, Dict[str, Any]]]) -> None:
        """Commits full-document sets as one atomic batch (at most MAX_BATCH_SIZE)."""
        if len(writes) > self.MAX_BATCH_SIZE:
            raise BatchLimitExceeded(len(writes), self.MAX_BATCH_SIZE)
        if not writes:
            return
        batch = self.db.batch()
        for path, data in writes:
            batch.set(self.db.document(path), data)
        batch.commit()

    def list_ids(self, collection: str) -> List[str]:
        return [snapshot.id for snapshot in self.db.collection(collection).stream()]

    def stream(self, collection: str, where: Optional[WhereClause] = None) -> Iterator[Tuple[str, Dict[str, Any]]]:
        for snapshot in self._query(collection, where).stream():
            yield snapshot.id, snapshot.to_dict() or {}

    def count(self, collection: str, where: Optional[WhereClause] = None) -> int:
        """Server-side count aggregation; no documents are transferred."""
        result = self._query(collection, where).count().get()
        return int(result[0][0].value)

    def new_id(self, collection: str) -> str:
        return self.db.collection(collection).document().id

    def _query(self, collection: str, where: Optional[WhereClause]):
        query = self.db.collection(collection)
        for field, op, value in where or ():
            query = query.where(filter=firestore.FieldFilter(field, op, value))
        return query

    def _marker_ref(self, event_id: str):
        # Document ids cannot contain '/'.
        return self.db.collection(self.dedup_collection).document(event_id.replace('/', '_'))
