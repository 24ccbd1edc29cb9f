# app/conftest.py
"""
Shared pytest fixtures.

MemoryStore implements the FirestoreStore interface over a dict so the
handlers can be exercised without a Firestore emulator. It records every
batch commit and can be told to fail specific operations.
"""

import copy
import threading
import uuid

import pytest

from app import create_app
from app.core.exceptions import BatchLimitExceeded, DocumentNotFound
from app.models.event import DocumentEvent
from app.utils.datetime_utils import DateTimeUtils


class _ServerTimestamp:
    def __repr__(self):
        return 'SERVER_TIMESTAMP'


class MemoryStore:
    MAX_BATCH_SIZE = 500
    SERVER_TIMESTAMP = _ServerTimestamp()

    def __init__(self, dedup: bool = True):
        self.docs = {}
        self.markers = set()
        self.dedup = dedup
        self.batches = []
        self._failures = {}
        self._calls = {}
        self._lock = threading.Lock()

    # --- test helpers ---
    def seed(self, path, data):
        self.docs[path] = copy.deepcopy(data)

    def fail(self, operation, error, after=0):
        """Raise `error` from `operation` once it has been called `after` times."""
        self._failures[operation] = (error, after)

    def clear_failures(self):
        self._failures.clear()

    def ids(self, collection):
        return sorted(path.rsplit('/', 1)[1] for path in self.docs if path.rsplit('/', 1)[0] == collection)

    def _maybe_fail(self, operation):
        with self._lock:
            calls = self._calls.get(operation, 0)
            self._calls[operation] = calls + 1
        if operation in self._failures:
            error, after = self._failures[operation]
            if calls >= after:
                raise error

    def _resolve(self, data):
        return {k: (DateTimeUtils.now() if v is self.SERVER_TIMESTAMP else copy.deepcopy(v))
                for k, v in data.items()}

    # --- store interface ---
    def get(self, path):
        self._maybe_fail('get')
        data = self.docs.get(path)
        return copy.deepcopy(data) if data is not None else None

    def set(self, path, data):
        self._maybe_fail('set')
        self.docs[path] = self._resolve(data)

    def create(self, path, data):
        self._maybe_fail('create')
        with self._lock:
            if path in self.docs:
                return False
            self.docs[path] = self._resolve(data)
        return True

    def update(self, path, fields):
        self._maybe_fail('update')
        if path not in self.docs:
            raise DocumentNotFound(path)
        self.docs[path].update(self._resolve(fields))

    def increment(self, path, field, delta=1, event_id=None):
        self._maybe_fail('increment')
        with self._lock:
            if path not in self.docs:
                raise DocumentNotFound(path)
            if self.dedup and event_id:
                if event_id in self.markers:
                    return False
                self.markers.add(event_id)
            self.docs[path][field] = self.docs[path].get(field, 0) + delta
        return True

    def batch_write(self, writes):
        if len(writes) > self.MAX_BATCH_SIZE:
            raise BatchLimitExceeded(len(writes), self.MAX_BATCH_SIZE)
        self._maybe_fail('batch_write')
        with self._lock:
            for path, data in writes:
                self.docs[path] = self._resolve(data)
            self.batches.append([path for path, _ in writes])

    def list_ids(self, collection):
        self._maybe_fail('list_ids')
        return [path.rsplit('/', 1)[1] for path in list(self.docs) if path.rsplit('/', 1)[0] == collection]

    def stream(self, collection, where=None):
        for doc_id in self.list_ids(collection):
            data = self.docs[f"{collection}/{doc_id}"]
            if all(self._matches(data, clause) for clause in where or ()):
                yield doc_id, copy.deepcopy(data)

    def count(self, collection, where=None):
        return sum(1 for _ in self.stream(collection, where))

    def new_id(self, collection):
        return uuid.uuid4().hex[:20]

    @staticmethod
    def _matches(data, clause):
        field, op, value = clause
        if op == '==':
            return data.get(field) == value
        if op == 'in':
            return data.get(field) in value
        raise NotImplementedError(op)


class RecordingSender:
    """Stands in for firebase_admin.messaging.send."""

    def __init__(self):
        self.messages = []
        self.error = None

    def __call__(self, message):
        if self.error is not None:
            raise self.error
        self.messages.append(message)
        return f"projects/kissangram/messages/{len(self.messages)}"


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def push_sender():
    return RecordingSender()


@pytest.fixture
def app(store, push_sender):
    return create_app('testing', store=store, push_sender=push_sender)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return app.services


@pytest.fixture
def fire(services):
    """Dispatches a DocumentEvent through the trigger table, like the /events route does."""
    def _fire(event_type, document, before=None, after=None, event_id=None):
        event = DocumentEvent(
            event_id=event_id or uuid.uuid4().hex,
            event_type=event_type,
            document=document,
            before=before,
            after=after
        )
        assert services['events'].dispatch(event), f"no trigger for {event_type} {document}"
        return event
    return _fire


@pytest.fixture
def seed_user(store):
    def _seed_user(user_id, **fields):
        data = {'id': user_id, 'name': user_id.title(), 'username': user_id, 'postsCount': 0}
        data.update(fields)
        store.seed(f"users/{user_id}", data)
        return data
    return _seed_user


@pytest.fixture
def seed_post(store):
    def _seed_post(post_id, author_id, **fields):
        data = {
            'id': post_id,
            'authorId': author_id,
            'text': 'Wheat sowing update',
            'media': [{'url': f"https://cdn.example.com/{post_id}.jpg", 'type': 'IMAGE', 'thumbnailUrl': None}],
            'likesCount': 0,
            'commentsCount': 0
        }
        data.update(fields)
        store.seed(f"posts/{post_id}", data)
        return data
    return _seed_post

