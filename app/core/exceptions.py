# app/core/exceptions.py
"""
Exceptions shared by the store, the event ingress and the domain services.

Handlers decide per call site whether a DocumentNotFound is a benign stop
(the referenced post or comment is gone) or a store write failure that has
to propagate so the event is redelivered.
"""


class DocumentNotFound(LookupError):
    """An update or increment targeted a document that does not exist."""

    def __init__(self, path: str):
        super().__init__(f"Document not found: {path}")
        self.path = path


class BatchLimitExceeded(ValueError):
    """A single write batch carried more operations than Firestore accepts."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"Batch of {size} writes exceeds the limit of {limit}")
        self.size = size
        self.limit = limit


class MalformedEvent(ValueError):
    """A delivered CloudEvent could not be decoded into a DocumentEvent."""
