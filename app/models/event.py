# app/models/event.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class EventType(Enum):
    """Firestore document change kinds a trigger can subscribe to."""
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass
class DocumentEvent:
    """
    One decoded Firestore change event.

    `before` is None for creates, `after` is None for deletes. `params` holds
    the values bound by the matching trigger pattern (postId, userId, ...).
    """
    event_id: str
    event_type: EventType
    document: str
    before: Optional[Dict[str, Any]] = None
    after: Optional[Dict[str, Any]] = None
    params: Dict[str, str] = field(default_factory=dict)
