# app/api/events/services.py
import logging
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from marshmallow import ValidationError

from app.api.events.schemas import DocumentEventDataSchema
from app.core.exceptions import MalformedEvent
from app.models.event import DocumentEvent, EventType
from app.utils.firestore_codec import decode_document, document_path

FIRESTORE_EVENT_PREFIX = 'google.cloud.firestore.document.v1.'
AUTH_CONTEXT_SUFFIX = '.withAuthContext'

Handler = Callable[[DocumentEvent], Any]


class TriggerRegistry:
    """
    (event type, document path pattern) -> handler table.

    Patterns are document paths whose `{name}` segments match exactly one
    path segment, e.g. 'posts/{postId}/likes/{userId}'.
    """
    def __init__(self):
        self._triggers: List[Tuple[EventType, str, re.Pattern, Handler]] = []

    def register(self, event_type: EventType, pattern: str, handler: Handler) -> None:
        self._triggers.append((event_type, pattern, self._compile(pattern), handler))

    def match(self, event_type: EventType, document: str) -> Tuple[Optional[Handler], Dict[str, str]]:
        for trigger_type, _pattern, regex, handler in self._triggers:
            if trigger_type is not event_type:
                continue
            matched = regex.match(document)
            if matched:
                return handler, matched.groupdict()
        return None, {}

    @property
    def patterns(self) -> List[Tuple[str, str]]:
        return [(event_type.value, pattern) for event_type, pattern, _regex, _handler in self._triggers]

    @staticmethod
    def _compile(pattern: str) -> re.Pattern:
        parts = []
        for segment in pattern.strip('/').split('/'):
            if segment.startswith('{') and segment.endswith('}'):
                parts.append(f"(?P<{segment[1:-1]}>[^/]+)")
            else:
                parts.append(re.escape(segment))
        return re.compile('^' + '/'.join(parts) + '$')


def build_trigger_registry(feed_service, like_service, comment_service) -> TriggerRegistry:
    """The pipeline's trigger table: exactly one handler per (event, path)."""
    registry = TriggerRegistry()
    registry.register(EventType.CREATED, 'posts/{postId}', feed_service.on_post_create)
    registry.register(EventType.CREATED, 'posts/{postId}/likes/{userId}', like_service.on_like_create)
    registry.register(EventType.DELETED, 'posts/{postId}/likes/{userId}', like_service.on_like_delete)
    registry.register(EventType.CREATED, 'posts/{postId}/comments/{commentId}', comment_service.on_comment_create)
    registry.register(EventType.DELETED, 'posts/{postId}/comments/{commentId}', comment_service.on_comment_delete)
    registry.register(EventType.UPDATED, 'posts/{postId}/comments/{commentId}', comment_service.on_comment_update)
    return registry


class EventDispatcher:
    """
    Decodes Firestore CloudEvents and runs the matching handler.

    Handler exceptions propagate: the HTTP layer turns them into a 5xx so the
    event is redelivered.
    """
    def __init__(self, registry: TriggerRegistry, client=None):
        """
        :param registry: trigger table
        :param client: Firestore client used to rebuild reference values (optional)
        """
        self.registry = registry
        self.client = client

    def decode(self, attributes: Dict[str, Any], data: Optional[Dict[str, Any]]) -> DocumentEvent:
        ce_type = attributes.get('type') or ''
        if not ce_type.startswith(FIRESTORE_EVENT_PREFIX):
            raise MalformedEvent(f"Not a Firestore document event: {ce_type}")

        try:
            payload = DocumentEventDataSchema().load(data or {})
        except ValidationError as err:
            raise MalformedEvent(f"Invalid DocumentEventData: {err.messages}")

        after = decode_document(payload['value'], self.client)
        before = decode_document(payload['old_value'], self.client)
        event_type = self._event_type(ce_type, before, after)

        document = self._document_path(attributes, payload)
        if not document:
            raise MalformedEvent(f"Event {attributes.get('id')} does not name a document")

        return DocumentEvent(
            event_id=attributes['id'],
            event_type=event_type,
            document=document,
            before=before,
            after=after
        )

    def dispatch(self, event: DocumentEvent) -> bool:
        """Runs the handler for the event; False when no trigger matches."""
        handler, params = self.registry.match(event.event_type, event.document)
        if handler is None:
            logging.info(f"Ignoring {event.event_type.value} event {event.event_id} on {event.document}: no trigger")
            return False

        event.params = params
        logging.info(f"Dispatching {event.event_type.value} event {event.event_id} on {event.document} "
                     f"to {getattr(handler, '__name__', handler)}")
        handler(event)
        return True

    @staticmethod
    def _event_type(ce_type: str, before, after) -> EventType:
        kind = ce_type[len(FIRESTORE_EVENT_PREFIX):]
        if kind.endswith(AUTH_CONTEXT_SUFFIX):
            kind = kind[:-len(AUTH_CONTEXT_SUFFIX)]

        if kind == 'written':
            if before is None and after is not None:
                return EventType.CREATED
            if after is None and before is not None:
                return EventType.DELETED
            if before is not None and after is not None:
                return EventType.UPDATED
            raise MalformedEvent("written event carries neither value nor oldValue")

        try:
            return EventType(kind)
        except ValueError:
            raise MalformedEvent(f"Unsupported Firestore event type: {ce_type}")

    @staticmethod
    def _document_path(attributes: Dict[str, Any], payload: Dict[str, Any]) -> str:
        if attributes.get('document'):
            return document_path(attributes['document'])
        subject = attributes.get('subject')
        if subject and subject.startswith('documents/'):
            return document_path(subject)
        for snapshot in (payload.get('value'), payload.get('old_value')):
            if snapshot and snapshot.get('name'):
                return document_path(snapshot['name'])
        return ''
