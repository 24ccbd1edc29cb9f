# app/utils/firestore_codec.py
"""
Decoder for the Firestore REST/JSON value encoding.

Firestore CloudEvents delivered with `application/json` carry documents as
`{"name": ..., "fields": {"authorId": {"stringValue": "u1"}, ...}}`. The
handlers work on plain dicts, so every snapshot is decoded here once, at
the ingress boundary.
"""

import base64
import logging
from typing import Any, Dict, Optional

from firebase_admin import firestore

from app.core.exceptions import MalformedEvent
from app.utils.datetime_utils import DateTimeUtils

logger = logging.getLogger(__name__)

_DOCUMENTS_MARKER = '/documents/'


def document_path(name: str) -> str:
    """
    Strips the resource prefix from a fully-qualified document name.

    'projects/p/databases/kissangram/documents/posts/abc' -> 'posts/abc'
    """
    if not name:
        return ''
    if _DOCUMENTS_MARKER in name:
        return name.split(_DOCUMENTS_MARKER, 1)[1]
    if name.startswith('documents/'):
        return name[len('documents/'):]
    return name.strip('/')


def decode_value(value: Dict[str, Any], client=None) -> Any:
    """
    Decodes a single Firestore `Value` message.

    :param value: JSON object holding exactly one `*Value` key
    :param client: optional Firestore client used to rebuild document references
    """
    if not isinstance(value, dict) or not value:
        raise MalformedEvent(f"Not a Firestore value: {value!r}")

    if 'nullValue' in value:
        return None
    if 'stringValue' in value:
        return value['stringValue']
    if 'booleanValue' in value:
        return bool(value['booleanValue'])
    if 'integerValue' in value:
        # int64 is string-encoded in proto3 JSON
        return int(value['integerValue'])
    if 'doubleValue' in value:
        raw = value['doubleValue']
        # NaN / Infinity arrive as strings
        return float(raw)
    if 'timestampValue' in value:
        try:
            return DateTimeUtils.parse_iso_datetime(value['timestampValue'])
        except ValueError as e:
            raise MalformedEvent(str(e))
    if 'mapValue' in value:
        return decode_fields(value['mapValue'].get('fields') or {}, client)
    if 'arrayValue' in value:
        return [decode_value(item, client) for item in (value['arrayValue'].get('values') or [])]
    if 'geoPointValue' in value:
        point = value['geoPointValue']
        return firestore.GeoPoint(point.get('latitude', 0.0), point.get('longitude', 0.0))
    if 'referenceValue' in value:
        path = document_path(value['referenceValue'])
        return client.document(path) if client is not None else path
    if 'bytesValue' in value:
        return base64.b64decode(value['bytesValue'])

    raise MalformedEvent(f"Unsupported Firestore value kind: {sorted(value.keys())}")


def decode_fields(fields: Dict[str, Any], client=None) -> Dict[str, Any]:
    return {key: decode_value(raw, client) for key, raw in fields.items()}


def decode_document(document: Optional[Dict[str, Any]], client=None) -> Optional[Dict[str, Any]]:
    """
    Decodes a Firestore `Document` message into its field dict.

    Returns None for an absent snapshot (the `oldValue` of a create event or
    the `value` of a delete event). A present document with no fields decodes
    to an empty dict.
    """
    if not document or not (document.get('name') or document.get('fields')):
        return None
    try:
        return decode_fields(document.get('fields') or {}, client)
    except MalformedEvent:
        raise
    except (TypeError, ValueError, AttributeError) as e:
        logger.error(f"Failed to decode document {document.get('name')}: {e}")
        raise MalformedEvent(f"Undecodable document {document.get('name')}: {e}")
