# app/utils/__init__.py
"""
Shared utilities: UTC date/time handling and the Firestore REST value codec.
"""

from .datetime_utils import (
    DateTimeUtils,
    now, parse_iso, to_iso, for_firestore
)
from .firestore_codec import decode_document, decode_value, document_path

__all__ = [
    'DateTimeUtils',
    'now', 'parse_iso', 'to_iso', 'for_firestore',
    'decode_document', 'decode_value', 'document_path'
]
