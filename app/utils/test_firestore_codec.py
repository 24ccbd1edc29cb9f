# app/utils/test_firestore_codec.py
"""
Firestore REST value decoding tests

Usage: python -m pytest app/utils/test_firestore_codec.py -v
"""

import math
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from firebase_admin import firestore

from app.core.exceptions import MalformedEvent
from app.utils.firestore_codec import decode_document, decode_value, document_path


@pytest.mark.parametrize('name, expected', [
    ('projects/kissangram-dev/databases/kissangram/documents/posts/p1', 'posts/p1'),
    ('projects/p/databases/(default)/documents/posts/p1/likes/u1', 'posts/p1/likes/u1'),
    ('documents/users/u1', 'users/u1'),
    ('posts/p1', 'posts/p1'),
    ('', '')
])
def test_document_path(name, expected):
    assert document_path(name) == expected


def test_scalar_values():
    assert decode_value({'nullValue': None}) is None
    assert decode_value({'stringValue': 'kharif'}) == 'kharif'
    assert decode_value({'booleanValue': True}) is True
    assert decode_value({'integerValue': '9007199254740993'}) == 9007199254740993
    assert decode_value({'doubleValue': 29.5}) == 29.5
    assert math.isnan(decode_value({'doubleValue': 'NaN'}))
    assert decode_value({'bytesValue': 'aGVsbG8='}) == b'hello'


def test_timestamp_value():
    value = decode_value({'timestampValue': '2026-10-17T04:12:30.5Z'})

    assert value == datetime(2026, 10, 17, 4, 12, 30, 500000, tzinfo=timezone.utc)


def test_nested_map_and_array():
    value = decode_value({'mapValue': {'fields': {
        'crops': {'arrayValue': {'values': [{'stringValue': 'wheat'}, {'stringValue': 'gram'}]}},
        'empty': {'arrayValue': {}},
        'location': {'mapValue': {'fields': {'name': {'stringValue': 'Sirsa'}}}}
    }}})

    assert value == {'crops': ['wheat', 'gram'], 'empty': [], 'location': {'name': 'Sirsa'}}


def test_geo_point_value():
    value = decode_value({'geoPointValue': {'latitude': 29.53, 'longitude': 75.02}})

    assert isinstance(value, firestore.GeoPoint)
    assert value.latitude == 29.53


def test_reference_value():
    reference = {'referenceValue': 'projects/p/databases/kissangram/documents/users/u1'}
    client = MagicMock()

    assert decode_value(reference) == 'users/u1'
    decode_value(reference, client)
    client.document.assert_called_once_with('users/u1')


@pytest.mark.parametrize('value', [{}, {'vectorValue': {}}, {'timestampValue': 'not-a-time'}, 'raw'])
def test_malformed_values_raise(value):
    with pytest.raises(MalformedEvent):
        decode_value(value)


def test_decode_document():
    document = {
        'name': 'projects/p/databases/kissangram/documents/posts/p1',
        'fields': {'authorId': {'stringValue': 'ravi'}, 'likesCount': {'integerValue': '3'}}
    }

    assert decode_document(document) == {'authorId': 'ravi', 'likesCount': 3}


def test_absent_snapshot_decodes_to_none():
    assert decode_document(None) is None
    assert decode_document({'name': None, 'fields': {}}) is None


def test_named_document_without_fields_decodes_empty():
    assert decode_document({'name': 'projects/p/databases/d/documents/posts/p1', 'fields': {}}) == {}
