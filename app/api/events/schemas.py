# app/api/events/schemas.py
from marshmallow import Schema, fields, validate, EXCLUDE


class CloudEventSchema(Schema):
    """
    CloudEvent context attributes of a Firestore document event.
    Binary mode carries them as ce-* headers, structured mode in the JSON body.
    """
    class Meta:
        unknown = EXCLUDE

    id = fields.Str(required=True, validate=validate.Length(min=1))
    type = fields.Str(required=True, validate=validate.Length(min=1))
    source = fields.Str(load_default=None)
    subject = fields.Str(load_default=None)
    specversion = fields.Str(load_default='1.0')
    time = fields.Str(load_default=None)
    # Firestore extension attributes
    document = fields.Str(load_default=None)
    database = fields.Str(load_default=None)
    namespace = fields.Str(load_default=None)


class FirestoreDocumentSchema(Schema):
    """google.events.cloud.firestore.v1.Document in its JSON form."""
    class Meta:
        unknown = EXCLUDE

    name = fields.Str(load_default=None)
    # attribute keeps the loaded key as "fields" for the value codec
    field_values = fields.Dict(keys=fields.Str(), data_key='fields', attribute='fields', load_default=dict)
    create_time = fields.Str(data_key='createTime', load_default=None)
    update_time = fields.Str(data_key='updateTime', load_default=None)


class DocumentEventDataSchema(Schema):
    """google.events.cloud.firestore.v1.DocumentEventData: value (after) / oldValue (before)."""
    class Meta:
        unknown = EXCLUDE

    value = fields.Nested(FirestoreDocumentSchema, load_default=None, allow_none=True)
    old_value = fields.Nested(FirestoreDocumentSchema, data_key='oldValue', load_default=None, allow_none=True)
    update_mask = fields.Dict(data_key='updateMask', load_default=None, allow_none=True)
