# app/api/events/routes.py
import logging
from flask import Blueprint, request, jsonify, Response, current_app
from marshmallow import ValidationError

from app.api.events.schemas import CloudEventSchema
from app.core.exceptions import MalformedEvent


events_bp = Blueprint('events_bp', __name__)

STRUCTURED_CONTENT_TYPE = 'application/cloudevents+json'
PROTOBUF_CONTENT_TYPES = ('application/protobuf', 'application/x-protobuf')


def _read_cloud_event():
    """Splits the request into (attributes, data) for binary or structured content mode."""
    mimetype = request.mimetype
    if mimetype in PROTOBUF_CONTENT_TYPES:
        raise MalformedEvent("Protobuf event data is not supported; "
                             "configure the trigger with --event-data-content-type=application/json")

    if mimetype == STRUCTURED_CONTENT_TYPE:
        body = request.get_json(force=True, silent=True)
        if not isinstance(body, dict):
            raise MalformedEvent("Structured CloudEvent body is not a JSON object")
        if 'data_base64' in body:
            raise MalformedEvent("Binary event data (data_base64) is not supported")
        return body, body.get('data')

    attributes = {key[3:].lower(): value for key, value in request.headers.items()
                  if key.lower().startswith('ce-')}
    data = None
    if request.get_data():
        data = request.get_json(force=True, silent=True)
        if not isinstance(data, dict):
            raise MalformedEvent("Event data is not a JSON object")
    return attributes, data


@events_bp.route('/events', methods=['POST'])
def receive_event():
    """
    Entry point for Firestore document events (Eventarc HTTP delivery).
    - 204: handled, or no trigger for this document/event type
    - 400: the request is not a decodable Firestore CloudEvent
    - 500: the handler failed; the event will be redelivered
    """
    dispatcher = current_app.services['events']
    try:
        raw_attributes, data = _read_cloud_event()
        attributes = CloudEventSchema().load(raw_attributes)
        event = dispatcher.decode(attributes, data)
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except MalformedEvent as e:
        logging.warning(f"Rejected malformed event: {e}")
        return jsonify({"error_code": "MALFORMED_EVENT", "message": str(e)}), 400

    try:
        dispatcher.dispatch(event)
    except Exception as e:
        logging.error(f"Handler failed for {event.event_type.value} event {event.event_id} "
                      f"on {event.document}: {e}", exc_info=True)
        return jsonify({"error_code": "HANDLER_FAILED", "message": "Event handling failed and will be retried."}), 500
    return Response(status=204)


@events_bp.route('/healthz', methods=['GET'])
def healthz():
    return jsonify({"status": "ok", "push": current_app.services['push'].stats}), 200
