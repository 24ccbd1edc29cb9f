# app/__init__.py

# =====================================================================================
# 1. Environment variables (loaded before anything reads them)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. Module imports
# =====================================================================================
import os
import logging
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from flask_jwt_extended import JWTManager
import firebase_admin
from firebase_admin import credentials, firestore

# - Config
from app.core.config import config_by_name
from app.core.exceptions import MalformedEvent

# - Blueprints
from app.api.events.routes import events_bp
from app.api.reconcile.routes import reconcile_bp

# - Services
from app.services.firestore_service import FirestoreStore
from app.services.push_service import PushService
from app.services.notification_service import NotificationService
from app.api.posts.services import FeedFanoutService
from app.api.likes.services import LikeService
from app.api.comments.services import CommentService
from app.api.reconcile.services import ReconcileService
from app.api.events.services import EventDispatcher, build_trigger_registry


def _init_firebase(app: Flask) -> None:
    """Initializes the default Firebase app once per process."""
    if firebase_admin._apps:
        return

    cred_path = app.config.get('FIREBASE_CREDENTIALS_PATH')
    if cred_path:
        if not os.path.exists(cred_path):
            raise FileNotFoundError(f"Firebase credentials file not found: {cred_path}")
        cred = credentials.Certificate(cred_path)
    elif app.config.get('REQUIRE_CREDENTIALS_FILE'):
        raise ValueError("FIREBASE_CREDENTIALS_PATH must be set outside production.")
    else:
        cred = None  # Application Default Credentials

    options = {}
    if app.config.get('FIREBASE_PROJECT_ID'):
        options['projectId'] = app.config['FIREBASE_PROJECT_ID']
    firebase_admin.initialize_app(cred, options)


def create_app(config_name=None, store=None, push_sender=None):
    """
    Flask application factory.

    :param config_name: key of config_by_name; defaults to FLASK_ENV
    :param store: document store to use instead of Firestore (tests)
    :param push_sender: replacement for firebase_admin.messaging.send (tests)
    """
    # =====================================================================================
    # 3. Flask app and configuration
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')
    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
    )

    # =====================================================================================
    # 4. Extensions and external services
    # =====================================================================================
    JWTManager(app)

    firestore_client = None
    if store is None:
        _init_firebase(app)
        firestore_client = firestore.client(database_id=app.config['FIRESTORE_DATABASE_ID'])
        store = FirestoreStore(
            firestore_client,
            dedup_collection=app.config['PROCESSED_EVENTS_COLLECTION'] if app.config['EVENT_DEDUP_ENABLED'] else None,
            dedup_ttl_days=app.config['PROCESSED_EVENT_TTL_DAYS']
        )
        logging.info(f"Firestore store initialized (database: {app.config['FIRESTORE_DATABASE_ID']})")

    # =====================================================================================
    # 5. Service instances, stored on app.services (dependency injection)
    # =====================================================================================
    app.services = {}

    # 5-1. Shared services
    app.services['store'] = store
    app.services['push'] = PushService(sender=push_sender, enabled=app.config['PUSH_ENABLED'])
    app.services['notifications'] = NotificationService(store, app.services['push'])

    # 5-2. Event handlers
    app.services['feed'] = FeedFanoutService(
        store,
        batch_size=app.config['FEED_BATCH_SIZE'],
        max_concurrent_commits=app.config['FEED_MAX_CONCURRENT_COMMITS']
    )
    app.services['likes'] = LikeService(store, app.services['notifications'])
    app.services['comments'] = CommentService(
        store,
        app.services['notifications'],
        count_hard_deletes=app.config['COUNT_HARD_DELETED_COMMENTS']
    )
    app.services['reconcile'] = ReconcileService(store)

    registry = build_trigger_registry(app.services['feed'], app.services['likes'], app.services['comments'])
    app.services['events'] = EventDispatcher(registry, client=firestore_client)

    # =====================================================================================
    # 6. Blueprints
    # =====================================================================================
    app.register_blueprint(events_bp)
    app.register_blueprint(reconcile_bp, url_prefix='/api/admin')

    # =====================================================================================
    # 7. Global error handlers
    # =====================================================================================
    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        response = {"error_code": "VALIDATION_ERROR", "details": err.messages}
        return jsonify(response), 400

    @app.errorhandler(MalformedEvent)
    def handle_malformed_event(err):
        return jsonify({"error_code": "MALFORMED_EVENT", "message": str(err)}), 400

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        if isinstance(err, HTTPException):
            return err
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        response = {"error_code": "INTERNAL_SERVER_ERROR", "message": "An unexpected server error occurred."}
        return jsonify(response), 500

    # =====================================================================================
    # 8. Done
    # =====================================================================================
    logging.info(f"Flask app created for '{config_name}' environment "
                 f"({len(registry.patterns)} triggers registered).")

    return app
