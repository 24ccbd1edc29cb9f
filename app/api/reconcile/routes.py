# app/api/reconcile/routes.py
import logging
from flask import Blueprint, jsonify, current_app

from app.api.reconcile.schemas import PostReconcileResponseSchema, UserReconcileResponseSchema
from app.core.security import admin_required


reconcile_bp = Blueprint('reconcile_bp', __name__)

@reconcile_bp.route('/posts/<string:post_id>/reconcile', methods=['POST'])
@admin_required
def reconcile_post(post_id: str):
    """
    Recounts a post's likesCount, commentsCount and its comments' repliesCount.
    """
    reconcile_service = current_app.services['reconcile']
    try:
        result = reconcile_service.reconcile_post(post_id)
    except Exception as e:
        logging.error(f"Reconcile failed (post_id: {post_id}): {e}", exc_info=True)
        return jsonify({"error_code": "RECONCILE_FAILED", "message": "Failed to reconcile post counters."}), 500
    if result is None:
        return jsonify({"error_code": "POST_NOT_FOUND", "message": f"Post {post_id} does not exist."}), 404
    return jsonify(PostReconcileResponseSchema().dump(result)), 200


@reconcile_bp.route('/users/<string:user_id>/reconcile', methods=['POST'])
@admin_required
def reconcile_user(user_id: str):
    """
    Recounts a user's postsCount.
    """
    reconcile_service = current_app.services['reconcile']
    try:
        result = reconcile_service.reconcile_user_posts(user_id)
    except Exception as e:
        logging.error(f"Reconcile failed (user_id: {user_id}): {e}", exc_info=True)
        return jsonify({"error_code": "RECONCILE_FAILED", "message": "Failed to reconcile user counters."}), 500
    if result is None:
        return jsonify({"error_code": "USER_NOT_FOUND", "message": f"User {user_id} does not exist."}), 404
    return jsonify(UserReconcileResponseSchema().dump(result)), 200
