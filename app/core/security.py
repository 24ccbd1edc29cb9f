# app/core/security.py
from datetime import timedelta
from functools import wraps

from flask import jsonify
from flask_jwt_extended import create_access_token, get_jwt, jwt_required

ADMIN_CLAIM = "admin"


def create_admin_token(identity: str, expires_in: timedelta = timedelta(hours=1)) -> str:
    """Issues a bearer token accepted by the admin endpoints. Needs an app context."""
    return create_access_token(identity=identity, additional_claims={ADMIN_CLAIM: True},
                               expires_delta=expires_in)


def admin_required(f):
    """Valid JWT carrying `admin: true`; 401 without a token, 403 without the claim."""
    @wraps(f)
    @jwt_required()
    def decorated_function(*args, **kwargs):
        if get_jwt().get(ADMIN_CLAIM) is not True:
            return jsonify({"error_code": "FORBIDDEN", "message": "Admin privileges are required."}), 403
        return f(*args, **kwargs)

    return decorated_function
