# Overview: Request decorators resolving the calling staff member and checking capabilities.

from functools import wraps

from flask import current_app, g, jsonify, request

from .policy import role_can
from .services import catalog_service


def require_staff(f):
    """
    Resolve the caller from the staff id header set by the upstream authenticator.

    Sets:
    - g.current_staff: cached staff view (dict)
    - g.store_id: the staff member's store

    Returns 401 if the header is missing, malformed, or names an unknown or
    suspended staff member.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        header = current_app.config["STAFF_ID_HEADER"]
        raw = request.headers.get(header)
        if not raw:
            return jsonify({"error": "Authentication required", "code": "UNAUTHENTICATED"}), 401

        try:
            staff_id = int(raw)
        except ValueError:
            return jsonify({"error": f"Invalid {header} header", "code": "UNAUTHENTICATED"}), 401

        staff = catalog_service.get_staff_view(staff_id)
        if staff is None or staff["status"] != "active":
            return jsonify({"error": "Unknown or inactive staff member", "code": "UNAUTHENTICATED"}), 401

        g.current_staff = staff
        g.store_id = staff["store_id"]
        return f(*args, **kwargs)

    return decorated_function


def require_capability(capability: str):
    """
    Require the caller's role to hold a capability.

    Stack below @require_staff (it reads g.current_staff).
    Returns 403 if the role lacks it.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            staff = getattr(g, "current_staff", None)
            if staff is None:
                return jsonify({"error": "Authentication required", "code": "UNAUTHENTICATED"}), 401

            if not role_can(staff["role"], capability):
                return jsonify({
                    "error": "Permission denied",
                    "code": "FORBIDDEN",
                    "details": {"capability": capability, "role": staff["role"]},
                }), 403

            return f(*args, **kwargs)

        return decorated_function

    return decorator
