# Overview: Flask API routes for opening, inspecting and closing shifts.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_capability, require_staff
from ..errors import NoActiveShiftError, PosError
from ..policy import SHIFT_CLOSE_ANY, SHIFT_OPEN, role_can
from ..services import shift_service
from . import error_response, internal_error

shifts_bp = Blueprint("shifts", __name__, url_prefix="/api/shifts")


@shifts_bp.post("")
@require_staff
@require_capability(SHIFT_OPEN)
def open_shift_route():
    try:
        data = request.get_json(silent=True) or {}
        shift = shift_service.open_shift(
            g.current_staff["id"],
            data.get("opening_cash_cents", 0),
            store_id=g.store_id,
        )
        return jsonify({"shift": shift.to_dict()}), 201

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to open shift")
        return internal_error()


@shifts_bp.get("/current")
@require_staff
@require_capability(SHIFT_OPEN)
def current_shift_route():
    try:
        shift = shift_service.get_open_shift(g.current_staff["id"])
        if shift is None:
            raise NoActiveShiftError()
        return jsonify({"shift": shift.to_dict()}), 200

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load current shift")
        return internal_error()


@shifts_bp.get("/<int:shift_id>")
@require_staff
@require_capability(SHIFT_OPEN)
def shift_detail_route(shift_id: int):
    try:
        shift = shift_service.get_shift(shift_id, store_id=g.store_id)
        return jsonify({"shift": shift.to_dict()}), 200

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load shift")
        return internal_error()


@shifts_bp.post("/<int:shift_id>/close")
@require_staff
@require_capability(SHIFT_OPEN)
def close_shift_route(shift_id: int):
    """
    Close a shift with the counted drawer cash.

    Closing someone else's shift requires shift.close_any (owner/manager).
    """
    try:
        data = request.get_json(silent=True) or {}
        staff = g.current_staff

        shift = shift_service.close_shift(
            shift_id,
            data.get("closing_cash_cents"),
            actor_staff_id=staff["id"],
            manager_override=role_can(staff["role"], SHIFT_CLOSE_ANY),
            store_id=g.store_id,
        )
        return jsonify({"shift": shift.to_dict()}), 200

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to close shift")
        return internal_error()
