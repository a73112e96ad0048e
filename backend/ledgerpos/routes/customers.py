# Overview: Flask API routes for customer credit accounts.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_capability, require_staff
from ..errors import CustomerNotFoundError, PosError, ValidationError
from ..policy import CREDIT_REPAY, CREDIT_VIEW
from ..services import catalog_service, credit_ledger
from . import error_response, internal_error

customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.post("/<int:customer_id>/repayments")
@require_staff
@require_capability(CREDIT_REPAY)
def repayment_route(customer_id: int):
    """
    Record a payment against a customer's tab.

    Body: {"amount_cents": int, "description": str (optional)}
    Tender above the outstanding balance is reported as unapplied_cents.
    """
    try:
        data = request.get_json(silent=True) or {}
        staff = g.current_staff

        entry = credit_ledger.record_repayment(
            customer_id,
            data.get("amount_cents"),
            description=data.get("description"),
            actor_id=staff["id"],
            actor_name=staff["name"],
            store_id=g.store_id,
        )
        return jsonify({
            "entry": entry.to_dict(),
            "balance_cents": entry.balance_after_cents,
            "unapplied_cents": entry.unapplied_cents,
        }), 201

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to record repayment")
        return internal_error()


@customers_bp.get("/<int:customer_id>/ledger")
@require_staff
@require_capability(CREDIT_VIEW)
def ledger_route(customer_id: int):
    try:
        entries = credit_ledger.get_customer_ledger(customer_id, store_id=g.store_id)
        customer = catalog_service.get_customer_view(customer_id)
        return jsonify({"customer": customer, "entries": [e.to_dict() for e in entries]}), 200

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load customer ledger")
        return internal_error()


@customers_bp.get("/lookup")
@require_staff
@require_capability(CREDIT_VIEW)
def customer_lookup_route():
    """Loyalty-card lookup: GET /api/customers/lookup?barcode=..."""
    try:
        barcode = (request.args.get("barcode") or "").strip()
        if not barcode:
            raise ValidationError("barcode is required", {"barcode": barcode})

        customer = catalog_service.find_customer_by_barcode(g.store_id, barcode)
        if customer is None:
            raise CustomerNotFoundError(barcode, field="barcode")
        return jsonify({"customer": customer.to_dict()}), 200

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to look up customer by barcode")
        return internal_error()
