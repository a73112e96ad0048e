# Overview: Flask API routes for stock adjustments and inventory history.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_capability, require_staff
from ..errors import InvalidAdjustmentError, PosError, ProductNotFoundError, ValidationError
from ..policy import INVENTORY_ADJUST, INVENTORY_VIEW
from ..services import catalog_service, stock_ledger
from . import error_response, internal_error

inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.post("/products/<int:product_id>/adjust")
@require_staff
@require_capability(INVENTORY_ADJUST)
def adjust_route(product_id: int):
    """
    Apply a stock change.

    Body: {"quantity_delta": int, "kind": "adjustment" | "stock-in", "reason": str}
    """
    try:
        data = request.get_json(silent=True) or {}
        kind = data.get("kind", "adjustment")
        staff = g.current_staff

        if kind == "stock-in":
            entry = stock_ledger.receive_stock(
                product_id,
                data.get("quantity_delta"),
                reason=data.get("reason"),
                actor_id=staff["id"],
                actor_name=staff["name"],
                store_id=g.store_id,
            )
        elif kind == "adjustment":
            entry = stock_ledger.adjust_stock(
                product_id,
                data.get("quantity_delta"),
                reason=data.get("reason"),
                actor_id=staff["id"],
                actor_name=staff["name"],
                store_id=g.store_id,
            )
        else:
            raise InvalidAdjustmentError(
                "kind must be 'adjustment' or 'stock-in'", {"kind": kind}
            )

        return jsonify({"entry": entry.to_dict(), "stock": entry.current_stock}), 201

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return internal_error()


@inventory_bp.get("/products/<int:product_id>/logs")
@require_staff
@require_capability(INVENTORY_VIEW)
def logs_route(product_id: int):
    try:
        limit = request.args.get("limit", default=50, type=int)
        entries = stock_ledger.list_inventory_logs(product_id, limit=limit, store_id=g.store_id)
        product = catalog_service.get_product_view(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)

        return jsonify({"product": product, "logs": [e.to_dict() for e in entries]}), 200

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to list inventory logs")
        return internal_error()


@inventory_bp.get("/low-stock")
@require_staff
@require_capability(INVENTORY_VIEW)
def low_stock_route():
    try:
        products = catalog_service.list_low_stock(g.store_id)
        return jsonify({"products": [p.to_dict() for p in products]}), 200

    except Exception:
        current_app.logger.exception("Failed to list low-stock products")
        return internal_error()


@inventory_bp.get("/products/lookup")
@require_staff
@require_capability(INVENTORY_VIEW)
def product_lookup_route():
    """Scanner lookup: GET /api/inventory/products/lookup?barcode=..."""
    try:
        barcode = (request.args.get("barcode") or "").strip()
        if not barcode:
            raise ValidationError("barcode is required", {"barcode": barcode})

        product = catalog_service.find_product_by_barcode(g.store_id, barcode)
        if product is None:
            raise ProductNotFoundError(barcode, field="barcode")
        return jsonify({"product": product.to_dict()}), 200

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to look up product by barcode")
        return internal_error()
