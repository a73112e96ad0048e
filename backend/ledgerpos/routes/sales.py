# Overview: Flask API routes for checkout; parses input and returns JSON responses.

from flask import Blueprint, current_app, g, jsonify, request

from ..decorators import require_capability, require_staff
from ..errors import InvalidSaleError, PosError, ProductNotFoundError
from ..policy import SALE_CREATE, SALE_VIEW
from ..services import catalog_service, sales_service, shift_service
from ..services.sales_service import SaleItemRequest, SaleRequest
from . import error_response, internal_error

sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _parse_items(raw_items) -> list[SaleItemRequest]:
    if not isinstance(raw_items, list):
        raise InvalidSaleError("items must be a list")

    items = []
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict) or "product_id" not in raw or "quantity" not in raw:
            raise InvalidSaleError("Each item needs product_id and quantity", {"line": index})

        unit_price = raw.get("unit_price_cents")
        if unit_price is None:
            # Default to the catalog price
            product = catalog_service.get_product_view(raw["product_id"])
            if product is None:
                raise ProductNotFoundError(raw["product_id"])
            unit_price = product["price_cents"]

        items.append(SaleItemRequest(
            product_id=raw["product_id"],
            quantity=raw["quantity"],
            unit_price_cents=unit_price,
        ))
    return items


@sales_bp.post("")
@require_staff
@require_capability(SALE_CREATE)
def create_sale_route():
    """
    Commit a checkout.

    The sale is attached to the caller's open shift, if any.
    """
    try:
        data = request.get_json(silent=True) or {}
        staff = g.current_staff
        open_shift = shift_service.get_open_shift(staff["id"])

        sale_request = SaleRequest(
            items=_parse_items(data.get("items")),
            payment_method=data.get("payment_method"),
            store_id=g.store_id,
            actor_id=staff["id"],
            actor_name=staff["name"],
            customer_id=data.get("customer_id"),
            discount_cents=data.get("discount_cents", 0),
            tax_cents=data.get("tax_cents", 0),
            shift_id=open_shift.id if open_shift else None,
        )
        sale = sales_service.process_sale(sale_request)

        return jsonify({
            "sale_id": sale.id,
            "receipt_number": sale.receipt_number,
            "total_cents": sale.total_cents,
        }), 201

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to process sale")
        return internal_error()


@sales_bp.get("/<int:sale_id>")
@require_staff
@require_capability(SALE_VIEW)
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(sale_id, store_id=g.store_id)
        return jsonify({"sale": sale.to_dict(include_items=True)}), 200

    except PosError as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to load sale")
        return internal_error()
