"""
Sale transaction coordinator.

One checkout = one database transaction:

    Validating -> StockReserving -> LedgerPosting -> Committing -> Done
        |               |                 |               |
        +---------------+-----------------+---------------+--> Rejected
                                            (rolled back, nothing written)

Validation (request shape, stock, credit) runs first and writes nothing.
Receipt allocation, stock deductions, the credit charge and the Sale row are
then written in order inside the same write transaction. Shift totals are
updated afterwards by the sale_committed receiver in shift_service.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..errors import (
    CustomerRequiredError,
    InsufficientStockError,
    InvalidSaleError,
    NoActiveShiftError,
    ProductNotFoundError,
    ProductUnavailableError,
    SaleNotFoundError,
)
from ..extensions import db
from ..models import PAYMENT_METHODS, Product, ReceiptSequence, Sale, SaleItem, Shift
from ..signals import notify_records_changed, sale_committed
from ..time_utils import utcnow
from . import credit_ledger, stock_ledger
from .concurrency import begin_write_transaction, lock_for_update, run_with_retry


@dataclass
class SaleItemRequest:
    product_id: int
    quantity: int
    unit_price_cents: int

    @property
    def line_total_cents(self) -> int:
        return self.quantity * self.unit_price_cents


@dataclass
class SaleRequest:
    items: list[SaleItemRequest]
    payment_method: str
    store_id: int
    actor_id: int
    actor_name: str | None = None
    customer_id: int | None = None
    discount_cents: int = 0
    tax_cents: int = 0
    shift_id: int | None = None

    @property
    def subtotal_cents(self) -> int:
        return sum(item.line_total_cents for item in self.items)

    @property
    def total_cents(self) -> int:
        return self.subtotal_cents - self.discount_cents + self.tax_cents


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _validate_request(req: SaleRequest) -> None:
    if not req.items:
        raise InvalidSaleError("Sale must contain at least one item")

    for index, item in enumerate(req.items):
        if not _is_int(item.product_id):
            raise InvalidSaleError("product_id must be an integer", {"line": index, "product_id": item.product_id})
        if not _is_int(item.quantity) or item.quantity <= 0:
            raise InvalidSaleError("Quantity must be a positive integer", {"line": index, "quantity": item.quantity})
        if not _is_int(item.unit_price_cents) or item.unit_price_cents < 0:
            raise InvalidSaleError(
                "Unit price must be a non-negative integer", {"line": index, "unit_price_cents": item.unit_price_cents}
            )

    if req.payment_method not in PAYMENT_METHODS:
        raise InvalidSaleError(
            f"Unknown payment method: {req.payment_method}",
            {"payment_method": req.payment_method, "allowed": list(PAYMENT_METHODS)},
        )
    if not _is_int(req.discount_cents) or req.discount_cents < 0:
        raise InvalidSaleError("Discount cannot be negative", {"discount_cents": req.discount_cents})
    if not _is_int(req.tax_cents) or req.tax_cents < 0:
        raise InvalidSaleError("Tax cannot be negative", {"tax_cents": req.tax_cents})
    if req.discount_cents > req.subtotal_cents:
        raise InvalidSaleError(
            "Discount cannot exceed subtotal",
            {"discount_cents": req.discount_cents, "subtotal_cents": req.subtotal_cents},
        )
    if req.payment_method == "credit" and req.total_cents <= 0:
        raise InvalidSaleError("Credit sale total must be positive", {"total_cents": req.total_cents})


def _validate_stock(req: SaleRequest) -> dict[int, Product]:
    """
    Lock every product on the sale and check availability.

    Rows are locked in ascending id order so concurrent carts always take
    locks in the same order. Quantities of repeated products are summed and
    checked in the order they first appear, so the error names the first
    short line.
    """
    requested: dict[int, int] = {}
    for item in req.items:
        requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity

    locked = {
        product_id: lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        for product_id in sorted(requested)
    }

    products: dict[int, Product] = {}
    for product_id, quantity in requested.items():
        product = locked[product_id]
        if product is None or product.store_id != req.store_id:
            raise ProductNotFoundError(product_id)
        if product.status != "active":
            raise ProductUnavailableError(product.name, product.status)
        if product.stock < quantity:
            raise InsufficientStockError(product.name, product.stock, quantity)
        products[product_id] = product
    return products


def _validate_customer(req: SaleRequest) -> None:
    if req.payment_method == "credit":
        if req.customer_id is None:
            raise CustomerRequiredError()
        customer = credit_ledger.load_customer(req.customer_id, lock=True, store_id=req.store_id)
        credit_ledger.check_charge(customer, req.total_cents)
    elif req.customer_id is not None:
        credit_ledger.load_customer(req.customer_id, store_id=req.store_id)


def _validate_shift(req: SaleRequest) -> None:
    if req.shift_id is None:
        return
    shift = db.session.get(Shift, req.shift_id)
    if shift is None or not shift.is_open or shift.store_id != req.store_id:
        raise NoActiveShiftError(req.shift_id)


def next_receipt_number(store_id: int, *, prefix: str = "S", pad: int = 6) -> str:
    """
    Atomically allocate the next receipt number for a store.

    Runs inside the caller's transaction. The first receipt of a store
    inserts its sequence row in a savepoint so a concurrent first insert
    only costs a retry of the UPDATE, not the whole sale.
    """
    stmt = (
        update(ReceiptSequence)
        .where(ReceiptSequence.store_id == store_id)
        .values(next_number=ReceiptSequence.next_number + 1)
        .execution_options(synchronize_session=False)
    )

    def _current() -> int:
        return (
            db.session.query(ReceiptSequence.next_number)
            .filter_by(store_id=store_id)
            .scalar()
        ) - 1

    if db.session.execute(stmt).rowcount:
        number = _current()
    else:
        try:
            with db.session.begin_nested():
                db.session.add(ReceiptSequence(store_id=store_id, next_number=2))
            number = 1
        except IntegrityError:
            if not db.session.execute(stmt).rowcount:
                raise
            number = _current()

    return f"{prefix}-{number:0{pad}d}"


def _post_sale_locked(req: SaleRequest, products: dict[int, Product]) -> Sale:
    receipt_number = next_receipt_number(req.store_id)

    items = []
    for item in req.items:
        product = products[item.product_id]
        _, log_entry = stock_ledger.apply_adjustment(
            item.product_id,
            -item.quantity,
            "sale",
            f"Sale {receipt_number}: {item.quantity} x {product.name}",
            actor_id=req.actor_id,
            actor_name=req.actor_name,
            sale_ref=receipt_number,
            store_id=req.store_id,
        )
        items.append(
            SaleItem(
                product_id=item.product_id,
                product_name=product.name,
                quantity=item.quantity,
                unit_price_cents=item.unit_price_cents,
                line_total_cents=item.line_total_cents,
                inventory_log_id=log_entry.id,
            )
        )

    if req.payment_method == "credit":
        credit_ledger.append_charge(
            req.customer_id,
            req.total_cents,
            description=f"Credit sale {receipt_number}",
            sale_ref=receipt_number,
            actor_id=req.actor_id,
            actor_name=req.actor_name,
            store_id=req.store_id,
        )

    sale = Sale(
        store_id=req.store_id,
        receipt_number=receipt_number,
        subtotal_cents=req.subtotal_cents,
        discount_cents=req.discount_cents,
        tax_cents=req.tax_cents,
        total_cents=req.total_cents,
        payment_method=req.payment_method,
        payment_status="unpaid" if req.payment_method == "credit" else "paid",
        status="completed",
        customer_id=req.customer_id,
        shift_id=req.shift_id,
        actor_id=req.actor_id,
        actor_name=req.actor_name,
        created_at=utcnow(),
    )
    sale.items = items
    db.session.add(sale)
    db.session.flush()
    return sale


def process_sale(req: SaleRequest) -> Sale:
    """
    Validate and commit one checkout.

    Raises a PosError subclass on rejection; in that case no stock, ledger,
    receipt or sale row has been written.
    """
    _validate_request(req)

    def _op():
        begin_write_transaction()
        products = _validate_stock(req)
        _validate_customer(req)
        _validate_shift(req)
        sale = _post_sale_locked(req, products)
        db.session.commit()
        return sale

    sale = run_with_retry(_op)

    current_app.logger.info(
        "Sale %s committed: %d cents via %s (store %s, shift %s)",
        sale.receipt_number,
        sale.total_cents,
        sale.payment_method,
        sale.store_id,
        sale.shift_id,
    )

    notify_records_changed("product", {item.product_id for item in req.items})
    if sale.payment_method == "credit":
        notify_records_changed("customer", [sale.customer_id])
    sale_committed.send(
        current_app._get_current_object(),
        sale_id=sale.id,
        shift_id=sale.shift_id,
        total_cents=sale.total_cents,
        payment_method=sale.payment_method,
    )
    return sale


def get_sale(sale_id: int, *, store_id: int | None = None) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None or (store_id is not None and sale.store_id != store_id):
        raise SaleNotFoundError(sale_id)
    return sale
