# Overview: Service-layer operations for stock; every change to Product.stock goes through here.

# backend/ledgerpos/services/stock_ledger.py

from __future__ import annotations

from flask import current_app

from ..errors import InsufficientStockError, InvalidAdjustmentError, ProductNotFoundError
from ..extensions import db
from ..models import INVENTORY_KINDS, InventoryLogEntry, Product
from ..signals import notify_records_changed
from ..time_utils import utcnow
from .concurrency import begin_write_transaction, lock_for_update, run_with_retry

"""
Stock invariants (authoritative)

- Product.stock >= 0 at all times, for every kind of change.
- Product.stock is only changed by a conditional UPDATE
  (stock = stock + delta WHERE stock + delta >= 0); a change that would take
  it below zero touches nothing and raises InsufficientStockError.
- Every change appends exactly one InventoryLogEntry in the same database
  transaction, with previous_stock + quantity_delta == current_stock.

Kinds:
- stock-in: delta > 0 (goods received)
- sale: delta < 0 (written by the sale coordinator)
- adjustment: delta != 0, reason required (shrinkage, recount, breakage)
"""


def _validate_delta(kind: str, quantity_delta: int, reason: str | None) -> None:
    if kind not in INVENTORY_KINDS:
        raise InvalidAdjustmentError(f"Unknown inventory change kind: {kind}", {"kind": kind})
    if isinstance(quantity_delta, bool) or not isinstance(quantity_delta, int):
        raise InvalidAdjustmentError("quantity_delta must be an integer", {"quantity_delta": quantity_delta})

    if kind == "stock-in" and quantity_delta <= 0:
        raise InvalidAdjustmentError(
            "Stock-in quantity must be positive", {"kind": kind, "quantity_delta": quantity_delta}
        )
    if kind == "sale" and quantity_delta >= 0:
        raise InvalidAdjustmentError(
            "Sale deductions must be negative", {"kind": kind, "quantity_delta": quantity_delta}
        )
    if kind == "adjustment":
        if quantity_delta == 0:
            raise InvalidAdjustmentError("Adjustment cannot be zero", {"kind": kind, "quantity_delta": 0})
        if not (reason or "").strip():
            raise InvalidAdjustmentError("A reason is required for manual adjustments", {"kind": kind})


def _get_product_locked(product_id: int, store_id: int | None = None) -> Product:
    product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
    if product is None or (store_id is not None and product.store_id != store_id):
        raise ProductNotFoundError(product_id)
    return product


def apply_adjustment(
    product_id: int,
    quantity_delta: int,
    kind: str,
    reason: str | None = None,
    *,
    actor_id: int | None = None,
    actor_name: str | None = None,
    sale_ref: str | None = None,
    store_id: int | None = None,
) -> tuple[Product, InventoryLogEntry]:
    """
    Apply a signed stock change and append its log entry.

    Runs inside the caller's transaction and never commits; the sale
    coordinator relies on this to keep a whole checkout atomic.
    """
    _validate_delta(kind, quantity_delta, reason)
    product = _get_product_locked(product_id, store_id)

    updated = (
        db.session.query(Product)
        .filter(Product.id == product_id, Product.stock + quantity_delta >= 0)
        .update(
            {Product.stock: Product.stock + quantity_delta, Product.version_id: Product.version_id + 1},
            synchronize_session=False,
        )
    )
    if not updated:
        db.session.refresh(product)
        raise InsufficientStockError(product.name, product.stock, abs(quantity_delta))

    db.session.refresh(product)
    entry = InventoryLogEntry(
        product_id=product.id,
        product_name=product.name,
        kind=kind,
        quantity_delta=quantity_delta,
        previous_stock=product.stock - quantity_delta,
        current_stock=product.stock,
        reason=reason,
        actor_id=actor_id,
        actor_name=actor_name,
        sale_ref=sale_ref,
        created_at=utcnow(),
    )
    db.session.add(entry)
    db.session.flush()
    return product, entry


def _apply_and_commit(product_id: int, quantity_delta: int, kind: str, reason: str | None, **kwargs) -> InventoryLogEntry:
    def _op():
        begin_write_transaction()
        _, entry = apply_adjustment(product_id, quantity_delta, kind, reason, **kwargs)
        db.session.commit()
        return entry

    entry = run_with_retry(_op)
    notify_records_changed("product", [product_id])
    current_app.logger.info(
        "Stock %s for product %s: %+d -> %d", kind, product_id, entry.quantity_delta, entry.current_stock
    )
    return entry


def receive_stock(
    product_id: int,
    quantity: int,
    *,
    reason: str | None = None,
    actor_id: int | None = None,
    actor_name: str | None = None,
    store_id: int | None = None,
) -> InventoryLogEntry:
    """Receive goods into stock (kind=stock-in) and commit."""
    return _apply_and_commit(
        product_id,
        quantity,
        "stock-in",
        reason or "Stock received",
        actor_id=actor_id,
        actor_name=actor_name,
        store_id=store_id,
    )


def adjust_stock(
    product_id: int,
    quantity_delta: int,
    *,
    reason: str,
    actor_id: int | None = None,
    actor_name: str | None = None,
    store_id: int | None = None,
) -> InventoryLogEntry:
    """Manual correction (kind=adjustment) and commit. Cannot take stock below zero."""
    return _apply_and_commit(
        product_id,
        quantity_delta,
        "adjustment",
        reason,
        actor_id=actor_id,
        actor_name=actor_name,
        store_id=store_id,
    )


def list_inventory_logs(product_id: int, *, limit: int = 50, store_id: int | None = None) -> list[InventoryLogEntry]:
    """Newest first."""
    product = db.session.get(Product, product_id)
    if product is None or (store_id is not None and product.store_id != store_id):
        raise ProductNotFoundError(product_id)
    return (
        db.session.query(InventoryLogEntry)
        .filter_by(product_id=product_id)
        .order_by(InventoryLogEntry.id.desc())
        .limit(limit)
        .all()
    )


def verify_stock_chain(product_id: int) -> dict:
    """
    Walk a product's log oldest-first and check it against Product.stock.

    Stock present before the first entry (e.g. data imported without a log)
    is reported as opening_stock and not treated as a break.
    """
    product = db.session.get(Product, product_id)
    if product is None:
        raise ProductNotFoundError(product_id)

    entries = (
        db.session.query(InventoryLogEntry)
        .filter_by(product_id=product_id)
        .order_by(InventoryLogEntry.id.asc())
        .all()
    )

    problems = []
    running = entries[0].previous_stock if entries else product.stock
    opening_stock = running
    for entry in entries:
        if entry.previous_stock != running:
            problems.append(
                f"entry {entry.id}: previous_stock {entry.previous_stock} != prior current_stock {running}"
            )
        if entry.previous_stock + entry.quantity_delta != entry.current_stock:
            problems.append(
                f"entry {entry.id}: {entry.previous_stock} {entry.quantity_delta:+d} != {entry.current_stock}"
            )
        if entry.current_stock < 0:
            problems.append(f"entry {entry.id}: negative stock {entry.current_stock}")
        running = entry.current_stock

    if running != product.stock:
        problems.append(f"product stock {product.stock} != last logged stock {running}")

    return {
        "product_id": product.id,
        "product_name": product.name,
        "opening_stock": opening_stock,
        "entries": len(entries),
        "stock": product.stock,
        "ok": not problems,
        "problems": problems,
    }
