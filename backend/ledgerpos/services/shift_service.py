# Overview: Service-layer operations for staff shifts; running totals and cash reconciliation.

# backend/ledgerpos/services/shift_service.py

from __future__ import annotations

from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from ..errors import InvalidAmountError, NoActiveShiftError, ShiftAlreadyOpenError, ShiftOwnershipError, StaffNotFoundError
from ..extensions import db
from ..models import PAYMENT_METHODS, Sale, Shift, Staff
from ..signals import sale_committed
from ..time_utils import minutes_between, utcnow
from .concurrency import begin_write_transaction, lock_for_update, run_with_retry

"""
Shift lifecycle:

    (none) --open_shift--> open --close_shift--> closed

- At most one open shift per staff member (service check + partial unique
  index uq_shifts_one_open_per_staff).
- While open, every committed sale tagged with the shift adds its total to
  total_sales_cents and to the bucket of its payment method.
- At close: expected_cash = opening_cash + cash_sales,
  variance = closing_cash - expected_cash (negative = drawer short).
"""

BUCKET_COLUMNS = {
    "cash": Shift.cash_sales_cents,
    "card": Shift.card_sales_cents,
    "credit": Shift.credit_sales_cents,
    "mobile": Shift.mobile_sales_cents,
}


def _require_cents(value, field: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidAmountError(f"{field} must be a non-negative number of cents", {field: value})


def get_open_shift(staff_id: int) -> Shift | None:
    return db.session.query(Shift).filter_by(staff_id=staff_id, status="open").first()


def get_shift(shift_id: int, *, store_id: int | None = None) -> Shift:
    shift = db.session.get(Shift, shift_id)
    if shift is None or (store_id is not None and shift.store_id != store_id):
        raise NoActiveShiftError(shift_id)
    return shift


def list_shifts(*, store_id: int | None = None, status: str | None = None, limit: int = 50) -> list[Shift]:
    query = db.session.query(Shift)
    if store_id is not None:
        query = query.filter(Shift.store_id == store_id)
    if status:
        query = query.filter(Shift.status == status)
    return query.order_by(Shift.clock_in_at.desc(), Shift.id.desc()).limit(limit).all()


def open_shift(staff_id: int, opening_cash_cents: int = 0, store_id: int | None = None) -> Shift:
    """
    Clock a staff member in with a counted opening float.

    Raises ShiftAlreadyOpenError if the staff member already has an open
    shift. The unique index catches the case where two opens race past the
    service check.
    """
    _require_cents(opening_cash_cents, "opening_cash_cents")

    def _op():
        begin_write_transaction()
        staff = db.session.get(Staff, staff_id)
        if staff is None:
            raise StaffNotFoundError(staff_id)

        existing = get_open_shift(staff_id)
        if existing is not None:
            raise ShiftAlreadyOpenError(staff.name, existing.id)

        shift = Shift(
            staff_id=staff.id,
            staff_name=staff.name,
            store_id=store_id or staff.store_id,
            status="open",
            clock_in_at=utcnow(),
            opening_cash_cents=opening_cash_cents,
        )
        db.session.add(shift)
        try:
            db.session.flush()
        except IntegrityError:
            db.session.rollback()
            raise ShiftAlreadyOpenError(staff.name)

        db.session.commit()
        return shift

    shift = run_with_retry(_op)
    current_app.logger.info("Shift %s opened for staff %s", shift.id, staff_id)
    return shift


def record_sale(shift_id: int, amount_cents: int, payment_method: str) -> None:
    """
    Add a committed sale to an open shift's running totals.

    One add-in-place UPDATE, no read-modify-write; runs in the caller's
    transaction. Raises NoActiveShiftError if the shift is missing or closed.
    """
    bucket = BUCKET_COLUMNS.get(payment_method)
    if bucket is None:
        raise InvalidAmountError(f"Unknown payment method: {payment_method}", {"payment_method": payment_method})

    updated = (
        db.session.query(Shift)
        .filter(Shift.id == shift_id, Shift.status == "open")
        .update(
            {
                Shift.total_sales_cents: Shift.total_sales_cents + amount_cents,
                bucket: bucket + amount_cents,
                Shift.version_id: Shift.version_id + 1,
            },
            synchronize_session=False,
        )
    )
    if not updated:
        raise NoActiveShiftError(shift_id)


def on_sale_committed(sender, sale_id=None, shift_id=None, total_cents=0, payment_method=None, **extra) -> None:
    """
    sale_committed receiver.

    The sale is already committed, so a failure here must not surface to the
    caller: it is rolled back and logged for reconcile_shift_totals().
    """
    if shift_id is None:
        return

    def _op():
        begin_write_transaction()
        record_sale(shift_id, total_cents, payment_method)
        db.session.commit()

    try:
        run_with_retry(_op)
    except Exception as exc:
        db.session.rollback()
        current_app.logger.warning(
            "Shift totals not updated for sale %s on shift %s (%s cents, %s): %s",
            sale_id,
            shift_id,
            total_cents,
            payment_method,
            exc,
        )


def connect_signals(app) -> None:
    sale_committed.connect(on_sale_committed, weak=False)


def close_shift(
    shift_id: int,
    closing_cash_cents: int,
    *,
    actor_staff_id: int | None = None,
    manager_override: bool = False,
    store_id: int | None = None,
) -> Shift:
    """
    Close a shift and compute the cash variance.

    Only the shift owner may close it unless manager_override is set (the
    HTTP layer sets it for roles holding shift.close_any). With store_id set,
    a shift from another store is reported as not found.
    """
    _require_cents(closing_cash_cents, "closing_cash_cents")

    def _op():
        begin_write_transaction()
        shift = lock_for_update(db.session.query(Shift).filter_by(id=shift_id)).first()
        if shift is None or shift.status != "open" or (store_id is not None and shift.store_id != store_id):
            raise NoActiveShiftError(shift_id)

        if actor_staff_id is not None and actor_staff_id != shift.staff_id and not manager_override:
            raise ShiftOwnershipError(shift_id)

        now = utcnow()
        expected = shift.opening_cash_cents + shift.cash_sales_cents

        shift.status = "closed"
        shift.clock_out_at = now
        shift.worked_minutes = minutes_between(shift.clock_in_at, now)
        shift.closing_cash_cents = closing_cash_cents
        shift.expected_cash_cents = expected
        shift.variance_cents = closing_cash_cents - expected

        db.session.commit()
        return shift

    shift = run_with_retry(_op)
    current_app.logger.info(
        "Shift %s closed: expected %d, counted %d, variance %d",
        shift.id,
        shift.expected_cash_cents,
        shift.closing_cash_cents,
        shift.variance_cents,
    )
    return shift


def reconcile_shift_totals(shift_id: int, *, store_id: int | None = None) -> list[dict]:
    """
    Recompute a shift's totals from the sales that carry its id.

    Repair path for sales whose totals update was logged as failed. Returns
    one {"field", "recorded", "actual"} dict per corrected column; an empty
    list means the shift was already consistent. For a closed shift the
    expected cash and variance are recomputed as well.
    """
    def _op():
        begin_write_transaction()
        shift = lock_for_update(db.session.query(Shift).filter_by(id=shift_id)).first()
        if shift is None or (store_id is not None and shift.store_id != store_id):
            raise NoActiveShiftError(shift_id)

        rows = (
            db.session.query(Sale.payment_method, func.coalesce(func.sum(Sale.total_cents), 0))
            .filter(Sale.shift_id == shift_id)
            .group_by(Sale.payment_method)
            .all()
        )
        by_method = {method: int(total) for method, total in rows}

        actual = {f"{method}_sales_cents": by_method.get(method, 0) for method in PAYMENT_METHODS}
        actual["total_sales_cents"] = sum(by_method.values())
        if shift.status == "closed":
            expected = shift.opening_cash_cents + actual["cash_sales_cents"]
            actual["expected_cash_cents"] = expected
            actual["variance_cents"] = (shift.closing_cash_cents or 0) - expected

        corrections = []
        for field, value in actual.items():
            recorded = getattr(shift, field)
            if recorded != value:
                corrections.append({"field": field, "recorded": recorded, "actual": value})
                setattr(shift, field, value)

        db.session.commit()
        return corrections

    corrections = run_with_retry(_op)
    if corrections:
        current_app.logger.warning("Shift %s totals repaired: %s", shift_id, corrections)
    return corrections
