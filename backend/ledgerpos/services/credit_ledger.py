# Overview: Append-only customer credit journal; Customer.current_balance_cents is its projection.

"""
Credit ledger.

RULES:
- Entries are appended, never edited (see models.immutability).
- charge: new balance = balance + amount, rejected if a non-zero credit
  limit would be exceeded.
- repayment: new balance = max(0, balance - tendered). The recorded
  amount_cents is the part actually applied; the surplus goes to
  unapplied_cents. SUM(amount_cents) therefore always equals the balance,
  while SUM(tendered_cents) of repayments can exceed the balance movement.

ORDERING:
The entry is flushed first, then the balance projection is moved with a
compare-and-set against the value read under the row lock. Losing that race
raises ConcurrentUpdateError, which run_with_retry turns into a retry of the
whole operation.
"""

from __future__ import annotations

from flask import current_app

from ..errors import ConcurrentUpdateError, CreditLimitExceededError, CustomerNotFoundError, InvalidAmountError
from ..extensions import db
from ..models import CreditLedgerEntry, Customer
from ..signals import notify_records_changed
from ..time_utils import utcnow
from .concurrency import begin_write_transaction, lock_for_update, run_with_retry


def _require_positive(amount_cents) -> None:
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int) or amount_cents <= 0:
        raise InvalidAmountError("Amount must be a positive number of cents", {"amount_cents": amount_cents})


def load_customer(customer_id: int, *, lock: bool = False, store_id: int | None = None) -> Customer:
    query = db.session.query(Customer).filter_by(id=customer_id)
    if lock:
        query = lock_for_update(query)
    customer = query.first()
    if customer is None:
        raise CustomerNotFoundError(customer_id)
    if store_id is not None and customer.store_id is not None and customer.store_id != store_id:
        raise CustomerNotFoundError(customer_id)
    return customer


def check_charge(customer: Customer, amount_cents: int) -> int:
    """Validate a charge without writing. Returns the would-be balance."""
    _require_positive(amount_cents)
    new_balance = customer.current_balance_cents + amount_cents
    if customer.credit_limit_cents > 0 and new_balance > customer.credit_limit_cents:
        raise CreditLimitExceededError(customer.name, customer.credit_limit_cents, new_balance)
    return new_balance


def _post_entry(
    customer: Customer,
    *,
    kind: str,
    amount_cents: int,
    new_balance: int,
    tendered_cents: int,
    unapplied_cents: int = 0,
    description: str | None = None,
    sale_ref: str | None = None,
    actor_id: int | None = None,
    actor_name: str | None = None,
) -> CreditLedgerEntry:
    read_balance = customer.current_balance_cents

    entry = CreditLedgerEntry(
        customer_id=customer.id,
        customer_name=customer.name,
        kind=kind,
        amount_cents=amount_cents,
        balance_after_cents=new_balance,
        tendered_cents=tendered_cents,
        unapplied_cents=unapplied_cents,
        description=description,
        sale_ref=sale_ref,
        actor_id=actor_id,
        actor_name=actor_name,
        created_at=utcnow(),
    )
    db.session.add(entry)
    db.session.flush()

    updated = (
        db.session.query(Customer)
        .filter(Customer.id == customer.id, Customer.current_balance_cents == read_balance)
        .update(
            {Customer.current_balance_cents: new_balance, Customer.version_id: Customer.version_id + 1},
            synchronize_session=False,
        )
    )
    if not updated:
        raise ConcurrentUpdateError(
            f"Balance for {customer.name} changed concurrently",
            {"customer_id": customer.id, "expected_balance": read_balance},
        )
    db.session.refresh(customer)
    return entry


def append_charge(
    customer_id: int,
    amount_cents: int,
    *,
    description: str | None = None,
    sale_ref: str | None = None,
    actor_id: int | None = None,
    actor_name: str | None = None,
    store_id: int | None = None,
) -> CreditLedgerEntry:
    """Charge to the customer's tab inside the caller's transaction (no commit)."""
    _require_positive(amount_cents)
    customer = load_customer(customer_id, lock=True, store_id=store_id)
    new_balance = check_charge(customer, amount_cents)
    return _post_entry(
        customer,
        kind="charge",
        amount_cents=amount_cents,
        new_balance=new_balance,
        tendered_cents=amount_cents,
        description=description,
        sale_ref=sale_ref,
        actor_id=actor_id,
        actor_name=actor_name,
    )


def append_repayment(
    customer_id: int,
    amount_cents: int,
    *,
    description: str | None = None,
    actor_id: int | None = None,
    actor_name: str | None = None,
    store_id: int | None = None,
) -> CreditLedgerEntry:
    """Record a repayment inside the caller's transaction (no commit). Never drives the balance below zero."""
    _require_positive(amount_cents)
    customer = load_customer(customer_id, lock=True, store_id=store_id)

    current = customer.current_balance_cents
    new_balance = max(0, current - amount_cents)
    applied = current - new_balance

    return _post_entry(
        customer,
        kind="repayment",
        amount_cents=-applied,
        new_balance=new_balance,
        tendered_cents=amount_cents,
        unapplied_cents=amount_cents - applied,
        description=description or "Payment received",
        actor_id=actor_id,
        actor_name=actor_name,
    )


def record_repayment(
    customer_id: int,
    amount_cents: int,
    *,
    description: str | None = None,
    actor_id: int | None = None,
    actor_name: str | None = None,
    store_id: int | None = None,
) -> CreditLedgerEntry:
    """Public repayment entry point: own write transaction, retry, commit."""
    def _op():
        begin_write_transaction()
        entry = append_repayment(
            customer_id,
            amount_cents,
            description=description,
            actor_id=actor_id,
            actor_name=actor_name,
            store_id=store_id,
        )
        db.session.commit()
        return entry

    entry = run_with_retry(_op)
    notify_records_changed("customer", [customer_id])

    if entry.unapplied_cents:
        current_app.logger.info(
            "Repayment from customer %s exceeded balance; %d cents unapplied",
            customer_id,
            entry.unapplied_cents,
        )
    return entry


def get_customer_ledger(customer_id: int, *, limit: int | None = None, store_id: int | None = None) -> list[CreditLedgerEntry]:
    """Oldest first."""
    load_customer(customer_id, store_id=store_id)
    query = (
        db.session.query(CreditLedgerEntry)
        .filter_by(customer_id=customer_id)
        .order_by(CreditLedgerEntry.id.asc())
    )
    if limit:
        query = query.limit(limit)
    return query.all()


def replay_balance(customer_id: int) -> int:
    """Rebuild the balance from tendered amounts using the charge/repayment rules."""
    balance = 0
    for entry in get_customer_ledger(customer_id):
        if entry.kind == "charge":
            balance += entry.tendered_cents
        else:
            balance = max(0, balance - entry.tendered_cents)
    return balance


def verify_customer_balance(customer_id: int) -> dict:
    customer = load_customer(customer_id)
    entries = get_customer_ledger(customer_id)

    problems = []
    running = 0
    for entry in entries:
        running += entry.amount_cents
        if running != entry.balance_after_cents:
            problems.append(f"entry {entry.id}: balance_after {entry.balance_after_cents} != running {running}")

    ledger_sum = running
    replayed = replay_balance(customer_id)
    if ledger_sum != customer.current_balance_cents:
        problems.append(f"balance {customer.current_balance_cents} != ledger sum {ledger_sum}")
    if replayed != customer.current_balance_cents:
        problems.append(f"balance {customer.current_balance_cents} != replayed {replayed}")

    return {
        "customer_id": customer.id,
        "customer_name": customer.name,
        "balance_cents": customer.current_balance_cents,
        "ledger_sum_cents": ledger_sum,
        "replayed_cents": replayed,
        "tendered_repayments_cents": sum(e.tendered_cents for e in entries if e.kind == "repayment"),
        "unapplied_cents": sum(e.unapplied_cents for e in entries),
        "entries": len(entries),
        "ok": not problems,
        "problems": problems,
    }
