"""
Append-only enforcement for ledger rows.

InventoryLogEntry and CreditLedgerEntry are journals: a correction is a new
entry, never an edit. The listener below fires on every ORM flush and aborts
it before any SQL is sent when a journal row is modified or deleted.

Bulk ``Query.update()`` / Core statements bypass the ORM and therefore this
check; services never issue those against journal tables.
"""

from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.orm import Session

from ..errors import LedgerImmutableError
from .customers import CreditLedgerEntry
from .inventory import InventoryLogEntry

IMMUTABLE_MODELS = (InventoryLogEntry, CreditLedgerEntry)


def _reject_ledger_mutation(session, flush_context, instances):
    for obj in list(session.deleted):
        if isinstance(obj, IMMUTABLE_MODELS):
            raise LedgerImmutableError(
                f"{type(obj).__name__} {obj.id} cannot be deleted",
                {"entity": type(obj).__name__, "id": obj.id, "operation": "DELETE"},
            )

    for obj in list(session.dirty):
        if isinstance(obj, IMMUTABLE_MODELS) and session.is_modified(obj, include_collections=False):
            raise LedgerImmutableError(
                f"{type(obj).__name__} {obj.id} cannot be modified",
                {"entity": type(obj).__name__, "id": obj.id, "operation": "UPDATE"},
            )


def register_immutability_listeners() -> None:
    """Called once per process from create_app; repeated calls are no-ops."""
    if not event.contains(Session, "before_flush", _reject_ledger_mutation):
        event.listen(Session, "before_flush", _reject_ledger_mutation)


def unregister_immutability_listeners() -> None:
    if event.contains(Session, "before_flush", _reject_ledger_mutation):
        event.remove(Session, "before_flush", _reject_ledger_mutation)
