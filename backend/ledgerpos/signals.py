# Overview: Domain event signals emitted after a database commit.

"""
Post-commit domain events.

Signals are only sent after the transaction that produced them has committed,
so receivers never observe state that could still roll back.

sale_committed
    sender: the Flask app
    kwargs: sale_id, shift_id, total_cents, payment_method

records_changed
    sender: the Flask app
    kwargs: kind ("product" | "customer" | "staff"), ids (iterable of ids)
"""

from blinker import Namespace
from flask import current_app

_signals = Namespace()

sale_committed = _signals.signal("sale-committed")
records_changed = _signals.signal("records-changed")


def notify_records_changed(kind: str, ids) -> None:
    """Emit ``records_changed`` for rows the caller has just committed."""
    records_changed.send(current_app._get_current_object(), kind=kind, ids=list(ids))
