from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

CUSTOMER_ORIGINS = ("counter", "staff", "portal")


class Customer(db.Model):
    """
    Customer account, including credit ("tab") tracking.

    ONE AGGREGATE: walk-in customers, staff buying on account and
    self-registered portal customers all live here; ``origin`` records the
    channel and ``staff_id`` links a staff-origin customer to its Staff row.

    ``current_balance_cents`` is a projection of CreditLedgerEntry rows and
    is only written by services.credit_ledger.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.CheckConstraint("current_balance_cents >= 0", name="ck_customers_balance_non_negative"),
        db.CheckConstraint("credit_limit_cents >= 0", name="ck_customers_limit_non_negative"),
        db.CheckConstraint("origin IN ('counter', 'staff', 'portal')", name="ck_customers_origin"),
        db.UniqueConstraint("staff_id", name="uq_customers_staff"),
        db.UniqueConstraint("store_id", "barcode", name="uq_customers_store_barcode"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=True, index=True)

    name = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    barcode = db.Column(db.String(64), nullable=True)  # loyalty card

    origin = db.Column(db.String(16), nullable=False, default="counter")
    staff_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=True)

    # 0 means unlimited
    credit_limit_cents = db.Column(db.Integer, nullable=False, default=0)
    current_balance_cents = db.Column(db.Integer, nullable=False, default=0)
    risk_tag = db.Column(db.String(8), nullable=False, default="low")  # low, high

    status = db.Column(db.String(16), nullable=False, default="active")

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    store = db.relationship("Store", backref=db.backref("customers", lazy=True))
    staff = db.relationship("Staff", backref=db.backref("customer_account", uselist=False, lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def available_credit_cents(self) -> int | None:
        if not self.credit_limit_cents:
            return None
        return max(self.credit_limit_cents - self.current_balance_cents, 0)

    def __repr__(self) -> str:
        return f"<Customer id={self.id} name={self.name!r} balance={self.current_balance_cents}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "barcode": self.barcode,
            "origin": self.origin,
            "staff_id": self.staff_id,
            "credit_limit_cents": self.credit_limit_cents,
            "current_balance_cents": self.current_balance_cents,
            "available_credit_cents": self.available_credit_cents,
            "risk_tag": self.risk_tag,
            "status": self.status,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
        }


class CreditLedgerEntry(db.Model):
    """
    Append-only credit journal.

    TYPES:
    - charge: amount_cents > 0, raises the balance
    - repayment: amount_cents <= 0, lowers the balance

    A repayment larger than the outstanding balance records only the applied
    part in amount_cents; the full tender is kept in tendered_cents and the
    surplus in unapplied_cents. Hence SUM(amount_cents) == balance.

    IMMUTABLE: Records are never updated or deleted.
    """
    __tablename__ = "credit_ledger"
    __table_args__ = (
        db.CheckConstraint("kind IN ('charge', 'repayment')", name="ck_credit_ledger_kind"),
        db.Index("ix_credit_ledger_customer_id", "customer_id", "id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False)
    customer_name = db.Column(db.String(255), nullable=False)

    kind = db.Column(db.String(16), nullable=False, index=True)
    amount_cents = db.Column(db.Integer, nullable=False)
    balance_after_cents = db.Column(db.Integer, nullable=False)

    tendered_cents = db.Column(db.Integer, nullable=False)
    unapplied_cents = db.Column(db.Integer, nullable=False, default=0)

    description = db.Column(db.String(255), nullable=True)
    sale_ref = db.Column(db.String(64), nullable=True, index=True)

    actor_id = db.Column(db.Integer, nullable=True)
    actor_name = db.Column(db.String(128), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    customer = db.relationship("Customer", backref=db.backref("ledger_entries", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "customer_name": self.customer_name,
            "kind": self.kind,
            "amount_cents": self.amount_cents,
            "balance_after_cents": self.balance_after_cents,
            "tendered_cents": self.tendered_cents,
            "unapplied_cents": self.unapplied_cents,
            "description": self.description,
            "sale_ref": self.sale_ref,
            "actor_id": self.actor_id,
            "actor_name": self.actor_name,
            "created_at": to_utc_z(self.created_at),
        }
