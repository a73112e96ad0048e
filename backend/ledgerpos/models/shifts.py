from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

_OPEN_ONLY = db.text("status = 'open'")


class Shift(db.Model):
    """
    Work session for one staff member (clock-in to clock-out).

    LIFECYCLE:
    - open: sales accumulate into the running totals
    - closed: totals frozen, expected cash and variance recorded

    Running totals are only changed by services.shift_service with
    add-in-place UPDATEs; at most one open shift exists per staff member.
    """
    __tablename__ = "shifts"
    __table_args__ = (
        db.Index(
            "uq_shifts_one_open_per_staff",
            "staff_id",
            unique=True,
            sqlite_where=_OPEN_ONLY,
            postgresql_where=_OPEN_ONLY,
        ),
        db.Index("ix_shifts_store_clock_in", "store_id", "clock_in_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    staff_id = db.Column(db.Integer, db.ForeignKey("staff.id"), nullable=False, index=True)
    staff_name = db.Column(db.String(128), nullable=False)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)

    status = db.Column(db.String(16), nullable=False, default="open", index=True)  # open, closed

    clock_in_at = db.Column(db.DateTime(timezone=True), nullable=False)
    clock_out_at = db.Column(db.DateTime(timezone=True), nullable=True)
    worked_minutes = db.Column(db.Integer, nullable=True)

    # Cash tracking (all amounts in cents)
    opening_cash_cents = db.Column(db.Integer, nullable=False, default=0)
    closing_cash_cents = db.Column(db.Integer, nullable=True)
    expected_cash_cents = db.Column(db.Integer, nullable=True)  # opening + cash sales
    variance_cents = db.Column(db.Integer, nullable=True)  # closing - expected

    total_sales_cents = db.Column(db.Integer, nullable=False, default=0)
    cash_sales_cents = db.Column(db.Integer, nullable=False, default=0)
    card_sales_cents = db.Column(db.Integer, nullable=False, default=0)
    credit_sales_cents = db.Column(db.Integer, nullable=False, default=0)
    mobile_sales_cents = db.Column(db.Integer, nullable=False, default=0)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    staff = db.relationship("Staff", backref=db.backref("shifts", lazy=True))
    store = db.relationship("Store", backref=db.backref("shifts", lazy=True))
    sales = db.relationship("Sale", backref=db.backref("shift", lazy=True), lazy=True)
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_open(self) -> bool:
        return self.status == "open"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "staff_id": self.staff_id,
            "staff_name": self.staff_name,
            "store_id": self.store_id,
            "status": self.status,
            "clock_in_at": to_utc_z(self.clock_in_at),
            "clock_out_at": to_utc_z(self.clock_out_at) if self.clock_out_at else None,
            "worked_minutes": self.worked_minutes,
            "opening_cash_cents": self.opening_cash_cents,
            "closing_cash_cents": self.closing_cash_cents,
            "expected_cash_cents": self.expected_cash_cents,
            "variance_cents": self.variance_cents,
            "total_sales_cents": self.total_sales_cents,
            "cash_sales_cents": self.cash_sales_cents,
            "card_sales_cents": self.card_sales_cents,
            "credit_sales_cents": self.credit_sales_cents,
            "mobile_sales_cents": self.mobile_sales_cents,
            "version_id": self.version_id,
        }
