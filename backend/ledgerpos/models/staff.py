from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

STAFF_ROLES = ("owner", "manager", "cashier")


class Staff(db.Model):
    """
    Staff member operating the POS.

    Authentication happens upstream; this row only carries the identity,
    role (see policy.ROLE_CAPABILITIES) and home store of the caller.
    """
    __tablename__ = "staff"
    __table_args__ = (
        db.CheckConstraint("role IN ('owner', 'manager', 'cashier')", name="ck_staff_role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    name = db.Column(db.String(128), nullable=False)
    role = db.Column(db.String(16), nullable=False, default="cashier")
    status = db.Column(db.String(16), nullable=False, default="active")  # active, suspended

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    store = db.relationship("Store", backref=db.backref("staff", lazy=True))

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "name": self.name,
            "role": self.role,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }
