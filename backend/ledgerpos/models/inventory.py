from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

INVENTORY_KINDS = ("stock-in", "sale", "adjustment")


class Product(db.Model):
    """
    Product master data.

    ``stock`` is a projection of the inventory log and is only written by
    services.stock_ledger through a conditional UPDATE; it can never go
    negative (CHECK constraint backs the service rule).
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.UniqueConstraint("store_id", "barcode", name="uq_products_store_barcode"),
        db.Index("ix_products_store_status", "store_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    barcode = db.Column(db.String(64), nullable=True)

    # Authoritative storage in cents
    price_cents = db.Column(db.Integer, nullable=False)
    cost_cents = db.Column(db.Integer, nullable=True)

    stock = db.Column(db.Integer, nullable=False, default=0)
    min_stock_level = db.Column(db.Integer, nullable=False, default=0)
    unit = db.Column(db.String(16), nullable=False, default="pcs")

    status = db.Column(db.String(16), nullable=False, default="active")  # active, archived

    version_id = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    store = db.relationship("Store", backref=db.backref("products", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.min_stock_level

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock} store_id={self.store_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "name": self.name,
            "barcode": self.barcode,
            "price_cents": self.price_cents,
            "cost_cents": self.cost_cents,
            "stock": self.stock,
            "min_stock_level": self.min_stock_level,
            "unit": self.unit,
            "status": self.status,
            "is_low_stock": self.is_low_stock,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
        }


class InventoryLogEntry(db.Model):
    """
    Append-only audit row for every stock change.

    IMMUTABLE: see models.immutability. Per product, ordered by id,
    previous_stock + quantity_delta == current_stock and each
    previous_stock equals the prior row's current_stock.
    """
    __tablename__ = "inventory_logs"
    __table_args__ = (
        db.CheckConstraint("kind IN ('stock-in', 'sale', 'adjustment')", name="ck_inventory_logs_kind"),
        db.Index("ix_inventory_logs_product_id", "product_id", "id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False)
    product_name = db.Column(db.String(255), nullable=False)

    kind = db.Column(db.String(16), nullable=False, index=True)
    quantity_delta = db.Column(db.Integer, nullable=False)
    previous_stock = db.Column(db.Integer, nullable=False)
    current_stock = db.Column(db.Integer, nullable=False)

    reason = db.Column(db.String(255), nullable=True)
    actor_id = db.Column(db.Integer, nullable=True)
    actor_name = db.Column(db.String(128), nullable=True)

    # Receipt number of the sale that caused a "sale" entry
    sale_ref = db.Column(db.String(64), nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)

    product = db.relationship("Product", backref=db.backref("inventory_logs", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "kind": self.kind,
            "quantity_delta": self.quantity_delta,
            "previous_stock": self.previous_stock,
            "current_stock": self.current_stock,
            "reason": self.reason,
            "actor_id": self.actor_id,
            "actor_name": self.actor_name,
            "sale_ref": self.sale_ref,
            "created_at": to_utc_z(self.created_at),
        }
