# Overview: Cached read views of products, customers and staff.

"""
Read-side views served from extensions.record_cache.

Views are plain dicts (to_dict() output), never ORM instances, so a cached
value can be shared safely between request threads and sessions. Writers
invalidate them through the records_changed signal after commit.
"""

from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db, record_cache
from ..models import Customer, Product, Staff


def _loader(model, record_id: int):
    def _load():
        obj = db.session.get(model, record_id)
        return obj.to_dict() if obj is not None else None
    return _load


def get_product_view(product_id: int) -> dict | None:
    return record_cache.get_or_load("product", product_id, _loader(Product, product_id))


def get_customer_view(customer_id: int) -> dict | None:
    return record_cache.get_or_load("customer", customer_id, _loader(Customer, customer_id))


def get_staff_view(staff_id: int) -> dict | None:
    return record_cache.get_or_load("staff", staff_id, _loader(Staff, staff_id))


def list_low_stock(store_id: int) -> list[Product]:
    """Active products at or below their minimum stock level, emptiest first."""
    return (
        db.session.query(Product)
        .filter(
            Product.store_id == store_id,
            Product.status == "active",
            Product.stock <= Product.min_stock_level,
        )
        .order_by(Product.stock.asc(), Product.name.asc())
        .all()
    )


def find_product_by_barcode(store_id: int, barcode: str) -> Product | None:
    """Scanner lookup. Barcodes are unique per store; None on a miss."""
    if not barcode:
        return None
    return db.session.query(Product).filter_by(store_id=store_id, barcode=barcode).first()


def find_customer_by_barcode(store_id: int, barcode: str) -> Customer | None:
    """Loyalty-card lookup. Customers without a store are shared by every store; None on a miss."""
    if not barcode:
        return None
    return (
        db.session.query(Customer)
        .filter(
            Customer.barcode == barcode,
            or_(Customer.store_id == store_id, Customer.store_id.is_(None)),
        )
        .order_by(Customer.store_id.is_(None), Customer.id)
        .first()
    )
