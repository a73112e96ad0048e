"""
Stock ledger tests.

Verifies:
- Every stock change writes exactly one log entry with a consistent chain
- Stock never goes below zero, for any kind of change
- Delta rules per kind (stock-in > 0, sale < 0, adjustment != 0 with reason)
- Log entries cannot be edited or deleted through the ORM
"""

import pytest

from ledgerpos.errors import (
    InsufficientStockError,
    InvalidAdjustmentError,
    LedgerImmutableError,
    ProductNotFoundError,
)
from ledgerpos.models import InventoryLogEntry, Product
from ledgerpos.services import stock_ledger


def _log_count(db_session, product_id):
    return db_session.query(InventoryLogEntry).filter_by(product_id=product_id).count()


class TestReceiveAndAdjust:

    def test_receive_stock_records_previous_and_current(self, db_session, make_product, owner):
        product = make_product(stock=10)

        entry = stock_ledger.receive_stock(product.id, 5, actor_id=owner.id, actor_name=owner.name)

        assert entry.kind == "stock-in"
        assert entry.quantity_delta == 5
        assert entry.previous_stock == 10
        assert entry.current_stock == 15
        assert entry.actor_name == "Olivia Owner"
        assert db_session.get(Product, product.id).stock == 15
        assert _log_count(db_session, product.id) == 2

    def test_negative_adjustment_within_stock(self, db_session, product):
        entry = stock_ledger.adjust_stock(product.id, -3, reason="Breakage")

        assert entry.kind == "adjustment"
        assert entry.previous_stock == 10
        assert entry.current_stock == 7
        assert db_session.get(Product, product.id).stock == 7

    def test_adjustment_below_zero_rejected_without_side_effects(self, db_session, product):
        with pytest.raises(InsufficientStockError) as exc_info:
            stock_ledger.adjust_stock(product.id, -11, reason="Recount")

        assert exc_info.value.product_name == "Flat White"
        assert exc_info.value.available == 10
        assert exc_info.value.requested == 11
        assert db_session.get(Product, product.id).stock == 10
        assert _log_count(db_session, product.id) == 1

    def test_adjustment_to_exactly_zero_allowed(self, db_session, product):
        entry = stock_ledger.adjust_stock(product.id, -10, reason="Write-off")
        assert entry.current_stock == 0

    @pytest.mark.parametrize(
        "delta,kind,reason",
        [
            (0, "adjustment", "Recount"),
            (3, "adjustment", ""),
            (-1, "stock-in", None),
            (0, "stock-in", None),
            (2, "sale", None),
            (1, "transfer", None),
            ("3", "adjustment", "Recount"),
        ],
    )
    def test_invalid_deltas_rejected(self, db_session, product, delta, kind, reason):
        with pytest.raises(InvalidAdjustmentError):
            stock_ledger.apply_adjustment(product.id, delta, kind, reason)
        db_session.rollback()
        assert db_session.get(Product, product.id).stock == 10

    def test_unknown_product(self, db_session, store):
        with pytest.raises(ProductNotFoundError):
            stock_ledger.receive_stock(999999, 1)

    def test_product_from_other_store_not_found(self, db_session, make_product, other_store, store):
        foreign = make_product(name="Harbour Tea", store_id=other_store.id)
        with pytest.raises(ProductNotFoundError):
            stock_ledger.adjust_stock(foreign.id, -1, reason="Breakage", store_id=store.id)


class TestInnerOperation:

    def test_apply_adjustment_does_not_commit(self, db_session, product):
        stock_ledger.apply_adjustment(product.id, -4, "sale", "Sale S-000001: 4 x Flat White", sale_ref="S-000001")
        db_session.rollback()

        assert db_session.get(Product, product.id).stock == 10
        assert _log_count(db_session, product.id) == 1

    def test_sale_entry_carries_sale_ref(self, db_session, product):
        _, entry = stock_ledger.apply_adjustment(product.id, -2, "sale", "Sale S-000009", sale_ref="S-000009")
        db_session.commit()

        assert entry.sale_ref == "S-000009"
        assert entry.current_stock == 8


class TestHistoryAndVerification:

    def test_logs_newest_first_and_chain_verifies(self, db_session, product):
        stock_ledger.receive_stock(product.id, 6)
        stock_ledger.adjust_stock(product.id, -2, reason="Expired")
        stock_ledger.apply_adjustment(product.id, -1, "sale", "Sale S-000001")
        db_session.commit()

        logs = stock_ledger.list_inventory_logs(product.id)
        assert [log.current_stock for log in logs] == [13, 14, 16, 10]

        report = stock_ledger.verify_stock_chain(product.id)
        assert report["ok"], report["problems"]
        assert report["entries"] == 4
        assert report["opening_stock"] == 0
        assert report["stock"] == 13

    def test_verify_detects_stock_written_outside_ledger(self, db_session, product):
        db_session.query(Product).filter_by(id=product.id).update({Product.stock: 42})
        db_session.commit()

        report = stock_ledger.verify_stock_chain(product.id)
        assert not report["ok"]
        assert "product stock 42 != last logged stock 10" in report["problems"]


class TestImmutability:

    def test_log_entry_cannot_be_modified(self, db_session, product):
        entry = db_session.query(InventoryLogEntry).filter_by(product_id=product.id).one()
        entry.reason = "tampered"

        with pytest.raises(LedgerImmutableError):
            db_session.flush()
        db_session.rollback()

    def test_log_entry_cannot_be_deleted(self, db_session, product):
        entry = db_session.query(InventoryLogEntry).filter_by(product_id=product.id).one()
        db_session.delete(entry)

        with pytest.raises(LedgerImmutableError):
            db_session.flush()
        db_session.rollback()
        assert _log_count(db_session, product.id) == 1
