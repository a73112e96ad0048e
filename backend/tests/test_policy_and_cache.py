"""
Capability table and record cache tests.
"""

from types import SimpleNamespace

import pytest
from sqlalchemy.exc import IntegrityError

from ledgerpos import cache as cache_module
from ledgerpos import policy
from ledgerpos.cache import RecordCache
from ledgerpos.errors import InsufficientStockError
from ledgerpos.extensions import record_cache
from ledgerpos.models import Customer, Product
from ledgerpos.services import catalog_service, stock_ledger
from ledgerpos.signals import records_changed


class TestPolicy:

    @pytest.mark.parametrize("role", ["owner", "manager"])
    def test_owner_and_manager_hold_every_capability(self, role):
        assert policy.capabilities_for(role) == policy.ALL_CAPABILITIES

    @pytest.mark.parametrize(
        "capability,allowed",
        [
            (policy.SALE_CREATE, True),
            (policy.SALE_VIEW, True),
            (policy.INVENTORY_VIEW, True),
            (policy.CREDIT_REPAY, True),
            (policy.SHIFT_OPEN, True),
            (policy.INVENTORY_ADJUST, False),
            (policy.SHIFT_CLOSE_ANY, False),
        ],
    )
    def test_cashier_capabilities(self, capability, allowed):
        assert policy.role_can("cashier", capability) is allowed

    def test_unknown_role_has_nothing(self):
        assert not policy.role_can("auditor", policy.SALE_VIEW)


class TestRecordCache:

    def test_hit_after_first_load(self):
        cache = RecordCache(ttl_seconds=60)
        calls = []

        def loader():
            calls.append(1)
            return {"id": 1}

        assert cache.get_or_load("product", 1, loader) == {"id": 1}
        assert cache.get_or_load("product", 1, loader) == {"id": 1}
        assert len(calls) == 1
        assert cache.stats() == {"size": 1, "hits": 1, "misses": 1}

    def test_missing_records_are_not_cached(self):
        cache = RecordCache()
        assert cache.get_or_load("staff", 9, lambda: None) is None
        assert cache.stats()["size"] == 0

    def test_expired_entries_reload(self, monkeypatch):
        cache = RecordCache(ttl_seconds=10)
        clock = [1000.0]
        monkeypatch.setattr(cache_module, "time", SimpleNamespace(monotonic=lambda: clock[0]))

        cache.get_or_load("customer", 3, lambda: "old")
        clock[0] += 11
        assert cache.get_or_load("customer", 3, lambda: "new") == "new"

    def test_invalidate_only_named_keys(self):
        cache = RecordCache()
        cache.get_or_load("product", 1, lambda: "a")
        cache.get_or_load("product", 2, lambda: "b")
        cache.get_or_load("customer", 1, lambda: "c")

        cache.invalidate("product", [1])

        assert cache.get_or_load("product", 1, lambda: "a2") == "a2"
        assert cache.get_or_load("product", 2, lambda: "b2") == "b"
        assert cache.get_or_load("customer", 1, lambda: "c2") == "c"


class TestCommitDrivenInvalidation:

    def test_stock_change_refreshes_cached_product_view(self, db_session, product):
        assert catalog_service.get_product_view(product.id)["stock"] == 10

        stock_ledger.adjust_stock(product.id, -4, reason="Breakage")

        assert catalog_service.get_product_view(product.id)["stock"] == 6

    def test_rejected_change_emits_nothing(self, app, db_session, product):
        received = []

        def receiver(sender, **kwargs):
            received.append(kwargs)

        with records_changed.connected_to(receiver):
            with pytest.raises(InsufficientStockError):
                stock_ledger.adjust_stock(product.id, -50, reason="Recount")

        assert received == []

    def test_low_stock_listing(self, db_session, make_product):
        make_product(name="Plenty", stock=50, min_stock_level=5)
        low = make_product(name="Almost Out", stock=2, min_stock_level=5)
        empty = make_product(name="Gone", stock=0, min_stock_level=1)
        make_product(name="Retired", stock=0, min_stock_level=1, status="archived")

        names = [p.name for p in catalog_service.list_low_stock(low.store_id)]
        assert names == [empty.name, low.name]

    def test_cache_entries_are_plain_dicts(self, db_session, product):
        view = catalog_service.get_product_view(product.id)
        assert isinstance(view, dict)
        assert not isinstance(view, Product)
        assert record_cache.stats()["size"] >= 1

    def test_commit_during_load_is_not_overwritten(self, db_session, product):
        def load_then_commit():
            stale = db_session.get(Product, product.id).to_dict()
            stock_ledger.receive_stock(product.id, 5, reason="Delivery")
            return stale

        stale = record_cache.get_or_load("product", product.id, load_then_commit)
        assert stale["stock"] == 10

        assert catalog_service.get_product_view(product.id)["stock"] == 15


class TestInvalidationRace:

    def test_invalidate_while_loading_skips_store(self):
        cache = RecordCache()

        def loader():
            cache.invalidate("product", [1])
            return "stale"

        assert cache.get_or_load("product", 1, loader) == "stale"
        assert cache.stats()["size"] == 0
        assert cache.get_or_load("product", 1, lambda: "fresh") == "fresh"

    def test_clear_while_loading_skips_store(self):
        cache = RecordCache()

        def loader():
            cache.clear()
            return "stale"

        cache.get_or_load("customer", 2, loader)
        assert cache.get_or_load("customer", 2, lambda: "fresh") == "fresh"


class TestBarcodeLookup:

    def test_product_barcode_scoped_to_store(self, db_session, store, other_store, make_product):
        here = make_product(name="Flat White", barcode="9300601")
        there = make_product(name="Harbour Flat White", barcode="9300601", store_id=other_store.id)

        assert catalog_service.find_product_by_barcode(store.id, "9300601").id == here.id
        assert catalog_service.find_product_by_barcode(other_store.id, "9300601").id == there.id
        assert catalog_service.find_product_by_barcode(store.id, "0000000") is None
        assert catalog_service.find_product_by_barcode(store.id, "") is None

    def test_duplicate_barcode_in_one_store_rejected(self, db_session, store, make_product):
        make_product(name="Flat White", barcode="9300601")
        db_session.add(Product(store_id=store.id, name="Long Black", price_cents=400, barcode="9300601"))

        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_customer_barcode(self, db_session, store, other_store, make_customer):
        regular = make_customer(name="Dana Regular", barcode="LC-0042")
        shared = Customer(store_id=None, name="Head Office", barcode="LC-HQ")
        db_session.add(shared)
        db_session.commit()

        assert catalog_service.find_customer_by_barcode(store.id, "LC-0042").id == regular.id
        assert catalog_service.find_customer_by_barcode(other_store.id, "LC-0042") is None
        assert catalog_service.find_customer_by_barcode(other_store.id, "LC-HQ").id == shared.id
        assert catalog_service.find_customer_by_barcode(store.id, "LC-0000") is None
