from datetime import datetime, timedelta, timezone as dt_timezone

from django.db import connection
from django.test.utils import CaptureQueriesContext
from django.utils import timezone
import pytest

from core.domain.exceptions import InvalidQuantityException
from inventory.domain.services import StockPolicy
from inventory.infrastructure.models.inventory_models import Inventory
from inventory.infrastructure.repositories.django_inventory_query import DjangoInventoryQuery
from inventory.infrastructure.repositories.django_inventory_repository import DjangoInventoryRepository


@pytest.mark.django_db
class TestDjangoInventoryRepository:

    def test_decrement_when_enough(self, make_product):
        product = make_product("A", quantity=10)
        repository = DjangoInventoryRepository()

        assert repository.decrement_if_enough(product.id, 4) is True

        row = Inventory.objects.get(product=product)
        assert row.quantity == 6
        assert row.version == 1

    def test_decrement_when_not_enough_changes_nothing(self, make_product):
        product = make_product("A", quantity=3)
        repository = DjangoInventoryRepository()

        assert repository.decrement_if_enough(product.id, 4) is False

        row = Inventory.objects.get(product=product)
        assert row.quantity == 3
        assert row.version == 0

    def test_decrement_unknown_product(self, db):
        assert DjangoInventoryRepository().decrement_if_enough(999, 1) is False

    @pytest.mark.parametrize("quantity", [0, -2])
    def test_decrement_rejects_non_positive_quantity(self, make_product, quantity):
        product = make_product("A", quantity=3)
        with pytest.raises(InvalidQuantityException):
            DjangoInventoryRepository().decrement_if_enough(product.id, quantity)

    def test_upsert_creates_then_updates(self, make_product):
        product = make_product("A")
        repository = DjangoInventoryRepository()

        created = repository.upsert_by_product_id(product.id, 5)
        updated = repository.upsert_by_product_id(product.id, 8)

        assert created.quantity == 5
        assert updated.quantity == 8
        assert updated.version == created.version + 1

    def test_increment_respects_limit(self, make_product):
        product = make_product("A", quantity=8)
        repository = DjangoInventoryRepository(StockPolicy(max_per_product=10))

        assert repository.increment(product.id, 2) is True
        assert repository.increment(product.id, 1) is False
        assert repository.get_by_product_id(product.id).quantity == 10

    def test_decrement_is_one_conditional_update(self, make_product):
        product = make_product("A", quantity=10)
        repository = DjangoInventoryRepository()

        with CaptureQueriesContext(connection) as queries:
            repository.decrement_if_enough(product.id, 4)

        assert len(queries.captured_queries) == 1
        sql = queries.captured_queries[0]["sql"]
        assert sql.startswith("UPDATE")
        assert '"quantity" >= 4' in sql
        assert "SELECT" not in sql

    def test_cleanup_removes_stale_and_orphaned_rows(self, make_product):
        fresh = make_product("A", quantity=5)
        stale = make_product("B", quantity=5)
        Inventory.objects.filter(product=stale).update(last_updated=timezone.now() - timedelta(days=120))
        Inventory.objects.create(product_id=99999, quantity=1)

        result = DjangoInventoryRepository().cleanup_stale(timezone.now() - timedelta(days=90))

        assert result == {"orphaned": 1, "stale": 1, "clamped": 0}
        assert list(Inventory.objects.values_list("product_id", flat=True)) == [fresh.id]


@pytest.mark.django_db
class TestDjangoInventoryQuery:

    def test_rows_include_stock_values(self, make_product):
        product = make_product("A", quantity=4, cost_price="2.50", sale_price="4.00")

        row = DjangoInventoryQuery().by_product_id(product.id)

        assert row["quantity"] == 4
        assert str(row["stock_cost_value"]) == "10.00"
        assert str(row["stock_sale_value"]) == "16.00"
        assert str(row["projected_profit"]) == "6.00"

    def test_paginate_orders_by_sku_and_reports_meta(self, make_product):
        for sku in ("C", "A", "B"):
            make_product(sku, quantity=1)

        rows, meta = DjangoInventoryQuery().paginate("", per_page=2, page=1)

        assert [row["sku"] for row in rows] == ["A", "B"]
        assert meta == {"current_page": 1, "per_page": 2, "total": 3, "last_page": 2}

    def test_page_out_of_range_is_empty(self, make_product):
        make_product("A", quantity=1)
        rows, meta = DjangoInventoryQuery().paginate("", per_page=10, page=5)
        assert rows == []
        assert meta["total"] == 1

    def test_search_and_totals(self, make_product):
        make_product("RED-1", quantity=2, cost_price="1.00", sale_price="3.00", name="Red pen")
        make_product("BLU-1", quantity=5, cost_price="1.00", sale_price="2.00", name="Blue pen")

        query = DjangoInventoryQuery()

        assert [row["sku"] for row in query.list("red")] == ["RED-1"]
        totals = query.totals("")
        assert str(totals["total_cost"]) == "7.00"
        assert str(totals["total_sale"]) == "16.00"
        assert str(totals["projected_profit"]) == "9.00"


class TestMemoryInventoryRepository:

    def test_changes_are_undone_when_transaction_fails(self, memory_repository, noop_transaction_manager):
        memory_repository.upsert_by_product_id(1, 10)

        with pytest.raises(RuntimeError):
            with noop_transaction_manager.start():
                memory_repository.decrement_if_enough(1, 3)
                memory_repository.increment(1, 5)
                memory_repository.upsert_by_product_id(2, 4)
                raise RuntimeError("boom")

        assert memory_repository.quantity_of(1) == 10
        assert memory_repository.quantity_of(2) is None

    def test_changes_are_kept_after_commit(self, memory_repository, noop_transaction_manager):
        memory_repository.upsert_by_product_id(1, 10)

        with noop_transaction_manager.start():
            memory_repository.decrement_if_enough(1, 3)

        assert memory_repository.quantity_of(1) == 7

    def test_cleanup_removes_stale_rows(self, memory_repository, noop_transaction_manager):
        memory_repository.upsert_by_product_id(1, 10)
        cutoff = datetime.now(dt_timezone.utc) + timedelta(seconds=1)

        with pytest.raises(RuntimeError):
            with noop_transaction_manager.start():
                memory_repository.cleanup_stale(cutoff)
                raise RuntimeError("boom")
        assert memory_repository.quantity_of(1) == 10

        with noop_transaction_manager.start():
            result = memory_repository.cleanup_stale(cutoff)

        assert result == {"orphaned": 0, "stale": 1, "clamped": 0}
        assert memory_repository.quantity_of(1) is None
