from datetime import timedelta
from decimal import Decimal
from io import StringIO

from django.core.management import CommandError, call_command
from django.utils import timezone
import pytest

from core.domain.exceptions import (
    BusinessRuleViolationException,
    EntityNotFoundException,
    InvalidQuantityException,
    ValidationException,
)
from inventory.application.commands import ListInventoryQuery, RegisterStockEntryCommand
from inventory.infrastructure.models.inventory_models import Inventory, Product


@pytest.mark.django_db
class TestRegisterStockEntry:

    def test_creates_inventory_row_on_first_entry(self, inventory_factory, make_product):
        product = make_product("A", cost_price="0")
        service = inventory_factory.create_application_service()

        dto = service.register_stock_entry(RegisterStockEntryCommand(product.id, 5, unit_cost="4.00"))

        assert dto.quantity == 5
        assert Inventory.objects.get(product=product).quantity == 5
        assert Product.objects.get(id=product.id).cost_price == Decimal("4.00")

    def test_recomputes_weighted_average_cost(self, inventory_factory, make_product):
        product = make_product("A", quantity=10, cost_price="10.00")
        service = inventory_factory.create_application_service()

        dto = service.register_stock_entry(RegisterStockEntryCommand(product.id, 30, unit_cost="14.00"))

        assert dto.quantity == 40
        assert dto.cost_price == Decimal("13.00")

    def test_entry_without_unit_cost_keeps_cost_price(self, inventory_factory, make_product):
        product = make_product("A", quantity=1, cost_price="7.00")
        service = inventory_factory.create_application_service()

        dto = service.register_stock_entry(RegisterStockEntryCommand(product.id, 1))

        assert dto.cost_price == Decimal("7.00")

    def test_rejects_non_positive_quantity(self, inventory_factory, make_product):
        product = make_product("A", quantity=1)
        with pytest.raises(InvalidQuantityException):
            inventory_factory.create_application_service().register_stock_entry(
                RegisterStockEntryCommand(product.id, 0)
            )

    def test_unknown_product(self, inventory_factory, db):
        with pytest.raises(EntityNotFoundException):
            inventory_factory.create_application_service().register_stock_entry(
                RegisterStockEntryCommand(999, 1)
            )

    def test_limit_per_product(self, inventory_factory, make_product):
        product = make_product("A", quantity=999_999)
        with pytest.raises(BusinessRuleViolationException):
            inventory_factory.create_application_service().register_stock_entry(
                RegisterStockEntryCommand(product.id, 2)
            )
        assert Inventory.objects.get(product=product).quantity == 999_999

    def test_entry_invalidates_cached_item(self, inventory_factory, make_product):
        product = make_product("A", quantity=1)
        service = inventory_factory.create_application_service()

        assert service.get_item(product.id).quantity == 1
        service.register_stock_entry(RegisterStockEntryCommand(product.id, 2))

        assert service.get_item(product.id).quantity == 3


@pytest.mark.django_db
class TestInventoryListing:

    def test_get_item_missing(self, inventory_factory, db):
        with pytest.raises(EntityNotFoundException):
            inventory_factory.create_application_service().get_item(123)

    def test_list_is_cached_until_invalidated(self, inventory_factory, make_product):
        product = make_product("A", quantity=5)
        service = inventory_factory.create_application_service()

        first = service.list_inventory(ListInventoryQuery())
        Inventory.objects.filter(product=product).update(quantity=50)
        cached = service.list_inventory(ListInventoryQuery())
        inventory_factory.create_inventory_cache().invalidate_all_lists()
        fresh = service.list_inventory(ListInventoryQuery())

        assert first.items[0].quantity == 5
        assert cached.items[0].quantity == 5
        assert fresh.items[0].quantity == 50

    def test_per_page_is_clamped(self, inventory_factory, make_product):
        make_product("A", quantity=1)
        result = inventory_factory.create_application_service().list_inventory(
            ListInventoryQuery(per_page=1000, page=0)
        )
        assert result.meta["per_page"] == 100
        assert result.meta["current_page"] == 1

    def test_list_all_includes_totals(self, inventory_factory, make_product):
        make_product("A", quantity=2, cost_price="1.00", sale_price="2.00")
        make_product("B", quantity=3, cost_price="1.00", sale_price="2.00")

        result = inventory_factory.create_application_service().list_all_inventory()

        assert [item.sku for item in result.items] == ["A", "B"]
        assert result.meta == {"total": 2}
        assert result.totals["projected_profit"] == Decimal("5.00")
        assert result.to_dict()["items"][0]["sku"] == "A"


@pytest.mark.django_db
class TestInventoryCleanup:

    def test_cleanup_deletes_old_rows_and_refreshes_lists(self, inventory_factory, make_product):
        fresh = make_product("A", quantity=5)
        old = make_product("B", quantity=5)
        Inventory.objects.filter(product=old).update(last_updated=timezone.now() - timedelta(days=100))
        service = inventory_factory.create_application_service()
        version = inventory_factory.create_inventory_cache().list_version()

        result = service.cleanup_old_inventory()

        assert result["stale"] == 1
        assert list(Inventory.objects.values_list("product_id", flat=True)) == [fresh.id]
        assert inventory_factory.create_inventory_cache().list_version() == version + 1

    def test_rows_inside_the_window_are_kept(self, inventory_factory, make_product):
        product = make_product("A", quantity=5)
        Inventory.objects.filter(product=product).update(last_updated=timezone.now() - timedelta(days=20))

        result = inventory_factory.create_application_service().cleanup_old_inventory(days=30)

        assert result == {"orphaned": 0, "stale": 0, "clamped": 0}
        assert Inventory.objects.filter(product=product).exists()

    def test_rejects_non_positive_days(self, inventory_factory, db):
        with pytest.raises(ValidationException):
            inventory_factory.create_application_service().cleanup_old_inventory(days=0)

    def test_management_command(self, make_product):
        old = make_product("A", quantity=5)
        Inventory.objects.filter(product=old).update(last_updated=timezone.now() - timedelta(days=40))
        out = StringIO()

        call_command("cleanup_old_inventory", "--days", "30", stdout=out)

        assert "过期行 1" in out.getvalue()
        assert not Inventory.objects.filter(product=old).exists()

    def test_management_command_rejects_bad_days(self, db):
        with pytest.raises(CommandError):
            call_command("cleanup_old_inventory", "--days", "0")
