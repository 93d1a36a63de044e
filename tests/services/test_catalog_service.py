"""Tests for CatalogService: mechanics, suppliers and parts."""

from datetime import date
from decimal import Decimal

import pytest

from garage_kernel.exceptions import (
    DuplicateSkuError,
    EntityInUseError,
    EntityNotFoundError,
    NegativeValueError,
    RequiredFieldError,
)
from tests.factories import part_line


class TestMechanics:

    def test_create_mechanic(self, catalog_service):
        mechanic = catalog_service.create_mechanic(
            "Carlos Silva", date(2015, 3, 10), Decimal("45.00"),
        )
        assert mechanic.hourly_rate == Decimal("45.00")
        assert mechanic.hire_date == date(2015, 3, 10)
        assert catalog_service.get_mechanic(mechanic.id) == mechanic

    def test_default_rate_is_zero(self, catalog_service):
        assert catalog_service.create_mechanic("Trainee").hourly_rate == Decimal("0")

    def test_negative_rate_rejected(self, catalog_service):
        with pytest.raises(NegativeValueError) as exc_info:
            catalog_service.create_mechanic("Bad", hourly_rate="-1")
        assert exc_info.value.field == "hourly_rate"

    def test_update_hourly_rate(self, catalog_service, mechanic, captured_logs):
        updated = catalog_service.update_hourly_rate(mechanic.id, "60.00")
        assert updated.hourly_rate == Decimal("60.00")
        record = next(r for r in captured_logs() if r["message"] == "mechanic_rate_changed")
        assert record["old_rate"] == "50.00"
        assert record["new_rate"] == "60.00"

    def test_update_negative_rate_rejected(self, catalog_service, mechanic):
        with pytest.raises(NegativeValueError):
            catalog_service.update_hourly_rate(mechanic.id, Decimal("-5"))
        assert catalog_service.get_mechanic(mechanic.id).hourly_rate == Decimal("50.00")

    def test_list_mechanics(self, catalog_service):
        first = catalog_service.create_mechanic("A")
        second = catalog_service.create_mechanic("B")
        assert [m.id for m in catalog_service.list_mechanics()] == [first.id, second.id]


class TestSuppliersAndParts:

    def test_create_supplier(self, catalog_service):
        supplier = catalog_service.create_supplier(" AutoPeças ", "  ")
        assert supplier.name == "AutoPeças"
        assert supplier.contact is None
        assert catalog_service.get_supplier(supplier.id) == supplier

    def test_blank_supplier_name(self, catalog_service):
        with pytest.raises(RequiredFieldError):
            catalog_service.create_supplier("")

    def test_create_part(self, catalog_service, supplier):
        part = catalog_service.create_part(
            supplier.id, "AP-001", "Filtro de Óleo", "Filtro 1.8", "10.50", "25.00",
        )
        assert part.cost_price == Decimal("10.50")
        assert part.sale_price == Decimal("25.00")
        assert catalog_service.get_part_by_sku(" AP-001 ") == part

    def test_unknown_supplier(self, catalog_service):
        with pytest.raises(EntityNotFoundError) as exc_info:
            catalog_service.create_part(999_999, "X-1", "Thing")
        assert exc_info.value.entity == "Supplier"

    def test_duplicate_sku(self, catalog_service, supplier):
        catalog_service.create_part(supplier.id, "AP-001", "One")
        with pytest.raises(DuplicateSkuError) as exc_info:
            catalog_service.create_part(supplier.id, "AP-001", "Two")
        assert exc_info.value.sku == "AP-001"

    @pytest.mark.parametrize("field", ["cost_price", "sale_price"])
    def test_negative_prices(self, catalog_service, supplier, field):
        with pytest.raises(NegativeValueError) as exc_info:
            catalog_service.create_part(supplier.id, "X-1", "Thing", **{field: "-0.01"})
        assert exc_info.value.field == field

    def test_unknown_sku(self, catalog_service):
        with pytest.raises(EntityNotFoundError) as exc_info:
            catalog_service.get_part_by_sku("NOPE")
        assert exc_info.value.entity_id == "NOPE"


class TestUpdateSupplier:

    def test_rename_keeps_contact(self, catalog_service, supplier):
        updated = catalog_service.update_supplier(supplier.id, name=" Distribuidora Sul ")
        assert updated.name == "Distribuidora Sul"
        assert updated.contact == supplier.contact
        assert catalog_service.get_supplier(supplier.id) == updated

    def test_none_clears_contact(self, catalog_service, supplier):
        assert catalog_service.update_supplier(supplier.id, contact=None).contact is None

    def test_blank_name_rejected(self, catalog_service, supplier):
        with pytest.raises(RequiredFieldError):
            catalog_service.update_supplier(supplier.id, name="")

    def test_unknown_supplier(self, catalog_service):
        with pytest.raises(EntityNotFoundError):
            catalog_service.update_supplier(999_999, name="Ghost")


class TestUpdatePart:

    def test_prices_and_name(self, catalog_service, stocked_part, captured_logs):
        updated = catalog_service.update_part(
            stocked_part.id, name="Spark Plug Iridium", cost_price="9.10", sale_price=Decimal("24.90"),
        )
        assert updated.name == "Spark Plug Iridium"
        assert updated.cost_price == Decimal("9.10")
        assert updated.sale_price == Decimal("24.90")
        assert updated.sku == stocked_part.sku
        assert catalog_service.get_part(stocked_part.id) == updated

        record = next(r for r in captured_logs() if r["message"] == "part_updated")
        assert record["fields"] == ["name", "cost_price", "sale_price"]

    @pytest.mark.parametrize("field", ["cost_price", "sale_price"])
    def test_negative_prices(self, catalog_service, stocked_part, field):
        with pytest.raises(NegativeValueError) as exc_info:
            catalog_service.update_part(stocked_part.id, **{field: "-0.01"})
        assert exc_info.value.field == field
        assert catalog_service.get_part(stocked_part.id) == stocked_part

    def test_zero_price_allowed(self, catalog_service, stocked_part):
        assert catalog_service.update_part(stocked_part.id, sale_price="0").sale_price == Decimal("0")

    def test_move_to_other_supplier(self, catalog_service, stocked_part):
        other = catalog_service.create_supplier("Other Supplier")
        assert catalog_service.update_part(stocked_part.id, supplier_id=other.id).supplier_id == other.id

    def test_unknown_supplier(self, catalog_service, stocked_part):
        with pytest.raises(EntityNotFoundError) as exc_info:
            catalog_service.update_part(stocked_part.id, supplier_id=999_999, name="Moved")
        assert exc_info.value.entity == "Supplier"
        assert catalog_service.get_part(stocked_part.id) == stocked_part

    def test_unknown_part(self, catalog_service):
        with pytest.raises(EntityNotFoundError) as exc_info:
            catalog_service.update_part(999_999, name="Nothing")
        assert exc_info.value.entity == "Part"

    def test_sku_taken_by_other_part(self, catalog_service, supplier, stocked_part):
        catalog_service.create_part(supplier.id, "AP-002", "Other")
        with pytest.raises(DuplicateSkuError):
            catalog_service.update_part(stocked_part.id, sku="AP-002")

    def test_keeping_own_sku_allowed(self, catalog_service, stocked_part):
        assert catalog_service.update_part(stocked_part.id, sku=stocked_part.sku).sku == stocked_part.sku

    def test_blank_name_rejected(self, catalog_service, stocked_part):
        with pytest.raises(RequiredFieldError):
            catalog_service.update_part(stocked_part.id, name=" ")

    def test_existing_items_keep_their_price(
        self, catalog_service, work_order_service, work_order, stocked_part
    ):
        item = work_order_service.add_item(work_order.id, part_line(stocked_part.id, price="20.00"))
        catalog_service.update_part(stocked_part.id, sale_price="35.00")

        [listed] = work_order_service.list_items(work_order.id)
        assert listed.unit_price == item.unit_price == Decimal("20.00")


class TestDeletePart:

    def test_removes_inventory_record(self, catalog_service, inventory_ledger, stocked_part):
        catalog_service.delete_part(stocked_part.id)
        with pytest.raises(EntityNotFoundError):
            catalog_service.get_part(stocked_part.id)

    def test_part_on_work_order_is_in_use(
        self, catalog_service, work_order_service, work_order, stocked_part
    ):
        work_order_service.add_item(work_order.id, part_line(stocked_part.id))
        with pytest.raises(EntityInUseError) as exc_info:
            catalog_service.delete_part(stocked_part.id)
        assert exc_info.value.entity_id == stocked_part.id
        assert catalog_service.get_part(stocked_part.id) == stocked_part
