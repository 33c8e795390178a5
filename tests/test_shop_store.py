from datetime import datetime, timezone

import pytest

from jewelry_pricing.engine.models import (
    CellConfig,
    ColumnConfig,
    Metal,
    RateTableConfig,
    RateType,
    Role,
    RowConfig,
)
from jewelry_pricing.errors import PermissionDeniedError, RateInvariantError, ValidationError
from jewelry_pricing.services.shop_store import ShopStore


@pytest.fixture
def store():
    return ShopStore()


def one_cell_table(metal=Metal.GOLD, percentage=100):
    return RateTableConfig(
        metal_type=metal,
        rows=[RowConfig(0, "22K")],
        columns=[ColumnConfig(0, "Sell")],
        cells=[CellConfig(0, 0, RateType.SELLING, percentage)],
    )


class TestRates:

    def test_no_rate_before_first_write(self, store):
        assert store.get_rate("shop-1") is None

    def test_manager_can_write(self, store):
        when = datetime(2026, 10, 19, 4, 0, tzinfo=timezone.utc)
        rate = store.upsert_rate("shop-1", 69000, 70000, 80000, 82000, "ravi", Role.MANAGER, now=when)

        assert store.get_rate("shop-1") is rate
        assert rate.updated_by == "ravi"
        assert rate.updated_by_role == "manager"
        assert rate.updated_at == when
        assert rate.shop_id == "shop-1"

    def test_whole_floats_are_stored_as_ints(self, store):
        rate = store.upsert_rate("shop-1", 69000.0, 70000.0, 80000, 82000, "asha", "admin")
        assert rate.gold_buy == 69000
        assert isinstance(rate.gold_buy, int)

    @pytest.mark.parametrize("role", [Role.CLIENT, Role.PRO_CLIENT, "guest", None])
    def test_clients_cannot_write(self, store, role):
        with pytest.raises(PermissionDeniedError):
            store.upsert_rate("shop-1", 69000, 70000, 80000, 82000, "x", role)
        assert store.get_rate("shop-1") is None

    def test_selling_not_above_buying_is_rejected(self, store):
        with pytest.raises(RateInvariantError) as exc:
            store.upsert_rate("shop-1", 70000, 70000, 80000, 82000, "asha", Role.ADMIN)

        assert exc.value.status_code == 400
        assert exc.value.message == "Gold selling rate must be higher than gold buying rate"
        assert store.get_rate("shop-1") is None

    def test_fractional_rate_is_a_validation_error(self, store):
        with pytest.raises(ValidationError):
            store.upsert_rate("shop-1", 69000.5, 70000, 80000, 82000, "asha", Role.ADMIN)

    def test_failed_write_keeps_previous_rate(self, store):
        first = store.upsert_rate("shop-1", 69000, 70000, 80000, 82000, "asha", Role.ADMIN)
        with pytest.raises(RateInvariantError):
            store.upsert_rate("shop-1", 69000, 70000, 83000, 82000, "asha", Role.ADMIN)
        assert store.get_rate("shop-1") is first

    def test_last_writer_wins(self, store):
        store.upsert_rate("shop-1", 69000, 70000, 80000, 82000, "asha", Role.ADMIN)
        store.upsert_rate("shop-1", 69500, 70500, 80500, 82500, "ravi", Role.MANAGER)

        rate = store.get_rate("shop-1")
        assert rate.gold_sell == 70500
        assert rate.updated_by == "ravi"

    def test_shops_are_isolated(self, store):
        store.upsert_rate("shop-1", 69000, 70000, 80000, 82000, "asha", Role.ADMIN)
        assert store.get_rate("shop-2") is None


class TestRateTables:

    def test_table_is_created_empty_on_first_access(self, store):
        table = store.get_or_create_table("shop-1", "gold", "asha")

        assert table.id == "table-1"
        assert table.rows == [] and table.columns == [] and table.cells == []
        assert table.updated_by == "asha"
        assert store.get_or_create_table("shop-1", Metal.GOLD) is table

    def test_each_metal_has_its_own_table(self, store):
        gold = store.get_or_create_table("shop-1", "gold")
        silver = store.get_or_create_table("shop-1", "silver")

        assert gold is not silver
        assert silver.metal_type is Metal.SILVER

    def test_update_replaces_structure(self, store):
        original = store.get_or_create_table("shop-1", "gold")

        updated = store.update_table("shop-1", "gold", one_cell_table(percentage=105), "asha")

        assert updated.id == original.id
        assert updated.cells[0].percentage == 105
        assert store.get_or_create_table("shop-1", "gold") is updated

    def test_invalid_structure_is_rejected(self, store):
        structure = one_cell_table()
        structure.cells = []

        with pytest.raises(ValidationError) as exc:
            store.update_table("shop-1", "gold", structure, "asha")

        assert exc.value.message == "Invalid table structure"
        assert exc.value.errors == ["Missing cell for row 0, column 0"]
        assert store.get_or_create_table("shop-1", "gold").cells == []

    def test_orphan_cells_are_kept_with_a_warning(self, store, caplog):
        structure = one_cell_table()
        structure.cells.append(CellConfig(3, 3, RateType.BUYING, 90))

        with caplog.at_level("WARNING"):
            table = store.update_table("shop-1", "gold", structure, "asha")

        assert len(table.cells) == 2
        assert "does not match a row and column" in caplog.text
