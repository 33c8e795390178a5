"""
Shop Store - current rate, rate tables and catalog per shop.

In-memory, last-writer-wins. A rate write replaces the whole tuple; a table
write replaces the whole structure. Values are always recomputed from the
latest rate at read time so nothing derived is stored.
"""
import itertools
import logging
import threading
from dataclasses import replace
from datetime import datetime
from typing import Optional

from ..engine.models import Metal, Rate, RateTableConfig, Role, parse_role, utcnow
from ..errors import PermissionDeniedError, RateInvariantError
from .catalog_service import CategoryCatalog
from .validation import check_rate_order, validate_rate_amounts, validate_rate_table

logger = logging.getLogger(__name__)


class ShopStore:
    """Per-shop state shared by the API handlers."""

    def __init__(self):
        self._lock = threading.Lock()
        self._rates: dict[str, Rate] = {}
        self._tables: dict[tuple[str, Metal], RateTableConfig] = {}
        self._table_ids = itertools.count(1)
        self.catalog = CategoryCatalog()

    # Rates

    def get_rate(self, shop_id: str) -> Optional[Rate]:
        return self._rates.get(shop_id)

    def upsert_rate(
        self,
        shop_id: str,
        gold_buy: int,
        gold_sell: int,
        silver_buy: int,
        silver_sell: int,
        updated_by: str,
        role: Role,
        now: Optional[datetime] = None,
    ) -> Rate:
        """
        Replace the shop's rate.

        Raises:
            PermissionDeniedError: role is not admin or manager
            ValidationError: a rate is missing, fractional or below 1
            RateInvariantError: a selling rate does not exceed its buying rate
        """
        parsed = parse_role(role)
        if parsed not in (Role.ADMIN, Role.MANAGER):
            raise PermissionDeniedError("Only shop admin and manager can update rates")

        validate_rate_amounts(gold_buy, gold_sell, silver_buy, silver_sell).raise_if_invalid()
        order = check_rate_order(gold_buy, gold_sell, silver_buy, silver_sell)
        if not order.valid:
            raise RateInvariantError(order.errors[0], details={"errors": order.errors})

        rate = Rate(
            gold_buy=int(gold_buy),
            gold_sell=int(gold_sell),
            silver_buy=int(silver_buy),
            silver_sell=int(silver_sell),
            updated_by=updated_by,
            updated_by_role=parsed.value,
            updated_at=now or utcnow(),
            shop_id=shop_id,
        )
        with self._lock:
            self._rates[shop_id] = rate

        logger.info("Rates updated for shop %s by %s (%s)", shop_id, updated_by, parsed.value)
        return rate

    # Rate tables

    def get_or_create_table(self, shop_id: str, metal: Metal, username: str = "") -> RateTableConfig:
        """The shop's table for a metal, created empty on first access."""
        key = (shop_id, Metal.parse(metal))
        with self._lock:
            table = self._tables.get(key)
            if table is None:
                table = RateTableConfig.empty(shop_id, key[1], updated_by=username,
                                              table_id=f"table-{next(self._table_ids)}")
                self._tables[key] = table
        return table

    def update_table(self, shop_id: str, metal: Metal, structure: RateTableConfig, username: str) -> RateTableConfig:
        """Validate and replace the rows, columns and cells of a table."""
        current = self.get_or_create_table(shop_id, metal, username)
        candidate = replace(
            current,
            value_per_gram=structure.value_per_gram,
            rows=list(structure.rows),
            columns=list(structure.columns),
            cells=list(structure.cells),
            updated_at=utcnow(),
            updated_by=username,
        )

        validation = validate_rate_table(candidate)
        validation.raise_if_invalid("Invalid table structure")
        for warning in validation.warnings:
            logger.warning("Rate table %s for shop %s: %s", candidate.id, shop_id, warning)

        with self._lock:
            self._tables[(shop_id, Metal.parse(metal))] = candidate

        logger.info("%s rate table updated for shop %s by %s (%d x %d)",
                    Metal.parse(metal).value.title(), shop_id, username,
                    len(candidate.rows), len(candidate.columns))
        return candidate
