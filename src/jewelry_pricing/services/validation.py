"""
Validation Service - checks rates, categories and rate tables before they
are stored.

Validators never raise; they collect every problem into a ValidationResult
so the caller can report all field errors at once. The computation engine
assumes its inputs already passed these checks.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Optional

from ..engine.models import (
    Category,
    JewelryType,
    Metal,
    RateTableConfig,
    RateType,
    ResaleRateType,
    RoundDirection,
    RoundingType,
)
from ..errors import ValidationError

MAX_CODE_LENGTH = 100
MAX_ITEM_CATEGORY_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
MAX_POLISH_COST_PERCENTAGE = 50


@dataclass
class ValidationResult:
    """Result of a validation pass."""
    valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def error(self, message: str):
        self.errors.append(message)
        self.valid = False

    def raise_if_invalid(self, message: str = "Validation failed"):
        if not self.valid:
            raise ValidationError(message, errors=list(self.errors))


def _is_whole_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def validate_rate_amounts(gold_buy: Any, gold_sell: Any, silver_buy: Any, silver_sell: Any) -> ValidationResult:
    """Each rate must be a positive whole number of rupees."""
    result = ValidationResult()
    values = {
        'Gold buying rate': gold_buy,
        'Gold selling rate': gold_sell,
        'Silver buying rate': silver_buy,
        'Silver selling rate': silver_sell,
    }

    for label, value in values.items():
        if value is None:
            result.error(f"{label} is required")
        elif not _is_whole_number(value):
            result.error(f"{label} must be a whole number")
        elif value < 1:
            result.error(f"{label} must be at least 1")

    return result


def check_rate_order(gold_buy: int, gold_sell: int, silver_buy: int, silver_sell: int) -> ValidationResult:
    """Selling rates must be strictly higher than buying rates."""
    result = ValidationResult()
    if gold_sell <= gold_buy:
        result.error("Gold selling rate must be higher than gold buying rate")
    if silver_sell <= silver_buy:
        result.error("Silver selling rate must be higher than silver buying rate")

    return result


def validate_rate_values(gold_buy: Any, gold_sell: Any, silver_buy: Any, silver_sell: Any) -> ValidationResult:
    """Validate a rate tuple: positive whole rupees, selling above buying."""
    result = validate_rate_amounts(gold_buy, gold_sell, silver_buy, silver_sell)
    if result.valid:
        result = check_rate_order(gold_buy, gold_sell, silver_buy, silver_sell)
    return result


def _check_percentage(result: ValidationResult, label: str, value: Optional[float],
                      minimum: float, maximum: Optional[float] = None):
    if value is None:
        result.error(f"{label} is required")
        return
    if not _is_number(value):
        result.error(f"{label} must be a number")
        return
    if value < minimum:
        result.error(f"{label} must be at least {minimum:g}")
    if maximum is not None and value > maximum:
        result.error(f"{label} cannot exceed {maximum:g}")


def validate_category(category: Category) -> ValidationResult:
    """Validate a category definition for its jewelry type."""
    result = ValidationResult()

    try:
        kind = JewelryType(category.type)
    except ValueError:
        result.error("Type must be either NEW or OLD")
        kind = None

    try:
        Metal.parse(category.metal)
    except ValueError:
        result.error("Metal must be either GOLD or SILVER")

    code = (category.code or "").strip()
    if not code:
        result.error("Code is required")
    elif len(code) > MAX_CODE_LENGTH:
        result.error(f"Code must be between 1 and {MAX_CODE_LENGTH} characters")

    for slot, text in category.descriptions.to_dict().items():
        if text and len(text.strip()) > MAX_DESCRIPTION_LENGTH:
            result.error(f"{slot} description cannot exceed {MAX_DESCRIPTION_LENGTH} characters")

    if kind is JewelryType.NEW:
        _validate_new_fields(category, result)
    elif kind is JewelryType.OLD:
        _validate_old_fields(category, result)

    return result


def _validate_new_fields(category: Category, result: ValidationResult):
    item_category = (category.item_category or "").strip()
    if not item_category:
        result.error("Item category is required for NEW jewelry")
    elif len(item_category) > MAX_ITEM_CATEGORY_LENGTH:
        result.error(f"Item category must be between 1 and {MAX_ITEM_CATEGORY_LENGTH} characters")

    _check_percentage(result, "Purity percentage", category.purity_percentage, 1, 100)
    _check_percentage(result, "Buying percentage", category.buying_from_wholesaler_percentage, 1)
    _check_percentage(result, "Selling percentage", category.selling_percentage, 1)
    _check_percentage(result, "Wholesaler labour per gram", category.wholesaler_labour_per_gram, 0)


def _validate_old_fields(category: Category, result: ValidationResult):
    _check_percentage(result, "True purity percentage", category.true_purity_percentage, 1, 100)
    _check_percentage(result, "Scrap buy own percentage", category.scrap_buy_own_percentage, 1)
    _check_percentage(result, "Scrap buy other percentage", category.scrap_buy_other_percentage, 1)

    if category.resale_enabled and not category.resale_categories:
        result.error("At least one resale category is required when resale is enabled")
    if not category.resale_enabled and category.resale_categories:
        result.error("Resale categories are only allowed when resale is enabled")

    seen = set()
    for resale in category.resale_categories:
        name = (resale.item_category or "").strip()
        label = f"Resale category '{name}'" if name else "Resale category"
        if not name:
            result.error("Resale item category is required")
        elif name.lower() in seen:
            result.error(f"Duplicate category name: {name}")
        seen.add(name.lower())

        _check_percentage(result, f"{label} direct resale percentage", resale.direct_resale_percentage, 1)
        _check_percentage(result, f"{label} buying from wholesaler percentage",
                          resale.buying_from_wholesaler_percentage, 1)
        _check_percentage(result, f"{label} wholesaler labour per gram", resale.wholesaler_labour_per_gram, 0)
        try:
            ResaleRateType(resale.direct_resale_rate_type)
        except ValueError:
            result.error(f"{label} direct resale rate type must be SELLING or BUYING")

        if resale.polish_repair_enabled:
            _check_percentage(result, f"{label} polish/repair resale percentage",
                              resale.polish_repair_resale_percentage, 1)
            _check_percentage(result, f"{label} polish/repair cost percentage",
                              resale.polish_repair_cost_percentage, 0, MAX_POLISH_COST_PERCENTAGE)
            if resale.polish_repair_labour_per_gram is not None:
                _check_percentage(result, f"{label} polish/repair labour per gram",
                                  resale.polish_repair_labour_per_gram, 0)
            if resale.polish_repair_rate_type is not None:
                try:
                    ResaleRateType(resale.polish_repair_rate_type)
                except ValueError:
                    result.error(f"{label} polish/repair rate type must be SELLING or BUYING")


def validate_rate_table(table: RateTableConfig) -> ValidationResult:
    """
    Validate a rate table structure.

    Every (row, column) pair needs exactly one cell. Cells pointing at a
    row or column that does not exist are only warned about since they
    evaluate to an empty value.
    """
    result = ValidationResult()

    try:
        Metal.parse(table.metal_type)
    except ValueError:
        result.error("Invalid metal type. Must be gold or silver")

    if not _is_number(table.value_per_gram) or table.value_per_gram <= 0:
        result.error("Value per gram must be greater than 0")

    row_indices = [r.row_index for r in table.rows]
    col_indices = [c.col_index for c in table.columns]
    if len(set(row_indices)) != len(row_indices):
        result.error("Row indices must be unique")
    if len(set(col_indices)) != len(col_indices):
        result.error("Column indices must be unique")

    for col in table.columns:
        try:
            RoundDirection(col.round_direction)
            RoundingType(col.rounding_type)
        except ValueError:
            result.error(f"Column {col.col_index} has an invalid rounding configuration")

    counts: dict[tuple[int, int], int] = {}
    for cell in table.cells:
        key = (cell.row_index, cell.col_index)
        counts[key] = counts.get(key, 0) + 1

        try:
            RateType(cell.use_rate)
        except ValueError:
            result.error(f"Cell {key} must use the buying or selling rate")
        if not _is_number(cell.percentage) or cell.percentage <= 0:
            result.error(f"Cell {key} percentage must be greater than 0")
        if cell.row_index not in row_indices or cell.col_index not in col_indices:
            result.warnings.append(f"Cell {key} does not match a row and column and will be ignored")

    for row_index in set(row_indices):
        for col_index in set(col_indices):
            found = counts.get((row_index, col_index), 0)
            if found == 0:
                result.error(f"Missing cell for row {row_index}, column {col_index}")
            elif found > 1:
                result.error(f"Duplicate cells for row {row_index}, column {col_index}")

    return result

