"""
Pricing Engine - customer price and margin breakdown for jewelry
transactions.

Two paths:
- New jewelry: selling price from the metal's selling rate, marked up by
  the category's selling percentage and rounded up to the next 50.
- Old jewelry: scrap buy-back value from the metal's buying rate, at the
  category's own/other percentage and rounded down to the previous 50.

Every step is recorded in the result trace. Margins are always computed;
deciding who may see them is the caller's job.
"""
import math
from typing import Any, Optional

from .models import (
    Category,
    JewelryType,
    Metal,
    NewJewelryResult,
    OldJewelryResult,
    Rate,
    RoundingInfo,
    ScrapSource,
)
from .rounding import round_new_jewelry, round_old_jewelry
from ..errors import NotFoundError, RatesNotConfiguredError, ValidationError


def parse_weight(value: Any) -> float:
    """Parse a weight in grams; must be a positive number."""
    if isinstance(value, bool) or value is None:
        raise ValidationError("Weight is required and must be a number", field="weight")
    try:
        weight = float(value.strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        raise ValidationError("Weight must be a number", field="weight")
    if not math.isfinite(weight) or weight <= 0:
        raise ValidationError("Weight must be greater than 0", field="weight")
    return weight


def parse_source(value: Any) -> ScrapSource:
    """Parse a scrap source, case-insensitive ('own' or 'other')."""
    if isinstance(value, ScrapSource):
        return value
    if not isinstance(value, str):
        raise ValidationError("Source must be either 'own' or 'other'", field="source")
    try:
        return ScrapSource(value.strip().lower())
    except ValueError:
        raise ValidationError("Source must be either 'own' or 'other'", field="source")


class PricingEngine:
    """
    Stateless calculator for new and old jewelry prices.

    Resolution order for both paths:
    1. Check the category exists, is active and has the right type
    2. Check the shop has a rate
    3. Parse the request parameters (weight, source)
    4. Convert the quoted rate to a per-gram rate
    5. Apply percentages, round, and derive the margins
    """

    def _require_category(self, category: Optional[Category], expected: JewelryType) -> Category:
        if category is None or not category.is_active:
            raise NotFoundError("Category not found")
        if JewelryType(category.type) is not expected:
            raise NotFoundError(f"Category '{category.code}' is not a {expected.value} jewelry category")
        return category

    def _require_rate(self, rate: Optional[Rate]) -> Rate:
        if rate is None:
            raise RatesNotConfiguredError()
        return rate

    def compute_new_jewelry_price(
        self,
        category: Optional[Category],
        rate: Optional[Rate],
        weight: Any,
        role: Any,
    ) -> NewJewelryResult:
        """
        Calculate the selling price of new jewelry.

        Args:
            category: NEW category with purity and markup percentages
            rate: The shop's current rate
            weight: Weight in grams (number or numeric string)
            role: Caller role, used to pick the description

        Returns:
            NewJewelryResult with the final amount and margin breakdown
        """
        category = self._require_category(category, JewelryType.NEW)
        rate = self._require_rate(rate)
        weight = parse_weight(weight)

        metal = Metal.parse(category.metal)
        base_rate = rate.sell_rate(metal)
        divisor = Rate.per_gram_divisor(metal)
        rate_per_gram = base_rate / divisor

        actual_rate_per_gram = rate_per_gram * category.purity_percentage / 100
        selling_rate_per_gram = rate_per_gram * category.selling_percentage / 100
        buying_rate_per_gram = rate_per_gram * category.buying_from_wholesaler_percentage / 100

        before_rounding = selling_rate_per_gram * weight
        final_selling_amount = round_new_jewelry(before_rounding)

        purchase_from_wholesaler = buying_rate_per_gram * weight
        actual_value_by_purity = actual_rate_per_gram * weight

        result = NewJewelryResult(
            category_id=category.id,
            code=category.code,
            item_category=category.item_category,
            metal=metal,
            weight=weight,
            role=str(getattr(role, "value", role)),
            description=category.descriptions.for_role(role),
            base_rate=base_rate,
            rate_per_gram=rate_per_gram,
            purity_percentage=category.purity_percentage,
            selling_percentage=category.selling_percentage,
            buying_from_wholesaler_percentage=category.buying_from_wholesaler_percentage,
            wholesaler_labour_per_gram=category.wholesaler_labour_per_gram or 0,
            actual_rate_per_gram=actual_rate_per_gram,
            selling_rate_per_gram=selling_rate_per_gram,
            buying_rate_per_gram=buying_rate_per_gram,
            final_selling_amount=final_selling_amount,
            rounding=RoundingInfo(before_rounding=before_rounding, after_rounding=final_selling_amount),
            purchase_from_wholesaler=purchase_from_wholesaler,
            actual_value_by_purity=actual_value_by_purity,
            wholesaler_margin=purchase_from_wholesaler - actual_value_by_purity,
            our_margin=final_selling_amount - purchase_from_wholesaler,
        )

        result.add_trace("Category", "Resolved NEW category", category.display_name)
        result.add_trace("Rate", f"{metal.value} selling rate ÷ {divisor}", f"₹{rate_per_gram:.2f}/g")
        result.add_trace("Purity", f"{category.purity_percentage}% of rate", f"₹{actual_rate_per_gram:.2f}/g")
        result.add_trace("Selling", f"{category.selling_percentage}% of rate", f"₹{selling_rate_per_gram:.2f}/g")
        result.add_trace("Extension", f"{weight}g × ₹{selling_rate_per_gram:.2f}", f"₹{before_rounding:.2f}")
        if result.rounding.rounding_applied:
            result.add_trace("Rounding", "Rounded up to the next 50", f"₹{final_selling_amount}")
        else:
            result.add_trace("Rounding", "Already on a 50 boundary")

        return result

    def compute_old_jewelry_price(
        self,
        category: Optional[Category],
        rate: Optional[Rate],
        weight: Any,
        source: Any,
        role: Any,
    ) -> OldJewelryResult:
        """
        Calculate the scrap value paid for old jewelry.

        Args:
            category: OLD category with true purity and scrap percentages
            rate: The shop's current rate
            weight: Weight in grams (number or numeric string)
            source: 'own' (sold by this shop) or 'other', case-insensitive
            role: Caller role, used to pick the description

        Returns:
            OldJewelryResult with the scrap value and scrap margin
        """
        category = self._require_category(category, JewelryType.OLD)
        rate = self._require_rate(rate)
        weight = parse_weight(weight)
        source = parse_source(source)

        metal = Metal.parse(category.metal)
        base_rate = rate.buy_rate(metal)
        divisor = Rate.per_gram_divisor(metal)
        rate_per_gram = base_rate / divisor

        if source.value == "own":
            scrap_buy_percentage = category.scrap_buy_own_percentage
        else:
            scrap_buy_percentage = category.scrap_buy_other_percentage

        scrap_value_per_gram = rate_per_gram * scrap_buy_percentage / 100
        before_rounding = scrap_value_per_gram * weight
        total_scrap_value = round_old_jewelry(before_rounding)

        actual_value_by_purity = rate_per_gram * category.true_purity_percentage / 100 * weight

        result = OldJewelryResult(
            category_id=category.id,
            code=category.code,
            metal=metal,
            weight=weight,
            source=source,
            role=str(getattr(role, "value", role)),
            description=category.descriptions.for_role(role),
            base_rate=base_rate,
            rate_per_gram=rate_per_gram,
            true_purity_percentage=category.true_purity_percentage,
            scrap_buy_percentage=scrap_buy_percentage,
            scrap_value_per_gram=scrap_value_per_gram,
            total_scrap_value=total_scrap_value,
            rounding=RoundingInfo(before_rounding=before_rounding, after_rounding=total_scrap_value),
            actual_value_by_purity=actual_value_by_purity,
            scrap_margin=actual_value_by_purity - total_scrap_value,
            resale_enabled=bool(category.resale_enabled),
            resale_categories=list(category.resale_categories) if category.resale_enabled else [],
        )

        result.add_trace("Category", "Resolved OLD category", category.display_name)
        result.add_trace("Rate", f"{metal.value} buying rate ÷ {divisor}", f"₹{rate_per_gram:.2f}/g")
        result.add_trace("Scrap", f"{scrap_buy_percentage}% for {source.value} jewelry",
                         f"₹{scrap_value_per_gram:.2f}/g")
        result.add_trace("Extension", f"{weight}g × ₹{scrap_value_per_gram:.2f}", f"₹{before_rounding:.2f}")
        if result.rounding.rounding_applied:
            result.add_trace("Rounding", "Rounded down to the previous 50", f"₹{total_scrap_value}")
        else:
            result.add_trace("Rounding", "Already on a 50 boundary")

        return result


_default_engine = PricingEngine()


def compute_new_jewelry_price(category, rate, weight_grams, role) -> NewJewelryResult:
    return _default_engine.compute_new_jewelry_price(category, rate, weight_grams, role)


def compute_old_jewelry_price(category, rate, weight_grams, source, role) -> OldJewelryResult:
    return _default_engine.compute_old_jewelry_price(category, rate, weight_grams, source, role)
