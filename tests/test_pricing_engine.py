from dataclasses import replace

import pytest

from jewelry_pricing.engine import PricingEngine, compute_new_jewelry_price, compute_old_jewelry_price
from jewelry_pricing.engine.models import Category, JewelryType, Metal, Role, ScrapSource
from jewelry_pricing.errors import NotFoundError, RatesNotConfiguredError, ValidationError


@pytest.fixture(scope="function")
def engine():
    return PricingEngine()


def test_new_jewelry_reference_example(engine, new_gold_chain, rate):
    """
    70,000 per 10 g at 105% for 10 g.
    ratePerGram 7000, sellingRatePerGram 7350, 73500 before rounding.
    """
    result = engine.compute_new_jewelry_price(new_gold_chain, rate, 10, Role.ADMIN)

    assert result.base_rate == 70000
    assert result.rate_per_gram == 7000
    assert result.selling_rate_per_gram == 7350
    assert result.rounding.before_rounding == pytest.approx(73500)
    assert result.final_selling_amount == 73500
    assert not result.rounding.rounding_applied

    assert result.buying_rate_per_gram == pytest.approx(6650)
    assert result.actual_rate_per_gram == pytest.approx(6412)
    assert result.purchase_from_wholesaler == pytest.approx(66500)
    assert result.actual_value_by_purity == pytest.approx(64120)
    assert result.wholesaler_margin == pytest.approx(2380)
    assert result.our_margin == pytest.approx(7000)
    assert result.making_charges_per_gram == pytest.approx(938)


def test_old_jewelry_reference_example(engine, old_gold, rate):
    """69,000 per 10 g at 90% own-scrap for 10 g gives 62100."""
    result = engine.compute_old_jewelry_price(old_gold, rate, 10, "own", Role.ADMIN)

    assert result.base_rate == 69000
    assert result.rate_per_gram == 6900
    assert result.scrap_buy_percentage == 90
    assert result.scrap_value_per_gram == 6210
    assert result.total_scrap_value == 62100
    assert result.actual_value_by_purity == pytest.approx(63204)
    assert result.scrap_margin == pytest.approx(1104)


def test_new_jewelry_rounds_up_to_next_fifty(engine, new_gold_chain, rate):
    result = engine.compute_new_jewelry_price(new_gold_chain, rate, 10.37, Role.CLIENT)

    assert result.rounding.before_rounding == pytest.approx(76219.5)
    assert result.final_selling_amount == 76250
    assert result.rounding.rounding_applied
    assert "Rounded up to the next 50" in result.get_trace_text()


def test_new_jewelry_margins_are_not_clamped(engine, new_gold_chain, rate):
    """Selling below the wholesale price leaves a negative margin."""
    category = replace(new_gold_chain, selling_percentage=90)

    result = engine.compute_new_jewelry_price(category, rate, 10, Role.ADMIN)

    assert result.final_selling_amount == 63000
    assert result.purchase_from_wholesaler == pytest.approx(66500)
    assert result.final_selling_amount < result.purchase_from_wholesaler
    assert result.our_margin == pytest.approx(-3500)


def test_silver_uses_per_kilogram_divisor(engine, new_gold_chain, rate):
    category = replace(new_gold_chain, metal=Metal.SILVER, selling_percentage=110)

    result = engine.compute_new_jewelry_price(category, rate, 100, Role.ADMIN)

    assert result.rate_per_gram == 82
    assert result.selling_rate_per_gram == pytest.approx(90.2)
    assert result.final_selling_amount == 9050


def test_old_jewelry_source_is_case_insensitive(engine, old_gold, rate):
    own = engine.compute_old_jewelry_price(old_gold, rate, 10, "OWN", Role.ADMIN)
    other = engine.compute_old_jewelry_price(old_gold, rate, 10, " Other ", Role.ADMIN)

    assert own.source is ScrapSource.OWN
    assert other.source is ScrapSource.OTHER
    assert other.scrap_buy_percentage == 85
    assert other.total_scrap_value == 58650


def test_old_jewelry_rounds_down(engine, old_gold, rate):
    result = engine.compute_old_jewelry_price(old_gold, rate, 10.01, "own", Role.ADMIN)

    assert result.rounding.before_rounding == pytest.approx(62162.1)
    assert result.total_scrap_value == 62150
    assert result.rounding.rounding_applied


def test_weight_accepts_numeric_strings(engine, new_gold_chain, rate):
    result = engine.compute_new_jewelry_price(new_gold_chain, rate, " 10 ", Role.ADMIN)
    assert result.weight == 10.0
    assert result.final_selling_amount == 73500


@pytest.mark.parametrize("weight", [0, -1, "abc", None, "", True, float("inf")])
def test_invalid_weight_is_a_validation_error(engine, new_gold_chain, rate, weight):
    with pytest.raises(ValidationError) as exc:
        engine.compute_new_jewelry_price(new_gold_chain, rate, weight, Role.ADMIN)
    assert exc.value.field == "weight"
    assert exc.value.status_code == 400


@pytest.mark.parametrize("source", ["mine", "", None, 1])
def test_invalid_source_is_a_validation_error(engine, old_gold, rate, source):
    with pytest.raises(ValidationError) as exc:
        engine.compute_old_jewelry_price(old_gold, rate, 10, source, Role.ADMIN)
    assert exc.value.field == "source"


def test_missing_category_is_not_found(engine, rate):
    with pytest.raises(NotFoundError):
        engine.compute_new_jewelry_price(None, rate, 10, Role.ADMIN)


def test_inactive_category_is_not_found(engine, new_gold_chain, rate):
    new_gold_chain.is_active = False
    with pytest.raises(NotFoundError):
        engine.compute_new_jewelry_price(new_gold_chain, rate, 10, Role.ADMIN)


def test_wrong_category_type_is_not_found(engine, new_gold_chain, old_gold, rate):
    with pytest.raises(NotFoundError):
        engine.compute_new_jewelry_price(old_gold, rate, 10, Role.ADMIN)
    with pytest.raises(NotFoundError):
        engine.compute_old_jewelry_price(new_gold_chain, rate, 10, "own", Role.ADMIN)


def test_missing_rate_is_rates_not_configured(engine, new_gold_chain, old_gold):
    with pytest.raises(RatesNotConfiguredError) as exc:
        engine.compute_new_jewelry_price(new_gold_chain, None, 10, Role.ADMIN)
    assert exc.value.error_code == "RATES_NOT_CONFIGURED"

    with pytest.raises(RatesNotConfiguredError):
        engine.compute_old_jewelry_price(old_gold, None, 10, "own", Role.ADMIN)


def test_role_selects_description(engine, new_gold_chain, rate):
    client = engine.compute_new_jewelry_price(new_gold_chain, rate, 10, Role.CLIENT)
    admin = engine.compute_new_jewelry_price(new_gold_chain, rate, 10, "admin")
    stranger = engine.compute_new_jewelry_price(new_gold_chain, rate, 10, "super_admin")

    assert client.description == "Hallmarked chain"
    assert admin.description == "22K hallmarked chain"
    assert stranger.description == "22K hallmarked chain"


def test_role_does_not_change_the_numbers(engine, new_gold_chain, rate):
    admin = engine.compute_new_jewelry_price(new_gold_chain, rate, 10, Role.ADMIN)
    client = engine.compute_new_jewelry_price(new_gold_chain, rate, 10, Role.CLIENT)

    assert admin.final_selling_amount == client.final_selling_amount
    assert admin.our_margin == client.our_margin


def test_new_jewelry_payload_shape(engine, new_gold_chain, rate):
    data = engine.compute_new_jewelry_price(new_gold_chain, rate, 10, Role.ADMIN).to_dict()

    assert data["input"]["code"] == "G22"
    assert data["input"]["metal"] == "GOLD"
    assert data["finalSellingAmount"] == 73500
    assert data["rates"] == {"baseRate": 70000, "ratePerGram": 7000}
    assert data["roundingInfo"]["roundingApplied"] is False
    assert set(data["marginBreakdown"]) == {
        "purchaseFromWholesaler", "actualValueByPurity", "wholesalerMargin", "ourMargin",
    }
    assert data["metadata"]["trace"][0]["step"] == "Category"


def test_old_jewelry_payload_carries_resale_info(engine, old_gold, rate):
    data = engine.compute_old_jewelry_price(old_gold, rate, 10, "own", Role.ADMIN).to_dict()

    assert data["totalScrapValue"] == 62100
    assert data["scrapBreakdown"]["scrapValuePerGram"] == 6210
    assert data["resaleInfo"]["resaleEnabled"] is True
    assert data["resaleInfo"]["categories"][0]["itemCategory"] == "Chain"

    old_gold.resale_enabled = False
    old_gold.resale_categories = []
    data = engine.compute_old_jewelry_price(old_gold, rate, 10, "own", Role.ADMIN).to_dict()
    assert data["resaleInfo"]["resaleEnabled"] is False
    assert data["resaleInfo"]["categories"] == []


def test_module_level_entry_points(new_gold_chain, old_gold, rate):
    assert compute_new_jewelry_price(new_gold_chain, rate, 10, "client").final_selling_amount == 73500
    assert compute_old_jewelry_price(old_gold, rate, 10, "own", "client").total_scrap_value == 62100


def test_category_type_may_be_a_plain_string(engine, rate):
    category = Category(type="NEW", metal="gold", code="S1", item_category="Ring",
                        purity_percentage=91.6, buying_from_wholesaler_percentage=95,
                        selling_percentage=105, wholesaler_labour_per_gram=0)
    result = engine.compute_new_jewelry_price(category, rate, 10, Role.ADMIN)
    assert result.metal is Metal.GOLD
    assert JewelryType(category.type) is JewelryType.NEW
