import pytest

from jewelry_pricing.engine import compute_new_jewelry_price, compute_old_jewelry_price
from jewelry_pricing.engine.models import Role
from jewelry_pricing.policy.visibility import permissions_for_role, visible_result


@pytest.fixture
def new_result(new_gold_chain, rate):
    return compute_new_jewelry_price(new_gold_chain, rate, 10, Role.ADMIN).to_dict()


@pytest.fixture
def old_result(old_gold, rate):
    return compute_old_jewelry_price(old_gold, rate, 10, "own", Role.ADMIN).to_dict()


@pytest.mark.parametrize("role,level", [
    (Role.ADMIN, "full"),
    ("manager", "full"),
    ("pro_client", "margin"),
    ("client", "basic"),
    ("guest", "basic"),
    (None, "basic"),
])
def test_calculation_levels(role, level):
    assert permissions_for_role(role).calculation_level == level


def test_permissions_payload():
    data = permissions_for_role("pro_client").to_dict()
    assert data["canViewMargins"] is True
    assert data["canViewPurity"] is False
    assert data["canAccessResale"] is True


def test_admin_sees_everything(new_result):
    data = visible_result(new_result, Role.ADMIN)

    assert data["marginBreakdown"] == new_result["marginBreakdown"]
    assert data["percentages"] == new_result["percentages"]
    assert data["metadata"]["trace"]
    assert data["visibilityLevel"] == "full"


def test_client_sees_only_the_price(new_result):
    data = visible_result(new_result, Role.CLIENT)

    assert data["finalSellingAmount"] == 73500
    assert "marginBreakdown" not in data
    assert data["percentages"] == {"selling": 105}
    assert list(data["sellingRateBreakdown"]) == ["sellingRatePerGram"]
    assert data["sellingRateBreakdown"]["sellingRatePerGram"] == pytest.approx(7350)
    assert "trace" not in data["metadata"]
    assert data["visibilityLevel"] == "basic"


def test_pro_client_keeps_margins(new_result):
    data = visible_result(new_result, Role.PRO_CLIENT)

    assert data["marginBreakdown"]["ourMargin"] == pytest.approx(7000)
    assert "purity" not in data["percentages"]
    assert "buyingRatePerGram" not in data["sellingRateBreakdown"]


def test_source_result_is_not_modified(new_result):
    visible_result(new_result, Role.CLIENT)
    assert "marginBreakdown" in new_result
    assert new_result["metadata"]["trace"]


def test_resale_hidden_from_clients(old_result):
    client = visible_result(old_result, Role.CLIENT)
    pro = visible_result(old_result, Role.PRO_CLIENT)

    assert client["resaleInfo"]["categories"] == []
    assert client["resaleInfo"]["message"] == "Resale details are not available for your role"
    assert client["totalScrapValue"] == 62100
    assert "truePurity" not in client["percentages"]
    assert pro["resaleInfo"]["categories"][0]["itemCategory"] == "Chain"
