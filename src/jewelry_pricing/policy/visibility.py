"""
Role visibility - what each shop role may see of a calculation.

The calculator always computes every figure; this module decides which of
them reach the caller.
"""
import copy
from dataclasses import dataclass
from typing import Any

from ..engine.models import Role, parse_role


@dataclass(frozen=True)
class RolePermissions:
    can_view_margins: bool
    can_view_purity: bool
    can_view_wholesale_rates: bool
    can_access_resale: bool
    can_see_all_details: bool
    calculation_level: str
    can_access_all_categories: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "canViewMargins": self.can_view_margins,
            "canViewPurity": self.can_view_purity,
            "canViewWholesaleRates": self.can_view_wholesale_rates,
            "canAccessResale": self.can_access_resale,
            "canSeeAllDetails": self.can_see_all_details,
            "calculationLevel": self.calculation_level,
            "canAccessAllCategories": self.can_access_all_categories,
        }


_FULL = RolePermissions(
    can_view_margins=True,
    can_view_purity=True,
    can_view_wholesale_rates=True,
    can_access_resale=True,
    can_see_all_details=True,
    calculation_level='full',
    can_access_all_categories=True,
)

PERMISSIONS = {
    Role.ADMIN: _FULL,
    Role.MANAGER: _FULL,
    Role.PRO_CLIENT: RolePermissions(
        can_view_margins=True,
        can_view_purity=False,
        can_view_wholesale_rates=False,
        can_access_resale=True,
        can_see_all_details=False,
        calculation_level='margin',
        can_access_all_categories=True,
    ),
    Role.CLIENT: RolePermissions(
        can_view_margins=False,
        can_view_purity=False,
        can_view_wholesale_rates=False,
        can_access_resale=False,
        can_see_all_details=False,
        calculation_level='basic',
        can_access_all_categories=False,
    ),
}


def permissions_for_role(role: Any) -> RolePermissions:
    """Permissions of a role; unknown roles get the client view."""
    return PERMISSIONS.get(parse_role(role), PERMISSIONS[Role.CLIENT])


# Fields removed from a result dict, per permission
_PURITY_FIELDS = {
    "percentages": ("purity", "truePurity"),
    "sellingRateBreakdown": ("actualRatePerGram", "makingChargesPerGram"),
}
_WHOLESALE_FIELDS = {
    "percentages": ("buyingFromWholesaler", "wholesalerLabourPerGram"),
    "sellingRateBreakdown": ("buyingRatePerGram",),
}


def _drop(data: dict[str, Any], fields: dict[str, tuple]):
    for section, keys in fields.items():
        block = data.get(section)
        if isinstance(block, dict):
            for key in keys:
                block.pop(key, None)


def visible_result(result: dict[str, Any], role: Any) -> dict[str, Any]:
    """
    Copy of a calculation payload with the figures the role may not see
    removed.

    Margins, purity and wholesale figures are dropped per permission; the
    resale options of an old jewelry result are dropped for roles without
    resale access. The trace is only kept for full-detail roles.
    """
    perms = permissions_for_role(role)
    data = copy.deepcopy(result)

    if not perms.can_view_margins:
        data.pop("marginBreakdown", None)
    if not perms.can_view_purity:
        _drop(data, _PURITY_FIELDS)
    if not perms.can_view_wholesale_rates:
        _drop(data, _WHOLESALE_FIELDS)
    if not perms.can_access_resale and "resaleInfo" in data:
        data["resaleInfo"] = {
            "resaleEnabled": data["resaleInfo"].get("resaleEnabled", False),
            "categories": [],
            "message": "Resale details are not available for your role",
        }
    if not perms.can_see_all_details:
        data.get("metadata", {}).pop("trace", None)

    data["visibilityLevel"] = perms.calculation_level
    return data
