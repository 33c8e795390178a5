"""
Calculator API - price calculation and category pickers.

Everything except the permissions lookup sits behind the freshness gate.
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..engine.models import JewelryType
from ..errors import ValidationError
from ..policy.visibility import permissions_for_role, visible_result
from .context import CallerContext, get_caller, metal_param, require_fresh_rates
from . import state

router = APIRouter(prefix="/api/calculator", tags=["calculator"])


class NewJewelryCalcRequest(BaseModel):
    """Request model for a new jewelry price."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    category_id: Optional[str] = None
    weight: Any = None


class OldJewelryCalcRequest(BaseModel):
    """Request model for an old jewelry scrap value."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    category_id: Optional[str] = None
    weight: Any = None
    source: Any = None


def _category(caller: CallerContext, category_id: Optional[str]):
    if not category_id:
        raise ValidationError("Category is required", field="categoryId")
    return state.store.catalog.get(caller.shop_id, category_id)


def _category_list(caller: CallerContext, kind: JewelryType, metal: Optional[str],
                   item_category: Optional[str] = None) -> list[dict]:
    categories = state.store.catalog.find(caller.shop_id, kind, metal_param(metal), item_category)
    return [state.store.catalog.describe_for_role(c, caller.role) for c in categories]


@router.post("/new-jewelry/calculate")
async def calculate_new_jewelry(body: NewJewelryCalcRequest,
                                caller: CallerContext = Depends(require_fresh_rates)):
    result = state.engine.compute_new_jewelry_price(
        _category(caller, body.category_id),
        state.store.get_rate(caller.shop_id),
        body.weight,
        caller.role,
    )
    return {"success": True, "data": visible_result(result.to_dict(), caller.role)}


@router.post("/old-jewelry/calculate")
async def calculate_old_jewelry(body: OldJewelryCalcRequest,
                                caller: CallerContext = Depends(require_fresh_rates)):
    result = state.engine.compute_old_jewelry_price(
        _category(caller, body.category_id),
        state.store.get_rate(caller.shop_id),
        body.weight,
        body.source,
        caller.role,
    )
    return {"success": True, "data": visible_result(result.to_dict(), caller.role)}


@router.get("/new-jewelry/categories")
async def new_jewelry_categories(metal: Optional[str] = None,
                                 item_category: Optional[str] = Query(default=None, alias="itemCategory"),
                                 caller: CallerContext = Depends(require_fresh_rates)):
    return {"success": True, "data": _category_list(caller, JewelryType.NEW, metal, item_category)}


@router.get("/new-jewelry/item-categories")
async def new_jewelry_item_categories(metal: Optional[str] = None,
                                      caller: CallerContext = Depends(require_fresh_rates)):
    return {"success": True, "data": state.store.catalog.item_categories(caller.shop_id, metal_param(metal))}


@router.get("/old-jewelry/categories")
async def old_jewelry_categories(metal: Optional[str] = None,
                                 caller: CallerContext = Depends(require_fresh_rates)):
    return {"success": True, "data": _category_list(caller, JewelryType.OLD, metal)}


@router.get("/user-permissions")
async def user_permissions(caller: CallerContext = Depends(get_caller)):
    """What the caller's role may see of a calculation."""
    return {
        "success": True,
        "data": {
            "role": caller.role.value,
            "permissions": permissions_for_role(caller.role).to_dict(),
            "shopId": caller.shop_id,
        },
    }
