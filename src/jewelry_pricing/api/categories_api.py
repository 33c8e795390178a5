"""
Categories API - FastAPI router for the shop's pricing categories.
"""
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..engine.models import Category, Descriptions, JewelryType, ResaleCategory
from .context import CallerContext, get_caller, metal_param, require_admin
from . import state

router = APIRouter(prefix="/api/categories", tags=["categories"])


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DescriptionsIn(_CamelModel):
    universal: str = ""
    admin: str = ""
    manager: str = ""
    pro_client: str = ""
    client: str = ""


class ResaleCategoryIn(_CamelModel):
    item_category: str
    direct_resale_percentage: float
    direct_resale_rate_type: str = "SELLING"
    buying_from_wholesaler_percentage: float
    wholesaler_labour_per_gram: float = 0
    polish_repair_enabled: bool = False
    polish_repair_resale_percentage: Optional[float] = None
    polish_repair_rate_type: Optional[str] = None
    polish_repair_cost_percentage: Optional[float] = None
    polish_repair_labour_per_gram: Optional[float] = None


class CategoryCreate(_CamelModel):
    """Request model for creating a category."""
    type: str
    metal: str
    code: str
    descriptions: DescriptionsIn = Field(default_factory=DescriptionsIn)

    item_category: Optional[str] = None
    purity_percentage: Optional[float] = None
    buying_from_wholesaler_percentage: Optional[float] = None
    selling_percentage: Optional[float] = None
    wholesaler_labour_per_gram: Optional[float] = None

    true_purity_percentage: Optional[float] = None
    scrap_buy_own_percentage: Optional[float] = None
    scrap_buy_other_percentage: Optional[float] = None
    resale_enabled: bool = False
    resale_categories: list[ResaleCategoryIn] = Field(default_factory=list)


class CategoryUpdate(_CamelModel):
    """Request model for updating a category; omitted fields are kept."""
    code: Optional[str] = None
    descriptions: Optional[DescriptionsIn] = None

    item_category: Optional[str] = None
    purity_percentage: Optional[float] = None
    buying_from_wholesaler_percentage: Optional[float] = None
    selling_percentage: Optional[float] = None
    wholesaler_labour_per_gram: Optional[float] = None

    true_purity_percentage: Optional[float] = None
    scrap_buy_own_percentage: Optional[float] = None
    scrap_buy_other_percentage: Optional[float] = None
    resale_enabled: Optional[bool] = None
    resale_categories: Optional[list[ResaleCategoryIn]] = None


def _field_values(body: BaseModel, exclude_unset: bool = False) -> dict:
    """
    Model fields as Category keyword arguments.

    On a partial update the descriptions stay a dict of the slots sent so
    the catalog can merge them into the current ones.
    """
    values = body.model_dump(exclude_unset=exclude_unset)
    if values.get("descriptions") is not None and not exclude_unset:
        values["descriptions"] = Descriptions(**values["descriptions"])
    if values.get("resale_categories") is not None:
        values["resale_categories"] = [ResaleCategory(**r) for r in values["resale_categories"]]
    return values


@router.get("")
async def list_categories(type: Optional[str] = None, metal: Optional[str] = None,
                          caller: CallerContext = Depends(get_caller)):
    """Active categories of the shop, with the description for the caller's role."""
    kind = JewelryType(type.upper()) if type and type.upper() in ("NEW", "OLD") else None
    categories = state.store.catalog.find(caller.shop_id, kind, metal_param(metal))
    return {
        "success": True,
        "data": [state.store.catalog.describe_for_role(c, caller.role) for c in categories],
    }


@router.get("/item-categories")
async def list_item_categories(metal: Optional[str] = None, caller: CallerContext = Depends(get_caller)):
    return {"success": True, "data": state.store.catalog.item_categories(caller.shop_id, metal_param(metal))}


@router.get("/{category_id}")
async def get_category(category_id: str, caller: CallerContext = Depends(get_caller)):
    category = state.store.catalog.get(caller.shop_id, category_id)
    return {"success": True, "data": state.store.catalog.describe_for_role(category, caller.role)}


@router.post("", status_code=201)
async def create_category(body: CategoryCreate, caller: CallerContext = Depends(require_admin)):
    values = _field_values(body)
    values["type"] = values["type"].strip().upper()
    values["metal"] = values["metal"].strip().upper()
    category = state.store.catalog.add(Category(shop_id=caller.shop_id, **values))
    return {"success": True, "message": "Category created successfully", "data": category.to_dict()}


@router.put("/{category_id}")
async def update_category(category_id: str, body: CategoryUpdate,
                          caller: CallerContext = Depends(require_admin)):
    category = state.store.catalog.update(caller.shop_id, category_id, _field_values(body, exclude_unset=True))
    return {"success": True, "message": "Category updated successfully", "data": category.to_dict()}


@router.delete("/{category_id}")
async def delete_category(category_id: str, caller: CallerContext = Depends(require_admin)):
    """Soft delete; the category disappears from lookups and calculations."""
    state.store.catalog.deactivate(caller.shop_id, category_id)
    return {"success": True, "message": "Category deleted successfully"}
