"""
Rate Tables API - FastAPI router for the derived gold and silver rate grids.
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..engine.models import CellConfig, ColumnConfig, Metal, RateTableConfig, RowConfig
from ..services.broadcast import rate_table_payload, table_values
from .context import CallerContext, get_caller, metal_param, require_admin
from . import state

router = APIRouter(prefix="/api/rate-tables", tags=["rate-tables"])


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RowIn(_CamelModel):
    row_index: int
    title: str = "Row"


class ColumnIn(_CamelModel):
    col_index: int
    title: str = "Column"
    rounding_enabled: bool = False
    round_direction: str = "low"
    rounding_type: str = "decimals"


class CellIn(_CamelModel):
    row_index: int
    col_index: int
    use_rate: str = "buying"
    percentage: float = 100


class TableUpdate(_CamelModel):
    """Request model for replacing a table's structure."""
    value_per_gram: float = 1
    rows: list[RowIn] = Field(default_factory=list)
    columns: list[ColumnIn] = Field(default_factory=list)
    cells: list[CellIn] = Field(default_factory=list)


def _table_response(table: RateTableConfig) -> dict[str, Any]:
    rate = state.store.get_rate(table.shop_id)
    payload = rate_table_payload(table, table_values(table, rate))
    return {"table": payload["table"], "calculatedValues": payload["calculatedValues"]}


def _current_rates(shop_id: str) -> Optional[dict[str, int]]:
    rate = state.store.get_rate(shop_id)
    return rate.as_rate_dict() if rate else None


@router.get("/all")
async def get_all_tables(caller: CallerContext = Depends(get_caller)):
    """Both tables with their computed values."""
    data = {}
    for metal in Metal:
        table = state.store.get_or_create_table(caller.shop_id, metal, caller.username)
        data[metal.value.lower()] = _table_response(table)
    data["currentRates"] = _current_rates(caller.shop_id)
    return {"success": True, "data": data}


@router.get("/{metal_type}")
async def get_table(metal_type: str, caller: CallerContext = Depends(get_caller)):
    table = state.store.get_or_create_table(caller.shop_id, metal_param(metal_type), caller.username)
    return {
        "success": True,
        "data": {**_table_response(table), "currentRates": _current_rates(caller.shop_id)},
    }


@router.put("/{metal_type}")
async def update_table(metal_type: str, body: TableUpdate, caller: CallerContext = Depends(require_admin)):
    """Replace the table structure (admin only) and notify subscribers."""
    metal = metal_param(metal_type)
    structure = RateTableConfig(
        metal_type=metal,
        value_per_gram=body.value_per_gram,
        rows=[RowConfig(**r.model_dump()) for r in body.rows],
        columns=[ColumnConfig(**c.model_dump()) for c in body.columns],
        cells=[CellConfig(**c.model_dump()) for c in body.cells],
    )
    table = state.store.update_table(caller.shop_id, metal, structure, caller.username)
    payload = state.broadcaster.publish_table(caller.shop_id, table, state.store.get_rate(caller.shop_id))

    return {
        "success": True,
        "message": "Rate table updated successfully",
        "data": {"table": payload["table"], "calculatedValues": payload["calculatedValues"]},
    }
