"""
Rates API - FastAPI router for the shop's current gold/silver rates.
"""
from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..engine.models import Rate
from ..errors import RatesNotConfiguredError
from .context import CallerContext, get_caller
from . import state

router = APIRouter(prefix="/api/rates", tags=["rates"])


class RateUpdate(BaseModel):
    """Request model for publishing today's rates."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    gold_buy: Optional[float] = None
    gold_sell: Optional[float] = None
    silver_buy: Optional[float] = None
    silver_sell: Optional[float] = None


def rate_info(rate: Rate) -> dict[str, Any]:
    return {
        "shopId": rate.shop_id,
        **rate.as_rate_dict(),
        "lastUpdated": rate.updated_at.isoformat(),
        "updateInfo": state.gate.update_info(rate),
    }


@router.get("")
async def get_rates(caller: CallerContext = Depends(get_caller)):
    """Current rates of the caller's shop."""
    rate = state.store.get_rate(caller.shop_id)
    if rate is None:
        raise RatesNotConfiguredError("No rates set for your shop", details={"requireSetup": True})
    return {"success": True, "data": rate_info(rate)}


@router.put("")
async def update_rates(body: RateUpdate, caller: CallerContext = Depends(get_caller)):
    """Replace the shop's rates (admin and manager) and notify subscribers."""
    rate = state.store.upsert_rate(
        caller.shop_id,
        body.gold_buy,
        body.gold_sell,
        body.silver_buy,
        body.silver_sell,
        updated_by=caller.username,
        role=caller.role,
    )

    status = state.gate.check(rate)
    data = rate_info(rate)
    state.broadcaster.publish_rates(caller.shop_id, rate, data["updateInfo"])

    return {
        "success": True,
        "message": "Rates updated successfully",
        "data": data,
        "systemStatus": {
            "isBlocked": status.blocked,
            "unblocked": not status.blocked,
            "message": status.message if status.blocked else "Calculator is now available",
        },
    }


@router.get("/blocking-status")
async def blocking_status(caller: CallerContext = Depends(get_caller)):
    """Gate state for polling clients; never blocked itself."""
    status = state.gate.check(state.store.get_rate(caller.shop_id))
    return {"success": True, "data": state.gate.status_payload(status, caller.role)}
