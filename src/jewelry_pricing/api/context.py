"""
Caller context for API requests.

Authentication happens upstream; the gateway forwards the caller's shop,
role and username as headers.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header

from ..engine.models import Metal, Role, parse_role
from ..errors import PermissionDeniedError, RatesLockedError, ValidationError
from . import state


@dataclass
class CallerContext:
    shop_id: str
    role: Role
    username: str

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


def metal_param(metal: Optional[str]) -> Optional[Metal]:
    """Metal from a path or query parameter; None when not given."""
    if not metal:
        return None
    try:
        return Metal.parse(metal)
    except ValueError:
        raise ValidationError("Invalid metal type. Must be gold or silver", field="metal")


async def get_caller(
    x_shop_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
    x_username: Optional[str] = Header(default=None),
) -> CallerContext:
    if not x_shop_id or not x_shop_id.strip():
        raise ValidationError("User is not associated with any shop", field="shopId")
    return CallerContext(
        shop_id=x_shop_id.strip(),
        role=parse_role(x_user_role) or Role.CLIENT,
        username=(x_username or "").strip() or "unknown",
    )


async def require_admin(caller: CallerContext = Depends(get_caller)) -> CallerContext:
    if not caller.is_admin:
        raise PermissionDeniedError("Only shop admin can perform this action")
    return caller


async def require_fresh_rates(caller: CallerContext = Depends(get_caller)) -> CallerContext:
    """Reject calculator requests with 423 Locked while the shop's rate is missing or stale."""
    status = state.gate.check(state.store.get_rate(caller.shop_id))
    if status.blocked:
        raise RatesLockedError(state.gate.locked_payload(status, caller.role))
    return caller
