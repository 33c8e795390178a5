"""
Freshness Gate - blocks calculation until a shop publishes today's rate.

A shop is in one of three states, re-evaluated on every request:

- NO_RATES: the shop has never published a rate; always blocked.
- STALE: it is at or past the daily deadline in the shop's timezone and the
  rate was last updated on an earlier local date; blocked.
- FRESH: anything else; allowed.

Both timestamps are converted to the shop's timezone before their calendar
dates are compared. If evaluation itself fails the gate fails open: the
error is logged and the request is allowed.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

import pytz

from ..config.settings import get_settings
from ..engine.models import Rate, Role, parse_role

logger = logging.getLogger(__name__)

DEFAULT_DEADLINE_HOUR = 13
DEFAULT_TIMEZONE = 'Asia/Kolkata'

# en-IN style, e.g. "19/10/2026, 01:05 PM"
_DISPLAY_FORMAT = '%d/%m/%Y, %I:%M %p'

NO_RATES_MESSAGE = 'No rates found for this shop. Please set initial rates.'
OPERATIONAL_MESSAGE = 'System is operational'

RATE_UPDATE_ROLES = (Role.ADMIN, Role.MANAGER)


class FreshnessState(str, Enum):
    NO_RATES = "NO_RATES"
    STALE = "STALE"
    FRESH = "FRESH"


class BlockReason(str, Enum):
    NO_RATES = "NO_RATES"
    DAILY_UPDATE_REQUIRED = "DAILY_UPDATE_REQUIRED"


@dataclass
class FreshnessStatus:
    """Outcome of one gate evaluation."""
    blocked: bool
    reason: Optional[BlockReason] = None
    message: Optional[str] = None
    state: Optional[FreshnessState] = None
    is_updated_today: bool = False
    is_after_deadline: bool = False
    current_time: Optional[datetime] = None
    last_updated: Optional[datetime] = None
    update_info: Optional[dict[str, Any]] = None
    deadline_label: str = ''
    error: Optional[str] = None

    @property
    def reason_code(self) -> Optional[str]:
        return self.reason.value if self.reason else None


def _zone(timezone: Union[str, pytz.BaseTzInfo, None]) -> pytz.BaseTzInfo:
    if timezone is None:
        return pytz.timezone(DEFAULT_TIMEZONE)
    if isinstance(timezone, str):
        return pytz.timezone(timezone)
    return timezone


def to_shop_time(moment: datetime, zone: pytz.BaseTzInfo, naive_is_utc: bool = True) -> datetime:
    """
    Convert a timestamp to the shop's timezone.

    Naive timestamps are read as UTC (stored values) unless naive_is_utc is
    False, in which case they are already shop-local wall clock time.
    """
    if moment.tzinfo is None:
        if naive_is_utc:
            moment = pytz.utc.localize(moment)
        else:
            return zone.localize(moment)
    return moment.astimezone(zone)


def deadline_label(deadline_hour: int, now_local: datetime) -> str:
    """Human readable deadline, e.g. '1:00 PM IST'."""
    hour12 = deadline_hour % 12 or 12
    suffix = 'AM' if deadline_hour < 12 else 'PM'
    return f"{hour12}:00 {suffix} {now_local.strftime('%Z')}".strip()


def daily_update_message(label: str) -> str:
    return f"Rates must be updated daily before {label}. Please update today's rates to continue."


def build_update_info(rate: Rate, zone: pytz.BaseTzInfo, today) -> dict[str, Any]:
    """Who last updated the rate and when, in shop-local time."""
    updated_local = to_shop_time(rate.updated_at, zone)
    return {
        "updatedBy": rate.updated_by,
        "role": rate.updated_by_role,
        "timestamp": updated_local.strftime(_DISPLAY_FORMAT),
        "isToday": updated_local.date() == today,
    }


def evaluate_freshness(
    rate: Optional[Rate],
    now: Optional[datetime] = None,
    deadline_hour: int = DEFAULT_DEADLINE_HOUR,
    timezone: Union[str, pytz.BaseTzInfo, None] = None,
) -> FreshnessStatus:
    """
    Decide whether calculation is blocked for a shop.

    Args:
        rate: The shop's current rate, or None when it has never set one
        now: Current time; naive values are shop-local. Defaults to the clock.
        deadline_hour: Local hour (0-23) from which today's rate is required
        timezone: Shop timezone name or pytz zone (default Asia/Kolkata)

    Returns:
        FreshnessStatus; blocked=False with ``error`` set if evaluation failed
    """
    try:
        zone = _zone(timezone)
        now_local = datetime.now(zone) if now is None else to_shop_time(now, zone, naive_is_utc=False)
        label = deadline_label(deadline_hour, now_local)
        after_deadline = now_local.hour >= deadline_hour

        if rate is None:
            return FreshnessStatus(
                blocked=True,
                reason=BlockReason.NO_RATES,
                message=NO_RATES_MESSAGE,
                state=FreshnessState.NO_RATES,
                is_after_deadline=after_deadline,
                current_time=now_local,
                deadline_label=label,
            )

        update_info = build_update_info(rate, zone, now_local.date())
        updated_today = update_info["isToday"]

        if after_deadline and not updated_today:
            return FreshnessStatus(
                blocked=True,
                reason=BlockReason.DAILY_UPDATE_REQUIRED,
                message=daily_update_message(label),
                state=FreshnessState.STALE,
                is_updated_today=False,
                is_after_deadline=True,
                current_time=now_local,
                last_updated=rate.updated_at,
                update_info=update_info,
                deadline_label=label,
            )

        return FreshnessStatus(
            blocked=False,
            state=FreshnessState.FRESH,
            is_updated_today=updated_today,
            is_after_deadline=after_deadline,
            current_time=now_local,
            last_updated=rate.updated_at,
            update_info=update_info,
            deadline_label=label,
        )

    except Exception as e:
        logger.exception("Rate freshness check failed, allowing request")
        return FreshnessStatus(blocked=False, error=str(e))


class FreshnessGate:
    """Freshness policy for one shop timezone and deadline."""

    def __init__(self, timezone: Optional[str] = None, deadline_hour: Optional[int] = None):
        settings = get_settings()
        self.timezone = timezone or settings.timezone
        self.deadline_hour = settings.rate_deadline_hour if deadline_hour is None else deadline_hour

    def check(self, rate: Optional[Rate], now: Optional[datetime] = None) -> FreshnessStatus:
        status = evaluate_freshness(rate, now, self.deadline_hour, self.timezone)
        if status.blocked:
            logger.info("Calculation blocked: %s", status.reason_code)
        return status

    def update_info(self, rate: Optional[Rate], now: Optional[datetime] = None) -> Optional[dict[str, Any]]:
        if rate is None:
            return None
        return evaluate_freshness(rate, now, self.deadline_hour, self.timezone).update_info

    @staticmethod
    def can_update_rates(role: Any) -> bool:
        """Admins and managers may always update rates, blocked or not."""
        return parse_role(role) in RATE_UPDATE_ROLES

    def locked_payload(self, status: FreshnessStatus, role: Any) -> dict[str, Any]:
        """Body of the 423 Locked response for a blocked request."""
        current = status.current_time
        return {
            "success": False,
            "blocked": True,
            "reason": status.reason_code,
            "message": status.message,
            "canUpdateRates": self.can_update_rates(role),
            "blockingInfo": {
                "currentTime": current.strftime(_DISPLAY_FORMAT) if current else None,
                "lastUpdated": status.last_updated.isoformat() if status.last_updated else None,
                "updateInfo": status.update_info,
                "dailyDeadline": status.deadline_label,
            },
        }

    def status_payload(self, status: FreshnessStatus, role: Any) -> dict[str, Any]:
        """Polling view of the gate for the rate screens."""
        current = status.current_time
        return {
            "isBlocked": status.blocked,
            "reason": status.reason_code,
            "message": status.message or OPERATIONAL_MESSAGE,
            "canUpdateRates": self.can_update_rates(role),
            "currentTime": current.strftime(_DISPLAY_FORMAT) if current else None,
            "rateInfo": status.update_info,
            "systemStatus": {
                "dailyDeadline": status.deadline_label,
                "isAfterDeadline": status.is_after_deadline,
                "currentDate": current.date().isoformat() if current else None,
            },
        }
