"""
Broadcast payloads for rate and rate table changes.

Delivery to connected clients belongs to the transport layer; this module
builds the payloads and hands them to whatever subscribers are registered.
"""
import logging
from datetime import datetime
from typing import Any, Callable, Optional

from ..engine.models import Metal, Rate, RateTableConfig, utcnow
from ..engine.rate_table import RateTableEngine

logger = logging.getLogger(__name__)

RATE_TABLE_UPDATED = "rateTableUpdated"
RATES_UPDATED = "ratesUpdated"

Subscriber = Callable[[str, str, dict[str, Any]], None]


def table_values(table: RateTableConfig, rate: Optional[Rate]) -> list[list[Optional[float]]]:
    """Computed grid, or [] while there is no rate or the table has no rows or columns."""
    if rate is None or not table.rows or not table.columns:
        return []
    return RateTableEngine(table).calculate_all_values(rate)


def rate_table_payload(table: RateTableConfig, values: list[list[Optional[float]]]) -> dict[str, Any]:
    data = table.to_dict()
    return {
        "metalType": data["metalType"],
        "table": data,
        "calculatedValues": values,
    }


def rate_update_payload(rate: Rate, update_info: Optional[dict[str, Any]],
                        timestamp: Optional[datetime] = None) -> dict[str, Any]:
    return {
        "rates": rate.as_rate_dict(),
        "updateInfo": update_info,
        "timestamp": (timestamp or utcnow()).isoformat(),
    }


class Broadcaster:
    """
    Fan-out of change payloads to subscribers, fire-and-forget.

    A subscriber is called as ``subscriber(shop_id, event, payload)``. A
    failing subscriber is logged and never affects the write that triggered
    the broadcast.
    """

    def __init__(self):
        self._subscribers: list[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        self._subscribers.append(subscriber)

        def unsubscribe():
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, shop_id: str, event: str, payload: dict[str, Any]) -> int:
        """Deliver to every subscriber; returns how many succeeded."""
        delivered = 0
        for subscriber in list(self._subscribers):
            try:
                subscriber(shop_id, event, payload)
                delivered += 1
            except Exception:
                logger.exception("Broadcast of %s to shop %s failed", event, shop_id)
        return delivered

    def publish_table(self, shop_id: str, table: RateTableConfig, rate: Optional[Rate]) -> dict[str, Any]:
        payload = rate_table_payload(table, table_values(table, rate))
        self.publish(shop_id, RATE_TABLE_UPDATED, payload)
        logger.debug("Published %s rate table for shop %s",
                     Metal.parse(table.metal_type).value.lower(), shop_id)
        return payload

    def publish_rates(self, shop_id: str, rate: Rate, update_info: Optional[dict[str, Any]]) -> dict[str, Any]:
        payload = rate_update_payload(rate, update_info)
        self.publish(shop_id, RATES_UPDATED, payload)
        return payload
