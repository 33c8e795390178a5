from datetime import datetime, timezone

import pytest

from jewelry_pricing.engine.models import (
    CellConfig,
    ColumnConfig,
    Metal,
    RateTableConfig,
    RateType,
    RowConfig,
)
from jewelry_pricing.services.broadcast import (
    RATE_TABLE_UPDATED,
    RATES_UPDATED,
    Broadcaster,
    rate_update_payload,
    table_values,
)


@pytest.fixture
def table():
    return RateTableConfig(
        metal_type=Metal.GOLD,
        rows=[RowConfig(0, "22K")],
        columns=[ColumnConfig(0, "Sell")],
        cells=[CellConfig(0, 0, RateType.SELLING, 105)],
        id="table-1",
    )


@pytest.fixture
def received():
    return []


@pytest.fixture
def broadcaster(received):
    broadcaster = Broadcaster()
    broadcaster.subscribe(lambda shop_id, event, payload: received.append((shop_id, event, payload)))
    return broadcaster


def test_table_values_need_a_rate_and_a_grid(table, rate):
    assert table_values(table, rate) == [[7350]]
    assert table_values(table, None) == []
    assert table_values(RateTableConfig.empty("shop-1", "gold"), rate) == []


def test_publish_table(broadcaster, received, table, rate):
    payload = broadcaster.publish_table("shop-1", table, rate)

    assert payload["metalType"] == "gold"
    assert payload["table"]["id"] == "table-1"
    assert payload["calculatedValues"] == [[7350]]
    assert received == [("shop-1", RATE_TABLE_UPDATED, payload)]


def test_publish_table_without_rate(broadcaster, table):
    payload = broadcaster.publish_table("shop-1", table, None)
    assert payload["calculatedValues"] == []


def test_publish_rates(broadcaster, received, rate):
    info = {"updatedBy": "asha", "role": "admin", "timestamp": "19/10/2026, 09:30 AM", "isToday": True}

    payload = broadcaster.publish_rates("shop-1", rate, info)

    assert payload["rates"] == {"goldBuy": 69000, "goldSell": 70000, "silverBuy": 80000, "silverSell": 82000}
    assert payload["updateInfo"] == info
    assert received[0][1] == RATES_UPDATED


def test_rate_update_payload_timestamp(rate):
    when = datetime(2026, 10, 19, 4, 0, tzinfo=timezone.utc)
    assert rate_update_payload(rate, None, when)["timestamp"] == "2026-10-19T04:00:00+00:00"


def test_failing_subscriber_does_not_stop_delivery(broadcaster, received, table, rate):
    def broken(shop_id, event, payload):
        raise RuntimeError("socket closed")

    broadcaster.subscribe(broken)
    broadcaster.subscribe(lambda *args: received.append(args))

    delivered = broadcaster.publish("shop-1", RATES_UPDATED, {"x": 1})

    assert delivered == 2
    assert len(received) == 2


def test_unsubscribe(broadcaster, received):
    unsubscribe = broadcaster.subscribe(lambda *args: received.append(args))
    assert broadcaster.subscriber_count == 2

    unsubscribe()
    unsubscribe()

    assert broadcaster.subscriber_count == 1
    assert broadcaster.publish("shop-1", RATES_UPDATED, {}) == 1
