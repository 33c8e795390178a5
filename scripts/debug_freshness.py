import sys
from datetime import datetime, timedelta
from pathlib import Path

import pytz

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from jewelry_pricing.config.settings import get_settings
from jewelry_pricing.engine.models import Rate
from jewelry_pricing.policy.freshness_gate import FreshnessGate

def debug():
    settings = get_settings()
    gate = FreshnessGate(settings.timezone, settings.rate_deadline_hour)
    zone = pytz.timezone(gate.timezone)
    today = datetime.now(zone).replace(minute=0, second=0, microsecond=0)

    print(f"Timezone: {gate.timezone}, deadline hour: {gate.deadline_hour}")

    cases = [
        ("No rates, morning", None, today.replace(hour=9)),
        ("No rates, afternoon", None, today.replace(hour=15)),
        ("Updated yesterday, morning", today - timedelta(days=1), today.replace(hour=9)),
        ("Updated yesterday, afternoon", today - timedelta(days=1), today.replace(hour=15)),
        ("Updated today, afternoon", today.replace(hour=10), today.replace(hour=15)),
    ]

    for label, updated_at, now in cases:
        rate = None
        if updated_at is not None:
            rate = Rate(gold_buy=69000, gold_sell=70000, silver_buy=80000, silver_sell=82000,
                        updated_by="debug", updated_at=updated_at)
        status = gate.check(rate, now=now.replace(tzinfo=None))
        print(f"\n--- {label} ---")
        print(f"State: {status.state.value if status.state else None}")
        print(f"Blocked: {status.blocked} ({status.reason_code})")
        if status.message:
            print(f"Message: {status.message}")
        if status.update_info:
            print(f"Update info: {status.update_info}")

if __name__ == "__main__":
    debug()
