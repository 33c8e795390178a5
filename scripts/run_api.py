import os
import sys
from pathlib import Path

import uvicorn

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from jewelry_pricing.config.logging import configure_logging
from jewelry_pricing.config.settings import get_settings


def main():
    settings = get_settings()
    configure_logging(settings.log_level)

    host = os.getenv("JEWELRY_PRICING_HOST", "0.0.0.0")
    port = int(os.getenv("JEWELRY_PRICING_PORT", "8000"))
    reload = os.getenv("JEWELRY_PRICING_RELOAD", "1") != "0"

    print(f"Starting Jewelry Pricing API on {host}:{port} "
          f"(timezone {settings.timezone}, rate deadline {settings.rate_deadline_hour}:00)...")
    uvicorn.run(
        "jewelry_pricing.api.main:app",
        host=host,
        port=port,
        reload=reload,
        reload_dirs=[str(src_path)] if reload else None,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
