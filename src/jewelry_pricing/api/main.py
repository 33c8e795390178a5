from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..config.logging import configure_logging
from ..errors import PricingError
from .calculator_api import router as calculator_router
from .categories_api import router as categories_router
from .rate_tables_api import router as rate_tables_router
from .rates_api import router as rates_router
from . import state

configure_logging(state.settings.log_level)

app = FastAPI(
    title="Jewelry Pricing API",
    description="Rate-based pricing, rate tables and the daily rate freshness gate for jewelry shops",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=state.settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(rates_router)
app.include_router(calculator_router)
app.include_router(categories_router)
app.include_router(rate_tables_router)


@app.exception_handler(PricingError)
async def pricing_error_handler(request: Request, exc: PricingError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.get("/")
async def root():
    return {"status": "online", "message": "Jewelry Pricing API Active"}


@app.get("/system/status")
async def get_status():
    return {
        "engine_active": True,
        "timezone": state.gate.timezone,
        "rate_deadline_hour": state.gate.deadline_hour,
        "subscribers": state.broadcaster.subscriber_count,
    }
