#!/usr/bin/env python3
"""
api.py — Energy views API server

Read-only JSON adapter between EnergyDataEngine and the browser
rendering surfaces. Every endpoint is one call into the engine or
energyviz.processing; no view logic lives here.

Endpoints:
    GET /                        → timeline bounds for the playback controls
    GET /ready                   → whether the dataset is loaded
    GET /energy-types            → categories, labels and colors for legends
    GET /years                   → years present in the dataset
    GET /stack/{year}            → countries of one year ranked by total
    GET /average?start=&end=     → per-country means over a year range
    GET /consumption?country=... → yearly consumption series
    GET /map[?start=&end=]       → map snapshot (raw, or range average)

Error contract:
    503 → dataset not loaded (DataNotLoadedError)
    400 → malformed year range (ValueError from the engine)

The consumption endpoint builds its own SelectionContext from the query
string and never calls set_selected_countries() on the shared engine.

Environment variables:
    ENV                    — "dev" enables /docs and debug logging
    ENERGYVIZ_DATA_SOURCE  — path or http(s) URL of the raw dataset
    REQUIRE_DATA           — "1" to abort startup if loading fails
    REDIS_URL              — optional rate-limit storage

Requires: fastapi, uvicorn, slowapi
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.gzip import GZipMiddleware

from energyviz.constants import (
    DEFAULT_END_YEAR,
    DEFAULT_START_YEAR,
    ENERGY_CATEGORIES,
    ENERGY_COLORS,
    ENERGY_LABELS,
)
from energyviz.engine import DataNotLoadedError, EnergyDataEngine
from energyviz.loader import LoadError
from energyviz.processing import build_series
from energyviz.selection import SelectionContext

logger = logging.getLogger("energyviz.api")

API_VERSION = "1.0.0"

DEFAULT_DATA_SOURCE = Path(__file__).resolve().parent / "data" / "energy_data.json"
DATA_SOURCE = os.getenv("ENERGYVIZ_DATA_SOURCE", "").strip() or str(DEFAULT_DATA_SOURCE)
DEV = os.getenv("ENV", "prod").strip().lower() == "dev"
REQUIRE_DATA = os.getenv("REQUIRE_DATA", "").strip() == "1"

engine = EnergyDataEngine(DATA_SOURCE)

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=os.getenv("REDIS_URL", "").strip() or "memory://",
)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Load the dataset once. Without it, data endpoints answer 503."""
    try:
        engine.load()
    except LoadError as exc:
        logger.error(json.dumps({
            "event": "load_failed",
            "source": exc.source,
            "detail": exc.detail,
        }))
        if REQUIRE_DATA:
            raise
    yield


app = FastAPI(
    title="Energy Views API",
    version=API_VERSION,
    lifespan=_lifespan,
    docs_url="/docs" if DEV else None,
    redoc_url=None,
    openapi_url="/openapi.json" if DEV else None,
)
app.state.limiter = limiter
app.add_middleware(GZipMiddleware, minimum_size=500)


# ---------------------------------------------------------------------------
# Domain errors → HTTP
# ---------------------------------------------------------------------------

@app.exception_handler(DataNotLoadedError)
async def _not_loaded(request: Request, exc: DataNotLoadedError) -> JSONResponse:
    return JSONResponse(status_code=503, content={"detail": "Energy dataset not loaded."})


@app.exception_handler(ValueError)
async def _bad_range(request: Request, exc: ValueError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(RateLimitExceeded)
async def _rate_limited(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(status_code=429, content={"detail": "Rate limit exceeded."})


def _year_range(start: int | None, end: int | None) -> tuple[int | None, int | None] | None:
    # One bound alone is passed through so the engine rejects it.
    if start is None and end is None:
        return None
    return start, end


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@app.get("/")
async def root() -> dict:
    if engine.is_loaded and engine.years:
        start_year, end_year = engine.years[0], engine.years[-1]
    else:
        start_year, end_year = DEFAULT_START_YEAR, DEFAULT_END_YEAR
    return {
        "version": API_VERSION,
        "data_loaded": engine.is_loaded,
        "start_year": start_year,
        "end_year": end_year,
    }


@app.get("/ready")
async def ready() -> dict:
    return {"ready": engine.is_loaded}


@app.get("/energy-types")
async def energy_types() -> dict:
    return {
        "categories": [
            {
                "category": category.value,
                "types": [
                    {"type": t.value, "label": ENERGY_LABELS[t], "color": ENERGY_COLORS[t]}
                    for t in members
                ],
            }
            for category, members in ENERGY_CATEGORIES.items()
        ],
    }


@app.get("/years")
async def list_years() -> dict:
    return {"years": engine.years}


@app.get("/stack/{year}")
@limiter.limit("120/minute")
async def stack(year: int, request: Request) -> dict:
    """Countries of one year ranked by total. Unknown year → empty list."""
    return {
        "year": year,
        "countries": [c.to_dict() for c in engine.get_year_data(year)],
    }


@app.get("/average")
@limiter.limit("120/minute")
async def average(request: Request, start: int = Query(...), end: int = Query(...)) -> dict:
    return {
        "start_year": start,
        "end_year": end,
        "countries": [c.to_dict() for c in engine.get_year_data((start, end))],
    }


@app.get("/consumption")
@limiter.limit("120/minute")
async def consumption(
    request: Request,
    country: list[str] | None = Query(default=None),
) -> dict:
    selection = SelectionContext.from_names(country)
    series = build_series(engine.index, selection)
    return {
        "countries": list(selection.countries),
        "filtered": selection.is_active,
        "series": [p.to_dict() for p in series],
    }


@app.get("/map")
@limiter.limit("120/minute")
async def map_snapshot(
    request: Request,
    start: int | None = Query(default=None),
    end: int | None = Query(default=None),
) -> Any:
    records = engine.get_map_data(_year_range(start, end))
    return [r.model_dump() for r in records]


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.DEBUG if DEV else logging.INFO, format="%(message)s")
    uvicorn.run(app, host="0.0.0.0", port=8000)  # noqa: S104
