"""FastAPI backend for the OpenAQ dashboard (JSON only; pages render client-side)."""

import threading
from datetime import date, timedelta
from typing import Literal, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from openaq_dashboard.config.settings import settings
from openaq_dashboard.core.client import OpenAQClient, fetch_concurrently
from openaq_dashboard.core.errors import (
    ConfigurationError,
    DecodeError,
    OpenAQError,
    TransportError,
    UpstreamError,
)
from openaq_dashboard.core.filters import DateRangeFilters, LocationFilters
from openaq_dashboard.core.logging import get_logger, setup_logging
from openaq_dashboard.core.metrics import metrics
from openaq_dashboard.core.middleware import ObservabilityMiddleware
from openaq_dashboard.core.normalize import first_result, results, series_parameter
from openaq_dashboard.storage.parameter_store import ParameterStore
from openaq_dashboard.sync import sync_parameters

setup_logging()
logger = get_logger(__name__)

SERIES_LIMIT = 1000
SERIES_DEFAULT_DAYS = 7

# Created on first use so the app imports without credentials
client: Optional[OpenAQClient] = None
store: Optional[ParameterStore] = None
_init_lock = threading.Lock()


def get_client() -> OpenAQClient:
    global client
    if client is None:
        with _init_lock:
            if client is None:
                client = OpenAQClient.from_settings(settings.openaq)
                logger.info(f"✓ OpenAQ client initialized for {client.base_url}")
    return client


def get_store() -> ParameterStore:
    global store
    if store is None:
        with _init_lock:
            if store is None:
                store = ParameterStore(settings.database.duckdb_path)
    return store


app = FastAPI(title="OpenAQ Dashboard", version="1.0.0")
app.add_middleware(ObservabilityMiddleware)


def _error(status_code: int, exc: OpenAQError, **extra) -> JSONResponse:
    body = {"error": type(exc).__name__, "detail": str(exc), **extra}
    return JSONResponse(body, status_code=status_code)


@app.exception_handler(OpenAQError)
async def openaq_error_handler(request: Request, exc: OpenAQError) -> JSONResponse:
    logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc}")
    if isinstance(exc, UpstreamError):
        return _error(502, exc, upstream_status=exc.status)
    if isinstance(exc, TransportError):
        return _error(504, exc)
    if isinstance(exc, DecodeError):
        return _error(502, exc)
    if isinstance(exc, ConfigurationError):
        return _error(503, exc)
    return _error(500, exc)


@app.exception_handler(ValidationError)
async def filter_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        {
            "error": "InvalidFilters",
            "detail": exc.errors(include_url=False, include_context=False),
        },
        status_code=422,
    )


@app.get("/health")
async def health() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse({"status": "ok", "service": "openaq-dashboard"})


@app.get("/metrics")
async def get_metrics() -> JSONResponse:
    """Metrics endpoint."""
    return JSONResponse(metrics.snapshot())


@app.get("/api/locations")
def discover_locations(
    iso: Optional[str] = None,
    lat: Optional[float] = None,
    lon: Optional[float] = None,
    radius: Optional[int] = None,
    parameter_id: Optional[int] = None,
    limit: int = Query(default=20, ge=1, le=1000),
    page: int = Query(default=1, ge=1),
    aq: OpenAQClient = Depends(get_client),
) -> dict:
    """Station discovery, newest first; geo search only when lat/lon/radius are all set."""
    defaults = settings.discovery
    iso = iso or defaults.iso
    lat = defaults.lat if lat is None else lat
    lon = defaults.lon if lon is None else lon
    radius = defaults.radius if radius is None else radius

    params = dict(
        iso=iso,
        limit=limit,
        page=page,
        order_by="id",
        sort_order="desc",
        parameters_id=parameter_id,
    )
    if lat and lon and radius:
        filters = LocationFilters.near(lat, lon, radius, **params)
    else:
        filters = LocationFilters(**params)

    envelope = aq.locations(filters)
    return {"results": results(envelope), "quota": envelope.headers.model_dump()}


@app.get("/api/locations/{location_id}")
def location_detail(location_id: int, aq: OpenAQClient = Depends(get_client)) -> dict:
    fetched = fetch_concurrently(
        {
            "location": lambda: aq.location(location_id),
            "latest": lambda: aq.latest(location_id),
            "sensors": lambda: aq.sensors_at(location_id),
            "flags": lambda: aq.location_flags(location_id),
        }
    )
    return {
        "location": first_result(fetched["location"]),
        "latest": results(fetched["latest"]),
        "sensors": results(fetched["sensors"]),
        "flags": results(fetched["flags"]),
    }


@app.get("/api/sensors/{sensor_id}")
def sensor_detail(sensor_id: int, aq: OpenAQClient = Depends(get_client)) -> dict:
    fetched = fetch_concurrently(
        {
            "sensor": lambda: aq.sensor(sensor_id),
            "flags": lambda: aq.sensor_flags(sensor_id),
        }
    )
    return {"sensor": first_result(fetched["sensor"]), "flags": results(fetched["flags"])}


@app.get("/api/sensors/{sensor_id}/series")
def sensor_series(
    sensor_id: int,
    agg: Literal["hour", "day"] = "hour",
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    aq: OpenAQClient = Depends(get_client),
) -> dict:
    """Aggregated series for charting (hourly or daily)."""
    date_to = date_to or date.today()
    date_from = date_from or date_to - timedelta(days=SERIES_DEFAULT_DAYS)
    filters = DateRangeFilters(
        datetime_from=date_from, datetime_to=date_to, limit=SERIES_LIMIT
    )
    envelope = aq.days(sensor_id, filters) if agg == "day" else aq.hours(sensor_id, filters)
    series = results(envelope)
    return {"series": series, "agg": agg, "parameter": series_parameter(series)}


@app.get("/api/parameters")
def list_parameters(db: ParameterStore = Depends(get_store)) -> dict:
    rows = [r.model_dump() for r in db.list_all()]
    return {"rows": rows, "count": len(rows)}


@app.post("/api/parameters/sync")
def sync_parameter_mirror(
    aq: OpenAQClient = Depends(get_client),
    db: ParameterStore = Depends(get_store),
) -> dict:
    synced = sync_parameters(aq, db)
    rows = [r.model_dump() for r in db.list_all()]
    return {"synced": synced, "rows": rows}


if __name__ == "__main__":
    import uvicorn

    logger.info("Starting OpenAQ Dashboard...")
    uvicorn.run(app, host="0.0.0.0", port=8000)
