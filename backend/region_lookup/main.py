"""
main.py — FastAPI application entry point for Region Reverse Lookup.

Exposes:
    GET /           — health check (root)
    GET /health     — detailed health info
    GET /reverse    — administrative hierarchy containing a lat/lon
    GET /children   — direct children of a region code
    GET /latlng     — centroid and elevation of a region code
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware

from region_lookup.errors import FormatError, NotFoundError, StoreError
from region_lookup.loader import DataStore, load_all_data
from region_lookup.services import children_of, node_info, reverse_lookup

# ── Logging ──────────────────────────────────────────────────────────────────
logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)

CACHE_CONTROL = "public, max-age=2592000, stale-if-error=2592000"

# ── Application-level data store (opened once at startup) ────────────────────
data_store: DataStore | None = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the GeoPackage and elevation cache before accepting requests."""
    global data_store
    try:
        data_store = load_all_data()
    except StoreError as exc:
        logger.error("Failed to open data store: %s", exc)
        data_store = None
    else:
        logger.info("Serving regions from table %s", data_store.settings.table)
    yield
    logger.info("Shutting down — closing data store.")
    if data_store is not None:
        data_store.close()


# ── FastAPI app ───────────────────────────────────────────────────────────────
app = FastAPI(
    title="Region Reverse Lookup API",
    description=(
        "Find the administrative regions (country down to sub-village) containing "
        "a coordinate, and browse region children, centroids and elevations."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET"],
    allow_headers=["*"],
)


def _require_store() -> DataStore:
    if data_store is None:
        raise HTTPException(status_code=503, detail="Data store not initialised.")
    return data_store


def _success(data) -> dict:
    return {"code": 200, "msg": "success", "data": data}


def _parse_lat_lon(
    latitude: Optional[str],
    longitude: Optional[str],
    latlng: Optional[str],
) -> tuple[float, float]:
    """Read the query point from either ``latlng=lat,lon`` or the separate params."""
    if latlng:
        parts = latlng.split(",")
        if len(parts) != 2:
            raise HTTPException(status_code=400, detail="invalid latlng, use 'lat,lon'")
        latitude, longitude = parts[0].strip(), parts[1].strip()
    elif not latitude or not longitude:
        raise HTTPException(
            status_code=400, detail="latitude/longitude or latlng are required"
        )

    try:
        lat, lon = float(latitude), float(longitude)
    except ValueError:
        raise HTTPException(status_code=400, detail="invalid latitude/longitude values")

    if not (-90 <= lat <= 90 and -180 <= lon <= 180):
        raise HTTPException(status_code=400, detail="lat/lon out of range")
    return lat, lon


# ── Routes ────────────────────────────────────────────────────────────────────

@app.get("/", tags=["health"])
def root():
    """Root health-check endpoint."""
    return {"status": "ok", "message": "Region Reverse Lookup API is running."}


@app.get("/health", tags=["health"])
def health():
    """Detailed health check: returns the served table and rounding."""
    store = _require_store()
    return {
        "status": "ok",
        "table": store.settings.table,
        "round_places": store.settings.round_places,
    }


@app.get("/reverse", tags=["lookup"])
def reverse(
    latitude: Optional[str] = Query(None, description="Latitude (-90 – 90)"),
    longitude: Optional[str] = Query(None, description="Longitude (-180 – 180)"),
    latlng: Optional[str] = Query(None, description="'lat,lon' shorthand"),
):
    """
    Return the administrative hierarchy containing the supplied coordinate.

    Raises:
        HTTPException 400: If the coordinate is missing, malformed or out of range.
        HTTPException 404: If the point falls outside every region boundary.
        HTTPException 500: If the dataset cannot be queried.
        HTTPException 503: If the data store has not been initialised.
    """
    store = _require_store()
    lat, lon = _parse_lat_lon(latitude, longitude, latlng)

    try:
        chain = reverse_lookup(lat=lat, lon=lon, store=store)
    except NotFoundError:
        logger.warning("No region found for (%.6f, %.6f)", lat, lon)
        raise HTTPException(status_code=404, detail="not found")
    except StoreError:
        logger.exception("reverse error")
        raise HTTPException(status_code=500, detail="internal error")

    logger.info("Reverse (%.4f, %.4f) → %s", lat, lon, chain.deepest.code)
    return _success(chain.to_dict())


@app.get("/children", tags=["hierarchy"])
def children(response: Response, parent_code: str = ""):
    """
    Return the direct children of a region, sorted by name.

    An unknown code yields an empty list rather than a 404.
    """
    store = _require_store()
    code = parent_code.strip() or store.settings.default_parent_code

    try:
        items = [node.to_dict() for node in children_of(code, store)]
    except NotFoundError:
        items = []
    except StoreError:
        logger.exception("children error")
        raise HTTPException(status_code=500, detail="internal error")

    response.headers["Cache-Control"] = CACHE_CONTROL
    return _success({"list": items})


@app.get("/latlng", tags=["hierarchy"])
def latlng(response: Response, code: str = ""):
    """
    Return the centroid and elevation of a region.

    Raises:
        HTTPException 404: If the code is not present at any level.
        HTTPException 500: If the region geometry or a store is unusable.
    """
    store = _require_store()
    code = code.strip() or store.settings.default_parent_code

    try:
        info = node_info(code, store)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="not found")
    except (FormatError, StoreError):
        logger.exception("latlng error for %s", code)
        raise HTTPException(status_code=500, detail="internal error")

    response.headers["Cache-Control"] = CACHE_CONTROL
    return _success(info.to_dict())
