from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
import uvicorn

from weatherdash import config, upstream
from weatherdash.errors import ClientInputError, install_exception_handlers
from weatherdash.models import Coordinate

config.configure_logging()

app = FastAPI(title=config.APP_NAME, version="0.1.0")
install_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)

# ---------- Helpers ----------
def _parse_axis(name: str, raw: Optional[str], default: float) -> float:
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ClientInputError(f"Invalid {name}: expected a number") from None

def resolve_coordinate(lat: Optional[str], lon: Optional[str]) -> Coordinate:
    """Coordinate from optional query strings; blank or missing axes use the default location."""
    latitude = _parse_axis("lat", lat, config.DEFAULT_LATITUDE)
    longitude = _parse_axis("lon", lon, config.DEFAULT_LONGITUDE)
    try:
        return Coordinate(latitude=latitude, longitude=longitude)
    except ValidationError:
        raise ClientInputError("Coordinate out of range") from None

def _cache_hint(response: Response, ttl: int) -> None:
    # Honoured by the hosting layer's response cache, keyed by request URL
    response.headers["Cache-Control"] = f"public, s-maxage={ttl}, stale-while-revalidate={ttl}"

# ---------- Endpoints ----------
@app.get("/health")
def health():
    return {"ok": True, "name": config.APP_NAME, "version": app.version}

@app.get("/states")
def states():
    return config.DEFAULT_STATES

@app.get("/weather")
async def weather(response: Response, lat: Optional[str] = None, lon: Optional[str] = None):
    coord = resolve_coordinate(lat, lon)
    data = await upstream.fetch_current_weather(coord)
    _cache_hint(response, config.WEATHER_TTL_SECONDS)
    return data

@app.get("/daily-forecast")
async def daily_forecast(response: Response, lat: Optional[str] = None, lon: Optional[str] = None):
    coord = resolve_coordinate(lat, lon)
    data = await upstream.fetch_forecast(coord)
    _cache_hint(response, config.WEATHER_TTL_SECONDS)
    return data

@app.get("/pollution")
async def pollution(response: Response, lat: Optional[str] = None, lon: Optional[str] = None):
    coord = resolve_coordinate(lat, lon)
    data = await upstream.fetch_air_pollution(coord)
    _cache_hint(response, config.WEATHER_TTL_SECONDS)
    return data

@app.get("/uv")
async def uv(response: Response, lat: Optional[str] = None, lon: Optional[str] = None):
    coord = resolve_coordinate(lat, lon)
    data = await upstream.fetch_uv(coord)
    _cache_hint(response, config.UV_TTL_SECONDS)
    return data

@app.get("/location-search")
async def location_search(q: Optional[str] = Query(default=None)):
    if q is None or not q.strip():
        raise ClientInputError("Search query is required")
    return await upstream.search_locations(q.strip())


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
