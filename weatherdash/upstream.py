from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from weatherdash import cache, config
from weatherdash.errors import ConfigurationError, UpstreamError
from weatherdash.models import Coordinate

logger = logging.getLogger(__name__)

# Upstream calls for the proxy handlers. One outbound request per call, no
# retries. The credential is added last and is never part of a log line or
# a cache key.

def new_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=config.UPSTREAM_TIMEOUT_SECONDS,
        headers={"Accept": "application/json"},
    )

def require_api_key() -> str:
    key = config.OPENWEATHER_API_KEY
    if not key:
        logger.error("OPENWEATHER_API_KEY is not set; refusing upstream call")
        raise ConfigurationError()
    return key

async def _get_json(
    label: str,
    url: str,
    params: Dict[str, Any],
    error_message: str,
    api_key: Optional[str] = None,
    cache_for: Optional[Coordinate] = None,
    ttl: Optional[int] = None,
) -> Any:
    cacheable = cache_for is not None and ttl is not None
    if cacheable:
        cached = cache.lookup(label, cache_for)
        if cached is not None:
            return cached

    query = dict(params)
    if api_key is not None:
        query["appid"] = api_key

    try:
        async with new_client() as client:
            r = await client.get(url, params=query)
    except httpx.HTTPError as e:
        # str(e) can carry the request URL, so only the class name is logged
        logger.warning("Upstream %s transport failure: %s", label, type(e).__name__)
        raise UpstreamError(error_message) from None

    if not r.is_success:
        logger.warning("Upstream %s responded with status %s", label, r.status_code)
        raise UpstreamError(error_message, upstream_status=r.status_code)

    try:
        data = r.json()
    except ValueError:
        logger.warning("Upstream %s returned a non-JSON body", label)
        raise UpstreamError(error_message, upstream_status=r.status_code) from None

    if cacheable:
        cache.remember(label, cache_for, data, ttl)
    return data

def _coord_params(coord: Coordinate) -> Dict[str, Any]:
    return {"lat": coord.latitude, "lon": coord.longitude}

async def fetch_current_weather(coord: Coordinate) -> Any:
    key = require_api_key()
    return await _get_json(
        "weather",
        f"{config.OPENWEATHER_BASE_URL}/data/2.5/weather",
        _coord_params(coord),
        "Error fetching weather data",
        api_key=key,
        cache_for=coord,
        ttl=config.WEATHER_TTL_SECONDS,
    )

async def fetch_forecast(coord: Coordinate) -> Any:
    """5-day forecast in 3-hour steps (40 records)."""
    key = require_api_key()
    return await _get_json(
        "daily-forecast",
        f"{config.OPENWEATHER_BASE_URL}/data/2.5/forecast",
        _coord_params(coord),
        "Error fetching daily forecast",
        api_key=key,
        cache_for=coord,
        ttl=config.WEATHER_TTL_SECONDS,
    )

async def fetch_air_pollution(coord: Coordinate) -> Any:
    key = require_api_key()
    return await _get_json(
        "pollution",
        f"{config.OPENWEATHER_BASE_URL}/data/2.5/air_pollution",
        _coord_params(coord),
        "Error fetching pollution data",
        api_key=key,
        cache_for=coord,
        ttl=config.WEATHER_TTL_SECONDS,
    )

async def fetch_uv(coord: Coordinate) -> Any:
    # Open-Meteo is keyless; the credential check keeps every weather
    # domain on the same contract.
    require_api_key()
    return await _get_json(
        "uv",
        config.OPEN_METEO_FORECAST_URL,
        {
            "latitude": coord.latitude,
            "longitude": coord.longitude,
            "daily": "uv_index_max,uv_index_clear_sky_max",
            "timezone": "auto",
            "forecast_days": 1,
        },
        "Error fetching UV data",
        cache_for=coord,
        ttl=config.UV_TTL_SECONDS,
    )

async def search_locations(query: str) -> Any:
    key = require_api_key()
    return await _get_json(
        "location-search",
        f"{config.OPENWEATHER_BASE_URL}/geo/1.0/direct",
        {"q": query, "limit": config.SEARCH_LIMIT},
        "Error fetching location data",
        api_key=key,
    )
