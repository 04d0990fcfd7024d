from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Optional

import httpx
from pydantic import TypeAdapter

from weatherdash import config
from weatherdash.errors import DomainFetchError
from weatherdash.models import AppState, Coordinate, DomainState, SearchResult

logger = logging.getLogger(__name__)

FORECAST = "forecast"
DAILY_FORECAST = "dailyForecast"
AIR_POLLUTION = "airPollution"
UV = "uv"
LOCATION_SEARCH = "locationSearch"

# Domain -> proxy handler path
DOMAIN_PATHS: Dict[str, str] = {
    FORECAST: "/weather",
    DAILY_FORECAST: "/daily-forecast",
    AIR_POLLUTION: "/pollution",
    UV: "/uv",
    LOCATION_SEARCH: "/location-search",
}
DOMAINS = tuple(DOMAIN_PATHS)

_search_results = TypeAdapter(List[SearchResult])


class _Failed:
    def __repr__(self) -> str:
        return "FAILED"

    def __bool__(self) -> bool:
        return False

# Returned by a fetch action that failed or whose result was superseded.
FAILED = _Failed()

Listener = Callable[[AppState], None]


def _error_message(exc: Exception) -> str:
    if isinstance(exc, httpx.HTTPStatusError):
        try:
            detail = exc.response.json().get("detail")
        except (ValueError, AttributeError):
            detail = None
        return detail or f"Request failed with status code {exc.response.status_code}"
    if isinstance(exc, httpx.HTTPError):
        return str(exc) or f"Network error ({type(exc).__name__})"
    return str(exc) or type(exc).__name__


class DashboardStore:
    """Single owner of the dashboard's client-side state.

    Holds one DomainState per data domain plus the active coordinate.
    Widgets read ``state`` (an immutable snapshot) or subscribe to it; only
    the action methods below change anything.

    Every fetch action settles: transport and HTTP failures become the
    domain's ``error`` string and the action returns ``FAILED``. Each fetch
    takes a per-domain request token, and a completion whose token has
    been superseded by a newer fetch of the same domain is dropped, so the
    last request wins rather than the last response. A failed refresh keeps
    the previous ``data`` next to the new ``error``.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
        coordinate: Optional[Coordinate] = None,
    ):
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=base_url or config.API_BASE_URL,
            timeout=config.UPSTREAM_TIMEOUT_SECONDS,
        )
        self._coordinate = coordinate or Coordinate.default()
        self._domains: Dict[str, DomainState] = {d: DomainState() for d in DOMAINS}
        self._tokens: Dict[str, int] = {d: 0 for d in DOMAINS}
        self._listeners: List[Listener] = []
        self._last_query = ""
        self._mounted = False

    # ---------- Read side ----------
    @property
    def state(self) -> AppState:
        return AppState(coordinate=self._coordinate, domains=MappingProxyType(dict(self._domains)))

    @property
    def coordinate(self) -> Coordinate:
        return self._coordinate

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        snapshot = self.state
        for listener in list(self._listeners):
            # One broken widget must not stall the store or other widgets
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Listener %r failed", listener)

    def _update(self, domain: str, **changes: Any) -> None:
        self._domains[domain] = replace(self._domains[domain], **changes)
        self._notify()

    # ---------- Actions ----------
    def set_active_coordinate(self, lat: float, lon: float) -> None:
        """Replace the active coordinate. Does not fetch; call fetch_all() after."""
        self._coordinate = Coordinate(latitude=lat, longitude=lon)
        self._notify()

    async def _fetch(self, domain: str, params: Dict[str, Any], parse: Optional[Callable[[Any], Any]] = None) -> Any:
        self._tokens[domain] += 1
        token = self._tokens[domain]
        self._update(domain, is_loading=True, error=None)

        try:
            r = await self._client.get(DOMAIN_PATHS[domain], params=params)
            r.raise_for_status()
            data = r.json()
            if parse is not None:
                data = parse(data)
        except (httpx.HTTPError, ValueError) as e:
            failure = DomainFetchError(domain, _error_message(e))
            if token != self._tokens[domain]:
                logger.debug("Dropping superseded %s failure: %s", domain, failure.message)
                return FAILED
            logger.warning("Fetching %s failed: %s", domain, failure.message)
            self._update(domain, is_loading=False, error=failure.message)
            return FAILED

        if token != self._tokens[domain]:
            logger.debug("Dropping superseded %s response", domain)
            return FAILED
        self._update(domain, data=data, is_loading=False)
        return data

    def _coord_params(self) -> Dict[str, Any]:
        return {"lat": self._coordinate.latitude, "lon": self._coordinate.longitude}

    async def fetch_forecast(self) -> Any:
        return await self._fetch(FORECAST, self._coord_params())

    async def fetch_daily_forecast(self) -> Any:
        return await self._fetch(DAILY_FORECAST, self._coord_params())

    async def fetch_air_pollution(self) -> Any:
        return await self._fetch(AIR_POLLUTION, self._coord_params())

    async def fetch_uv(self) -> Any:
        return await self._fetch(UV, self._coord_params())

    async def fetch_location_search(self, query: str) -> Any:
        """Search locations by free text. Blank queries return None without a request.

        Keystroke debouncing is the caller's job.
        """
        query = (query or "").strip()
        if not query:
            return None
        self._last_query = query
        return await self._fetch(LOCATION_SEARCH, {"q": query}, parse=_search_results.validate_python)

    async def fetch_all(self) -> Dict[str, Any]:
        """Fetch every domain concurrently and wait for all of them to settle.

        The search domain re-runs the last query, if there was one.
        """
        results = await asyncio.gather(
            self.fetch_forecast(),
            self.fetch_daily_forecast(),
            self.fetch_air_pollution(),
            self.fetch_uv(),
            self.fetch_location_search(self._last_query),
            return_exceptions=True,
        )
        for domain, result in zip(DOMAINS, results):
            if isinstance(result, BaseException):
                logger.error("Fetching %s raised %r", domain, result)
        return dict(zip(DOMAINS, results))

    async def mount(self) -> bool:
        """First call runs fetch_all(); later calls do nothing. Returns whether it fetched."""
        if self._mounted:
            return False
        self._mounted = True
        await self.fetch_all()
        return True

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "DashboardStore":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
