from __future__ import annotations

from typing import Any, Callable, Dict, List

import httpx
import pytest
from fastapi.testclient import TestClient

from weatherdash import cache, config, upstream
from weatherdash.main import app

TEST_KEY = "test-secret-key"


class FakeUpstream:
    """Stands in for OpenWeatherMap / Open-Meteo behind httpx.MockTransport."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.routes: Dict[str, Callable[[httpx.Request], httpx.Response]] = {}

    def on(self, path: str, status: int = 200, body: Any = None, exc: Exception | None = None) -> None:
        def respond(request: httpx.Request) -> httpx.Response:
            if exc is not None:
                raise exc
            return httpx.Response(status, json=body if body is not None else {})
        self.routes[path] = respond

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        respond = self.routes.get(request.url.path)
        if respond is None:
            return httpx.Response(404, json={"message": "not found"})
        return respond(request)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    @property
    def calls(self) -> int:
        return len(self.requests)


CURRENT_WEATHER = {
    "coord": {"lon": 120.9667, "lat": 14.65},
    "weather": [{"id": 803, "main": "Clouds", "description": "broken clouds", "icon": "04d"}],
    "main": {"temp": 303.15, "feels_like": 308.15, "temp_min": 301.15, "temp_max": 304.15, "pressure": 1008, "humidity": 74},
    "visibility": 10000,
    "wind": {"speed": 4.12, "deg": 250},
    "dt": 1718001600,
    "sys": {"country": "PH", "sunrise": 1717967400, "sunset": 1718013900},
    "timezone": 28800,
    "name": "Caloocan City",
}


def forecast_records(count: int = 40, start: int = 1718064000) -> List[Dict[str, Any]]:
    # start is 2024-06-11 00:00 UTC
    out = []
    for i in range(count):
        dt = start + i * 3 * 3600
        out.append({
            "dt": dt,
            "main": {"temp": 300.0 + i % 8, "temp_min": 298.0 + i % 8, "temp_max": 302.0 + i % 8},
            "weather": [{"main": "Rain" if i % 8 < 3 else "Clouds"}],
        })
    return out


DAILY_FORECAST = {"cod": "200", "cnt": 40, "list": forecast_records(), "city": {"name": "Caloocan City", "population": 0}}
POLLUTION = {"coord": {"lon": 120.9667, "lat": 14.65}, "list": [{"main": {"aqi": 3}, "components": {"pm2_5": 12.1}, "dt": 1718001600}]}
UV = {"latitude": 14.65, "longitude": 120.97, "daily": {"time": ["2024-06-10"], "uv_index_max": [9.35], "uv_index_clear_sky_max": [10.1]}}
SEARCH = [
    {"name": "Tokyo", "local_names": {"ja": "東京都"}, "lat": 35.6828, "lon": 139.759, "country": "JP", "state": "Tokyo"},
    {"name": "Tokyo", "lat": 35.6762, "lon": 139.6503, "country": "JP"},
]


@pytest.fixture
def fake_upstream(monkeypatch) -> FakeUpstream:
    fake = FakeUpstream()
    fake.on("/data/2.5/weather", body=CURRENT_WEATHER)
    fake.on("/data/2.5/forecast", body=DAILY_FORECAST)
    fake.on("/data/2.5/air_pollution", body=POLLUTION)
    fake.on("/v1/forecast", body=UV)
    fake.on("/geo/1.0/direct", body=SEARCH)
    monkeypatch.setattr(upstream, "new_client", fake.client)
    monkeypatch.setattr(config, "OPENWEATHER_API_KEY", TEST_KEY)
    monkeypatch.setattr(config, "REDIS_URL", None)
    cache.reset()
    return fake


@pytest.fixture
def api(fake_upstream) -> TestClient:
    return TestClient(app)
