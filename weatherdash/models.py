from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from weatherdash import config

# ---------- Wire models ----------
class Coordinate(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)

    @classmethod
    def default(cls) -> "Coordinate":
        return cls(latitude=config.DEFAULT_LATITUDE, longitude=config.DEFAULT_LONGITUDE)

class SearchResult(BaseModel):
    # Geocoding rows also carry local_names etc.; keep only what the picker needs.
    model_config = ConfigDict(extra="ignore")
    name: str
    state: Optional[str] = None
    country: Optional[str] = None
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)

# ---------- Display models ----------
@dataclass(frozen=True)
class AirQualityBand:
    rating: int  # upper bound on the 0-100 scale
    description: str

@dataclass(frozen=True)
class DaySummary:
    day_name: str
    day_date: str
    min_temp: float
    max_temp: float
    weather_condition: str
    records: int

@dataclass(frozen=True)
class UvCategory:
    text: str
    description: str

# ---------- Client state ----------
@dataclass(frozen=True)
class DomainState:
    data: Any = None
    is_loading: bool = False
    error: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.data is None or self.data == {} or self.data == []

@dataclass(frozen=True)
class AppState:
    coordinate: Coordinate
    domains: Mapping[str, DomainState] = field(default_factory=lambda: MappingProxyType({}))

    def __getitem__(self, domain: str) -> DomainState:
        return self.domains[domain]

    @property
    def is_loading(self) -> bool:
        return any(d.is_loading for d in self.domains.values())

    @property
    def errors(self) -> dict[str, str]:
        return {name: d.error for name, d in self.domains.items() if d.error}
