"""City Registry - baseline indicator values and per-city external facts.

Loads ``cities.yaml`` once per process. The baseline values are read-only at
runtime; live and simulated values go through the override layer instead.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from tqol.config import get_cities_path
from tqol.constants import TRANSIT_BUS_SOURCE_POINTS, TRANSIT_METRO_SOURCE_POINTS
from tqol.schemas.common import DataStatus

logger = logging.getLogger(__name__)

DEFAULT_DATA_UNLOCK = "Publishing open transport and infrastructure data enables comprehensive analysis"


@dataclass(frozen=True)
class TransitSources:
    """Which structured transit feeds exist for a city."""

    bus: str = "none"  # transit_router | overpass | none
    metro: str = "none"  # gtfs | static | overpass | none
    suburban_rail: bool = False
    operational_lines: bool = False


@dataclass(frozen=True)
class CityFacts:
    """Everything the engine knows about one city besides overrides."""

    city_id: str
    name: str
    values: dict[str, Optional[float]] = field(default_factory=dict)
    region_cities: Optional[str] = None
    pm25_sensors: int = 0
    no2_sensors: int = 0
    transit: TransitSources = field(default_factory=TransitSources)
    readiness: Optional[dict[str, DataStatus]] = None  # None = no readiness record
    data_unlock: str = DEFAULT_DATA_UNLOCK
    region_notes: dict[str, str] = field(default_factory=dict)

    def layer_status(self, layer: str) -> DataStatus:
        """Status of a named data layer; missing layers count as unavailable."""
        if not self.readiness:
            return DataStatus.UNAVAILABLE
        return self.readiness.get(layer, DataStatus.UNAVAILABLE)

    def region_note(self, indicator_key: str) -> Optional[str]:
        """Indicator-specific region note, else the city-wide one."""
        return self.region_notes.get(indicator_key) or self.region_notes.get("default")


@dataclass(frozen=True)
class CityDataset:
    """Baseline dataset keyed by city id, in configuration order."""

    cities: dict[str, CityFacts] = field(default_factory=dict)

    def get(self, city_id: str) -> Optional[CityFacts]:
        return self.cities.get(city_id)

    def city_ids(self) -> list[str]:
        return list(self.cities)

    def with_city(self, facts: CityFacts) -> "CityDataset":
        """Return a new dataset with one city added or replaced."""
        cities = dict(self.cities)
        cities[facts.city_id] = facts
        return CityDataset(cities=cities)


def _parse_city(city_id: str, data: dict[str, Any]) -> CityFacts:
    sensors = data.get("sensors") or {}
    transit_raw = data.get("transit_sources") or {}
    transit = TransitSources(
        bus=transit_raw.get("bus", "none"),
        metro=transit_raw.get("metro", "none"),
        suburban_rail=bool(transit_raw.get("suburban_rail", False)),
        operational_lines=bool(transit_raw.get("operational_lines", False)),
    )
    if transit.bus not in TRANSIT_BUS_SOURCE_POINTS:
        raise ValueError(f"City {city_id} has unknown bus source {transit.bus!r}")
    if transit.metro not in TRANSIT_METRO_SOURCE_POINTS:
        raise ValueError(f"City {city_id} has unknown metro source {transit.metro!r}")

    readiness = None
    if data.get("readiness") is not None:
        try:
            readiness = {layer: DataStatus(status) for layer, status in data["readiness"].items()}
        except ValueError as e:
            raise ValueError(f"City {city_id} has invalid readiness status: {e}") from e

    values = {key: (None if v is None else float(v)) for key, v in (data.get("values") or {}).items()}

    return CityFacts(
        city_id=city_id,
        name=data.get("name", city_id),
        values=values,
        region_cities=data.get("region_cities"),
        pm25_sensors=int(sensors.get("pm25", 0)),
        no2_sensors=int(sensors.get("no2", 0)),
        transit=transit,
        readiness=readiness,
        data_unlock=data.get("data_unlock") or DEFAULT_DATA_UNLOCK,
        region_notes=dict(data.get("region_notes") or {}),
    )


def build_dataset(raw: dict[str, Any]) -> CityDataset:
    """Build a dataset from its YAML-shaped dict."""
    return CityDataset(cities={city_id: _parse_city(city_id, data) for city_id, data in (raw.get("cities") or {}).items()})


def load_dataset(path: Optional[Path] = None) -> CityDataset:
    """Read a cities YAML file."""
    path = path or get_cities_path()
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    dataset = build_dataset(raw)
    logger.info(f"Loaded baseline data for {len(dataset.cities)} cities")
    return dataset


# Module-level cache
_dataset_cache: Optional[CityDataset] = None


def get_dataset() -> CityDataset:
    """Return the shipped city dataset, loading it on first use."""
    global _dataset_cache
    if _dataset_cache is None:
        _dataset_cache = load_dataset()
    return _dataset_cache


def get_city_facts(city_id: str) -> Optional[CityFacts]:
    return get_dataset().get(city_id)


def clear_cache() -> None:
    """Clear cached dataset (for testing)."""
    global _dataset_cache
    _dataset_cache = None
