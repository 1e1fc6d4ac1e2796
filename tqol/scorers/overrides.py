"""Override Layer - sparse per-city values that shadow the baseline dataset.

An overrides map is ``{city_id: {indicator_key: value | None}}``. It is built
fresh per computation and never mutated: every helper here returns a new map.
An override wins only when it is present and not None.
"""

from typing import Mapping, Optional

QoLOverrides = dict[str, dict[str, Optional[float]]]


def resolve_value(
    city_id: str,
    key: str,
    baseline: Mapping[str, Optional[float]],
    overrides: Optional[Mapping[str, Mapping[str, Optional[float]]]] = None,
) -> Optional[float]:
    """Resolve ``overrides[city][key] ?? baseline[key] ?? None``."""
    if overrides:
        override = overrides.get(city_id, {}).get(key)
        if override is not None:
            return override
    return baseline.get(key)


def live_keys(city_id: str, overrides: Optional[Mapping[str, Mapping[str, Optional[float]]]]) -> set[str]:
    """Indicator keys with a non-null override for the city."""
    if not overrides:
        return set()
    return {k for k, v in overrides.get(city_id, {}).items() if v is not None}


def merge_overrides(*layers: Optional[Mapping[str, Mapping[str, Optional[float]]]]) -> QoLOverrides:
    """Shallow-merge override layers per city; later layers win, None never shadows."""
    merged: QoLOverrides = {}
    for layer in layers:
        if not layer:
            continue
        for city_id, values in layer.items():
            city = merged.setdefault(city_id, {})
            for key, value in values.items():
                if value is not None or key not in city:
                    city[key] = value
    return merged


def with_city_values(
    overrides: Optional[Mapping[str, Mapping[str, Optional[float]]]],
    city_id: str,
    values: Mapping[str, Optional[float]],
) -> QoLOverrides:
    """Return a new overrides map with ``values`` layered on top for one city.

    This is the single override-synthesis path used for scenario and
    upgrade simulation.
    """
    return merge_overrides(overrides, {city_id: dict(values)})


def build_qol_overrides(
    safety: Optional[Mapping[str, Mapping[str, Optional[float]]]] = None,
    pm25: Optional[Mapping[str, Optional[float]]] = None,
    no2: Optional[Mapping[str, Optional[float]]] = None,
    congestion: Optional[Mapping[str, Optional[float]]] = None,
) -> QoLOverrides:
    """Assemble overrides from already-resolved live readings.

    Args:
        safety: ``{city: {"fatalities_per_lakh": x, "vru_fatality_share": y}}``
        pm25: ``{city: annual PM2.5}``
        no2: ``{city: annual NO2}``
        congestion: ``{city: congestion %}``

    Returns:
        Overrides map; None readings are skipped.
    """
    overrides: QoLOverrides = {}

    def put(city_id: str, key: str, value: Optional[float]) -> None:
        if value is not None:
            overrides.setdefault(city_id, {})[key] = value

    for city_id, stats in (safety or {}).items():
        put(city_id, "traffic_fatalities", stats.get("fatalities_per_lakh"))
        put(city_id, "vru_fatality_share", stats.get("vru_fatality_share"))

    for city_id, value in (pm25 or {}).items():
        put(city_id, "pm25_annual", value)
    for city_id, value in (no2 or {}).items():
        put(city_id, "no2_annual", value)
    for city_id, value in (congestion or {}).items():
        put(city_id, "congestion_level", value)

    return overrides
