"""Narrative strategies for gap analysis text.

Each indicator has a strategy with three formatters:
    gap(value)              sentence fragment describing the shortfall
    recommendation(value)   what would improve it
    upgrade(from, to)       plain-language description of an improvement

Indicators without a registered strategy get a generic one built from their label.
"""

from dataclasses import dataclass
from typing import Callable

from tqol.scorers.confidence import round_half_up

# WHO 2021 annual air quality guidelines (µg/m³). PM2.5 uses the guideline of 5,
# not interim target 4 (15) that some dashboards divide by, so ratios read 3x higher.
WHO_PM25_GUIDELINE = 5
WHO_NO2_GUIDELINE = 10


@dataclass(frozen=True)
class NarrativeStrategy:
    gap: Callable[[float], str]
    recommendation: Callable[[float], str]
    upgrade: Callable[[float, float], str]


def _r(value: float) -> int:
    return round_half_up(value)


def _rail_recommendation(v: float) -> str:
    if v < 30:
        return "Completing planned metro phases would significantly expand rail transit coverage"
    return "Extending metro network with last-mile bus connectivity would improve transit access"


NARRATIVES: dict[str, NarrativeStrategy] = {
    "traffic_fatalities": NarrativeStrategy(
        gap=lambda v: f"Traffic fatality rate of {v:.1f} per lakh population",
        recommendation=lambda v: "Dedicated pedestrian infrastructure + traffic calming on arterials could halve fatality rates",
        upgrade=lambda a, b: f"reducing fatalities from {a:.1f} to {b:.1f} per lakh",
    ),
    "vru_fatality_share": NarrativeStrategy(
        gap=lambda v: f"{_r(v)}% of traffic fatalities are pedestrians and cyclists",
        recommendation=lambda v: "Protected cycle lanes + pedestrian-priority zones at key junctions could halve VRU fatalities",
        upgrade=lambda a, b: f"reducing VRU fatality share from {_r(a)}% to {_r(b)}%",
    ),
    "walking_share": NarrativeStrategy(
        gap=lambda v: f"Walking share at only {_r(v)}% of trips",
        recommendation=lambda v: "Pedestrian-priority corridors + footpath expansion on arterials could double walking share",
        upgrade=lambda a, b: f"increasing walking share from {_r(a)}% to {_r(b)}%",
    ),
    "cycling_share": NarrativeStrategy(
        gap=lambda v: f"Cycling share at just {_r(v)}% of trips",
        recommendation=lambda v: "Building protected cycle networks + bike-share systems could shift trips from private vehicles",
        upgrade=lambda a, b: f"growing cycling share from {_r(a)}% to {_r(b)}%",
    ),
    "footpath_coverage": NarrativeStrategy(
        gap=lambda v: f"Only {_r(v)}% of roads have paved footpaths",
        recommendation=lambda v: "Mandating footpaths on all arterial and sub-arterial roads would improve walkability scores",
        upgrade=lambda a, b: f"expanding footpath coverage from {_r(a)}% to {_r(b)}%",
    ),
    "rail_transit_km": NarrativeStrategy(
        gap=lambda v: f"Rail transit network at {_r(v)} km",
        recommendation=_rail_recommendation,
        upgrade=lambda a, b: f"expanding rail transit from {_r(a)} to {_r(b)} km",
    ),
    "bus_fleet_per_lakh": NarrativeStrategy(
        gap=lambda v: f"Bus fleet of only {_r(v)} per lakh population",
        recommendation=lambda v: (
            f"Expanding fleet to {max(40, _r(v * 2))} per lakh with electric buses would improve transit accessibility"
        ),
        upgrade=lambda a, b: f"growing bus fleet from {_r(a)} to {_r(b)} per lakh",
    ),
    "transit_stop_density": NarrativeStrategy(
        gap=lambda v: f"Transit stop density of {v:.1f} stops/km²",
        recommendation=lambda v: "Adding feeder bus routes in underserved areas would improve stop density and last-mile coverage",
        upgrade=lambda a, b: f"increasing stop density from {a:.1f} to {b:.1f}/km²",
    ),
    "cycle_infra_km": NarrativeStrategy(
        gap=lambda v: f"Only {_r(v)} km of dedicated cycle infrastructure",
        recommendation=lambda v: (
            f"Building {max(50, _r(v * 3))} km of protected cycle lanes would significantly improve active mobility access"
        ),
        upgrade=lambda a, b: f"building cycle infrastructure from {_r(a)} to {_r(b)} km",
    ),
    "pt_accessibility": NarrativeStrategy(
        gap=lambda v: f"Only {_r(v)}% of city area within 500m of transit",
        recommendation=lambda v: "Expanding bus routes to peri-urban areas would bring more residents within 500m of transit",
        upgrade=lambda a, b: f"expanding transit access from {_r(a)}% to {_r(b)}% of city area",
    ),
    "pm25_annual": NarrativeStrategy(
        gap=lambda v: f"PM2.5 at {_r(v)} µg/m³, {v / WHO_PM25_GUIDELINE:.1f}x the WHO guideline",
        recommendation=lambda v: "Fleet electrification + congestion pricing could cut transport-related PM2.5 by 30%",
        upgrade=lambda a, b: f"reducing PM2.5 from {_r(a)} to {_r(b)} µg/m³",
    ),
    "no2_annual": NarrativeStrategy(
        gap=lambda v: f"NO₂ at {_r(v)} µg/m³, {v / WHO_NO2_GUIDELINE:.1f}x the WHO guideline",
        recommendation=lambda v: "Transitioning bus fleets to electric and expanding metro capacity would reduce NO₂ levels",
        upgrade=lambda a, b: f"reducing NO₂ from {_r(a)} to {_r(b)} µg/m³",
    ),
    "congestion_level": NarrativeStrategy(
        gap=lambda v: f"{_r(v)}% extra travel time due to congestion",
        recommendation=lambda v: "Metro expansion + bus priority lanes could reduce peak-hour congestion significantly",
        upgrade=lambda a, b: f"reducing congestion from {_r(a)}% to {_r(b)}% extra time",
    ),
    "sustainable_mode_share": NarrativeStrategy(
        gap=lambda v: f"Sustainable mode share at only {_r(v)}%",
        recommendation=lambda v: "Investing in NMT infrastructure and public transit would shift trips from private vehicles",
        upgrade=lambda a, b: f"increasing sustainable mode share from {_r(a)}% to {_r(b)}%",
    ),
    "road_density": NarrativeStrategy(
        gap=lambda v: f"Road density of only {v:.1f} km/km²",
        recommendation=lambda v: "Improving road connectivity in peri-urban areas would reduce congestion on arterials",
        upgrade=lambda a, b: f"improving road density from {a:.1f} to {b:.1f} km/km²",
    ),
}


def generic_narrative(label: str) -> NarrativeStrategy:
    """Fallback strategy for indicators without registered text."""
    return NarrativeStrategy(
        gap=lambda v: f"{label} score is low",
        recommendation=lambda v: "Targeted investment in this area would improve the city's overall quality of life score",
        upgrade=lambda a, b: f"improving {label}",
    )


def get_narrative(indicator_key: str, label: str) -> NarrativeStrategy:
    return NARRATIVES.get(indicator_key) or generic_narrative(label)


def lower_first(text: str) -> str:
    """Lower-case the first letter unless the text starts with an acronym (NO₂, PM2.5)."""
    if text[:2].isupper():
        return text
    return text[:1].lower() + text[1:]


def upper_first(text: str) -> str:
    """Capitalize the first letter to open a sentence."""
    return text[:1].upper() + text[1:]


def join_actions(parts: list[str]) -> str:
    """Join phrases as "a", "a and b", or "a, b, and c"."""
    if len(parts) <= 1:
        return "".join(parts)
    if len(parts) == 2:
        return f"{parts[0]} and {parts[1]}"
    return f"{', '.join(parts[:-1])}, and {parts[-1]}"
