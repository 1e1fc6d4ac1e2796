"""
Scenario Engine - what-if simulation of policy interventions.

Each intervention is a slider with an ordered list of effects on indicators.
Slider values are clamped to the intervention's range (the minimum can be
city-relative) and sliders left at their city default change nothing.
Effects are applied in order to a working copy of the city's current values
(baseline + live overrides), every result is clamped to >= 0, and the
changed values are layered on top of the live overrides and rescored
through the same ``QoLScorer.compute_city_qol`` as the baseline.

Effect modes:
    set             indicator = slider
    delta_per_unit  indicator += coefficient * (slider - default)
    multiply        indicator *= factor(rule, slider, default, coefficient)

Coefficients can be city-specific; ``CityCoefficientTable`` documents the
fallback for cities it does not list.

Usage:
    from tqol.scorers.scenario_engine import compute_scenario_result

    result = compute_scenario_result("bengaluru", {"metro_km": 317})
    result.grade_change  # "C -> B"
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from tqol.config import get_scenarios_path
from tqol.schemas.common import EffectMode, MultiplyRule
from tqol.schemas.scores import CityQoLScore, IndicatorChange, ScenarioResult
from tqol.scorers.overrides import QoLOverrides, resolve_value, with_city_values
from tqol.scorers.qol_scorer import Overrides, QoLScorer

logger = logging.getLogger(__name__)

# Below this baseline fossil share the grid slider has no further effect
MIN_FOSSIL_SHARE = 0.01


@dataclass(frozen=True)
class CityCoefficientTable:
    """City-keyed coefficients with an explicit fallback policy.

    Cities not listed resolve to ``default_city``'s entry when one is named,
    otherwise to the ``default`` entry.
    """

    name: str
    cities: dict[str, dict[str, float]] = field(default_factory=dict)
    default_city: Optional[str] = None
    default: dict[str, float] = field(default_factory=dict)

    def for_city(self, city_id: str) -> dict[str, float]:
        if city_id in self.cities:
            return self.cities[city_id]
        if self.default_city is not None:
            logger.warning(f"Table {self.name} has no entry for {city_id}, using {self.default_city}")
            return self.cities.get(self.default_city, {})
        logger.debug(f"Table {self.name} has no entry for {city_id}, using default")
        return self.default

    def coefficient(self, city_id: str, name: str) -> Optional[float]:
        return self.for_city(city_id).get(name)


@dataclass(frozen=True)
class SliderValue:
    """A slider bound that is a constant or city-relative.

    City-relative forms: the city's current value of an indicator, or a field
    of a coefficient table.
    """

    constant: Optional[float] = None
    from_indicator: Optional[str] = None
    from_table: Optional[str] = None
    field: Optional[str] = None

    @classmethod
    def parse(cls, raw: Any) -> "SliderValue":
        if isinstance(raw, dict):
            return cls(from_indicator=raw.get("from_indicator"), from_table=raw.get("from_table"), field=raw.get("field"))
        return cls(constant=float(raw))

    def resolve(
        self,
        city_id: str,
        current: Mapping[str, Optional[float]],
        tables: Mapping[str, CityCoefficientTable],
    ) -> float:
        if self.constant is not None:
            return self.constant
        if self.from_indicator is not None:
            return current.get(self.from_indicator) or 0.0
        table = tables.get(self.from_table or "")
        if table is None or self.field is None:
            return 0.0
        return table.coefficient(city_id, self.field) or 0.0


@dataclass(frozen=True)
class Effect:
    indicator: str
    mode: EffectMode
    table: Optional[str] = None
    coefficient: Optional[str] = None
    value: Optional[float] = None
    rule: Optional[MultiplyRule] = None


@dataclass(frozen=True)
class InterventionDefinition:
    """A named slider-controlled policy lever."""

    key: str
    label: str
    unit: str
    min: Optional[SliderValue]  # None = unbounded
    max: Optional[float]
    step: float
    default: SliderValue
    effects: tuple[Effect, ...] = ()
    monotonic: bool = False  # Presets never take this slider below the city default


@dataclass(frozen=True)
class ScenarioPreset:
    key: str
    label: str
    group: str = ""
    description: str = ""
    values: dict[str, float] = field(default_factory=dict)
    paper_score: Optional[float] = None
    paper_grade: Optional[str] = None


@dataclass(frozen=True)
class ScenarioConfig:
    interventions: tuple[InterventionDefinition, ...] = ()
    presets: tuple[ScenarioPreset, ...] = ()
    tables: dict[str, CityCoefficientTable] = field(default_factory=dict)

    def intervention(self, key: str) -> Optional[InterventionDefinition]:
        for intervention in self.interventions:
            if intervention.key == key:
                return intervention
        return None

    def preset(self, key: str) -> Optional[ScenarioPreset]:
        for preset in self.presets:
            if preset.key == key:
                return preset
        return None


def _parse_effect(intervention_key: str, raw: dict[str, Any], tables: Mapping[str, CityCoefficientTable]) -> Effect:
    try:
        mode = EffectMode(raw["mode"])
        rule = MultiplyRule(raw["rule"]) if raw.get("rule") else None
    except ValueError as e:
        raise ValueError(f"Intervention {intervention_key}: {e}") from e
    if mode == EffectMode.MULTIPLY and rule is None:
        raise ValueError(f"Intervention {intervention_key}: multiply effect on {raw['indicator']} needs a rule")
    table = raw.get("table")
    if table is not None and table not in tables:
        raise ValueError(f"Intervention {intervention_key}: unknown coefficient table {table!r}")
    return Effect(
        indicator=raw["indicator"],
        mode=mode,
        table=table,
        coefficient=raw.get("coefficient"),
        value=None if raw.get("value") is None else float(raw["value"]),
        rule=rule,
    )


def build_scenario_config(raw: dict[str, Any]) -> ScenarioConfig:
    """Build and validate scenario configuration from its YAML-shaped dict.

    Raises:
        ValueError: unknown effect mode, rule or table, or a duplicate intervention key.
    """
    tables = {}
    for name, data in (raw.get("coefficient_tables") or {}).items():
        tables[name] = CityCoefficientTable(
            name=name,
            cities={c: {k: float(v) for k, v in coeffs.items()} for c, coeffs in (data.get("cities") or {}).items()},
            default_city=data.get("default_city"),
            default={k: float(v) for k, v in (data.get("default") or {}).items()},
        )

    interventions = []
    seen: set[str] = set()
    for data in raw.get("interventions") or []:
        key = data["key"]
        if key in seen:
            raise ValueError(f"Intervention key {key!r} is defined more than once")
        seen.add(key)
        interventions.append(
            InterventionDefinition(
                key=key,
                label=data.get("label", key),
                unit=data.get("unit", ""),
                min=None if data.get("min") is None else SliderValue.parse(data["min"]),
                max=None if data.get("max") is None else float(data["max"]),
                step=float(data.get("step", 1)),
                default=SliderValue.parse(data.get("default", 0)),
                effects=tuple(_parse_effect(key, e, tables) for e in data.get("effects") or []),
                monotonic=bool(data.get("monotonic", False)),
            )
        )

    presets = tuple(
        ScenarioPreset(
            key=p["key"],
            label=p.get("label", p["key"]),
            group=p.get("group", ""),
            description=p.get("description", ""),
            values={k: float(v) for k, v in (p.get("values") or {}).items()},
            paper_score=p.get("paper_score"),
            paper_grade=p.get("paper_grade"),
        )
        for p in raw.get("presets") or []
    )

    return ScenarioConfig(interventions=tuple(interventions), presets=presets, tables=tables)


def load_scenario_config(path: Optional[Path] = None) -> ScenarioConfig:
    """Read a scenarios YAML file."""
    path = path or get_scenarios_path()
    with open(path) as f:
        raw = yaml.safe_load(f) or {}
    config = build_scenario_config(raw)
    logger.info(
        f"Loaded {len(config.interventions)} interventions, {len(config.presets)} presets, "
        f"{len(config.tables)} coefficient tables"
    )
    return config


# Module-level cache
_config_cache: Optional[ScenarioConfig] = None


def get_scenario_config() -> ScenarioConfig:
    global _config_cache
    if _config_cache is None:
        _config_cache = load_scenario_config()
    return _config_cache


def clear_cache() -> None:
    """Clear cached scenario config (for testing)."""
    global _config_cache
    _config_cache = None


class ScenarioEngine:
    """Applies intervention effects and rescores through a QoLScorer."""

    def __init__(self, scorer: Optional[QoLScorer] = None, config: Optional[ScenarioConfig] = None):
        self.scorer = scorer or QoLScorer()
        self.config = config or get_scenario_config()

    def current_values(self, city_id: str, overrides: Optional[Overrides] = None) -> dict[str, Optional[float]]:
        """Baseline merged with live overrides, for every framework indicator."""
        facts = self.scorer.dataset.get(city_id)
        baseline = facts.values if facts else {}
        return {key: resolve_value(city_id, key, baseline, overrides) for key in self.scorer.framework.indicator_keys}

    def default_interventions(self, city_id: str, overrides: Optional[Overrides] = None) -> dict[str, float]:
        """Slider values that leave the city unchanged."""
        current = self.current_values(city_id, overrides)
        return {i.key: i.default.resolve(city_id, current, self.config.tables) for i in self.config.interventions}

    def resolve_preset(
        self, preset: ScenarioPreset, city_id: str, overrides: Optional[Overrides] = None
    ) -> dict[str, float]:
        """Resolve preset values for a city.

        Omitted sliders take the city default; monotonic sliders never go
        below it.
        """
        values = self.default_interventions(city_id, overrides)
        for key, value in preset.values.items():
            intervention = self.config.intervention(key)
            if intervention is None:
                logger.warning(f"Preset {preset.key} sets unknown intervention {key}, ignoring")
                continue
            values[key] = max(value, values[key]) if intervention.monotonic else value
        return values

    def clamp_slider(
        self,
        intervention: InterventionDefinition,
        city_id: str,
        value: float,
        current: Mapping[str, Optional[float]],
    ) -> float:
        """Clamp a slider value to the intervention's range for this city.

        The lower bound wins when a city already exceeds the upper bound
        (e.g. a rail network longer than the slider maximum).
        """
        clamped = value
        if intervention.max is not None:
            clamped = min(clamped, intervention.max)
        if intervention.min is not None:
            clamped = max(clamped, intervention.min.resolve(city_id, current, self.config.tables))
        if clamped != value:
            logger.debug(f"{intervention.key}={value} is out of range for {city_id}, using {clamped}")
        return clamped

    def _coefficient(self, effect: Effect, city_id: str) -> Optional[float]:
        if effect.table and effect.coefficient:
            coefficient = self.config.tables[effect.table].coefficient(city_id, effect.coefficient)
            if coefficient is not None:
                return coefficient
        return effect.value

    def _multiply_factor(self, effect: Effect, city_id: str, slider: float, default: float) -> float:
        if effect.rule == MultiplyRule.SLIDER_RATIO:
            return slider / default if default else 1.0

        share = self._coefficient(effect, city_id) or 0.0
        if effect.rule == MultiplyRule.SHARE_REDUCTION:
            return 1 - share * (slider - default) / 100

        # FOSSIL_SHARE_SHIFT
        fossil_base = (100 - default) / 100
        fossil_new = (100 - slider) / 100
        if fossil_base <= MIN_FOSSIL_SHARE:
            return 1.0
        return 1 + share * (fossil_new / fossil_base - 1)

    def apply_interventions(
        self,
        city_id: str,
        intervention_values: Mapping[str, float],
        overrides: Optional[Overrides] = None,
    ) -> dict[str, Optional[float]]:
        """Return the city's indicator values after applying every non-default slider."""
        current = self.current_values(city_id, overrides)
        modified = dict(current)

        for key in intervention_values:
            if self.config.intervention(key) is None:
                logger.warning(f"Unknown intervention {key}, ignoring")

        for intervention in self.config.interventions:
            default = intervention.default.resolve(city_id, current, self.config.tables)
            slider = intervention_values.get(intervention.key, default)
            slider = self.clamp_slider(intervention, city_id, slider, current)
            if slider == default:
                continue

            for effect in intervention.effects:
                value = modified.get(effect.indicator)
                if value is None:
                    continue

                if effect.mode == EffectMode.SET:
                    modified[effect.indicator] = slider
                elif effect.mode == EffectMode.DELTA_PER_UNIT:
                    coefficient = self._coefficient(effect, city_id)
                    if coefficient is None:
                        logger.warning(f"No coefficient for {intervention.key} -> {effect.indicator}, skipping")
                        continue
                    modified[effect.indicator] = value + coefficient * (slider - default)
                else:
                    modified[effect.indicator] = value * self._multiply_factor(effect, city_id, slider, default)

        return {k: (None if v is None else max(0.0, v)) for k, v in modified.items()}

    def synthesize_overrides(
        self,
        city_id: str,
        intervention_values: Mapping[str, float],
        baseline_overrides: Optional[Overrides] = None,
    ) -> QoLOverrides:
        """Overrides that express the scenario: changed values layered on the live ones."""
        current = self.current_values(city_id, baseline_overrides)
        modified = self.apply_interventions(city_id, intervention_values, baseline_overrides)
        changed = {k: v for k, v in modified.items() if v is not None and v != current.get(k)}
        return with_city_values(baseline_overrides, city_id, changed)

    def score_with_values(
        self,
        city_id: str,
        values: Mapping[str, Optional[float]],
        overrides: Optional[Overrides] = None,
    ) -> Optional[CityQoLScore]:
        """Rescore a city with ``values`` layered on top of ``overrides``."""
        return self.scorer.compute_city_qol(city_id, with_city_values(overrides, city_id, values))

    def compute_scenario_result(
        self,
        city_id: str,
        intervention_values: Mapping[str, float],
        baseline_overrides: Optional[Overrides] = None,
    ) -> Optional[ScenarioResult]:
        """Compare a scenario against the baseline.

        Args:
            city_id: City slug
            intervention_values: Slider values by intervention key; missing keys take the city default
            baseline_overrides: Live overrides the baseline is scored with

        Returns:
            ScenarioResult, or None if the city has no baseline record
        """
        baseline = self.scorer.compute_city_qol(city_id, baseline_overrides)
        if baseline is None:
            return None

        scenario_overrides = self.synthesize_overrides(city_id, intervention_values, baseline_overrides)
        scenario = self.scorer.compute_city_qol(city_id, scenario_overrides)
        if scenario is None:
            return None

        scenario_values = scenario.indicator_values()
        changes = []
        for dim in baseline.dimensions:
            for ind in dim.indicators:
                scen = scenario_values.get(ind.key)
                delta = scen - ind.value if scen is not None and ind.value is not None else None
                changes.append(
                    IndicatorChange(
                        key=ind.key,
                        label=ind.label,
                        unit=ind.unit,
                        baseline=ind.value,
                        scenario=scen,
                        delta=delta,
                    )
                )

        logger.debug(f"Scenario for {city_id}: {baseline.composite:.4f} -> {scenario.composite:.4f}")
        return ScenarioResult(
            baseline=baseline,
            scenario=scenario,
            delta=scenario.composite - baseline.composite,
            grade_change=f"{baseline.grade} -> {scenario.grade}",
            indicator_changes=changes,
        )


def compute_scenario_result(
    city_id: str,
    intervention_values: Mapping[str, float],
    baseline_overrides: Optional[Overrides] = None,
) -> Optional[ScenarioResult]:
    """Scenario result against the shipped configuration."""
    return ScenarioEngine().compute_scenario_result(city_id, intervention_values, baseline_overrides)


def get_default_interventions(city_id: str, overrides: Optional[Overrides] = None) -> dict[str, float]:
    return ScenarioEngine().default_interventions(city_id, overrides)


def resolve_preset_for_city(
    preset: ScenarioPreset | str, city_id: str, overrides: Optional[Overrides] = None
) -> Optional[dict[str, float]]:
    """Resolve a preset (object or key) for a city; None for an unknown preset key."""
    engine = ScenarioEngine()
    if isinstance(preset, str):
        found = engine.config.preset(preset)
        if found is None:
            return None
        preset = found
    return engine.resolve_preset(preset, city_id, overrides)


def list_presets() -> list[ScenarioPreset]:
    return list(get_scenario_config().presets)
