"""
Transport QoL CLI - score cities, run what-if scenarios, and show gaps.

Usage:
    # Ranked QoL scores for every city
    python -m tqol score --table

    # One city's full score breakdown as JSON
    python -m tqol score bengaluru

    # Data confidence breakdown
    python -m tqol confidence delhi

    # What-if scenario from a preset, with an extra slider
    python -m tqol scenario bengaluru --preset ST2A --set fleet_electrification_pct=50

    # Gap analysis for every city, in rank order
    python -m tqol gaps --table

    # Data readiness checklist
    python -m tqol readiness

    # Available scenario presets
    python -m tqol presets

    # Export the value-provenance audit trail
    python -m tqol score --audit /tmp/qol_audit.json

    # Keep a debug log of the run
    python -m tqol score --log-file logs/score.log
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from tqol.config import get_log_level
from tqol.scorers.gap_analyzer import GapAnalyzer
from tqol.scorers.qol_scorer import QoLScorer
from tqol.scorers.readiness import compute_all_readiness, compute_readiness_score
from tqol.scorers.scenario_engine import ScenarioEngine
from tqol.utils.formatting import (
    city_name,
    confidence_label,
    confidence_tooltip_lines,
    fmt_indicator_value,
    gap_to_next_grade,
    grade_label,
)
from tqol.utils.logger import PipelineLogger, configure_global_logging
from tqol.utils.scoring_audit import ScoringAuditLog

console = Console()


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _unknown_city(city_id: str) -> int:
    print(f"Error: Unknown city: {city_id}", file=sys.stderr)
    return 1


def _build_scorer(args: argparse.Namespace) -> QoLScorer:
    audit_log = ScoringAuditLog() if args.audit else None
    return QoLScorer(audit_log=audit_log)


def _export_audit(args: argparse.Namespace, scorer: QoLScorer) -> None:
    if args.audit and scorer.audit_log is not None:
        scorer.audit_log.export_to_json(args.audit)


def cmd_score(args: argparse.Namespace) -> int:
    """Show one city's score, or the ranked list."""
    scorer = _build_scorer(args)

    if args.city:
        score = scorer.compute_city_qol(args.city)
        if score is None:
            return _unknown_city(args.city)
        scores = [score]
    else:
        scores = scorer.compute_all_qol()

    for score in scores:
        args.logger.log_city_scored(score.city_id, score.composite, score.grade, score.confidence.value)

    if args.table:
        table = Table(title="Transport QoL")
        table.add_column("#", justify="right")
        table.add_column("City", style="cyan")
        table.add_column("Score", justify="right")
        table.add_column("Grade")
        table.add_column("Confidence")
        for rank, score in enumerate(scores, 1):
            table.add_row(
                str(rank),
                city_name(score.city_id),
                f"{score.composite:.3f}",
                f"{score.grade} ({grade_label(score.grade)})",
                confidence_label(score.confidence),
            )
        console.print(table)

        if args.city:
            score = scores[0]
            detail = Table(title="Indicators")
            detail.add_column("Dimension")
            detail.add_column("Indicator")
            detail.add_column("Value", justify="right")
            detail.add_column("Normalized", justify="right")
            for dim in score.dimensions:
                detail.add_row(
                    f"[bold]{dim.label}[/bold]",
                    f"{dim.available_count}/{dim.total_count} measured",
                    f"x {dim.weight:.2f}",
                    f"{dim.score:.3f}",
                )
                for ind in dim.indicators:
                    normalized = "" if ind.normalized is None else f"{ind.normalized:.3f}"
                    detail.add_row("", ind.label, fmt_indicator_value(ind.value, ind.unit), normalized)
            console.print(detail)
            gap = gap_to_next_grade(score.composite, scorer.framework)
            if gap:
                console.print(f"{gap['points_needed']} points to grade {gap['grade']}")
    elif args.city:
        _print_json(scores[0].model_dump(mode="json"))
    else:
        _print_json([s.model_dump(mode="json") for s in scores])

    _export_audit(args, scorer)
    return 0


def cmd_confidence(args: argparse.Namespace) -> int:
    """Show a city's data confidence breakdown."""
    scorer = _build_scorer(args)
    score = scorer.compute_city_qol(args.city)
    if score is None:
        return _unknown_city(args.city)

    breakdown = score.confidence_breakdown
    if args.table:
        table = Table(title=f"{city_name(args.city)}: {breakdown.score} ({confidence_label(breakdown.tier)})")
        table.add_column("Factor")
        table.add_column("Score", justify="right")
        for line in confidence_tooltip_lines(breakdown):
            table.add_row(line["label"], str(line["score"]))
        console.print(table)
    else:
        _print_json(breakdown.model_dump(mode="json"))

    _export_audit(args, scorer)
    return 0


def _parse_set_values(pairs: Optional[list[str]]) -> dict[str, float]:
    values = {}
    for pair in pairs or []:
        key, sep, raw = pair.partition("=")
        if not sep:
            raise ValueError(f"Expected key=value, got {pair!r}")
        values[key.strip()] = float(raw)
    return values


def cmd_scenario(args: argparse.Namespace) -> int:
    """Run a what-if scenario against a city's baseline."""
    scorer = _build_scorer(args)
    engine = ScenarioEngine(scorer=scorer)

    if scorer.dataset.get(args.city) is None:
        return _unknown_city(args.city)

    try:
        overrides = _parse_set_values(args.set)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.preset:
        preset = engine.config.preset(args.preset)
        if preset is None:
            print(f"Error: Unknown preset: {args.preset}", file=sys.stderr)
            return 1
        values = engine.resolve_preset(preset, args.city)
    else:
        values = engine.default_interventions(args.city)
    values.update(overrides)

    result = engine.compute_scenario_result(args.city, values)
    if result is None:
        return _unknown_city(args.city)

    if args.table:
        table = Table(
            title=(
                f"{city_name(args.city)}: {result.baseline.composite:.3f} -> {result.scenario.composite:.3f} "
                f"({result.delta:+.3f}), grade {result.grade_change}"
            )
        )
        table.add_column("Indicator")
        table.add_column("Baseline", justify="right")
        table.add_column("Scenario", justify="right")
        for change in result.indicator_changes:
            if change.delta:
                table.add_row(
                    change.label,
                    fmt_indicator_value(change.baseline, change.unit),
                    fmt_indicator_value(change.scenario, change.unit),
                )
        console.print(table)
    else:
        _print_json(result.model_dump(mode="json"))

    _export_audit(args, scorer)
    return 0


def cmd_gaps(args: argparse.Namespace) -> int:
    """Show gap analysis for one city or all cities in rank order."""
    scorer = _build_scorer(args)
    analyzer = GapAnalyzer(scorer=scorer)

    if args.city:
        gap = analyzer.compute_city_gap(args.city)
        if gap is None:
            return _unknown_city(args.city)
        gaps = [gap]
    else:
        gaps = analyzer.compute_all_gaps()

    if args.table:
        for gap in gaps:
            console.print(f"[bold]{city_name(gap.city_id)}[/bold]: weakest {gap.worst_dimension} / {gap.worst_indicator}")
            console.print(f"  Gap:       {gap.gap_sentence}", markup=False)
            console.print(f"  Action:    {gap.recommendation}", markup=False)
            console.print(f"  Upgrade:   {gap.upgrade_sentence}", markup=False)
            console.print(f"  Data:      {gap.data_unlock_sentence}", markup=False)
    elif args.city:
        _print_json(gaps[0].model_dump(mode="json"))
    else:
        _print_json([g.model_dump(mode="json") for g in gaps])

    _export_audit(args, scorer)
    return 0


def cmd_readiness(args: argparse.Namespace) -> int:
    """Show the data readiness checklist."""
    if args.city:
        score = compute_readiness_score(args.city)
        if score is None:
            return _unknown_city(args.city)
        scores = [score]
    else:
        scores = compute_all_readiness()

    if args.table:
        table = Table(title="Data Readiness")
        table.add_column("City", style="cyan")
        table.add_column("Total", justify="right")
        for category in scores[0].categories if scores else []:
            table.add_column(category.label, justify="right")
        for score in scores:
            table.add_row(
                city_name(score.city_id),
                f"{score.total:g}/{score.max_score:g}",
                *(f"{c.score:g}/{c.max:g}" for c in score.categories),
            )
        console.print(table)
    else:
        _print_json([s.model_dump(mode="json") for s in scores])
    return 0


def cmd_presets(args: argparse.Namespace) -> int:
    """List scenario presets."""
    engine = ScenarioEngine()
    if args.table:
        table = Table(title="Scenario Presets")
        table.add_column("Key", style="cyan")
        table.add_column("Group")
        table.add_column("Description")
        table.add_column("Values")
        for preset in engine.config.presets:
            values = ", ".join(f"{k}={v:g}" for k, v in preset.values.items()) or "(defaults)"
            table.add_row(preset.key, preset.group, preset.description, values)
        console.print(table)
    else:
        _print_json(
            [
                {
                    "key": p.key,
                    "label": p.label,
                    "group": p.group,
                    "description": p.description,
                    "values": p.values,
                    "paper_score": p.paper_score,
                    "paper_grade": p.paper_grade,
                }
                for p in engine.config.presets
            ]
        )
    return 0


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--table", action="store_true", help="Print a short table instead of JSON")
    common.add_argument("--log-level", default=get_log_level(), help="Log level (default: $TQOL_LOG_LEVEL or INFO)")
    common.add_argument("--audit", metavar="PATH", help="Export the value-provenance audit trail to PATH")
    common.add_argument("--log-file", metavar="PATH", help="Also write a DEBUG-level log to PATH")

    parser = argparse.ArgumentParser(
        prog="tqol",
        description="Transport Quality of Life scoring and scenario CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    score_parser = subparsers.add_parser("score", parents=[common], help="QoL score for one city or all")
    score_parser.add_argument("city", nargs="?", help="City id (default: ranked list)")

    confidence_parser = subparsers.add_parser("confidence", parents=[common], help="Data confidence breakdown")
    confidence_parser.add_argument("city", help="City id")

    scenario_parser = subparsers.add_parser("scenario", parents=[common], help="Run a what-if scenario")
    scenario_parser.add_argument("city", help="City id")
    scenario_parser.add_argument("--preset", help="Preset key (e.g., ST1A)")
    scenario_parser.add_argument(
        "--set", action="append", metavar="KEY=VALUE", help="Slider value, repeatable (e.g., metro_km=200)"
    )

    gaps_parser = subparsers.add_parser("gaps", parents=[common], help="Gap analysis")
    gaps_parser.add_argument("city", nargs="?", help="City id (default: all, in rank order)")

    readiness_parser = subparsers.add_parser("readiness", parents=[common], help="Data readiness checklist")
    readiness_parser.add_argument("city", nargs="?", help="City id (default: all)")

    subparsers.add_parser("presets", parents=[common], help="List scenario presets")

    return parser


COMMANDS = {
    "score": cmd_score,
    "confidence": cmd_confidence,
    "scenario": cmd_scenario,
    "gaps": cmd_gaps,
    "readiness": cmd_readiness,
    "presets": cmd_presets,
}


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 1

    configure_global_logging(args.log_level)
    if args.log_file:
        log_path = Path(args.log_file)
        args.logger = PipelineLogger(log_level=args.log_level, log_file=log_path.name, log_dir=log_path.parent)
    else:
        args.logger = PipelineLogger(log_level=args.log_level)

    try:
        args.logger.debug("Running command", command=args.command)
        return command(args)
    finally:
        args.logger.close()


if __name__ == "__main__":
    sys.exit(main())
