"""
Scoring Audit Trail - Captures where every scored value came from.

When a scorer is given an audit log, it records for each resolved indicator:
- Whether the value came from a live/simulated override, the baseline, or is missing
- The baseline value an override shadowed
- Which scorer produced the entry

This enables:
1. Debugging of unexpected scores after live data lands
2. Transparency about which indicators are measured vs. penalized as missing

Recording is purely observational: scores are identical with or without it.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from tqol.schemas.common import ValueSource

logger = logging.getLogger(__name__)


@dataclass
class ScoringAuditEntry:
    """Provenance of one resolved indicator value."""

    city_id: str
    indicator_key: str
    value_used: Optional[float]
    source: ValueSource
    baseline_value: Optional[float] = None
    timestamp: datetime = field(default_factory=datetime.now)
    scorer_name: str = ""
    note: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "city_id": self.city_id,
            "indicator_key": self.indicator_key,
            "value_used": self.value_used,
            "source": self.source.value,
            "baseline_value": self.baseline_value,
            "timestamp": self.timestamp.isoformat(),
            "scorer_name": self.scorer_name,
            "note": self.note,
        }


class ScoringAuditLog:
    """Collects value-provenance entries during scoring for a batch of cities.

    Usage:
        audit_log = ScoringAuditLog()
        scorer = QoLScorer(audit_log=audit_log)
        scorer.compute_all_qol(overrides)

        audit_log.get_summary_for_city("delhi")
        audit_log.export_to_json("/tmp/qol_audit.json")
    """

    def __init__(self):
        self._entries: list[ScoringAuditEntry] = []
        self._warnings: list[ScoringAuditEntry] = []

    def log_value(
        self,
        city_id: str,
        indicator_key: str,
        value: Optional[float],
        baseline_value: Optional[float],
        overridden: bool,
        scorer: str = "",
    ) -> ScoringAuditEntry:
        """Log a resolved indicator value.

        Args:
            city_id: City slug
            indicator_key: Indicator that was resolved
            value: Value used for scoring (None = not measured)
            baseline_value: Value in the baseline dataset
            overridden: Whether a non-null override supplied the value
            scorer: Name of the scorer class (e.g., "QoLScorer")

        Returns:
            The created audit entry
        """
        if overridden:
            source = ValueSource.OVERRIDE
        elif value is None:
            source = ValueSource.MISSING
        else:
            source = ValueSource.BASELINE

        entry = ScoringAuditEntry(
            city_id=city_id,
            indicator_key=indicator_key,
            value_used=value,
            source=source,
            baseline_value=baseline_value,
            scorer_name=scorer,
        )
        self._entries.append(entry)

        if source == ValueSource.MISSING:
            entry.note = f"{city_id}: {indicator_key} not measured, scored as 0 in its dimension"
            self._warnings.append(entry)
            logger.debug(entry.note)

        return entry

    def get_warnings(self) -> list[ScoringAuditEntry]:
        """Get entries for values penalized as missing."""
        return self._warnings.copy()

    def get_all_entries(self) -> list[ScoringAuditEntry]:
        return self._entries.copy()

    def get_summary_for_city(self, city_id: str) -> dict:
        """Get all audit entries for a specific city, grouped by source.

        Args:
            city_id: City slug

        Returns:
            Dictionary with counts and entries for the city
        """
        entries = [e for e in self._entries if e.city_id == city_id]

        by_source: dict[str, list[dict]] = {}
        for entry in entries:
            by_source.setdefault(entry.source.value, []).append(entry.to_dict())

        return {
            "city_id": city_id,
            "total_entries": len(entries),
            "override_count": len(by_source.get(ValueSource.OVERRIDE.value, [])),
            "missing_count": len(by_source.get(ValueSource.MISSING.value, [])),
            "entries_by_source": by_source,
        }

    def export_to_json(self, filepath: str | Path) -> None:
        """Export audit log to JSON file.

        Args:
            filepath: Path to output JSON file
        """
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "generated_at": datetime.now().isoformat(),
            "total_entries": len(self._entries),
            "total_warnings": len(self._warnings),
            "entries": [e.to_dict() for e in self._entries],
            "warnings": [e.to_dict() for e in self._warnings],
        }

        with open(filepath, "w") as f:
            json.dump(data, f, indent=2)

        logger.info(f"Exported {len(self._entries)} audit entries to {filepath}")
