"""Tests for the command line."""

import json
import logging

import pytest

from tqol.cli import main


@pytest.fixture(autouse=True)
def _quiet(monkeypatch):
    """Run quietly and hand logging back to pytest afterwards."""
    monkeypatch.setenv("TQOL_LOG_LEVEL", "WARNING")
    saved = {}
    for name in (None, "tqol"):
        lg = logging.getLogger(name)
        saved[name] = (lg.handlers[:], lg.level, lg.propagate)
    yield
    for name, (handlers, level, propagate) in saved.items():
        lg = logging.getLogger(name)
        lg.handlers[:] = handlers
        lg.setLevel(level)
        lg.propagate = propagate


class TestCLI:
    def test_score_one_city(self, capsys):
        """One city prints its score as JSON."""
        assert main(["score", "bengaluru"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["city_id"] == "bengaluru"
        assert data["confidence"] in {"gold", "silver", "bronze"}

    def test_score_ranked(self, capsys):
        """Without a city the ranked list is printed best first."""
        assert main(["score"]) == 0
        data = json.loads(capsys.readouterr().out)
        composites = [d["composite"] for d in data]
        assert composites == sorted(composites, reverse=True)

    def test_unknown_city_exits_1(self, capsys):
        """An unknown city is reported on stderr with exit code 1."""
        assert main(["score", "atlantis"]) == 1
        captured = capsys.readouterr()
        assert "Unknown city: atlantis" in captured.err
        assert captured.out == ""

    @pytest.mark.parametrize("command", ["confidence", "scenario", "gaps", "readiness"])
    def test_unknown_city_other_commands(self, command):
        """Every per-city command rejects unknown cities."""
        assert main([command, "atlantis"]) == 1

    def test_scenario_preset_and_set(self, capsys):
        """--set values layer on top of a preset."""
        assert main(["scenario", "bengaluru", "--preset", "ST1A", "--set", "cycle_lanes_km=100"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["delta"] > 0

    def test_scenario_set_clamped_to_range(self, capsys):
        """--set below the city's current network leaves the score unchanged."""
        assert main(["scenario", "bengaluru", "--set", "metro_km=0"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["delta"] == 0.0

    def test_scenario_bad_set(self, capsys):
        """A --set without '=' is rejected."""
        assert main(["scenario", "bengaluru", "--set", "metro_km"]) == 1
        assert "key=value" in capsys.readouterr().err

    def test_scenario_unknown_preset(self):
        """Unknown preset keys are rejected."""
        assert main(["scenario", "bengaluru", "--preset", "NOPE"]) == 1

    def test_gaps_table(self, capsys):
        """The gap table names the city and its upgrade path."""
        assert main(["gaps", "delhi", "--table"]) == 0
        out = capsys.readouterr().out
        assert "National Capital Region" in out
        assert "Upgrade:" in out

    def test_readiness_and_presets(self, capsys):
        """Readiness renders as a table and presets list as JSON."""
        assert main(["readiness", "--table"]) == 0
        assert main(["presets"]) == 0
        out = capsys.readouterr().out
        assert "ST2D" in out

    def test_audit_export(self, tmp_path):
        """--audit writes one entry per scored indicator."""
        out = tmp_path / "audit.json"
        assert main(["score", "pune", "--audit", str(out)]) == 0
        assert json.loads(out.read_text())["total_entries"] == 15

    def test_log_file(self, tmp_path):
        """--log-file keeps a DEBUG-level log of the run even when the console is quiet."""
        log_path = tmp_path / "logs" / "run.log"
        assert main(["score", "pune", "--log-file", str(log_path)]) == 0
        text = log_path.read_text()
        assert "Running command [command=score]" in text
        assert "Scored city" in text
        assert "city_id=pune" in text
        assert not any(isinstance(h, logging.FileHandler) for h in logging.getLogger("tqol").handlers)

    def test_no_command(self, capsys):
        """No subcommand prints help and fails."""
        assert main([]) == 1
