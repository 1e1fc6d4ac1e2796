"""
Central configuration for reference-data paths.

Static reference data (framework taxonomy, benchmarks, city baselines,
scenario coefficients) lives in YAML files under ``config/`` at the
repository root.

Environment variables:
  - TQOL_CONFIG_DIR: directory holding framework.yaml, cities.yaml, scenarios.yaml
  - TQOL_LOG_LEVEL (default: INFO): log level used by the CLI
"""

import os
from pathlib import Path

FRAMEWORK_FILE = "framework.yaml"
CITIES_FILE = "cities.yaml"
SCENARIOS_FILE = "scenarios.yaml"


def get_config_dir() -> Path:
    """
    Get the reference-data directory.

    Uses TQOL_CONFIG_DIR environment variable if set, otherwise defaults
    to the ``config/`` directory next to the package.

    Returns:
        Path to config directory
    """
    env_path = os.environ.get("TQOL_CONFIG_DIR")
    if env_path:
        return Path(env_path).expanduser().resolve()
    return Path(__file__).parent.parent / "config"


def get_framework_path() -> Path:
    """Get the framework taxonomy/benchmark file."""
    return get_config_dir() / FRAMEWORK_FILE


def get_cities_path() -> Path:
    """Get the city baseline/facts file."""
    return get_config_dir() / CITIES_FILE


def get_scenarios_path() -> Path:
    """Get the scenario interventions/coefficients file."""
    return get_config_dir() / SCENARIOS_FILE


def get_log_level() -> str:
    """Get the default log level for command-line runs."""
    return os.environ.get("TQOL_LOG_LEVEL", "INFO").upper()
