"""
Global constants for the scoring engine.

Centralizes the fixed weights and thresholds of the confidence estimator
and gap analyzer for easier maintenance and tuning.
"""

# Normalization
NEUTRAL_SCORE = 0.5  # Unscoreable indicator (no benchmark / degenerate benchmark)

# Confidence factor weights (sum to 1.0)
CONFIDENCE_WEIGHTS = {
    "indicator_coverage": 0.15,
    "live_data_freshness": 0.25,
    "sensor_coverage": 0.10,
    "transit_data_quality": 0.20,
    "data_readiness": 0.20,
    "altmo_traces": 0.10,
}

# Confidence tiers (score 0-100)
GOLD_TIER_THRESHOLD = 70
SILVER_TIER_THRESHOLD = 45

# Sensor coverage saturates at this many configured sensors (PM2.5 + NO2)
SENSOR_SATURATION_COUNT = 10

# Transit data quality checklist (points, max 20)
TRANSIT_BUS_SOURCE_POINTS = {"transit_router": 5, "overpass": 3, "none": 0}
TRANSIT_METRO_SOURCE_POINTS = {"gtfs": 5, "static": 4, "overpass": 3, "none": 0}
TRANSIT_SUBURBAN_RAIL_POINTS = 3
TRANSIT_OPERATIONAL_LINES_POINTS = 3
TRANSIT_RIDERSHIP_POINTS = {"available": 4, "partial": 2, "unavailable": 0}
TRANSIT_MAX_POINTS = 20

# Readiness layer consulted for the traces factor and the ridership check
ALTMO_TRACES_LAYER = "altmo_traces"
METRO_RIDERSHIP_LAYER = "metro_ridership"

# Gap analysis
UPGRADE_CANDIDATE_MAX_NORMALIZED = 0.7  # Indicators scoring above this are not worth pushing
UPGRADE_MAX_PICKS = 3
UPGRADE_MIN_TARGET_CHANGE = 0.01
UPGRADE_MIN_GAIN = 0.001
COMPOUNDING_THRESHOLD = 0.5  # Second-worst indicator below this is mentioned in the gap sentence
