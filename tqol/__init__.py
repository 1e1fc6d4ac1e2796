"""Transport Quality of Life scoring, confidence, and scenario engine."""

__version__ = "0.4.0"
