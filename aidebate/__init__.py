"""AI debate orchestration and scoring engine."""

__version__ = "1.0.0"
