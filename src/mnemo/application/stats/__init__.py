# Application Stats Package
from .metrics_calculator import MetricsCalculator, RetentionCurve
from .service import StatsService

__all__ = ["MetricsCalculator", "RetentionCurve", "StatsService"]
