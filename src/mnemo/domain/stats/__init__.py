# Domain Stats Package
from .models import DayCount, DaySuccess, RetentionPoint, SrsStats

__all__ = ["RetentionPoint", "SrsStats", "DayCount", "DaySuccess"]
