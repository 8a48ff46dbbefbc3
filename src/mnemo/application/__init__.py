# Application Package
from .engine import SpacedRepetitionEngine
from .quality import quality_from_answer

__all__ = ["SpacedRepetitionEngine", "quality_from_answer"]
