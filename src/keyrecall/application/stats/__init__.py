# Application Stats Package
from .calculator import StatisticsCalculator

__all__ = ["StatisticsCalculator"]
