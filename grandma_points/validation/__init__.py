"""Validation package."""

from grandma_points.validation.validator import CalculationValidator

__all__ = ["CalculationValidator"]
