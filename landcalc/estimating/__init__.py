"""Estimate building: formula evaluation and line pricing."""

from landcalc.estimating.formula import apply_waste, evaluate

__all__ = ["apply_waste", "evaluate"]
