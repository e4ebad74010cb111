"""LandCalc - estimation and pricing engine for landscaping contractors."""

__version__ = "0.1.0"
