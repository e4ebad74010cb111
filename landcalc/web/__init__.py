"""LandCalc HTTP API."""
