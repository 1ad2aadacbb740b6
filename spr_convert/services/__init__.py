"""Aggregation, orchestration, progress and summary services."""
