"""Deterministic fallback used in demo mode and when the remote service fails."""

from .mock_generator import MockRiskGenerator

__all__ = ["MockRiskGenerator"]
