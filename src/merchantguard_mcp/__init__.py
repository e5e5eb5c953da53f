"""MerchantGuard MCP: GuardScore risk-assessment tools for AI agents.

Exposes transaction scoring, merchant lookup, agent verification, dispute
prediction, velocity, cross-rail and VAMP analysis as MCP tools backed by the
GuardScore API, with a deterministic local fallback.
"""

__version__ = "1.0.0"

from .client import GuardScoreClient
from .config import ClientConfig, Settings

__all__ = ["__version__", "GuardScoreClient", "ClientConfig", "Settings"]
