"""Tier classification and shared scoring rules.

Used by both the mock generator and the response normalizers so that a
score means the same thing regardless of where it came from.
"""

from __future__ import annotations

from typing import Optional, Tuple

from .config import ClientConfig
from .models import AuthorizationLevel, DisputeType, RiskLevel, VAMPStatus

VAMP_MONITORED_THRESHOLD = 0.65
VAMP_EXCESSIVE_THRESHOLD = 0.90

# (minimum exclusive trust score, level, spending limit in USD)
AUTHORIZATION_STEPS: Tuple[Tuple[int, AuthorizationLevel, int], ...] = (
    (85, AuthorizationLevel.FULL, 10_000),
    (70, AuthorizationLevel.STANDARD, 1_000),
    (50, AuthorizationLevel.BASIC, 100),
)
SPENDING_LIMITS = {level: limit for _, level, limit in AUTHORIZATION_STEPS}
SPENDING_LIMITS[AuthorizationLevel.NONE] = 100


def checksum(identifier: str) -> int:
    """Sum of the code points of ``identifier``."""
    return sum(ord(ch) for ch in identifier)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def classify_risk(score: float, config: ClientConfig) -> RiskLevel:
    """Map a 0-100 score (higher is safer) onto a risk tier."""
    if score <= config.auto_decline_threshold:
        return RiskLevel.CRITICAL
    if score <= config.high_risk_threshold:
        return RiskLevel.HIGH
    if score <= config.medium_risk_threshold:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def recommended_action(level: RiskLevel) -> str:
    if level == RiskLevel.CRITICAL:
        return "decline"
    if level == RiskLevel.HIGH:
        return "review"
    return "approve"


def dispute_risk_level(probability: float) -> RiskLevel:
    if probability > 0.15:
        return RiskLevel.CRITICAL
    if probability > 0.10:
        return RiskLevel.HIGH
    if probability > 0.05:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def predicted_dispute_type(
    probability: float, merchant_category: str, is_recurring: Optional[bool]
) -> Optional[DisputeType]:
    if probability <= 0.05:
        return None
    if is_recurring:
        return DisputeType.SUBSCRIPTION_CANCELED
    if merchant_category.lower() == "digital_goods":
        return DisputeType.PRODUCT_NOT_AS_DESCRIBED
    return DisputeType.FRAUD


def vamp_status_for(fraud_rate: float) -> VAMPStatus:
    if fraud_rate < VAMP_MONITORED_THRESHOLD:
        return VAMPStatus.STANDARD
    if fraud_rate < VAMP_EXCESSIVE_THRESHOLD:
        return VAMPStatus.MONITORED
    return VAMPStatus.EXCESSIVE


def vamp_threshold_distance(fraud_rate: float) -> float:
    """Gap between ``fraud_rate`` and the next VAMP boundary, never negative."""
    if fraud_rate < VAMP_MONITORED_THRESHOLD:
        return round(VAMP_MONITORED_THRESHOLD - fraud_rate, 2)
    if fraud_rate < VAMP_EXCESSIVE_THRESHOLD:
        return round(VAMP_EXCESSIVE_THRESHOLD - fraud_rate, 2)
    return 0.0


def authorization_for_trust(trust_score: float) -> AuthorizationLevel:
    for minimum, level, _ in AUTHORIZATION_STEPS:
        if trust_score > minimum:
            return level
    return AuthorizationLevel.NONE


def spending_limit_for(level: AuthorizationLevel) -> int:
    return SPENDING_LIMITS[level]
