"""Tests for tier classification and shared scoring rules."""

import pytest

from merchantguard_mcp.config import ClientConfig
from merchantguard_mcp.models import AuthorizationLevel, DisputeType, RiskLevel, VAMPStatus
from merchantguard_mcp.scoring import (
    authorization_for_trust,
    checksum,
    classify_risk,
    dispute_risk_level,
    predicted_dispute_type,
    recommended_action,
    spending_limit_for,
    vamp_status_for,
    vamp_threshold_distance,
)

RISK_ORDER = [RiskLevel.CRITICAL, RiskLevel.HIGH, RiskLevel.MEDIUM, RiskLevel.LOW]


def test_checksum_is_sum_of_code_points():
    assert checksum("abc") == 97 + 98 + 99
    assert checksum("") == 0
    assert checksum("M1") == 126


class TestClassifyRisk:
    @pytest.mark.parametrize(
        "score,expected",
        [
            (0, RiskLevel.CRITICAL),
            (15, RiskLevel.CRITICAL),
            (16, RiskLevel.HIGH),
            (30, RiskLevel.HIGH),
            (31, RiskLevel.MEDIUM),
            (60, RiskLevel.MEDIUM),
            (61, RiskLevel.LOW),
            (100, RiskLevel.LOW),
        ],
    )
    def test_default_thresholds(self, demo_config, score, expected):
        assert classify_risk(score, demo_config) == expected

    def test_tiers_are_monotonic(self, demo_config):
        """A higher score is never classified as riskier than a lower one."""
        ranks = [RISK_ORDER.index(classify_risk(score, demo_config)) for score in range(101)]
        assert ranks == sorted(ranks)

    def test_custom_thresholds(self):
        config = ClientConfig(
            auto_decline_threshold=5, high_risk_threshold=40, medium_risk_threshold=80
        )
        assert classify_risk(5, config) == RiskLevel.CRITICAL
        assert classify_risk(40, config) == RiskLevel.HIGH
        assert classify_risk(70, config) == RiskLevel.MEDIUM
        assert classify_risk(81, config) == RiskLevel.LOW

    def test_inverted_thresholds_use_first_match(self):
        config = ClientConfig(
            auto_decline_threshold=50, high_risk_threshold=30, medium_risk_threshold=60
        )
        assert not config.thresholds_ordered
        # Nothing can be "high": every score at or below 30 is already critical.
        assert classify_risk(25, config) == RiskLevel.CRITICAL
        assert classify_risk(40, config) == RiskLevel.CRITICAL
        assert classify_risk(55, config) == RiskLevel.MEDIUM


@pytest.mark.parametrize(
    "level,action",
    [
        (RiskLevel.CRITICAL, "decline"),
        (RiskLevel.HIGH, "review"),
        (RiskLevel.MEDIUM, "approve"),
        (RiskLevel.LOW, "approve"),
    ],
)
def test_recommended_action(level, action):
    assert recommended_action(level) == action


@pytest.mark.parametrize(
    "probability,expected",
    [
        (0.01, RiskLevel.LOW),
        (0.05, RiskLevel.LOW),
        (0.06, RiskLevel.MEDIUM),
        (0.10, RiskLevel.MEDIUM),
        (0.11, RiskLevel.HIGH),
        (0.15, RiskLevel.HIGH),
        (0.16, RiskLevel.CRITICAL),
    ],
)
def test_dispute_risk_level(probability, expected):
    assert dispute_risk_level(probability) == expected


class TestPredictedDisputeType:
    def test_low_probability_has_no_type(self):
        assert predicted_dispute_type(0.05, "subscription", True) is None

    def test_recurring_wins(self):
        assert predicted_dispute_type(0.2, "digital_goods", True) == DisputeType.SUBSCRIPTION_CANCELED

    def test_digital_goods(self):
        assert predicted_dispute_type(0.2, "Digital_Goods", None) == DisputeType.PRODUCT_NOT_AS_DESCRIBED

    def test_default_is_fraud(self):
        assert predicted_dispute_type(0.08, "travel", False) == DisputeType.FRAUD


class TestVamp:
    @pytest.mark.parametrize(
        "rate,status,distance",
        [
            (0.10, VAMPStatus.STANDARD, 0.55),
            (0.64, VAMPStatus.STANDARD, 0.01),
            (0.65, VAMPStatus.MONITORED, 0.25),
            (0.70, VAMPStatus.MONITORED, 0.20),
            (0.90, VAMPStatus.EXCESSIVE, 0.0),
            (1.05, VAMPStatus.EXCESSIVE, 0.0),
        ],
    )
    def test_status_and_distance(self, rate, status, distance):
        assert vamp_status_for(rate) == status
        assert vamp_threshold_distance(rate) == pytest.approx(distance)


class TestAuthorization:
    @pytest.mark.parametrize(
        "trust,level,limit",
        [
            (94, AuthorizationLevel.FULL, 10_000),
            (86, AuthorizationLevel.FULL, 10_000),
            (85, AuthorizationLevel.STANDARD, 1_000),
            (71, AuthorizationLevel.STANDARD, 1_000),
            (70, AuthorizationLevel.BASIC, 100),
            (51, AuthorizationLevel.BASIC, 100),
            (50, AuthorizationLevel.NONE, 100),
        ],
    )
    def test_trust_steps(self, trust, level, limit):
        assert authorization_for_trust(trust) == level
        assert spending_limit_for(level) == limit
