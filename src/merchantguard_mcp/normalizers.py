"""
Response normalizers for the GuardScore endpoints.

Single responsibility: turn a loosely typed remote payload into the
canonical result for one operation. Every remote field is treated as
optional and replaced by a documented default when missing or mistyped.
"""

import math
import re
from typing import Any, Dict, List, Mapping, Optional

from .config import ClientConfig
from .fallback.mock_generator import agent_initiated_factor
from .models import (
    AgentVerification,
    AgentVerifyRequest,
    AuthorizationLevel,
    CrossRailCheckRequest,
    CrossRailResult,
    DisputePredictRequest,
    DisputePrediction,
    MerchantLookupRequest,
    MerchantProfile,
    PaymentRail,
    RiskFactor,
    RiskLevel,
    TransactionRiskRequest,
    TransactionRiskResult,
    VAMPAnalysis,
    VAMPAnalysisRequest,
    VAMPStatus,
    VerificationStatus,
    utc_now,
)
from .scoring import (
    clamp,
    classify_risk,
    dispute_risk_level,
    predicted_dispute_type,
    recommended_action,
    spending_limit_for,
    vamp_status_for,
    vamp_threshold_distance,
)

MAX_LIST_ITEMS = 5

# Simulator rates are percentages.
MAX_VAMP_PCT = 100.0

ASSESSMENT_VERSION = "2.0"
SIMULATOR_VERSION = "MerchantGuard VAMP Simulator v1.0"

# Remote vocabularies. Unrecognised values fall back to the named defaults.
SEVERITY_MAP = {
    "critical": RiskLevel.CRITICAL,
    "warning": RiskLevel.HIGH,
    "info": RiskLevel.MEDIUM,
    "success": RiskLevel.LOW,
    "ok": RiskLevel.LOW,
}
RISK_LEVEL_MAP = {level.value: level for level in RiskLevel}
DEFAULT_RISK_LEVEL = RiskLevel.MEDIUM

VAMP_STATUS_MAP = {
    "at_risk": VAMPStatus.EXCESSIVE,
    "excessive": VAMPStatus.EXCESSIVE,
    "warning": VAMPStatus.MONITORED,
    "monitored": VAMPStatus.MONITORED,
    "standard": VAMPStatus.STANDARD,
}
DEFAULT_VAMP_STATUS = VAMPStatus.STANDARD

CAPABILITY_MAP = {
    "PAYMENT_EXECUTE": AuthorizationLevel.FULL,
    "ORCHESTRATE": AuthorizationLevel.FULL,
    "PAYMENT_INITIATE": AuthorizationLevel.STANDARD,
    "DATA_WRITE": AuthorizationLevel.BASIC,
    "READ_ONLY": AuthorizationLevel.BASIC,
}
DEFAULT_AUTHORIZATION = AuthorizationLevel.NONE

VERDICT_TRUST = {"ALLOW": 85, "ENHANCED_SCREENING": 55}
DEFAULT_VERDICT_TRUST = 20
VERDICT_STATUS = {"ALLOW": VerificationStatus.VERIFIED, "DENY": VerificationStatus.SUSPENDED}
DEFAULT_VERDICT_STATUS = VerificationStatus.PENDING

DECISION_SCORES = {"allow": 80, "allow_with_conditions": 55}
DEFAULT_DECISION_SCORE = 25
RAIL_ADJUSTMENTS = {PaymentRail.CRYPTO: -10, PaymentRail.CARD: 5}

DEFAULT_DISPUTE_ACTIONS = [
    "Enable 3D Secure on all transactions",
    "Implement RDR (Rapid Dispute Resolution)",
    "Add velocity checks",
]
DEFAULT_VAMP_ACTIONS = [
    "Enable 3D Secure 2.0 on all transactions",
    "Enroll in Visa RDR",
    "Add Ethoca/Verifi alerts",
]


# ---------------------------------------------------------------------------
# Field accessors
# ---------------------------------------------------------------------------


def _as_dict(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def _as_number(value: Any, default: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    try:
        number = float(value)
    except OverflowError:
        return default
    return number if math.isfinite(number) else default


def _as_str(value: Any, default: str = "") -> str:
    if isinstance(value, str) and value.strip():
        return value
    return default


def _score(value: Any, default: float) -> int:
    return int(round(clamp(_as_number(value, default), 0, 100)))


# ---------------------------------------------------------------------------
# Vocabulary lookups
# ---------------------------------------------------------------------------


def map_severity(value: Any) -> RiskLevel:
    return SEVERITY_MAP.get(_as_str(value).lower(), DEFAULT_RISK_LEVEL)


def map_risk_level(value: Any) -> RiskLevel:
    return RISK_LEVEL_MAP.get(_as_str(value).lower(), DEFAULT_RISK_LEVEL)


def map_vamp_status(value: Any) -> VAMPStatus:
    return VAMP_STATUS_MAP.get(_as_str(value).lower(), DEFAULT_VAMP_STATUS)


def map_capability(value: Any) -> AuthorizationLevel:
    return CAPABILITY_MAP.get(_as_str(value).upper(), DEFAULT_AUTHORIZATION)


def _factor_name(title: str) -> str:
    return re.sub(r"\s+", "_", title).lower()[:40] or "unknown"


# ---------------------------------------------------------------------------
# Per-operation normalizers
# ---------------------------------------------------------------------------


def normalize_assessment(
    data: Mapping[str, Any], request: TransactionRiskRequest, config: ClientConfig
) -> TransactionRiskResult:
    """Assessment quiz response -> transaction risk result."""
    score = _score(data.get("score"), 75)
    level = classify_risk(score, config)
    meta = _as_dict(data.get("_meta"))

    budget = MAX_LIST_ITEMS - 1 if request.agent_id else MAX_LIST_ITEMS
    factors: List[RiskFactor] = []
    for insight in _as_list(data.get("insights")):
        if len(factors) >= budget:
            break
        insight = _as_dict(insight)
        title = _as_str(insight.get("title"))
        factor = _factor_name(title)
        factors.append(
            RiskFactor(
                factor=factor,
                severity=map_severity(insight.get("severity")),
                description=_as_str(insight.get("message"), title or factor),
            )
        )
    if request.agent_id:
        factors.append(agent_initiated_factor())

    return TransactionRiskResult(
        risk_score=score,
        risk_level=level,
        recommended_action=recommended_action(level),
        risk_factors=factors,
        guardscore_version=_as_str(meta.get("scoring_version"), ASSESSMENT_VERSION),
        scored_at=_as_str(meta.get("timestamp"), utc_now()),
    )


def normalize_merchant(
    data: Mapping[str, Any], request: MerchantLookupRequest, config: ClientConfig
) -> MerchantProfile:
    guardscore = _score(data.get("guardscore"), 50)
    compliance = _as_dict(data.get("compliance"))
    verification = _as_dict(data.get("verification"))
    merchant_id = _as_str(data.get("merchant_id"), request.merchant_id or request.identifier)

    return MerchantProfile(
        merchant_id=merchant_id,
        name=request.merchant_name or _as_str(data.get("name"), merchant_id),
        guardscore=guardscore,
        risk_level=classify_risk(guardscore, config),
        verification_status=(
            VerificationStatus.VERIFIED
            if verification.get("kyb_verified") is True
            else VerificationStatus.PENDING
        ),
        chargeback_rate=round(_as_number(compliance.get("chargeback_rate"), 0.5), 2),
        industry=_as_str(data.get("industry"), "e-commerce"),
        vamp_status=map_vamp_status(compliance.get("vamp_status")),
        last_updated=_as_str(data.get("last_updated"), utc_now()),
    )


def normalize_agent_screen(
    data: Mapping[str, Any], request: AgentVerifyRequest, config: ClientConfig
) -> AgentVerification:
    """Screening verdict -> agent verification.

    Authorization level and spending limit come from the same table the mock
    uses, so a capability maps to one level regardless of source.
    """
    verdict = _as_str(data.get("verdict")).upper()
    level = map_capability(data.get("capabilityLevel"))

    anomalies: List[str] = []
    denial = _as_str(data.get("denialReason"))
    if denial:
        anomalies.append(denial)
    anomalies.extend(s for s in _as_list(data.get("requiredScreenings")) if isinstance(s, str) and s)

    return AgentVerification(
        agent_id=request.agent_id,
        trust_score=VERDICT_TRUST.get(verdict, DEFAULT_VERDICT_TRUST),
        verification_status=VERDICT_STATUS.get(verdict, DEFAULT_VERDICT_STATUS),
        authorization_level=level,
        spending_limit=spending_limit_for(level),
        spending_limit_currency="USD",
        anomaly_flags=anomalies[:MAX_LIST_ITEMS],
        verified_at=utc_now(),
    )


def normalize_dispute_simulation(
    data: Mapping[str, Any], request: DisputePredictRequest, config: ClientConfig
) -> Optional[DisputePrediction]:
    """Simulator response -> dispute prediction; None without a simulation block."""
    simulation = data.get("simulation")
    if not isinstance(simulation, Mapping):
        return None

    current_vamp = _as_number(simulation.get("currentVampPct"), 0.5)
    probability = round(clamp(current_vamp / 100, 0.01, 0.99), 4)

    actions = []
    for item in _as_list(simulation.get("rankedActions")):
        item = _as_dict(item)
        action = _as_str(item.get("action"))
        if action:
            impact = _as_str(item.get("impact"))
            actions.append(f"{action}: {impact}" if impact else action)

    return DisputePrediction(
        dispute_probability=probability,
        predicted_dispute_type=predicted_dispute_type(
            probability, request.merchant_category, request.is_recurring
        ),
        risk_level=dispute_risk_level(probability),
        preventive_actions=actions[:MAX_LIST_ITEMS] or list(DEFAULT_DISPUTE_ACTIONS),
        model_version=_as_str(_as_dict(data.get("meta")).get("engine"), SIMULATOR_VERSION),
    )


def normalize_cross_rail_decision(
    data: Mapping[str, Any], request: CrossRailCheckRequest, config: ClientConfig
) -> CrossRailResult:
    """Unified decision -> cross-rail result.

    A missing ``risk_level`` is derived from the decision score; a present
    but unrecognised one maps to ``DEFAULT_RISK_LEVEL``.
    """
    decision = _as_str(data.get("decision")).lower()
    score = DECISION_SCORES.get(decision, DEFAULT_DECISION_SCORE)

    rail_scores: Dict[str, int] = {}
    for rail in request.payment_rails:
        rail_scores[rail.value] = int(clamp(score + RAIL_ADJUSTMENTS.get(rail, 0), 0, 100))

    remote_level = data.get("risk_level")
    level = classify_risk(score, config) if remote_level is None else map_risk_level(remote_level)
    reasons = [r for r in _as_list(data.get("reasons")) if isinstance(r, str) and r]

    return CrossRailResult(
        entity_id=request.entity_id,
        cross_rail_risk_score=score,
        risk_level=level,
        rails_analyzed=list(request.payment_rails),
        suspicious_patterns=reasons[:MAX_LIST_ITEMS],
        rail_scores=rail_scores,
    )


def normalize_vamp_simulation(
    data: Mapping[str, Any], request: VAMPAnalysisRequest, config: ClientConfig
) -> Optional[VAMPAnalysis]:
    """Simulator response -> VAMP analysis; None without a simulation block."""
    simulation = data.get("simulation")
    if not isinstance(simulation, Mapping):
        return None

    current_vamp = clamp(_as_number(simulation.get("currentVampPct"), 0.5), 0.0, MAX_VAMP_PCT)
    projected_vamp = clamp(
        _as_number(simulation.get("projectedVampPct"), current_vamp), 0.0, MAX_VAMP_PCT
    )
    fraud_rate = round(current_vamp, 2)

    actions = []
    for item in _as_list(simulation.get("rankedActions")):
        item = _as_dict(item)
        action = _as_str(item.get("action")) or _as_str(item.get("description"))
        if action:
            actions.append(action)

    if projected_vamp < current_vamp:
        trend = "improving"
    elif projected_vamp > current_vamp:
        trend = "declining"
    else:
        trend = "stable"

    return VAMPAnalysis(
        merchant_id=request.merchant_id,
        vamp_score=int(clamp(round(100 - current_vamp * 50), 0, 100)),
        vamp_status=vamp_status_for(fraud_rate),
        fraud_rate=fraud_rate,
        dispute_rate=round(current_vamp * 1.5, 2),
        monthly_trend=trend,
        recommended_actions=actions[:MAX_LIST_ITEMS] or list(DEFAULT_VAMP_ACTIONS),
        visa_threshold_distance=vamp_threshold_distance(fraud_rate),
    )
