"""
Deterministic mock risk generator.

Single responsibility: produce plausible GuardScore results from the typed
request alone, without network access or randomness. Used as the primary
source in demo mode and as the fallback whenever the remote call fails.
"""

from typing import Dict, List

from ..config import ClientConfig
from ..models import (
    ALTERNATIVE_RAILS,
    AgentVerification,
    AgentVerifyRequest,
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
    VelocityCheckRequest,
    VelocityResult,
    VerificationStatus,
    utc_now,
)
from ..scoring import (
    authorization_for_trust,
    checksum,
    clamp,
    classify_risk,
    dispute_risk_level,
    predicted_dispute_type,
    recommended_action,
    spending_limit_for,
    vamp_status_for,
    vamp_threshold_distance,
)

MOCK_VERSION = "1.0.0-mock"

HIGH_RISK_CATEGORIES = frozenset(
    {"gambling", "adult", "crypto_exchange", "pharmaceuticals", "weapons"}
)
HIGH_DISPUTE_CATEGORIES = frozenset({"travel", "digital_goods", "subscription", "gambling"})
DANGEROUS_AGENT_ACTIONS = frozenset(
    {"refund_all", "delete_account", "transfer_funds", "modify_pricing"}
)

VELOCITY_ANOMALY_RATIO = 2.5
RAIL_SPREAD_THRESHOLD = 30
PATTERN_PENALTY = 10


class MockRiskGenerator:
    """
    Checksum-driven generator for every GuardScore operation.

    Numeric fields depend only on the request, so identical requests always
    produce identical results apart from their timestamps.
    """

    def __init__(self, config: ClientConfig):
        self.config = config

    def score_transaction(self, request: TransactionRiskRequest) -> TransactionRiskResult:
        score = 85
        factors: List[RiskFactor] = []

        if request.amount > 10_000:
            score -= 20
            factors.append(
                RiskFactor(
                    factor="high_value",
                    severity=RiskLevel.HIGH,
                    description=f"Transaction amount ${request.amount:g} exceeds high-value threshold ($10,000)",
                )
            )
        elif request.amount > 5_000:
            score -= 10
            factors.append(
                RiskFactor(
                    factor="elevated_value",
                    severity=RiskLevel.MEDIUM,
                    description=f"Transaction amount ${request.amount:g} is above average",
                )
            )

        if request.payment_rail in ALTERNATIVE_RAILS:
            score -= 5
            factors.append(
                RiskFactor(
                    factor="alternative_rail",
                    severity=RiskLevel.LOW,
                    description=f"{request.payment_rail.value} transactions have limited chargeback protection",
                )
            )

        if request.agent_id:
            score -= 3
            factors.append(agent_initiated_factor())

        if not request.merchant_id:
            score -= 15
            factors.append(
                RiskFactor(
                    factor="unknown_merchant",
                    severity=RiskLevel.HIGH,
                    description="No merchant ID provided, unable to verify merchant history",
                )
            )

        if request.merchant_category.lower() in HIGH_RISK_CATEGORIES:
            score -= 15
            factors.append(
                RiskFactor(
                    factor="high_risk_category",
                    severity=RiskLevel.HIGH,
                    description=f'Merchant category "{request.merchant_category}" is classified as high-risk',
                )
            )

        score = int(clamp(score, 0, 100))
        level = classify_risk(score, self.config)
        return TransactionRiskResult(
            risk_score=score,
            risk_level=level,
            recommended_action=recommended_action(level),
            risk_factors=factors,
            guardscore_version=MOCK_VERSION,
            scored_at=utc_now(),
        )

    def lookup_merchant(self, request: MerchantLookupRequest) -> MerchantProfile:
        identifier = request.identifier
        digest = checksum(identifier)
        guardscore = 40 + digest % 55

        if guardscore > 70:
            verification, vamp_status = VerificationStatus.VERIFIED, VAMPStatus.STANDARD
        elif guardscore > 50:
            verification, vamp_status = VerificationStatus.PENDING, VAMPStatus.MONITORED
        else:
            verification, vamp_status = VerificationStatus.UNVERIFIED, VAMPStatus.EXCESSIVE

        return MerchantProfile(
            merchant_id=request.merchant_id or f"MG-{digest:X}",
            name=request.merchant_name or identifier,
            guardscore=guardscore,
            risk_level=classify_risk(guardscore, self.config),
            verification_status=verification,
            chargeback_rate=round(0.10 + (100 - guardscore) * 0.02, 2),
            industry="e-commerce",
            vamp_status=vamp_status,
            last_updated=utc_now(),
        )

    def verify_agent(self, request: AgentVerifyRequest) -> AgentVerification:
        trust_score = 50 + checksum(request.agent_id) % 45
        anomalies: List[str] = []

        if request.transaction_amount and request.transaction_amount > 5_000:
            anomalies.append("transaction_exceeds_typical_agent_limit")
        if request.requesting_action.lower() in DANGEROUS_AGENT_ACTIONS:
            anomalies.append("high_privilege_action_requested")

        if trust_score > 80:
            verification = VerificationStatus.VERIFIED
        elif trust_score > 60:
            verification = VerificationStatus.PENDING
        else:
            verification = VerificationStatus.UNVERIFIED

        level = authorization_for_trust(trust_score)
        return AgentVerification(
            agent_id=request.agent_id,
            trust_score=trust_score,
            verification_status=verification,
            authorization_level=level,
            spending_limit=spending_limit_for(level),
            spending_limit_currency="USD",
            anomaly_flags=anomalies,
            verified_at=utc_now(),
        )

    def predict_dispute(self, request: DisputePredictRequest) -> DisputePrediction:
        probability = 0.02
        actions: List[str] = []

        if request.transaction_amount > 500:
            probability += 0.03
            actions.append("Enable 3DS authentication for transactions over $500")

        if request.merchant_category.lower() in HIGH_DISPUTE_CATEGORIES:
            probability += 0.05
            actions.append(
                f'Category "{request.merchant_category}" has elevated dispute rates, enhance order confirmation flow'
            )

        if request.payment_rail == PaymentRail.CARD and request.is_recurring:
            probability += 0.04
            actions.append("Send pre-billing reminder for recurring charges to reduce friendly fraud")

        if request.payment_rail in ALTERNATIVE_RAILS:
            probability -= 0.01
            actions.append(
                "Stablecoin transactions have no traditional chargeback mechanism, "
                "implement escrow or reputation-based resolution"
            )

        # Rounded before tiering so float drift cannot cross a cut point.
        probability = round(clamp(probability, 0.01, 0.99), 4)
        return DisputePrediction(
            dispute_probability=probability,
            predicted_dispute_type=predicted_dispute_type(
                probability, request.merchant_category, request.is_recurring
            ),
            risk_level=dispute_risk_level(probability),
            preventive_actions=actions,
            model_version=MOCK_VERSION,
        )

    def check_velocity(self, request: VelocityCheckRequest) -> VelocityResult:
        digest = checksum(request.entity_id)
        baseline = 15 + digest % 30
        current = request.transaction_count
        if current is None:
            current = baseline + digest % 20 - 5
        ratio = current / baseline
        anomaly = ratio > VELOCITY_ANOMALY_RATIO
        score = clamp(100 - (ratio - 1) * 30, 0, 100)

        if anomaly:
            analysis = (
                f"Transaction count ({current}) is {ratio:.1f}x the baseline ({baseline}), "
                "potential velocity attack or compromised credentials"
            )
        else:
            analysis = f"Transaction velocity is within normal range ({ratio:.1f}x baseline)"

        return VelocityResult(
            entity_id=request.entity_id,
            velocity_score=round(score),
            anomaly_detected=anomaly,
            transactions_in_window=current,
            baseline_average=baseline,
            pattern_analysis=analysis,
            time_window=request.time_window,
        )

    def check_cross_rail(self, request: CrossRailCheckRequest) -> CrossRailResult:
        rail_scores: Dict[str, int] = {}
        for rail in request.payment_rails:
            rail_scores[rail.value] = 50 + checksum(request.entity_id + rail.value) % 45

        scores = list(rail_scores.values())
        patterns: List[str] = []

        if max(scores) - min(scores) > RAIL_SPREAD_THRESHOLD:
            patterns.append(
                "Large risk score variance across rails, possible rail-hopping to evade detection"
            )
        if PaymentRail.CARD in request.payment_rails and PaymentRail.CRYPTO in request.payment_rails:
            patterns.append(
                "Mixed card + crypto activity, monitor for card-funded crypto purchases "
                "followed by irreversible transfers"
            )
        if len(request.payment_rails) >= 3:
            patterns.append(
                "Activity across 3+ payment rails, unusual for single entity, verify legitimate business need"
            )

        average = sum(scores) / len(scores)
        cross_rail_score = round(max(0.0, average - len(patterns) * PATTERN_PENALTY))
        return CrossRailResult(
            entity_id=request.entity_id,
            cross_rail_risk_score=cross_rail_score,
            risk_level=classify_risk(cross_rail_score, self.config),
            rails_analyzed=list(request.payment_rails),
            suspicious_patterns=patterns,
            rail_scores=rail_scores,
        )

    def analyze_vamp(self, request: VAMPAnalysisRequest) -> VAMPAnalysis:
        digest = checksum(request.merchant_id)
        fraud_rate = round(0.10 + (digest % 20) * 0.05, 2)
        dispute_rate = round(0.20 + (digest % 25) * 0.04, 2)
        vamp_score = max(0, round(100 - fraud_rate * 20 - dispute_rate * 15))
        status = vamp_status_for(fraud_rate)
        actions = remediation_actions(status)

        if dispute_rate > 0.5:
            actions.append("High dispute rate, review product descriptions and refund policy clarity")

        return VAMPAnalysis(
            merchant_id=request.merchant_id,
            vamp_score=vamp_score,
            vamp_status=status,
            fraud_rate=fraud_rate,
            dispute_rate=dispute_rate,
            monthly_trend=_trend_for_score(vamp_score),
            recommended_actions=actions,
            visa_threshold_distance=vamp_threshold_distance(fraud_rate),
        )


def agent_initiated_factor() -> RiskFactor:
    return RiskFactor(
        factor="agent_initiated",
        severity=RiskLevel.LOW,
        description="Transaction initiated by AI agent, additional verification recommended",
    )


def remediation_actions(status: VAMPStatus) -> List[str]:
    """Standard remediation steps for a VAMP status."""
    if status == VAMPStatus.MONITORED:
        return [
            "Implement RDR (Rapid Dispute Resolution) to deflect disputes before they count as chargebacks",
            "Enable Verifi CDRN alerts for real-time chargeback notification",
        ]
    if status == VAMPStatus.EXCESSIVE:
        return [
            "URGENT: Fraud rate exceeds Visa VAMP threshold, immediate remediation required",
            "Deploy 3DS on all transactions to shift liability",
            "Implement velocity controls and device fingerprinting",
            "Consider temporary transaction limits on high-risk categories",
        ]
    return []


def _trend_for_score(vamp_score: int) -> str:
    if vamp_score > 70:
        return "improving"
    if vamp_score > 40:
        return "stable"
    return "declining"

