from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class PaymentRail(str, Enum):
    CARD = "card"
    STABLECOIN = "stablecoin"
    CRYPTO = "crypto"
    ACH = "ach"
    WIRE = "wire"
    UNKNOWN = "unknown"


class VerificationStatus(str, Enum):
    VERIFIED = "verified"
    PENDING = "pending"
    UNVERIFIED = "unverified"
    SUSPENDED = "suspended"
    REVOKED = "revoked"


class DisputeType(str, Enum):
    FRAUD = "fraud"
    PRODUCT_NOT_RECEIVED = "product_not_received"
    PRODUCT_NOT_AS_DESCRIBED = "product_not_as_described"
    DUPLICATE = "duplicate"
    SUBSCRIPTION_CANCELED = "subscription_canceled"
    AUTHORIZATION_ISSUE = "authorization_issue"


class VAMPStatus(str, Enum):
    STANDARD = "standard"
    MONITORED = "monitored"
    EXCESSIVE = "excessive"
    AT_RISK = "at_risk"


class AuthorizationLevel(str, Enum):
    NONE = "none"
    BASIC = "basic"
    STANDARD = "standard"
    FULL = "full"


class EntityType(str, Enum):
    MERCHANT = "merchant"
    AGENT = "agent"
    CARD = "card"
    WALLET = "wallet"


ALTERNATIVE_RAILS = frozenset({PaymentRail.CRYPTO, PaymentRail.STABLECOIN})


class _Record(BaseModel):
    """Immutable value record."""

    model_config = ConfigDict(frozen=True, use_enum_values=False)


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class TransactionRiskRequest(_Record):
    """Transaction to be scored before payment is processed."""

    amount: float = Field(..., gt=0, description="Transaction amount in the specified currency")
    currency: str = Field(default="USD", description="ISO 4217 currency code")
    merchant_category: str = Field(
        ...,
        description="Merchant category (e.g., e-commerce, gambling, travel, subscription, digital_goods, pharmaceuticals)",
    )
    payment_rail: PaymentRail = Field(..., description="Payment rail used for this transaction")
    merchant_id: Optional[str] = Field(default=None, description="MerchantGuard merchant ID for history lookup")
    agent_id: Optional[str] = Field(default=None, description="AI agent identifier if transaction is agent-initiated")
    description: Optional[str] = Field(default=None, description="Transaction description for context")


class MerchantLookupRequest(_Record):
    merchant_id: Optional[str] = Field(default=None, description="MerchantGuard merchant ID")
    merchant_name: Optional[str] = Field(default=None, description="Business name to search")
    website: Optional[str] = Field(default=None, description="Merchant website URL")

    @property
    def identifier(self) -> str:
        return self.merchant_id or self.merchant_name or self.website or "unknown"

    @property
    def has_identifier(self) -> bool:
        return bool(self.merchant_id or self.merchant_name or self.website)


class AgentVerifyRequest(_Record):
    agent_id: str = Field(..., description="Unique identifier of the AI agent")
    agent_name: Optional[str] = Field(default=None, description="Human-readable agent name")
    requesting_action: str = Field(
        ...,
        description="Action the agent is attempting (e.g., purchase, refund, transfer_funds, modify_pricing)",
    )
    transaction_amount: Optional[float] = Field(default=None, description="Amount the agent wants to transact")


class DisputePredictRequest(_Record):
    transaction_amount: float = Field(..., gt=0, description="Transaction amount")
    merchant_category: str = Field(..., description="Merchant category code or name")
    payment_rail: PaymentRail = Field(..., description="Payment rail used for this transaction")
    card_type: Optional[str] = Field(default=None, description="Card network (visa, mastercard, amex, discover)")
    is_recurring: Optional[bool] = Field(default=None, description="Whether this is a recurring/subscription charge")
    merchant_id: Optional[str] = Field(default=None, description="MerchantGuard merchant ID")


class VelocityCheckRequest(_Record):
    entity_id: str = Field(..., description="ID of the entity to check (merchant, agent, card, or wallet address)")
    entity_type: EntityType = Field(..., description="Type of entity")
    time_window: str = Field(..., description="Time window for velocity check (e.g., '1h', '24h', '7d', '30d')")
    transaction_count: Optional[int] = Field(
        default=None, ge=0, description="Known transaction count in window (if available)"
    )


class CrossRailCheckRequest(_Record):
    entity_id: str = Field(..., description="ID of the entity to analyze across rails")
    payment_rails: List[PaymentRail] = Field(
        ..., min_length=2, description="Payment rails to analyze (minimum 2 for cross-rail detection)"
    )

    @field_validator("payment_rails")
    @classmethod
    def _distinct_rails(cls, rails: List[PaymentRail]) -> List[PaymentRail]:
        distinct = list(dict.fromkeys(rails))
        if len(distinct) < 2:
            raise ValueError("at least 2 distinct payment rails are required")
        return distinct


class VAMPAnalysisRequest(_Record):
    merchant_id: str = Field(..., description="MerchantGuard merchant ID")
    visa_merchant_id: Optional[str] = Field(
        default=None, description="Visa-assigned merchant ID (VMID) for direct VAMP data"
    )


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class RiskFactor(_Record):
    factor: str
    severity: RiskLevel
    description: str


class TransactionRiskResult(_Record):
    risk_score: int = Field(..., ge=0, le=100)
    risk_level: RiskLevel
    recommended_action: Literal["approve", "review", "decline"]
    risk_factors: List[RiskFactor] = Field(default_factory=list)
    guardscore_version: str
    scored_at: str


class MerchantProfile(_Record):
    merchant_id: str
    name: str
    guardscore: int = Field(..., ge=0, le=100)
    risk_level: RiskLevel
    verification_status: VerificationStatus
    chargeback_rate: float
    industry: str
    vamp_status: VAMPStatus
    last_updated: str


class AgentVerification(_Record):
    agent_id: str
    trust_score: int = Field(..., ge=0, le=100)
    verification_status: VerificationStatus
    authorization_level: AuthorizationLevel
    spending_limit: int
    spending_limit_currency: str = "USD"
    anomaly_flags: List[str] = Field(default_factory=list)
    verified_at: str


class DisputePrediction(_Record):
    dispute_probability: float = Field(..., ge=0.01, le=0.99)
    predicted_dispute_type: Optional[DisputeType] = None
    risk_level: RiskLevel
    preventive_actions: List[str] = Field(default_factory=list)
    model_version: str


class VelocityResult(_Record):
    entity_id: str
    velocity_score: int = Field(..., ge=0, le=100)
    anomaly_detected: bool
    transactions_in_window: int
    baseline_average: int
    pattern_analysis: str
    time_window: str


class CrossRailResult(_Record):
    entity_id: str
    cross_rail_risk_score: int = Field(..., ge=0, le=100)
    risk_level: RiskLevel
    rails_analyzed: List[PaymentRail]
    suspicious_patterns: List[str] = Field(default_factory=list)
    rail_scores: Dict[str, int] = Field(default_factory=dict)


class VAMPAnalysis(_Record):
    merchant_id: str
    vamp_score: int = Field(..., ge=0, le=100)
    vamp_status: VAMPStatus
    fraud_rate: float
    dispute_rate: float
    monthly_trend: Literal["improving", "stable", "declining"]
    recommended_actions: List[str] = Field(default_factory=list)
    visa_threshold_distance: float = Field(..., ge=0)


def utc_now() -> str:
    """Timestamp stamped on results; never part of their numeric content."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
