"""Request payload builders for the GuardScore endpoints.

Each builder maps a typed request onto the shape the remote endpoint
expects. Fields the request cannot supply are filled with representative
constants.
"""

from typing import Any, Dict

from .models import (
    ALTERNATIVE_RAILS,
    AgentVerifyRequest,
    CrossRailCheckRequest,
    DisputePredictRequest,
    PaymentRail,
    TransactionRiskRequest,
    VAMPAnalysisRequest,
)

ASSESS_PATH = "/api/v2/guardscore/assess"
MERCHANT_PATH = "/api/agent/merchant/{merchant_id}"
AGENT_SCREEN_PATH = "/api/v2/agent/screen"
SIMULATE_PATH = "/api/v2/guardscore/simulate"
GUARD_PATH = "/api/v2/guard"

CATEGORY_MAP = {
    "gambling": "gaming",
    "adult": "adult",
    "crypto_exchange": "crypto",
    "pharmaceuticals": "nutra",
    "weapons": "high_risk",
    "gaming": "gaming",
    "e-commerce": "ecommerce",
    "ecommerce": "ecommerce",
    "travel": "travel",
    "subscription": "subscriptions",
    "digital_goods": "ecommerce",
    "cbd": "cbd",
    "dating": "dating",
    "saas": "saas",
}
DEFAULT_INDUSTRY = "ecommerce"


def map_category(category: str) -> str:
    return CATEGORY_MAP.get(category.lower(), DEFAULT_INDUSTRY)


def map_volume(amount: float) -> str:
    if amount > 10_000:
        return "10000+"
    if amount > 2_000:
        return "2000-10000"
    if amount > 500:
        return "500-2000"
    return "100-500"


def map_ticket(amount: float) -> str:
    if amount > 500:
        return "500+"
    if amount > 100:
        return "100-500"
    if amount > 25:
        return "25-100"
    return "0-25"


def assessment_payload(request: TransactionRiskRequest) -> Dict[str, Any]:
    """Express a transaction as answers to the GuardScore assessment quiz."""
    rail = request.payment_rail
    answers = {
        "industry": map_category(request.merchant_category),
        "monthly_transactions": map_volume(request.amount),
        "total_disputes": "1-5",
        "fraud_disputes": "0",
        "fraud_tools": ["3ds", "cvv"] if rail == PaymentRail.CARD else ["velocity"],
        "region": "US",
        "business_age": "1-2y",
        "current_psp": ["stripe"],
        "avg_transaction_value": map_ticket(request.amount),
        "refund_rate": "5-10",
        "compliance_readiness": ["terms", "privacy"],
        "stablecoin_readiness": "yes_already" if rail in ALTERNATIVE_RAILS else "no",
        "customer_mfa": "optional",
        "checkout_platform": "shopify",
    }
    return {"answers": answers}


def agent_screen_payload(request: AgentVerifyRequest) -> Dict[str, Any]:
    return {
        "agentId": request.agent_id,
        "requestedAction": request.requesting_action,
        "payload": {
            "agent_name": request.agent_name,
            "transaction_amount": request.transaction_amount,
        },
    }


def dispute_simulation_payload(request: DisputePredictRequest) -> Dict[str, Any]:
    return {
        "monthlyTransactions": 1000,
        "fraudDisputes": 2,
        "nonFraudChargebacks": 5,
        "threeDSCoveragePct": 50 if request.payment_rail == PaymentRail.CARD else 0,
        "additionalCleanTransactions": 0,
        "disputeResolutionRatePct": 20,
    }


def vamp_simulation_payload(request: VAMPAnalysisRequest) -> Dict[str, Any]:
    # The simulator is merchant-agnostic; it projects from representative volumes.
    return {
        "monthlyTransactions": 2000,
        "fraudDisputes": 3,
        "nonFraudChargebacks": 8,
        "threeDSCoveragePct": 40,
        "additionalCleanTransactions": 0,
        "disputeResolutionRatePct": 15,
    }


def cross_rail_decision_payload(request: CrossRailCheckRequest) -> Dict[str, Any]:
    return {
        "intent": "transaction_review",
        "payment": {"methods": [rail.value for rail in request.payment_rails]},
        "business": {"name": request.entity_id},
    }
