"""Tool layer: the seven GuardScore tools exposed over MCP.

Each tool validates its argument mapping into a request model, calls the
client and renders the canonical result as indented JSON. Failures are
returned as error results rather than raised.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Mapping, Tuple, Type

from pydantic import BaseModel, ValidationError

from .client import GuardScoreClient
from .exceptions import GuardScoreError, PreconditionError
from .logging import get_logger
from .models import (
    AgentVerifyRequest,
    CrossRailCheckRequest,
    DisputePredictRequest,
    MerchantLookupRequest,
    TransactionRiskRequest,
    VAMPAnalysisRequest,
    VelocityCheckRequest,
)

logger = get_logger(__name__)

READ_ONLY_ANNOTATIONS = {
    "readOnlyHint": True,
    "destructiveHint": False,
    "idempotentHint": True,
    "openWorldHint": False,
}

Handler = Callable[[GuardScoreClient, Any], Awaitable[BaseModel]]


@dataclass(frozen=True)
class ToolResult:
    """Text-bearing outcome of a tool call."""

    text: str
    is_error: bool = False


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    title: str
    description: str
    request_model: Type[BaseModel]
    handler: Handler
    failure_prefix: str
    annotations: Dict[str, bool] = field(default_factory=lambda: dict(READ_ONLY_ANNOTATIONS))


def success_result(data: Any) -> ToolResult:
    if isinstance(data, str):
        return ToolResult(text=data)
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    return ToolResult(text=json.dumps(data, indent=2))


def error_result(message: str) -> ToolResult:
    return ToolResult(text=message, is_error=True)


def _describe_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "arguments"
        problems.append(f"{location}: {error['msg']}")
    return "; ".join(problems)


TOOLS: Tuple[ToolDefinition, ...] = (
    ToolDefinition(
        name="guardscore_transaction_risk",
        title="GuardScore Transaction Risk",
        description=(
            "Score a transaction for fraud risk before processing payment. Returns a 0-100 "
            "GuardScore (higher = safer), risk level, recommended action (approve/review/decline), "
            "and specific risk factors. Use this BEFORE calling any payment tool to screen "
            "transactions. Supports card, stablecoin, crypto, ACH, and wire transactions."
        ),
        request_model=TransactionRiskRequest,
        handler=lambda client, request: client.score_transaction(request),
        failure_prefix="Scoring failed",
    ),
    ToolDefinition(
        name="guardscore_merchant_lookup",
        title="GuardScore Merchant Lookup",
        description=(
            "Look up a merchant's GuardScore, verification status, chargeback rate, and VAMP "
            "standing. Search by merchant ID, business name, or website URL. Use this to assess "
            "merchant trustworthiness before engaging in commerce."
        ),
        request_model=MerchantLookupRequest,
        handler=lambda client, request: client.lookup_merchant(request),
        failure_prefix="Lookup failed",
    ),
    ToolDefinition(
        name="guardscore_agent_verify",
        title="GuardScore Agent Verification",
        description=(
            "Verify an AI agent's trustworthiness and authorization level before allowing it to "
            "transact. Returns trust score, spending limits, authorization level, and anomaly "
            "flags. Use it whenever a non-human entity initiates a financial action."
        ),
        request_model=AgentVerifyRequest,
        handler=lambda client, request: client.verify_agent(request),
        failure_prefix="Verification failed",
    ),
    ToolDefinition(
        name="guardscore_dispute_predict",
        title="GuardScore Dispute Prediction",
        description=(
            "Predict the probability of a chargeback or dispute for a given transaction. Returns "
            "dispute probability (0-1), predicted dispute type, and specific preventive actions "
            "to reduce risk."
        ),
        request_model=DisputePredictRequest,
        handler=lambda client, request: client.predict_dispute(request),
        failure_prefix="Prediction failed",
    ),
    ToolDefinition(
        name="guardscore_velocity_check",
        title="GuardScore Velocity Check",
        description=(
            "Check transaction velocity for a merchant, AI agent, card, or wallet address to "
            "detect anomalous patterns. Compares current activity against historical baselines. "
            "Returns velocity score, anomaly flag, and pattern analysis."
        ),
        request_model=VelocityCheckRequest,
        handler=lambda client, request: client.check_velocity(request),
        failure_prefix="Velocity check failed",
    ),
    ToolDefinition(
        name="guardscore_cross_rail_check",
        title="GuardScore Cross-Rail Fraud Detection",
        description=(
            "Analyze an entity's activity across multiple payment rails (card, stablecoin, "
            "crypto, ACH, wire) to detect cross-rail fraud patterns such as rail-hopping and "
            "arbitrage attacks that single-rail fraud systems miss. Requires at least 2 payment "
            "rails."
        ),
        request_model=CrossRailCheckRequest,
        handler=lambda client, request: client.check_cross_rail(request),
        failure_prefix="Cross-rail check failed",
    ),
    ToolDefinition(
        name="guardscore_vamp_analysis",
        title="GuardScore VAMP Analysis",
        description=(
            "Analyze a merchant's Visa Acquirer Monitoring Program (VAMP) status and risk. "
            "Returns current VAMP score, fraud and dispute rates, distance to Visa thresholds, "
            "monthly trend, and specific remediation actions."
        ),
        request_model=VAMPAnalysisRequest,
        handler=lambda client, request: client.analyze_vamp(request),
        failure_prefix="VAMP analysis failed",
    ),
)

TOOLS_BY_NAME: Dict[str, ToolDefinition] = {tool.name: tool for tool in TOOLS}


def get_tool(name: str) -> ToolDefinition:
    try:
        return TOOLS_BY_NAME[name]
    except KeyError:
        raise PreconditionError(f"Unknown tool: {name}", error_code="UNKNOWN_TOOL") from None


async def execute_tool(
    client: GuardScoreClient, name: str, arguments: Mapping[str, Any]
) -> ToolResult:
    """
    Run one tool call end to end.

    Args:
        client: GuardScore client used to serve the call
        name: Registered tool name
        arguments: Raw argument mapping from the protocol layer

    Returns:
        ToolResult with indented JSON on success or a plain message on error
    """
    try:
        tool = get_tool(name)
    except PreconditionError as exc:
        return error_result(exc.message)

    try:
        request = tool.request_model.model_validate(dict(arguments))
    except ValidationError as exc:
        return error_result(f"Invalid arguments for {name}: {_describe_validation_error(exc)}")

    try:
        result = await tool.handler(client, request)
    except PreconditionError as exc:
        return error_result(exc.message)
    except GuardScoreError as exc:
        logger.error("Tool call failed", tool=name, error_code=exc.error_code, error=exc.message)
        return error_result(f"{tool.failure_prefix}: {exc.message}")

    return success_result(result)
