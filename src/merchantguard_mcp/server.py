"""
MCP server exposing the GuardScore tools.

Run over stdio for local agents, or over streamable HTTP (``/mcp``) with a
``/health`` probe for remote clients. See ``cli.py`` for the entry point.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Annotated, Any, AsyncIterator, Dict, List, Optional, Type

from mcp.server.fastmcp import Context, FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from mcp.types import ToolAnnotations
from pydantic import BaseModel, Field
from starlette.requests import Request
from starlette.responses import JSONResponse

from . import __version__
from .client import GuardScoreClient
from .config import Settings
from .logging import get_logger
from .models import (
    AgentVerifyRequest,
    CrossRailCheckRequest,
    DisputePredictRequest,
    EntityType,
    MerchantLookupRequest,
    PaymentRail,
    TransactionRiskRequest,
    VAMPAnalysisRequest,
    VelocityCheckRequest,
    utc_now,
)
from .tools import TOOLS, TOOLS_BY_NAME, execute_tool

logger = get_logger(__name__)

SERVER_NAME = "merchantguard-mcp"
INSTRUCTIONS = (
    "GuardScore risk tools for agentic commerce: score transactions, look up merchants, "
    "verify AI agents, predict disputes, and check velocity, cross-rail and VAMP risk."
)


@dataclass
class AppContext:
    client: GuardScoreClient


def _described(model: Type[BaseModel], name: str) -> Any:
    return Field(description=model.model_fields[name].description)


def create_server(settings: Optional[Settings] = None) -> FastMCP:
    """Build the FastMCP server with all GuardScore tools registered."""
    settings = settings or Settings()
    client_config = settings.client_config()

    @asynccontextmanager
    async def lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
        async with GuardScoreClient(client_config) as client:
            yield AppContext(client=client)

    mcp = FastMCP(
        SERVER_NAME,
        instructions=INSTRUCTIONS,
        host=settings.host,
        port=settings.port,
        lifespan=lifespan,
    )

    def register(name: str):
        tool = TOOLS_BY_NAME[name]
        return mcp.tool(
            name=tool.name,
            title=tool.title,
            description=tool.description,
            annotations=ToolAnnotations(title=tool.title, **tool.annotations),
        )

    async def call(ctx: Context, name: str, arguments: Dict[str, Any]) -> str:
        client = ctx.request_context.lifespan_context.client
        supplied = {key: value for key, value in arguments.items() if value is not None}
        result = await execute_tool(client, name, supplied)
        if result.is_error:
            raise ToolError(result.text)
        return result.text

    @register("guardscore_transaction_risk")
    async def transaction_risk(
        ctx: Context,
        amount: Annotated[float, _described(TransactionRiskRequest, "amount")],
        merchant_category: Annotated[str, _described(TransactionRiskRequest, "merchant_category")],
        payment_rail: Annotated[PaymentRail, _described(TransactionRiskRequest, "payment_rail")],
        currency: Annotated[str, _described(TransactionRiskRequest, "currency")] = "USD",
        merchant_id: Annotated[Optional[str], _described(TransactionRiskRequest, "merchant_id")] = None,
        agent_id: Annotated[Optional[str], _described(TransactionRiskRequest, "agent_id")] = None,
        description: Annotated[Optional[str], _described(TransactionRiskRequest, "description")] = None,
    ) -> str:
        return await call(
            ctx,
            "guardscore_transaction_risk",
            {
                "amount": amount,
                "currency": currency,
                "merchant_category": merchant_category,
                "payment_rail": payment_rail,
                "merchant_id": merchant_id,
                "agent_id": agent_id,
                "description": description,
            },
        )

    @register("guardscore_merchant_lookup")
    async def merchant_lookup(
        ctx: Context,
        merchant_id: Annotated[Optional[str], _described(MerchantLookupRequest, "merchant_id")] = None,
        merchant_name: Annotated[Optional[str], _described(MerchantLookupRequest, "merchant_name")] = None,
        website: Annotated[Optional[str], _described(MerchantLookupRequest, "website")] = None,
    ) -> str:
        return await call(
            ctx,
            "guardscore_merchant_lookup",
            {"merchant_id": merchant_id, "merchant_name": merchant_name, "website": website},
        )

    @register("guardscore_agent_verify")
    async def agent_verify(
        ctx: Context,
        agent_id: Annotated[str, _described(AgentVerifyRequest, "agent_id")],
        requesting_action: Annotated[str, _described(AgentVerifyRequest, "requesting_action")],
        agent_name: Annotated[Optional[str], _described(AgentVerifyRequest, "agent_name")] = None,
        transaction_amount: Annotated[
            Optional[float], _described(AgentVerifyRequest, "transaction_amount")
        ] = None,
    ) -> str:
        return await call(
            ctx,
            "guardscore_agent_verify",
            {
                "agent_id": agent_id,
                "agent_name": agent_name,
                "requesting_action": requesting_action,
                "transaction_amount": transaction_amount,
            },
        )

    @register("guardscore_dispute_predict")
    async def dispute_predict(
        ctx: Context,
        transaction_amount: Annotated[float, _described(DisputePredictRequest, "transaction_amount")],
        merchant_category: Annotated[str, _described(DisputePredictRequest, "merchant_category")],
        payment_rail: Annotated[PaymentRail, _described(DisputePredictRequest, "payment_rail")],
        card_type: Annotated[Optional[str], _described(DisputePredictRequest, "card_type")] = None,
        is_recurring: Annotated[Optional[bool], _described(DisputePredictRequest, "is_recurring")] = None,
        merchant_id: Annotated[Optional[str], _described(DisputePredictRequest, "merchant_id")] = None,
    ) -> str:
        return await call(
            ctx,
            "guardscore_dispute_predict",
            {
                "transaction_amount": transaction_amount,
                "merchant_category": merchant_category,
                "payment_rail": payment_rail,
                "card_type": card_type,
                "is_recurring": is_recurring,
                "merchant_id": merchant_id,
            },
        )

    @register("guardscore_velocity_check")
    async def velocity_check(
        ctx: Context,
        entity_id: Annotated[str, _described(VelocityCheckRequest, "entity_id")],
        entity_type: Annotated[EntityType, _described(VelocityCheckRequest, "entity_type")],
        time_window: Annotated[str, _described(VelocityCheckRequest, "time_window")],
        transaction_count: Annotated[
            Optional[int], _described(VelocityCheckRequest, "transaction_count")
        ] = None,
    ) -> str:
        return await call(
            ctx,
            "guardscore_velocity_check",
            {
                "entity_id": entity_id,
                "entity_type": entity_type,
                "time_window": time_window,
                "transaction_count": transaction_count,
            },
        )

    @register("guardscore_cross_rail_check")
    async def cross_rail_check(
        ctx: Context,
        entity_id: Annotated[str, _described(CrossRailCheckRequest, "entity_id")],
        payment_rails: Annotated[List[PaymentRail], _described(CrossRailCheckRequest, "payment_rails")],
    ) -> str:
        return await call(
            ctx,
            "guardscore_cross_rail_check",
            {"entity_id": entity_id, "payment_rails": payment_rails},
        )

    @register("guardscore_vamp_analysis")
    async def vamp_analysis(
        ctx: Context,
        merchant_id: Annotated[str, _described(VAMPAnalysisRequest, "merchant_id")],
        visa_merchant_id: Annotated[
            Optional[str], _described(VAMPAnalysisRequest, "visa_merchant_id")
        ] = None,
    ) -> str:
        return await call(
            ctx,
            "guardscore_vamp_analysis",
            {"merchant_id": merchant_id, "visa_merchant_id": visa_merchant_id},
        )

    @mcp.custom_route("/health", methods=["GET"])
    async def health(request: Request) -> JSONResponse:
        return JSONResponse(health_payload())

    logger.info(
        "MCP server created",
        server=SERVER_NAME,
        tools=len(TOOLS),
        demo_mode=client_config.demo_mode,
    )
    return mcp


def health_payload() -> Dict[str, Any]:
    return {
        "status": "ok",
        "server": SERVER_NAME,
        "version": __version__,
        "tools": len(TOOLS),
        "timestamp": utc_now(),
    }
