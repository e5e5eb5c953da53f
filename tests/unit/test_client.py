"""Tests for the remote-first GuardScore client."""

import json

import httpx
import pytest
from structlog.testing import capture_logs

from merchantguard_mcp.client import GuardScoreClient, create_client
from merchantguard_mcp.config import ClientConfig
from merchantguard_mcp.exceptions import PreconditionError
from merchantguard_mcp.fallback.mock_generator import MOCK_VERSION
from merchantguard_mcp.models import (
    AgentVerifyRequest,
    CrossRailCheckRequest,
    DisputePredictRequest,
    MerchantLookupRequest,
    TransactionRiskRequest,
    VAMPAnalysisRequest,
    VAMPStatus,
    VelocityCheckRequest,
)
from merchantguard_mcp.scoring import vamp_status_for

TRANSACTION = TransactionRiskRequest(amount=15_000, merchant_category="gambling", payment_rail="card")
VAMP = VAMPAnalysisRequest(merchant_id="M1")


def respond(status_code=200, payload=None, content=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if content is not None:
            return httpx.Response(status_code, content=content)
        return httpx.Response(status_code, json=payload if payload is not None else {})

    return handler


def raise_error(exc_type):
    def handler(request: httpx.Request) -> httpx.Response:
        raise exc_type("simulated failure", request=request)

    return handler


async def run_every_operation(client: GuardScoreClient):
    return [
        await client.score_transaction(TRANSACTION),
        await client.lookup_merchant(MerchantLookupRequest(merchant_id="M-1")),
        await client.verify_agent(AgentVerifyRequest(agent_id="agent-1", requesting_action="purchase")),
        await client.predict_dispute(
            DisputePredictRequest(transaction_amount=80, merchant_category="travel", payment_rail="card")
        ),
        await client.check_velocity(
            VelocityCheckRequest(entity_id="abc", entity_type="card", time_window="1h")
        ),
        await client.check_cross_rail(CrossRailCheckRequest(entity_id="X", payment_rails=["card", "crypto"])),
        await client.analyze_vamp(VAMP),
    ]


class TestDemoMode:
    async def test_no_outbound_calls(self, demo_config, recording_transport):
        transport = recording_transport(respond(500))
        async with GuardScoreClient(demo_config, transport=transport) as client:
            results = await run_every_operation(client)

        assert transport.requests == []
        assert len(results) == 7

    async def test_empty_key_is_demo(self, recording_transport):
        transport = recording_transport(respond(500))
        async with create_client(ClientConfig(api_key=""), transport=transport) as client:
            assert client.config.demo_mode
            await client.score_transaction(TRANSACTION)

        assert transport.requests == []

    def test_demo_headers_carry_no_credentials(self, demo_config):
        client = GuardScoreClient(demo_config)
        headers = client._get_default_headers()

        assert "X-API-Key" not in headers
        assert "Authorization" not in headers
        assert headers["User-Agent"] == demo_config.user_agent


class TestRemoteSuccess:
    async def test_assessment(self, live_config, recording_transport):
        transport = recording_transport(
            respond(payload={"score": 22, "_meta": {"scoring_version": "2.4"}})
        )
        async with GuardScoreClient(live_config, transport=transport) as client:
            result = await client.score_transaction(TRANSACTION)

        assert len(transport.requests) == 1
        sent = transport.requests[0]
        assert sent.method == "POST"
        assert sent.url.path == "/v1/api/v2/guardscore/assess"
        assert sent.headers["X-API-Key"] == "test-key"
        assert sent.headers["Authorization"] == "Bearer test-key"
        assert "answers" in json.loads(sent.content)

        assert result.risk_score == 22
        assert result.recommended_action == "review"
        assert result.guardscore_version == "2.4"

    async def test_merchant_lookup_by_id(self, live_config, recording_transport):
        transport = recording_transport(respond(payload={"merchant_id": "M-1", "guardscore": 91}))
        async with GuardScoreClient(live_config, transport=transport) as client:
            result = await client.lookup_merchant(MerchantLookupRequest(merchant_id="M-1"))

        assert transport.requests[0].method == "GET"
        assert transport.requests[0].url.path == "/v1/api/agent/merchant/M-1"
        assert result.guardscore == 91

    async def test_vamp_simulation(self, live_config, recording_transport):
        transport = recording_transport(
            respond(payload={"simulation": {"currentVampPct": 0.7, "projectedVampPct": 0.7}})
        )
        async with GuardScoreClient(live_config, transport=transport) as client:
            result = await client.analyze_vamp(VAMP)

        assert transport.requests[0].url.path == "/v1/api/v2/guardscore/simulate"
        assert result.vamp_status == VAMPStatus.MONITORED
        assert result.monthly_trend == "stable"


class TestLocalOnlyOperations:
    async def test_merchant_lookup_by_name_stays_local(self, live_config, recording_transport):
        transport = recording_transport(respond(500))
        async with GuardScoreClient(live_config, transport=transport) as client:
            result = await client.lookup_merchant(MerchantLookupRequest(merchant_name="Acme"))

        assert transport.requests == []
        assert result.name == "Acme"

    async def test_velocity_stays_local(self, live_config, recording_transport):
        transport = recording_transport(respond(500))
        async with GuardScoreClient(live_config, transport=transport) as client:
            await client.check_velocity(
                VelocityCheckRequest(entity_id="abc", entity_type="agent", time_window="24h")
            )

        assert transport.requests == []

    async def test_merchant_lookup_requires_identifier(self, live_config, recording_transport):
        transport = recording_transport(respond(500))
        async with GuardScoreClient(live_config, transport=transport) as client:
            with pytest.raises(PreconditionError):
                await client.lookup_merchant(MerchantLookupRequest())


class TestFallback:
    @pytest.mark.parametrize(
        "handler",
        [
            respond(500),
            respond(404),
            respond(403),
            respond(401),
            respond(200, content=b"<html>not json</html>"),
            respond(200, payload=[1, 2, 3]),
            raise_error(httpx.ReadTimeout),
            raise_error(httpx.ConnectError),
            respond(200, payload={"score": 10**400, "guardscore": 10**400}),
            respond(200, payload={"simulation": {"currentVampPct": 1e308, "projectedVampPct": -1e308}}),
        ],
        ids=[
            "500",
            "404",
            "403",
            "401",
            "malformed-json",
            "json-array",
            "timeout",
            "connect-error",
            "oversized-integer",
            "extreme-float",
        ],
    )
    async def test_every_operation_returns_a_result(self, live_config, recording_transport, handler):
        transport = recording_transport(handler)
        async with GuardScoreClient(live_config, transport=transport) as client:
            results = await run_every_operation(client)

        assert len(results) == 7
        # Velocity never calls out; every other operation makes exactly one attempt.
        assert len(transport.requests) == 5

    async def test_server_error_matches_mock(self, live_config, recording_transport):
        transport = recording_transport(respond(500))
        async with GuardScoreClient(live_config, transport=transport) as client:
            result = await client.score_transaction(TRANSACTION)
            expected = client.mock.score_transaction(TRANSACTION)

        assert len(transport.requests) == 1
        assert result.guardscore_version == MOCK_VERSION
        assert result.model_dump(exclude={"scored_at"}) == expected.model_dump(exclude={"scored_at"})

    async def test_vamp_falls_back_when_remote_throws(self, live_config, recording_transport):
        transport = recording_transport(raise_error(httpx.ConnectError))
        async with GuardScoreClient(live_config, transport=transport) as client:
            result = await client.analyze_vamp(VAMP)
            expected = client.mock.analyze_vamp(VAMP)

        assert result.vamp_status in {VAMPStatus.STANDARD, VAMPStatus.MONITORED, VAMPStatus.EXCESSIVE}
        assert result.vamp_status == vamp_status_for(result.fraud_rate)
        assert result == expected

    async def test_missing_simulation_block_falls_back(self, live_config, recording_transport):
        transport = recording_transport(respond(payload={"ok": True}))
        async with GuardScoreClient(live_config, transport=transport) as client:
            result = await client.predict_dispute(
                DisputePredictRequest(transaction_amount=80, merchant_category="travel", payment_rail="card")
            )

        assert result.model_version == MOCK_VERSION

    async def test_forbidden_is_logged_at_info(self, live_config, recording_transport):
        transport = recording_transport(respond(403))
        async with GuardScoreClient(live_config, transport=transport) as client:
            with capture_logs() as logs:
                await client.check_cross_rail(
                    CrossRailCheckRequest(entity_id="X", payment_rails=["card", "crypto"])
                )

        entries = [entry for entry in logs if entry.get("operation") == "check_cross_rail"]
        assert [entry["log_level"] for entry in entries] == ["info"]
        assert entries[0]["status_code"] == 403

    async def test_server_error_is_logged_at_warning(self, live_config, recording_transport):
        transport = recording_transport(respond(502))
        async with GuardScoreClient(live_config, transport=transport) as client:
            with capture_logs() as logs:
                await client.score_transaction(TRANSACTION)

        entries = [entry for entry in logs if entry.get("operation") == "score_transaction"]
        assert [entry["log_level"] for entry in entries] == ["warning"]
        assert entries[0]["error_code"] == "REMOTE_SERVICE_ERROR"

    async def test_timeout_is_classified(self, live_config, recording_transport):
        transport = recording_transport(raise_error(httpx.ReadTimeout))
        async with GuardScoreClient(live_config, transport=transport) as client:
            with capture_logs() as logs:
                await client.verify_agent(AgentVerifyRequest(agent_id="a", requesting_action="purchase"))

        entries = [entry for entry in logs if entry.get("operation") == "verify_agent"]
        assert entries[0]["error_code"] == "REMOTE_TIMEOUT"

    async def test_extreme_vamp_rate_is_bounded(self, live_config, recording_transport):
        transport = recording_transport(respond(payload={"simulation": {"currentVampPct": 1e308}}))
        async with GuardScoreClient(live_config, transport=transport) as client:
            result = await client.analyze_vamp(VAMP)

        assert result.vamp_status == VAMPStatus.EXCESSIVE
        assert result.vamp_score == 0
        assert result.visa_threshold_distance == 0.0

    async def test_oversized_score_uses_default(self, live_config, recording_transport):
        transport = recording_transport(respond(payload={"score": 10**400}))
        async with GuardScoreClient(live_config, transport=transport) as client:
            result = await client.score_transaction(TRANSACTION)

        assert result.risk_score == 75

    async def test_normalizer_error_falls_back(self, live_config, recording_transport, monkeypatch):
        def broken(data, request, config):
            raise TypeError("unexpected shape")

        monkeypatch.setattr("merchantguard_mcp.client.normalize_assessment", broken)
        transport = recording_transport(respond(payload={"score": 50}))
        async with GuardScoreClient(live_config, transport=transport) as client:
            with capture_logs() as logs:
                result = await client.score_transaction(TRANSACTION)

        assert result.guardscore_version == MOCK_VERSION
        entries = [entry for entry in logs if entry.get("operation") == "score_transaction"]
        assert entries[0]["error_code"] == "MALFORMED_RESPONSE"


class TestMerchantPath:
    async def test_merchant_id_is_encoded(self, live_config, recording_transport):
        transport = recording_transport(respond(payload={"guardscore": 70}))
        async with GuardScoreClient(live_config, transport=transport) as client:
            await client.lookup_merchant(MerchantLookupRequest(merchant_id="../../v2/guard?x=1"))

        sent = transport.requests[0]
        assert sent.url.raw_path == b"/v1/api/agent/merchant/..%2F..%2Fv2%2Fguard%3Fx%3D1"
        assert sent.url.query == b""

    async def test_reserved_characters_stay_in_one_segment(self, live_config, recording_transport):
        transport = recording_transport(respond(payload={"guardscore": 70}))
        async with GuardScoreClient(live_config, transport=transport) as client:
            await client.lookup_merchant(MerchantLookupRequest(merchant_id="acme co/#1"))

        assert transport.requests[0].url.raw_path == b"/v1/api/agent/merchant/acme%20co%2F%231"
