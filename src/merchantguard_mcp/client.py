"""HTTP client for the GuardScore risk service.

Every operation makes at most one remote attempt. Any remote-side failure
is logged and answered by the deterministic mock generator, so callers
always receive a canonical result.
"""

from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from .config import ClientConfig
from .exceptions import (
    MalformedResponseError,
    PreconditionError,
    RemoteAuthError,
    RemoteServiceError,
    RemoteTimeoutError,
)
from .fallback import MockRiskGenerator
from .logging import get_logger
from .models import (
    AgentVerification,
    AgentVerifyRequest,
    CrossRailCheckRequest,
    CrossRailResult,
    DisputePredictRequest,
    DisputePrediction,
    MerchantLookupRequest,
    MerchantProfile,
    TransactionRiskRequest,
    TransactionRiskResult,
    VAMPAnalysis,
    VAMPAnalysisRequest,
    VelocityCheckRequest,
    VelocityResult,
)
from .normalizers import (
    normalize_agent_screen,
    normalize_assessment,
    normalize_cross_rail_decision,
    normalize_dispute_simulation,
    normalize_merchant,
    normalize_vamp_simulation,
)
from .payloads import (
    AGENT_SCREEN_PATH,
    ASSESS_PATH,
    GUARD_PATH,
    MERCHANT_PATH,
    SIMULATE_PATH,
    agent_screen_payload,
    assessment_payload,
    cross_rail_decision_payload,
    dispute_simulation_payload,
    vamp_simulation_payload,
)

logger = get_logger(__name__)

T = TypeVar("T")
Normalizer = Callable[[Dict[str, Any], Any, ClientConfig], Optional[T]]

AUTH_STATUS_CODES = frozenset({401, 403})


class GuardScoreClient:
    """Remote-first GuardScore client with mock fallback."""

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or ClientConfig()
        self.mock = MockRiskGenerator(self.config)

        # Configure HTTP client
        self.client = httpx.AsyncClient(
            base_url=self.config.api_url.rstrip("/"),
            timeout=httpx.Timeout(self.config.timeout_seconds),
            headers=self._get_default_headers(),
            transport=transport,
        )

    def _get_default_headers(self) -> Dict[str, str]:
        """Get default headers for requests."""
        headers = {
            "Content-Type": "application/json",
            "User-Agent": self.config.user_agent,
        }

        if not self.config.demo_mode:
            headers["X-API-Key"] = self.config.api_key
            headers["Authorization"] = f"Bearer {self.config.api_key}"

        return headers

    def _handle_response(self, response: httpx.Response, path: str) -> Dict[str, Any]:
        """Handle HTTP response and raise appropriate exceptions."""
        if response.status_code in AUTH_STATUS_CODES:
            raise RemoteAuthError(
                f"HTTP {response.status_code} from {path}",
                status_code=response.status_code,
                path=path,
            )
        if not response.is_success:
            raise RemoteServiceError(
                f"HTTP {response.status_code} from {path}",
                status_code=response.status_code,
                path=path,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedResponseError(f"Invalid JSON from {path}", path=path) from exc
        if not isinstance(data, dict):
            raise MalformedResponseError(f"Expected a JSON object from {path}", path=path)
        return data

    async def _request(
        self, method: str, path: str, payload: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        try:
            response = await self.client.request(method, path, json=payload)
        except httpx.TimeoutException as exc:
            raise RemoteTimeoutError(
                f"Request to {path} timed out",
                timeout_seconds=self.config.timeout_seconds,
            ) from exc
        except httpx.HTTPError as exc:
            raise RemoteServiceError(f"Transport error calling {path}: {exc}", path=path) from exc

        return self._handle_response(response, path)

    async def _fetch(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]],
        normalize: Normalizer,
        request: Any,
    ) -> T:
        data = await self._request(method, path, payload)
        try:
            result = normalize(data, request, self.config)
        except (ValidationError, ValueError, OverflowError, TypeError) as exc:
            raise MalformedResponseError(f"Unusable response from {path}", path=path) from exc
        if result is None:
            raise MalformedResponseError(f"Response from {path} has no simulation block", path=path)
        return result

    async def _remote_or_mock(
        self,
        operation: str,
        remote: Callable[[], Awaitable[T]],
        fallback: Callable[[], T],
    ) -> T:
        if self.config.demo_mode:
            return fallback()

        try:
            return await remote()
        except RemoteAuthError as exc:
            logger.info(
                "Remote endpoint requires higher privilege, using mock",
                operation=operation,
                status_code=exc.status_code,
            )
        except (RemoteServiceError, RemoteTimeoutError, MalformedResponseError) as exc:
            logger.warning(
                "Remote call failed, using mock",
                operation=operation,
                error_code=exc.error_code,
                error=exc.message,
            )
        return fallback()

    async def score_transaction(self, request: TransactionRiskRequest) -> TransactionRiskResult:
        """Score a transaction via the GuardScore assessment."""
        return await self._remote_or_mock(
            "score_transaction",
            lambda: self._fetch(
                "POST", ASSESS_PATH, assessment_payload(request), normalize_assessment, request
            ),
            lambda: self.mock.score_transaction(request),
        )

    async def lookup_merchant(self, request: MerchantLookupRequest) -> MerchantProfile:
        """Look up a merchant profile.

        Only a ``merchant_id`` can be resolved remotely; name and website
        lookups are answered by the mock.
        """
        if not request.has_identifier:
            raise PreconditionError(
                "At least one of merchant_id, merchant_name, or website is required",
                fields=["merchant_id", "merchant_name", "website"],
            )
        if not request.merchant_id:
            return self.mock.lookup_merchant(request)

        path = MERCHANT_PATH.format(merchant_id=quote(request.merchant_id, safe=""))
        return await self._remote_or_mock(
            "lookup_merchant",
            lambda: self._fetch("GET", path, None, normalize_merchant, request),
            lambda: self.mock.lookup_merchant(request),
        )

    async def verify_agent(self, request: AgentVerifyRequest) -> AgentVerification:
        return await self._remote_or_mock(
            "verify_agent",
            lambda: self._fetch(
                "POST", AGENT_SCREEN_PATH, agent_screen_payload(request), normalize_agent_screen, request
            ),
            lambda: self.mock.verify_agent(request),
        )

    async def predict_dispute(self, request: DisputePredictRequest) -> DisputePrediction:
        return await self._remote_or_mock(
            "predict_dispute",
            lambda: self._fetch(
                "POST",
                SIMULATE_PATH,
                dispute_simulation_payload(request),
                normalize_dispute_simulation,
                request,
            ),
            lambda: self.mock.predict_dispute(request),
        )

    async def check_velocity(self, request: VelocityCheckRequest) -> VelocityResult:
        """Velocity check; there is no remote endpoint for it."""
        return self.mock.check_velocity(request)

    async def check_cross_rail(self, request: CrossRailCheckRequest) -> CrossRailResult:
        return await self._remote_or_mock(
            "check_cross_rail",
            lambda: self._fetch(
                "POST",
                GUARD_PATH,
                cross_rail_decision_payload(request),
                normalize_cross_rail_decision,
                request,
            ),
            lambda: self.mock.check_cross_rail(request),
        )

    async def analyze_vamp(self, request: VAMPAnalysisRequest) -> VAMPAnalysis:
        return await self._remote_or_mock(
            "analyze_vamp",
            lambda: self._fetch(
                "POST",
                SIMULATE_PATH,
                vamp_simulation_payload(request),
                normalize_vamp_simulation,
                request,
            ),
            lambda: self.mock.analyze_vamp(request),
        )

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def create_client(
    config: Optional[ClientConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> GuardScoreClient:
    """Factory function to create a GuardScore client."""
    return GuardScoreClient(config=config, transport=transport)
