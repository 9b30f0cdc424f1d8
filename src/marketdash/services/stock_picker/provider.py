"""Client for the external AI analysis provider (a hosted edge function)."""

import time
from typing import Any, Dict, Mapping, Optional, Protocol, Sequence

import aiohttp

from ...config.logging import get_logger
from .exceptions import AnalysisProviderError
from .models import ScoredStock

logger = get_logger(__name__)


class AnalysisProvider(Protocol):
    """Protocol for analysis provider implementations."""

    async def analyze(
        self, stocks: Sequence[ScoredStock], request_id: str
    ) -> Mapping[str, Any]:
        """Return the raw analysis payload for the given stocks."""
        ...

    async def check_health(self) -> Dict[str, Any]:
        """Report whether the provider is reachable."""
        ...


class EdgeFunctionAnalysisProvider:
    """Calls the stock analysis edge function over HTTP."""

    def __init__(
        self,
        base_url: Optional[str],
        api_key: Optional[str] = None,
        function_name: str = "gemini-stock-analysis",
    ):
        self.base_url = base_url.rstrip("/") if base_url else None
        self.api_key = api_key
        self.function_name = function_name
        self.logger = logger.bind(component="analysis_provider")

    @property
    def function_url(self) -> str:
        if not self.base_url:
            raise AnalysisProviderError("Analysis provider URL is not configured")
        return f"{self.base_url}/functions/v1/{self.function_name}"

    def _headers(self, request_id: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Cache-Control": "no-cache, no-store, must-revalidate",
            "Pragma": "no-cache",
            "X-Request-Time": str(int(time.time() * 1000)),
        }
        if request_id:
            headers["X-Request-ID"] = request_id
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
            headers["apikey"] = self.api_key
        return headers

    async def analyze(
        self, stocks: Sequence[ScoredStock], request_id: str
    ) -> Mapping[str, Any]:
        """
        Request analysis text for a batch of scored stocks.

        Args:
            stocks: Scored stocks to analyze
            request_id: Unique identifier sent with the request

        Returns:
            Decoded JSON payload from the provider

        Raises:
            AnalysisProviderError: If the provider is unconfigured, unreachable,
                or answers with a non-success status or non-JSON body
        """
        url = self.function_url
        payload = {"stocks": [stock.to_payload() for stock in stocks]}

        self.logger.info(
            "Invoking analysis provider",
            request_id=request_id,
            stock_count=len(stocks),
            function=self.function_name,
        )

        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    url, json=payload, headers=self._headers(request_id)
                ) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise AnalysisProviderError(
                            f"Function invocation error ({response.status}): "
                            f"{error_text[:200]}",
                            status=response.status,
                        )
                    try:
                        return await response.json()
                    except (aiohttp.ContentTypeError, ValueError) as e:
                        raise AnalysisProviderError(
                            f"Provider returned a non-JSON response: {e}",
                            status=response.status,
                        ) from e
        except aiohttp.ClientError as e:
            raise AnalysisProviderError(f"Provider request failed: {e}") from e

    async def check_health(self) -> Dict[str, Any]:
        """
        Check the provider with the CORS preflight request it always answers.

        Returns:
            Dictionary with ``healthy`` and, when unhealthy, ``error``
        """
        try:
            url = self.function_url
            async with aiohttp.ClientSession() as session:
                async with session.options(
                    url,
                    headers=self._headers(),
                    timeout=aiohttp.ClientTimeout(total=10),
                ) as response:
                    if 200 <= response.status < 300:
                        return {"healthy": True}
                    return {
                        "healthy": False,
                        "error": f"Provider responded with status {response.status}",
                    }
        except Exception as e:
            self.logger.warning("Analysis provider health check failed", error=str(e))
            return {"healthy": False, "error": str(e)}
