import logging
from typing import Any, Dict, Optional

import httpx

from ..core.errors import MarketDataError
from .base import Provider


logger = logging.getLogger(__name__)


class SubgraphProvider(Provider):
    """GraphQL client for the DEX subgraph"""

    name = "subgraph"

    def __init__(
        self,
        url: str,
        timeout_s: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        if not url:
            raise ValueError("Subgraph URL not configured")
        self.url = url
        self.timeout_s = timeout_s
        self._client = client or httpx.AsyncClient(timeout=timeout_s)

    async def ready(self) -> bool:
        return bool(self.url)

    async def health_check(self) -> Dict[str, Any]:
        try:
            await self.query("{ _meta { block { number } } }")
            return {"status": "healthy"}
        except MarketDataError as e:
            return {"status": "error", "reason": str(e)}

    async def query(self, document: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Run a GraphQL query and return its ``data`` object.

        Raises:
            MarketDataError: HTTP failure or GraphQL ``errors`` in the response
        """
        payload: Dict[str, Any] = {"query": document}
        if variables:
            payload["variables"] = variables

        try:
            response = await self._client.post(self.url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            raise MarketDataError(
                f"Subgraph returned {e.response.status_code}: {e.response.text}"
            ) from e
        except httpx.RequestError as e:
            raise MarketDataError(f"Subgraph request failed: {e}") from e
        except ValueError as e:
            raise MarketDataError(f"Subgraph returned invalid JSON: {e}") from e

        if not isinstance(body, dict):
            raise MarketDataError(f"Subgraph returned unexpected body: {body!r:.200}")

        errors = body.get("errors")
        if errors:
            if not isinstance(errors, list):
                errors = [errors]
            message = "; ".join(
                str(err.get("message", err)) if isinstance(err, dict) else str(err) for err in errors
            )
            logger.warning("Subgraph query error: %s", message)
            raise MarketDataError(f"Subgraph query failed: {message}")

        data = body.get("data")
        if data is not None and not isinstance(data, dict):
            raise MarketDataError(f"Subgraph returned unexpected data: {data!r:.200}")
        return data or {}

    async def close(self) -> None:
        await self._client.aclose()
