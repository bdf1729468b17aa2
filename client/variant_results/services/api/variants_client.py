import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional
from urllib.parse import quote

import backoff
import httpx

from ...core.config import get_config
from ...schemas.variant_schema import GeneVariantsResponse, VariantRecord

logger = logging.getLogger(__name__)

# Shared HTTP client for connection reuse, created on first use
_shared_client: Optional[httpx.AsyncClient] = None


def get_shared_client() -> httpx.AsyncClient:
    global _shared_client
    if _shared_client is None or _shared_client.is_closed:
        _shared_client = httpx.AsyncClient(timeout=get_config().request_timeout)
    return _shared_client


class VariantsResultsError(Exception):
    """Base error for the variant results subsystem."""


class VariantsNetworkError(VariantsResultsError):
    """Request rejected, non-2xx status, or no response body."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GeneFetchError(VariantsResultsError):
    """On-demand variant fetch for a single gene failed."""

    def __init__(self, gene_symbol: str, message: str):
        super().__init__(f"{gene_symbol}: {message}")
        self.gene_symbol = gene_symbol


def _is_client_error(e: Exception) -> bool:
    return isinstance(e, httpx.HTTPStatusError) and e.response.status_code < 500


class VariantsApiClient:
    """
    Client for the session variants endpoints.
    Uses a shared httpx.AsyncClient unless one is injected.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        gene_fetch_max_tries: Optional[int] = None,
    ):
        config = get_config()
        self.base_url = (base_url or config.api_base_url).rstrip("/")
        self._http_client = http_client
        self.gene_fetch_max_tries = gene_fetch_max_tries or config.gene_fetch_max_tries

    @property
    def http_client(self) -> httpx.AsyncClient:
        return self._http_client or get_shared_client()

    def summaries_url(self, session_id: str) -> str:
        return f"{self.base_url}/sessions/{session_id}/variants/summaries"

    def gene_variants_url(self, session_id: str, gene_symbol: str) -> str:
        return f"{self.base_url}/sessions/{session_id}/variants/by-gene/{quote(gene_symbol, safe='')}"

    @asynccontextmanager
    async def open_summary_stream(self, session_id: str) -> AsyncIterator[AsyncIterator[str]]:
        """
        Open the gene summaries NDJSON stream for a session.
        Yields an async iterator of decoded text chunks.
        """
        url = self.summaries_url(session_id)
        logger.info("Requesting gene summaries", extra={"session_id": session_id})

        try:
            async with self.http_client.stream("GET", url) as response:
                if response.is_error:
                    raise VariantsNetworkError(
                        f"HTTP {response.status_code}: {response.reason_phrase}",
                        status_code=response.status_code,
                    )
                if response.status_code == 204:
                    raise VariantsNetworkError("No response body", status_code=204)

                yield response.aiter_text()
        except httpx.RequestError as e:
            raise VariantsNetworkError(f"Request failed: {e}") from e

    async def fetch_gene_variants(self, session_id: str, gene_symbol: str) -> List[VariantRecord]:
        """Fetch the full variant list for one gene."""
        try:
            payload = await self._get_gene_variants(session_id, gene_symbol)
        except httpx.HTTPStatusError as e:
            raise GeneFetchError(
                gene_symbol, f"HTTP {e.response.status_code}: {e.response.reason_phrase}"
            ) from e
        except httpx.RequestError as e:
            raise GeneFetchError(gene_symbol, f"Request failed: {e}") from e
        except ValueError as e:
            # json.JSONDecodeError and pydantic.ValidationError
            raise GeneFetchError(gene_symbol, f"Invalid response: {e}") from e

        return payload.variants

    async def _get_gene_variants(self, session_id: str, gene_symbol: str) -> GeneVariantsResponse:
        @backoff.on_exception(
            backoff.expo,
            (httpx.RequestError, httpx.HTTPStatusError),
            max_tries=self.gene_fetch_max_tries,
            giveup=_is_client_error,
            logger=logger,
        )
        async def _get() -> GeneVariantsResponse:
            response = await self.http_client.get(self.gene_variants_url(session_id, gene_symbol))
            response.raise_for_status()
            return GeneVariantsResponse.model_validate(response.json())

        result = await _get()
        logger.info(
            "Gene variants fetched",
            extra={"session_id": session_id, "gene_symbol": gene_symbol, "variants": len(result.variants)},
        )
        return result
