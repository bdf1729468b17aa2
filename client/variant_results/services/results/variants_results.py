"""
VariantsResults - two-tier loading of a case's variant results with instant
switch-back between recently used sessions.

1. Gene summaries are streamed when a session becomes active.
2. Full variants for a gene are fetched when the gene is expanded.
3. Sessions that lose focus are kept in an LRU cache and restored without a
   network round trip.
"""

import logging
from typing import List, Mapping, Optional

import httpx

from ...core.config import VariantsResultsConfig, get_config
from ...core.logging import configure_logging
from ...schemas.variant_schema import GeneAggregate
from ..api.variants_client import VariantsApiClient
from .gene_loader import GeneLoader
from .models import ClassificationTotals, GeneCollection
from .progressive_loader import ProgressiveLoader
from .session_cache import SessionCache
from .state import ResultsState
from .statistics import (
    DerivedStatistics,
    filter_by_acmg,
    filter_by_gene,
    filter_by_impact,
    search_genes,
)

logger = logging.getLogger(__name__)


class VariantsResults:
    """Variant results for whichever session the case lifecycle marks active."""

    def __init__(
        self,
        api: Optional[VariantsApiClient] = None,
        config: Optional[VariantsResultsConfig] = None,
    ):
        self.config = config or get_config()
        self.api = api or VariantsApiClient(
            base_url=self.config.api_base_url,
            gene_fetch_max_tries=self.config.gene_fetch_max_tries,
        )
        self.state = ResultsState()
        self.cache = SessionCache(self.config.max_cached_sessions)
        self.stats = DerivedStatistics()
        self.loader = ProgressiveLoader(self.state, self.api, self.config)
        self.gene_loader = GeneLoader(self.state, self.api)

    # ===== Session switching =====

    async def switch_session(self, session_id: Optional[str]) -> bool:
        """
        React to a new active session id (None when no case is open).

        The outgoing session is cached if it holds data; the incoming one is
        restored from cache or streamed. Returns True if data is available
        for the incoming session when the call returns.
        """
        if session_id is not None and session_id == self.state.session_id:
            return len(self.state.genes) > 0

        if not self.activate(session_id):
            return session_id is not None
        return await self.loader.load(session_id)

    def activate(self, session_id: Optional[str]) -> bool:
        """
        Synchronous part of a session switch. Returns True when the incoming
        session missed the cache and must be loaded.
        """
        self._cache_outgoing()

        if session_id is None:
            self.state.deactivate()
            logger.info("Session cleared")
            return False

        cached = self.cache.get(session_id)
        if cached is not None:
            self.state.restore(session_id, cached)
            logger.info("Cache hit", extra={"session_id": session_id, "genes": len(cached.genes)})
            return False

        logger.info("Cache miss", extra={"session_id": session_id})
        self.state.activate(session_id)
        return True

    def _cache_outgoing(self):
        prev_id = self.state.session_id
        if prev_id is None or not self.state.genes or self.state.load.loading:
            return
        self.cache.save(prev_id, self.state.snapshot(self.stats.totals(self.state.genes)))

    # ===== Actions =====

    async def load_all_variants(self, session_id: str) -> bool:
        """Stream summaries for `session_id` regardless of cache contents."""
        if session_id != self.state.session_id:
            self._cache_outgoing()
        return await self.loader.load(session_id)

    async def load_gene_variants(self, session_id: str, gene_symbol: str) -> bool:
        return await self.gene_loader.load_gene(session_id, gene_symbol)

    def clear_variants(self):
        """Reset the active session's data. The cache is left alone."""
        self.state.clear()

    # ===== Observable state =====

    @property
    def session_id(self) -> Optional[str]:
        return self.state.session_id

    @property
    def all_genes(self) -> GeneCollection:
        return self.state.genes

    @property
    def total_variants(self) -> int:
        return self.state.total_variants

    @property
    def impact_by_acmg(self) -> Mapping[str, Mapping[str, int]]:
        return self.state.impact_by_acmg

    @property
    def is_loading(self) -> bool:
        return self.state.load.loading

    @property
    def load_progress(self) -> int:
        return self.state.load.progress

    @property
    def error(self) -> Optional[str]:
        return self.state.load.error

    # ===== Derived statistics =====

    @property
    def totals(self) -> ClassificationTotals:
        return self.stats.totals(self.state.genes)

    @property
    def total_genes(self) -> int:
        return self.stats.gene_count(self.state.genes)

    @property
    def pathogenic_count(self) -> int:
        return self.stats.pathogenic_count(self.state.genes)

    @property
    def likely_pathogenic_count(self) -> int:
        return self.stats.likely_pathogenic_count(self.state.genes)

    @property
    def vus_count(self) -> int:
        return self.stats.vus_count(self.state.genes)

    # ===== Local operations =====

    def filter_by_gene(self, gene_symbol: str) -> List[GeneAggregate]:
        return filter_by_gene(self.state.genes, gene_symbol)

    def search_genes(self, query: str) -> List[GeneAggregate]:
        return search_genes(self.state.genes, query)

    def filter_by_acmg(self, acmg_class: str) -> List[GeneAggregate]:
        return filter_by_acmg(self.state.genes, acmg_class)

    def filter_by_impact(self, impact: str) -> List[GeneAggregate]:
        return filter_by_impact(self.state.genes, impact)


def create_variants_results(
    base_url: Optional[str] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    config: Optional[VariantsResultsConfig] = None,
) -> VariantsResults:
    """Build a VariantsResults wired to the configured API and logging."""
    config = config or get_config()
    configure_logging(config.log_level)
    api = VariantsApiClient(
        base_url=base_url or config.api_base_url,
        http_client=http_client,
        gene_fetch_max_tries=config.gene_fetch_max_tries,
    )
    return VariantsResults(api=api, config=config)
