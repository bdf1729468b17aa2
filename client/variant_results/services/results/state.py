"""
Active results state.

One object owns everything the UI observes for the active session: the gene
collection, totals from the stream metadata, and the load status. Every load
or switch bumps a generation counter; writers hold a LoadToken and each commit
is dropped unless the token still matches the active session and generation.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from ...schemas.variant_schema import GeneAggregate, VariantRecord
from .models import GeneCollection, LoadState, SessionCacheEntry

logger = logging.getLogger(__name__)

StateListener = Callable[["ResultsState"], None]


@dataclass(frozen=True)
class LoadToken:
    session_id: str
    generation: int


class ResultsState:
    """Observable state of the active session."""

    def __init__(self):
        self.session_id: Optional[str] = None
        self.generation: int = 0
        self.genes: GeneCollection = ()
        self.total_variants: int = 0
        self.declared_total_genes: int = 0
        self.impact_by_acmg: Mapping[str, Mapping[str, int]] = {}
        self.load = LoadState()
        self._listeners: List[StateListener] = []

    # ===== Observation =====

    def add_listener(self, listener: StateListener) -> Callable[[], None]:
        """Register a callback fired after every commit. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self):
        for listener in list(self._listeners):
            listener(self)

    # ===== Tokens =====

    def is_current(self, token: LoadToken) -> bool:
        return token.generation == self.generation and token.session_id == self.session_id

    def token_for(self, session_id: str) -> Optional[LoadToken]:
        """Token for writing into the active session, or None if it is not active."""
        if session_id is None or session_id != self.session_id:
            return None
        return LoadToken(session_id, self.generation)

    def _reset_data(self):
        self.genes = ()
        self.total_variants = 0
        self.declared_total_genes = 0
        self.impact_by_acmg = {}
        self.load = LoadState()

    # ===== Session transitions =====

    def activate(self, session_id: Optional[str]) -> Optional[LoadToken]:
        """Make a session active with empty data, superseding any in-flight writer."""
        self.session_id = session_id
        self.generation += 1
        self._reset_data()
        self._notify()
        return LoadToken(session_id, self.generation) if session_id is not None else None

    def deactivate(self):
        self.activate(None)

    def clear(self):
        """Empty the active session's data without changing which session is active."""
        self.generation += 1
        self._reset_data()
        self._notify()

    def restore(self, session_id: str, entry: SessionCacheEntry):
        """Install a cached snapshot as the active session, fully loaded."""
        self.session_id = session_id
        self.generation += 1
        self.genes = entry.genes
        self.total_variants = entry.total_variants
        self.declared_total_genes = len(entry.genes)
        self.impact_by_acmg = entry.impact_by_acmg
        self.load = LoadState(loading=False, progress=100, error=None)
        self._notify()

    def snapshot(self, totals) -> SessionCacheEntry:
        return SessionCacheEntry(
            genes=self.genes,
            total_variants=self.total_variants,
            totals=totals,
            impact_by_acmg=self.impact_by_acmg,
        )

    # ===== Commits from the progressive loader =====

    def begin_load(self, session_id: str) -> LoadToken:
        token = self.activate(session_id)
        self.load = LoadState(loading=True, progress=0)
        self._notify()
        return token

    def set_metadata(self, token: LoadToken, total_genes: int, total_variants: int,
                     impact_by_acmg: Mapping[str, Mapping[str, int]]) -> bool:
        if not self.is_current(token):
            return False
        self.declared_total_genes = total_genes
        self.total_variants = total_variants
        self.impact_by_acmg = impact_by_acmg
        self._notify()
        return True

    def set_progress(self, token: LoadToken, progress: int) -> bool:
        if not self.is_current(token):
            return False
        self.load = self.load.model_copy(update={"progress": max(0, min(100, progress))})
        self._notify()
        return True

    def commit_genes(self, token: LoadToken, genes: Sequence[GeneAggregate], *, complete: bool = False) -> bool:
        """
        Replace the collection with `genes`.
        Variants already expanded in the current collection are carried over.
        """
        if not self.is_current(token):
            logger.debug("Dropping commit for superseded load", extra={"session_id": token.session_id})
            return False

        expanded: Dict[str, GeneAggregate] = {g.gene_symbol: g for g in self.genes if g.variants}
        if expanded:
            genes = [
                g.with_variants(expanded[g.gene_symbol].variants)
                if not g.variants and g.gene_symbol in expanded else g
                for g in genes
            ]
        self.genes = tuple(genes)
        if complete:
            self.load = LoadState(loading=False, progress=100, error=None)
        self._notify()
        return True

    def fail(self, token: LoadToken, error: str) -> bool:
        if not self.is_current(token):
            return False
        self.genes = ()
        self.load = LoadState(loading=False, progress=0, error=error)
        self._notify()
        return True

    # ===== Commits from the gene loader =====

    def find_gene(self, gene_symbol: str) -> Optional[GeneAggregate]:
        for g in self.genes:
            if g.gene_symbol == gene_symbol:
                return g
        return None

    def replace_gene_variants(self, token: LoadToken, gene_symbol: str,
                              variants: Sequence[VariantRecord]) -> bool:
        """Swap in one gene's variant list; every other gene keeps its identity."""
        if not self.is_current(token):
            logger.debug("Dropping gene variants for inactive session",
                         extra={"session_id": token.session_id, "gene_symbol": gene_symbol})
            return False
        if self.find_gene(gene_symbol) is None:
            return False

        self.genes = tuple(
            g.with_variants(variants) if g.gene_symbol == gene_symbol else g
            for g in self.genes
        )
        self._notify()
        return True
