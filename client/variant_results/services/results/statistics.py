"""
Derived statistics and local filters over a loaded gene collection.
"""

from typing import List, Optional, Sequence

from ...schemas.variant_schema import GeneAggregate
from .models import ClassificationTotals, GeneCollection


class DerivedStatistics:
    """
    Memoized aggregate counts over the current collection.

    The cached result is reused for as long as the same collection object is
    passed in; a new collection reference triggers one recomputation.
    """

    def __init__(self):
        self._source: Optional[GeneCollection] = None
        self._totals = ClassificationTotals()
        self.computations = 0

    def totals(self, genes: GeneCollection) -> ClassificationTotals:
        if genes is not self._source:
            self._totals = ClassificationTotals.from_genes(genes)
            self._source = genes
            self.computations += 1
        return self._totals

    def gene_count(self, genes: GeneCollection) -> int:
        return len(genes)

    def pathogenic_count(self, genes: GeneCollection) -> int:
        return self.totals(genes).pathogenic

    def likely_pathogenic_count(self, genes: GeneCollection) -> int:
        return self.totals(genes).likely_pathogenic

    def vus_count(self, genes: GeneCollection) -> int:
        return self.totals(genes).vus


# ===== Local operations =====

def filter_by_gene(genes: Sequence[GeneAggregate], gene_symbol: str) -> List[GeneAggregate]:
    """Exact gene symbol match."""
    return [g for g in genes if g.gene_symbol == gene_symbol]


def search_genes(genes: Sequence[GeneAggregate], query: str) -> List[GeneAggregate]:
    """Case-insensitive substring match on gene symbol."""
    lower_query = query.lower()
    return [g for g in genes if lower_query in g.gene_symbol.lower()]


def filter_by_acmg(genes: Sequence[GeneAggregate], acmg_class: str) -> List[GeneAggregate]:
    """
    Genes with at least one variant of the given ACMG class.
    Unexpanded genes are matched on their best_acmg_class summary.
    """
    return [
        g for g in genes
        if (any(v.acmg_class == acmg_class for v in g.variants)
            if g.variants else g.best_acmg_class == acmg_class)
    ]


def filter_by_impact(genes: Sequence[GeneAggregate], impact: str) -> List[GeneAggregate]:
    """
    Genes with at least one variant of the given impact.
    Unexpanded genes are matched on their best_impact summary.
    """
    return [
        g for g in genes
        if (any(v.impact == impact for v in g.variants)
            if g.variants else g.best_impact == impact)
    ]
