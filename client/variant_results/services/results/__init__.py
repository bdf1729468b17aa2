"""
Variant Results Service

Progressive summary loading, on-demand gene expansion, an LRU cache of
inactive sessions and memoized statistics over the active collection.
"""

from .models import ClassificationTotals, LoadState, SessionCacheEntry
from .session_cache import SessionCache, MAX_CACHED_SESSIONS
from .state import ResultsState, LoadToken
from .statistics import (
    DerivedStatistics,
    filter_by_gene,
    search_genes,
    filter_by_acmg,
    filter_by_impact,
)
from .progressive_loader import ProgressiveLoader
from .gene_loader import GeneLoader
from .variants_results import VariantsResults, create_variants_results

__all__ = [
    # Models
    'ClassificationTotals',
    'LoadState',
    'SessionCacheEntry',

    # Cache
    'SessionCache',
    'MAX_CACHED_SESSIONS',

    # State
    'ResultsState',
    'LoadToken',

    # Statistics
    'DerivedStatistics',

    # Loaders
    'ProgressiveLoader',
    'GeneLoader',

    # Facade
    'VariantsResults',
    'create_variants_results',
]
