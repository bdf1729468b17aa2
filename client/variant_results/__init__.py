"""
Variant Results Client

Streams per-case gene summaries, expands genes on demand and keeps recently
used sessions in memory for instant switch-back.
"""

from .services.results import (
    VariantsResults,
    create_variants_results,
)

__version__ = "1.0.0"

__all__ = [
    'VariantsResults',
    'create_variants_results',
]
