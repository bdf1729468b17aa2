"""
Internal data models for the variant results service.
These represent the active session's load state and the snapshots held by the
session cache.
"""

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ...schemas.variant_schema import GeneAggregate

GeneCollection = Tuple[GeneAggregate, ...]


class ClassificationTotals(BaseModel):
    """Summed per-classification counts across a gene collection."""
    model_config = ConfigDict(frozen=True)

    pathogenic: int = 0
    likely_pathogenic: int = 0
    vus: int = 0
    likely_benign: int = 0
    benign: int = 0

    @classmethod
    def from_genes(cls, genes: Iterable[GeneAggregate]) -> "ClassificationTotals":
        pathogenic = likely_pathogenic = vus = likely_benign = benign = 0
        for g in genes:
            pathogenic += g.pathogenic_count
            likely_pathogenic += g.likely_pathogenic_count
            vus += g.vus_count
            likely_benign += g.likely_benign_count
            benign += g.benign_count
        return cls(
            pathogenic=pathogenic,
            likely_pathogenic=likely_pathogenic,
            vus=vus,
            likely_benign=likely_benign,
            benign=benign,
        )


class LoadState(BaseModel):
    """Transient loading status of the active session. Reset on every session switch."""

    loading: bool = Field(default=False, description="A summaries load is in flight")
    progress: int = Field(default=0, ge=0, le=100, description="Load progress percentage")
    error: Optional[str] = Field(None, description="Last load error, if any")


@dataclass(frozen=True)
class SessionCacheEntry:
    """
    Snapshot of one inactive session's loaded data. Owned by the session cache.
    A plain dataclass so the gene collection is stored by reference, not re-validated.
    """
    genes: GeneCollection = ()
    total_variants: int = 0
    totals: ClassificationTotals = field(default_factory=ClassificationTotals)
    impact_by_acmg: Mapping[str, Mapping[str, int]] = field(default_factory=dict)

    @property
    def is_empty(self) -> bool:
        return len(self.genes) == 0
