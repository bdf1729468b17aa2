"""
Wire models for the variants API.
These mirror the records produced by the summaries NDJSON stream and the
per-gene expansion endpoint.
"""

from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


class VariantRecord(BaseModel):
    """One called variant within a gene. Immutable once loaded."""
    model_config = ConfigDict(frozen=True, extra="allow")

    variant_idx: int = Field(..., description="Index of the variant within the session")
    chromosome: str = Field(..., description="Chromosome identifier")
    position: int = Field(..., description="Position on chromosome")
    reference_allele: str = Field(..., description="Reference allele")
    alternate_allele: str = Field(..., description="Alternate allele")
    gene_symbol: Optional[str] = Field(None, description="Gene the variant falls in")
    genotype: Optional[str] = None
    zygosity: Optional[str] = None

    # Classification
    acmg_class: Optional[str] = Field(None, description="ACMG class (opaque value)")
    acmg_class_original: Optional[str] = None
    acmg_criteria: Tuple[str, ...] = Field(default_factory=tuple)

    # Annotation / quality
    hgvs_cdna: Optional[str] = None
    hgvs_protein: Optional[str] = None
    consequence: Optional[str] = None
    impact: Optional[str] = Field(None, description="HIGH, MODERATE, LOW or MODIFIER")
    gnomad_af: Optional[float] = None
    cadd_score: Optional[float] = None
    revel_score: Optional[float] = None
    clinvar_significance: Optional[str] = None
    quality: Optional[float] = None
    depth: Optional[int] = None


class GeneAggregate(BaseModel):
    """
    One gene's rollup within a session.

    variant_count may exceed len(variants) until the gene has been expanded.
    """
    model_config = ConfigDict(frozen=True, extra="allow")

    gene_symbol: str = Field(..., description="Gene symbol, unique within a session")
    variant_count: int = Field(0, ge=0)
    pathogenic_count: int = Field(0, ge=0)
    likely_pathogenic_count: int = Field(0, ge=0)
    vus_count: int = Field(0, ge=0)
    likely_benign_count: int = Field(0, ge=0)
    benign_count: int = Field(0, ge=0)

    best_acmg_class: Optional[str] = None
    best_impact: Optional[str] = None
    high_impact_count: int = 0
    moderate_impact_count: int = 0
    low_impact_count: int = 0
    modifier_impact_count: int = 0

    variants: Tuple[VariantRecord, ...] = Field(default_factory=tuple)

    @property
    def is_expanded(self) -> bool:
        return len(self.variants) > 0

    def with_variants(self, variants) -> "GeneAggregate":
        """Copy of this gene carrying the given variant list."""
        return self.model_copy(update={"variants": tuple(variants)})


class StreamMetadata(BaseModel):
    """First record of a summaries stream."""
    model_config = ConfigDict(extra="allow")

    type: str = "metadata"
    total_genes: int = Field(0, ge=0)
    total_variants: int = Field(0, ge=0)
    impact_by_acmg: Dict[str, Dict[str, int]] = Field(default_factory=dict)


class GeneSummary(BaseModel):
    """A `gene` record: one aggregate without variant detail."""
    type: str = "gene"
    data: GeneAggregate


class StreamComplete(BaseModel):
    """Optional end-of-stream marker."""
    model_config = ConfigDict(extra="allow")

    type: str = "complete"
    total_streamed: Optional[int] = None


StreamRecord = Union[StreamMetadata, GeneSummary, StreamComplete]


class GeneVariantsResponse(BaseModel):
    """Payload of GET /sessions/{id}/variants/by-gene/{symbol}."""
    model_config = ConfigDict(extra="allow")

    gene_symbol: Optional[str] = None
    variant_count: Optional[int] = None
    variants: List[VariantRecord] = Field(default_factory=list)


def coerce_payload(payload: Any) -> Dict[str, Any]:
    """Raise TypeError unless the decoded JSON value is an object."""
    if not isinstance(payload, dict):
        raise TypeError(f"expected a JSON object, got {type(payload).__name__}")
    return payload
