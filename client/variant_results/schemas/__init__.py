from .variant_schema import (
    VariantRecord,
    GeneAggregate,
    StreamMetadata,
    GeneSummary,
    StreamComplete,
    StreamRecord,
    GeneVariantsResponse,
)
