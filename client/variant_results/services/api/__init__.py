from .variants_client import (
    VariantsApiClient,
    VariantsResultsError,
    VariantsNetworkError,
    GeneFetchError,
)
