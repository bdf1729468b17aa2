import pytest

from variant_results.core.config import VariantsResultsConfig

from fake_backend import BASE_URL, FakeVariantsBackend


@pytest.fixture
def config():
    """Deterministic configuration, independent of the environment."""
    return VariantsResultsConfig(
        api_base_url=BASE_URL,
        request_timeout=5.0,
        max_cached_sessions=3,
        progress_batch_size=500,
        incremental_commit_threshold=5000,
        gene_fetch_max_tries=2,
        log_level="DEBUG",
    )


@pytest.fixture
def backend():
    return FakeVariantsBackend()
