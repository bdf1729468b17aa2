"""
Tests for the active results state: listeners and token gating.
"""

from variant_results.schemas.variant_schema import GeneAggregate
from variant_results.services.results.state import ResultsState

from fake_backend import gene


class TestListeners:

    def test_listener_fires_until_unsubscribed(self):
        state = ResultsState()
        seen = []
        unsubscribe = state.add_listener(lambda s: seen.append(s.session_id))

        state.activate("s1")
        unsubscribe()
        state.activate("s2")

        assert seen == ["s1"]

    def test_unsubscribe_twice_is_harmless(self):
        state = ResultsState()
        unsubscribe = state.add_listener(lambda s: None)

        unsubscribe()
        unsubscribe()
        state.clear()


class TestTokens:

    def test_stale_token_cannot_commit(self):
        state = ResultsState()
        stale = state.begin_load("s1")
        state.begin_load("s1")

        assert state.commit_genes(stale, [GeneAggregate.model_validate(gene("BRCA1"))]) is False
        assert state.genes == ()
