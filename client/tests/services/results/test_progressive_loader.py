"""
Tests for the progressive summaries loader.
Covers commit strategy, failure handling and superseded loads.
"""

import asyncio

import httpx
import pytest

from variant_results.services.api.variants_client import VariantsApiClient
from variant_results.services.results.progressive_loader import ProgressiveLoader, progress_percent
from variant_results.services.results.state import ResultsState

from fake_backend import BASE_URL, gene, ndjson_lines, split_every


async def byte_chunks(text: str, size: int):
    for piece in split_every(text, size):
        yield piece.encode("utf-8")


def make_loader(config, handler):
    api = VariantsApiClient(
        base_url=BASE_URL,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    state = ResultsState()
    return state, ProgressiveLoader(state, api, config)


def stream_response(genes, chunk_size=64, **kwargs):
    body = "".join(ndjson_lines(genes, **kwargs))
    return httpx.Response(200, content=byte_chunks(body, chunk_size),
                          headers={"content-type": "application/x-ndjson"})


class TestProgressPercent:

    @pytest.mark.parametrize("loaded,total,expected", [
        (0, 0, 0),
        (5, 0, 0),
        (500, 1000, 50),
        (1, 3, 33),
        (1000, 1000, 100),
        (1200, 1000, 100),
    ])
    def test_percent(self, loaded, total, expected):
        assert progress_percent(loaded, total) == expected


class TestProgressiveLoad:

    def test_loads_summaries_and_metadata(self, config):
        genes = [gene("BRCA1", pathogenic=1), gene("TP53", pathogenic=2)]
        matrix = {"Pathogenic": {"HIGH": 2, "MODERATE": 1}}
        state, loader = make_loader(
            config, lambda request: stream_response(genes, total_variants=3, impact_by_acmg=matrix)
        )

        assert asyncio.run(loader.load("s1")) is True
        assert [g.gene_symbol for g in state.genes] == ["BRCA1", "TP53"]
        assert all(g.variants == () for g in state.genes)
        assert state.total_variants == 3
        assert state.declared_total_genes == 2
        assert state.impact_by_acmg == matrix
        assert state.session_id == "s1"
        assert state.load.loading is False
        assert state.load.progress == 100
        assert state.load.error is None

    def test_small_payload_commits_once(self, config):
        genes = [gene(f"G{i}") for i in range(20)]
        state, loader = make_loader(
            config.model_copy(update={"progress_batch_size": 5}),
            lambda request: stream_response(genes),
        )
        seen = []
        state.add_listener(lambda s: seen.append((len(s.genes), s.load.loading, s.load.progress)))

        asyncio.run(loader.load("s1"))

        assert all(count == 0 for count, loading, _ in seen if loading)
        assert list(dict.fromkeys(p for _, loading, p in seen if loading and p)) == [25, 50, 75, 100]
        assert seen[-1] == (20, False, 100)

    def test_large_payload_commits_in_batches(self, config):
        genes = [gene(f"G{i}") for i in range(20)]
        state, loader = make_loader(
            config.model_copy(update={"progress_batch_size": 5, "incremental_commit_threshold": 10}),
            lambda request: stream_response(genes, chunk_size=17),
        )
        partial = []
        state.add_listener(lambda s: partial.append(len(s.genes)) if s.load.loading else None)

        asyncio.run(loader.load("s1"))

        assert [n for n in dict.fromkeys(partial) if n] == [5, 10, 15, 20]
        assert len(state.genes) == 20
        assert state.load.progress == 100

    @pytest.mark.parametrize("bad_line", ['{"type": {}}\n', '{"type": ["gene"], "data": {}}\n'])
    def test_record_with_non_string_type_does_not_abort_load(self, config, bad_line):
        lines = ndjson_lines([gene("BRCA1", pathogenic=1), gene("TP53", pathogenic=2)])
        lines.insert(2, bad_line)
        state, loader = make_loader(config, lambda request: httpx.Response(200, text="".join(lines)))

        assert asyncio.run(loader.load("s1")) is True
        assert [g.gene_symbol for g in state.genes] == ["BRCA1", "TP53"]
        assert state.load.loading is False
        assert state.load.progress == 100
        assert state.load.error is None

    def test_http_error_sets_error_and_leaves_empty(self, config):
        state, loader = make_loader(config, lambda request: httpx.Response(500))

        assert asyncio.run(loader.load("s1")) is False
        assert state.genes == ()
        assert state.load.loading is False
        assert state.load.error == "HTTP 500: Internal Server Error"

    def test_failure_mid_stream_discards_partial_batches(self, config):
        genes = [gene(f"G{i}") for i in range(20)]
        body = "".join(ndjson_lines(genes))

        async def broken(request):
            async def chunks():
                yield body[: len(body) // 2].encode()
                raise httpx.ReadError("connection reset", request=request)
            return httpx.Response(200, content=chunks())

        state, loader = make_loader(
            config.model_copy(update={"progress_batch_size": 2, "incremental_commit_threshold": 1}),
            broken,
        )

        assert asyncio.run(loader.load("s1")) is False
        assert state.genes == ()
        assert "connection reset" in state.load.error

    def test_no_automatic_retry(self, config):
        calls = []

        def handler(request):
            calls.append(request.url.path)
            return httpx.Response(503)

        state, loader = make_loader(config, handler)
        asyncio.run(loader.load("s1"))
        assert len(calls) == 1

    def test_new_load_clears_previous_error(self, config):
        responses = iter([httpx.Response(500), stream_response([gene("BRCA1")])])
        state, loader = make_loader(config, lambda request: next(responses))

        async def run():
            await loader.load("s1")
            assert state.load.error is not None
            await loader.load("s1")

        asyncio.run(run())
        assert state.load.error is None
        assert len(state.genes) == 1


class TestSupersededLoads:

    def test_late_response_for_superseded_session_is_dropped(self, config):
        a_started = None
        release_a = None

        async def handler(request):
            if "/sessions/A/" in request.url.path:
                a_started.set()
                await release_a.wait()
                return stream_response([gene("FROM_A", pathogenic=9)])
            return stream_response([gene("FROM_B", pathogenic=1)])

        state, loader = make_loader(config, handler)

        async def run():
            nonlocal a_started, release_a
            a_started, release_a = asyncio.Event(), asyncio.Event()

            load_a = asyncio.create_task(loader.load("A"))
            await a_started.wait()
            assert await loader.load("B") is True
            release_a.set()
            return await load_a

        assert asyncio.run(run()) is False
        assert state.session_id == "B"
        assert [g.gene_symbol for g in state.genes] == ["FROM_B"]
        assert state.load.progress == 100

    def test_superseded_mid_stream(self, config):
        body = "".join(ndjson_lines([gene(f"A{i}") for i in range(50)]))
        gate = None

        async def handler(request):
            if "/sessions/A/" in request.url.path:
                async def chunks():
                    yield body[:200].encode()
                    await gate.wait()
                    yield body[200:].encode()
                return httpx.Response(200, content=chunks())
            return stream_response([gene("B1")])

        state, loader = make_loader(config, handler)

        async def run():
            nonlocal gate
            gate = asyncio.Event()
            load_a = asyncio.create_task(loader.load("A"))
            await asyncio.sleep(0.05)
            await loader.load("B")
            gate.set()
            return await load_a

        assert asyncio.run(run()) is False
        assert [g.gene_symbol for g in state.genes] == ["B1"]
