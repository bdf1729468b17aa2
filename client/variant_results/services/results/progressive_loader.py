import logging
import time
from contextlib import aclosing
from typing import List, Optional

from ...core.config import VariantsResultsConfig, get_config
from ...schemas.variant_schema import GeneAggregate, GeneSummary, StreamComplete, StreamMetadata
from ..api.variants_client import VariantsApiClient, VariantsNetworkError
from ..stream.ndjson_parser import stream_records
from .state import ResultsState

logger = logging.getLogger(__name__)


def progress_percent(loaded: int, total: int) -> int:
    if total <= 0:
        return 0
    return min(100, round(loaded / total * 100))


class ProgressiveLoader:
    """
    Streams a session's gene summaries into the results state.

    Small payloads are committed once when the stream ends; payloads whose
    metadata declares more than `incremental_commit_threshold` genes are also
    committed at every progress batch so the table can render early.
    """

    def __init__(self, state: ResultsState, api: VariantsApiClient,
                 config: Optional[VariantsResultsConfig] = None):
        self.state = state
        self.api = api
        self.config = config or get_config()

    async def load(self, session_id: str) -> bool:
        """
        Load summaries for `session_id`, making it the active session.
        Returns True if the results were committed.
        """
        token = self.state.begin_load(session_id)
        started = time.monotonic()
        genes: List[GeneAggregate] = []
        incremental = False

        def on_progress(loaded: int, total: int):
            if not self.state.set_progress(token, progress_percent(loaded, total)):
                return
            if incremental:
                self.state.commit_genes(token, genes)

        try:
            async with self.api.open_summary_stream(session_id) as chunks:
                records = stream_records(
                    chunks,
                    on_progress=on_progress,
                    progress_every=self.config.progress_batch_size,
                )
                async with aclosing(records):
                    async for record in records:
                        if not self.state.is_current(token):
                            logger.debug("Abandoning superseded load", extra={"session_id": session_id})
                            return False

                        if isinstance(record, GeneSummary):
                            genes.append(record.data)
                        elif isinstance(record, StreamMetadata):
                            incremental = record.total_genes > self.config.incremental_commit_threshold
                            self.state.set_metadata(
                                token,
                                total_genes=record.total_genes,
                                total_variants=record.total_variants,
                                impact_by_acmg=record.impact_by_acmg,
                            )
                        elif isinstance(record, StreamComplete):
                            logger.debug("Stream end marker received",
                                         extra={"session_id": session_id, "total_streamed": record.total_streamed})
        except VariantsNetworkError as e:
            if self.state.fail(token, str(e)):
                logger.error(f"Loading variant summaries failed for {session_id}: {e}")
            return False

        if not self.state.commit_genes(token, genes, complete=True):
            return False

        logger.info(
            "Gene summaries loaded",
            extra={
                "session_id": session_id,
                "genes": len(genes),
                "elapsed_ms": round((time.monotonic() - started) * 1000),
            },
        )
        return True
