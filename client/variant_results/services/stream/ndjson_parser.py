from __future__ import annotations

import json
import logging
from typing import AsyncIterable, AsyncIterator, Callable, Optional

from pydantic import ValidationError

from ...schemas.variant_schema import (
    GeneSummary,
    StreamComplete,
    StreamMetadata,
    StreamRecord,
    coerce_payload,
)

logger = logging.getLogger(__name__)


# ----------------------------------------------------------------------
# Constants & Configuration
# ----------------------------------------------------------------------

# Progress is reported every N gene records
PROGRESS_BATCH_SIZE: int = 500

ProgressCallback = Callable[[int, int], None]


class NdjsonParseError(ValueError):
    pass


_RECORD_TYPES = {
    "metadata": StreamMetadata,
    "gene": GeneSummary,
    "complete": StreamComplete,
}


async def iter_ndjson_lines(chunks: AsyncIterable[str]) -> AsyncIterator[str]:
    """
    Re-split text chunks arriving at arbitrary boundaries into complete lines.

    The last fragment of each chunk is carried over to the next one. Whatever is
    left in the buffer when the stream ends is dropped.
    """
    buffer = ""
    async for chunk in chunks:
        if not chunk:
            continue
        buffer += chunk
        lines = buffer.split("\n")
        buffer = lines.pop()
        for line in lines:
            yield line

    if buffer.strip():
        logger.debug("Discarding unterminated trailing fragment", extra={"fragment_length": len(buffer)})


def parse_record(line: str) -> StreamRecord:
    """
    Parse one NDJSON line into a typed record.

    Raises NdjsonParseError for invalid JSON, an unknown record type, or a
    payload that does not validate.
    """
    try:
        payload = coerce_payload(json.loads(line))
    except (json.JSONDecodeError, TypeError) as e:
        raise NdjsonParseError(f"Malformed NDJSON line: {e}") from e

    record_type = payload.get("type")
    model = _RECORD_TYPES.get(record_type) if isinstance(record_type, str) else None
    if model is None:
        raise NdjsonParseError(f"Unknown record type: {record_type!r}")

    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise NdjsonParseError(f"Invalid {payload['type']} record: {e.error_count()} error(s)") from e


async def stream_records(
    chunks: AsyncIterable[str],
    *,
    on_progress: Optional[ProgressCallback] = None,
    progress_every: int = PROGRESS_BATCH_SIZE,
) -> AsyncIterator[StreamRecord]:
    """
    Yield typed records from a chunked NDJSON text stream, in arrival order.

    Args:
        chunks:         Async iterable of decoded text chunks.
        on_progress:    Called with (loaded_genes, total_genes) every
                        `progress_every` gene records, once the last gene of the
                        batch has been consumed, and once at end of stream.
        progress_every: Gene batch size for progress reports.

    Malformed lines are skipped; they never end the stream.
    """
    total = 0
    loaded = 0
    skipped = 0

    async for line in iter_ndjson_lines(chunks):
        if not line.strip():
            continue

        try:
            record = parse_record(line)
        except NdjsonParseError:
            skipped += 1
            continue

        if isinstance(record, StreamMetadata):
            total = record.total_genes

        yield record

        # Reported after the consumer has taken the gene that completes the batch
        if isinstance(record, GeneSummary):
            loaded += 1
            if on_progress is not None and loaded % progress_every == 0:
                on_progress(loaded, total)

    if skipped:
        logger.debug("Skipped malformed NDJSON lines", extra={"skipped": skipped})
    if on_progress is not None:
        on_progress(loaded, total)
