from .ndjson_parser import (
    NdjsonParseError,
    iter_ndjson_lines,
    parse_record,
    stream_records,
)
