"""Utility functions."""

from gatekeeper.utils.pagination import (
    OffsetParams,
    OffsetPage,
    get_offset_params,
    Paginator,
    ExportFormat,
    stream_query,
    create_csv_streaming_response,
    create_jsonl_streaming_response,
)
from gatekeeper.utils.reporting import init_error_tracking, report_exception

__all__ = [
    # Offset pagination
    "OffsetParams",
    "OffsetPage",
    "get_offset_params",
    "Paginator",
    # Streaming/Export
    "ExportFormat",
    "stream_query",
    "create_csv_streaming_response",
    "create_jsonl_streaming_response",
    # Error tracking
    "init_error_tracking",
    "report_exception",
]
