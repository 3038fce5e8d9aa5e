"""
HERA 트랜잭션 스토어 어댑터

PostgREST RPC 기반 트랜잭션 스토어 연동.
"""

from adapters.hera.rest_client import HeraTransactionRestClient
from adapters.hera.models import (
    parse_line,
    parse_query_result,
    parse_reversal_result,
    parse_transaction,
    serialize_emit_request,
    serialize_query_filters,
)

__all__ = [
    "HeraTransactionRestClient",
    "parse_line",
    "parse_query_result",
    "parse_reversal_result",
    "parse_transaction",
    "serialize_emit_request",
    "serialize_query_filters",
]
