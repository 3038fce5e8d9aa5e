"""
트랜잭션 스토어 와이어 형식 <-> 도메인 모델 변환

금액은 문자열로 전송하고 수신 시 Decimal로 변환.
날짜는 ISO-8601 문자열.
"""

from collections.abc import Mapping
from datetime import datetime
from decimal import Decimal
from typing import Any

from core.ledger.balance import to_decimal
from core.ledger.errors import LedgerTransportError, LedgerValidationError
from core.ledger.models import (
    EmitRequest,
    LineInput,
    QueryFilters,
    QueryResult,
    ReversalResult,
    Transaction,
    TransactionLine,
)
from core.types import DrCr, TransactionStatus
from core.utils.timezone import parse_datetime, to_iso


# -----------------------------------------------------------------------------
# 직렬화 (요청)
# -----------------------------------------------------------------------------


def to_wire_value(value: Any) -> Any:
    """JSON 직렬화 가능한 값으로 변환 (Decimal -> str, datetime -> ISO)"""
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, DrCr | TransactionStatus):
        return value.value
    if isinstance(value, Mapping):
        return {str(k): to_wire_value(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [to_wire_value(v) for v in value]
    return value


def serialize_line(line: LineInput) -> dict[str, Any]:
    """LineInput -> 요청 라인 (line_number 없으면 생략)"""
    data: dict[str, Any] = {
        "line_type": line.line_type,
        "smart_code": line.smart_code,
        "quantity": str(line.quantity),
        "unit_price": str(line.unit_price),
        "line_amount": str(line.line_amount),
        "line_data": to_wire_value(line.line_data),
    }
    if line.line_number is not None:
        data["line_number"] = line.line_number
    if line.entity_id is not None:
        data["entity_id"] = line.entity_id
    if line.dr_cr is not None:
        data["dr_cr"] = line.dr_cr.value
    if line.description is not None:
        data["description"] = line.description
    return data


def serialize_emit_request(request: EmitRequest) -> dict[str, Any]:
    """EmitRequest -> EMIT 페이로드 (organization_id는 엔벨로프에 포함)"""
    payload: dict[str, Any] = {
        "transaction_type": request.transaction_type,
        "smart_code": request.smart_code,
        "transaction_date": to_iso(request.transaction_date),
        "transaction_status": request.status.value,
        "total_amount": str(request.resolved_total_amount()),
        "business_context": to_wire_value(request.business_context),
        "metadata": to_wire_value(request.metadata),
        "require_balance": request.require_balance,
        "lines": [serialize_line(line) for line in request.lines],
    }
    if request.source_entity_id is not None:
        payload["source_entity_id"] = request.source_entity_id
    if request.target_entity_id is not None:
        payload["target_entity_id"] = request.target_entity_id
    return payload


def serialize_query_filters(filters: QueryFilters) -> dict[str, Any]:
    """QueryFilters -> QUERY 페이로드 (None 필터는 생략)"""
    raw = {
        "source_entity_id": filters.source_entity_id,
        "target_entity_id": filters.target_entity_id,
        "transaction_type": filters.transaction_type,
        "smart_code_like": filters.smart_code_like,
        "transaction_status": filters.status,
        "date_from": filters.date_from,
        "date_to": filters.date_to,
    }
    payload = {key: to_wire_value(value) for key, value in raw.items() if value is not None}
    payload["limit"] = filters.limit
    payload["offset"] = filters.offset
    payload["include_lines"] = filters.include_lines
    return {"filters": payload}


# -----------------------------------------------------------------------------
# 파싱 (응답)
# -----------------------------------------------------------------------------


def unwrap(data: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    """중첩된 data 래퍼 제거

    스토어 버전에 따라 {"data": {"data": {...}}} 형태로 응답하는 경우 대응.
    """
    current = data
    while key not in current and isinstance(current.get("data"), Mapping):
        current = current["data"]
    return current


def _parse_dr_cr(item: Mapping[str, Any]) -> str | None:
    value = item.get("dr_cr")
    if value:
        return str(value).upper()
    # 구버전: line_data.side에 DR/CR 저장
    line_data = item.get("line_data") or {}
    side = line_data.get("side") if isinstance(line_data, Mapping) else None
    if isinstance(side, str) and side.upper() in (DrCr.DR.value, DrCr.CR.value):
        return side.upper()
    return None


def parse_line(item: Mapping[str, Any]) -> TransactionLine:
    """응답 라인 -> TransactionLine

    응답 예시:
    {
        "id": "c0a8...",
        "line_number": 1,
        "line_type": "ITEM",
        "smart_code": "HERA.RESTAURANT.SALES.LINE.ITEM.V1",
        "quantity": "2",
        "unit_price": "25.50",
        "line_amount": "51.00",
        "entity_id": null,
        "dr_cr": null,
        "description": "Margherita",
        "line_data": {}
    }
    """
    try:
        line_number = int(item["line_number"])
    except (KeyError, TypeError, ValueError) as e:
        raise LedgerTransportError("malformed line: missing or non-integer line_number") from e

    unit_price = item.get("unit_price", item.get("unit_amount"))
    try:
        return TransactionLine(
            line_number=line_number,
            line_type=item.get("line_type") or "",
            smart_code=item.get("smart_code") or "",
            line_amount=to_decimal(item.get("line_amount")),
            quantity=to_decimal(item.get("quantity", "1")),
            unit_price=to_decimal(unit_price),
            entity_id=item.get("entity_id"),
            dr_cr=_parse_dr_cr(item),
            description=item.get("description"),
            line_data=dict(item.get("line_data") or {}),
            line_id=item.get("id") or item.get("line_id"),
        )
    except LedgerValidationError as e:
        raise LedgerTransportError(f"malformed line {line_number}: {e}") from e


def parse_transaction(data: Mapping[str, Any], include_lines: bool = True) -> Transaction:
    """응답 트랜잭션 -> Transaction

    {"header": {...}, "lines": [...]} 형태와 평탄한 형태 모두 허용.
    include_lines=False이면 응답에 라인이 있어도 lines=None.
    include_lines=True이면 line_number 오름차순 정렬 (재번호 없음).
    """
    header = data.get("header") if isinstance(data.get("header"), Mapping) else data

    lines: list[TransactionLine] | None = None
    if include_lines:
        raw_lines = data.get("lines")
        if raw_lines is None:
            raw_lines = header.get("lines") or []
        lines = sorted(
            (parse_line(item) for item in raw_lines),
            key=lambda line: line.line_number,
        )

    raw_date = header.get("transaction_date")
    try:
        transaction_date = parse_datetime(raw_date)
    except (TypeError, ValueError) as e:
        raise LedgerTransportError(f"malformed transaction: invalid transaction_date {raw_date!r}") from e
    if transaction_date is None:
        raise LedgerTransportError("malformed transaction: missing transaction_date")

    transaction_id = header.get("transaction_id") or header.get("id")
    organization_id = header.get("organization_id")
    if not transaction_id or not organization_id:
        raise LedgerTransportError("malformed transaction: missing transaction_id or organization_id")

    raw_status = header.get("transaction_status") or header.get("status")
    try:
        status = TransactionStatus.parse(raw_status)
    except (AttributeError, ValueError) as e:
        raise LedgerTransportError(f"malformed transaction: unknown status {raw_status!r}") from e

    try:
        total_amount = to_decimal(header.get("total_amount"), "total_amount")
    except LedgerValidationError as e:
        raise LedgerTransportError(f"malformed transaction: {e}") from e

    return Transaction(
        transaction_id=str(transaction_id),
        organization_id=str(organization_id),
        transaction_type=header.get("transaction_type") or "",
        smart_code=header.get("smart_code") or "",
        transaction_date=transaction_date,
        status=status,
        total_amount=total_amount,
        source_entity_id=header.get("source_entity_id"),
        target_entity_id=header.get("target_entity_id"),
        business_context=dict(header.get("business_context") or {}),
        metadata=dict(header.get("metadata") or {}),
        lines=lines,
        created_at=parse_datetime(header.get("created_at")),
        updated_at=parse_datetime(header.get("updated_at")),
    )


def parse_query_result(data: Mapping[str, Any], filters: QueryFilters) -> QueryResult:
    """QUERY 응답 -> QueryResult (total 없으면 items 개수)"""
    body = unwrap(data, "items")
    items = body.get("items") or []
    transactions = [parse_transaction(item, filters.include_lines) for item in items]
    total = body.get("total")
    return QueryResult(
        transactions=transactions,
        total=int(total) if total is not None else filters.offset + len(transactions),
        limit=filters.limit,
        offset=filters.offset,
    )


def parse_reversal_result(data: Mapping[str, Any]) -> ReversalResult:
    """REVERSE 응답 -> ReversalResult"""
    body = unwrap(data, "reversal_transaction_id")
    return ReversalResult(
        reversal_transaction_id=str(body["reversal_transaction_id"]),
        original_transaction_id=str(body["original_transaction_id"]),
        lines_reversed=int(body.get("lines_reversed", 0)),
        reversal_reason=str(body.get("reversal_reason", "")),
    )
