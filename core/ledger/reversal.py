"""
역분개 생성기

원거래 라인을 구조적으로 반전한 역분개 라인/트랜잭션 생성.
- line_amount 부호 반전
- dr_cr 반전 (DR <-> CR, 표시가 없으면 그대로 None)
- line_number 순서 유지
- 라인 smart_code는 REVERSE 코드로 교체, 설명에 출처 표시
"""

from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime

from core.ledger.models import Transaction, TransactionLine
from core.ledger.smart_code import derive_reversal_smart_code
from core.types import TransactionStatus


REVERSAL_DESCRIPTION_PREFIX = "REVERSAL"


def reversal_metadata(
    original_transaction_id: str,
    reason: str,
    reversed_at: datetime | None = None,
) -> dict:
    """역분개 트랜잭션 메타데이터 (원거래 연결 정보)"""
    metadata = {
        "reversal_of": original_transaction_id,
        "reversal_reason": reason,
    }
    if reversed_at is not None:
        metadata["reversed_at"] = reversed_at.isoformat()
    return metadata


def reverse_line(line: TransactionLine) -> TransactionLine:
    """라인 하나를 반전"""
    label = line.description or line.line_type
    return replace(
        line,
        line_amount=-line.line_amount,
        dr_cr=line.dr_cr.flipped() if line.dr_cr is not None else None,
        smart_code=derive_reversal_smart_code(line.smart_code),
        description=f"{REVERSAL_DESCRIPTION_PREFIX}: {label}",
        line_data={**line.line_data, "reversal_of_line": line.line_number},
        line_id=None,
    )


def build_reversal_lines(lines: Sequence[TransactionLine]) -> list[TransactionLine]:
    """원거래 라인 목록 -> 역분개 라인 목록 (line_number 오름차순)"""
    ordered = sorted(lines, key=lambda line: line.line_number)
    return [reverse_line(line) for line in ordered]


def build_reversal_transaction(
    original: Transaction,
    reversal_transaction_id: str,
    smart_code: str,
    reason: str,
    reversed_at: datetime,
) -> Transaction:
    """원거래로부터 REVERSAL 상태의 새 트랜잭션 생성

    원거래는 변경하지 않음 (상태 변경은 호출자 책임).

    Args:
        original: 라인이 로드된 원거래
        reversal_transaction_id: 새 트랜잭션 ID
        smart_code: 역분개 트랜잭션 Smart Code
        reason: 역분개 사유
        reversed_at: 역분개 시각
    """
    lines = build_reversal_lines(original.lines or [])
    return Transaction(
        transaction_id=reversal_transaction_id,
        organization_id=original.organization_id,
        transaction_type=original.transaction_type,
        smart_code=smart_code,
        transaction_date=reversed_at,
        status=TransactionStatus.REVERSAL,
        total_amount=-original.total_amount,
        source_entity_id=original.source_entity_id,
        target_entity_id=original.target_entity_id,
        business_context=dict(original.business_context),
        metadata=reversal_metadata(original.transaction_id, reason, reversed_at),
        lines=lines,
        created_at=reversed_at,
        updated_at=reversed_at,
    )
