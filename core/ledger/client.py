"""
트랜잭션 원장 클라이언트

트랜잭션 생성(emit), 조회(read/query), 역분개(reverse)와
감사 추적 재구성, 엔티티별 조회 등 헬퍼 제공.

상태 없음: 설정(기본 조직, 정책) 외 공유 가변 상태 없음.
전송 전 검증 가능한 조건(smart_code 형식, 사유, 날짜 범위, 조직 ID)만
클라이언트에서 확인하고 나머지는 스토어 결과를 신뢰.
재시도/폴백 없음: 모든 실패는 호출자에게 예외로 전달.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from core.config.loader import LedgerConfig, LedgerPolicy, validate_organization_id
from core.constants import Defaults
from core.ledger.balance import BalanceSummary, summarize_balance
from core.ledger.errors import BalanceViolationError, LedgerValidationError, ReversalPolicyError
from core.ledger.models import (
    AuditTrail,
    EmitRequest,
    QueryFilters,
    QueryResult,
    ReversalResult,
    Transaction,
    check_metadata,
)
from core.ledger.smart_code import derive_reversal_smart_code, validate_smart_code
from core.types import TransactionStatus

if TYPE_CHECKING:
    from adapters.interfaces import ITransactionStore

logger = logging.getLogger(__name__)


class TransactionLedgerClient:
    """트랜잭션 원장 클라이언트

    Args:
        store: 트랜잭션 스토어 (REST 클라이언트 또는 Mock)
        organization_id: 기본 조직 ID (각 호출에서 생략 시 사용)
        policy: 원장 정책 (허용 오차, 다중 역분개, 사전 균형 검증)

    사용 예시:
    ```python
    client = TransactionLedgerClient(store, organization_id=org_id)

    txn_id = await client.emit(request)
    txn = await client.read(txn_id)
    result = await client.reverse(txn_id, reason="Customer refund")
    trail = await client.get_audit_trail(txn_id)
    ```
    """

    def __init__(
        self,
        store: ITransactionStore,
        organization_id: str | None = None,
        policy: LedgerPolicy | None = None,
    ):
        self.store = store
        self.organization_id = (
            validate_organization_id(organization_id) if organization_id else None
        )
        self.policy = policy or LedgerPolicy()

    @classmethod
    def from_config(cls, config: LedgerConfig, store: ITransactionStore) -> TransactionLedgerClient:
        """설정으로부터 클라이언트 생성"""
        return cls(store, organization_id=config.organization_id, policy=config.policy)

    async def close(self) -> None:
        await self.store.close()

    # -------------------------------------------------------------------------
    # 검증 헬퍼
    # -------------------------------------------------------------------------

    def _resolve_org(self, organization_id: str | None) -> str:
        org_id = organization_id or self.organization_id
        if not org_id:
            raise LedgerValidationError("organization_id is required", field="organization_id")
        try:
            return validate_organization_id(org_id)
        except ValueError as e:
            raise LedgerValidationError(str(e), field="organization_id") from e

    def _validate_emit(self, request: EmitRequest) -> None:
        validate_smart_code(request.smart_code)
        if not request.transaction_type or not request.transaction_type.strip():
            raise LedgerValidationError("transaction_type is required", field="transaction_type")
        if request.status in (TransactionStatus.REVERSAL, TransactionStatus.REVERSED):
            raise LedgerValidationError(
                f"status {request.status.value} can only be set by reverse",
                field="status",
            )
        check_metadata(request.business_context, "business_context")
        check_metadata(request.metadata, "metadata")

        seen: set[int] = set()
        for index, line in enumerate(request.lines, start=1):
            validate_smart_code(line.smart_code, field=f"lines[{index}].smart_code")
            check_metadata(line.line_data, f"lines[{index}].line_data")
            if line.line_number is None:
                continue
            if line.line_number <= 0:
                raise LedgerValidationError(
                    f"line_number must be positive: {line.line_number}",
                    field=f"lines[{index}].line_number",
                )
            if line.line_number in seen:
                raise LedgerValidationError(
                    f"duplicate line_number {line.line_number}",
                    field=f"lines[{index}].line_number",
                )
            seen.add(line.line_number)

    # -------------------------------------------------------------------------
    # 생성
    # -------------------------------------------------------------------------

    async def emit(self, request: EmitRequest) -> str:
        """트랜잭션 생성

        Args:
            request: 생성 요청 (organization_id가 비어 있으면 기본 조직 사용)

        Returns:
            생성된 transaction_id

        Raises:
            LedgerValidationError: smart_code 형식 등 전송 전 검증 실패
            BalanceViolationError: require_balance 요청 시 차대 불일치
            OrganizationMismatchError: 다른 조직 엔티티 참조 (스토어 판정)
        """
        org_id = self._resolve_org(request.organization_id)
        if org_id != request.organization_id:
            request = replace(request, organization_id=org_id)

        self._validate_emit(request)

        if request.require_balance and self.policy.precheck_balance:
            summary = self.check_balance(request.lines)
            if not summary.is_balanced:
                logger.warning(
                    "Balance precheck failed",
                    extra={
                        "organization_id": org_id,
                        "total_dr": str(summary.total_dr),
                        "total_cr": str(summary.total_cr),
                    },
                )
                raise BalanceViolationError(
                    total_dr=summary.total_dr,
                    total_cr=summary.total_cr,
                )

        transaction_id = await self.store.emit(request)

        logger.info(
            "Transaction emitted",
            extra={
                "transaction_id": transaction_id,
                "organization_id": org_id,
                "transaction_type": request.transaction_type,
                "line_count": len(request.lines),
            },
        )
        return transaction_id

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def read(
        self,
        transaction_id: str,
        include_lines: bool = True,
        organization_id: str | None = None,
    ) -> Transaction:
        """트랜잭션 단건 조회

        include_lines=True면 line_number 오름차순, False면 lines=None.

        Raises:
            TransactionNotFoundError: 없거나 다른 조직 소속
        """
        org_id = self._resolve_org(organization_id)
        txn = await self.store.read(org_id, transaction_id, include_lines=include_lines)

        # 스토어 응답과 무관하게 계약 보장
        if not include_lines and txn.lines is not None:
            txn = replace(txn, lines=None)
        elif include_lines:
            txn = replace(txn, lines=sorted(txn.lines or [], key=lambda line: line.line_number))

        logger.debug(
            "Transaction read",
            extra={"transaction_id": transaction_id, "include_lines": include_lines},
        )
        return txn

    async def query(
        self,
        filters: QueryFilters | None = None,
        organization_id: str | None = None,
    ) -> QueryResult:
        """필터 조건으로 트랜잭션 페이지 조회

        Raises:
            LedgerValidationError: date_from > date_to 등 잘못된 필터 조합
        """
        org_id = self._resolve_org(organization_id)
        filters = filters or QueryFilters()
        filters.validate()

        result = await self.store.query(org_id, filters)
        logger.debug(
            "Transactions queried",
            extra={"returned": len(result.transactions), "total": result.total},
        )
        return result

    async def query_all(
        self,
        filters: QueryFilters | None = None,
        page_size: int = Defaults.AUDIT_PAGE_SIZE,
        organization_id: str | None = None,
    ) -> AsyncIterator[Transaction]:
        """모든 페이지를 순회하며 트랜잭션 반환"""
        filters = replace(filters or QueryFilters(), limit=page_size, offset=0)
        while True:
            page = await self.query(filters, organization_id=organization_id)
            for txn in page.transactions:
                yield txn
            if not page.transactions or not page.has_more:
                break
            filters = replace(filters, offset=filters.offset + len(page.transactions))

    async def find_by_entity(
        self,
        entity_id: str,
        include_lines: bool = False,
        limit: int = Defaults.QUERY_LIMIT,
        organization_id: str | None = None,
    ) -> list[Transaction]:
        """엔티티가 source 또는 target인 트랜잭션 조회

        두 조회를 동시에 실행하고 transaction_id 기준으로 병합.
        결과는 transaction_date 내림차순.
        """
        as_source, as_target = await asyncio.gather(
            self.query(
                QueryFilters(source_entity_id=entity_id, include_lines=include_lines, limit=limit),
                organization_id=organization_id,
            ),
            self.query(
                QueryFilters(target_entity_id=entity_id, include_lines=include_lines, limit=limit),
                organization_id=organization_id,
            ),
        )

        merged: dict[str, Transaction] = {}
        for txn in [*as_source.transactions, *as_target.transactions]:
            merged.setdefault(txn.transaction_id, txn)

        return sorted(merged.values(), key=lambda txn: txn.transaction_date, reverse=True)

    # -------------------------------------------------------------------------
    # 역분개
    # -------------------------------------------------------------------------

    async def reverse(
        self,
        original_transaction_id: str,
        reason: str,
        smart_code: str | None = None,
        organization_id: str | None = None,
    ) -> ReversalResult:
        """역분개 트랜잭션 생성

        원거래를 먼저 조회하여 존재/소속을 확인한 뒤 스토어에 역분개 요청.
        smart_code 생략 시 원거래 smart_code에서 REVERSE 코드 생성.

        Args:
            original_transaction_id: 원거래 ID
            reason: 역분개 사유 (공백 제외 비어 있으면 안 됨)
            smart_code: 역분개 트랜잭션 Smart Code
            organization_id: 조직 ID

        Raises:
            LedgerValidationError: 사유 누락, smart_code 형식 위반
            ReversalPolicyError: 다중 역분개 금지 정책 위반
            TransactionNotFoundError: 원거래 없음/다른 조직
        """
        org_id = self._resolve_org(organization_id)

        reason = (reason or "").strip()
        if not reason:
            raise LedgerValidationError("reversal reason must not be empty", field="reason")
        if smart_code is not None:
            validate_smart_code(smart_code)

        original = await self.store.read(org_id, original_transaction_id, include_lines=False)

        if original.is_reversed and not self.policy.allow_multiple_reversals:
            raise ReversalPolicyError(original_transaction_id)

        if smart_code is None:
            smart_code = validate_smart_code(derive_reversal_smart_code(original.smart_code))

        result = await self.store.reverse(org_id, original_transaction_id, smart_code, reason)

        logger.info(
            "Transaction reversed",
            extra={
                "original_transaction_id": original_transaction_id,
                "reversal_transaction_id": result.reversal_transaction_id,
                "lines_reversed": result.lines_reversed,
            },
        )
        return result

    # -------------------------------------------------------------------------
    # 헬퍼
    # -------------------------------------------------------------------------

    def check_balance(self, lines: Iterable[Any]) -> BalanceSummary:
        """설정된 허용 오차로 차대 균형 계산 (네트워크 호출 없음)"""
        return summarize_balance(lines, self.policy.balance_tolerance)

    def validate_balance(self, lines: Iterable[Any]) -> bool:
        return self.check_balance(lines).is_balanced

    @staticmethod
    def generate_reversal_smart_code(smart_code: str) -> str:
        return derive_reversal_smart_code(smart_code)

    async def get_audit_trail(
        self,
        transaction_id: str,
        organization_id: str | None = None,
    ) -> AuditTrail:
        """원거래와 역분개 목록으로 감사 추적 재구성

        1. 원거래 조회 (라인 포함)
        2. smart_code에 REVERSE가 포함된 후보 조회 후
           metadata.reversal_of == 원거래 ID 로 필터링
        """
        org_id = self._resolve_org(organization_id)
        original = await self.read(transaction_id, include_lines=True, organization_id=org_id)

        candidates = QueryFilters(smart_code_like="REVERSE", include_lines=True)
        reversals = [
            txn
            async for txn in self.query_all(candidates, organization_id=org_id)
            if txn.reversal_of == original.transaction_id
        ]
        reversals.sort(key=lambda txn: txn.created_at or txn.transaction_date)

        logger.debug(
            "Audit trail reconstructed",
            extra={"transaction_id": transaction_id, "reversal_count": len(reversals)},
        )
        return AuditTrail(original=original, reversals=reversals, audit_complete=True)

