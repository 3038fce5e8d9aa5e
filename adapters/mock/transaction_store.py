"""
Mock 트랜잭션 스토어

테스트/데모용 메모리 내 트랜잭션 스토어.
ITransactionStore Protocol 준수.
실제 스토어가 강제하는 규칙(조직 격리, 차대 균형, 라인 순서, 역분개)을 재현.
"""

import asyncio
import uuid
from dataclasses import dataclass, field, replace
from decimal import Decimal

from core.constants import Defaults
from core.ledger.balance import summarize_balance
from core.ledger.errors import (
    BalanceViolationError,
    LedgerTransportError,
    OrganizationMismatchError,
    TransactionNotFoundError,
)
from core.ledger.models import (
    EmitRequest,
    QueryFilters,
    QueryResult,
    ReversalResult,
    Transaction,
    TransactionLine,
)
from core.ledger.reversal import build_reversal_transaction
from core.types import TransactionStatus
from core.utils.timezone import ensure_utc, now_utc


@dataclass
class MockStoreState:
    """Mock 상태 (메모리 내 저장)"""

    # transaction_id -> Transaction (라인 포함)
    transactions: dict[str, Transaction] = field(default_factory=dict)

    # entity_id -> organization_id
    entity_owners: dict[str, str] = field(default_factory=dict)

    # 생성 순서 (정렬 tie-break용)
    sequence: dict[str, int] = field(default_factory=dict)

    # 시뮬레이션 옵션
    fail_next_message: str | None = None

    # 호출 기록 (action 이름)
    calls: list[str] = field(default_factory=list)


class MockTransactionStore:
    """Mock 트랜잭션 스토어

    ITransactionStore Protocol 구현.

    사용 예시:
    ```python
    store = MockTransactionStore()
    store.register_entity(org_id, customer_id)

    txn_id = await store.emit(request)
    txn = await store.read(org_id, txn_id)

    # 실패 시뮬레이션
    store.set_fail_next("connection reset by peer")
    ```
    """

    def __init__(
        self,
        state: MockStoreState | None = None,
        balance_tolerance: Decimal = Defaults.BALANCE_TOLERANCE,
    ):
        self.state = state or MockStoreState()
        self.balance_tolerance = balance_tolerance
        self._lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # 상태 조작 메서드 (테스트용)
    # -------------------------------------------------------------------------

    def register_entity(self, organization_id: str, entity_id: str) -> None:
        """엔티티 소속 조직 등록"""
        self.state.entity_owners[entity_id] = organization_id

    def set_fail_next(self, message: str = "Mock transport error") -> None:
        """다음 호출 1회 실패 설정"""
        self.state.fail_next_message = message

    def call_count(self, action: str) -> int:
        """액션별 호출 횟수"""
        return self.state.calls.count(action)

    async def close(self) -> None:
        """리소스 없음"""
        return None

    # -------------------------------------------------------------------------
    # 내부 헬퍼
    # -------------------------------------------------------------------------

    def _begin(self, action: str) -> None:
        self.state.calls.append(action)
        if self.state.fail_next_message is not None:
            message = self.state.fail_next_message
            self.state.fail_next_message = None
            raise LedgerTransportError(message)

    def _check_entity(self, organization_id: str, entity_id: str | None) -> None:
        # 등록되지 않은 엔티티는 검증하지 않음
        if entity_id is None:
            return
        owner = self.state.entity_owners.get(entity_id)
        if owner is not None and owner != organization_id:
            raise OrganizationMismatchError(
                f"ORG_MISMATCH: entity {entity_id} belongs to a different organization"
            )

    def _get_scoped(self, organization_id: str, transaction_id: str) -> Transaction:
        txn = self.state.transactions.get(transaction_id)
        if txn is None or txn.organization_id != organization_id:
            # 다른 조직 소속도 "없음"과 동일 메시지
            raise TransactionNotFoundError(transaction_id=transaction_id)
        return txn

    @staticmethod
    def _view(txn: Transaction, include_lines: bool) -> Transaction:
        if not include_lines:
            return replace(txn, lines=None)
        return replace(txn, lines=sorted(txn.lines or [], key=lambda line: line.line_number))

    def _number_lines(self, request: EmitRequest) -> list[TransactionLine]:
        # 번호 없는 라인은 기존 최대 번호 다음부터 제출 순서대로 부여
        next_number = max(
            (line.line_number for line in request.lines if line.line_number is not None),
            default=0,
        ) + 1
        lines: list[TransactionLine] = []
        for line in request.lines:
            number = line.line_number
            if number is None:
                number = next_number
                next_number += 1
            lines.append(
                TransactionLine(
                    line_number=number,
                    line_type=line.line_type,
                    smart_code=line.smart_code,
                    line_amount=line.line_amount,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    entity_id=line.entity_id,
                    dr_cr=line.dr_cr,
                    description=line.description,
                    line_data=dict(line.line_data),
                    line_id=str(uuid.uuid4()),
                )
            )
        return sorted(lines, key=lambda line: line.line_number)

    def _store(self, txn: Transaction) -> None:
        self.state.sequence.setdefault(txn.transaction_id, len(self.state.sequence))
        self.state.transactions[txn.transaction_id] = txn

    @staticmethod
    def _matches(txn: Transaction, filters: QueryFilters) -> bool:
        if filters.source_entity_id and txn.source_entity_id != filters.source_entity_id:
            return False
        if filters.target_entity_id and txn.target_entity_id != filters.target_entity_id:
            return False
        if filters.transaction_type and txn.transaction_type != filters.transaction_type:
            return False
        if filters.smart_code_like and filters.smart_code_like not in txn.smart_code:
            return False
        if filters.status and txn.status != filters.status:
            return False
        if filters.date_from and txn.transaction_date < ensure_utc(filters.date_from):
            return False
        if filters.date_to and txn.transaction_date > ensure_utc(filters.date_to):
            return False
        return True

    # -------------------------------------------------------------------------
    # ITransactionStore
    # -------------------------------------------------------------------------

    async def emit(self, request: EmitRequest) -> str:
        """트랜잭션 생성"""
        async with self._lock:
            self._begin("EMIT")

            org_id = request.organization_id
            self._check_entity(org_id, request.source_entity_id)
            self._check_entity(org_id, request.target_entity_id)
            for line in request.lines:
                self._check_entity(org_id, line.entity_id)

            if request.require_balance:
                summary = summarize_balance(request.lines, self.balance_tolerance)
                if not summary.is_balanced:
                    raise BalanceViolationError(
                        total_dr=summary.total_dr,
                        total_cr=summary.total_cr,
                    )

            now = now_utc()
            txn = Transaction(
                transaction_id=str(uuid.uuid4()),
                organization_id=org_id,
                transaction_type=request.transaction_type,
                smart_code=request.smart_code,
                transaction_date=ensure_utc(request.transaction_date),
                status=request.status,
                total_amount=request.resolved_total_amount(),
                source_entity_id=request.source_entity_id,
                target_entity_id=request.target_entity_id,
                business_context=dict(request.business_context),
                metadata=dict(request.metadata),
                lines=self._number_lines(request),
                created_at=now,
                updated_at=now,
            )
            self._store(txn)
            return txn.transaction_id

    async def read(
        self,
        organization_id: str,
        transaction_id: str,
        include_lines: bool = True,
    ) -> Transaction:
        """트랜잭션 단건 조회"""
        self._begin("READ")
        return self._view(self._get_scoped(organization_id, transaction_id), include_lines)

    async def query(self, organization_id: str, filters: QueryFilters) -> QueryResult:
        """필터 조회 (transaction_date 내림차순, 같으면 생성 역순)"""
        self._begin("QUERY")
        matched = [
            txn
            for txn in self.state.transactions.values()
            if txn.organization_id == organization_id and self._matches(txn, filters)
        ]
        matched.sort(
            key=lambda txn: (txn.transaction_date, self.state.sequence[txn.transaction_id]),
            reverse=True,
        )
        page = matched[filters.offset : filters.offset + filters.limit]
        return QueryResult(
            transactions=[self._view(txn, filters.include_lines) for txn in page],
            total=len(matched),
            limit=filters.limit,
            offset=filters.offset,
        )

    async def reverse(
        self,
        organization_id: str,
        original_transaction_id: str,
        smart_code: str,
        reason: str,
    ) -> ReversalResult:
        """역분개 생성 + 원거래 REVERSED 표시"""
        async with self._lock:
            self._begin("REVERSE")
            original = self._get_scoped(organization_id, original_transaction_id)

            now = now_utc()
            reversal = build_reversal_transaction(
                original,
                reversal_transaction_id=str(uuid.uuid4()),
                smart_code=smart_code,
                reason=reason,
                reversed_at=now,
            )
            self._store(reversal)
            self._store(replace(original, status=TransactionStatus.REVERSED, updated_at=now))

            return ReversalResult(
                reversal_transaction_id=reversal.transaction_id,
                original_transaction_id=original.transaction_id,
                lines_reversed=len(reversal.lines or []),
                reversal_reason=reason,
            )
