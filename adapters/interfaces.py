"""
어댑터 인터페이스 정의

Protocol 기반으로 정의하여 의존성 주입 및 Mock 교체 가능.
모든 구현체는 이 Protocol을 준수해야 함.
"""

from typing import Protocol, runtime_checkable

from core.ledger.models import (
    EmitRequest,
    QueryFilters,
    QueryResult,
    ReversalResult,
    Transaction,
)


@runtime_checkable
class ITransactionStore(Protocol):
    """트랜잭션 스토어 인터페이스

    조직 격리, 차대 균형, 라인 순서 등 실제 불변식은 스토어가 강제.
    실패는 core.ledger.errors의 LedgerError 하위 예외로 전달.
    """

    # -------------------------------------------------------------------------
    # 생성
    # -------------------------------------------------------------------------

    async def emit(self, request: EmitRequest) -> str:
        """트랜잭션 생성 (단일 원자적 요청)

        Args:
            request: 생성 요청

        Returns:
            생성된 transaction_id

        Raises:
            OrganizationMismatchError: 다른 조직의 엔티티 참조
            BalanceViolationError: require_balance 요청 시 차대 불일치
        """
        ...

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def read(
        self,
        organization_id: str,
        transaction_id: str,
        include_lines: bool = True,
    ) -> Transaction:
        """트랜잭션 단건 조회

        Raises:
            TransactionNotFoundError: 없거나 다른 조직 소속 (구분 불가)
        """
        ...

    async def query(self, organization_id: str, filters: QueryFilters) -> QueryResult:
        """필터 조건으로 트랜잭션 페이지 조회"""
        ...

    # -------------------------------------------------------------------------
    # 역분개
    # -------------------------------------------------------------------------

    async def reverse(
        self,
        organization_id: str,
        original_transaction_id: str,
        smart_code: str,
        reason: str,
    ) -> ReversalResult:
        """역분개 트랜잭션 생성

        원거래 라인을 반전한 REVERSAL 트랜잭션을 만들고
        원거래를 REVERSED로 표시.

        Raises:
            TransactionNotFoundError: 원거래가 없거나 다른 조직 소속
        """
        ...

    async def close(self) -> None:
        """리소스 정리"""
        ...
