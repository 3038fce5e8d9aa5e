"""
트랜잭션 원장 데이터 모델

트랜잭션 스토어와 주고받는 헤더/라인을 표준화한 도메인 모델.
모든 금액/수량은 Decimal 타입 사용.
트랜잭션은 생성 후 변경되지 않음 (정정은 역분개 트랜잭션으로만).
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from core.constants import Defaults
from core.ledger.balance import coerce_dr_cr, summarize_balance, to_decimal
from core.ledger.errors import LedgerValidationError
from core.types import DrCr, TransactionStatus
from core.utils.timezone import ensure_utc


# 메타데이터/business_context 값 허용 타입 (중첩 dict 허용)
MetadataValue = str | int | float | bool | Decimal | None | dict[str, "MetadataValue"]
Metadata = dict[str, MetadataValue]

_SCALAR_TYPES = (str, int, float, bool, Decimal)


def check_metadata(data: Mapping[str, Any] | None, path: str = "metadata") -> Metadata:
    """메타데이터 맵 검증 후 복사본 반환

    키는 문자열, 값은 str/int/float/bool/Decimal/None 또는 같은 규칙의 중첩 dict.
    알 수 없는 키는 그대로 통과.

    Raises:
        LedgerValidationError: 허용되지 않는 키/값 타입
    """
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise LedgerValidationError(f"{path} must be a mapping", field=path)

    result: Metadata = {}
    for key, value in data.items():
        if not isinstance(key, str):
            raise LedgerValidationError(f"{path} key {key!r} must be a string", field=path)
        key_path = f"{path}.{key}"
        if value is None or isinstance(value, _SCALAR_TYPES):
            result[key] = value
        elif isinstance(value, Mapping):
            result[key] = check_metadata(value, key_path)
        else:
            raise LedgerValidationError(
                f"{key_path} has unsupported value type {type(value).__name__}",
                field=key_path,
            )
    return result


def _freeze_line_fields(line: Any) -> None:
    # frozen dataclass이므로 object.__setattr__로 정규화
    object.__setattr__(line, "line_amount", to_decimal(line.line_amount, "line_amount"))
    object.__setattr__(line, "quantity", to_decimal(line.quantity, "quantity"))
    object.__setattr__(line, "unit_price", to_decimal(line.unit_price, "unit_price"))
    object.__setattr__(line, "dr_cr", coerce_dr_cr(line.dr_cr))


@dataclass(frozen=True)
class LineInput:
    """트랜잭션 생성 시 라인 입력

    line_number를 생략하면 스토어가 제출 순서대로 번호를 부여.
    line_amount는 호출자가 선언한 값 (quantity * unit_price로 재계산하지 않음).

    Attributes:
        line_type: 라인 유형 (ITEM, TAX, DEBIT, CREDIT 등)
        smart_code: 라인 Smart Code
        line_amount: 라인 금액
        line_number: 라인 번호 (양의 정수, 선택)
        quantity: 수량
        unit_price: 단가
        entity_id: 관련 엔티티 ID (같은 조직 소속이어야 함)
        dr_cr: 차변/대변 표시 (재무 트랜잭션 전용)
        description: 설명
        line_data: 추가 데이터
    """

    line_type: str
    smart_code: str
    line_amount: Decimal
    line_number: int | None = None
    quantity: Decimal = Decimal("1")
    unit_price: Decimal = Decimal("0")
    entity_id: str | None = None
    dr_cr: DrCr | None = None
    description: str | None = None
    line_data: Metadata = field(default_factory=dict)

    def __post_init__(self) -> None:
        _freeze_line_fields(self)


@dataclass(frozen=True)
class TransactionLine:
    """저장된 트랜잭션 라인

    line_number 순서가 의미를 가짐 (한 트랜잭션 내 중복 불가).
    """

    line_number: int
    line_type: str
    smart_code: str
    line_amount: Decimal
    quantity: Decimal = Decimal("1")
    unit_price: Decimal = Decimal("0")
    entity_id: str | None = None
    dr_cr: DrCr | None = None
    description: str | None = None
    line_data: Metadata = field(default_factory=dict)
    line_id: str | None = None

    def __post_init__(self) -> None:
        _freeze_line_fields(self)


@dataclass(frozen=True)
class Transaction:
    """트랜잭션 (불변 비즈니스 이벤트)

    lines가 None이면 "라인 미로드", 빈 리스트면 "라인 없음".

    Attributes:
        transaction_id: 트랜잭션 ID
        organization_id: 조직 ID (테넌트 경계)
        transaction_type: 비즈니스 유형 (sale, journal_entry 등)
        smart_code: Smart Code
        transaction_date: 비즈니스 발생일
        status: 상태
        total_amount: 총액
        source_entity_id: 출발 엔티티 (고객 등)
        target_entity_id: 대상 엔티티 (직원 등)
        business_context: 비즈니스 컨텍스트
        metadata: 메타데이터 (역분개 연결 정보 포함)
        lines: 라인 목록 (line_number 오름차순)
        created_at: 생성 시각 (시스템)
        updated_at: 수정 시각 (시스템)
    """

    transaction_id: str
    organization_id: str
    transaction_type: str
    smart_code: str
    transaction_date: datetime
    status: TransactionStatus
    total_amount: Decimal
    source_entity_id: str | None = None
    target_entity_id: str | None = None
    business_context: Metadata = field(default_factory=dict)
    metadata: Metadata = field(default_factory=dict)
    lines: list[TransactionLine] | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def lines_loaded(self) -> bool:
        return self.lines is not None

    @property
    def reversal_of(self) -> str | None:
        """역분개 트랜잭션이면 원거래 ID"""
        value = self.metadata.get("reversal_of")
        return str(value) if value else None

    @property
    def reversal_reason(self) -> str | None:
        value = self.metadata.get("reversal_reason")
        return str(value) if value else None

    @property
    def is_reversal(self) -> bool:
        return self.status == TransactionStatus.REVERSAL or self.reversal_of is not None

    @property
    def is_reversed(self) -> bool:
        return self.status == TransactionStatus.REVERSED


@dataclass(frozen=True)
class EmitRequest:
    """트랜잭션 생성 요청

    REVERSAL/REVERSED 상태는 reverse 작업으로만 생성 가능.
    total_amount 생략 시 라인에서 계산 (resolved_total_amount 참고).
    """

    organization_id: str
    transaction_type: str
    smart_code: str
    transaction_date: datetime
    lines: list[LineInput]
    source_entity_id: str | None = None
    target_entity_id: str | None = None
    business_context: Metadata = field(default_factory=dict)
    metadata: Metadata = field(default_factory=dict)
    require_balance: bool = False
    total_amount: Decimal | None = None
    status: TransactionStatus = TransactionStatus.PENDING

    def resolved_total_amount(self) -> Decimal:
        """총액 결정

        선언값 우선. 없으면 DR/CR 표시 라인이 있을 때 차변 합계,
        그 외에는 전체 라인 금액 합계.
        """
        if self.total_amount is not None:
            return to_decimal(self.total_amount, "total_amount")
        if any(line.dr_cr is not None for line in self.lines):
            return summarize_balance(self.lines).total_dr
        return sum((line.line_amount for line in self.lines), Decimal("0"))


@dataclass(frozen=True)
class QueryFilters:
    """트랜잭션 조회 필터 (모든 조건은 AND 결합)

    smart_code_like는 부분 문자열 포함 검사 (정규식 아님).
    """

    source_entity_id: str | None = None
    target_entity_id: str | None = None
    transaction_type: str | None = None
    smart_code_like: str | None = None
    status: TransactionStatus | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    limit: int = Defaults.QUERY_LIMIT
    offset: int = 0
    include_lines: bool = False

    def validate(self) -> None:
        """필터 조합 검증

        Raises:
            LedgerValidationError: date_from > date_to, 잘못된 limit/offset
        """
        if self.date_from and self.date_to and ensure_utc(self.date_from) > ensure_utc(self.date_to):
            raise LedgerValidationError(
                f"date_from ({self.date_from.isoformat()}) is after "
                f"date_to ({self.date_to.isoformat()})",
                field="date_from",
            )
        if self.limit <= 0:
            raise LedgerValidationError(f"limit must be positive: {self.limit}", field="limit")
        if self.offset < 0:
            raise LedgerValidationError(f"offset must not be negative: {self.offset}", field="offset")


@dataclass(frozen=True)
class QueryResult:
    """조회 결과 (페이지)"""

    transactions: list[Transaction]
    total: int
    limit: int
    offset: int

    @property
    def has_more(self) -> bool:
        """다음 페이지 존재 여부"""
        return self.offset + len(self.transactions) < self.total


@dataclass(frozen=True)
class ReversalResult:
    """역분개 결과"""

    reversal_transaction_id: str
    original_transaction_id: str
    lines_reversed: int
    reversal_reason: str


@dataclass(frozen=True)
class AuditTrail:
    """감사 추적 (원거래 + 역분개 목록)

    reversals가 비어 있어도 정정되지 않은 거래의 완전한 감사 추적임.
    """

    original: Transaction
    reversals: list[Transaction]
    audit_complete: bool = True

    @property
    def is_corrected(self) -> bool:
        return len(self.reversals) > 0
