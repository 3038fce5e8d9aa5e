"""
차변/대변 균형 검증

DR 표시 라인 합계와 CR 표시 라인 합계의 차이가 허용 오차 이내인지 확인.
dr_cr 표시가 없는 라인은 양쪽 합계에서 모두 제외.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from core.constants import Defaults
from core.ledger.errors import LedgerValidationError
from core.types import DrCr


@dataclass(frozen=True)
class BalanceSummary:
    """균형 검증 결과"""

    total_dr: Decimal
    total_cr: Decimal
    tolerance: Decimal

    @property
    def difference(self) -> Decimal:
        """차이 절대값"""
        return abs(self.total_dr - self.total_cr)

    @property
    def is_balanced(self) -> bool:
        return self.difference <= self.tolerance


def _get(line: Any, name: str) -> Any:
    # dict 입력과 dataclass 입력 모두 허용
    if isinstance(line, Mapping):
        return line.get(name)
    return getattr(line, name, None)


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """숫자 값을 Decimal로 변환 (None은 0)

    float는 str을 거쳐 변환하여 2진 오차 방지.

    Raises:
        LedgerValidationError: 숫자로 변환할 수 없는 값
    """
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise LedgerValidationError(f"{field} must be numeric: {value!r}", field=field) from e


def coerce_dr_cr(value: Any) -> DrCr | None:
    """DR/CR 표시 정규화 (대소문자 무관, 빈 값은 None)

    Raises:
        LedgerValidationError: DR/CR 이외의 값
    """
    if value is None or value == "":
        return None
    if isinstance(value, DrCr):
        return value
    try:
        return DrCr(str(value).upper())
    except ValueError as e:
        raise LedgerValidationError(f"invalid dr_cr '{value}' (expected DR or CR)", field="dr_cr") from e


def summarize_balance(
    lines: Iterable[Any],
    tolerance: Decimal = Defaults.BALANCE_TOLERANCE,
) -> BalanceSummary:
    """라인 목록의 차변/대변 합계 계산

    Args:
        lines: line_amount, dr_cr 속성(또는 키)을 가진 라인 목록
        tolerance: 허용 오차

    Returns:
        BalanceSummary
    """
    total_dr = Decimal("0")
    total_cr = Decimal("0")

    for line in lines:
        side = coerce_dr_cr(_get(line, "dr_cr"))
        if side is None:
            continue
        amount = to_decimal(_get(line, "line_amount"), "line_amount")
        if side is DrCr.DR:
            total_dr += amount
        else:
            total_cr += amount

    return BalanceSummary(total_dr=total_dr, total_cr=total_cr, tolerance=tolerance)


def validate_balance(
    lines: Iterable[Any],
    tolerance: Decimal = Defaults.BALANCE_TOLERANCE,
) -> bool:
    """차변 합계 ≈ 대변 합계 여부

    Example:
        >>> validate_balance([
        ...     {"line_amount": 100, "dr_cr": "DR"},
        ...     {"line_amount": 100, "dr_cr": "CR"},
        ... ])
        True
        >>> validate_balance([{"line_amount": 50}])
        True
    """
    return summarize_balance(lines, tolerance).is_balanced
