"""
Smart Code 검증 및 역분개 코드 생성

형식: HERA.<SEGMENT>(.<SEGMENT>){4,}.V<digits>
- 모든 세그먼트는 대문자/숫자
- 최소 6개 세그먼트
- 마지막 세그먼트는 버전 (V1, V2, ...)

예: HERA.RESTAURANT.SALES.ORDER.CORE.V1
"""

import re

from core.constants import SmartCodeRules
from core.ledger.errors import LedgerValidationError


SMART_CODE_PATTERN = re.compile(r"^HERA\.[A-Z0-9]+(\.[A-Z0-9]+){4,}\.V[0-9]+$")


def is_valid_smart_code(smart_code: str | None) -> bool:
    """Smart Code 형식 검증

    Returns:
        형식이 올바르면 True
    """
    if not isinstance(smart_code, str):
        return False
    return SMART_CODE_PATTERN.fullmatch(smart_code) is not None


def validate_smart_code(smart_code: str | None, field: str = "smart_code") -> str:
    """Smart Code 검증 (실패 시 예외)

    Args:
        smart_code: 검증할 코드
        field: 에러 메시지에 표시할 필드 이름

    Returns:
        검증된 smart_code

    Raises:
        LedgerValidationError: 형식 위반
    """
    if not is_valid_smart_code(smart_code):
        raise LedgerValidationError(
            f"invalid {field} '{smart_code}' "
            f"(expected {SmartCodeRules.PREFIX}.<SEGMENT>... with at least "
            f"{SmartCodeRules.MIN_SEGMENTS} uppercase segments ending in .V<digits>)",
            field=field,
        )
    return smart_code  # type: ignore[return-value]


def derive_reversal_smart_code(smart_code: str) -> str:
    """역분개용 Smart Code 생성

    뒤에서 두 번째 세그먼트를 REVERSE로 교체, 버전 세그먼트는 유지.
    이미 REVERSE인 코드에 다시 적용하면 같은 위치를 다시 교체함 (결과 동일).

    Example:
        >>> derive_reversal_smart_code("HERA.RESTAURANT.SALES.ORDER.CORE.V1")
        'HERA.RESTAURANT.SALES.ORDER.REVERSE.V1'

    Raises:
        LedgerValidationError: 세그먼트가 2개 미만인 경우
    """
    segments = smart_code.split(".")
    if len(segments) < 2:
        raise LedgerValidationError(
            f"cannot derive reversal smart_code from '{smart_code}'",
            field="smart_code",
        )

    segments[-2] = SmartCodeRules.REVERSE_SEGMENT
    return ".".join(segments)
