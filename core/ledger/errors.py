"""
원장 에러 정의

내부적으로는 ErrorKind 태그로 구분하고, 외부 호환을 위해
메시지에 기존 시스템의 문자열 마커("not found", "ORG_MISMATCH",
"balance" 등)를 항상 포함.
"""

from decimal import Decimal

from core.types import ErrorKind


# 메시지 분류용 마커 (검사 순서 중요: not found가 organization보다 먼저)
_NOT_FOUND_MARKERS = ("not found", "not_found")
_ISOLATION_MARKERS = ("org_mismatch", "organization")
_BALANCE_MARKERS = ("balance", "imbalanced", "unbalanced")


class LedgerError(Exception):
    """원장 클라이언트 에러 기본 클래스

    Attributes:
        kind: 에러 분류
        message: 사람이 읽을 수 있는 메시지
    """

    kind: ErrorKind = ErrorKind.TRANSPORT

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class LedgerValidationError(LedgerError):
    """전송 전 검증 실패 (네트워크 호출 없음)"""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(f"Transaction validation failed: {message}")


class ReversalPolicyError(LedgerValidationError):
    """역분개 정책 위반 (다중 역분개 금지 설정)"""

    def __init__(self, transaction_id: str):
        self.transaction_id = transaction_id
        super().__init__(
            f"transaction {transaction_id} is already reversed "
            "and multiple reversals are disabled",
            field="original_transaction_id",
        )


class TransactionNotFoundError(LedgerError):
    """트랜잭션 없음

    존재하지 않는 경우와 다른 조직 소속인 경우를 구분하지 않음.
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(self, transaction_id: str | None = None, message: str | None = None):
        self.transaction_id = transaction_id
        if message is None:
            message = f"Transaction not found: {transaction_id}"
        super().__init__(message)


class OrganizationMismatchError(LedgerError):
    """조직 경계 위반 (다른 조직의 엔티티/트랜잭션 참조)"""

    kind = ErrorKind.ISOLATION_VIOLATION

    def __init__(self, message: str):
        if "ORG_MISMATCH" not in message:
            message = f"ORG_MISMATCH: {message}"
        if "organization" not in message.lower():
            message = f"{message} (organization boundary violated)"
        super().__init__(message)


class BalanceViolationError(LedgerError):
    """차변/대변 불일치 (require_balance 요청 시)"""

    kind = ErrorKind.BALANCE_VIOLATION

    def __init__(
        self,
        message: str | None = None,
        total_dr: Decimal | None = None,
        total_cr: Decimal | None = None,
    ):
        self.total_dr = total_dr
        self.total_cr = total_cr
        if message is None:
            message = (
                f"Transaction imbalanced: DR {total_dr} != CR {total_cr} "
                "(balance check failed)"
            )
        elif "imbalanced" not in message.lower():
            message = f"Transaction imbalanced: {message}"
        if "balance" not in message.lower():
            message = f"{message} (balance check failed)"
        super().__init__(message)


class LedgerTransportError(LedgerError):
    """전송/알 수 없는 에러

    스토어 또는 전송 계층 메시지를 그대로 전달.
    """

    kind = ErrorKind.TRANSPORT

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


def classify_error_message(message: str | None) -> ErrorKind:
    """스토어 에러 메시지를 ErrorKind로 분류

    대소문자 무관 부분 문자열 매칭.
    """
    if not message:
        return ErrorKind.TRANSPORT

    lowered = message.lower()
    if any(marker in lowered for marker in _NOT_FOUND_MARKERS):
        return ErrorKind.NOT_FOUND
    if any(marker in lowered for marker in _ISOLATION_MARKERS):
        return ErrorKind.ISOLATION_VIOLATION
    if any(marker in lowered for marker in _BALANCE_MARKERS):
        return ErrorKind.BALANCE_VIOLATION
    return ErrorKind.TRANSPORT


def error_from_message(
    message: str | None,
    transaction_id: str | None = None,
    status_code: int | None = None,
) -> LedgerError:
    """스토어 에러 메시지로부터 적절한 예외 생성"""
    text = message or "Unknown transaction store error"
    kind = classify_error_message(text)

    if kind == ErrorKind.NOT_FOUND:
        return TransactionNotFoundError(transaction_id=transaction_id, message=text)
    if kind == ErrorKind.ISOLATION_VIOLATION:
        return OrganizationMismatchError(text)
    if kind == ErrorKind.BALANCE_VIOLATION:
        return BalanceViolationError(message=text)
    return LedgerTransportError(text, status_code=status_code)
