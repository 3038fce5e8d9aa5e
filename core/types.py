"""
타입 정의 모듈

트랜잭션 원장 클라이언트에서 사용하는 Enum 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from enum import Enum


class TransactionStatus(str, Enum):
    """트랜잭션 상태

    REVERSAL: 원거래를 취소하는 역분개 트랜잭션
    REVERSED: 역분개가 생성된 원거래
    """

    DRAFT = "DRAFT"
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    REVERSED = "REVERSED"
    REVERSAL = "REVERSAL"

    @classmethod
    def parse(cls, value: str | None) -> "TransactionStatus":
        """대소문자 무관하게 상태 문자열 변환 (None이면 DRAFT)"""
        if not value:
            return cls.DRAFT
        return cls(value.upper())


class DrCr(str, Enum):
    """차변/대변 표시"""

    DR = "DR"  # 차변
    CR = "CR"  # 대변

    def flipped(self) -> "DrCr":
        """반대 방향 반환 (DR <-> CR)"""
        return DrCr.CR if self is DrCr.DR else DrCr.DR


class RpcAction(str, Enum):
    """트랜잭션 RPC 액션"""

    EMIT = "EMIT"
    READ = "READ"
    QUERY = "QUERY"
    REVERSE = "REVERSE"


class ErrorKind(str, Enum):
    """에러 분류"""

    VALIDATION = "VALIDATION"  # 전송 전 검증 실패
    NOT_FOUND = "NOT_FOUND"  # 없음 또는 다른 조직 소속
    ISOLATION_VIOLATION = "ISOLATION_VIOLATION"  # 조직 경계 위반
    BALANCE_VIOLATION = "BALANCE_VIOLATION"  # 차대 불일치
    TRANSPORT = "TRANSPORT"  # 네트워크/기타
