"""
트랜잭션 원장 (Event-Sourced Transaction Ledger)

트랜잭션은 생성 후 변경되지 않으며 정정은 역분개 트랜잭션으로만 수행.
조직 격리와 차대 균형의 실제 강제는 원격 스토어 책임.

사용 예시:
```python
from adapters.hera import HeraTransactionRestClient
from core.ledger import TransactionLedgerClient, EmitRequest, LineInput

store = HeraTransactionRestClient(base_url, api_key)
client = TransactionLedgerClient(store, organization_id=org_id)

# 생성
txn_id = await client.emit(EmitRequest(
    organization_id=org_id,
    transaction_type="sale",
    smart_code="HERA.RESTAURANT.SALES.ORDER.CORE.V1",
    transaction_date=now_utc(),
    lines=[LineInput(line_type="ITEM", smart_code="...", line_amount=Decimal("51"))],
))

# 역분개 및 감사 추적
await client.reverse(txn_id, reason="Customer refund")
trail = await client.get_audit_trail(txn_id)
```
"""

from core.ledger.balance import BalanceSummary, summarize_balance, validate_balance
from core.ledger.client import TransactionLedgerClient
from core.ledger.errors import (
    BalanceViolationError,
    LedgerError,
    LedgerTransportError,
    LedgerValidationError,
    OrganizationMismatchError,
    ReversalPolicyError,
    TransactionNotFoundError,
    classify_error_message,
    error_from_message,
)
from core.ledger.models import (
    AuditTrail,
    EmitRequest,
    LineInput,
    QueryFilters,
    QueryResult,
    ReversalResult,
    Transaction,
    TransactionLine,
)
from core.ledger.reversal import build_reversal_lines, build_reversal_transaction
from core.ledger.smart_code import (
    SMART_CODE_PATTERN,
    derive_reversal_smart_code,
    is_valid_smart_code,
    validate_smart_code,
)

__all__ = [
    # 핵심 클래스
    "TransactionLedgerClient",
    # 모델
    "AuditTrail",
    "EmitRequest",
    "LineInput",
    "QueryFilters",
    "QueryResult",
    "ReversalResult",
    "Transaction",
    "TransactionLine",
    "BalanceSummary",
    # 에러
    "LedgerError",
    "LedgerValidationError",
    "ReversalPolicyError",
    "TransactionNotFoundError",
    "OrganizationMismatchError",
    "BalanceViolationError",
    "LedgerTransportError",
    "classify_error_message",
    "error_from_message",
    # 순수 함수
    "SMART_CODE_PATTERN",
    "is_valid_smart_code",
    "validate_smart_code",
    "derive_reversal_smart_code",
    "summarize_balance",
    "validate_balance",
    "build_reversal_lines",
    "build_reversal_transaction",
]
