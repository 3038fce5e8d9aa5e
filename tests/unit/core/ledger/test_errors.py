"""원장 에러 분류 테스트"""

from decimal import Decimal

import pytest

from core.ledger.errors import (
    BalanceViolationError,
    LedgerTransportError,
    LedgerValidationError,
    OrganizationMismatchError,
    ReversalPolicyError,
    TransactionNotFoundError,
    classify_error_message,
    error_from_message,
)
from core.types import ErrorKind


class TestErrorMessages:
    """기존 시스템 문자열 마커 보장"""

    def test_validation(self) -> None:
        error = LedgerValidationError("reason is empty", field="reason")
        assert error.kind == ErrorKind.VALIDATION
        assert "validation" in str(error)

    def test_not_found(self) -> None:
        error = TransactionNotFoundError(transaction_id="txn-1")
        assert error.kind == ErrorKind.NOT_FOUND
        assert "not found" in str(error)
        assert "txn-1" in str(error)

    def test_org_mismatch(self) -> None:
        """ORG_MISMATCH와 organization 모두 포함"""
        error = OrganizationMismatchError("entity belongs elsewhere")
        assert error.kind == ErrorKind.ISOLATION_VIOLATION
        assert "ORG_MISMATCH" in str(error)
        assert "organization" in str(error).lower()

    def test_balance(self) -> None:
        error = BalanceViolationError(total_dr=Decimal("100"), total_cr=Decimal("90"))
        assert error.kind == ErrorKind.BALANCE_VIOLATION
        assert "balance" in str(error)
        assert "imbalanced" in str(error)
        assert error.total_dr == Decimal("100")

    def test_balance_custom_message(self) -> None:
        error = BalanceViolationError("debits exceed credits")
        assert "imbalanced" in str(error).lower()
        assert "balance" in str(error).lower()

    def test_reversal_policy_is_validation(self) -> None:
        error = ReversalPolicyError("txn-1")
        assert isinstance(error, LedgerValidationError)
        assert error.kind == ErrorKind.VALIDATION
        assert "already reversed" in str(error)


class TestClassifyErrorMessage:
    """메시지 분류"""

    @pytest.mark.parametrize(
        "message,expected",
        [
            ("Transaction not found", ErrorKind.NOT_FOUND),
            ("TXN_NOT_FOUND", ErrorKind.NOT_FOUND),
            ("ORG_MISMATCH: entity", ErrorKind.ISOLATION_VIOLATION),
            ("Entity belongs to another Organization", ErrorKind.ISOLATION_VIOLATION),
            ("Transaction UNBALANCED", ErrorKind.BALANCE_VIOLATION),
            ("balance check failed", ErrorKind.BALANCE_VIOLATION),
            ("connection reset", ErrorKind.TRANSPORT),
            ("", ErrorKind.TRANSPORT),
            (None, ErrorKind.TRANSPORT),
        ],
    )
    def test_classification(self, message: str | None, expected: ErrorKind) -> None:
        assert classify_error_message(message) == expected

    def test_not_found_checked_before_organization(self) -> None:
        """organization + not found 조합은 NOT_FOUND"""
        assert classify_error_message("Organization not found") == ErrorKind.NOT_FOUND


class TestErrorFromMessage:
    """메시지 -> 예외"""

    def test_types(self) -> None:
        assert isinstance(error_from_message("not found", transaction_id="t"), TransactionNotFoundError)
        assert isinstance(error_from_message("ORG_MISMATCH"), OrganizationMismatchError)
        assert isinstance(error_from_message("imbalanced"), BalanceViolationError)
        assert isinstance(error_from_message("boom", status_code=500), LedgerTransportError)

    def test_keeps_store_message(self) -> None:
        error = error_from_message("Transaction not found: abc", transaction_id="abc")
        assert str(error) == "Transaction not found: abc"
        assert error.transaction_id == "abc"

    def test_transport_status_code(self) -> None:
        error = error_from_message("internal error", status_code=503)
        assert error.status_code == 503

    def test_empty_message(self) -> None:
        error = error_from_message(None)
        assert isinstance(error, LedgerTransportError)
        assert error.message
