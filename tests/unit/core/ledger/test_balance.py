"""차대 균형 검증 테스트"""

from decimal import Decimal

import pytest

from core.ledger.balance import summarize_balance, to_decimal, validate_balance
from core.ledger.errors import LedgerValidationError
from core.ledger.models import LineInput
from core.types import DrCr


class TestValidateBalance:
    """균형 검증 (dict 입력)"""

    def test_balanced(self) -> None:
        lines = [
            {"line_amount": 100, "dr_cr": "DR"},
            {"line_amount": 100, "dr_cr": "CR"},
        ]
        assert validate_balance(lines) is True

    def test_unbalanced(self) -> None:
        lines = [
            {"line_amount": 100, "dr_cr": "DR"},
            {"line_amount": 90, "dr_cr": "CR"},
        ]
        assert validate_balance(lines) is False

    def test_lines_without_marker_excluded(self) -> None:
        """dr_cr 없는 라인은 양쪽 합계에서 제외"""
        assert validate_balance([{"line_amount": 50}]) is True
        assert validate_balance([
            {"line_amount": 50},
            {"line_amount": 10, "dr_cr": "DR"},
            {"line_amount": 10, "dr_cr": "CR"},
        ]) is True

    def test_empty(self) -> None:
        assert validate_balance([]) is True

    def test_within_tolerance(self) -> None:
        """0.01 이내 차이는 허용 (경계 포함)"""
        lines = [
            {"line_amount": "100.00", "dr_cr": "DR"},
            {"line_amount": "99.99", "dr_cr": "CR"},
        ]
        assert validate_balance(lines) is True

    def test_outside_tolerance(self) -> None:
        lines = [
            {"line_amount": "100.00", "dr_cr": "DR"},
            {"line_amount": "99.98", "dr_cr": "CR"},
        ]
        assert validate_balance(lines) is False

    def test_custom_tolerance(self) -> None:
        """무소수 통화 등 허용 오차 설정"""
        lines = [
            {"line_amount": 1000, "dr_cr": "DR"},
            {"line_amount": 999, "dr_cr": "CR"},
        ]
        assert validate_balance(lines, tolerance=Decimal("1")) is True
        assert validate_balance(lines, tolerance=Decimal("0")) is False

    def test_float_amounts(self) -> None:
        """float 합산 오차 없음"""
        lines = [
            {"line_amount": 0.1, "dr_cr": "DR"},
            {"line_amount": 0.2, "dr_cr": "DR"},
            {"line_amount": 0.3, "dr_cr": "CR"},
        ]
        assert validate_balance(lines, tolerance=Decimal("0")) is True

    def test_lowercase_marker(self) -> None:
        lines = [
            {"line_amount": 5, "dr_cr": "dr"},
            {"line_amount": 5, "dr_cr": "cr"},
        ]
        assert validate_balance(lines) is True


class TestSummarizeBalance:
    """합계 요약"""

    def test_totals_with_dataclass_lines(self) -> None:
        """LineInput 입력"""
        lines = [
            LineInput(line_type="DEBIT", smart_code="HERA.FIN.GL.LINE.CASH.V1",
                      line_amount=Decimal("70"), dr_cr=DrCr.DR),
            LineInput(line_type="DEBIT", smart_code="HERA.FIN.GL.LINE.BANK.V1",
                      line_amount=Decimal("30"), dr_cr=DrCr.DR),
            LineInput(line_type="CREDIT", smart_code="HERA.FIN.GL.LINE.SALES.V1",
                      line_amount=Decimal("95"), dr_cr=DrCr.CR),
        ]
        summary = summarize_balance(lines)

        assert summary.total_dr == Decimal("100")
        assert summary.total_cr == Decimal("95")
        assert summary.difference == Decimal("5")
        assert summary.is_balanced is False

    def test_missing_amount_is_zero(self) -> None:
        summary = summarize_balance([{"dr_cr": "DR"}])
        assert summary.total_dr == Decimal("0")
        assert summary.is_balanced is True

    def test_invalid_marker_raises(self) -> None:
        with pytest.raises(LedgerValidationError) as exc_info:
            summarize_balance([{"line_amount": 1, "dr_cr": "X"}])
        assert exc_info.value.field == "dr_cr"

    def test_non_numeric_amount_raises(self) -> None:
        with pytest.raises(LedgerValidationError) as exc_info:
            summarize_balance([{"line_amount": "abc", "dr_cr": "DR"}])
        assert exc_info.value.field == "line_amount"


class TestToDecimal:
    """Decimal 변환"""

    def test_conversions(self) -> None:
        assert to_decimal(None) == Decimal("0")
        assert to_decimal(2.95) == Decimal("2.95")
        assert to_decimal("51") == Decimal("51")
        assert to_decimal(Decimal("1.5")) == Decimal("1.5")
