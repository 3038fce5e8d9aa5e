"""
pytest 공통 fixture 정의

원장 클라이언트/Mock 스토어/설정 파일 fixture
"""

import tempfile
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest

from adapters.mock.transaction_store import MockTransactionStore
from core.ledger.client import TransactionLedgerClient
from core.ledger.models import EmitRequest, LineInput


ORG_A = "11111111-1111-4111-8111-111111111111"
ORG_B = "22222222-2222-4222-8222-222222222222"

SALE_SMART_CODE = "HERA.RESTAURANT.SALES.ORDER.CORE.V1"
ITEM_SMART_CODE = "HERA.RESTAURANT.SALES.LINE.ITEM.V1"
TAX_SMART_CODE = "HERA.RESTAURANT.SALES.LINE.TAX.V1"


@pytest.fixture
def temp_dir() -> Path:
    """OS 독립적인 임시 디렉토리 생성"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_config_file(temp_dir: Path) -> Path:
    """테스트용 ledger.yaml 파일 생성"""
    content = f"""# 테스트용 ledger.yaml
endpoint:
  base_url: "https://example.supabase.co/"
  api_key: "test_api_key_abcde"

organization_id: "{ORG_A}"

ledger:
  balance_tolerance: "0.05"
  allow_multiple_reversals: false
"""
    path = temp_dir / "ledger.yaml"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture
def org_id() -> str:
    return ORG_A


@pytest.fixture
def other_org_id() -> str:
    return ORG_B


@pytest.fixture
def mock_store() -> MockTransactionStore:
    return MockTransactionStore()


@pytest.fixture
def ledger_client(mock_store: MockTransactionStore, org_id: str) -> TransactionLedgerClient:
    """Mock 스토어에 연결된 클라이언트 (기본 조직 ORG_A)"""
    return TransactionLedgerClient(mock_store, organization_id=org_id)


@pytest.fixture
def sale_request(org_id: str) -> EmitRequest:
    """판매 트랜잭션 (2 라인, 총 59.00)"""
    return EmitRequest(
        organization_id=org_id,
        transaction_type="sale",
        smart_code=SALE_SMART_CODE,
        transaction_date=datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc),
        total_amount=Decimal("59.00"),
        lines=[
            LineInput(
                line_number=1,
                line_type="ITEM",
                smart_code=ITEM_SMART_CODE,
                quantity=Decimal("2"),
                unit_price=Decimal("25.50"),
                line_amount=Decimal("51.00"),
                description="Margherita",
            ),
            LineInput(
                line_number=2,
                line_type="TAX",
                smart_code=TAX_SMART_CODE,
                line_amount=Decimal("8.00"),
                description="VAT",
            ),
        ],
    )


@pytest.fixture
def journal_request(org_id: str) -> EmitRequest:
    """균형 분개 트랜잭션 (DR 100 / CR 100)"""
    return EmitRequest(
        organization_id=org_id,
        transaction_type="journal_entry",
        smart_code="HERA.FIN.GL.JOURNAL.ENTRY.V1",
        transaction_date=datetime(2026, 10, 2, tzinfo=timezone.utc),
        require_balance=True,
        lines=[
            LineInput(
                line_type="DEBIT",
                smart_code="HERA.FIN.GL.LINE.CASH.V1",
                line_amount=Decimal("100"),
                dr_cr="DR",
            ),
            LineInput(
                line_type="CREDIT",
                smart_code="HERA.FIN.GL.LINE.REVENUE.V1",
                line_amount=Decimal("100"),
                dr_cr="CR",
            ),
        ],
    )
