"""
트랜잭션 원장 CLI

ledger.yaml 설정으로 스토어에 연결하여 emit/read/query/reverse/audit 실행.
결과는 stdout에 JSON으로 출력, 로그는 stderr + 파일.

예:
    python -m cli read 6f1c...                      # 라인 포함 조회
    python -m cli query --type sale --limit 20
    python -m cli reverse 6f1c... --reason "Customer refund"
    python -m cli check-balance lines.json          # 네트워크 호출 없음
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any

from adapters.hera import HeraTransactionRestClient
from adapters.hera.models import to_wire_value
from core.config.loader import ConfigLoadError, LedgerConfig, get_settings
from core.constants import Defaults
from core.ledger import (
    EmitRequest,
    LedgerError,
    LedgerValidationError,
    LineInput,
    QueryFilters,
    TransactionLedgerClient,
    summarize_balance,
)
from core.logging import setup_logging
from core.types import TransactionStatus
from core.utils.timezone import now_utc, parse_datetime

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """인자 파서 생성"""
    parser = argparse.ArgumentParser(
        prog="python -m cli",
        description="트랜잭션 원장 클라이언트",
    )
    parser.add_argument("--config", type=Path, default=None, help="ledger.yaml 경로")
    parser.add_argument("--org", default=None, help="조직 ID (기본: 설정 파일 값)")
    parser.add_argument("--verbose", "-v", action="store_true", help="DEBUG 로그 출력")
    parser.add_argument("--log-dir", type=Path, default=None, help="로그 디렉토리 (기본: logs/cli)")

    sub = parser.add_subparsers(dest="command", required=True)

    emit = sub.add_parser("emit", help="JSON 파일로 트랜잭션 생성")
    emit.add_argument("file", type=Path)

    read = sub.add_parser("read", help="트랜잭션 조회")
    read.add_argument("transaction_id")
    read.add_argument("--header-only", action="store_true", help="라인 제외")

    query = sub.add_parser("query", help="트랜잭션 검색")
    query.add_argument("--source", dest="source_entity_id")
    query.add_argument("--target", dest="target_entity_id")
    query.add_argument("--type", dest="transaction_type")
    query.add_argument("--smart-code-like")
    query.add_argument("--status", choices=[s.value for s in TransactionStatus])
    query.add_argument("--date-from")
    query.add_argument("--date-to")
    query.add_argument("--limit", type=int, default=100)
    query.add_argument("--offset", type=int, default=0)
    query.add_argument("--lines", action="store_true", help="라인 포함")

    reverse = sub.add_parser("reverse", help="역분개")
    reverse.add_argument("transaction_id")
    reverse.add_argument("--reason", required=True)
    reverse.add_argument("--smart-code", default=None, help="기본: 원거래 코드의 REVERSE 변환")

    audit = sub.add_parser("audit", help="감사 추적 조회")
    audit.add_argument("transaction_id")

    balance = sub.add_parser("check-balance", help="라인 JSON의 차대 균형 확인")
    balance.add_argument("file", type=Path)

    return parser


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise LedgerValidationError(f"cannot read {path}: {e.strerror}", field="file") from e
    except json.JSONDecodeError as e:
        raise LedgerValidationError(f"malformed JSON in {path}: {e}", field="file") from e


def _parse_cli_datetime(value: Any, field: str) -> datetime | None:
    try:
        return parse_datetime(value)
    except ValueError as e:
        raise LedgerValidationError(f"{field} is not an ISO-8601 date: '{value}'", field=field) from e


def load_emit_request(data: dict[str, Any], default_org: str | None) -> EmitRequest:
    """JSON dict -> EmitRequest

    필수: transaction_type, smart_code (라인별 line_type, smart_code, line_amount)
    transaction_date 생략 시 현재 시각.

    Raises:
        LedgerValidationError: 필수 필드 누락, 잘못된 날짜/상태 값
    """
    if not isinstance(data, dict):
        raise LedgerValidationError("emit file must contain a JSON object")
    try:
        return _build_emit_request(data, default_org)
    except KeyError as e:
        raise LedgerValidationError(f"missing required field {e}", field=str(e.args[0])) from e
    except (TypeError, AttributeError) as e:
        raise LedgerValidationError(f"malformed emit request: {e}") from e


def _build_emit_request(data: dict[str, Any], default_org: str | None) -> EmitRequest:
    lines = [
        LineInput(
            line_type=item["line_type"],
            smart_code=item["smart_code"],
            line_amount=item["line_amount"],
            line_number=item.get("line_number"),
            quantity=item.get("quantity", "1"),
            unit_price=item.get("unit_price", "0"),
            entity_id=item.get("entity_id"),
            dr_cr=item.get("dr_cr"),
            description=item.get("description"),
            line_data=item.get("line_data") or {},
        )
        for item in data.get("lines", [])
    ]
    status = data.get("status")
    if status and str(status).upper() not in TransactionStatus.__members__:
        raise LedgerValidationError(f"unknown status '{status}'", field="status")
    return EmitRequest(
        organization_id=data.get("organization_id") or default_org or "",
        transaction_type=data["transaction_type"],
        smart_code=data["smart_code"],
        transaction_date=_parse_cli_datetime(data.get("transaction_date"), "transaction_date") or now_utc(),
        lines=lines,
        source_entity_id=data.get("source_entity_id"),
        target_entity_id=data.get("target_entity_id"),
        business_context=data.get("business_context") or {},
        metadata=data.get("metadata") or {},
        require_balance=bool(data.get("require_balance", False)),
        total_amount=data.get("total_amount"),
        status=TransactionStatus.parse(str(status)) if status else TransactionStatus.PENDING,
    )


def _dump(value: Any) -> None:
    print(json.dumps(to_wire_value(value), indent=2, ensure_ascii=False))


async def run(args: argparse.Namespace, config: LedgerConfig) -> None:
    """명령 실행"""
    store = HeraTransactionRestClient(
        base_url=config.endpoint.base_url,
        api_key=config.endpoint.api_key,
        rpc_function=config.endpoint.rpc_function,
        timeout=config.endpoint.timeout,
        actor_user_id=config.endpoint.actor_user_id,
    )
    client = TransactionLedgerClient.from_config(config, store)
    org_id = args.org

    try:
        if args.command == "emit":
            request = load_emit_request(_read_json(args.file), org_id or config.organization_id)
            _dump({"transaction_id": await client.emit(request)})

        elif args.command == "read":
            txn = await client.read(
                args.transaction_id,
                include_lines=not args.header_only,
                organization_id=org_id,
            )
            _dump(asdict(txn))

        elif args.command == "query":
            filters = QueryFilters(
                source_entity_id=args.source_entity_id,
                target_entity_id=args.target_entity_id,
                transaction_type=args.transaction_type,
                smart_code_like=args.smart_code_like,
                status=TransactionStatus(args.status) if args.status else None,
                date_from=_parse_cli_datetime(args.date_from, "date_from"),
                date_to=_parse_cli_datetime(args.date_to, "date_to"),
                limit=args.limit,
                offset=args.offset,
                include_lines=args.lines,
            )
            result = await client.query(filters, organization_id=org_id)
            _dump({
                "transactions": [asdict(txn) for txn in result.transactions],
                "total": result.total,
                "has_more": result.has_more,
            })

        elif args.command == "reverse":
            result = await client.reverse(
                args.transaction_id,
                reason=args.reason,
                smart_code=args.smart_code,
                organization_id=org_id,
            )
            _dump(asdict(result))

        elif args.command == "audit":
            trail = await client.get_audit_trail(args.transaction_id, organization_id=org_id)
            _dump(asdict(trail))
    finally:
        await client.close()


def check_balance_file(path: Path, config: LedgerConfig | None) -> bool:
    """라인 JSON 파일 균형 확인 (설정이 없으면 기본 허용 오차)"""
    data = _read_json(path)
    lines = data.get("lines", []) if isinstance(data, dict) else data
    tolerance = config.policy.balance_tolerance if config else Defaults.BALANCE_TOLERANCE
    summary = summarize_balance(lines, tolerance)
    _dump({
        "total_dr": summary.total_dr,
        "total_cr": summary.total_cr,
        "difference": summary.difference,
        "is_balanced": summary.is_balanced,
    })
    return summary.is_balanced


def _report_error(e: LedgerError) -> int:
    logger.error(f"[{e.kind.value}] {e.message}")
    print(json.dumps({"error": e.message, "kind": e.kind.value}), file=sys.stderr)
    return 1


def main(argv: list[str] | None = None) -> int:
    """CLI 메인

    Returns:
        종료 코드 (0: 성공, 1: 원장 에러/불균형, 2: 설정 에러)
    """
    args = build_parser().parse_args(argv)
    setup_logging(
        "cli",
        console_level=logging.DEBUG if args.verbose else logging.WARNING,
        log_dir=args.log_dir,
    )

    if args.command == "check-balance":
        try:
            config = get_settings(args.config).config
        except (ConfigLoadError, ValueError):
            config = None
        try:
            return 0 if check_balance_file(args.file, config) else 1
        except LedgerError as e:
            return _report_error(e)

    try:
        config = get_settings(args.config).config
    except (ConfigLoadError, ValueError) as e:
        logger.error(f"설정 로드 실패: {e}")
        return 2

    try:
        asyncio.run(run(args, config))
    except LedgerError as e:
        return _report_error(e)
    return 0
