"""
트랜잭션 스토어 RPC 클라이언트

PostgREST RPC(POST /rest/v1/rpc/hera_txn_crud_v1) 호출, Decimal 사용.
ITransactionStore Protocol 준수.
재시도/백오프 없음: 모든 호출은 단일 요청/응답.
"""

import logging
from typing import Any

import httpx
from pydantic import ValidationError

from adapters.hera.models import (
    parse_query_result,
    parse_reversal_result,
    parse_transaction,
    serialize_emit_request,
    serialize_query_filters,
    unwrap,
)
from adapters.hera.schemas import RpcErrorBody, RpcRequest, RpcResponse
from core.constants import Defaults, HeraEndpoints
from core.ledger.errors import LedgerTransportError, error_from_message
from core.ledger.models import (
    EmitRequest,
    QueryFilters,
    QueryResult,
    ReversalResult,
    Transaction,
)
from core.types import RpcAction

logger = logging.getLogger(__name__)


class HeraTransactionRestClient:
    """트랜잭션 스토어 RPC 클라이언트

    ITransactionStore Protocol 구현.
    모든 금액은 Decimal 타입으로 반환.

    Args:
        base_url: 스토어 베이스 URL
        api_key: API 키 (apikey 헤더 + Bearer 토큰)
        rpc_function: RPC 함수 이름
        timeout: 요청 타임아웃 (초)
        actor_user_id: 모든 요청에 p_actor_user_id로 전달할 사용자 ID (선택)
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        rpc_function: str = HeraEndpoints.TXN_FUNCTION,
        timeout: float = Defaults.REQUEST_TIMEOUT_SEC,
        actor_user_id: str | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.rpc_function = rpc_function
        self.timeout = timeout
        self.actor_user_id = actor_user_id

        self._client: httpx.AsyncClient | None = None

    @property
    def rpc_url(self) -> str:
        return f"{self.base_url}{HeraEndpoints.RPC_PATH}/{self.rpc_function}"

    async def _get_client(self) -> httpx.AsyncClient:
        """HTTP 클라이언트 가져오기 (lazy initialization)"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self) -> None:
        """HTTP 클라이언트 종료"""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HeraTransactionRestClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _headers(self) -> dict[str, str]:
        return {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    @staticmethod
    def _error_message(response: Any) -> str:
        """HTTP 에러 응답에서 메시지 추출"""
        try:
            body = RpcErrorBody.model_validate(response.json())
            message = body.best_message()
        except (ValueError, ValidationError):
            message = None
        return message or response.text or f"HTTP {response.status_code}"

    async def _rpc(
        self,
        action: RpcAction,
        organization_id: str,
        payload: dict[str, Any],
        transaction_id: str | None = None,
    ) -> dict[str, Any]:
        """RPC 요청 실행

        Args:
            action: RPC 액션
            organization_id: 조직 ID
            payload: 액션별 페이로드
            transaction_id: 에러 메시지용 대상 트랜잭션 ID

        Returns:
            응답 엔벨로프의 data

        Raises:
            LedgerError: 스토어가 실패를 보고한 경우 (메시지로 분류)
            LedgerTransportError: 네트워크 오류, 잘못된 응답 형식
        """
        body = RpcRequest(
            p_action=action,
            p_organization_id=organization_id,
            p_payload=payload,
            p_actor_user_id=self.actor_user_id,
        ).model_dump(
            mode="json",
            exclude={"p_actor_user_id"} if self.actor_user_id is None else None,
        )
        client = await self._get_client()

        try:
            response = await client.request(
                "POST",
                self.rpc_url,
                json=body,
                headers=self._headers(),
            )
        except httpx.TimeoutException as e:
            logger.warning(
                "Request timeout",
                extra={"action": action.value, "organization_id": organization_id},
            )
            raise LedgerTransportError(f"Request timeout: {action.value}") from e
        except httpx.RequestError as e:
            logger.error(
                "Request error",
                extra={"action": action.value, "error": str(e)},
            )
            raise LedgerTransportError(f"Request error: {e}") from e

        if response.status_code >= 400:
            message = self._error_message(response)
            logger.warning(
                "Transaction store rejected request",
                extra={
                    "action": action.value,
                    "status_code": response.status_code,
                    "error": message,
                },
            )
            raise error_from_message(
                message,
                transaction_id=transaction_id,
                status_code=response.status_code,
            )

        try:
            envelope = RpcResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise LedgerTransportError(
                f"Malformed response for {action.value}: {e}",
                status_code=response.status_code,
            ) from e

        if not envelope.success:
            logger.warning(
                "Transaction store reported failure",
                extra={"action": action.value, "error": envelope.error},
            )
            raise error_from_message(envelope.error, transaction_id=transaction_id)

        return envelope.data or {}

    # -------------------------------------------------------------------------
    # 생성
    # -------------------------------------------------------------------------

    async def emit(self, request: EmitRequest) -> str:
        """트랜잭션 생성"""
        data = await self._rpc(
            RpcAction.EMIT,
            request.organization_id,
            serialize_emit_request(request),
        )
        body = unwrap(data, "transaction_id")
        if not body.get("transaction_id"):
            raise LedgerTransportError("EMIT response missing transaction_id")
        return str(body["transaction_id"])

    # -------------------------------------------------------------------------
    # 조회
    # -------------------------------------------------------------------------

    async def read(
        self,
        organization_id: str,
        transaction_id: str,
        include_lines: bool = True,
    ) -> Transaction:
        """트랜잭션 단건 조회"""
        data = await self._rpc(
            RpcAction.READ,
            organization_id,
            {"transaction_id": transaction_id, "include_lines": include_lines},
            transaction_id=transaction_id,
        )
        body = unwrap(data, "transaction")
        raw = body.get("transaction")
        if not raw:
            # 빈 결과도 not found와 동일하게 처리
            raise error_from_message(
                f"Transaction not found: {transaction_id}",
                transaction_id=transaction_id,
            )
        return parse_transaction(raw, include_lines=include_lines)

    async def query(self, organization_id: str, filters: QueryFilters) -> QueryResult:
        """필터 조건으로 트랜잭션 조회"""
        data = await self._rpc(
            RpcAction.QUERY,
            organization_id,
            serialize_query_filters(filters),
        )
        return parse_query_result(data, filters)

    # -------------------------------------------------------------------------
    # 역분개
    # -------------------------------------------------------------------------

    async def reverse(
        self,
        organization_id: str,
        original_transaction_id: str,
        smart_code: str,
        reason: str,
    ) -> ReversalResult:
        """역분개 트랜잭션 생성"""
        data = await self._rpc(
            RpcAction.REVERSE,
            organization_id,
            {
                "original_transaction_id": original_transaction_id,
                "smart_code": smart_code,
                "reason": reason,
            },
            transaction_id=original_transaction_id,
        )
        return parse_reversal_result(data)
