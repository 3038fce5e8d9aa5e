"""
RPC 요청/응답 스키마 (Pydantic)

트랜잭션 스토어 RPC 엔벨로프 검증 및 직렬화
"""

from typing import Any

from pydantic import BaseModel, Field

from core.types import RpcAction


class RpcRequest(BaseModel):
    """RPC 요청 엔벨로프

    POST {base_url}/rest/v1/rpc/{function} 본문.
    """

    p_action: RpcAction = Field(..., description="액션 (EMIT/READ/QUERY/REVERSE)")
    p_organization_id: str = Field(..., description="조직 ID (UUID)")
    p_payload: dict[str, Any] = Field(default_factory=dict, description="액션별 페이로드")
    p_actor_user_id: str | None = Field(default=None, description="감사용 실행 사용자 ID (없으면 생략)")


class RpcResponse(BaseModel):
    """RPC 응답 엔벨로프

    success=false이면 error에 사람이 읽을 수 있는 메시지.
    알 수 없는 필드는 무시하지 않고 보존.
    """

    success: bool = Field(default=True, description="성공 여부")
    data: dict[str, Any] | None = Field(default=None, description="액션별 결과")
    error: str | None = Field(default=None, description="에러 메시지")

    model_config = {"extra": "allow"}


class RpcErrorBody(BaseModel):
    """HTTP 에러 응답 본문 (PostgREST 형식)"""

    code: str | int | None = None
    message: str | None = None
    error: str | None = None
    details: str | None = None
    hint: str | None = None

    model_config = {"extra": "allow"}

    def best_message(self) -> str | None:
        """표시할 메시지 선택 (error > message > details > hint)"""
        return self.error or self.message or self.details or self.hint
