"""
설정 로더

ledger.yaml 로드 및 클라이언트 설정 생성
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from uuid import UUID

import yaml

from core.constants import Defaults, HeraEndpoints, Paths


@dataclass(frozen=True)
class EndpointConfig:
    """트랜잭션 스토어 연결 설정"""

    base_url: str
    api_key: str
    rpc_function: str = HeraEndpoints.TXN_FUNCTION
    timeout: float = Defaults.REQUEST_TIMEOUT_SEC
    actor_user_id: str | None = None


@dataclass(frozen=True)
class LedgerPolicy:
    """원장 정책 설정

    Attributes:
        balance_tolerance: 차변/대변 합계 허용 오차
        allow_multiple_reversals: 이미 역분개된 원거래의 재역분개 허용 여부
        precheck_balance: require_balance 요청 시 전송 전 균형 검증 여부
    """

    balance_tolerance: Decimal = Defaults.BALANCE_TOLERANCE
    allow_multiple_reversals: bool = Defaults.ALLOW_MULTIPLE_REVERSALS
    precheck_balance: bool = Defaults.PRECHECK_BALANCE


@dataclass(frozen=True)
class LedgerConfig:
    """클라이언트 전체 설정 (ledger.yaml에서 로드)

    불변 데이터 구조로 설정 변경 방지
    """

    endpoint: EndpointConfig
    organization_id: str
    policy: LedgerPolicy = field(default_factory=LedgerPolicy)


class ConfigLoadError(Exception):
    """설정 로드 실패 예외"""

    pass


def validate_organization_id(value: str) -> str:
    """조직 ID(UUID 문자열) 검증

    Raises:
        ValueError: UUID 형식이 아닌 경우
    """
    try:
        UUID(str(value))
    except (ValueError, TypeError) as e:
        raise ValueError(f"유효하지 않은 organization_id입니다: '{value}'") from e
    return str(value)


def _parse_flag(data: dict, key: str, default: bool) -> bool:
    """YAML 불리언 값 검증 (따옴표 문자열 "false" 등은 거부)

    Raises:
        ValueError: true/false 이외의 값
    """
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"{key}는 true 또는 false여야 합니다: '{value}'")
    return value


def _parse_policy(data: dict) -> LedgerPolicy:
    tolerance_raw = data.get("balance_tolerance", Defaults.BALANCE_TOLERANCE)
    try:
        tolerance = Decimal(str(tolerance_raw))
    except InvalidOperation as e:
        raise ValueError(
            f"유효하지 않은 balance_tolerance입니다: '{tolerance_raw}'"
        ) from e
    if tolerance < 0:
        raise ValueError(f"balance_tolerance는 0 이상이어야 합니다: {tolerance}")

    return LedgerPolicy(
        balance_tolerance=tolerance,
        allow_multiple_reversals=_parse_flag(
            data, "allow_multiple_reversals", Defaults.ALLOW_MULTIPLE_REVERSALS
        ),
        precheck_balance=_parse_flag(data, "precheck_balance", Defaults.PRECHECK_BALANCE),
    )


def load_config(path: Path | None = None) -> LedgerConfig:
    """ledger.yaml 파일 로드

    Args:
        path: ledger.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        LedgerConfig 인스턴스

    Raises:
        ConfigLoadError: 파일이 없거나 형식이 잘못된 경우
        ValueError: organization_id, balance_tolerance, 정책 플래그 값이 유효하지 않은 경우
    """
    if path is None:
        path = Paths.CONFIG_FILE

    if not path.exists():
        raise ConfigLoadError(f"ledger.yaml 파일을 찾을 수 없습니다: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigLoadError(f"ledger.yaml 파싱 실패: {e}") from e

    if data is None:
        raise ConfigLoadError("ledger.yaml이 비어 있습니다")

    endpoint_data = data.get("endpoint")
    if endpoint_data is None:
        raise ConfigLoadError("ledger.yaml에 'endpoint' 섹션이 없습니다")

    base_url = endpoint_data.get("base_url")
    api_key = endpoint_data.get("api_key")
    actor_user_id = endpoint_data.get("actor_user_id")

    if not base_url:
        raise ConfigLoadError("ledger.yaml의 endpoint 섹션에 'base_url'이 없습니다")
    if not api_key:
        raise ConfigLoadError("ledger.yaml의 endpoint 섹션에 'api_key'가 없습니다")

    endpoint = EndpointConfig(
        base_url=str(base_url).rstrip("/"),
        api_key=str(api_key),
        rpc_function=endpoint_data.get("rpc_function", HeraEndpoints.TXN_FUNCTION),
        timeout=float(endpoint_data.get("timeout", Defaults.REQUEST_TIMEOUT_SEC)),
        actor_user_id=str(actor_user_id) if actor_user_id else None,
    )

    organization_id = data.get("organization_id")
    if not organization_id:
        raise ConfigLoadError("ledger.yaml에 'organization_id' 필드가 없습니다")

    return LedgerConfig(
        endpoint=endpoint,
        organization_id=validate_organization_id(organization_id),
        policy=_parse_policy(data.get("ledger") or {}),
    )


class Settings:
    """애플리케이션 설정 (싱글턴 패턴)

    ledger.yaml을 로드하고 관련 설정을 제공
    """

    _instance: "Settings | None" = None
    _config: LedgerConfig | None = None

    def __new__(cls, config_path: Path | None = None) -> "Settings":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, config_path: Path | None = None) -> None:
        if self._config is None:
            self._config = load_config(config_path)

    @property
    def config(self) -> LedgerConfig:
        """전체 설정"""
        assert self._config is not None
        return self._config

    @property
    def organization_id(self) -> str:
        """기본 조직 ID"""
        return self.config.organization_id

    @property
    def endpoint(self) -> EndpointConfig:
        """스토어 연결 설정"""
        return self.config.endpoint

    @property
    def policy(self) -> LedgerPolicy:
        """원장 정책"""
        return self.config.policy

    @classmethod
    def reset(cls) -> None:
        """싱글턴 인스턴스 초기화 (테스트용)"""
        cls._instance = None
        cls._config = None


def get_settings(config_path: Path | None = None) -> Settings:
    """Settings 인스턴스 반환

    Args:
        config_path: ledger.yaml 경로 (None이면 기본 경로 사용)

    Returns:
        Settings 싱글턴 인스턴스
    """
    return Settings(config_path)
