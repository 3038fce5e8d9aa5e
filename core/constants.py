"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from decimal import Decimal
from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → 프로젝트 루트)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent


class HeraEndpoints:
    """트랜잭션 스토어 RPC 엔드포인트 (고정값)

    PostgREST 방식: POST {base_url}/rest/v1/rpc/{function}
    """

    RPC_PATH: str = "/rest/v1/rpc"
    TXN_FUNCTION: str = "hera_txn_crud_v1"


class Defaults:
    """기본값 상수"""

    # 차변/대변 합계 허용 오차 (1센트)
    BALANCE_TOLERANCE: Decimal = Decimal("0.01")

    # 조회 페이지 크기
    QUERY_LIMIT: int = 100
    AUDIT_PAGE_SIZE: int = 200

    REQUEST_TIMEOUT_SEC: float = 30.0

    ALLOW_MULTIPLE_REVERSALS: bool = True
    PRECHECK_BALANCE: bool = True

    LOG_LEVEL: str = "INFO"


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"
    CLI_LOGS_DIR: Path = LOGS_DIR / "cli"

    # 설정 파일
    CONFIG_FILE: Path = CONFIG_DIR / "ledger.yaml"


class SmartCodeRules:
    """Smart Code 형식 규칙

    HERA.<SEGMENT>(.<SEGMENT>){4,}.V<digits>
    """

    PREFIX: str = "HERA"
    MIN_SEGMENTS: int = 6
    REVERSE_SEGMENT: str = "REVERSE"
