"""
core/config/loader.py 테스트

ledger.yaml 로드, 검증, 정책 파싱 테스트
"""

from decimal import Decimal
from pathlib import Path

import pytest

from core.config.loader import (
    ConfigLoadError,
    EndpointConfig,
    LedgerPolicy,
    Settings,
    get_settings,
    load_config,
    validate_organization_id,
)
from core.constants import Defaults, HeraEndpoints


ORG = "11111111-1111-4111-8111-111111111111"


class TestEndpointConfig:
    """EndpointConfig 데이터클래스 테스트"""

    def test_defaults(self) -> None:
        config = EndpointConfig(base_url="https://example.test", api_key="key")

        assert config.rpc_function == HeraEndpoints.TXN_FUNCTION
        assert config.timeout == Defaults.REQUEST_TIMEOUT_SEC
        assert config.actor_user_id is None

    def test_frozen(self) -> None:
        """불변성 확인"""
        config = EndpointConfig(base_url="url", api_key="key")

        with pytest.raises(AttributeError):
            config.base_url = "new_url"  # type: ignore


class TestLedgerPolicy:
    """LedgerPolicy 기본값"""

    def test_defaults(self) -> None:
        policy = LedgerPolicy()

        assert policy.balance_tolerance == Decimal("0.01")
        assert policy.allow_multiple_reversals is True
        assert policy.precheck_balance is True


class TestValidateOrganizationId:
    def test_valid(self) -> None:
        assert validate_organization_id(ORG) == ORG

    @pytest.mark.parametrize("value", ["", "org-1", "1234", None])
    def test_invalid(self, value: str | None) -> None:
        with pytest.raises(ValueError, match="유효하지 않은 organization_id"):
            validate_organization_id(value)  # type: ignore[arg-type]


class TestLoadConfig:
    """load_config 함수 테스트"""

    def test_load(self, temp_config_file: Path) -> None:
        """전체 로드 (base_url 끝 슬래시 제거)"""
        config = load_config(temp_config_file)

        assert config.endpoint.base_url == "https://example.supabase.co"
        assert config.endpoint.api_key == "test_api_key_abcde"
        assert config.organization_id == ORG
        assert config.policy.balance_tolerance == Decimal("0.05")
        assert config.policy.allow_multiple_reversals is False
        assert config.policy.precheck_balance is True

    def test_policy_section_optional(self, temp_dir: Path) -> None:
        """ledger 섹션 없으면 기본 정책"""
        content = f"""
endpoint:
  base_url: "https://example.test"
  api_key: "key"
  timeout: 5
organization_id: "{ORG}"
"""
        file = temp_dir / "minimal.yaml"
        file.write_text(content, encoding="utf-8")

        config = load_config(file)

        assert config.policy == LedgerPolicy()
        assert config.endpoint.timeout == 5.0

    def test_actor_user_id(self, temp_dir: Path) -> None:
        content = f"""
endpoint:
  base_url: "https://example.test"
  api_key: "key"
  actor_user_id: "user-7"
organization_id: "{ORG}"
"""
        file = temp_dir / "actor.yaml"
        file.write_text(content, encoding="utf-8")

        assert load_config(file).endpoint.actor_user_id == "user-7"

    def test_file_not_found(self, temp_dir: Path) -> None:
        """파일 없음"""
        with pytest.raises(ConfigLoadError, match="찾을 수 없습니다"):
            load_config(temp_dir / "nonexistent.yaml")

    def test_empty_file(self, temp_dir: Path) -> None:
        """빈 파일"""
        empty_file = temp_dir / "empty.yaml"
        empty_file.write_text("", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="비어 있습니다"):
            load_config(empty_file)

    def test_invalid_yaml(self, temp_dir: Path) -> None:
        """잘못된 YAML 형식"""
        file = temp_dir / "invalid.yaml"
        file.write_text("invalid: yaml: content:", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="파싱 실패"):
            load_config(file)

    def test_missing_endpoint(self, temp_dir: Path) -> None:
        file = temp_dir / "no_endpoint.yaml"
        file.write_text(f'organization_id: "{ORG}"\n', encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="'endpoint' 섹션이 없습니다"):
            load_config(file)

    def test_missing_api_key(self, temp_dir: Path) -> None:
        """api_key 누락"""
        content = f"""
endpoint:
  base_url: "https://example.test"
organization_id: "{ORG}"
"""
        file = temp_dir / "no_api_key.yaml"
        file.write_text(content, encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="'api_key'가 없습니다"):
            load_config(file)

    def test_missing_organization_id(self, temp_dir: Path) -> None:
        content = """
endpoint:
  base_url: "https://example.test"
  api_key: "key"
"""
        file = temp_dir / "no_org.yaml"
        file.write_text(content, encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="'organization_id' 필드가 없습니다"):
            load_config(file)

    def test_invalid_organization_id(self, temp_dir: Path) -> None:
        content = """
endpoint:
  base_url: "https://example.test"
  api_key: "key"
organization_id: "restaurant-1"
"""
        file = temp_dir / "bad_org.yaml"
        file.write_text(content, encoding="utf-8")

        with pytest.raises(ValueError, match="유효하지 않은 organization_id"):
            load_config(file)

    @pytest.mark.parametrize("tolerance", ['"abc"', '"-0.01"'])
    def test_invalid_tolerance(self, temp_dir: Path, tolerance: str) -> None:
        content = f"""
endpoint:
  base_url: "https://example.test"
  api_key: "key"
organization_id: "{ORG}"
ledger:
  balance_tolerance: {tolerance}
"""
        file = temp_dir / "bad_tolerance.yaml"
        file.write_text(content, encoding="utf-8")

        with pytest.raises(ValueError, match="balance_tolerance"):
            load_config(file)

    @pytest.mark.parametrize("key", ["allow_multiple_reversals", "precheck_balance"])
    @pytest.mark.parametrize("value", ['"false"', '"no"', "0"])
    def test_non_boolean_flag_rejected(self, temp_dir: Path, key: str, value: str) -> None:
        """따옴표 문자열 "false"가 True로 해석되지 않도록 거부"""
        content = f"""
endpoint:
  base_url: "https://example.test"
  api_key: "key"
organization_id: "{ORG}"
ledger:
  {key}: {value}
"""
        file = temp_dir / "bad_flag.yaml"
        file.write_text(content, encoding="utf-8")

        with pytest.raises(ValueError, match=key):
            load_config(file)


class TestSettings:
    """Settings 클래스 테스트"""

    def setup_method(self) -> None:
        """각 테스트 전에 싱글턴 초기화"""
        Settings.reset()

    def teardown_method(self) -> None:
        Settings.reset()

    def test_creation(self, temp_config_file: Path) -> None:
        settings = Settings(temp_config_file)

        assert settings.organization_id == ORG
        assert settings.endpoint.api_key == "test_api_key_abcde"
        assert settings.policy.balance_tolerance == Decimal("0.05")

    def test_singleton(self, temp_config_file: Path) -> None:
        """싱글턴 확인"""
        settings1 = Settings(temp_config_file)
        settings2 = get_settings()

        assert settings1 is settings2
