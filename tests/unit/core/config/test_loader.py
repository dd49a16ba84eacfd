"""
core/config/loader.py 테스트

settings.yaml 로드, 검증, 기본값 적용 테스트
"""

from pathlib import Path

import pytest

from core.config.loader import (
    AppConfig,
    Settings,
    SettingsLoadError,
    WebConfig,
    get_default_db_path,
    get_settings,
    load_settings,
)
from core.constants import Defaults, Paths, PROJECT_ROOT
from core.types import AppMode


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "settings.yaml"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def reset_settings() -> None:
    """싱글턴 초기화"""
    Settings.reset()
    yield
    Settings.reset()


class TestAppConfig:
    """AppConfig 데이터클래스 테스트"""

    def test_frozen(self) -> None:
        """불변성 확인"""
        config = AppConfig(
            mode=AppMode.DEVELOPMENT,
            db_path=Path("x.db"),
            web=WebConfig(host="127.0.0.1", port=8000),
            log_level="INFO",
        )

        with pytest.raises(AttributeError):
            config.log_level = "DEBUG"  # type: ignore


class TestLoadSettings:
    """load_settings 테스트"""

    def test_minimal(self, tmp_path: Path) -> None:
        """mode만 있으면 나머지는 기본값"""
        config = load_settings(_write(tmp_path, "mode: development\n"))

        assert config.mode == AppMode.DEVELOPMENT
        assert config.db_path == Paths.DEV_DB
        assert config.web.host == Defaults.WEB_HOST
        assert config.web.port == Defaults.WEB_PORT
        assert config.log_level == "INFO"

    def test_full(self, tmp_path: Path) -> None:
        """모든 항목 지정"""
        db_path = tmp_path / "custom.db"
        content = f"""
mode: PRODUCTION
database:
  path: {db_path.as_posix()}
web:
  host: 0.0.0.0
  port: 9000
logging:
  level: debug
"""
        config = load_settings(_write(tmp_path, content))

        assert config.mode == AppMode.PRODUCTION
        assert config.db_path == db_path
        assert config.web.host == "0.0.0.0"
        assert config.web.port == 9000
        assert config.log_level == "DEBUG"

    def test_relative_db_path(self, tmp_path: Path) -> None:
        """상대 경로는 프로젝트 루트 기준"""
        config = load_settings(_write(tmp_path, "mode: development\ndatabase:\n  path: data/x.db\n"))

        assert config.db_path == PROJECT_ROOT / "data" / "x.db"

    def test_missing_file(self, tmp_path: Path) -> None:
        """파일 없음"""
        with pytest.raises(SettingsLoadError):
            load_settings(tmp_path / "missing.yaml")

    def test_empty_file(self, tmp_path: Path) -> None:
        """빈 파일"""
        with pytest.raises(SettingsLoadError):
            load_settings(_write(tmp_path, ""))

    def test_missing_mode(self, tmp_path: Path) -> None:
        """mode 누락"""
        with pytest.raises(SettingsLoadError):
            load_settings(_write(tmp_path, "web:\n  port: 8000\n"))

    def test_invalid_mode(self, tmp_path: Path) -> None:
        """유효하지 않은 mode"""
        with pytest.raises(ValueError):
            load_settings(_write(tmp_path, "mode: testnet\n"))

    def test_invalid_port(self, tmp_path: Path) -> None:
        """숫자가 아닌 포트"""
        with pytest.raises(SettingsLoadError):
            load_settings(_write(tmp_path, "mode: development\nweb:\n  port: abc\n"))

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """YAML 파싱 실패"""
        with pytest.raises(SettingsLoadError):
            load_settings(_write(tmp_path, "mode: [unclosed\n"))


class TestDefaultDbPath:
    """모드별 기본 DB 경로"""

    def test_production(self) -> None:
        assert get_default_db_path(AppMode.PRODUCTION) == Paths.PROD_DB

    def test_development(self) -> None:
        assert get_default_db_path(AppMode.DEVELOPMENT) == Paths.DEV_DB


class TestSettings:
    """Settings 싱글턴 테스트"""

    def test_singleton(self, tmp_path: Path) -> None:
        """같은 인스턴스 반환"""
        path = _write(tmp_path, "mode: development\n")

        first = get_settings(path)
        second = get_settings()

        assert first is second
        assert second.mode == AppMode.DEVELOPMENT

    def test_reset(self, tmp_path: Path) -> None:
        """reset 후 다시 로드"""
        dev = _write(tmp_path, "mode: development\n")
        get_settings(dev)
        Settings.reset()

        prod_dir = tmp_path / "prod"
        prod_dir.mkdir()
        prod = _write(prod_dir, "mode: production\n")

        assert get_settings(prod).mode == AppMode.PRODUCTION
