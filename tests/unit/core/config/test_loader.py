"""
core/config/loader.py 테스트

ledger.yaml 로드, 기본값, 검증 테스트
"""

from decimal import Decimal
from pathlib import Path

import pytest

from core.config.loader import (
    ConfigLoadError,
    LedgerConfig,
    SequencerConfig,
    StorageConfig,
    load_config,
    parse_config,
)
from core.constants import Defaults, Paths, PROJECT_ROOT
from core.types import WritePolicy


class TestLedgerConfig:
    """LedgerConfig 데이터클래스 테스트"""

    def test_defaults(self) -> None:
        """기본값"""
        config = LedgerConfig()

        assert config.storage.db_path == Paths.LEDGER_DB
        assert config.storage.write_policy == WritePolicy.WRITE_THROUGH
        assert config.sequencer.max_workers == Defaults.MAX_WORKERS
        assert config.sequencer.max_queue_depth == Defaults.MAX_QUEUE_DEPTH
        assert config.precision == Decimal("0.01")
        assert config.ranking_min_balance == Decimal("0")
        assert config.log_level == "INFO"

    def test_frozen(self) -> None:
        """불변성 확인"""
        config = LedgerConfig()

        with pytest.raises(AttributeError):
            config.precision = Decimal("1")  # type: ignore

    def test_log_level_no(self) -> None:
        """로그 레벨 숫자 변환"""
        assert LedgerConfig(log_level="DEBUG").log_level_no == 10
        assert LedgerConfig(log_level="WARNING").log_level_no == 30


class TestLoadConfig:
    """load_config() 테스트"""

    def test_load_file(self, temp_config_file: Path) -> None:
        """파일 로드"""
        config = load_config(temp_config_file)

        assert config.storage == StorageConfig(
            db_path=PROJECT_ROOT / "ledger_test.db",
            write_policy=WritePolicy.WRITE_BEHIND,
            flush_interval_sec=2.0,
        )
        assert config.sequencer == SequencerConfig(max_workers=8, max_queue_depth=50)
        assert config.precision == Decimal("0.001")
        assert config.ranking_min_balance == Decimal("10")
        assert config.log_level == "DEBUG"

    def test_file_not_found(self, temp_dir: Path) -> None:
        """파일이 없으면 기본 설정"""
        config = load_config(temp_dir / "missing.yaml")

        assert config == LedgerConfig()

    def test_empty_file(self, temp_dir: Path) -> None:
        """빈 파일은 기본 설정"""
        config_path = temp_dir / "empty.yaml"
        config_path.write_text("", encoding="utf-8")

        assert load_config(config_path) == LedgerConfig()

    def test_invalid_yaml(self, temp_dir: Path) -> None:
        """잘못된 YAML"""
        config_path = temp_dir / "invalid.yaml"
        config_path.write_text("storage: [unclosed", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="파싱 실패"):
            load_config(config_path)

    def test_top_level_not_mapping(self, temp_dir: Path) -> None:
        """최상위가 리스트인 경우"""
        config_path = temp_dir / "list.yaml"
        config_path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigLoadError):
            load_config(config_path)

    def test_absolute_db_path_kept(self, temp_dir: Path) -> None:
        """절대 경로 db_path는 그대로 사용"""
        db_path = temp_dir / "abs.db"

        config = parse_config({"storage": {"db_path": str(db_path)}})

        assert config.storage.db_path == db_path


class TestParseConfigValidation:
    """parse_config() 검증 테스트"""

    @pytest.mark.parametrize(
        "data",
        [
            {"storage": {"write_policy": "sometimes"}},
            {"storage": {"flush_interval_sec": 0}},
            {"storage": {"flush_interval_sec": "soon"}},
            {"sequencer": {"max_workers": 0}},
            {"sequencer": {"max_workers": "8"}},
            {"sequencer": {"max_queue_depth": True}},
            {"ledger": {"precision": "0"}},
            {"ledger": {"precision": "NaN"}},
            {"ranking": {"min_balance": "-1"}},
            {"logging": {"level": "LOUD"}},
            {"storage": "write_behind"},
        ],
    )
    def test_invalid_values(self, data: dict) -> None:
        """잘못된 값은 ConfigLoadError"""
        with pytest.raises(ConfigLoadError):
            parse_config(data)

    def test_write_policy_case_insensitive(self) -> None:
        """write_policy 대소문자 무시"""
        config = parse_config({"storage": {"write_policy": "WRITE_BEHIND"}})

        assert config.storage.write_policy == WritePolicy.WRITE_BEHIND

    def test_partial_sections_use_defaults(self) -> None:
        """일부 섹션만 있으면 나머지는 기본값"""
        config = parse_config({"sequencer": {"max_workers": 4}})

        assert config.sequencer.max_workers == 4
        assert config.sequencer.max_queue_depth == Defaults.MAX_QUEUE_DEPTH
        assert config.precision == Decimal(Defaults.PRECISION)
