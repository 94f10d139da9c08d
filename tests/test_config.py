"""Tests for swcforge.config loading, merging and environment overrides."""

from __future__ import annotations

import pytest


class TestFindConfigFile:
    def test_found_in_start_directory(self, tmp_path):
        from swcforge.config import CONFIG_FILE_NAME, find_config_file

        config_file = tmp_path / CONFIG_FILE_NAME
        config_file.write_text("[project]\nname = \"Demo\"\n")

        assert find_config_file(tmp_path) == config_file.resolve()

    def test_found_in_parent_directory(self, tmp_path):
        from swcforge.config import CONFIG_FILE_NAME, find_config_file

        config_file = tmp_path / CONFIG_FILE_NAME
        config_file.write_text("")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)

        assert find_config_file(nested) == config_file.resolve()


class TestMergeConfigs:
    def test_nested_tables_merged(self):
        from swcforge.config import merge_configs

        base = {"synthesis": {"default_ecu_name": "SystemECU", "default_period_ms": 100}}
        override = {"synthesis": {"default_period_ms": 20}}

        assert merge_configs(base, override) == {
            "synthesis": {"default_ecu_name": "SystemECU", "default_period_ms": 20}
        }

    def test_base_not_modified(self):
        from swcforge.config import merge_configs

        base = {"extraction": {"stopwords": ["the"]}}
        merged = merge_configs(base, {"extraction": {"stopwords": ["a", "b"]}})
        merged["extraction"]["stopwords"].append("c")

        assert base == {"extraction": {"stopwords": ["the"]}}


class TestLoadConfig:
    def test_defaults_without_file(self, tmp_path, monkeypatch):
        from swcforge.config import DEFAULT_CONFIG, load_config

        monkeypatch.chdir(tmp_path)

        assert load_config() == DEFAULT_CONFIG

    def test_explicit_file_merged_over_defaults(self, tmp_path):
        from swcforge.config import load_config

        config_file = tmp_path / "custom.toml"
        config_file.write_text(
            "# project settings\n"
            "[project]\n"
            'name = "BodyControl"\n'
            "\n"
            "[synthesis]\n"
            'default_ecu_name = "BodyECU"\n'
        )

        config = load_config(config_file)

        assert config["project"]["name"] == "BodyControl"
        assert config["project"]["autosar_version"] == "4.3.1"
        assert config["synthesis"]["default_ecu_name"] == "BodyECU"
        assert config["synthesis"]["default_period_ms"] == 100
        assert type(config["project"]["name"]) is str

    def test_missing_explicit_file(self, tmp_path):
        from swcforge.config import load_config

        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.toml")

    def test_env_override_wins_over_file(self, tmp_path, monkeypatch):
        from swcforge.config import load_config

        config_file = tmp_path / "custom.toml"
        config_file.write_text("[extraction]\nmin_line_length = 15\n")
        monkeypatch.setenv("SWCFORGE_EXTRACTION_MIN_LINE_LENGTH", "20")

        assert load_config(config_file)["extraction"]["min_line_length"] == 20


class TestTryParseEnvValue:
    """_try_parse_env_value produces typed values."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ('["a_swc", "b_swc"]', ["a_swc", "b_swc"]),
            ('{"key": "value"}', {"key": "value"}),
            ("true", True),
            ("FALSE", False),
            ("42", 42),
            ("SystemECU", "SystemECU"),
            ("[not valid json", "[not valid json"),
        ],
    )
    def test_parsing(self, raw, expected):
        from swcforge.config import _try_parse_env_value

        assert _try_parse_env_value(raw) == expected


class TestApplyEnvOverrides:
    def test_sets_key_in_section(self, monkeypatch):
        from swcforge.config import _apply_env_overrides

        monkeypatch.setenv("SWCFORGE_SYNTHESIS_DEFAULT_ECU_NAME", "GatewayECU")

        config = _apply_env_overrides({"synthesis": {}})

        assert config["synthesis"]["default_ecu_name"] == "GatewayECU"

    def test_list_value(self, monkeypatch):
        from swcforge.config import _apply_env_overrides

        monkeypatch.setenv("SWCFORGE_EXTRACTION_STOPWORDS", '["gateway"]')

        config = _apply_env_overrides({})

        assert config["extraction"]["stopwords"] == ["gateway"]

    def test_prefix_without_key_ignored(self, monkeypatch):
        from swcforge.config import _apply_env_overrides

        monkeypatch.setenv("SWCFORGE_LOGGING", "DEBUG")

        assert _apply_env_overrides({}) == {}


class TestSectionConfigs:
    """Typed views over the configuration sections."""

    def test_extraction_config(self):
        from swcforge.extraction import ExtractionConfig

        config = ExtractionConfig.from_dict(
            {"extraction": {"min_line_length": 5}, "synthesis": {"default_period_ms": 50}}
        )

        assert config.min_line_length == 5
        assert config.min_token_length == 3
        assert config.default_period_ms == 50
        assert "system" in config.stopwords

    def test_synthesis_config_defaults(self):
        from swcforge.synthesis import SynthesisConfig

        config = SynthesisConfig.from_dict({})

        assert config.default_ecu_name == "SystemECU"
        assert config.signal_data_type == "uint16"
        assert config.fallback_data_type == "uint32"


class TestLogging:
    @pytest.fixture(autouse=True)
    def _restore_package_logger(self):
        import logging

        logger = logging.getLogger("swcforge")
        handlers, level = list(logger.handlers), logger.level
        yield
        logger.handlers[:] = handlers
        logger.setLevel(level)

    def test_setup_logging_is_idempotent(self):
        import logging

        from swcforge.utilities.logger import setup_logging

        logger = setup_logging("debug")
        handlers = list(logger.handlers)
        again = setup_logging("ERROR")

        assert again is logger
        assert again.handlers == handlers
        assert again.level == logging.ERROR

    def test_level_from_config(self):
        import logging

        from swcforge.utilities.logger import setup_logging_from_config

        logger = setup_logging_from_config({"logging": {"level": "INFO"}})

        assert logger.level == logging.INFO
