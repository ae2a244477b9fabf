import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from openprocessing_downloader.config import ConfigError, Mode, build_settings


class TestBuildSettings:
    def test_defaults(self):
        settings = build_settings()
        assert settings.search_mode is Mode.SEARCH_BY_TERM
        assert settings.search_term == "unusual"
        assert settings.download_assets is True
        assert settings.skip_forks is False
        assert settings.save_dir == Path("downloads")
        assert settings.page_size == 100

    def test_settings_are_immutable(self):
        settings = build_settings()
        with pytest.raises(ValidationError):
            settings.skip_forks = True

    def test_overrides_win_over_config_file(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(
            json.dumps({"search_mode": "SEARCH_BY_USER_ID", "user_id": "1", "skip_forks": True}),
            encoding="utf-8",
        )
        settings = build_settings({"user_id": "2", "skip_forks": None}, config_file=config_file)
        assert settings.search_mode is Mode.SEARCH_BY_USER_ID
        assert settings.user_id == "2"
        assert settings.skip_forks is True

    def test_mode_is_case_insensitive(self):
        assert build_settings({"search_mode": "search_by_sketch_id"}).search_mode is Mode.SEARCH_BY_SKETCH_ID

    def test_unknown_mode_is_rejected(self):
        with pytest.raises(ConfigError, match="search_mode"):
            build_settings({"search_mode": "SEARCH_BY_COLOR"})

    def test_unknown_config_keys_are_rejected(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"SEARCH_TERM": "x"}), encoding="utf-8")
        with pytest.raises(ConfigError, match="Unknown config keys"):
            build_settings(config_file=config_file)

    def test_invalid_json_is_rejected(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text("{nope", encoding="utf-8")
        with pytest.raises(ConfigError, match="not valid JSON"):
            build_settings(config_file=config_file)

    def test_negative_delays_are_rejected(self):
        with pytest.raises(ConfigError, match="load_more_delay_ms"):
            build_settings({"load_more_delay_ms": -1})

    def test_boolean_strings_are_accepted(self):
        assert build_settings({"headless": "false"}).headless is False

    def test_search_url_encodes_term(self):
        settings = build_settings({"search_term": "game of life"})
        assert settings.search_url == (
            "https://openprocessing.org/browse/?time=anytime&type=all&q=game%20of%20life"
        )

    def test_numeric_ids_are_coerced_to_strings(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"user_id": 123, "sketch_id": 456}), encoding="utf-8")
        settings = build_settings(config_file=config_file)
        assert settings.user_id == "123"
        assert settings.sketch_id == "456"

    def test_null_output_dir_is_rejected(self, tmp_path):
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"save_dir": None}), encoding="utf-8")
        with pytest.raises(ConfigError, match="save_dir"):
            build_settings(config_file=config_file)

    def test_fractional_delay_is_rejected(self):
        with pytest.raises(ConfigError, match="settle_delay_ms"):
            build_settings({"settle_delay_ms": 2.9})

    def test_zero_page_size_is_rejected(self):
        with pytest.raises(ConfigError, match="page_size"):
            build_settings({"page_size": 0})

    def test_unknown_override_is_rejected(self):
        with pytest.raises(ConfigError, match="search_colour"):
            build_settings({"search_colour": "red"})

    def test_home_is_expanded_in_output_dir(self):
        assert "~" not in str(build_settings({"save_dir": "~/sketches"}).save_dir)
