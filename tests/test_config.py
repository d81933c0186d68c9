"""Integration tests for configuration module."""

import warnings
from pathlib import Path

import pytest

from jobhunter.config import ConfigurationError, load_config, reload_config
from jobhunter.config.duration import (
    DurationParseError,
    humanize_seconds,
    parse_duration,
    validate_duration_range,
)
from jobhunter.config.environment import load_environment_config
from jobhunter.config.validators import check_for_warnings
from tests.helpers import make_config

# Test fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"


class TestConfigurationLoading:
    """Test configuration loading from YAML files."""

    def test_load_valid_config(self):
        app_config = load_config(FIXTURES_DIR / "valid_config.yaml")

        assert app_config.version == 1
        assert app_config.schedule.interval_seconds == 7200
        assert app_config.schedule.timezone == "America/Toronto"
        assert app_config.schedule.run_on_startup is False

        assert app_config.providers.enabled_names() == ["greenhouse", "serpapi"]
        boards = app_config.providers.greenhouse.boards
        assert [board.slug for board in boards] == ["acmecorp", "globex"]
        assert app_config.providers.serpapi.max_pages == 2
        assert app_config.providers.serpapi.monthly_budget == 120

        # Keyword lists are lowercased
        assert app_config.filters.include_titles == ["engineer", "developer"]
        assert app_config.scoring.weights.total == 10.0
        assert app_config.scoring.summary_threshold == 6.5
        assert app_config.pipeline.tiers == [["greenhouse"], ["serpapi"]]
        assert app_config.pipeline.stale_after_seconds == 14 * 86400

        assert app_config.logging.level == "DEBUG"
        assert app_config.logging.format == "json"

    def test_load_minimal_config(self):
        app_config = load_config(FIXTURES_DIR / "minimal_config.yaml")

        assert app_config.providers.enabled_names() == ["remotive"]

        # Verify defaults are applied
        assert app_config.schedule.interval == "4h"
        assert app_config.schedule.timezone == "UTC"
        assert app_config.pipeline.stale_after_seconds == 30 * 86400
        assert app_config.pipeline.tiers[0] == ["coresignal"]
        assert app_config.scoring.summary_threshold == 5.0
        assert app_config.logging.level == "INFO"
        assert app_config.logging.format == "key-value"

    def test_example_config_is_valid(self):
        app_config = load_config(FIXTURES_DIR.parent.parent / "config.example.yaml")

        assert app_config.providers.enabled_names() == ["greenhouse", "ashby", "remotive"]
        assert app_config.scoring.weights.total == 10.0

    def test_version_in_file_is_ignored(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            (FIXTURES_DIR / "minimal_config.yaml").read_text() + "\nversion: 99\n"
        )

        assert load_config(config_file, version=4).version == 4

    def test_reload_increments_version(self):
        first = load_config(FIXTURES_DIR / "minimal_config.yaml")

        second = reload_config(first, FIXTURES_DIR / "valid_config.yaml")

        assert second.version == 2
        assert first.version == 1
        assert first.providers.enabled_names() == ["remotive"]

    def test_config_file_not_found(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(Path("nonexistent.yaml"))

        assert "not found" in str(exc_info.value).lower()

    def test_default_locations_searched(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        with pytest.raises(ConfigurationError) as exc_info:
            load_config()

        assert "config.example.yaml" in str(exc_info.value)

        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "config.yaml").write_text((FIXTURES_DIR / "minimal_config.yaml").read_text())
        assert load_config().providers.enabled_names() == ["remotive"]

    def test_invalid_yaml_syntax(self, tmp_path):
        invalid_yaml = tmp_path / "invalid.yaml"
        invalid_yaml.write_text("providers:\n  greenhouse: 'test\n    invalid yaml")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(invalid_yaml)

        assert "parse" in str(exc_info.value).lower()

    def test_empty_file(self, tmp_path):
        empty = tmp_path / "empty.yaml"
        empty.write_text("")

        with pytest.raises(ConfigurationError, match="empty"):
            load_config(empty)

    def test_top_level_must_be_mapping(self, tmp_path):
        listing = tmp_path / "list.yaml"
        listing.write_text("- greenhouse\n- ashby\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            load_config(listing)


class TestConfigurationValidation:
    """Test configuration validation rules."""

    def test_no_enabled_providers(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(FIXTURES_DIR / "invalid_no_providers.yaml")

        error = exc_info.value
        assert error.message == "Configuration validation failed"
        assert any("At least one provider must be enabled" in e for e in error.errors)
        assert "Suggestions:" in str(error)

    def test_unknown_provider_in_tiers(self):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(FIXTURES_DIR / "invalid_tiers.yaml")

        assert "Unknown provider in tiers: 'lever'" in str(exc_info.value)

    def test_provider_in_two_tiers(self):
        with pytest.raises(ValueError, match="more than one tier"):
            make_config(pipeline={"tiers": [["greenhouse"], ["ashby", "greenhouse"]]})

    def test_conflicting_terms(self):
        with pytest.raises(ValueError, match="both included and excluded"):
            make_config(filters={"include_titles": ["engineer"], "exclude_titles": ["Engineer"]})

    def test_duplicate_board_names(self):
        with pytest.raises(ValueError, match="Duplicate board names: acme"):
            make_config(providers={"greenhouse": {"enabled": True, "boards": [{"name": "acme"}, {"name": "acme"}]}})

    def test_interval_too_short(self):
        with pytest.raises(ValueError) as exc_info:
            make_config(schedule={"interval": "5m"})

        assert "too short" in str(exc_info.value).lower()

    def test_stale_after_too_long(self):
        with pytest.raises(ValueError, match="too long"):
            make_config(pipeline={"stale_after": "400d"})

    def test_unknown_timezone(self):
        with pytest.raises(ValueError, match="Unknown timezone"):
            make_config(schedule={"timezone": "Mars/Olympus_Mons"})

    def test_factor_out_of_range(self):
        with pytest.raises(ValueError, match="between 0 and 1"):
            make_config(scoring={"interview_preferences": {"assignment": 1.5}})

    def test_unknown_seniority_level(self):
        with pytest.raises(ValueError, match="Unknown seniority level"):
            make_config(scoring={"target_seniority": ["principal"]})

    def test_all_weights_zero(self):
        zero = {
            "remote_eligible": 0,
            "seniority_match": 0,
            "employer_location": 0,
            "interview_style": 0,
            "role_type": 0,
        }
        with pytest.raises(ValueError):
            make_config(scoring={"weights": zero})

    def test_invalid_log_level(self):
        with pytest.raises(ValueError):
            make_config(logging={"level": "VERBOSE"})


class TestConfigurationWarnings:
    """Test non-fatal configuration checks."""

    def test_clean_config_has_no_warnings(self):
        assert check_for_warnings(make_config()) == []

    def test_enabled_provider_without_boards(self):
        config = make_config(providers={"ashby": {"enabled": True}})

        assert "Provider 'ashby' is enabled but has no boards and will fetch nothing" in check_for_warnings(config)

    def test_board_missing_keywords(self):
        config = make_config(providers={"adzuna": {"enabled": True, "boards": [{"name": "ca", "country": "ca"}]}})

        assert "Board 'ca' of provider 'adzuna' has no keywords" in check_for_warnings(config)

    def test_provider_outside_tiers(self):
        config = make_config(pipeline={"tiers": [["coresignal"]]})

        assert "Provider 'greenhouse' is not assigned to a tier and will run last" in check_for_warnings(config)

    def test_zero_weight(self):
        config = make_config(scoring={"weights": {"interview_style": 0}})

        assert "Scoring weight 'interview_style' is zero and will not affect scores" in check_for_warnings(config)

    def test_loader_emits_user_warnings(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("providers:\n  ashby:\n    enabled: true\nfilters:\n  include_titles: [engineer]\n")

        with pytest.warns(UserWarning, match="no boards"):
            load_config(config_file)

    def test_valid_fixture_loads_without_warnings(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error", UserWarning)
            load_config(FIXTURES_DIR / "valid_config.yaml")


class TestDurationParsing:
    """Test duration parsing utilities."""

    @pytest.mark.parametrize(
        "text,seconds",
        [
            ("15m", 900),
            ("4h", 14400),
            ("30s", 30),
            ("30d", 2592000),
            ("2w", 1209600),
            ("1h30m", 5400),
            ("1h 30m", 5400),
            ("PT15M", 900),
            ("PT1H30M", 5400),
            ("P30D", 2592000),
            ("pt4h", 14400),
        ],
    )
    def test_parse_duration(self, text, seconds):
        assert parse_duration(text) == seconds

    @pytest.mark.parametrize("text", ["invalid", "15x", "4h garbage", "P", "PT", "0h", ""])
    def test_parse_invalid(self, text):
        with pytest.raises(DurationParseError):
            parse_duration(text)

    def test_validate_duration_range_too_short(self):
        with pytest.raises(DurationParseError) as exc_info:
            validate_duration_range(120, min_seconds=300, max_seconds=3600)

        assert "short" in str(exc_info.value).lower()

    def test_validate_duration_range_too_long(self):
        with pytest.raises(DurationParseError) as exc_info:
            validate_duration_range(172800, min_seconds=60, max_seconds=86400, label="Interval")

        assert str(exc_info.value) == "Interval too long: 2 days. Maximum is 1 day."

    def test_validate_duration_range_valid(self):
        # Should not raise
        validate_duration_range(900, min_seconds=300, max_seconds=86400)

    @pytest.mark.parametrize(
        "seconds,text",
        [(1, "1 second"), (90, "90 seconds"), (14400, "4 hours"), (604800, "1 week"), (5400, "90 minutes")],
    )
    def test_humanize_seconds(self, seconds, text):
        assert humanize_seconds(seconds) == text


class TestEnvironmentVariables:
    """Test environment variable loading and validation."""

    ENV_VARS = (
        "DATABASE_URL",
        "LOG_LEVEL",
        "ANTHROPIC_API_KEY",
        "ADZUNA_APP_ID",
        "ADZUNA_APP_KEY",
        "CORESIGNAL_API_KEY",
        "BRIGHTDATA_API_TOKEN",
        "SERPAPI_API_KEY",
    )

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in self.ENV_VARS:
            monkeypatch.delenv(name, raising=False)

    def test_all_optional(self):
        env_config = load_environment_config()

        assert env_config.database_url == "sqlite:///./data/jobhunter.db"
        assert env_config.anthropic_api_key is None
        assert env_config.log_level is None

    def test_credentials_loaded(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite:///tmp/test.db")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
        monkeypatch.setenv("ADZUNA_APP_ID", "id")
        monkeypatch.setenv("ADZUNA_APP_KEY", "key")
        monkeypatch.setenv("SERPAPI_API_KEY", "serp")

        env_config = load_environment_config()

        assert env_config.database_url == "sqlite:///tmp/test.db"
        assert env_config.log_level == "DEBUG"
        assert env_config.anthropic_api_key == "sk-test"
        assert (env_config.adzuna_app_id, env_config.adzuna_app_key) == ("id", "key")
        assert env_config.serpapi_api_key == "serp"

    def test_incomplete_adzuna_pair(self, monkeypatch):
        monkeypatch.setenv("ADZUNA_APP_ID", "id")

        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()

        assert "ADZUNA_APP_KEY is not" in str(exc_info.value)

    def test_invalid_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")
        monkeypatch.setenv("ADZUNA_APP_KEY", "key")

        with pytest.raises(ConfigurationError) as exc_info:
            load_environment_config()

        # Both problems are reported together
        assert len(exc_info.value.errors) == 2
        assert "LOG_LEVEL" in str(exc_info.value)


class TestConfigurationError:
    """Test ConfigurationError rendering."""

    def test_render_with_errors_and_suggestions(self):
        error = ConfigurationError("Broken", errors=["first", "second"], suggestions=["fix it"])

        assert str(error) == "Broken\n\nValidation Errors:\n  1. first\n  2. second\n\nSuggestions:\n  - fix it"

    def test_render_message_only(self):
        assert str(ConfigurationError("Broken")) == "Broken"
