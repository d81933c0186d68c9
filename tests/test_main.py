"""Unit tests for the main entry point.

Tests the main() function including:
- CLI argument parsing
- Log level priority (CLI > env > config)
- Manual run, rescore, top-N and daemon modes
- Exit code handling
"""

from unittest.mock import Mock, patch

import pytest

from jobhunter.config.environment import EnvironmentConfig
from jobhunter.config.exceptions import ConfigurationError
from jobhunter.main import build_parser, format_ranked, main, resolve_log_level
from jobhunter.persistence import JobRepository, close_database, get_session, init_database
from tests.helpers import make_config, make_record


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite:///{tmp_path / 'jobs.db'}"


@pytest.fixture
def runtime(database_url):
    """Patch config loading and logging so main() runs against a temp database."""
    with patch("jobhunter.main.load_config", return_value=make_config()) as load_config, patch(
        "jobhunter.main.load_environment_config", return_value=EnvironmentConfig(database_url=database_url)
    ), patch("jobhunter.main.configure_logging") as configure_logging:
        yield Mock(load_config=load_config, configure_logging=configure_logging)


class TestArgumentParsing:
    """Test suite for build_parser()."""

    def test_defaults(self):
        args = build_parser().parse_args([])

        assert args.config is None
        assert args.manual_run is False
        assert args.rescore is False
        assert args.top is None

    def test_modes_are_mutually_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--manual-run", "--top", "5"])

    def test_top_with_filters(self):
        args = build_parser().parse_args(["--top", "10", "--seniority", "senior", "--unacted"])

        assert args.top == 10
        assert args.seniority == "senior"
        assert args.unacted is True

    def test_invalid_log_level(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--log-level", "LOUD"])


class TestHelpers:
    """Test suite for resolve_log_level() and format_ranked()."""

    def test_log_level_priority(self):
        config = make_config(logging={"level": "WARNING"})

        assert resolve_log_level("ERROR", EnvironmentConfig(log_level="DEBUG"), config) == "ERROR"
        assert resolve_log_level(None, EnvironmentConfig(log_level="DEBUG"), config) == "DEBUG"
        assert resolve_log_level(None, EnvironmentConfig(), config) == "WARNING"

    def test_format_ranked_empty(self):
        assert format_ranked([]) == "No jobs found."

    def test_format_ranked(self):
        jobs = [
            make_record(score=8.5, summary="Strong match."),
            make_record(external_id="job-2", title="Platform Engineer", location=None, score=6.0),
        ]

        lines = format_ranked(jobs).splitlines()

        assert lines[0] == "  1. [ 8.50] Senior Backend Engineer @ Acme (Toronto, ON)"
        assert lines[1] == "       https://jobs.example.com/acme/job-1"
        assert lines[2] == "       Strong match."
        assert lines[3] == "  2. [ 6.00] Platform Engineer @ Acme (location unknown)"


class TestMain:
    """Test suite for main() function."""

    def test_configuration_error_exits_1(self, capsys):
        with patch(
            "jobhunter.main.load_config",
            side_effect=ConfigurationError("Config file not found", suggestions=["Create config.yaml"]),
        ):
            exit_code = main(["--config", "nonexistent.yaml"])

        assert exit_code == 1
        assert "Configuration Error: Config file not found" in capsys.readouterr().err

    def test_keyboard_interrupt_exits_0(self):
        with patch("jobhunter.main.load_config", side_effect=KeyboardInterrupt()):
            assert main([]) == 0

    def test_unexpected_startup_error_exits_1(self, runtime):
        with patch("jobhunter.main.init_database", side_effect=RuntimeError("disk full")):
            assert main(["--manual-run"]) == 1

    def test_manual_run(self, runtime, capsys):
        summary = Mock()
        summary.render.return_value = "Ingestion run abc finished"

        with patch("jobhunter.main.IngestionOrchestrator") as orchestrator_class:
            orchestrator_class.return_value.run_once.return_value = summary
            exit_code = main(["--manual-run", "--log-level", "DEBUG"])

        assert exit_code == 0
        orchestrator_class.return_value.run_once.assert_called_once_with()
        assert "Ingestion run abc finished" in capsys.readouterr().out
        assert runtime.configure_logging.call_args.kwargs["level"] == "DEBUG"

    def test_top_prints_ranked_jobs(self, runtime, database_url, capsys):
        init_database(database_url)
        with get_session() as session:
            repo = JobRepository(session)
            repo.insert(make_record(external_id="a", company="Acme", score=9.0, seniority="senior"))
            repo.insert(make_record(external_id="b", company="Acme", score=8.0, seniority="senior"))
            repo.insert(make_record(external_id="c", company="Globex", score=7.0, seniority="senior"))
        close_database()

        exit_code = main(["--top", "2"])

        assert exit_code == 0
        lines = [line for line in capsys.readouterr().out.splitlines() if line.lstrip()[:2] in ("1.", "2.")]
        assert "Acme" in lines[0]
        assert "Globex" in lines[1]

    def test_rescore_reloads_config(self, runtime, capsys):
        with patch("jobhunter.main.reload_config", return_value=make_config(version=2)) as reload_config:
            exit_code = main(["--rescore"])

        assert exit_code == 0
        reload_config.assert_called_once()
        assert "Rescored 0 jobs with config v2" in capsys.readouterr().out

    @patch("signal.signal")
    def test_daemon_mode(self, mock_signal, runtime):
        with patch("jobhunter.main.SchedulerService") as scheduler_class:
            # Simulate immediate shutdown so the test doesn't hang
            scheduler_class.return_value.start.side_effect = KeyboardInterrupt()
            exit_code = main([])

        assert exit_code == 0
        scheduler_class.return_value.start.assert_called_once()
        assert scheduler_class.call_args.kwargs["interval_seconds"] == 14400
        assert scheduler_class.call_args.kwargs["timezone_name"] == "UTC"
