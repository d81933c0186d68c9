"""Main entry point for the Job Hunter ingestion service."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import asyncio
import os
import signal
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional

from jobhunter.config.environment import EnvironmentConfig, load_environment_config
from jobhunter.config.exceptions import ConfigurationError
from jobhunter.config.loader import load_config, reload_config
from jobhunter.config.models import AppConfig
from jobhunter.domain.models import JobRecord
from jobhunter.logging import get_logger
from jobhunter.logging.config import configure_logging
from jobhunter.persistence import JobRepository, close_database, get_session, init_database
from jobhunter.pipeline import IngestionOrchestrator
from jobhunter.scheduler import SchedulerService
from jobhunter.scoring import AnalysisClient, ScoringStage

logger = get_logger(__name__, component="cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Job Hunter - tiered job ingestion, deduplication and scoring service"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml, then config/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides environment and config)",
    )

    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--manual-run",
        action="store_true",
        help="Run a single ingestion immediately and exit",
    )
    mode.add_argument(
        "--rescore",
        action="store_true",
        help="Reload configuration and re-score stored jobs, then exit",
    )
    mode.add_argument(
        "--top",
        type=int,
        metavar="N",
        default=None,
        help="Print the N best-ranked jobs and exit",
    )

    parser.add_argument(
        "--rerun-analysis",
        action="store_true",
        help="With --rescore: re-extract metadata instead of using stored values",
    )
    parser.add_argument(
        "--with-summaries",
        action="store_true",
        help="With --rescore: regenerate summaries for jobs above the threshold",
    )
    parser.add_argument(
        "--seniority",
        default=None,
        help="With --top: only show jobs at this seniority",
    )
    parser.add_argument(
        "--unacted",
        action="store_true",
        help="With --top: hide jobs already applied to or otherwise acted on",
    )
    return parser


def resolve_log_level(cli_level: Optional[str], env_config: EnvironmentConfig, app_config: AppConfig) -> str:
    """CLI flag, then LOG_LEVEL, then the config file."""
    return cli_level or env_config.log_level or app_config.logging.level or "INFO"


def format_ranked(jobs: List[JobRecord]) -> str:
    if not jobs:
        return "No jobs found."
    lines = []
    for position, job in enumerate(jobs, start=1):
        location = job.location or "location unknown"
        lines.append(f"{position:>3}. [{job.score:5.2f}] {job.title} @ {job.company} ({location})")
        lines.append(f"       {job.link}")
        if job.summary:
            lines.append(f"       {job.summary}")
    return "\n".join(lines)


def run_rescore(app_config: AppConfig, env_config: EnvironmentConfig, args: argparse.Namespace) -> int:
    fresh_config = reload_config(app_config, args.config)
    analyzer = AnalysisClient(
        env_config.anthropic_api_key,
        settings=fresh_config.scoring.analysis,
        candidate_profile=fresh_config.scoring.candidate_profile,
    )
    stage = ScoringStage(analyzer, fresh_config.scoring)
    try:
        rescored = asyncio.run(
            stage.rescore_all(rerun_analysis=args.rerun_analysis, with_summaries=args.with_summaries)
        )
    finally:
        analyzer.close()

    print(f"Rescored {rescored} jobs with config v{fresh_config.version}")
    return 0


def run_top(limit: int, args: argparse.Namespace) -> int:
    with get_session() as session:
        jobs = JobRepository(session).query_ranked(
            limit=limit,
            seniority=args.seniority,
            acted="unacted" if args.unacted else "any",
        )
    print(format_ranked(jobs))
    return 0


def run_daemon(app_config: AppConfig, orchestrator: IngestionOrchestrator, start_time: float) -> int:
    shutdown_event = threading.Event()

    scheduler_service = SchedulerService(
        run_callable=orchestrator.run_once,
        interval_seconds=app_config.schedule.interval_seconds,
        run_on_startup=app_config.schedule.run_on_startup,
        timezone_name=app_config.schedule.timezone,
        shutdown_event=shutdown_event,
    )

    def signal_handler(signum, frame):
        logger.info(
            f"Received signal {signum}, shutting down",
            extra={"event": "service.signal_received", "signal": signum},
        )
        scheduler_service.shutdown(wait=False)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    scheduler_service.start()
    logger.info("Scheduler started. Press Ctrl+C to stop", extra={"event": "service.daemon_mode.started"})

    try:
        shutdown_event.wait()
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received, shutting down", extra={"event": "service.keyboard_interrupt"})
        scheduler_service.shutdown(wait=False)

    logger.info(
        "Job Hunter stopped",
        extra={"event": "service.stopping", "uptime_seconds": round(time.time() - start_time, 2)},
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for configuration or startup failure)
    """
    start_time = time.time()
    args = build_parser().parse_args(argv)

    try:
        app_config = load_config(args.config)
        env_config = load_environment_config()

        log_level = resolve_log_level(args.log_level, env_config, app_config)
        configure_logging(
            level=log_level,
            format_type=app_config.logging.format,
            environment=os.environ.get("ENVIRONMENT", "local"),
        )

        logger.info(
            "Job Hunter starting",
            extra={
                "event": "service.starting",
                "config_version": app_config.version,
                "log_level": log_level,
                "providers": app_config.providers.enabled_names(),
            },
        )

        init_database(env_config.database_url)

        if args.top is not None:
            return run_top(args.top, args)

        if args.rescore:
            return run_rescore(app_config, env_config, args)

        orchestrator = IngestionOrchestrator(app_config, env_config)

        if args.manual_run:
            logger.info("Executing manual ingestion run", extra={"event": "service.manual_run.starting"})
            summary = orchestrator.run_once()
            print(summary.render())
            return 0

        return run_daemon(app_config, orchestrator, start_time)

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error during startup",
            extra={"event": "service.startup.failed", "error_type": type(e).__name__, "error": str(e)},
            exc_info=True,
        )
        return 1
    finally:
        close_database()


if __name__ == "__main__":
    sys.exit(main())
