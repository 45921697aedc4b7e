#!/usr/bin/env python3
"""
CLI interface for the podcast publishing pipeline.

Usage:
    uv run -m src.pipeline watch
    uv run -m src.pipeline watch --once
    uv run -m src.pipeline process <FILE_ID> cosmic-06.mp3
    uv run -m src.pipeline regenerate 6
    uv run -m src.pipeline regenerate 6 --publish
    uv run -m src.pipeline status
    uv run -m src.pipeline status 6

Examples:
    # Poll the Drive folder every 5 minutes (CHECK_INTERVAL) until interrupted
    uv run -m src.pipeline watch --verbose

    # Single detection pass, wait for the queue to drain, then exit
    uv run -m src.pipeline watch --once

    # Rebuild an episode document after editing extracted-content.json
    uv run -m src.pipeline regenerate 6 --publish
"""

import argparse
import logging
import sys
import time
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from src.config import Settings
from src.errors import CastsmithError, ConfigurationError
from src.ingestion.models import CandidateFile
from src.logger import setup_all_loggers
from src.storage import EpisodeDataStore
from .models import Job, JobStatus
from .runner import regenerate_document
from .service import build_repo_updater, build_service


console = Console()
logger = logging.getLogger("pipeline")

STEP_COLUMNS = ("download", "transcription", "extraction", "upload", "repository")


def _report_job(job: Job) -> None:
    if job.status == JobStatus.COMPLETED:
        console.print(f"[green]✓[/green] {job.file.name} (episode {job.episode_number}) published")
    else:
        console.print(f"[red]✗[/red] {job.file.name} failed: {job.error}")


def run_watch(settings: Settings, once: bool, interval: Optional[float]) -> int:
    service = build_service(settings, on_job_finished=_report_job)
    interval = interval if interval is not None else settings.check_interval

    if once:
        try:
            job_ids = service.watcher.check_for_new_files()
        except Exception as e:
            logger.error(f"Error checking for new files: {e}", exc_info=True)
            console.print(f"[red]✗ Detection pass failed:[/red] {e}")
            return 1
        console.print(f"Enqueued {len(job_ids)} file(s)")
        service.queue.wait_until_idle()
        return 0

    console.print(f"Watching for new recordings every {interval:.0f}s (Ctrl+C to stop)")
    try:
        while True:
            try:
                service.watcher.check_for_new_files()
            except Exception as e:
                # a failed pass is retried at the next interval
                logger.error(f"Error checking for new files: {e}", exc_info=True)
            time.sleep(interval)
    except KeyboardInterrupt:
        console.print("Stopping, waiting for the current job to finish...")
        service.queue.wait_until_idle()
    return 0


def run_process(settings: Settings, file_id: str, name: str) -> int:
    finished: List[Job] = []
    service = build_service(settings, on_job_finished=finished.append)

    if service.classifier.classify(name) is None:
        console.print(f"[red]✗[/red] {name} does not match the {settings.naming_tag}-NN naming pattern")
        return 1

    job_id = service.queue.enqueue(CandidateFile(id=file_id, name=name))
    console.print(f"Job {job_id} queued for {name}")
    service.queue.wait_until_idle()

    for job in finished:
        _report_job(job)
    return 0 if all(job.status == JobStatus.COMPLETED for job in finished) else 1


def run_regenerate(settings: Settings, episode_number: int, publish: bool) -> int:
    settings.validate(require=("repository",) if publish else ())
    store = EpisodeDataStore(settings.data_dir)

    content = regenerate_document(store, settings.document, episode_number)
    if content is None:
        console.print(f"[red]✗[/red] No extracted content stored for episode {episode_number}")
        return 1
    console.print(
        f"[green]✓[/green] Regenerated {store.episode_dir(episode_number) / 'generated-episode.md'}"
    )
    if not publish:
        return 0

    upload = store.load_upload_result(episode_number)
    if upload is None:
        console.print(f"[red]✗[/red] Episode {episode_number} has no upload result, cannot publish")
        return 1

    result = build_repo_updater(settings).publish(content, upload)
    store.record_publish(episode_number, {**result.to_dict(), "audio_url": upload.audio_url})
    if result.committed:
        console.print(f"[green]✓[/green] Published {result.episode_file}")
    else:
        console.print(f"{result.episode_file} unchanged, nothing committed")
    return 0


def _step_cell(done: bool) -> str:
    return "[green]✓[/green]" if done else "[red]✗[/red]"


def run_status(settings: Settings, episode_number: Optional[int]) -> int:
    store = EpisodeDataStore(settings.data_dir)
    if episode_number is not None:
        metadata = store.get_metadata(episode_number)
        records = [metadata] if metadata else []
    else:
        records = store.list_episodes()

    if not records:
        console.print(f"No episode data found in {settings.data_dir}")
        return 1 if episode_number is not None else 0

    table = Table(title="CastSmith episodes")
    table.add_column("Episode", justify="right")
    table.add_column("File")
    table.add_column("Status")
    for step in STEP_COLUMNS:
        table.add_column(step.capitalize(), justify="center")
    table.add_column("Time", justify="right")
    table.add_column("Error", overflow="fold")

    for record in records:
        steps = record.get("steps", {})
        processing_time = record.get("processing_time_ms")
        status = record.get("status", "?")
        color = {"completed": "green", "failed": "red"}.get(status, "yellow")
        table.add_row(
            str(record.get("episode_number")),
            record.get("filename", ""),
            f"[{color}]{status}[/{color}]",
            *(_step_cell(steps.get(step, False)) for step in STEP_COLUMNS),
            f"{processing_time / 1000:.0f}s" if processing_time is not None else "-",
            record.get("error") or "",
        )
    console.print(table)
    return 0


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="CastSmith - turns recordings dropped in Google Drive into published podcast episodes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  watch         Poll the Drive folder and process new recordings
  process       Process one Drive file by id and name
  regenerate    Rebuild an episode document from its stored extracted content
  status        Show the processing record of stored episodes

Notes:
  - Configuration is read from the environment and .env
  - Logs written to logs/castsmith.log
  - Episode data written to DATA_DIR (default: generated/)
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log to the console")
    parser.add_argument("--env-file", metavar="PATH", help="Read configuration from this .env file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    watch = subparsers.add_parser("watch", help="Poll the Drive folder for new recordings")
    watch.add_argument("--once", action="store_true", help="Run a single detection pass and exit")
    watch.add_argument(
        "--interval",
        type=float,
        metavar="SECONDS",
        help="Seconds between detection passes (default: CHECK_INTERVAL)",
    )

    process = subparsers.add_parser("process", help="Process one Drive file")
    process.add_argument("file_id", help="Google Drive file id")
    process.add_argument("name", help="File name, e.g. cosmic-06.mp3")

    regenerate = subparsers.add_parser("regenerate", help="Rebuild an episode document")
    regenerate.add_argument("episode", type=int, help="Episode number")
    regenerate.add_argument(
        "--publish", action="store_true", help="Resolve placeholders and commit the document"
    )

    status = subparsers.add_parser("status", help="Show stored episode records")
    status.add_argument("episode", type=int, nargs="?", help="Only this episode")

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)
    setup_all_loggers(verbose=args.verbose)

    try:
        settings = Settings.from_env(args.env_file)
        if args.command == "watch":
            return run_watch(settings, args.once, args.interval)
        if args.command == "process":
            return run_process(settings, args.file_id, args.name)
        if args.command == "regenerate":
            return run_regenerate(settings, args.episode, args.publish)
        return run_status(settings, args.episode)
    except ConfigurationError as e:
        console.print(f"[red]✗ Configuration error:[/red] {e}")
        return 2
    except CastsmithError as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        console.print(f"[red]✗ {args.command} failed:[/red] {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
