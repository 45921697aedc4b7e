"""
Wiring of the production collaborators around the work queue.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Optional

from src.config import Settings
from src.extraction import OpenAIExtractor
from src.ingestion import FileClassifier
from src.ingestion.drive import DriveWatcher, GoogleDriveClient
from src.publishing import GitRepoClient, RepoUpdater
from src.storage import CloudStorage, EpisodeDataStore
from src.transcription import AssemblyAITranscriber
from .models import Job
from .runner import PipelineRunner
from .work_queue import WorkQueue


logger = logging.getLogger("pipeline")


@dataclass
class CastsmithService:
    settings: Settings
    classifier: FileClassifier
    drive: GoogleDriveClient
    store: EpisodeDataStore
    repo_updater: RepoUpdater
    runner: PipelineRunner
    queue: WorkQueue
    watcher: DriveWatcher


def build_classifier(settings: Settings) -> FileClassifier:
    return FileClassifier(settings.naming_tag, settings.transcript_suffix)


def build_repo_updater(settings: Settings) -> RepoUpdater:
    return RepoUpdater(GitRepoClient(settings.repository), settings.repository)


def build_service(
    settings: Settings,
    on_job_finished: Optional[Callable[[Job], None]] = None,
) -> CastsmithService:
    """
    Build every adapter from validated settings.

    Raises:
        ConfigurationError: if a required variable is missing
    """
    settings.validate()

    classifier = build_classifier(settings)
    drive = GoogleDriveClient(settings.drive)
    store = EpisodeDataStore(settings.data_dir)
    repo_updater = build_repo_updater(settings)
    runner = PipelineRunner(
        settings=settings,
        classifier=classifier,
        drive=drive,
        transcriber=AssemblyAITranscriber(settings.transcription),
        extractor=OpenAIExtractor(settings.extraction, settings.document.fallback_description),
        publisher=CloudStorage(settings.storage),
        repo_updater=repo_updater,
        store=store,
    )
    queue = WorkQueue(runner, classifier=classifier, on_job_finished=on_job_finished)
    watcher = DriveWatcher(
        drive,
        queue,
        classifier,
        lookback=timedelta(seconds=settings.drive.initial_lookback_seconds),
    )
    logger.info(
        f"CastSmith ready: watching folder {settings.drive.folder_id} for "
        f"{settings.naming_tag}-NN files"
    )
    return CastsmithService(
        settings=settings,
        classifier=classifier,
        drive=drive,
        store=store,
        repo_updater=repo_updater,
        runner=runner,
        queue=queue,
        watcher=watcher,
    )
