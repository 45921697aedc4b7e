"""
Podcast publishing pipeline module.

This module turns a recording dropped in the watched Drive folder into a
published episode:
    1. Download (src.ingestion.drive)
    2. Transcription (src.transcription)
    3. Content extraction and document generation (src.extraction, src.publishing)
    4. Audio upload (src.storage)
    5. Repository publish (src.publishing)

Usage:
    # CLI interface
    uv run -m src.pipeline watch
    uv run -m src.pipeline process <FILE_ID> cosmic-06.mp3
    uv run -m src.pipeline status

    # Programmatic interface
    from src.pipeline import build_service
    service = build_service(Settings.from_env())
    service.queue.enqueue(candidate_file)
"""

__version__ = "0.1.0"

from .models import Job, JobStatus, Stage, StepStatus
from .runner import PipelineRunner, regenerate_document, scratch_filename
from .service import CastsmithService, build_classifier, build_repo_updater, build_service
from .work_queue import WorkQueue

__all__ = [
    # Job model
    "Job",
    "JobStatus",
    "Stage",
    "StepStatus",
    # Orchestration
    "PipelineRunner",
    "WorkQueue",
    "regenerate_document",
    "scratch_filename",
    # Wiring
    "CastsmithService",
    "build_classifier",
    "build_repo_updater",
    "build_service",
]
