"""
In-memory job model for the processing queue.

A job follows one incoming file through the five pipeline stages. Status
changes only move forward: a stage that left ``pending`` never returns to it,
and a finished job never changes again.
"""

import uuid
from collections import OrderedDict
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from src.ingestion.models import CandidateFile


class Stage(str, Enum):
    DOWNLOAD = "download"
    TRANSCRIPTION = "transcription"
    EXTRACTION = "extraction"
    UPLOAD = "upload"
    PUBLISH = "publish"


class StepStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


_STEP_TRANSITIONS = {
    StepStatus.PENDING: {StepStatus.IN_PROGRESS, StepStatus.COMPLETED, StepStatus.FAILED},
    StepStatus.IN_PROGRESS: {StepStatus.COMPLETED, StepStatus.FAILED},
    StepStatus.COMPLETED: set(),
    StepStatus.FAILED: set(),
}

_JOB_TRANSITIONS = {
    JobStatus.QUEUED: {JobStatus.PROCESSING, JobStatus.FAILED},
    JobStatus.PROCESSING: {JobStatus.COMPLETED, JobStatus.FAILED},
    JobStatus.COMPLETED: set(),
    JobStatus.FAILED: set(),
}


def _new_job_id() -> str:
    return uuid.uuid4().hex[:12]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Job:
    file: CandidateFile
    id: str = field(default_factory=_new_job_id)
    status: JobStatus = JobStatus.QUEUED
    added_at: datetime = field(default_factory=_utc_now)
    steps: "OrderedDict[Stage, StepStatus]" = field(
        default_factory=lambda: OrderedDict((stage, StepStatus.PENDING) for stage in Stage)
    )
    error: Optional[str] = None
    episode_number: Optional[int] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.COMPLETED, JobStatus.FAILED)

    def set_status(self, status: JobStatus) -> None:
        if status not in _JOB_TRANSITIONS[self.status]:
            raise ValueError(f"Job {self.id}: illegal status change {self.status.value} -> {status.value}")
        self.status = status

    def set_step(self, stage: Stage, status: StepStatus) -> None:
        current = self.steps[stage]
        if status not in _STEP_TRANSITIONS[current]:
            raise ValueError(
                f"Job {self.id}: illegal {stage.value} step change {current.value} -> {status.value}"
            )
        self.steps[stage] = status

    def start(self) -> None:
        self.set_status(JobStatus.PROCESSING)

    def complete(self) -> None:
        self.set_status(JobStatus.COMPLETED)

    def fail(self, error: str) -> None:
        self.error = error
        self.set_status(JobStatus.FAILED)

    @contextmanager
    def stage(self, stage: Stage):
        """Mark ``stage`` in progress for the duration of the block, then completed or failed."""
        self.set_step(stage, StepStatus.IN_PROGRESS)
        try:
            yield
        except BaseException:
            self.set_step(stage, StepStatus.FAILED)
            raise
        self.set_step(stage, StepStatus.COMPLETED)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "filename": self.file.name,
            "file_id": self.file.id,
            "status": self.status.value,
            "added_at": self.added_at.isoformat(),
            "episode_number": self.episode_number,
            "steps": {stage.value: status.value for stage, status in self.steps.items()},
            "error": self.error,
        }
