"""
Work queue manager and worker.

Files are processed one at a time, in arrival order, by a single background
thread. ``enqueue`` only does bookkeeping under the lock, so producers never
wait for the job being processed.
"""

import logging
import threading
from collections import deque
from typing import Any, Callable, Deque, Dict, Optional

from src.ingestion import FileClassifier
from src.ingestion.models import CandidateFile
from .models import Job


logger = logging.getLogger("pipeline")


class WorkQueue:
    """
    FIFO of jobs with at most one worker thread.

    The worker is started on demand by ``enqueue`` and exits when the queue is
    empty. ``on_job_finished`` is called from the worker thread with every job
    that reached a terminal status.
    """

    def __init__(
        self,
        runner,
        classifier: Optional[FileClassifier] = None,
        on_job_finished: Optional[Callable[[Job], None]] = None,
    ):
        self.runner = runner
        self.classifier = classifier
        self.on_job_finished = on_job_finished

        self._lock = threading.Lock()
        self._queue: Deque[Job] = deque()
        self._current: Optional[Job] = None
        self._worker: Optional[threading.Thread] = None
        self._idle = threading.Event()
        self._idle.set()

    # Queue management

    def _episode_number(self, file: CandidateFile) -> Optional[int]:
        if self.classifier is None:
            return None
        classification = self.classifier.classify(file.name)
        return classification.episode_number if classification else None

    def _find_duplicate(self, episode_number: Optional[int]) -> Optional[Job]:
        # caller holds the lock
        if episode_number is None:
            return None
        candidates = list(self._queue)
        if self._current is not None:
            candidates.insert(0, self._current)
        for job in candidates:
            if job.episode_number == episode_number:
                return job
        return None

    def enqueue(self, file: CandidateFile) -> str:
        """
        Add a file to the queue and make sure a worker is running.

        A file for an episode already queued or in flight is not added again;
        the id of the existing job is returned instead.

        Returns:
            Job id
        """
        episode_number = self._episode_number(file)
        with self._lock:
            duplicate = self._find_duplicate(episode_number)
            if duplicate is not None:
                logger.warning(
                    f"Episode {episode_number} already queued as job {duplicate.id} "
                    f"({duplicate.file.name}), ignoring {file.name}"
                )
                return duplicate.id

            job = Job(file=file, episode_number=episode_number)
            self._queue.append(job)
            logger.info(f"Adding file to processing queue: {file.name} (job {job.id})")

            if self._worker is None:
                self._idle.clear()
                self._worker = threading.Thread(
                    target=self._worker_loop, name="castsmith-worker", daemon=True
                )
                self._worker.start()
            return job.id

    def get_status(self) -> Dict[str, Any]:
        """Snapshot of the queue: length, worker state, in-flight job and queued jobs."""
        with self._lock:
            return {
                "queue_length": len(self._queue),
                "processing": self._worker is not None,
                "current": self._current.to_dict() if self._current else None,
                "items": [job.to_dict() for job in self._queue],
            }

    def wait_until_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until the queue is drained. Returns False on timeout."""
        return self._idle.wait(timeout)

    # Worker loop

    def _next_job(self) -> Optional[Job]:
        with self._lock:
            if not self._queue:
                # cleared under the lock so a concurrent enqueue starts a new worker
                self._current = None
                self._worker = None
                self._idle.set()
                return None
            self._current = self._queue.popleft()
            return self._current

    def _worker_loop(self) -> None:
        logger.info("Starting queue processing...")
        while True:
            job = self._next_job()
            if job is None:
                break
            self._process(job)
        logger.info("Queue processing completed")

    def _process(self, job: Job) -> None:
        try:
            self.runner.run(job)
        except Exception as e:
            logger.error(f"Unexpected error while processing job {job.id}: {e}", exc_info=True)
            if not job.is_terminal:
                job.fail(f"{type(e).__name__}: {e}")
        finally:
            with self._lock:
                self._current = None

        if self.on_job_finished is not None:
            try:
                self.on_job_finished(job)
            except Exception as e:
                logger.error(f"on_job_finished callback failed for job {job.id}: {e}", exc_info=True)
