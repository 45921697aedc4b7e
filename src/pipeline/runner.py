"""
Runs one job through the five pipeline stages.

    1. Download the recording to the scratch directory
    2. Transcribe it
    3. Extract structured content and render the episode document
    4. Upload the audio to the object store
    5. Publish the document to the website repository

Every stage updates the job and the episode data store. A failure stops the
job, is recorded, and never propagates to the caller; scratch files are removed
whatever the outcome.
"""

import logging
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Callable, List, Optional, Type

from src.config import DocumentSettings, Settings
from src.errors import (
    CastsmithError,
    ClassificationMismatch,
    DownloadError,
    ExtractionError,
    PublishError,
    TranscriptionError,
    UploadError,
)
from src.extraction import ExtractedContent, build_fallback_content
from src.ingestion import Classification, FileClassifier, Variant
from src.ingestion.models import CandidateFile
from src.logger import log_function
from src.publishing import PublishResult, RepoUpdater, generate_document
from src.storage import BaseStorage, EpisodeDataStore, UploadResult, audio_object_key
from src.transcription import TranscriptResult
from .models import Job, Stage


logger = logging.getLogger("pipeline")


def scratch_filename(file: CandidateFile) -> str:
    return f"castsmith-{file.id}-{file.name}"


class PipelineRunner:
    """
    Sequences the stages for a job.

    Collaborators are duck typed so tests can pass in-memory fakes:
        drive: ``download(file_id, destination)`` and ``find_file(name)``
        transcriber: ``transcribe(path) -> TranscriptResult``
        extractor: ``extract(transcript, filename, episode_number) -> ExtractedContent``
        publisher: a BaseStorage
        repo_updater: a RepoUpdater
    """

    def __init__(
        self,
        settings: Settings,
        classifier: FileClassifier,
        drive,
        transcriber,
        extractor,
        publisher: BaseStorage,
        repo_updater: RepoUpdater,
        store: EpisodeDataStore,
        today: Callable[[], date] = date.today,
    ):
        self.settings = settings
        self.classifier = classifier
        self.drive = drive
        self.transcriber = transcriber
        self.extractor = extractor
        self.publisher = publisher
        self.repo_updater = repo_updater
        self.store = store
        self._today = today

    @property
    def scratch_dir(self) -> Path:
        return Path(self.settings.scratch_dir)

    @contextmanager
    def _stage(self, job: Job, stage: Stage, error_cls: Type[CastsmithError]):
        with job.stage(stage):
            try:
                yield
            except CastsmithError:
                raise
            except Exception as e:
                raise error_cls(f"{stage.value} failed for {job.file.name}: {e}") from e

    def run(self, job: Job) -> Job:
        """
        Process a job to a terminal status.

        Unclassifiable files fail immediately and leave no episode record.
        """
        job.start()
        logger.info(f"Processing item: {job.file.name}")

        classification = self.classifier.classify(job.file.name)
        if classification is None:
            error = ClassificationMismatch(f"{job.file.name} doesn't match the episode naming pattern")
            logger.error(f"Failed to process {job.file.name}: {error}")
            job.fail(str(error))
            return job

        episode_number = classification.episode_number
        job.episode_number = episode_number
        self.store.initialize(
            episode_number,
            filename=job.file.name,
            file_id=job.file.id,
            file_size=job.file.size,
        )

        scratch: List[Path] = []
        try:
            audio_path = self.download(job, scratch)
            transcript = self.transcribe(job, audio_path)
            content = self.extract(job, transcript)
            upload = self.upload(job, classification, audio_path, scratch)
            self.publish(job, content, upload)
        except Exception as e:
            message = f"{type(e).__name__}: {e}"
            logger.error(f"Failed to process {job.file.name}: {message}", exc_info=True)
            job.fail(message)
            self.store.finalize(episode_number, "failed", error=message)
        else:
            job.complete()
            logger.info(f"Successfully processed: {job.file.name}")
            self.store.finalize(episode_number, "completed")
        finally:
            self.cleanup(scratch)
        return job

    @log_function(logger_name="pipeline", log_execution_time=True)
    def download(self, job: Job, scratch: List[Path]) -> Path:
        with self._stage(job, Stage.DOWNLOAD, DownloadError):
            self.scratch_dir.mkdir(parents=True, exist_ok=True)
            destination = self.scratch_dir / scratch_filename(job.file)
            scratch.append(destination)
            logger.debug(f"Downloading {job.file.name} to: {destination}")
            path = Path(self.drive.download(job.file.id, destination))
        logger.info(f"Downloaded: {path}")
        self.store.mark_step(job.episode_number, "download")
        return path

    @log_function(logger_name="pipeline", log_execution_time=True)
    def transcribe(self, job: Job, audio_path: Path) -> TranscriptResult:
        with self._stage(job, Stage.TRANSCRIPTION, TranscriptionError):
            transcript = self.transcriber.transcribe(audio_path)
        logger.info(f"Transcription completed: {len(transcript.speakers)} speakers")
        self.store.record_transcript(job.episode_number, transcript)
        return transcript

    def _fallback_content(self, episode_number: int, transcript: TranscriptResult) -> ExtractedContent:
        return build_fallback_content(
            episode_number,
            transcript,
            self.settings.extraction,
            self.settings.document.fallback_description,
            self._today(),
        )

    @log_function(logger_name="pipeline", log_execution_time=True)
    def extract(self, job: Job, transcript: TranscriptResult) -> ExtractedContent:
        """Extract content; any extractor failure is replaced by fallback content."""
        with self._stage(job, Stage.EXTRACTION, ExtractionError):
            try:
                content = self.extractor.extract(transcript, job.file.name, job.episode_number)
                if not isinstance(content, ExtractedContent):
                    content = ExtractedContent.model_validate(content)
            except Exception as e:
                logger.error(f"Content extraction failed, using fallback content: {e}")
                content = self._fallback_content(job.episode_number, transcript)

            if content.episode_number != job.episode_number:
                logger.warning(
                    f"Extractor returned episode {content.episode_number}, "
                    f"keeping {job.episode_number} from the filename"
                )
                content = content.model_copy(update={"episode_number": job.episode_number})

            markdown = generate_document(content, self.settings.document)
            content = content.model_copy(update={"markdown_content": markdown})
        logger.info(f"Content extraction completed{' (fallback)' if content.is_fallback else ''}")
        self.store.record_extraction(job.episode_number, content)
        return content

    def _resolve_upload_source(
        self, job: Job, classification: Classification, audio_path: Path, scratch: List[Path]
    ):
        """File to publish: the recording itself, or the full variant of a transcript recording."""
        if classification.variant == Variant.FULL:
            return audio_path, job.file.name, False

        full_name = self.classifier.full_variant_filename(job.file.name)
        full_file = self.drive.find_file(full_name)
        if full_file is None:
            logger.warning(
                f"Full variant {full_name} not found, uploading transcript variant {job.file.name}"
            )
            return audio_path, job.file.name, True

        destination = self.scratch_dir / scratch_filename(full_file)
        scratch.append(destination)
        logger.info(f"Downloading full variant {full_file.name}")
        return Path(self.drive.download(full_file.id, destination)), full_file.name, False

    @log_function(logger_name="pipeline", log_execution_time=True)
    def upload(
        self, job: Job, classification: Classification, audio_path: Path, scratch: List[Path]
    ) -> UploadResult:
        with self._stage(job, Stage.UPLOAD, UploadError):
            source, source_name, used_fallback = self._resolve_upload_source(
                job, classification, audio_path, scratch
            )
            key = audio_object_key(self.settings.storage.key_prefix, job.episode_number, source)
            url = self.publisher.upload_file(source, key)
            result = UploadResult(
                audio_url=url,
                key=key,
                source_filename=source_name,
                size_bytes=source.stat().st_size,
                used_fallback=used_fallback,
            )
        logger.info(f"Audio uploaded: {url}")
        self.store.record_upload(job.episode_number, result)
        return result

    @log_function(logger_name="pipeline", log_execution_time=True)
    def publish(self, job: Job, content: ExtractedContent, upload: UploadResult) -> PublishResult:
        with self._stage(job, Stage.PUBLISH, PublishError):
            result = self.repo_updater.publish(content, upload)
        logger.info("Repository updated")
        self.store.record_publish(job.episode_number, {**result.to_dict(), "audio_url": upload.audio_url})
        return result

    def cleanup(self, paths: List[Path]) -> None:
        for path in paths:
            try:
                path.unlink(missing_ok=True)
                logger.debug(f"Cleaned up: {path}")
            except OSError as e:
                logger.warning(f"Cleanup failed for {path}: {e}")


def regenerate_document(
    store: EpisodeDataStore, settings: DocumentSettings, episode_number: int
) -> Optional[ExtractedContent]:
    """Rebuild an episode document from its persisted extracted content."""
    content = store.load_extracted_content(episode_number)
    if content is None:
        logger.error(f"No extracted content stored for episode {episode_number}")
        return None
    markdown = generate_document(content, settings)
    content = content.model_copy(update={"markdown_content": markdown})
    store.record_document(episode_number, markdown)
    logger.info(f"Regenerated document for episode {episode_number}")
    return content
