"""
Durable per-episode record of everything the pipeline produced.

Each episode gets a directory ``<data_dir>/episode-NN/`` holding the raw
transcript, the extracted content, the generated document, the upload and
repository results, and ``processing-metadata.json`` tracking which steps
completed. The store is an audit trail: every write is best effort and a
failure is logged as a warning, never raised to the pipeline.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from src.errors import PersistenceError
from src.extraction.models import ExtractedContent
from src.transcription import TranscriptResult
from .base import UploadResult


logger = logging.getLogger("storage")

METADATA_FILE = "processing-metadata.json"
STEP_NAMES = ("download", "transcription", "extraction", "upload", "repository")

README_FILES = """## Files Generated

### Raw Data
- **raw-transcript.json** - Complete transcription response
- **transcript.txt** - Plain text transcript
- **transcript-metadata.json** - Transcript stats and metadata

### Processed Content
- **extracted-content.json** - Extracted episode information
- **extraction-summary.json** - Summary of extracted data
- **generated-episode.md** - Generated episode document

### Upload & Deployment
- **upload-results.json** - Object storage upload result
- **repository-update.json** - Git repository update information

### Metadata
- **processing-metadata.json** - Complete processing metadata
- **README.md** - This file
"""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class EpisodeDataStore:
    def __init__(self, data_dir: Path, clock: Callable[[], datetime] = _utc_now):
        self.data_dir = Path(data_dir)
        self._clock = clock

    def episode_dir(self, episode_number: int) -> Path:
        return self.data_dir / f"episode-{episode_number:02d}"

    def _now(self) -> str:
        return self._clock().isoformat()

    def _write_text(self, episode_number: int, name: str, text: str) -> None:
        path = self.episode_dir(episode_number) / name
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Could not write {path}: {e}") from e

    def _write_json(self, episode_number: int, name: str, data: Dict[str, Any]) -> None:
        try:
            text = json.dumps(data, indent=2, ensure_ascii=False, default=str)
        except (TypeError, ValueError) as e:
            raise PersistenceError(f"Could not serialize {name}: {e}") from e
        self._write_text(episode_number, name, text + "\n")

    def _read_json(self, episode_number: int, name: str) -> Optional[Dict[str, Any]]:
        path = self.episode_dir(episode_number) / name
        if not path.is_file():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read {path}: {e}")
            return None

    def _set_step(self, episode_number: int, step: str) -> None:
        metadata = self.get_metadata(episode_number)
        if metadata is None:
            raise PersistenceError(f"Episode {episode_number} was never initialized")
        metadata.setdefault("steps", {})[step] = True
        self._write_json(episode_number, METADATA_FILE, metadata)

    # Write side

    def initialize(self, episode_number: int, **metadata: Any) -> Optional[Path]:
        """
        Create the episode directory and a fresh ``processing`` record.

        Extra keyword arguments (filename, file_id, file_size) are stored in the
        record. Re-initializing an episode restarts its record.
        """
        record = {
            "episode_number": episode_number,
            "started_at": self._now(),
            "status": "processing",
            "steps": {step: False for step in STEP_NAMES},
            **metadata,
        }
        try:
            self._write_json(episode_number, METADATA_FILE, record)
        except PersistenceError as e:
            logger.warning(f"Failed to initialize episode {episode_number} data: {e}")
            return None
        logger.debug(f"Initialized episode {episode_number} data in {self.episode_dir(episode_number)}")
        return self.episode_dir(episode_number)

    def mark_step(self, episode_number: int, step: str) -> None:
        """Flag a step as completed without writing an artifact (used for download)."""
        if step not in STEP_NAMES:
            raise ValueError(f"Unknown step {step!r}")
        try:
            self._set_step(episode_number, step)
        except PersistenceError as e:
            logger.warning(f"Failed to mark step {step} for episode {episode_number}: {e}")

    def record_transcript(self, episode_number: int, transcript: TranscriptResult) -> None:
        try:
            self._write_json(episode_number, "raw-transcript.json", transcript.to_dict())
            self._write_text(episode_number, "transcript.txt", transcript.text or "No text found")
            self._write_json(
                episode_number,
                "transcript-metadata.json",
                {
                    "confidence": transcript.confidence,
                    "duration": transcript.duration_seconds,
                    "speaker_count": len(transcript.speakers),
                    "text_length": len(transcript.text or ""),
                    "timestamped_at": self._now(),
                },
            )
            self._set_step(episode_number, "transcription")
        except PersistenceError as e:
            logger.warning(f"Failed to record transcript for episode {episode_number}: {e}")

    def record_extraction(self, episode_number: int, content: ExtractedContent) -> None:
        try:
            self._write_json(episode_number, "extracted-content.json", content.model_dump(mode="json"))
            if content.markdown_content:
                self._write_text(episode_number, "generated-episode.md", content.markdown_content)
            self._write_json(
                episode_number,
                "extraction-summary.json",
                {
                    "title": content.title,
                    "description": content.description,
                    "track_count": len(content.tracks),
                    "event_count": len(content.events),
                    "guest_count": len(content.guests),
                    "has_markdown": bool(content.markdown_content),
                    "is_fallback": content.is_fallback,
                    "extracted_at": self._now(),
                },
            )
            self._set_step(episode_number, "extraction")
        except PersistenceError as e:
            logger.warning(f"Failed to record extracted content for episode {episode_number}: {e}")

    def record_document(self, episode_number: int, markdown: str) -> None:
        """Overwrite ``generated-episode.md`` (used when regenerating a document)."""
        try:
            self._write_text(episode_number, "generated-episode.md", markdown)
        except PersistenceError as e:
            logger.warning(f"Failed to record document for episode {episode_number}: {e}")

    def record_upload(self, episode_number: int, upload: UploadResult) -> None:
        try:
            self._write_json(
                episode_number,
                "upload-results.json",
                {**upload.to_dict(), "uploaded_at": self._now()},
            )
            self._set_step(episode_number, "upload")
        except PersistenceError as e:
            logger.warning(f"Failed to record upload results for episode {episode_number}: {e}")

    def record_publish(self, episode_number: int, result: Dict[str, Any]) -> None:
        try:
            self._write_json(
                episode_number,
                "repository-update.json",
                {**result, "updated_at": self._now()},
            )
            self._set_step(episode_number, "repository")
        except PersistenceError as e:
            logger.warning(f"Failed to record repository update for episode {episode_number}: {e}")

    def finalize(self, episode_number: int, status: str = "completed", error: Optional[str] = None) -> None:
        """
        Close the episode record and render its README.

        ``processing_time_ms`` is the difference between ``completed_at`` and
        ``started_at``.
        """
        try:
            metadata = self.get_metadata(episode_number)
            if metadata is None:
                raise PersistenceError(f"Episode {episode_number} was never initialized")

            completed_at = self._clock()
            metadata["status"] = status
            metadata["completed_at"] = completed_at.isoformat()
            try:
                started_at = datetime.fromisoformat(metadata["started_at"])
                metadata["processing_time_ms"] = int((completed_at - started_at).total_seconds() * 1000)
            except (KeyError, TypeError, ValueError):
                metadata["processing_time_ms"] = None
            if error:
                metadata["error"] = error

            self._write_json(episode_number, METADATA_FILE, metadata)
            self._write_text(episode_number, "README.md", render_readme(metadata))
            logger.info(f"Finalized episode {episode_number} data ({status})")
        except PersistenceError as e:
            logger.warning(f"Failed to finalize episode {episode_number} data: {e}")

    # Read side

    def get_metadata(self, episode_number: int) -> Optional[Dict[str, Any]]:
        return self._read_json(episode_number, METADATA_FILE)

    def load_extracted_content(self, episode_number: int) -> Optional[ExtractedContent]:
        data = self._read_json(episode_number, "extracted-content.json")
        if data is None:
            return None
        try:
            return ExtractedContent.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Stored content for episode {episode_number} is invalid: {e}")
            return None

    def load_upload_result(self, episode_number: int) -> Optional[UploadResult]:
        data = self._read_json(episode_number, "upload-results.json")
        if data is None:
            return None
        try:
            return UploadResult.from_dict(data)
        except (KeyError, TypeError) as e:
            logger.warning(f"Stored upload result for episode {episode_number} is invalid: {e}")
            return None

    def list_episodes(self) -> List[Dict[str, Any]]:
        """Every persisted episode record, ordered by episode number."""
        if not self.data_dir.is_dir():
            return []
        records = []
        for path in sorted(self.data_dir.glob("episode-*")):
            try:
                episode_number = int(path.name.split("-", 1)[1])
            except ValueError:
                continue
            metadata = self.get_metadata(episode_number)
            if metadata is not None:
                records.append(metadata)
        return sorted(records, key=lambda r: r.get("episode_number", 0))


def render_readme(metadata: Dict[str, Any]) -> str:
    processing_time = metadata.get("processing_time_ms")
    elapsed = f"{round(processing_time / 1000)}s" if processing_time is not None else "N/A"
    steps = "\n".join(
        f"- {'✅' if done else '❌'} {step}" for step, done in metadata.get("steps", {}).items()
    )
    lines = [
        f"# Episode {metadata.get('episode_number')} - Processing Data",
        "",
        f"## Status: {metadata.get('status')}",
        "",
        f"**Started:** {metadata.get('started_at')}  ",
        f"**Completed:** {metadata.get('completed_at') or 'In progress'}  ",
        f"**Processing Time:** {elapsed}",
    ]
    if metadata.get("error"):
        lines.append(f"**Error:** {metadata['error']}")
    lines += ["", "## Processing Steps", steps, "", README_FILES]
    return "\n".join(lines)
