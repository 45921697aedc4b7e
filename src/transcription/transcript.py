"""
Transcription with AssemblyAI and speaker diarization.

The job is submitted, then polled at a fixed interval until it completes, fails,
or the overall timeout expires. Utterances are grouped per speaker and speakers
are ranked by total speaking time.
"""

import logging
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

import assemblyai as aai

from src.config import TranscriptionSettings
from src.errors import TranscriptionError, TranscriptionTimeout
from src.logger import log_function


logger = logging.getLogger("transcript")


@dataclass
class SpeakerSegment:
    start: int
    end: int
    text: str
    confidence: Optional[float] = None


@dataclass
class Speaker:
    id: str
    total_time_ms: int = 0
    segments: List[SpeakerSegment] = field(default_factory=list)


@dataclass
class TranscriptResult:
    text: str
    confidence: Optional[float]
    speakers: List[Speaker]
    duration_seconds: Optional[float]
    utterances: List[Dict[str, Any]] = field(default_factory=list)
    transcript_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def format_duration(seconds: Union[int, float, None]) -> str:
    """Render a duration as ``H:MM:SS`` (one hour or more) or ``M:SS``."""
    total = int(seconds or 0)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def _field(item: Any, name: str, default: Any = None) -> Any:
    if isinstance(item, Mapping):
        return item.get(name, default)
    return getattr(item, name, default)


def rank_speakers(utterances: Optional[Iterable[Any]]) -> List[Speaker]:
    """
    Group utterances by speaker, ranked by total speaking time (descending).

    Speakers with the same total keep their first appearance order.

    Args:
        utterances: AssemblyAI utterances (objects or dicts with speaker, start,
            end, text, confidence; times in milliseconds)

    Returns:
        List of Speaker
    """
    speakers: Dict[str, Speaker] = {}
    for utterance in utterances or []:
        speaker_id = str(_field(utterance, "speaker"))
        start = int(_field(utterance, "start", 0))
        end = int(_field(utterance, "end", 0))

        speaker = speakers.setdefault(speaker_id, Speaker(id=speaker_id))
        speaker.total_time_ms += end - start
        speaker.segments.append(
            SpeakerSegment(
                start=start,
                end=end,
                text=_field(utterance, "text", ""),
                confidence=_field(utterance, "confidence"),
            )
        )

    # dicts keep insertion order and sorted() is stable
    return sorted(speakers.values(), key=lambda s: s.total_time_ms, reverse=True)


def build_transcript_result(
    text: Optional[str],
    confidence: Optional[float],
    audio_duration: Optional[float],
    utterances: Optional[Iterable[Any]],
    transcript_id: Optional[str] = None,
) -> TranscriptResult:
    utterances = list(utterances or [])
    return TranscriptResult(
        text=text or "",
        confidence=confidence,
        speakers=rank_speakers(utterances),
        duration_seconds=audio_duration,
        utterances=[
            {
                "speaker": str(_field(u, "speaker")),
                "start": _field(u, "start"),
                "end": _field(u, "end"),
                "text": _field(u, "text", ""),
                "confidence": _field(u, "confidence"),
            }
            for u in utterances
        ],
        transcript_id=transcript_id,
    )


def wait_until_ready(
    fetch: Callable[[str], Any],
    transcript_id: str,
    poll_interval: float,
    timeout: float,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> Any:
    """
    Poll a transcription job until it reaches a terminal status.

    Args:
        fetch: Returns the current job state for an id (must expose ``status``
            and ``error``)
        transcript_id: Job id returned at submission
        poll_interval: Seconds between two polls
        timeout: Overall ceiling in seconds

    Returns:
        The completed job as returned by ``fetch``

    Raises:
        TranscriptionError: if the job reports an error
        TranscriptionTimeout: if the job is still running after ``timeout``
    """
    deadline = clock() + timeout
    while True:
        job = fetch(transcript_id)
        status = str(_field(job, "status", "")).lower().rsplit(".", 1)[-1]
        if status == "completed":
            return job
        if status == "error":
            raise TranscriptionError(f"Transcription failed: {_field(job, 'error')}")

        remaining = deadline - clock()
        if remaining <= 0:
            raise TranscriptionTimeout(
                f"Transcription {transcript_id} not ready after {timeout:.0f}s (status: {status})"
            )
        logger.debug(f"Transcription {transcript_id} status: {status}")
        sleep(min(poll_interval, remaining))


class AssemblyAITranscriber:
    """Transcriber collaborator backed by AssemblyAI."""

    def __init__(
        self,
        settings: TranscriptionSettings,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if not settings.api_key:
            raise ValueError("ASSEMBLYAI_API_KEY not found in environment variables")
        aai.settings.api_key = settings.api_key
        self.settings = settings
        self._sleep = sleep
        self.config = aai.TranscriptionConfig(
            language_code=settings.language,
            speaker_labels=True,
            speakers_expected=settings.speakers_expected,
            punctuate=True,
            format_text=True,
        )

    @log_function(logger_name="transcript", log_args=True)
    def transcribe(self, file_path: Path) -> TranscriptResult:
        """
        Upload and transcribe a local audio file.

        Raises:
            TranscriptionError, TranscriptionTimeout
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise TranscriptionError(f"Audio file not found: {file_path}")

        logger.info(f"Starting transcription for: {file_path.name}")
        try:
            submitted = aai.Transcriber(config=self.config).submit(str(file_path))
        except Exception as e:
            raise TranscriptionError(f"Could not submit {file_path.name}: {e}") from e
        logger.info(f"Transcription job submitted: {submitted.id}")

        transcript = wait_until_ready(
            aai.Transcript.get_by_id,
            submitted.id,
            poll_interval=self.settings.poll_interval,
            timeout=self.settings.poll_timeout,
            sleep=self._sleep,
        )
        logger.info(f"Transcription completed: {submitted.id}")

        return build_transcript_result(
            text=transcript.text,
            confidence=transcript.confidence,
            audio_duration=transcript.audio_duration,
            utterances=transcript.utterances,
            transcript_id=submitted.id,
        )
