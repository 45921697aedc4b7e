"""
Episode content extraction with an OpenAI model.

The model answers with free text that should contain a JSON object. The JSON is
parsed and validated against ``ExtractionPayload``; when the answer is not
usable, deterministic fallback content is built instead so the episode can
still be published.
"""

import json
import logging
import re
from datetime import date
from typing import Callable, Optional

from pydantic import ValidationError

from src.config import ExtractionSettings
from src.errors import ExtractionError
from src.llm import _episode_extraction_prompt, init_llm_openai
from src.logger import log_function
from src.transcription import TranscriptResult, format_duration
from .models import ExtractedContent, ExtractionPayload


logger = logging.getLogger("extraction")

_FENCED_JSON = re.compile(r"```(?:json)?\s*\n(.*?)\n\s*```", re.DOTALL)


def parse_extraction_output(text: str) -> ExtractionPayload:
    """
    Parse the model answer into a validated payload.

    Accepts a fenced ```json block, a bare JSON object, or a JSON object
    surrounded by prose.

    Raises:
        ExtractionError: if no valid payload can be read
    """
    if not text or not text.strip():
        raise ExtractionError("Empty extraction output")

    fenced = _FENCED_JSON.search(text)
    if fenced:
        candidate = fenced.group(1)
    else:
        start, end = text.find("{"), text.rfind("}")
        candidate = text[start:end + 1] if start != -1 and end > start else text

    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ExtractionError(f"Extraction output is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ExtractionError(f"Extraction output is a {type(data).__name__}, expected an object")

    try:
        return ExtractionPayload.model_validate(data)
    except ValidationError as e:
        raise ExtractionError(f"Extraction output failed validation: {e}") from e


def build_fallback_content(
    episode_number: int,
    transcript: Optional[TranscriptResult],
    settings: ExtractionSettings,
    description: str,
    pub_date: date,
) -> ExtractedContent:
    """Minimal content used when extraction fails: generic title, empty lists."""
    duration = transcript.duration_seconds if transcript is not None else 0
    return ExtractedContent(
        episode_number=episode_number,
        title=f"Episode {episode_number}, {settings.show_name}",
        description=description,
        duration=format_duration(duration),
        pub_date=pub_date,
        is_fallback=True,
    )


class OpenAIExtractor:
    """Extractor collaborator: transcript in, ExtractedContent out."""

    def __init__(
        self,
        settings: ExtractionSettings,
        fallback_description: str,
        client=None,
        today: Callable[[], date] = date.today,
    ):
        self.settings = settings
        self.fallback_description = fallback_description
        self.client = client if client is not None else init_llm_openai(settings)
        if self.client is None:
            raise ValueError("OPENAI_API_KEY not found in environment variables.")
        self._today = today

    def fallback(self, episode_number: int, transcript: Optional[TranscriptResult]) -> ExtractedContent:
        return build_fallback_content(
            episode_number,
            transcript,
            self.settings,
            self.fallback_description,
            self._today(),
        )

    @log_function(logger_name="extraction", log_execution_time=True)
    def extract(
        self,
        transcript: TranscriptResult,
        filename: str,
        episode_number: int,
    ) -> ExtractedContent:
        """
        Extract structured episode content from a transcript.

        A malformed model answer yields fallback content; API errors propagate.

        Args:
            transcript: Completed transcript
            filename: Original recording name, given to the model as context
            episode_number: Episode number derived from the filename
        """
        logger.info(f"Starting content extraction for {filename}")
        response = self.client.responses.create(
            model=self.settings.model,
            instructions=_episode_extraction_prompt(self.settings.show_name),
            input=f"FICHIER: {filename}\n\nTRANSCRIPTION:\n{transcript.text}",
            max_output_tokens=self.settings.max_output_tokens,
        )

        try:
            payload = parse_extraction_output(response.output_text)
        except ExtractionError as e:
            logger.error(f"Failed to parse extracted content for episode {episode_number}: {e}")
            return self.fallback(episode_number, transcript)

        logger.info(
            f"Extracted episode {episode_number}: {len(payload.tracks)} tracks, "
            f"{len(payload.guests)} guests, {len(payload.events)} events"
        )
        return ExtractedContent(
            **payload.model_dump(),
            episode_number=episode_number,
            duration=format_duration(transcript.duration_seconds),
            pub_date=self._today(),
        )
