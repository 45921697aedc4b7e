"""
Episode file naming convention.

Recordings dropped in the watched folder are named ``<tag>-<NN>[<suffix>].<ext>``:

    cosmic-06.mp3          full variant of episode 6 (the file that gets published)
    cosmic-06-no-mix.mp3   transcript variant (talk only, lighter to transcribe)

Anything else is not a pipeline candidate.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from src.config import AUDIO_EXTENSIONS


logger = logging.getLogger("ingestion")


class Variant(str, Enum):
    FULL = "full"
    TRANSCRIPT = "transcript"


@dataclass(frozen=True)
class Classification:
    episode_number: int
    variant: Variant


class FileClassifier:
    """Decide whether a filename is an episode candidate, and which episode it is."""

    def __init__(
        self,
        tag: str,
        transcript_suffix: str = "-no-mix",
        extensions: Iterable[str] = AUDIO_EXTENSIONS,
    ):
        if not tag:
            raise ValueError("Naming tag cannot be empty")
        self.tag = tag
        self.transcript_suffix = transcript_suffix
        self.extensions = tuple(ext.lower().lstrip(".") for ext in extensions)

        ext_group = "|".join(re.escape(ext) for ext in self.extensions)
        suffix_group = f"(?P<suffix>{re.escape(transcript_suffix)})?" if transcript_suffix else ""
        self._pattern = re.compile(
            rf"(?P<stem>{re.escape(tag)}-(?P<number>\d{{2,}})){suffix_group}\.(?P<ext>{ext_group})",
            re.IGNORECASE,
        )

    def _match(self, filename: str) -> Optional[re.Match]:
        if not filename:
            return None
        return self._pattern.fullmatch(filename)

    def classify(self, filename: str) -> Optional[Classification]:
        """
        Classify a filename.

        Args:
            filename: Bare file name (no directory)

        Returns:
            Classification with the episode number and variant, or None when the
            name does not follow the convention
        """
        match = self._match(filename)
        if match is None:
            logger.info(f"File {filename!r} doesn't match naming pattern, skipping")
            return None

        variant = Variant.TRANSCRIPT if match.group("suffix") else Variant.FULL
        return Classification(episode_number=int(match.group("number")), variant=variant)

    def is_candidate(self, filename: str) -> bool:
        return self._match(filename) is not None

    def full_variant_filename(self, filename: str) -> Optional[str]:
        """
        Name of the full variant matching a candidate file.

        ``cosmic-06-no-mix.mp3`` gives ``cosmic-06.mp3``; a full variant is
        returned unchanged; a non candidate gives None.
        """
        match = self._match(filename)
        if match is None:
            return None
        return f"{match.group('stem')}.{match.group('ext')}"
