"""
Filename and placeholder helpers for the publish stage.
"""

import re
import unicodedata
from typing import Optional, Union

from .document import AUDIO_URL_PLACEHOLDER, SIZE_PLACEHOLDER


# Latin letters NFKD does not decompose
_LIGATURES = str.maketrans({"œ": "oe", "æ": "ae", "ß": "ss", "ø": "o", "đ": "d", "ł": "l", "þ": "th"})

MB_PER_MINUTE = 1.2
DEFAULT_DURATION_MINUTES = 60.0


def slugify(text: str) -> str:
    """
    Make a filesystem safe slug out of a title.

    ``slugify("Épisode 6 : Les Fêtes d'été")`` gives ``"episode-6-les-fetes-dete"``.
    Applying it to its own output returns the output unchanged.
    """
    folded = unicodedata.normalize("NFKD", text.lower().translate(_LIGATURES))
    folded = "".join(c for c in folded if not unicodedata.combining(c)).translate(_LIGATURES)
    folded = re.sub(r"[^a-z0-9\s-]", "", folded).strip()
    folded = re.sub(r"\s+", "-", folded)
    folded = re.sub(r"-+", "-", folded)
    return folded.strip("-")


def episode_filename(episode_number: int, title: str) -> str:
    """``<NN>-<slug>.md``, e.g. ``06-nuits-cosmiques.md``."""
    slug = slugify(title) or "episode"
    return f"{episode_number:02d}-{slug}.md"


def parse_duration_minutes(duration: Union[str, int, float, None]) -> float:
    """
    Convert a duration to minutes.

    Numbers are seconds; strings are ``H:MM:SS`` or ``M:SS``. Anything else
    falls back to an hour.
    """
    if duration is None or duration == "":
        return 0.0
    if isinstance(duration, (int, float)):
        return duration / 60

    try:
        parts = [float(p) for p in str(duration).split(":")]
    except ValueError:
        return DEFAULT_DURATION_MINUTES
    if len(parts) == 3:
        return parts[0] * 60 + parts[1] + parts[2] / 60
    if len(parts) == 2:
        return parts[0] + parts[1] / 60
    return DEFAULT_DURATION_MINUTES


def estimate_size_mb(duration: Union[str, int, float, None], size_bytes: Optional[int] = None) -> float:
    """
    Size shown in the document header, in MB with one decimal.

    Uses the uploaded byte count when known, otherwise 1.2 MB per minute.
    """
    if size_bytes:
        return round(size_bytes / 1024 / 1024, 1)
    return round(parse_duration_minutes(duration) * MB_PER_MINUTE, 1)


def resolve_placeholders(markdown: str, audio_url: str, size_mb: float) -> str:
    """Substitute the audio URL and size placeholders left by the document generator."""
    return markdown.replace(AUDIO_URL_PLACEHOLDER, audio_url).replace(SIZE_PLACEHOLDER, str(size_mb))
