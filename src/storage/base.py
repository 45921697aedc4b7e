import mimetypes
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional


CONTENT_TYPES = {
    ".mp3": "audio/mpeg",
    ".flac": "audio/flac",
    ".wav": "audio/wav",
    ".m4a": "audio/mp4",
    ".aac": "audio/aac",
    ".ogg": "audio/ogg",
}


def get_content_type(file_path: Path) -> str:
    """MIME type for an audio file, ``application/octet-stream`` when unknown."""
    suffix = Path(file_path).suffix.lower()
    if suffix in CONTENT_TYPES:
        return CONTENT_TYPES[suffix]
    guessed, _ = mimetypes.guess_type(str(file_path))
    return guessed or "application/octet-stream"


def audio_object_key(prefix: str, episode_number: int, file_path: Path) -> str:
    """Object key of an episode's audio, e.g. ``Cosmic-06.mp3``."""
    return f"{prefix}-{episode_number:02d}{Path(file_path).suffix.lower()}"


@dataclass
class UploadResult:
    """Outcome of the upload stage, persisted as upload-results.json"""

    audio_url: str
    key: str
    source_filename: str
    size_bytes: Optional[int] = None
    used_fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UploadResult":
        fields = ("audio_url", "key", "source_filename", "size_bytes", "used_fallback")
        return cls(**{k: data[k] for k in fields if k in data})


class BaseStorage(ABC):
    """
    Abstract base class for the object store receiving episode audio.

    Implementations upload a local file under a key and return the public URL
    listeners will download it from.
    """

    @abstractmethod
    def file_exists(self, key: str) -> bool:
        """
        Check if an object exists.

        Args:
            key (str): Object key.

        Returns:
            bool: True if the object exists, False otherwise.
        """

    @abstractmethod
    def upload_file(self, file_path: Path, key: str) -> str:
        """Uploads a local file.

        Args:
            file_path (Path): Local file to upload.
            key (str): Destination object key.

        Returns:
            str: Public URL of the uploaded object.

        Raises:
            UploadError: If the upload fails.
        """

    @abstractmethod
    def public_url(self, key: str) -> str:
        """Public URL of an object key."""
