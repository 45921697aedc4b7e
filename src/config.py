"""
Configuration settings for CastSmith.

All settings are read once from the environment (a ``.env`` file is loaded
first) into the ``Settings`` dataclass, validated, and then passed by
reference to each component. No module reads ``os.environ`` on its own.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional

from dotenv import load_dotenv

from src.errors import ConfigurationError


AUDIO_EXTENSIONS = ("mp3", "flac", "wav", "m4a")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got: {raw!r}")


@dataclass
class DriveSettings:
    """Google Drive folder watched for new recordings"""

    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    refresh_token: Optional[str] = None
    folder_id: Optional[str] = None
    page_size: int = 10
    initial_lookback_seconds: float = 3600.0


@dataclass
class TranscriptionSettings:
    api_key: Optional[str] = None
    language: str = "fr"
    speakers_expected: int = 4
    poll_interval: float = 5.0
    poll_timeout: float = 300.0


@dataclass
class ExtractionSettings:
    api_key: Optional[str] = None
    model: str = "gpt-4o"
    max_output_tokens: int = 4000
    show_name: str = "Cosmic, L'émission"


@dataclass
class StorageSettings:
    """S3-compatible bucket (Cloudflare R2) receiving the episode audio"""

    account_id: Optional[str] = None
    endpoint: Optional[str] = None
    access_key_id: Optional[str] = None
    secret_access_key: Optional[str] = None
    bucket_name: Optional[str] = None
    public_url: Optional[str] = None
    key_prefix: str = "Cosmic"

    @property
    def endpoint_url(self) -> Optional[str]:
        if self.endpoint:
            return self.endpoint
        if self.account_id:
            return f"https://{self.account_id}.r2.cloudflarestorage.com"
        return None


@dataclass
class RepositorySettings:
    """Git repository of the podcast website"""

    path: Path = Path("../astropod")
    url: Optional[str] = None
    branch: str = "main"
    episodes_dir: str = "src/content/episode"


@dataclass
class DocumentSettings:
    """Constants rendered into every episode document header"""

    season: int = 1
    episode_type: str = "full"
    explicit: bool = True
    cover_template: str = "/images/ep{episode}.png"
    credits: str = (
        "Animé par [Jerohm](https://jerohm.com/) avec la complicité de Cosmic Turtle, "
        "George Mood et Joe d'Absynth"
    )
    fallback_description: str = (
        "Prolongement des soirées Cosmic. Animé par Jerohm avec la complicité de "
        "Cosmic Turtle, George Mood et Joe d'Absynth."
    )


@dataclass
class Settings:
    """Top level configuration handed to every CastSmith component"""

    naming_tag: str = "cosmic"
    transcript_suffix: str = "-no-mix"
    data_dir: Path = Path("generated")
    scratch_dir: Path = Path("temp")
    check_interval: float = 300.0

    drive: DriveSettings = field(default_factory=DriveSettings)
    transcription: TranscriptionSettings = field(default_factory=TranscriptionSettings)
    extraction: ExtractionSettings = field(default_factory=ExtractionSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    repository: RepositorySettings = field(default_factory=RepositorySettings)
    document: DocumentSettings = field(default_factory=DocumentSettings)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Settings":
        """
        Build settings from environment variables.

        Args:
            env_file: Optional path to a .env file (defaults to python-dotenv lookup)

        Returns:
            Settings: populated but not yet validated settings
        """
        load_dotenv(env_file)
        naming_tag = os.getenv("NAMING_TAG", "cosmic")

        return cls(
            naming_tag=naming_tag,
            transcript_suffix=os.getenv("TRANSCRIPT_SUFFIX", "-no-mix"),
            data_dir=Path(os.getenv("DATA_DIR", "generated")),
            scratch_dir=Path(os.getenv("SCRATCH_DIR", "temp")),
            check_interval=_env_float("CHECK_INTERVAL", 300.0),
            drive=DriveSettings(
                client_id=os.getenv("GOOGLE_CLIENT_ID"),
                client_secret=os.getenv("GOOGLE_CLIENT_SECRET"),
                refresh_token=os.getenv("GOOGLE_REFRESH_TOKEN"),
                folder_id=os.getenv("GOOGLE_DRIVE_FOLDER_ID"),
            ),
            transcription=TranscriptionSettings(
                api_key=os.getenv("ASSEMBLYAI_API_KEY"),
                language=os.getenv("TRANSCRIPTION_LANGUAGE", "fr"),
                poll_interval=_env_float("TRANSCRIPTION_POLL_INTERVAL", 5.0),
                poll_timeout=_env_float("TRANSCRIPTION_TIMEOUT", 300.0),
            ),
            extraction=ExtractionSettings(
                api_key=os.getenv("OPENAI_API_KEY"),
                model=os.getenv("OPENAI_MODEL", "gpt-4o"),
            ),
            storage=StorageSettings(
                account_id=os.getenv("R2_ACCOUNT_ID"),
                endpoint=os.getenv("R2_S3_API"),
                access_key_id=os.getenv("R2_ACCESS_KEY_ID"),
                secret_access_key=os.getenv("R2_SECRET_ACCESS_KEY"),
                bucket_name=os.getenv("R2_BUCKET_NAME"),
                public_url=os.getenv("R2_PUBLIC_URL"),
                key_prefix=os.getenv("R2_KEY_PREFIX", naming_tag.capitalize()),
            ),
            repository=RepositorySettings(
                path=Path(os.getenv("ASTROPOD_REPO_PATH", "../astropod")),
                url=os.getenv("ASTROPOD_REPO_URL"),
                branch=os.getenv("REPO_BRANCH", "main"),
            ),
        )

    def missing(self, sections: Iterable[str]) -> list[str]:
        """Return the environment variable names missing for the given sections."""
        required = {
            "drive": [
                ("GOOGLE_CLIENT_ID", self.drive.client_id),
                ("GOOGLE_CLIENT_SECRET", self.drive.client_secret),
                ("GOOGLE_REFRESH_TOKEN", self.drive.refresh_token),
                ("GOOGLE_DRIVE_FOLDER_ID", self.drive.folder_id),
            ],
            "transcription": [("ASSEMBLYAI_API_KEY", self.transcription.api_key)],
            "extraction": [("OPENAI_API_KEY", self.extraction.api_key)],
            "storage": [
                ("R2_S3_API or R2_ACCOUNT_ID", self.storage.endpoint_url),
                ("R2_ACCESS_KEY_ID", self.storage.access_key_id),
                ("R2_SECRET_ACCESS_KEY", self.storage.secret_access_key),
                ("R2_BUCKET_NAME", self.storage.bucket_name),
                ("R2_PUBLIC_URL", self.storage.public_url),
            ],
            "repository": [],
        }
        missing = []
        for section in sections:
            if section not in required:
                raise ValueError(f"Unknown settings section: {section}")
            missing.extend(name for name, value in required[section] if not value)
        return missing

    def validate(
        self,
        require: Iterable[str] = ("drive", "transcription", "extraction", "storage", "repository"),
    ) -> "Settings":
        """
        Check the settings needed by the requested sections.

        Raises:
            ConfigurationError: naming every missing variable, or on invalid values
        """
        if not self.naming_tag or "-" in self.naming_tag:
            raise ConfigurationError(
                f"NAMING_TAG must be a non-empty word without hyphens, got: {self.naming_tag!r}"
            )
        if self.transcription.poll_interval <= 0 or self.transcription.poll_timeout <= 0:
            raise ConfigurationError("Transcription poll interval and timeout must be positive")
        if self.transcription.poll_interval > self.transcription.poll_timeout:
            raise ConfigurationError("TRANSCRIPTION_POLL_INTERVAL cannot exceed TRANSCRIPTION_TIMEOUT")

        require = list(require)
        missing = self.missing(require)
        if missing:
            raise ConfigurationError(
                "Missing required environment variables: " + ", ".join(missing)
            )
        if (
            "repository" in require
            and self.repository.url is None
            and not self.repository.path.exists()
        ):
            raise ConfigurationError(
                f"Repository {self.repository.path} does not exist and ASTROPOD_REPO_URL is not set"
            )
        return self
