"""Shared fixtures and in-memory collaborators for the pipeline tests."""

from datetime import date
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from src.config import Settings
from src.errors import DownloadError
from src.extraction import ExtractedContent
from src.ingestion import FileClassifier
from src.ingestion.models import CandidateFile
from src.pipeline import PipelineRunner, WorkQueue
from src.publishing import RepoStatus, RepoUpdater
from src.storage import EpisodeDataStore, LocalStorage
from src.transcription import build_transcript_result


UTTERANCES = [
    {"speaker": "A", "start": 0, "end": 4000, "text": "Bonsoir et bienvenue", "confidence": 0.9},
    {"speaker": "B", "start": 4000, "end": 5000, "text": "Salut", "confidence": 0.8},
    {"speaker": "A", "start": 5000, "end": 9000, "text": "Ce soir on parle de musique", "confidence": 0.95},
]


class FakeDrive:
    """Lister and downloader over a dict of files."""

    def __init__(self):
        self.files: Dict[str, CandidateFile] = {}
        self.contents: Dict[str, bytes] = {}
        self.downloads: List[str] = []
        self.fail_downloads = False

    def add(self, file_id: str, name: str, content: bytes = b"audio", modified_time=None) -> CandidateFile:
        file = CandidateFile(id=file_id, name=name, size=len(content), modified_time=modified_time)
        self.files[file_id] = file
        self.contents[file_id] = content
        return file

    def list_files(self, since=None) -> List[CandidateFile]:
        files = [
            f for f in self.files.values()
            if since is None or f.modified_time is None or f.modified_time > since
        ]
        return sorted(files, key=lambda f: f.modified_time or 0, reverse=True)

    def find_file(self, name: str) -> Optional[CandidateFile]:
        for file in self.files.values():
            if file.name == name:
                return file
        return None

    def download(self, file_id: str, destination: Path) -> Path:
        if self.fail_downloads:
            raise DownloadError(f"Failed to download file {file_id}")
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(self.contents[file_id])
        self.downloads.append(file_id)
        return destination


class FakeTranscriber:
    def __init__(self, duration: float = 3723.0):
        self.duration = duration
        self.calls: List[Path] = []
        self.error: Optional[Exception] = None

    def transcribe(self, path: Path):
        self.calls.append(Path(path))
        if self.error is not None:
            raise self.error
        return build_transcript_result(
            text="Bonsoir et bienvenue. Salut. Ce soir on parle de musique.",
            confidence=0.92,
            audio_duration=self.duration,
            utterances=UTTERANCES,
            transcript_id="tr-1",
        )


class FakeExtractor:
    def __init__(self):
        self.error: Optional[Exception] = None
        self.calls: List[str] = []

    def extract(self, transcript, filename: str, episode_number: int) -> ExtractedContent:
        self.calls.append(filename)
        if self.error is not None:
            raise self.error
        return ExtractedContent(
            episode_number=episode_number,
            title="Nuits Cosmiques",
            description="Un voyage sonore.",
            duration="1:02:03",
            pub_date=date(2025, 1, 5),
            tracks=[{"title": "Aurora", "artist": "Nova", "year": 1999}],
            guests=[{"name": "DJ Lune", "project": "Lune Records"}],
        )


class FakeRepoClient:
    """Working copy kept in memory; ``status`` reports files changed since the last commit."""

    def __init__(self):
        self.files: Dict[str, str] = {}
        self.committed: Dict[str, str] = {}
        self.commits: List[str] = []
        self.ready_calls = 0

    def ensure_ready(self) -> None:
        self.ready_calls += 1

    def write_file(self, rel_path: str, text: str) -> None:
        self.files[rel_path] = text

    def status(self) -> RepoStatus:
        return RepoStatus(pending=[p for p, t in self.files.items() if self.committed.get(p) != t])

    def commit_and_push(self, message: str) -> None:
        self.committed = dict(self.files)
        self.commits.append(message)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(data_dir=tmp_path / "generated", scratch_dir=tmp_path / "temp")


@pytest.fixture
def classifier(settings) -> FileClassifier:
    return FileClassifier(settings.naming_tag, settings.transcript_suffix)


@pytest.fixture
def store(settings) -> EpisodeDataStore:
    return EpisodeDataStore(settings.data_dir)


@pytest.fixture
def drive() -> FakeDrive:
    return FakeDrive()


@pytest.fixture
def transcriber() -> FakeTranscriber:
    return FakeTranscriber()


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def repo_client() -> FakeRepoClient:
    return FakeRepoClient()


@pytest.fixture
def publisher(tmp_path) -> LocalStorage:
    return LocalStorage(tmp_path / "bucket", base_url="https://cdn.example.com")


@pytest.fixture
def runner(settings, classifier, drive, transcriber, extractor, publisher, repo_client, store):
    return PipelineRunner(
        settings=settings,
        classifier=classifier,
        drive=drive,
        transcriber=transcriber,
        extractor=extractor,
        publisher=publisher,
        repo_updater=RepoUpdater(repo_client, settings.repository),
        store=store,
        today=lambda: date(2025, 1, 5),
    )


@pytest.fixture
def finished_jobs():
    return []


@pytest.fixture
def queue(runner, classifier, finished_jobs) -> WorkQueue:
    return WorkQueue(runner, classifier=classifier, on_job_finished=finished_jobs.append)
