"""Tests for publishing episode documents to the website repository."""

import subprocess
from datetime import date
from pathlib import Path

import pytest

from src.config import DocumentSettings, RepositorySettings
from src.errors import PublishError
from src.extraction import ExtractedContent
from src.publishing import GitRepoClient, RepoUpdater, build_commit_message, generate_document
from src.storage import UploadResult

from conftest import FakeRepoClient


def make_content(**overrides):
    data = dict(
        episode_number=6,
        title="Nuits Cosmiques",
        description="Un voyage sonore.",
        duration="1:00:00",
        pub_date=date(2025, 1, 5),
        tracks=[{"title": "Aurora", "artist": "Nova"}],
        guests=[{"name": "DJ Lune"}],
    )
    data.update(overrides)
    content = ExtractedContent(**data)
    return content.model_copy(update={"markdown_content": generate_document(content, DocumentSettings())})


UPLOAD = UploadResult(
    audio_url="https://cdn.example.com/Cosmic-06.mp3",
    key="Cosmic-06.mp3",
    source_filename="cosmic-06.mp3",
)


def test_publish_writes_resolved_document_and_commits():
    repo = FakeRepoClient()
    result = RepoUpdater(repo, RepositorySettings()).publish(make_content(), UPLOAD)

    assert repo.ready_calls == 1
    assert result.committed
    assert result.episode_file == "src/content/episode/06-nuits-cosmiques.md"
    document = repo.files[result.episode_file]
    assert 'audioUrl: "https://cdn.example.com/Cosmic-06.mp3"' in document
    # no byte count: 60 minutes at 1.2 MB per minute
    assert "size: 72.0" in document
    assert repo.commits == [result.commit_message]


def test_publish_uses_real_size_when_known():
    repo = FakeRepoClient()
    upload = UploadResult(UPLOAD.audio_url, UPLOAD.key, UPLOAD.source_filename, size_bytes=10 * 1024 * 1024)
    result = RepoUpdater(repo, RepositorySettings()).publish(make_content(), upload)
    assert "size: 10.0" in repo.files[result.episode_file]


def test_republishing_identical_document_does_not_commit():
    repo = FakeRepoClient()
    updater = RepoUpdater(repo, RepositorySettings())
    updater.publish(make_content(), UPLOAD)

    result = updater.publish(make_content(), UPLOAD)

    assert result.committed is False
    assert result.commit_message is None
    assert len(repo.commits) == 1


def test_commit_message():
    message = build_commit_message(make_content())
    assert message.splitlines()[0] == "Add episode 6: Nuits Cosmiques"
    assert "- Duration: 1:00:00" in message
    assert "- Tracks: 1" in message
    assert "- Guests: DJ Lune" in message

    fallback = build_commit_message(make_content(guests=[], is_fallback=True))
    assert "Guests" not in fallback
    assert "fallback" in fallback


class RecordingRun:
    """Stands in for subprocess.run and records git invocations."""

    def __init__(self, stdout="", returncode=0, stderr=""):
        self.calls = []
        self.stdout = stdout
        self.returncode = returncode
        self.stderr = stderr

    def __call__(self, cmd, cwd=None, **kwargs):
        self.calls.append((cmd[1:], cwd))
        return subprocess.CompletedProcess(cmd, self.returncode, stdout=self.stdout, stderr=self.stderr)


@pytest.fixture
def repo_settings(tmp_path):
    return RepositorySettings(path=tmp_path / "astropod", url="https://example.com/astropod.git", branch="main")


def test_git_client_clones_missing_repository(monkeypatch, repo_settings):
    run = RecordingRun()
    monkeypatch.setattr(subprocess, "run", run)

    GitRepoClient(repo_settings).ensure_ready()

    args, cwd = run.calls[0]
    assert args == ["clone", "--branch", "main", "https://example.com/astropod.git", str(repo_settings.path)]
    assert cwd == str(repo_settings.path.parent)


def test_git_client_pulls_existing_repository(monkeypatch, repo_settings):
    (repo_settings.path / ".git").mkdir(parents=True)
    run = RecordingRun()
    monkeypatch.setattr(subprocess, "run", run)

    GitRepoClient(repo_settings).ensure_ready()

    assert run.calls == [(["pull", "origin", "main"], str(repo_settings.path))]


def test_git_client_without_url_or_checkout(repo_settings):
    settings = RepositorySettings(path=repo_settings.path, url=None)
    with pytest.raises(PublishError):
        GitRepoClient(settings).ensure_ready()


def test_git_client_status_and_commit(monkeypatch, repo_settings):
    run = RecordingRun(stdout=" M src/content/episode/06-a.md\n?? src/content/episode/07-b.md\n")
    monkeypatch.setattr(subprocess, "run", run)
    client = GitRepoClient(repo_settings)

    status = client.status()
    assert status.has_changes
    assert status.pending == ["src/content/episode/06-a.md", "src/content/episode/07-b.md"]

    client.commit_and_push("Add episode 6")
    assert [args for args, _ in run.calls[1:]] == [
        ["add", "-A"],
        ["commit", "-m", "Add episode 6"],
        ["push", "origin", "main"],
    ]


def test_git_client_raises_on_failure(monkeypatch, repo_settings):
    monkeypatch.setattr(subprocess, "run", RecordingRun(returncode=1, stderr="rejected"))
    with pytest.raises(PublishError, match="rejected"):
        GitRepoClient(repo_settings).commit_and_push("Add episode 6")


def test_git_client_write_file(repo_settings):
    path = GitRepoClient(repo_settings).write_file("src/content/episode/06-a.md", "hello")
    assert path == Path(repo_settings.path) / "src/content/episode/06-a.md"
    assert path.read_text(encoding="utf-8") == "hello"
