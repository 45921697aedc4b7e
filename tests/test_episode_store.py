"""Tests for the per-episode data store."""

import json
from datetime import date, datetime, timedelta, timezone

from src.extraction import ExtractedContent
from src.storage import EpisodeDataStore, UploadResult
from src.transcription import build_transcript_result


class StepClock:
    """Advances by ``step`` seconds at every call."""

    def __init__(self, step=1.5):
        self.now = datetime(2025, 1, 5, 20, 0, tzinfo=timezone.utc)
        self.step = timedelta(seconds=step)

    def __call__(self):
        current = self.now
        self.now += self.step
        return current


def make_content():
    return ExtractedContent(
        episode_number=6,
        title="Nuits Cosmiques",
        description="Un voyage sonore.",
        duration="1:02:03",
        pub_date=date(2025, 1, 5),
        tracks=[{"title": "Aurora", "artist": "Nova"}],
        markdown_content="---\ntitle: x\n---\n",
    )


def test_initialize_creates_record(tmp_path):
    store = EpisodeDataStore(tmp_path)
    episode_dir = store.initialize(6, filename="cosmic-06.mp3", file_id="f1", file_size=10)

    assert episode_dir == tmp_path / "episode-06"
    metadata = store.get_metadata(6)
    assert metadata["status"] == "processing"
    assert metadata["filename"] == "cosmic-06.mp3"
    assert metadata["steps"] == {
        "download": False,
        "transcription": False,
        "extraction": False,
        "upload": False,
        "repository": False,
    }


def test_full_layout(tmp_path):
    store = EpisodeDataStore(tmp_path, clock=StepClock())
    store.initialize(6, filename="cosmic-06.mp3", file_id="f1", file_size=10)
    store.mark_step(6, "download")
    store.record_transcript(6, build_transcript_result("Bonsoir", 0.9, 60, [], "tr-1"))
    store.record_extraction(6, make_content())
    store.record_upload(6, UploadResult("https://cdn/Cosmic-06.mp3", "Cosmic-06.mp3", "cosmic-06.mp3", 100))
    store.record_publish(6, {"episode_file": "src/content/episode/06-nuits-cosmiques.md", "committed": True})
    store.finalize(6, "completed")

    names = sorted(p.name for p in (tmp_path / "episode-06").iterdir())
    assert names == sorted(
        [
            "raw-transcript.json",
            "transcript.txt",
            "transcript-metadata.json",
            "extracted-content.json",
            "extraction-summary.json",
            "generated-episode.md",
            "upload-results.json",
            "repository-update.json",
            "processing-metadata.json",
            "README.md",
        ]
    )

    metadata = store.get_metadata(6)
    assert metadata["status"] == "completed"
    assert all(metadata["steps"].values())
    assert metadata["processing_time_ms"] > 0
    assert (tmp_path / "episode-06" / "transcript.txt").read_text(encoding="utf-8") == "Bonsoir"

    readme = (tmp_path / "episode-06" / "README.md").read_text(encoding="utf-8")
    assert "## Status: completed" in readme
    assert "- ✅ repository" in readme


def test_processing_time_is_difference_of_timestamps(tmp_path):
    store = EpisodeDataStore(tmp_path, clock=StepClock(step=2.5))
    store.initialize(6)
    store.finalize(6, "failed", error="boom")

    metadata = store.get_metadata(6)
    started = datetime.fromisoformat(metadata["started_at"])
    completed = datetime.fromisoformat(metadata["completed_at"])
    assert metadata["processing_time_ms"] == int((completed - started).total_seconds() * 1000)
    assert metadata["error"] == "boom"
    assert "- ❌ upload" in (tmp_path / "episode-06" / "README.md").read_text(encoding="utf-8")


def test_read_side(tmp_path):
    store = EpisodeDataStore(tmp_path)
    store.initialize(12)
    store.initialize(6)
    store.record_extraction(6, make_content())
    store.record_upload(6, UploadResult("https://cdn/Cosmic-06.mp3", "Cosmic-06.mp3", "cosmic-06.mp3", 100))

    assert store.load_extracted_content(6).title == "Nuits Cosmiques"
    assert store.load_upload_result(6).size_bytes == 100
    assert store.load_extracted_content(12) is None
    assert [r["episode_number"] for r in store.list_episodes()] == [6, 12]


def test_writes_are_best_effort(tmp_path, caplog):
    blocker = tmp_path / "generated"
    blocker.write_text("not a directory")
    store = EpisodeDataStore(blocker)

    assert store.initialize(6) is None
    store.record_transcript(6, build_transcript_result("Bonsoir", 0.9, 60, [], "tr-1"))
    store.finalize(6, "completed")
    assert "Failed to initialize episode 6" in caplog.text


def test_steps_need_initialized_episode(tmp_path, caplog):
    store = EpisodeDataStore(tmp_path)
    store.mark_step(6, "download")
    assert store.get_metadata(6) is None
    assert "never initialized" in caplog.text


def test_corrupted_metadata_is_ignored(tmp_path):
    store = EpisodeDataStore(tmp_path)
    store.initialize(6)
    (tmp_path / "episode-06" / "processing-metadata.json").write_text("{oops")
    assert store.get_metadata(6) is None
    assert store.list_episodes() == []


def test_extracted_content_is_json(tmp_path):
    store = EpisodeDataStore(tmp_path)
    store.initialize(6)
    store.record_extraction(6, make_content())
    data = json.loads((tmp_path / "episode-06" / "extracted-content.json").read_text(encoding="utf-8"))
    assert data["pub_date"] == "2025-01-05"
    assert data["tracks"][0]["artist"] == "Nova"
