"""Tests for speaker ranking and transcription polling."""

from types import SimpleNamespace

import pytest

from src.errors import TranscriptionError, TranscriptionTimeout
from src.transcription import build_transcript_result, format_duration, rank_speakers, wait_until_ready


def utterance(speaker, start, end, text="..."):
    return {"speaker": speaker, "start": start, "end": end, "text": text, "confidence": 0.9}


def test_speakers_ranked_by_total_time():
    speakers = rank_speakers(
        [
            utterance("A", 0, 1000),
            utterance("B", 1000, 5000),
            utterance("A", 5000, 6000),
            utterance("C", 6000, 9000),
        ]
    )
    assert [s.id for s in speakers] == ["B", "C", "A"]
    assert [s.total_time_ms for s in speakers] == [4000, 3000, 2000]
    assert len(speakers[2].segments) == 2


def test_speaker_ties_keep_first_appearance_order():
    speakers = rank_speakers(
        [
            utterance("C", 0, 1000),
            utterance("A", 1000, 2000),
            utterance("B", 2000, 3000),
        ]
    )
    assert [s.id for s in speakers] == ["C", "A", "B"]


def test_rank_speakers_accepts_objects_and_empty_input():
    obj = SimpleNamespace(speaker="A", start=0, end=500, text="hi", confidence=None)
    assert rank_speakers([obj])[0].total_time_ms == 500
    assert rank_speakers(None) == []


def test_build_transcript_result():
    result = build_transcript_result("Bonsoir", 0.9, 3723, [utterance("A", 0, 1000, "Bonsoir")], "tr-1")
    assert result.text == "Bonsoir"
    assert result.duration_seconds == 3723
    assert result.speakers[0].id == "A"
    assert result.utterances[0]["text"] == "Bonsoir"
    assert result.to_dict()["transcript_id"] == "tr-1"


@pytest.mark.parametrize(
    "seconds, expected",
    [(0, "0:00"), (59, "0:59"), (61, "1:01"), (3599, "59:59"), (3723, "1:02:03"), (None, "0:00")],
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


class FakeClock:
    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


def test_wait_until_ready_returns_completed_job():
    clock = FakeClock()
    states = iter(["queued", "processing", "completed"])

    def fetch(transcript_id):
        return SimpleNamespace(status=next(states), error=None, id=transcript_id)

    job = wait_until_ready(fetch, "tr-1", poll_interval=5, timeout=300, sleep=clock.sleep, clock=clock)
    assert job.status == "completed"
    assert clock.sleeps == [5, 5]


def test_wait_until_ready_raises_on_error_status():
    clock = FakeClock()

    def fetch(transcript_id):
        return {"status": "error", "error": "bad audio"}

    with pytest.raises(TranscriptionError, match="bad audio"):
        wait_until_ready(fetch, "tr-1", poll_interval=5, timeout=300, sleep=clock.sleep, clock=clock)


def test_wait_until_ready_times_out():
    clock = FakeClock()
    polls = []

    def fetch(transcript_id):
        polls.append(clock.now)
        return {"status": "processing"}

    with pytest.raises(TranscriptionTimeout):
        wait_until_ready(fetch, "tr-1", poll_interval=5, timeout=12, sleep=clock.sleep, clock=clock)

    assert clock.now == 12
    assert clock.sleeps == [5, 5, 2]
    assert polls == [0, 5, 10, 12]


def test_timeout_is_a_transcription_error():
    assert issubclass(TranscriptionTimeout, TranscriptionError)
