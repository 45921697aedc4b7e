# Transcription module - speech to text for incoming recordings

from src.transcription.transcript import (
    AssemblyAITranscriber,
    Speaker,
    SpeakerSegment,
    TranscriptResult,
    build_transcript_result,
    format_duration,
    rank_speakers,
    wait_until_ready,
)

__all__ = [
    "AssemblyAITranscriber",
    "Speaker",
    "SpeakerSegment",
    "TranscriptResult",
    "build_transcript_result",
    "format_duration",
    "rank_speakers",
    "wait_until_ready",
]
