"""Tests for slugs, filenames and placeholder resolution."""

import pytest

from src.publishing import (
    AUDIO_URL_PLACEHOLDER,
    SIZE_PLACEHOLDER,
    episode_filename,
    estimate_size_mb,
    parse_duration_minutes,
    resolve_placeholders,
    slugify,
)


@pytest.mark.parametrize(
    "title, slug",
    [
        ("Épisode 6 : Les Fêtes d'été", "episode-6-les-fetes-dete"),
        ("Cœur & Âme", "coeur-ame"),
        ("  --Hello---World--  ", "hello-world"),
        ("Nuits   Cosmiques", "nuits-cosmiques"),
        ("!!!", ""),
        ("Ǿrsted Ǽther", "orsted-aether"),
    ],
)
def test_slugify(title, slug):
    assert slugify(title) == slug


@pytest.mark.parametrize("title", ["Épisode 6 : Les Fêtes d'été", "A -- B", "déjà-vu", "Straße 42"])
def test_slugify_is_idempotent(title):
    once = slugify(title)
    assert slugify(once) == once


def test_episode_filename():
    assert episode_filename(6, "Nuits Cosmiques") == "06-nuits-cosmiques.md"
    assert episode_filename(112, "Été") == "112-ete.md"
    assert episode_filename(3, "!!!") == "03-episode.md"


def test_parse_duration_minutes():
    assert parse_duration_minutes("1:00:00") == 60
    assert parse_duration_minutes("45:30") == 45.5
    assert parse_duration_minutes(90) == 1.5
    assert parse_duration_minutes(None) == 0
    assert parse_duration_minutes("n/a") == 60


def test_estimate_size_from_duration():
    assert estimate_size_mb("1:00:00") == 72.0
    assert estimate_size_mb("45:30") == 54.6


def test_estimate_size_prefers_real_size():
    assert estimate_size_mb("1:00:00", size_bytes=50 * 1024 * 1024) == 50.0


def test_resolve_placeholders():
    markdown = f'audioUrl: "{AUDIO_URL_PLACEHOLDER}"\nsize: {SIZE_PLACEHOLDER}\n'
    resolved = resolve_placeholders(markdown, "https://cdn.example.com/Cosmic-06.mp3", 72.0)
    assert resolved == 'audioUrl: "https://cdn.example.com/Cosmic-06.mp3"\nsize: 72.0\n'
    assert AUDIO_URL_PLACEHOLDER not in resolved
    assert SIZE_PLACEHOLDER not in resolved
