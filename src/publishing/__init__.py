# Publishing module - episode documents and the website repository

from src.publishing.document import (
    AUDIO_URL_PLACEHOLDER,
    SIZE_PLACEHOLDER,
    format_pub_date,
    generate_document,
)
from src.publishing.git_client import GitRepoClient, RepoStatus
from src.publishing.repo_updater import PublishResult, RepoUpdater, build_commit_message
from src.publishing.slug import (
    episode_filename,
    estimate_size_mb,
    parse_duration_minutes,
    resolve_placeholders,
    slugify,
)

__all__ = [
    "AUDIO_URL_PLACEHOLDER",
    "SIZE_PLACEHOLDER",
    "GitRepoClient",
    "PublishResult",
    "RepoStatus",
    "RepoUpdater",
    "build_commit_message",
    "episode_filename",
    "estimate_size_mb",
    "format_pub_date",
    "generate_document",
    "parse_duration_minutes",
    "resolve_placeholders",
    "slugify",
]
