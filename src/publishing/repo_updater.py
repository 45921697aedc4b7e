import logging
from dataclasses import asdict, dataclass
from pathlib import PurePosixPath
from typing import Any, Dict, Optional

from src.config import RepositorySettings
from src.extraction.models import ExtractedContent
from src.logger import log_function
from src.storage.base import UploadResult
from .slug import episode_filename, estimate_size_mb, resolve_placeholders


logger = logging.getLogger("publishing")


@dataclass
class PublishResult:
    episode_file: str
    committed: bool
    commit_message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def build_commit_message(content: ExtractedContent) -> str:
    lines = [
        f"Add episode {content.episode_number}: {content.title}",
        "",
        f"- Duration: {content.duration}",
        f"- Tracks: {len(content.tracks)}",
    ]
    if content.guests:
        lines.append(f"- Guests: {', '.join(guest.name for guest in content.guests)}")
    if content.is_fallback:
        lines.append("- Generated from fallback content")
    return "\n".join(lines)


class RepoUpdater:
    """
    Publishes a generated episode document to the website repository.

    The placeholders left by the document generator are resolved with the
    upload result before the file is written.
    """

    def __init__(self, repo_client, settings: RepositorySettings):
        self.repo = repo_client
        self.settings = settings

    def render(self, content: ExtractedContent, upload: UploadResult) -> str:
        size_mb = estimate_size_mb(content.duration, upload.size_bytes)
        return resolve_placeholders(content.markdown_content, upload.audio_url, size_mb)

    @log_function(logger_name="publishing", log_execution_time=True)
    def publish(self, content: ExtractedContent, upload: UploadResult) -> PublishResult:
        self.repo.ensure_ready()

        filename = episode_filename(content.episode_number, content.title)
        rel_path = str(PurePosixPath(self.settings.episodes_dir) / filename)
        self.repo.write_file(rel_path, self.render(content, upload))

        if not self.repo.status().has_changes:
            logger.info(f"{rel_path} is unchanged, nothing to commit")
            return PublishResult(episode_file=rel_path, committed=False)

        message = build_commit_message(content)
        self.repo.commit_and_push(message)
        logger.info(f"Episode {content.episode_number} published as {rel_path}")
        return PublishResult(episode_file=rel_path, committed=True, commit_message=message)
