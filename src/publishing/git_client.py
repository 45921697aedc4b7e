"""
Thin git client for the website repository the episode documents are committed to.

Commands run through ``subprocess`` in the working copy; any non zero exit
becomes a PublishError carrying git's stderr.
"""

import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from src.config import RepositorySettings
from src.errors import PublishError
from src.logger import log_function


logger = logging.getLogger("publishing")


@dataclass
class RepoStatus:
    """Paths reported by ``git status --porcelain``."""

    pending: List[str] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.pending)


class GitRepoClient:
    def __init__(self, settings: RepositorySettings, git: str = "git"):
        self.settings = settings
        self.path = Path(settings.path)
        self.git = git

    def _run(self, args: List[str], cwd: Optional[Path] = None) -> str:
        cmd = [self.git, *args]
        try:
            proc = subprocess.run(
                cmd,
                cwd=str(cwd or self.path),
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            raise PublishError(f"Could not run {' '.join(cmd)}: {e}") from e
        if proc.returncode != 0:
            raise PublishError(
                f"{' '.join(cmd)} failed with code {proc.returncode}: {(proc.stderr or '').strip()}"
            )
        return proc.stdout or ""

    @log_function(logger_name="publishing", log_execution_time=True)
    def ensure_ready(self) -> None:
        """Clone the repository when missing, otherwise pull the configured branch."""
        if (self.path / ".git").exists():
            logger.info(f"Pulling latest changes in {self.path}")
            self._run(["pull", "origin", self.settings.branch])
            return

        if not self.settings.url:
            raise PublishError(
                f"Repository not found at {self.path} and ASTROPOD_REPO_URL is not set"
            )
        logger.info(f"Cloning {self.settings.url} into {self.path}")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._run(
            ["clone", "--branch", self.settings.branch, self.settings.url, str(self.path)],
            cwd=self.path.parent,
        )

    def write_file(self, rel_path: str, text: str) -> Path:
        target = self.path / rel_path
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(text, encoding="utf-8")
        except OSError as e:
            raise PublishError(f"Could not write {target}: {e}") from e
        logger.info(f"Wrote {target}")
        return target

    def status(self) -> RepoStatus:
        output = self._run(["status", "--porcelain"])
        # porcelain lines are "XY <path>"
        return RepoStatus(pending=[line[3:] for line in output.splitlines() if line.strip()])

    @log_function(logger_name="publishing", log_args=True, log_execution_time=True)
    def commit_and_push(self, message: str) -> None:
        self._run(["add", "-A"])
        self._run(["commit", "-m", message])
        self._run(["push", "origin", self.settings.branch])
        logger.info(f"Pushed to origin/{self.settings.branch}")
