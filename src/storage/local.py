import logging
import shutil
from pathlib import Path
from typing import Optional

from src.errors import UploadError
from .base import BaseStorage


logger = logging.getLogger("storage")


class LocalStorage(BaseStorage):
    """
    Object store on the local filesystem.

    Used for dry runs and tests: uploaded files are copied under ``root`` and
    the returned URL is ``<base_url>/<key>`` (a ``file://`` URL by default).
    """

    def __init__(self, root: Path, base_url: Optional[str] = None):
        self.root = Path(root)
        self.base_url = (base_url or self.root.resolve().as_uri()).rstrip("/")

    def _get_absolute_filename(self, key: str) -> Path:
        return self.root / key.lstrip("/")

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/{key.lstrip('/')}"

    def file_exists(self, key: str) -> bool:
        return self._get_absolute_filename(key).is_file()

    def upload_file(self, file_path: Path, key: str) -> str:
        file_path = Path(file_path)
        if not file_path.is_file():
            raise UploadError(f"File not found: {file_path}")

        target = self._get_absolute_filename(key)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(file_path, target)
        except OSError as e:
            raise UploadError(f"Error saving file to local storage: {e}") from e

        logger.info(f"Stored {file_path.name} as {target}")
        return self.public_url(key)
