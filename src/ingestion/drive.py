"""
Google Drive ingestion.

``GoogleDriveClient`` lists and downloads recordings from the watched folder,
``DriveWatcher`` runs detection passes: every audio file modified since the
previous pass is classified and, when it follows the naming convention,
handed to the work queue.
"""

import io
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, List, Optional

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseDownload

from src.config import DriveSettings
from src.errors import DownloadError
from src.logger import log_function, log_with_timer
from .classifier import FileClassifier
from .models import CandidateFile


logger = logging.getLogger("ingestion")

SCOPES = ["https://www.googleapis.com/auth/drive.readonly"]
TOKEN_URI = "https://oauth2.googleapis.com/token"
FILE_FIELDS = "files(id,name,size,modifiedTime,mimeType)"


def _quote(value: str) -> str:
    """Escape a literal for a Drive ``q`` query string."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


class GoogleDriveClient:
    """Lister and downloader backed by the Drive v3 API."""

    def __init__(self, settings: DriveSettings, service=None):
        self.settings = settings
        if service is None:
            credentials = Credentials(
                token=None,
                refresh_token=settings.refresh_token,
                client_id=settings.client_id,
                client_secret=settings.client_secret,
                token_uri=TOKEN_URI,
                scopes=SCOPES,
            )
            service = build("drive", "v3", credentials=credentials, cache_discovery=False)
            logger.info("Google Drive API initialized")
        self.service = service

    def _base_query(self) -> str:
        return f"'{_quote(self.settings.folder_id)}' in parents and trashed=false"

    @log_function(logger_name="ingestion", log_args=True)
    def list_files(self, since: Optional[datetime] = None) -> List[CandidateFile]:
        """
        List audio files of the watched folder, most recently modified first.

        Args:
            since: Only return files modified strictly after this instant

        Returns:
            List of CandidateFile
        """
        query = self._base_query() + " and mimeType contains 'audio'"
        if since is not None:
            query += f" and modifiedTime > '{since.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S')}'"

        response = (
            self.service.files()
            .list(
                q=query,
                orderBy="modifiedTime desc",
                fields=FILE_FIELDS,
                pageSize=self.settings.page_size,
            )
            .execute()
        )
        return [CandidateFile.from_drive(item) for item in response.get("files", [])]

    @log_function(logger_name="ingestion", log_args=True)
    def find_file(self, name: str) -> Optional[CandidateFile]:
        """Return the most recent file of the folder with exactly this name, if any."""
        query = self._base_query() + f" and name = '{_quote(name)}'"
        response = (
            self.service.files()
            .list(q=query, orderBy="modifiedTime desc", fields=FILE_FIELDS, pageSize=1)
            .execute()
        )
        files = response.get("files", [])
        if not files:
            return None
        return CandidateFile.from_drive(files[0])

    @log_function(logger_name="ingestion", log_args=True)
    def download(self, file_id: str, destination: Path) -> Path:
        """
        Stream a Drive file to ``destination``.

        Raises:
            DownloadError: on HTTP, permission or local I/O failure
        """
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        try:
            request = self.service.files().get_media(fileId=file_id)
            with io.FileIO(str(destination), "wb") as fh:
                downloader = MediaIoBaseDownload(fh, request)
                done = False
                while not done:
                    status, done = downloader.next_chunk()
                    if status:
                        logger.debug(f"Download progress {file_id}: {int(status.progress() * 100)}%")
        except (HttpError, OSError) as e:
            logger.error(f"Failed to download file {file_id}: {e}")
            raise DownloadError(f"Failed to download file {file_id}: {e}") from e

        logger.info(f"File downloaded: {destination}")
        return destination


class DriveWatcher:
    """
    Detection pass over the watched folder.

    The first pass looks back ``lookback`` so recordings uploaded shortly before
    startup are picked up.
    """

    def __init__(
        self,
        lister,
        queue,
        classifier: FileClassifier,
        lookback: timedelta = timedelta(hours=1),
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.lister = lister
        self.queue = queue
        self.classifier = classifier
        self._clock = clock
        self.last_check_time = clock() - lookback

    @log_with_timer("ingestion")
    def check_for_new_files(self) -> List[str]:
        """
        List files modified since the previous pass and enqueue the candidates.

        Returns:
            Ids of the jobs returned by the queue for the enqueued files
        """
        pass_started = self._clock()
        files = self.lister.list_files(since=self.last_check_time)
        if not files:
            logger.debug("No audio files found in watched folder")
            self.last_check_time = pass_started
            return []

        logger.info(f"Found {len(files)} audio files")
        job_ids = []
        for file in files:
            if file.modified_time is not None and file.modified_time <= self.last_check_time:
                logger.debug(f"File {file.name} skipped - not newer than last check")
                continue

            logger.info(f"New file detected: {file.name}")
            if self.classifier.classify(file.name) is None:
                logger.warning(f"File {file.name} doesn't match naming pattern, skipping")
                continue
            job_ids.append(self.queue.enqueue(file))

        self.last_check_time = pass_started
        return job_ids
