import logging
from datetime import datetime, timezone
from pathlib import Path

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from src.config import StorageSettings
from src.errors import ConfigurationError, UploadError
from src.logger import log_function
from .base import BaseStorage, get_content_type


logger = logging.getLogger("storage")

LARGE_FILE_BYTES = 300 * 1024 * 1024


class CloudStorage(BaseStorage):
    """A client for the S3-compatible bucket serving episode audio. (Cloudflare R2)"""

    def __init__(self, settings: StorageSettings, client=None):
        missing = [
            name
            for name, value in (
                ("R2_S3_API or R2_ACCOUNT_ID", settings.endpoint_url),
                ("R2_ACCESS_KEY_ID", settings.access_key_id),
                ("R2_SECRET_ACCESS_KEY", settings.secret_access_key),
                ("R2_BUCKET_NAME", settings.bucket_name),
                ("R2_PUBLIC_URL", settings.public_url),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(
                "Missing required environment variables for cloud storage client: "
                + ", ".join(missing)
            )

        self.bucket_name = settings.bucket_name
        self.public_base_url = settings.public_url.rstrip("/")

        if client is None:
            session = boto3.session.Session()
            client = session.client(
                "s3",
                region_name="auto",
                endpoint_url=settings.endpoint_url,
                aws_access_key_id=settings.access_key_id,
                aws_secret_access_key=settings.secret_access_key,
            )
        self.client = client

    def get_client(self):
        """Returns the initialized cloud storage client."""
        return self.client

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key.lstrip('/')}"

    def file_exists(self, key: str) -> bool:
        """
        Check if an object exists in the bucket.

        Raises:
            UploadError: on any error other than "not found"
        """
        try:
            self.client.head_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("404", "NoSuchKey", "NotFound"):
                return False
            raise UploadError(f"Could not check object {key}: {e}") from e
        return True

    @log_function(logger_name="storage", log_args=True, log_execution_time=True)
    def upload_file(self, file_path: Path, key: str) -> str:
        """Uploads a local audio file and returns its public URL."""
        file_path = Path(file_path)
        if not file_path.is_file():
            raise UploadError(f"File not found: {file_path}")

        size = file_path.stat().st_size
        if size > LARGE_FILE_BYTES:
            logger.warning(
                f"Large file detected ({size // 1024 // 1024}MB). Upload may take some time."
            )

        extra_args = {
            "ContentType": get_content_type(file_path),
            "Metadata": {
                "uploaded-by": "castsmith",
                "original-filename": file_path.name,
                "upload-date": datetime.now(timezone.utc).isoformat(),
            },
        }
        try:
            # upload_file switches to multipart for large files
            self.client.upload_file(str(file_path), self.bucket_name, key, ExtraArgs=extra_args)
        except (BotoCoreError, ClientError) as e:
            raise UploadError(f"Failed to upload {file_path.name} as {key}: {e}") from e

        url = self.public_url(key)
        logger.info(f"File uploaded successfully: {url}")
        return url
