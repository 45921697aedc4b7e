"""Tests for the object stores."""

from pathlib import Path

import pytest
from botocore.exceptions import ClientError

from src.config import StorageSettings
from src.errors import ConfigurationError, UploadError
from src.storage import CloudStorage, LocalStorage, UploadResult, audio_object_key, get_content_type


def test_content_types():
    assert get_content_type(Path("a.mp3")) == "audio/mpeg"
    assert get_content_type(Path("a.FLAC")) == "audio/flac"
    assert get_content_type(Path("a.m4a")) == "audio/mp4"
    assert get_content_type(Path("a.unknownext")) == "application/octet-stream"


def test_audio_object_key():
    assert audio_object_key("Cosmic", 6, Path("temp/castsmith-x-cosmic-06.MP3")) == "Cosmic-06.mp3"


def test_upload_result_round_trip_ignores_extra_keys():
    data = {**UploadResult("https://cdn/a.mp3", "a.mp3", "a.mp3", 10).to_dict(), "uploaded_at": "now"}
    assert UploadResult.from_dict(data) == UploadResult("https://cdn/a.mp3", "a.mp3", "a.mp3", 10)


def test_local_storage(tmp_path):
    source = tmp_path / "in.mp3"
    source.write_bytes(b"audio")
    storage = LocalStorage(tmp_path / "bucket", base_url="https://cdn.example.com/")

    url = storage.upload_file(source, "Cosmic-06.mp3")

    assert url == "https://cdn.example.com/Cosmic-06.mp3"
    assert storage.file_exists("Cosmic-06.mp3")
    assert not storage.file_exists("Cosmic-07.mp3")


def test_local_storage_missing_source(tmp_path):
    with pytest.raises(UploadError):
        LocalStorage(tmp_path).upload_file(tmp_path / "nope.mp3", "key.mp3")


class FakeS3:
    def __init__(self, error=None):
        self.uploads = []
        self.error = error

    def upload_file(self, filename, bucket, key, ExtraArgs=None):
        if self.error:
            raise self.error
        self.uploads.append((filename, bucket, key, ExtraArgs))

    def head_object(self, Bucket, Key):
        raise ClientError({"Error": {"Code": "404", "Message": "Not Found"}}, "HeadObject")


def r2_settings():
    return StorageSettings(
        account_id="acc",
        access_key_id="key",
        secret_access_key="secret",
        bucket_name="podcast",
        public_url="https://cdn.example.com/",
    )


def test_cloud_storage_upload(tmp_path):
    source = tmp_path / "castsmith-f1-cosmic-06.mp3"
    source.write_bytes(b"audio")
    s3 = FakeS3()
    storage = CloudStorage(r2_settings(), client=s3)

    url = storage.upload_file(source, "Cosmic-06.mp3")

    assert url == "https://cdn.example.com/Cosmic-06.mp3"
    filename, bucket, key, extra = s3.uploads[0]
    assert (bucket, key) == ("podcast", "Cosmic-06.mp3")
    assert extra["ContentType"] == "audio/mpeg"
    assert extra["Metadata"]["original-filename"] == source.name
    assert storage.file_exists("Cosmic-06.mp3") is False


def test_cloud_storage_wraps_client_errors(tmp_path):
    source = tmp_path / "a.mp3"
    source.write_bytes(b"audio")
    error = ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")
    storage = CloudStorage(r2_settings(), client=FakeS3(error=error))

    with pytest.raises(UploadError, match="AccessDenied"):
        storage.upload_file(source, "Cosmic-06.mp3")


def test_cloud_storage_requires_credentials():
    with pytest.raises(ConfigurationError, match="R2_BUCKET_NAME"):
        CloudStorage(StorageSettings(account_id="acc", access_key_id="k", secret_access_key="s"))
