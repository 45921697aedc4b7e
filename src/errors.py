"""
Error taxonomy for the CastSmith pipeline.

Each pipeline stage has its own exception class so a failed job records which
stage broke. Adapter errors that are not already one of these are wrapped by
the runner with the original exception chained.
"""


class CastsmithError(Exception):
    """Base class for every error raised by CastSmith."""


class ConfigurationError(CastsmithError):
    """Required configuration is missing or invalid."""


class ClassificationMismatch(CastsmithError):
    """A file does not follow the episode naming convention."""


class DownloadError(CastsmithError):
    pass


class TranscriptionError(CastsmithError):
    pass


class TranscriptionTimeout(TranscriptionError):
    """The transcription job did not finish before the polling ceiling."""


class ExtractionError(CastsmithError):
    """The extractor could not produce structured content (recovered with fallback)."""


class UploadError(CastsmithError):
    pass


class PublishError(CastsmithError):
    pass


class PersistenceError(CastsmithError):
    """An episode data store write failed. Logged, never propagated."""
