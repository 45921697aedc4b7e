"""
Storage module for episode audio and the per-episode data store.

This module provides the object store abstraction the pipeline uploads audio
to (Cloudflare R2 or the local filesystem) and the durable record of every
artifact produced for an episode.
"""

from .base import BaseStorage, UploadResult, audio_object_key, get_content_type
from .cloud import CloudStorage
from .episode_store import EpisodeDataStore
from .local import LocalStorage

__all__ = [
    "BaseStorage",
    "CloudStorage",
    "EpisodeDataStore",
    "LocalStorage",
    "UploadResult",
    "audio_object_key",
    "get_content_type",
]
