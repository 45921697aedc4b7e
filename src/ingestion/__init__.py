"""
Ingestion package for CastSmith.

Everything that happens before a recording reaches the work queue:

1. Naming convention (classifier.py):
   - Decides which files are episode candidates
   - Derives the episode number and variant (full / transcript)

2. Google Drive (drive.py):
   - Lists and downloads recordings from the watched folder
   - Detection passes feeding the work queue

Modules:
    classifier: FileClassifier, Classification, Variant
    drive: GoogleDriveClient, DriveWatcher
    models: CandidateFile
"""

from .classifier import Classification, FileClassifier, Variant
from .models import CandidateFile

__all__ = ["Classification", "FileClassifier", "Variant", "CandidateFile"]
