from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class CandidateFile:
    """A file listed in the watched Drive folder. Immutable once read."""

    id: str
    name: str
    size: Optional[int] = None
    modified_time: Optional[datetime] = None
    mime_type: Optional[str] = None

    @classmethod
    def from_drive(cls, payload: Dict[str, Any]) -> "CandidateFile":
        """Build from a Drive API ``files`` resource (``id,name,size,modifiedTime,mimeType``)."""
        modified = payload.get("modifiedTime")
        size = payload.get("size")
        return cls(
            id=payload["id"],
            name=payload["name"],
            size=int(size) if size is not None else None,
            modified_time=_parse_rfc3339(modified) if modified else None,
            mime_type=payload.get("mimeType"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if self.modified_time is not None:
            data["modified_time"] = self.modified_time.isoformat()
        return data


def _parse_rfc3339(value: str) -> datetime:
    # Drive returns "2024-05-01T10:20:30.123Z"
    return datetime.fromisoformat(value.replace("Z", "+00:00"))
