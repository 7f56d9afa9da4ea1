"""Domain models for captured photos."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from urllib.parse import urlsplit


class PhotoFilter(str, Enum):
    """Console list filter."""

    PENDING = "pending"
    PROCESSED = "processed"
    ALL = "all"


@dataclass(frozen=True)
class PhotoRecord:
    """Represents a photo row stored in the database."""

    id: str
    file_url: str | None
    file_path: str | None = None
    created_at: datetime | None = None
    processed: bool = False
    name: str | None = None
    role: str | None = None

    @property
    def image_ref(self) -> str:
        """Return the URL when set, otherwise the storage path."""
        return self.file_url or self.file_path or ""

    @property
    def has_direct_url(self) -> bool:
        """Return True when the image reference can be used without signing."""
        return urlsplit(self.image_ref).scheme in {"http", "https"}

    @property
    def file_name(self) -> str:
        """Return the path or URL the console searches on."""
        return self.file_path or self.file_url or ""

    @classmethod
    def from_row(cls, row: dict[str, object]) -> "PhotoRecord":
        """Build a record from a `photos` table row."""
        created_at = row.get("created_at")
        return cls(
            id=str(row["id"]),
            file_url=_optional_text(row.get("file_url")),
            file_path=_optional_text(row.get("file_path")),
            created_at=datetime.fromisoformat(created_at)
            if isinstance(created_at, str)
            else None,
            processed=bool(row.get("processed", False)),
            name=_optional_text(row.get("name")),
            role=_optional_text(row.get("role")),
        )


def _optional_text(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
