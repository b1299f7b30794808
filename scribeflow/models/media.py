"""Media file and upload progress models."""

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union


@dataclass(frozen=True)
class MediaFile:
    """A single file accepted for one workflow run."""
    name: str
    size_bytes: int
    mime_type: str
    path: Optional[Path] = None  # Local source of the bytes to upload

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "MediaFile":
        """Describe a file on disk, guessing its mime type from the extension."""
        file_path = Path(path)
        mime_type, _ = mimetypes.guess_type(file_path.name)
        return cls(
            name=file_path.name,
            size_bytes=file_path.stat().st_size,
            mime_type=mime_type or "application/octet-stream",
            path=file_path,
        )

    @property
    def size_mb(self) -> float:
        return self.size_bytes / (1024 * 1024)


@dataclass(frozen=True)
class UploadProgress:
    """Bytes transferred so far for one upload."""
    bytes_transferred: int
    total_bytes: int

    def __post_init__(self):
        if not 0 <= self.bytes_transferred <= self.total_bytes:
            raise ValueError(
                f"Invalid upload progress: {self.bytes_transferred}/{self.total_bytes} bytes"
            )

    @property
    def percent(self) -> int:
        if self.total_bytes == 0:
            return 100
        pct = (self.bytes_transferred * 100) // self.total_bytes
        return max(0, min(100, pct))
