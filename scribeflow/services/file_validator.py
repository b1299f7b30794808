"""Validation of candidate files before a workflow run starts."""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

from ..exceptions import RejectionReason, ValidationError
from ..models.media import MediaFile


@dataclass(frozen=True)
class FileConstraints:
    """Size and type limits applied to a candidate file."""
    max_size_bytes: int = 250 * 1024 * 1024
    accepted_mime_prefixes: Tuple[str, ...] = ("video/",)

    @property
    def max_size_mb(self) -> float:
        return self.max_size_bytes / (1024 * 1024)


def validate(files: Union[MediaFile, Sequence[MediaFile], None],
             constraints: FileConstraints) -> MediaFile:
    """Accept exactly one file that satisfies ``constraints``.

    Args:
        files: A single candidate or the list offered by the file picker
        constraints: Limits to check against

    Returns:
        The accepted MediaFile

    Raises:
        ValidationError: With the RejectionReason of the first failed check
    """
    candidate = _single_candidate(files)

    if candidate.size_bytes > constraints.max_size_bytes:
        raise ValidationError(
            RejectionReason.TOO_LARGE,
            f"File exceeds {constraints.max_size_mb:g}MB limit.",
        )

    mime_type = (candidate.mime_type or "").lower()
    if not any(mime_type.startswith(prefix.lower()) for prefix in constraints.accepted_mime_prefixes):
        accepted = ", ".join(constraints.accepted_mime_prefixes)
        raise ValidationError(
            RejectionReason.UNSUPPORTED_TYPE,
            f"Unsupported file type '{candidate.mime_type}'; accepted: {accepted}",
        )

    return candidate


def _single_candidate(files: Union[MediaFile, Sequence[MediaFile], None]) -> MediaFile:
    if isinstance(files, MediaFile):
        return files

    candidates = list(files or [])
    if not candidates:
        raise ValidationError(RejectionReason.NO_FILE_SELECTED, "No file selected.")
    if len(candidates) > 1:
        raise ValidationError(
            RejectionReason.MULTIPLE_FILES_NOT_ALLOWED,
            f"Only one file can be transcribed at a time ({len(candidates)} offered).",
        )
    return candidates[0]


class FileValidator:
    """Binds a set of constraints so callers can validate without repeating them."""

    def __init__(self, constraints: Optional[FileConstraints] = None):
        self.constraints = constraints or FileConstraints()

    def validate(self, files: Union[MediaFile, Sequence[MediaFile], None]) -> MediaFile:
        return validate(files, self.constraints)
