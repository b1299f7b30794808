"""Unit tests for file validation."""

import pytest

from scribeflow.exceptions import RejectionReason, ValidationError
from scribeflow.models.media import MediaFile
from scribeflow.services.file_validator import FileConstraints, FileValidator, validate

MB = 1024 * 1024


def make_file(size_mb: float = 10, mime_type: str = "video/mp4", name: str = "clip.mp4") -> MediaFile:
    return MediaFile(name=name, size_bytes=int(size_mb * MB), mime_type=mime_type)


@pytest.mark.unit
class TestValidate:
    """Test cases for validate()."""

    def test_accepts_single_video(self):
        """Test a 10 MB mp4 is accepted as-is."""
        media = make_file()

        assert validate(media, FileConstraints()) is media

    def test_accepts_list_with_one_file(self):
        """Test the picker's one-element list is unwrapped."""
        media = make_file()

        assert validate([media], FileConstraints()) is media

    def test_accepts_file_exactly_at_limit(self):
        """Test the size limit is inclusive."""
        media = MediaFile(name="edge.mp4", size_bytes=250 * MB, mime_type="video/mp4")

        assert validate(media, FileConstraints()) is media

    def test_rejects_too_large(self):
        """Test files above the limit are rejected with TooLarge."""
        with pytest.raises(ValidationError) as exc_info:
            validate(make_file(size_mb=300), FileConstraints())

        assert exc_info.value.reason is RejectionReason.TOO_LARGE
        assert str(exc_info.value) == "File exceeds 250MB limit."

    def test_rejects_one_byte_over_limit(self):
        constraints = FileConstraints(max_size_bytes=1000)
        media = MediaFile(name="a.mp4", size_bytes=1001, mime_type="video/mp4")

        with pytest.raises(ValidationError) as exc_info:
            validate(media, constraints)

        assert exc_info.value.reason is RejectionReason.TOO_LARGE

    def test_oversized_non_video_rejected_as_too_large(self):
        """Test the size limit wins over the type check for any oversized file."""
        media = MediaFile(name="big.bin", size_bytes=300 * MB, mime_type="application/octet-stream")

        with pytest.raises(ValidationError) as exc_info:
            validate(media, FileConstraints())

        assert exc_info.value.reason is RejectionReason.TOO_LARGE

    def test_rejects_unsupported_type(self):
        """Test non-video files are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            validate(make_file(mime_type="audio/mpeg", name="song.mp3"), FileConstraints())

        assert exc_info.value.reason is RejectionReason.UNSUPPORTED_TYPE
        assert "audio/mpeg" in str(exc_info.value)

    def test_mime_prefix_match_ignores_case(self):
        media = make_file(mime_type="Video/QuickTime", name="clip.mov")

        assert validate(media, FileConstraints()) is media

    def test_custom_prefixes(self):
        """Test several accepted prefixes can be configured."""
        constraints = FileConstraints(accepted_mime_prefixes=("video/", "audio/"))
        media = make_file(mime_type="audio/wav", name="voice.wav")

        assert validate(media, constraints) is media

    def test_rejects_multiple_files(self):
        """Test only one file per run is allowed."""
        with pytest.raises(ValidationError) as exc_info:
            validate([make_file(name="a.mp4"), make_file(name="b.mp4")], FileConstraints())

        assert exc_info.value.reason is RejectionReason.MULTIPLE_FILES_NOT_ALLOWED

    @pytest.mark.parametrize("files", [None, []])
    def test_rejects_no_file(self, files):
        with pytest.raises(ValidationError) as exc_info:
            validate(files, FileConstraints())

        assert exc_info.value.reason is RejectionReason.NO_FILE_SELECTED
        assert str(exc_info.value) == "No file selected."

    def test_multiple_files_checked_before_size(self):
        """Test the file count is checked before any single file's attributes."""
        files = [make_file(size_mb=300), make_file(size_mb=300)]

        with pytest.raises(ValidationError) as exc_info:
            validate(files, FileConstraints())

        assert exc_info.value.reason is RejectionReason.MULTIPLE_FILES_NOT_ALLOWED


@pytest.mark.unit
class TestFileValidator:
    """Test cases for the FileValidator wrapper."""

    def test_default_constraints(self):
        validator = FileValidator()

        assert validator.constraints.max_size_bytes == 250 * MB
        assert validator.constraints.accepted_mime_prefixes == ("video/",)

    def test_uses_bound_constraints(self):
        validator = FileValidator(FileConstraints(max_size_bytes=5 * MB))

        with pytest.raises(ValidationError) as exc_info:
            validator.validate(make_file(size_mb=10))

        assert exc_info.value.reason is RejectionReason.TOO_LARGE
        assert str(exc_info.value) == "File exceeds 5MB limit."
