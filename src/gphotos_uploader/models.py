"""Data models for the Google Photos uploader."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, BinaryIO

if TYPE_CHECKING:
    from gphotos_uploader.uploader import UploadError

# Base URL of every image served by Google Photos
IMAGE_BASE_URL = "https://lh3.googleusercontent.com"


@dataclass(frozen=True)
class UploadOptions:
    """Describes a single photo to upload.

    Only ``stream`` and ``file_size`` are required. The stream is read once
    during the upload and is never closed by the uploader.
    """

    stream: BinaryIO | None
    file_size: int
    name: str = ""
    # UNIX timestamp in milliseconds, negative when unknown
    timestamp: int = -1
    album_id: str = ""
    album_name: str = ""

    @classmethod
    def from_file(
        cls, file: BinaryIO, album_id: str = "", album_name: str = ""
    ) -> "UploadOptions":
        """Build upload options from an open binary file.

        Args:
            file: File opened in binary mode
            album_id: Existing album to move the photo into
            album_name: Name of a new album to create with the photo

        Returns:
            Options with size, name and timestamp taken from the file

        Raises:
            OSError: If the file information can't be read
        """
        info = os.fstat(file.fileno())
        return cls(
            stream=file,
            file_size=info.st_size,
            # Files opened from a descriptor have an int name
            name=os.path.basename(file.name) if isinstance(file.name, str) else "",
            timestamp=int(info.st_mtime) * 1000,
            album_id=album_id,
            album_name=album_name,
        )


@dataclass(frozen=True)
class UploadResult:
    """Result of a photo upload.

    ``uploaded`` tells whether the bytes reached Google Photos. It can be
    true while ``error`` is set: the photo exists but some later step
    (reading its URL, album handling) failed.
    """

    uploaded: bool
    image_id: str = ""
    image_url: str = ""
    album_id: str = ""
    error: UploadError | None = None

    def __post_init__(self) -> None:
        """Validate upload result."""
        if not self.uploaded and (self.image_id or self.image_url or self.album_id):
            raise ValueError("A photo that was not uploaded can't have ids or urls")

    @property
    def ok(self) -> bool:
        """True when every requested step succeeded."""
        return self.error is None

    def url_string(self) -> str:
        """Rebuild the image URL from the image id."""
        return f"{IMAGE_BASE_URL}/{self.image_id}"
