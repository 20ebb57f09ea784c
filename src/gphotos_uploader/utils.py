"""Utility functions for the Google Photos uploader."""

import time
from datetime import datetime
from pathlib import Path

# Google Photos accepts only images and videos
IMAGE_EXTENSIONS = {
    ".jpg", ".jpeg", ".png", ".gif", ".bmp", ".webp", ".heic", ".heif",
    ".tif", ".tiff", ".ico", ".raw", ".dng", ".cr2", ".nef", ".arw",
}
VIDEO_EXTENSIONS = {
    ".mp4", ".mov", ".m4v", ".avi", ".mkv", ".wmv", ".mpg", ".mpeg",
    ".3gp", ".mts", ".m2ts", ".webm", ".flv",
}


def is_image_file(path: Path) -> bool:
    """Check if a file is a supported image format."""
    return path.is_file() and path.suffix.lower() in IMAGE_EXTENSIONS


def is_video_file(path: Path) -> bool:
    """Check if a file is a supported video format."""
    return path.is_file() and path.suffix.lower() in VIDEO_EXTENSIONS


def is_media_file(path: Path) -> bool:
    """Check if a file can be uploaded to Google Photos.

    Args:
        path: Path to the file to check

    Returns:
        True if the file is a supported image or video, False otherwise
    """
    return is_image_file(path) or is_video_file(path)


def current_timestamp_ms() -> int:
    """Current UNIX time in milliseconds."""
    return int(time.time() * 1000)


def default_name() -> str:
    """Name given to photos uploaded without one."""
    return datetime.now().isoformat(sep=" ")
