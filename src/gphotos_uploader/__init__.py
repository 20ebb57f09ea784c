"""Google Photos Uploader - Upload photos to Google Photos with a browser session."""

__version__ = "0.1.0"

from gphotos_uploader.api_client import GooglePhotosAPIError, GooglePhotosClient
from gphotos_uploader.auth import SessionCredentials, load_credentials
from gphotos_uploader.models import UploadOptions, UploadResult
from gphotos_uploader.uploader import (
    InvalidUploadError,
    UploadError,
    UploadWorkflow,
    extract_image_id,
    upload_photo,
)

__all__ = [
    "GooglePhotosAPIError",
    "GooglePhotosClient",
    "SessionCredentials",
    "load_credentials",
    "UploadOptions",
    "UploadResult",
    "InvalidUploadError",
    "UploadError",
    "UploadWorkflow",
    "extract_image_id",
    "upload_photo",
]
