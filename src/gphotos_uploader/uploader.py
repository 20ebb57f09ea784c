"""Upload workflow: the sequence of requests that adds a photo to Google Photos."""

import dataclasses
import logging
import re

from gphotos_uploader.api_client import GooglePhotosClient
from gphotos_uploader.models import IMAGE_BASE_URL, UploadOptions, UploadResult
from gphotos_uploader.utils import current_timestamp_ms, default_name

logger = logging.getLogger(__name__)

UPLOADED_IMAGE_URL_REGEX = re.compile(re.escape(IMAGE_BASE_URL) + r"/([A-Za-z0-9_-]+)")


class InvalidUploadError(ValueError):
    """Exception raised when upload options can't be used for an upload."""

    pass


class UploadError(Exception):
    """Base exception for failed upload steps.

    The exception that made the step fail is available as ``__cause__``.
    """

    pass


class UploadURLError(UploadError):
    """Exception raised when no upload URL could be obtained."""

    pass


class FileTransferError(UploadError):
    """Exception raised when the file bytes could not be sent."""

    pass


class EnablePhotoError(UploadError):
    """Exception raised when the uploaded photo could not be enabled."""

    pass


class ImageIdError(UploadError):
    """Exception raised when the image URL doesn't contain the image id."""

    pass


class AlbumMoveError(UploadError):
    """Exception raised when the photo could not be moved into an album."""

    pass


class AlbumCreateError(UploadError):
    """Exception raised when the album could not be created."""

    pass


def _wrap(error_class: type[UploadError], message: str, cause: Exception) -> UploadError:
    """Build a phase error chained to its cause.

    Same chaining as ``raise error from cause``, for errors that are returned
    in a result instead of raised.
    """
    error = error_class(message)
    error.__cause__ = cause
    return error


def extract_image_id(url: str) -> str:
    """Get the image id from the URL of an uploaded image.

    Args:
        url: Image URL, e.g. https://lh3.googleusercontent.com/AbC-123

    Returns:
        The image id

    Raises:
        ImageIdError: If the URL doesn't match the expected format
    """
    if not isinstance(url, str):
        raise ImageIdError(f"url doesn't contain the image id: {url!r}")
    match = UPLOADED_IMAGE_URL_REGEX.fullmatch(url)
    if match is None:
        raise ImageIdError(f"url doesn't contain the image id: {url}")
    return match.group(1)


class UploadWorkflow:
    """Uploads one photo, making the required requests in order.

    A workflow can run a single time: create a new one for every upload.
    """

    def __init__(self, api_client: GooglePhotosClient, options: UploadOptions) -> None:
        """Validate the options and fill the missing optional fields.

        Args:
            api_client: Google Photos client, carrying the session credentials
            options: Photo to upload

        Raises:
            InvalidUploadError: If the stream is missing or the size is not positive
        """
        if options.stream is None:
            raise InvalidUploadError("the stream of the upload options is None")
        if options.file_size <= 0:
            raise InvalidUploadError("the file size of the upload options is <= 0")

        if not options.name:
            options = dataclasses.replace(options, name=default_name())
        if options.timestamp < 0:
            options = dataclasses.replace(options, timestamp=current_timestamp_ms())

        self.api_client = api_client
        self.options = options
        self._started = False

    def upload(self) -> UploadResult:
        """Upload the photo.

        A result is always returned. When ``result.uploaded`` is false
        nothing was stored; when it is true the photo exists even if
        ``result.error`` reports a later failure.

        Raises:
            RuntimeError: If the workflow was already run
        """
        if self._started:
            raise RuntimeError("An upload workflow can only be run once")
        self._started = True

        options = self.options
        logger.info(f"Uploading {options.name} ({options.file_size} bytes)")

        try:
            upload_url = self.api_client.request_upload_url(
                options.file_size, options.name, options.timestamp
            )
        except Exception as e:
            logger.error(f"Can't get an upload url for {options.name}: {e}")
            return UploadResult(
                uploaded=False, error=_wrap(UploadURLError, "can't get an upload url", e)
            )

        try:
            token = self.api_client.upload_file(upload_url, options.stream)
        except Exception as e:
            logger.error(f"Can't upload {options.name}: {e}")
            error = _wrap(
                FileTransferError,
                "can't upload file to the url obtained from the previous request",
                e,
            )
            return UploadResult(uploaded=False, error=error)

        # From here on the bytes are stored by Google Photos
        try:
            enabled = self.api_client.enable_photo(token, options.name, options.timestamp)
        except Exception as e:
            logger.warning(
                f"{options.name} has been uploaded, but the image url in the reply "
                "was not found. The image may not appear."
            )
            return UploadResult(
                uploaded=True,
                error=_wrap(EnablePhotoError, "can't enable the uploaded photo", e),
            )

        image_url = enabled.image_url
        try:
            image_id = extract_image_id(image_url)
        except ImageIdError as e:
            logger.warning(
                f"{options.name} has been uploaded, but the image url does not "
                "contain its id. The image may not appear."
            )
            return UploadResult(uploaded=True, image_url=image_url, error=e)

        warning: UploadError | None = None
        if options.album_id:
            try:
                self.api_client.move_to_album(options.album_id, enabled.media_key)
            except Exception as e:
                logger.warning(
                    f"{options.name} has been uploaded, but it was not moved "
                    f"into album {options.album_id}."
                )
                warning = _wrap(
                    AlbumMoveError, f"can't move the photo into album {options.album_id}", e
                )

        created_album_id = ""
        if options.album_name:
            try:
                created_album_id = self.api_client.create_album(
                    options.album_name, enabled.media_key
                )
            except Exception as e:
                logger.warning(
                    f"{options.name} has been uploaded, but the album "
                    f"'{options.album_name}' hasn't been created."
                )
                error = _wrap(
                    AlbumCreateError, f"can't create album '{options.album_name}'", e
                )
                # Keep the failed move reachable from the returned error
                error.__context__ = warning
                return UploadResult(
                    uploaded=True, image_id=image_id, image_url=image_url, error=error
                )

        if warning is None:
            logger.info(f"Successfully uploaded {options.name}: {image_url}")
        return UploadResult(
            uploaded=True,
            image_id=image_id,
            image_url=image_url,
            album_id=created_album_id,
            error=warning,
        )


def upload_photo(api_client: GooglePhotosClient, options: UploadOptions) -> UploadResult:
    """Upload a photo with a new workflow.

    Raises:
        InvalidUploadError: If the options are not valid
    """
    return UploadWorkflow(api_client, options).upload()
