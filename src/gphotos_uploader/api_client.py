"""Google Photos web API client using httpx.

The requests mimic the ones the Google Photos web application sends, so the
payloads follow that private, undocumented format.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, BinaryIO

import httpx

from gphotos_uploader.auth import SessionCredentials

logger = logging.getLogger(__name__)

PHOTOS_BASE_URL = "https://photos.google.com"
UPLOAD_URL_ENDPOINT = f"{PHOTOS_BASE_URL}/_/upload/uploadmedia/rupio?authuser=0"
MUTATE_ENDPOINT = f"{PHOTOS_BASE_URL}/_/PhotosUi/mutate"

USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36"
)

# Ids of the remote procedures called through the mutate endpoint
ENABLE_PHOTO_RPC_ID = "73931313"
MOVE_TO_ALBUM_RPC_ID = "79956622"
CREATE_ALBUM_RPC_ID = "79956621"

# Prefix Google puts before JSON replies to prevent XSSI
XSSI_PREFIX = ")]}'"

AT_TOKEN_REGEX = re.compile(r'"SNlM0e":"([^"]+)"')


class GooglePhotosAPIError(Exception):
    """Base exception for Google Photos API errors."""

    pass


class AuthenticationError(GooglePhotosAPIError):
    """Exception raised when the session credentials are rejected."""

    pass


@dataclass(frozen=True)
class EnabledPhoto:
    """Reply of the request that enables an uploaded photo."""

    # Internal id used to move the photo into an album
    media_key: str
    image_url: str


class GooglePhotosClient:
    """Client for the Google Photos web API, authenticated with cookies."""

    def __init__(self, credentials: SessionCredentials, timeout: float = 30.0) -> None:
        """Initialize Google Photos client.

        Args:
            credentials: Session cookies and account id
            timeout: Timeout in seconds of every request
        """
        self.credentials = credentials
        self.timeout = timeout
        self._at_token = credentials.at_token
        self._client: httpx.Client | None = None

    def __enter__(self) -> "GooglePhotosClient":
        """Context manager entry."""
        cookies = httpx.Cookies()
        for cookie in self.credentials.cookies:
            cookies.set(cookie.name, cookie.value, domain=cookie.domain)
        self._client = httpx.Client(
            cookies=cookies,
            headers={"User-Agent": USER_AGENT},
            timeout=self.timeout,
        )
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        if self._client:
            self._client.close()
        self._client = None

    @property
    def client(self) -> httpx.Client:
        """Get the httpx Client instance.

        Raises:
            RuntimeError: If client is used outside of context manager
        """
        if self._client is None:
            raise RuntimeError("Client must be used within context manager")
        return self._client

    def request_upload_url(self, file_size: int, name: str, timestamp: int) -> str:
        """Ask for the URL that will receive the photo bytes.

        Args:
            file_size: Size of the photo in bytes
            name: File name shown in Google Photos
            timestamp: UNIX timestamp of the photo in milliseconds

        Returns:
            Single use upload URL

        Raises:
            GooglePhotosAPIError: If the request fails
        """
        user_id = self.credentials.user_id
        fields: list[dict[str, Any]] = [
            {"external": {"name": "file", "filename": name, "put": {}, "size": file_size}}
        ]
        for field_name, content in (
            ("auto_create_album", "camera_sync.active"),
            ("auto_downsize", "true"),
            ("storage_policy", "use_manual_setting"),
            ("disable_asbe_notification", "true"),
            ("client", "photoweb"),
            ("effective_id", user_id),
            ("owner_name", user_id),
            ("timestamp_ms", str(timestamp)),
        ):
            fields.append(
                {
                    "inlined": {
                        "name": field_name,
                        "content": content,
                        "contentType": "text/plain",
                    }
                }
            )
        body = {
            "protocolVersion": "0.8",
            "createSessionRequest": {"fields": fields},
        }

        context = "requesting the upload url"
        response = self._send("POST", UPLOAD_URL_ENDPOINT, context, json=body)
        result = self._parse_json_response(response, context)
        try:
            upload_url = result["sessionStatus"]["externalFieldTransfers"][0]["putInfo"]["url"]
        except (KeyError, IndexError, TypeError) as e:
            raise GooglePhotosAPIError(f"Upload url not found in the reply: {e!r}") from e

        logger.debug(f"Got upload url for {name}: {upload_url}")
        return upload_url

    def upload_file(self, upload_url: str, stream: BinaryIO) -> str:
        """Send the photo bytes to an upload URL.

        The stream is read to the end but not closed.

        Args:
            upload_url: URL returned by request_upload_url
            stream: Binary stream with the photo content

        Returns:
            Base64 upload token that identifies the uploaded bytes

        Raises:
            GooglePhotosAPIError: If the upload fails
        """
        context = "uploading the file"
        response = self._send(
            "POST",
            upload_url,
            context,
            content=stream,
            headers={"Content-Type": "application/octet-stream"},
        )
        result = self._parse_json_response(response, context)
        try:
            info = result["sessionStatus"]["additionalInfo"][
                "uploader_service.GoogleRupioAdditionalInfo"
            ]
            token = info["completionInfo"]["customerSpecificInfo"]["upload_token_base64"]
        except (KeyError, TypeError) as e:
            raise GooglePhotosAPIError(f"Upload token not found in the reply: {e!r}") from e

        logger.debug("File bytes uploaded")
        return token

    def enable_photo(self, upload_token: str, name: str, timestamp: int) -> EnabledPhoto:
        """Turn uploaded bytes into a photo of the library.

        Args:
            upload_token: Token returned by upload_file
            name: File name shown in Google Photos
            timestamp: UNIX timestamp of the photo in milliseconds

        Returns:
            The media key and the URL of the new photo

        Raises:
            GooglePhotosAPIError: If the request fails
        """
        params = [[[upload_token, name, timestamp]]]
        reply = self._mutate(ENABLE_PHOTO_RPC_ID, params, "enabling the photo")
        try:
            entry = reply[0][0]
            media_key, image_url = entry[0], entry[1][0]
        except (KeyError, IndexError, TypeError) as e:
            raise GooglePhotosAPIError(f"Photo url not found in the reply: {e!r}") from e
        if not isinstance(media_key, str) or not isinstance(image_url, str):
            raise GooglePhotosAPIError(
                f"Invalid photo in the reply: {media_key!r}, {image_url!r}"
            )
        enabled = EnabledPhoto(media_key=media_key, image_url=image_url)

        logger.debug(f"Enabled photo {name}: {enabled.image_url}")
        return enabled

    def move_to_album(self, album_id: str, media_key: str) -> None:
        """Add a photo to an existing album.

        Args:
            album_id: Id of the album
            media_key: Media key returned by enable_photo

        Raises:
            GooglePhotosAPIError: If the request fails
        """
        self._mutate(
            MOVE_TO_ALBUM_RPC_ID,
            [[media_key], album_id],
            f"moving the photo into album {album_id}",
        )
        logger.debug(f"Moved {media_key} into album {album_id}")

    def create_album(self, album_name: str, media_key: str) -> str:
        """Create a new album containing a photo.

        Args:
            album_name: Title of the new album
            media_key: Media key returned by enable_photo

        Returns:
            Album ID

        Raises:
            GooglePhotosAPIError: If the request fails
        """
        context = f"creating album '{album_name}'"
        reply = self._mutate(CREATE_ALBUM_RPC_ID, [[media_key], None, album_name], context)
        try:
            album_id = reply[0]
        except (IndexError, TypeError) as e:
            raise GooglePhotosAPIError(f"Album id not found in the reply: {e!r}") from e
        if not isinstance(album_id, str) or not album_id:
            raise GooglePhotosAPIError(f"Invalid album id in the reply: {album_id!r}")

        logger.info(f"Created album '{album_name}' with ID: {album_id}")
        return album_id

    def fetch_at_token(self) -> str:
        """Get the token required by mutate requests.

        The token comes from the credentials when present, otherwise it is
        scraped from the Google Photos home page and cached.

        Raises:
            AuthenticationError: If the page doesn't contain the token
            GooglePhotosAPIError: If the page can't be loaded
        """
        if self._at_token:
            return self._at_token

        response = self._send("GET", f"{PHOTOS_BASE_URL}/", "loading the home page")
        match = AT_TOKEN_REGEX.search(response.text)
        if match is None:
            raise AuthenticationError(
                "Can't find the at token in the home page, the session may be expired"
            )
        self._at_token = match.group(1)
        logger.debug("Scraped at token from the home page")
        return self._at_token

    def _mutate(self, rpc_id: str, params: Any, context: str) -> Any:
        """Call a remote procedure through the mutate endpoint.

        Returns:
            The reply data of the procedure
        """
        request = [[[int(rpc_id), [{rpc_id: params}], None, None, 0]]]
        data = {
            "f.req": json.dumps(request, separators=(",", ":")),
            "at": self.fetch_at_token(),
        }
        response = self._send(
            "POST",
            MUTATE_ENDPOINT,
            context,
            data=data,
            headers={"X-Same-Domain": "1"},
        )
        reply = self._parse_json_response(response, context)
        try:
            return reply[0][2][rpc_id]
        except (KeyError, IndexError, TypeError) as e:
            raise GooglePhotosAPIError(
                f"Unexpected reply while {context}: {response.text[:200]}"
            ) from e

    def _send(self, method: str, url: str, context: str, **kwargs: Any) -> httpx.Response:
        """Send a request, turning transport and status errors into API errors."""
        try:
            response = self.client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"Network error while {context}: {e}")
            raise GooglePhotosAPIError(f"Network error while {context}: {e}") from e

        if response.status_code >= 400:
            self._handle_error_response(response, context)
        return response

    def _parse_json_response(self, response: httpx.Response, context: str) -> Any:
        """Parse a JSON response, stripping the XSSI prefix if present.

        Args:
            response: The httpx Response object
            context: Description of what operation was attempted

        Returns:
            Parsed JSON

        Raises:
            GooglePhotosAPIError: If the body is not JSON
        """
        text = response.text
        if text.startswith(XSSI_PREFIX):
            text = text[len(XSSI_PREFIX):]
        try:
            return json.loads(text)
        except ValueError as e:
            raise GooglePhotosAPIError(
                f"Invalid API response while {context}: {response.text[:200]}"
            ) from e

    def _handle_error_response(self, response: httpx.Response, context: str) -> None:
        """Handle error responses from Google Photos.

        Raises:
            AuthenticationError: If the session is not valid
            GooglePhotosAPIError: For other errors
        """
        status_code = response.status_code
        if status_code in (401, 403):
            error_msg = f"Session rejected while {context} (HTTP {status_code})"
            logger.error(error_msg)
            raise AuthenticationError(error_msg)

        error_msg = f"Google Photos error while {context}: HTTP {status_code} {response.text[:200]}"
        logger.error(error_msg)
        raise GooglePhotosAPIError(error_msg)
