"""Pytest configuration and shared fixtures."""

import io
import json
from pathlib import Path

import pytest
from pytest_httpx import HTTPXMock

from gphotos_uploader.api_client import (
    CREATE_ALBUM_RPC_ID,
    ENABLE_PHOTO_RPC_ID,
    MOVE_TO_ALBUM_RPC_ID,
    MUTATE_ENDPOINT,
    UPLOAD_URL_ENDPOINT,
)
from gphotos_uploader.auth import Cookie, SessionCredentials

UPLOAD_URL = "https://photos.google.com/_/upload/uploadmedia/rupio?upload_id=up_1&file_id=000"
UPLOAD_TOKEN = "dG9rZW4tMTIz"
MEDIA_KEY = "AF1QipMediaKey"
IMAGE_ID = "AbC-123_xyz"
IMAGE_URL = f"https://lh3.googleusercontent.com/{IMAGE_ID}"


def mutate_reply(rpc_id: str, data: object) -> str:
    """Build a mutate reply the way Google Photos sends it."""
    return ")]}'\n\n" + json.dumps([["af.mdr", int(rpc_id), {rpc_id: data}]])


class GooglePhotosMock:
    """Registers Google Photos replies on the httpx mock."""

    def __init__(self, httpx_mock: HTTPXMock) -> None:
        self.httpx_mock = httpx_mock

    def add_upload_url(self, upload_url: str = UPLOAD_URL) -> None:
        self.httpx_mock.add_response(
            method="POST",
            url=UPLOAD_URL_ENDPOINT,
            json={
                "sessionStatus": {
                    "state": "OPEN",
                    "externalFieldTransfers": [
                        {"name": "file", "putInfo": {"url": upload_url}}
                    ],
                }
            },
        )

    def add_upload(self, token: str = UPLOAD_TOKEN) -> None:
        self.httpx_mock.add_response(
            method="POST",
            url=UPLOAD_URL,
            json={
                "sessionStatus": {
                    "state": "FINALIZED",
                    "additionalInfo": {
                        "uploader_service.GoogleRupioAdditionalInfo": {
                            "completionInfo": {
                                "status": "SUCCESS",
                                "customerSpecificInfo": {"upload_token_base64": token},
                            }
                        }
                    },
                }
            },
        )

    def add_enable(self, image_url: str = IMAGE_URL, media_key: str = MEDIA_KEY) -> None:
        self.httpx_mock.add_response(
            method="POST",
            url=MUTATE_ENDPOINT,
            text=mutate_reply(ENABLE_PHOTO_RPC_ID, [[[media_key, [image_url, 800, 600]]]]),
        )

    def add_move(self) -> None:
        self.httpx_mock.add_response(
            method="POST",
            url=MUTATE_ENDPOINT,
            text=mutate_reply(MOVE_TO_ALBUM_RPC_ID, []),
        )

    def add_create_album(self, album_id: str) -> None:
        self.httpx_mock.add_response(
            method="POST",
            url=MUTATE_ENDPOINT,
            text=mutate_reply(CREATE_ALBUM_RPC_ID, [album_id, None, 1]),
        )

    def add_error(self, url: str, status_code: int = 500) -> None:
        self.httpx_mock.add_response(
            method="POST", url=url, status_code=status_code, text="<html>Error</html>"
        )

    def add_successful_upload(self) -> None:
        self.add_upload_url()
        self.add_upload()
        self.add_enable()


@pytest.fixture
def photos_mock(httpx_mock: HTTPXMock) -> GooglePhotosMock:
    """Return a helper registering Google Photos replies."""
    return GooglePhotosMock(httpx_mock)


@pytest.fixture
def credentials() -> SessionCredentials:
    """Return fake session credentials for testing."""
    return SessionCredentials(
        cookies=[Cookie(name="SID", value="sid_123"), Cookie(name="HSID", value="hsid_456")],
        user_id="user_123",
        at_token="at_token_123",
    )


@pytest.fixture
def photo_stream() -> io.BytesIO:
    """Return a stream with fake photo content."""
    return io.BytesIO(b"fake jpg content")


@pytest.fixture
def auth_file(tmp_path: Path) -> Path:
    """Create a credentials file for testing."""
    path = tmp_path / "auth.json"
    path.write_text(
        json.dumps(
            {
                "cookies": [
                    {"name": "SID", "value": "sid_123", "domain": ".google.com"},
                    {"Name": "HSID", "Value": "hsid_456", "Domain": ".google.com"},
                ],
                "persistentParameters": {"userId": "user_123"},
                "runtimeParameters": {"atToken": "at_token_123"},
            }
        )
    )
    return path


@pytest.fixture
def photo_file(tmp_path: Path) -> Path:
    """Create a fake photo file."""
    path = tmp_path / "photo1.jpg"
    path.write_bytes(b"fake jpg content")
    return path
