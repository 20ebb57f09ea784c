"""Session credentials loaded from a cookie file."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class CredentialsError(Exception):
    """Exception raised when a credentials file can't be used."""

    pass


@dataclass(frozen=True)
class Cookie:
    """A browser cookie of the Google session."""

    name: str
    value: str
    domain: str = ".google.com"


@dataclass(frozen=True)
class SessionCredentials:
    """Cookie based credentials of a logged in Google Photos session."""

    cookies: list[Cookie]
    user_id: str
    at_token: str | None = None


def _parse_cookie(raw: Any) -> Cookie:
    if not isinstance(raw, dict):
        raise CredentialsError(f"Invalid cookie entry: {raw!r}")
    # Accept both the lower case keys and the capitalized ones browsers export
    name = raw.get("name", raw.get("Name"))
    value = raw.get("value", raw.get("Value"))
    if not name or value is None:
        raise CredentialsError(f"Cookie entry without name or value: {raw!r}")
    domain = raw.get("domain", raw.get("Domain")) or ".google.com"
    return Cookie(name=name, value=value, domain=domain)


def load_credentials(path: Path) -> SessionCredentials:
    """Load session credentials from a JSON file.

    The file holds a ``cookies`` list, the account id under
    ``persistentParameters.userId`` and, optionally, the ``at`` token under
    ``runtimeParameters.atToken``.

    Args:
        path: Path to the credentials file

    Returns:
        The parsed credentials

    Raises:
        FileNotFoundError: If the file doesn't exist
        CredentialsError: If the file content is not valid
    """
    if not path.exists():
        raise FileNotFoundError(f"Credentials file not found: {path}")

    try:
        data = json.loads(path.read_text())
    except ValueError as e:
        raise CredentialsError(f"Credentials file {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise CredentialsError(f"Credentials file {path} must contain a JSON object")

    raw_cookies = data.get("cookies")
    if not raw_cookies or not isinstance(raw_cookies, list):
        raise CredentialsError(f"Credentials file {path} has no cookies")
    cookies = [_parse_cookie(raw) for raw in raw_cookies]

    user_id = (data.get("persistentParameters") or {}).get("userId")
    if not user_id:
        raise CredentialsError(f"Credentials file {path} has no persistentParameters.userId")

    runtime = data.get("runtimeParameters") or {}
    at_token = runtime.get("atToken") or None

    logger.debug(f"Loaded {len(cookies)} cookie(s) for user {user_id} from {path}")
    return SessionCredentials(cookies=cookies, user_id=user_id, at_token=at_token)
