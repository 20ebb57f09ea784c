"""Command-line interface for Google Photos uploader."""

import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from gphotos_uploader.api_client import GooglePhotosAPIError, GooglePhotosClient
from gphotos_uploader.auth import CredentialsError, load_credentials
from gphotos_uploader.models import UploadOptions
from gphotos_uploader.uploader import InvalidUploadError, UploadError, upload_photo
from gphotos_uploader.utils import is_media_file

app = typer.Typer(
    name="gphotos-uploader",
    help="Upload photos to Google Photos using a browser session",
    add_completion=False,
)
console = Console()

# Exit code when the photo was uploaded but a later step failed
EXIT_PARTIAL = 2


def setup_logging(verbose: bool) -> None:
    """Configure logging with Rich handler.

    Args:
        verbose: Enable verbose (DEBUG) logging
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, console=console)],
    )


def run_upload(
    file_path: Path,
    auth_file: Path,
    album_id: str,
    album_name: str,
    timeout: float,
) -> int:
    """Upload a single file.

    Returns:
        Exit code (0 for success, 1 for failure, 2 for partial success)
    """
    logger = logging.getLogger(__name__)

    try:
        credentials = load_credentials(auth_file)
    except (FileNotFoundError, CredentialsError) as e:
        logger.error(f"Can't load credentials: {e}")
        return 1

    with GooglePhotosClient(credentials, timeout=timeout) as api_client:
        # Fail before sending any byte when the session is not usable
        try:
            api_client.fetch_at_token()
        except GooglePhotosAPIError as e:
            logger.error(f"Can't use the Google Photos session: {e}")
            return 1

        with file_path.open("rb") as file:
            options = UploadOptions.from_file(
                file, album_id=album_id, album_name=album_name
            )
            try:
                result = upload_photo(api_client, options)
            except InvalidUploadError as e:
                logger.error(f"Can't upload {file_path}: {e}")
                return 1

    if not result.uploaded:
        console.print(f"[red]Upload of {file_path.name} failed: {result.error}[/red]")
        if result.error is not None and result.error.__cause__ is not None:
            console.print(f"  Cause: {result.error.__cause__}")
        return 1

    console.print(f"\n[bold]Uploaded {file_path.name}[/bold]")
    if result.image_url:
        console.print(f"  Image URL: {result.image_url}")
    if result.album_id:
        console.print(f"  Album ID: {result.album_id}")

    if not result.ok:
        console.print(f"  [yellow]Warning: {result.error}[/yellow]")
        if result.error.__cause__ is not None:
            console.print(f"  Cause: {result.error.__cause__}")
        if isinstance(result.error.__context__, UploadError):
            console.print(f"  [yellow]Warning: {result.error.__context__}[/yellow]")
        return EXIT_PARTIAL

    return 0


@app.command()
def upload(
    file_path: Path = typer.Argument(
        ...,
        help="Image or video to upload",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
    auth_file: Path = typer.Option(
        Path("auth.json"),
        "--auth",
        "-a",
        envvar="GPHOTOS_AUTH_FILE",
        help="JSON file with the session cookies (or set GPHOTOS_AUTH_FILE env var)",
    ),
    album_id: str = typer.Option(
        "",
        "--album",
        help="Id of an existing album to move the photo into",
    ),
    album_name: str = typer.Option(
        "",
        "--album-name",
        help="Name of a new album to create with the photo",
    ),
    timeout: float = typer.Option(
        30.0,
        "--timeout",
        min=1.0,
        help="Timeout in seconds of every request",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging",
    ),
) -> None:
    """Upload a photo to Google Photos.

    Sends FILE_PATH with the session stored in the credentials file,
    optionally moving it into an existing album or creating a new album
    that contains it.
    """
    setup_logging(verbose)

    if not is_media_file(file_path):
        console.print(
            f"[red]Error: {file_path.name} is not an image or a video. "
            "Google Photos accepts only images and videos.[/red]"
        )
        raise typer.Exit(1)

    exit_code = run_upload(file_path, auth_file, album_id, album_name, timeout)
    raise typer.Exit(exit_code)


if __name__ == "__main__":
    app()
