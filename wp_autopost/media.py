"""Featured image upload for WP Autopost."""

import posixpath
from urllib.parse import unquote, urlparse

import requests

from .exceptions import ImageDownloadError, MediaUploadError
from .logging_config import create_execution_logger
from .models import Structured, UploadedMedia
from .wordpress import WordPressClient

DEFAULT_FILENAME = "image.jpg"
DEFAULT_MIME_TYPE = "image/jpeg"


def filename_from_url(image_url: str) -> str:
    """Derive an upload filename from the URL path, ignoring the query."""
    try:
        path = urlparse(image_url).path
    except ValueError:
        return DEFAULT_FILENAME
    name = posixpath.basename(unquote(path).rstrip("/")).strip()
    return name or DEFAULT_FILENAME


def mime_type_from_header(content_type: str | None) -> str:
    """Strip parameters from a Content-Type header value."""
    if not content_type:
        return DEFAULT_MIME_TYPE
    mime_type = content_type.split(";", 1)[0].strip().lower()
    return mime_type or DEFAULT_MIME_TYPE


class MediaPublisher:
    """Copies a remote image into the WordPress media library."""

    def __init__(
        self,
        client: WordPressClient,
        session: requests.Session | None = None,
        timeout: float = 30.0,
        execution_id: str | None = None,
    ):
        self.client = client
        self.session = session or requests.Session()
        self.timeout = timeout
        self.logger = create_execution_logger("media_publisher", execution_id)

    def download(self, image_url: str) -> tuple[bytes, str]:
        """Download an image and return its bytes and MIME type.

        Raises:
            ImageDownloadError: On transport failure or a non-success status
        """
        try:
            response = self.session.get(image_url, timeout=self.timeout)
        except requests.RequestException as e:
            raise ImageDownloadError(f"Failed to download image {image_url}: {e}") from e

        if not response.ok:
            raise ImageDownloadError(
                f"Image download failed ({response.status_code}): {image_url}",
                status_code=response.status_code,
            )

        return response.content, mime_type_from_header(
            response.headers.get("Content-Type")
        )

    def upload(self, image_url: str) -> UploadedMedia:
        """Download an image and upload it to the media library.

        Raises:
            ImageDownloadError: If the image cannot be downloaded
            MediaUploadError: If WordPress rejects the upload
        """
        content, mime_type = self.download(image_url)
        filename = filename_from_url(image_url)

        self.logger.info(
            "Uploading image to media library",
            image_url=image_url,
            upload_name=filename,
            mime_type=mime_type,
            size=len(content),
        )

        try:
            response = self.client.upload_media(content, filename, mime_type)
        except (requests.RequestException, ValueError) as e:
            # ValueError covers header encoding failures raised by http.client
            raise MediaUploadError(f"Media upload request failed: {e}") from e

        if not response.success:
            raise MediaUploadError(
                f"Media upload failed ({response.status_code}): {response.message()}",
                status_code=response.status_code,
                body=response.body,
            )

        media = response.body.data if isinstance(response.body, Structured) else None
        if not isinstance(media, dict) or media.get("id") is None:
            raise MediaUploadError(
                "Media upload returned no media id",
                status_code=response.status_code,
                body=response.body,
            )

        self.logger.info(
            "Image uploaded", media_id=media["id"], image_url=image_url
        )
        return UploadedMedia(media_id=media["id"], source_url=image_url)
