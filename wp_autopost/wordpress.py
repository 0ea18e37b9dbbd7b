"""WordPress REST API client for WP Autopost."""

import base64
import re
from urllib.parse import quote

import requests

from .exceptions import AuthenticationFailed, MissingCredentials, PostCreationFailed
from .logging_config import create_execution_logger
from .models import ApiResponse, PostDraft, Raw, Structured

API_PREFIX = "/wp-json/wp/v2"
USER_AGENT = "WP-Autopost/1.0 (RSS to WordPress publisher)"

_INNER_WHITESPACE = re.compile(r"(?<=\S)\s+(?=\S)")
_NON_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def build_auth_header(username: str | None, app_password: str | None) -> str:
    """Build the Basic authorization header for an application password.

    Application passwords are displayed in space separated groups; every
    whitespace run between two groups is collapsed to a single space before
    encoding. Nothing else is altered.

    Raises:
        MissingCredentials: If the username or the password is empty
    """
    if not username or not username.strip():
        raise MissingCredentials("WordPress username is missing")
    if not app_password or not app_password.strip():
        raise MissingCredentials("WordPress application password is missing")

    password = _INNER_WHITESPACE.sub(" ", app_password)
    token = base64.b64encode(f"{username}:{password}".encode("utf-8"))
    return f"Basic {token.decode('ascii')}"


def content_disposition(filename: str) -> str:
    """Build an attachment Content-Disposition header safe for HTTP.

    Header values must be Latin-1, so a non-ASCII name is sent as an RFC 5987
    ``filename*`` parameter next to an ASCII fallback.
    """
    stem, dot, extension = filename.rpartition(".")
    if not dot:
        stem, extension = filename, ""
    ascii_stem = _NON_FILENAME_CHARS.sub("_", stem).strip("_") or "image"
    ascii_extension = _NON_FILENAME_CHARS.sub("", extension)
    fallback = f"{ascii_stem}.{ascii_extension}" if ascii_extension else ascii_stem

    if fallback == filename:
        return f'attachment; filename="{filename}"'
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename, safe='')}"


class WordPressClient:
    """Handles authenticated calls to the WordPress REST API."""

    def __init__(
        self,
        base_url: str,
        username: str,
        app_password: str,
        session: requests.Session | None = None,
        timeout: float = 30.0,
        execution_id: str | None = None,
    ):
        """Initialize the client.

        Args:
            base_url: Site URL, e.g. https://example.com
            username: WordPress user owning the application password
            app_password: Application password
            session: HTTP session to reuse, a new one is created if omitted
            timeout: Per-request timeout in seconds
            execution_id: Execution ID for logging context
        """
        self.base_url = base_url.rstrip("/")
        self.api_root = f"{self.base_url}{API_PREFIX}"
        self.timeout = timeout
        self.logger = create_execution_logger("wordpress_client", execution_id)
        self._auth_header = build_auth_header(username, app_password)
        self.session = session or requests.Session()

        self.logger.info(
            "WordPressClient initialized", api_root=self.api_root, timeout=timeout
        )

    def request(
        self,
        path: str,
        method: str = "GET",
        json: dict | None = None,
        data: bytes | None = None,
        headers: dict[str, str] | None = None,
    ) -> ApiResponse:
        """Send an authenticated request to the REST API.

        The body is parsed as JSON when possible and returned as raw text
        otherwise. ``success`` only reflects the HTTP status.

        Raises:
            requests.RequestException: On transport failures
        """
        url = f"{self.api_root}/{path.lstrip('/')}"
        request_headers = {
            "Authorization": self._auth_header,
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        }
        if headers:
            request_headers.update(headers)

        self.logger.debug(f"{method} {url}", method=method)
        response = self.session.request(
            method,
            url,
            json=json,
            data=data,
            headers=request_headers,
            timeout=self.timeout,
        )

        try:
            body = Structured(response.json())
        except ValueError:
            body = Raw(response.text)

        result = ApiResponse(
            success=200 <= response.status_code < 300,
            status_code=response.status_code,
            body=body,
        )
        self.logger.debug(
            f"{method} {url} returned {response.status_code}",
            status_code=response.status_code,
            parsed=isinstance(body, Structured),
        )
        return result

    def self_test(self) -> dict:
        """Verify the credentials against the current user endpoint.

        Raises:
            AuthenticationFailed: If WordPress rejects the credentials or
                cannot be reached
        """
        self.logger.info("Verifying WordPress credentials")
        try:
            response = self.request("users/me")
        except requests.RequestException as e:
            self.logger.error(f"Credential check failed: {e}", error=str(e))
            raise AuthenticationFailed(
                f"Could not reach WordPress for credential check: {e}"
            ) from e

        if not response.success:
            message = response.message()
            self.logger.error(
                "WordPress rejected the credentials",
                status_code=response.status_code,
            )
            raise AuthenticationFailed(
                f"WordPress authentication failed ({response.status_code}): {message}",
                status_code=response.status_code,
            )

        user = response.body.data if isinstance(response.body, Structured) else {}
        if not isinstance(user, dict):
            user = {}
        self.logger.info("WordPress credentials verified", user_id=user.get("id"))
        return user

    def upload_media(
        self, content: bytes, filename: str, mime_type: str
    ) -> ApiResponse:
        """Store raw file bytes in the media library."""
        return self.request(
            "media",
            method="POST",
            data=content,
            headers={
                "Content-Disposition": content_disposition(filename),
                "Content-Type": mime_type,
            },
        )

    def create_post(self, draft: PostDraft) -> tuple[int, str]:
        """Publish a post and return its id and permalink.

        Raises:
            PostCreationFailed: If WordPress rejects the post
        """
        response = self.request("posts", method="POST", json=draft.to_payload())

        if not response.success:
            raise PostCreationFailed(
                f"WordPress post failed ({response.status_code}): {response.message()}",
                status_code=response.status_code,
            )

        post = response.body.data if isinstance(response.body, Structured) else None
        if not isinstance(post, dict) or post.get("id") is None:
            raise PostCreationFailed(
                "WordPress returned no post id", status_code=response.status_code
            )

        self.logger.info(
            "Post created", post_id=post["id"], item_title=draft.title
        )
        return post["id"], post.get("link", "")
