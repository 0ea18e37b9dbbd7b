"""Error types for WP Autopost."""


class AutopostError(Exception):
    """Base class for all WP Autopost errors."""


class ConfigError(AutopostError):
    """Required configuration is missing or invalid."""


class MissingCredentials(ConfigError):
    """Username or application password is missing."""


class AuthenticationFailed(AutopostError):
    """The WordPress credential self-test was rejected."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NoItemsFound(AutopostError):
    """Every feed source was empty or failed."""


class FeedFetchError(AutopostError):
    """A single feed source could not be downloaded or parsed."""

    def __init__(self, message: str, feed_url: str):
        super().__init__(message)
        self.feed_url = feed_url


class MediaUploadError(AutopostError):
    """The featured image could not be stored in the media library."""

    def __init__(self, message: str, status_code: int | None = None, body=None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ImageDownloadError(MediaUploadError):
    """The source image could not be downloaded."""


class PostCreationFailed(AutopostError):
    """WordPress rejected the post creation request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
