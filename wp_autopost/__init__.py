"""WP Autopost: publish syndicated feed items to a WordPress site."""

__version__ = "1.0.0"
