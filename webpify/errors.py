from __future__ import annotations


class WebpifyError(Exception):
    """Base class for every error this package raises."""


class PathError(WebpifyError):
    """An input path could not be made absolute."""


class EncodeError(WebpifyError):
    """The WebP encoder failed for one file."""


class ValidationCleanupError(WebpifyError):
    """An output larger than its input could not be deleted."""


class DiscoveryError(WebpifyError):
    """Walking the target directory failed."""


class ConfigurationError(WebpifyError, ValueError):
    """Settings are missing or invalid. Raised before any work starts."""
