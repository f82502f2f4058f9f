"""Error categories raised while loading providers or parsing markers.

Only fatal conditions are exceptions. Recoverable resolution failures are
returned as :class:`embedmark.resolver.SoftFallback` values instead.
"""

from __future__ import annotations


class EmbedError(Exception):
    """Base class for fatal embed-processing errors."""

    pass


class ConfigurationError(EmbedError):
    """Raised when the provider configuration is missing or malformed."""

    pass


class ParseError(EmbedError):
    """Raised when a marker URL has no parseable hostname.

    Aborts the current document pass.
    """

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


__all__ = ["EmbedError", "ConfigurationError", "ParseError"]
