"""Thumbnail URL derivation from a provider's ``thumbnail`` template."""

from __future__ import annotations

import logging
import re

from .providers import Provider

logger = logging.getLogger(__name__)

FORMAT_KEY = "format"


def compute_thumbnail(provider: Provider, url: str) -> str:
    """
    Fill the provider's thumbnail template from regex captures on ``url``.

    Every key other than ``format`` is a pattern searched in ``url``; on a
    match, each ``{key}`` in the template becomes the first capture group.
    Placeholders whose pattern does not match stay in the output untouched.

    :returns: The thumbnail URL, or ``""`` when no template is configured.
    """
    config = provider.thumbnail
    if not config or not config.get(FORMAT_KEY):
        return ""

    thumbnail_url = config[FORMAT_KEY]
    for key, pattern in config.items():
        if key == FORMAT_KEY:
            continue
        found = re.search(pattern, url)
        if not found or found.re.groups < 1 or found.group(1) is None:
            logger.debug("Thumbnail key %r left unresolved for %s", key, url)
            continue
        thumbnail_url = thumbnail_url.replace(f"{{{key}}}", found.group(1))
    return thumbnail_url


__all__ = ["compute_thumbnail", "FORMAT_KEY"]
