"""
URL rewrite pipeline
====================
Turns the raw URL written in a marker into the URL placed in the embed's
``src`` attribute. Stages run in a fixed order, each on the previous output,
and are skipped when the provider does not configure them:

1. drop ``dropped_query_parameters`` from the query string
2. apply ``replace`` pairs (literal, first occurrence, in list order)
3. ``remove_file_name``: cut the path after its last ``/``
4. ``remove_after``: cut the URL at the first occurrence of the marker
5. ``append`` a literal suffix

Example: ``https://www.youtube.com/watch?v=abc&list=xyz`` with
``replace=[("watch?v=", "embed/")]`` and ``remove_after="&"`` becomes
``https://www.youtube.com/embed/abc``.
"""

from __future__ import annotations

from typing import Iterable, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .providers import Provider


def drop_query_parameters(url: str, names: Iterable[str]) -> str:
    """Remove every parameter in ``names``; other parameters keep their order."""
    parts = urlsplit(url)
    if not parts.query:
        return url
    dropped = set(names)
    kept = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if key not in dropped
    ]
    return urlunsplit(parts._replace(query=urlencode(kept)))


def apply_replacements(url: str, rules: Iterable[Tuple[str, str]]) -> str:
    """Apply each ``(from, to)`` pair to the first occurrence, in order."""
    for old, new in rules:
        # A pair with an empty side is inert
        if old and new:
            url = url.replace(old, new, 1)
    return url


def remove_file_name(url: str) -> str:
    """Drop the last path segment (everything after the final ``/``)."""
    parts = urlsplit(url)
    cut = parts.path.rfind("/")
    path = parts.path[:cut] if cut >= 0 else ""
    return urlunsplit(parts._replace(path=path))


def remove_after(url: str, marker: str) -> str:
    """Truncate ``url`` at the first occurrence of ``marker`` if present."""
    cut = url.find(marker)
    return url[:cut] if cut >= 0 else url


def compute_final_url(provider: Provider, url: str) -> str:
    """
    Run the rewrite pipeline for ``provider`` over ``url``.

    :param provider: Rules of the matched hostname.
    :param url: Raw URL taken from the marker.
    :returns: The embeddable URL. Pure: identical inputs give identical output.
    """
    final_url = url

    if provider.dropped_query_parameters:
        final_url = drop_query_parameters(final_url, provider.dropped_query_parameters)

    if provider.replace:
        final_url = apply_replacements(final_url, provider.replace)

    if provider.remove_file_name:
        final_url = remove_file_name(final_url)

    if provider.remove_after:
        final_url = remove_after(final_url, provider.remove_after)

    if provider.append:
        final_url += provider.append

    return final_url


__all__ = [
    "compute_final_url",
    "drop_query_parameters",
    "apply_replacements",
    "remove_file_name",
    "remove_after",
]
