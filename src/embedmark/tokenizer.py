from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import NamedTuple
from urllib.parse import quote, urlsplit

from .errors import ParseError
from .model import (
    Embed,
    EmbedData,
    Link,
    Node,
    Paragraph,
    PendingOEmbed,
    RenderProperties,
    Text,
)
from .providers import Provider, ProviderRegistry
from .rewrite import compute_final_url
from .thumbnail import compute_thumbnail

logger = logging.getLogger(__name__)

MARKER_PREFIX = "!(http"

# --------------------------------------------------------------------- #
#  Helpers
# --------------------------------------------------------------------- #

_STRUCTURAL_CHARS = frozenset("!()")

# Characters encodeURIComponent leaves alone besides [A-Za-z0-9_.~-]
_COMPONENT_SAFE = "!*'()"


@dataclass(slots=True, frozen=True)
class MarkerSpan:
    """Source text consumed for one marker and the raw URL inside it."""

    text: str
    url: str
    terminated: bool


class TokenizeResult(NamedTuple):
    consumed: str
    node: Node


def recognize(text: str) -> bool:
    """Return ``True`` when ``text`` starts with a marker."""
    return text.startswith(MARKER_PREFIX)


def scan_marker(text: str) -> MarkerSpan | None:
    """
    Consume one marker from the start of ``text``.

    Characters are consumed until the previous one was ``)`` or the input
    ends; an unterminated marker swallows the rest of ``text``.
    """
    if not recognize(text):
        return None

    consumed: list[str] = []
    url: list[str] = []
    terminated = False
    for ch in text:
        consumed.append(ch)
        if ch not in _STRUCTURAL_CHARS:
            url.append(ch)
        if ch == ")":
            terminated = True
            break

    span = MarkerSpan(text="".join(consumed), url="".join(url), terminated=terminated)
    if not terminated:
        logger.debug("Unterminated marker consumed to end of input: %r", span.text[:50])
    return span


def oembed_target(provider: Provider, url: str) -> str:
    """Return the oEmbed request URL for ``url``."""
    return f"{provider.oembed}?format=json&url={quote(url, safe=_COMPONENT_SAFE)}"


def detect_provider(url: str, registry: ProviderRegistry) -> Provider | None:
    """
    Look up the provider for the hostname of ``url``.

    :raises ParseError: when ``url`` has no parseable hostname.
    """
    try:
        hostname = urlsplit(url).hostname
    except ValueError as exc:
        raise ParseError(f"embedmark found an invalid URL: {url}", url=url) from exc
    if not hostname:
        raise ParseError("embedmark found an invalid hostname", url=url)
    return registry.lookup(hostname)


def build_embed(provider: Provider, url: str) -> Embed:
    """
    Create the embed node for an accepted ``url``.

    Providers with an oEmbed endpoint yield a pending node; the others are
    resolved immediately through the rewrite pipeline.
    """
    if provider.oembed:
        data = EmbedData(
            h_name=provider.tag,
            h_properties=RenderProperties(width=provider.width, height=provider.height),
            oembed=PendingOEmbed(
                url=oembed_target(provider, url),
                provider=provider,
                fallback=Link(url=url, children=[Text(value=url)]),
            ),
        )
        return Embed(src=url, data=data)

    final_url = compute_final_url(provider, url)
    thumbnail = compute_thumbnail(provider, final_url)
    data = EmbedData(
        h_name=provider.tag,
        h_properties=RenderProperties(
            src=final_url, width=provider.width, height=provider.height
        ),
    )
    return Embed(src=url, data=data, thumbnail=thumbnail or None)


def classify(span: MarkerSpan, registry: ProviderRegistry) -> Node:
    """Turn a marker span into an embed node or a plain-text paragraph."""
    provider = detect_provider(span.url, registry)
    if provider is None or not provider.accepts(span.url):
        logger.debug("No enabled provider accepts %s; keeping literal text", span.url)
        return Paragraph(children=[Text(value=span.text)])
    return build_embed(provider, span.url)


# --------------------------------------------------------------------- #
#  Main entry
# --------------------------------------------------------------------- #


def tokenize(
    text: str, registry: ProviderRegistry, silent: bool = False
) -> TokenizeResult | bool | None:
    """
    Block tokenizer for ``!(url)`` markers.

    :param text: Source text starting at the current block.
    :param registry: Providers to classify against.
    :param silent: Only report whether a marker starts here.
    :returns: ``None`` when no marker starts here, ``True`` in silent mode,
        otherwise the consumed text and the produced node.
    :raises ParseError: when the marker URL has no hostname.
    """
    span = scan_marker(text)
    if span is None:
        return None
    if silent:
        return True
    return TokenizeResult(span.text, classify(span, registry))


def serialize(node: Embed) -> str:
    """Write an embed node back as marker text (always the raw URL)."""
    return f"!({node.src})"


__all__ = [
    "MARKER_PREFIX",
    "MarkerSpan",
    "TokenizeResult",
    "recognize",
    "scan_marker",
    "oembed_target",
    "detect_provider",
    "build_embed",
    "classify",
    "tokenize",
    "serialize",
]
