"""
oEmbed resolution
=================
1. Input : a pending :class:`~embedmark.model.Embed` (``data.oembed`` set)
2. GET ``data.oembed.url`` once, with a timeout, and parse the JSON body.
3. Extract the first ``src="..."`` from ``html`` plus ``thumbnail_url``,
   ``width`` and ``height``.
4. Return :class:`Resolved` on success, :class:`SoftFallback` otherwise.
5. :func:`apply` mutates the node (or swaps in the fallback link) and clears
   the pending sub-state.

NOTE: Failures are never retried. A timeout is reported as
``oEmbed URL timeout: <target>``; any other failure keeps its own message.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, replace
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

import aiohttp

from .model import Diagnostic, Document, Embed, EmbedData, Link, Parent

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 1500

_SRC_RE = re.compile(r'src="(.+?)"')

# Transport contract: oEmbed target URL in, parsed JSON out
Fetch = Callable[[str], Awaitable[Any]]


@dataclass(slots=True, frozen=True)
class EmbedMetadata:
    url: str
    thumbnail: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None


@dataclass(slots=True, frozen=True)
class Resolved:
    metadata: EmbedMetadata


@dataclass(slots=True, frozen=True)
class SoftFallback:
    """Recoverable failure: the replacement node plus its diagnostic."""

    node: Link
    diagnostic: Diagnostic


Resolution = Union[Resolved, SoftFallback]


# ---------- transport ------------------------------------------------ #


async def fetch_json(
    session: aiohttp.ClientSession, url: str, timeout_ms: int = DEFAULT_TIMEOUT_MS
) -> Any:
    """GET ``url`` and decode the body as JSON whatever its content type."""
    timeout = aiohttp.ClientTimeout(total=timeout_ms / 1000)
    async with session.get(url, timeout=timeout) as resp:
        resp.raise_for_status()
        return await resp.json(content_type=None)


def session_fetcher(
    session: aiohttp.ClientSession, timeout_ms: int = DEFAULT_TIMEOUT_MS
) -> Fetch:
    """Bind :func:`fetch_json` to a shared session."""

    async def _fetch(url: str) -> Any:
        return await fetch_json(session, url, timeout_ms)

    return _fetch


# ---------- metadata ------------------------------------------------- #


def parse_oembed(payload: Any) -> EmbedMetadata:
    """
    Pull the embeddable resource out of an oEmbed response.

    :raises ValueError: when the payload has no ``html`` with a ``src``.
    """
    if not isinstance(payload, Mapping):
        raise ValueError("oEmbed response is not a JSON object")
    html = payload.get("html")
    if not isinstance(html, str):
        raise ValueError("oEmbed response has no html field")
    found = _SRC_RE.search(html)
    if not found:
        raise ValueError("oEmbed html has no src attribute")
    return EmbedMetadata(
        url=found.group(1),
        thumbnail=payload.get("thumbnail_url"),
        width=payload.get("width"),
        height=payload.get("height"),
    )


async def fetch_embed(fetch: Fetch, target: str) -> EmbedMetadata:
    """Fetch ``target`` and parse the response."""
    return parse_oembed(await fetch(target))


# ---------- public contract ------------------------------------------ #


async def resolve(node: Embed, fetch: Fetch) -> Resolution:
    """
    Resolve one pending embed. Never raises for network or payload errors.

    :param node: Embed whose ``data.oembed`` is set.
    :param fetch: Transport returning parsed JSON for a URL.
    :returns: :class:`Resolved` or :class:`SoftFallback`.
    """
    pending = node.data.oembed
    if pending is None:
        raise ValueError(f"Embed for {node.src} has no pending oEmbed request")

    try:
        metadata = await fetch_embed(fetch, pending.url)
    except asyncio.TimeoutError:
        message = f"oEmbed URL timeout: {pending.url}"
    except Exception as e:
        message = str(e) or e.__class__.__name__
    else:
        logger.debug("Resolved oEmbed for %s", node.src)
        return Resolved(metadata)

    return SoftFallback(
        node=pending.fallback,
        diagnostic=Diagnostic(message=message, position=node.position, url=pending.url),
    )


def apply(resolution: Resolution, node: Embed, parent: Parent, document: Document) -> None:
    """
    Commit a resolution to the tree. Clears ``node.data.oembed`` either way.

    On :class:`SoftFallback` the diagnostic is reported and ``node`` is
    replaced inside ``parent`` by the fallback link (same position).
    """
    pending = node.data.oembed
    if pending is None:
        raise RuntimeError(f"Embed for {node.src} was already settled")

    if isinstance(resolution, Resolved):
        meta = resolution.metadata
        props = node.data.h_properties
        node.thumbnail = meta.thumbnail
        props.src = meta.url
        props.width = pending.provider.width or meta.width
        props.height = pending.provider.height or meta.height
        props.allowfullscreen = True
        props.frameborder = "0"
        node.data.oembed = None
        return

    document.report(resolution.diagnostic)
    node.data = EmbedData()
    fallback = replace(resolution.node, position=node.position)
    for idx, child in enumerate(parent.children):
        if child is node:
            parent.children[idx] = fallback
            break
    else:
        raise RuntimeError(f"Embed for {node.src} is not a child of its parent")


async def resolve_node(
    node: Embed, parent: Parent, document: Document, fetch: Fetch
) -> None:
    """Visitor for one pending embed: resolve, then apply."""
    apply(await resolve(node, fetch), node, parent, document)


__all__ = [
    "DEFAULT_TIMEOUT_MS",
    "Fetch",
    "EmbedMetadata",
    "Resolved",
    "SoftFallback",
    "Resolution",
    "fetch_json",
    "session_fetcher",
    "parse_oembed",
    "fetch_embed",
    "resolve",
    "apply",
    "resolve_node",
]
