"""
Completion barrier for one document pass.

Every embed node in the tree is counted up front. Resolved embeds settle
immediately; each pending embed gets its own task and settles when its
oEmbed request succeeds or falls back. The ``done`` continuation runs exactly
once, right after the last settlement, or synchronously when the tree holds
no embeds at all. A cancelled pass cancels its outstanding requests and
never runs ``done``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional, Tuple

import aiohttp

from .model import Document, Embed, Node, Parent
from .resolver import DEFAULT_TIMEOUT_MS, Fetch, resolve_node, session_fetcher
from .tree import visit

logger = logging.getLogger(__name__)

Done = Callable[[Document], None]


class CountdownLatch:
    """Single-use countdown; ``on_zero`` fires once when the count hits zero."""

    def __init__(self, count: int, on_zero: Optional[Callable[[], None]] = None) -> None:
        if count < 0:
            raise ValueError("latch count must be >= 0")
        self._count = count
        self._on_zero = on_zero
        self._released = asyncio.Event()
        if count == 0:
            self._release()

    @property
    def count(self) -> int:
        return self._count

    @property
    def released(self) -> bool:
        return self._released.is_set()

    def count_down(self) -> None:
        if self._count == 0:
            raise RuntimeError("latch already released")
        self._count -= 1
        if self._count == 0:
            self._release()

    async def wait(self) -> None:
        await self._released.wait()

    def _release(self) -> None:
        self._released.set()
        if self._on_zero is not None:
            self._on_zero()


async def _dispatch(
    pending: List[Tuple[Embed, Parent]],
    document: Document,
    fetch: Fetch,
    latch: CountdownLatch,
) -> None:
    async def _settle(node: Embed, parent: Parent) -> None:
        try:
            await resolve_node(node, parent, document, fetch)
        except asyncio.CancelledError:
            # An abandoned pass never settles, so ``done`` must not fire
            raise
        except Exception:
            latch.count_down()
            raise
        latch.count_down()

    # Fire every request at once; completion order is irrelevant
    tasks = [asyncio.create_task(_settle(node, parent)) for node, parent in pending]
    try:
        await latch.wait()
    finally:
        unfinished = [task for task in tasks if not task.done()]
        for task in unfinished:
            task.cancel()
        if unfinished:
            logger.debug("Cancelling %d unsettled embeds", len(unfinished))
            await asyncio.gather(*unfinished, return_exceptions=True)
    # Re-raise anything unexpected from a settlement
    await asyncio.gather(*tasks)


async def resolve_tree(
    tree: Node,
    document: Document,
    *,
    fetch: Fetch | None = None,
    done: Done | None = None,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
) -> Document:
    """
    Resolve every pending embed in ``tree`` concurrently.

    :param tree: Tokenized document tree; mutated in place.
    :param document: Receives diagnostics for failed resolutions.
    :param fetch: Transport override; defaults to an ``aiohttp`` session
        opened only when at least one embed is pending.
    :param done: Continuation invoked exactly once with ``document``.
    :param timeout_ms: Per-request timeout for the default transport.
    :returns: ``document``.
    """
    embeds: List[Tuple[Embed, Parent]] = [
        (node, parent) for node, parent in visit(tree, "iframe")  # type: ignore[misc]
    ]
    pending = [(node, parent) for node, parent in embeds if node.pending]
    logger.info("Resolving %d embeds (%d pending oEmbed)", len(embeds), len(pending))

    on_zero = (lambda: done(document)) if done is not None else None
    latch = CountdownLatch(len(embeds), on_zero=on_zero)

    for node, _ in embeds:
        if not node.pending:
            latch.count_down()

    if not pending:
        return document

    if fetch is not None:
        await _dispatch(pending, document, fetch, latch)
    else:
        async with aiohttp.ClientSession() as session:
            await _dispatch(pending, document, session_fetcher(session, timeout_ms), latch)
    return document


__all__ = ["CountdownLatch", "Done", "resolve_tree"]
