"""Plugin facade tying the registry, tokenizer and completion barrier together."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Tuple

from .barrier import Done, resolve_tree
from .host import HostParser, MarkdownHost
from .model import Document, Embed, Node, Root
from .providers import ProviderRegistry
from .resolver import DEFAULT_TIMEOUT_MS, Fetch
from .tokenizer import TokenizeResult, serialize, tokenize

logger = logging.getLogger(__name__)

TOKENIZER_NAME = "iframes"
NODE_TYPE = "iframe"


class EmbedPlugin:
    """
    ``!(url)`` embed support for a host document framework.

    :param providers: Provider configuration mapping (or a built registry).
    :param timeout_ms: Per-request oEmbed timeout for the default transport.
    :param fetch: Optional transport override used for every pass.
    :raises ConfigurationError: when ``providers`` is missing or empty.
    """

    def __init__(
        self,
        providers: Mapping[str, Any] | ProviderRegistry | None,
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        fetch: Fetch | None = None,
    ) -> None:
        if isinstance(providers, ProviderRegistry):
            self.registry = providers
        else:
            self.registry = ProviderRegistry(providers)
        self.timeout_ms = timeout_ms
        self.fetch = fetch

    @classmethod
    def from_settings(cls, settings: Any = None, **kwargs: Any) -> "EmbedPlugin":
        """Build from a :class:`~embedmark.config.core.Core` (the loaded one by default)."""
        if settings is None:
            from .config import core as settings
        kwargs.setdefault("timeout_ms", settings.OEMBED_TIMEOUT_MS)
        return cls(settings.PROVIDERS, **kwargs)

    # ---------- host capabilities ----------------------------------- #

    def tokenizer(self, text: str, silent: bool = False) -> TokenizeResult | bool | None:
        """Recognizer + tokenizer handed to the host parser."""
        return tokenize(text, self.registry, silent)

    @staticmethod
    def serializer(node: Node) -> str:
        if not isinstance(node, Embed):
            raise TypeError(f"Cannot serialize {node.type} node as an embed marker")
        return serialize(node)

    def attach(self, host: HostParser, *, after: str | None = "blockquote") -> None:
        """Register the tokenizer and serializer with ``host``."""
        host.add_block_tokenizer(TOKENIZER_NAME, self.tokenizer, after=after)
        host.add_serializer(NODE_TYPE, self.serializer)

    # ---------- pass ------------------------------------------------ #

    async def transform(
        self, tree: Node, document: Document, done: Done | None = None
    ) -> Document:
        """Run the completion barrier over ``tree``."""
        return await resolve_tree(
            tree, document, fetch=self.fetch, done=done, timeout_ms=self.timeout_ms
        )

    async def process(
        self, text: str, *, path: str | None = None, host: MarkdownHost | None = None
    ) -> Tuple[Root, Document]:
        """
        Parse ``text`` with the reference host and resolve every embed.

        :raises ParseError: when a marker URL has no hostname.
        """
        if host is None:
            host = MarkdownHost()
            self.attach(host)
        document = Document(text, path=path)
        tree = host.parse(text)
        await self.transform(tree, document)
        return tree, document


__all__ = ["EmbedPlugin", "TOKENIZER_NAME", "NODE_TYPE"]
