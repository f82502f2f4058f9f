"""
Host extension point and a minimal reference host.

A host is whatever document framework drives parsing and serialization.
Plugins register with it through two calls only::

    host.add_block_tokenizer("iframes", tokenizer, after="blockquote")
    host.add_serializer("iframe", serializer)

``tokenizer(text, silent)`` receives the source from the start of a block and
returns ``None`` (no match), ``True`` (silent match) or a
``(consumed_text, node)`` pair. ``serializer(node)`` returns source text.

:class:`MarkdownHost` is a small implementation of that contract: blocks are
separated by blank lines, block tokenizers run in registration order at each
block start, and anything unclaimed becomes a plain paragraph. It exists so
the package can be exercised end to end, not as a general Markdown parser.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Protocol, Tuple

from .model import Link, Node, Paragraph, Parent, Point, Position, Root, Text

logger = logging.getLogger(__name__)

BlockTokenizer = Callable[..., "Tuple[str, Node] | bool | None"]
Serializer = Callable[[Node], str]

# ------------------------------------------------------------------ #
# 1.  Extension contract
# ------------------------------------------------------------------ #


class HostParser(Protocol):
    def add_block_tokenizer(
        self, name: str, tokenizer: BlockTokenizer, *, after: str | None = None
    ) -> None:
        """Register ``tokenizer`` under ``name`` (after ``after`` if known)."""

    def add_serializer(self, node_type: str, serializer: Serializer) -> None:
        """Register the text serializer for ``node_type``."""


# ------------------------------------------------------------------ #
# 2.  Default serializers
# ------------------------------------------------------------------ #

_SERIALIZERS: Dict[str, Serializer] = {}


def register(node_type: str):
    """Decorator storing a default serializer for ``node_type``."""

    def decorator(fn: Serializer) -> Serializer:
        _SERIALIZERS[node_type] = fn
        return fn

    return decorator


def get(node_type: str) -> Serializer | None:
    """Return the default serializer for ``node_type`` or ``None``."""
    return _SERIALIZERS.get(node_type)


@register("text")
def _text(node: Text) -> str:
    return node.value


@register("link")
def _link(node: Link) -> str:
    label = "".join(child.value for child in node.children if isinstance(child, Text))
    if label == node.url:
        return f"<{node.url}>"
    return f"[{label}]({node.url})"


# ------------------------------------------------------------------ #
# 3.  Reference host
# ------------------------------------------------------------------ #


def _point(text: str, offset: int) -> Point:
    line = text.count("\n", 0, offset) + 1
    column = offset - (text.rfind("\n", 0, offset) + 1) + 1
    return Point(line=line, column=column, offset=offset)


class MarkdownHost:
    """Blank-line block parser plus compiler implementing :class:`HostParser`."""

    def __init__(self) -> None:
        self._tokenizers: Dict[str, BlockTokenizer] = {}
        self._order: List[str] = []
        self._serializers: Dict[str, Serializer] = {}

    # ---------- registration ---------------------------------------- #

    def add_block_tokenizer(
        self, name: str, tokenizer: BlockTokenizer, *, after: str | None = None
    ) -> None:
        if name in self._tokenizers:
            raise ValueError(f"Block tokenizer '{name}' already registered")
        self._tokenizers[name] = tokenizer
        if after is not None and after in self._order:
            self._order.insert(self._order.index(after) + 1, name)
        else:
            self._order.append(name)

    def add_serializer(self, node_type: str, serializer: Serializer) -> None:
        self._serializers[node_type] = serializer

    @property
    def block_methods(self) -> List[str]:
        return list(self._order)

    # ---------- parsing --------------------------------------------- #

    def _tokenize_block(self, rest: str) -> Tuple[str, Node] | None:
        for name in self._order:
            result = self._tokenizers[name](rest, False)
            if result:
                return result  # type: ignore[return-value]
        return None

    def parse(self, text: str) -> Root:
        """Split ``text`` into block nodes with source positions."""
        root = Root(children=[])
        offset = 0
        while offset < len(text):
            if text[offset] == "\n":
                offset += 1
                continue

            claimed = self._tokenize_block(text[offset:])
            if claimed is not None:
                consumed, node = claimed
            else:
                end = text.find("\n\n", offset)
                consumed = text[offset:] if end == -1 else text[offset:end]
                node = Paragraph(children=[Text(value=consumed.rstrip("\n"))])

            if consumed.strip():
                node.position = Position(
                    start=_point(text, offset), end=_point(text, offset + len(consumed))
                )
                root.children.append(node)
            offset += max(len(consumed), 1)

        root.position = Position(start=_point(text, 0), end=_point(text, len(text)))
        logger.debug("Parsed %d blocks", len(root.children))
        return root

    # ---------- compiling ------------------------------------------- #

    def stringify(self, node: Node) -> str:
        """Serialize ``node`` back to source text."""
        if isinstance(node, Root):
            return "\n\n".join(self.stringify(child) for child in node.children) + "\n"
        if isinstance(node, Paragraph):
            return "".join(self.stringify(child) for child in node.children)

        serializer = self._serializers.get(node.type) or get(node.type)
        if serializer is None:
            if isinstance(node, Parent):
                return "".join(self.stringify(child) for child in node.children)
            raise ValueError(f"No serializer registered for node type '{node.type}'")
        return serializer(node)


__all__ = [
    "BlockTokenizer",
    "Serializer",
    "HostParser",
    "MarkdownHost",
    "register",
    "get",
]
