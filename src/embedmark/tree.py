"""Depth-first traversal helpers over :mod:`embedmark.model` trees."""

from __future__ import annotations

from typing import Iterator, List, Optional, Tuple

from .model import Node, Parent


def walk(tree: Node, parent: Optional[Parent] = None) -> Iterator[Tuple[Node, Optional[Parent]]]:
    """Yield ``(node, parent)`` pairs in document order, ``tree`` first."""
    yield tree, parent
    if isinstance(tree, Parent):
        for child in list(tree.children):
            yield from walk(child, tree)


def visit(tree: Node, node_type: str | None = None) -> List[Tuple[Node, Optional[Parent]]]:
    """
    Collect ``(node, parent)`` pairs, optionally filtered by ``node.type``.

    The result is materialised up front so callers may replace nodes in
    their parents while iterating.
    """
    return [
        (node, parent)
        for node, parent in walk(tree)
        if node_type is None or node.type == node_type
    ]


__all__ = ["walk", "visit"]
