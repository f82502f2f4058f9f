from __future__ import annotations

"""Dataclass models for document nodes and diagnostics.

Node schema (output of :meth:`Node.to_dict`):

```
{"type": "root", "children": [...]}
{"type": "paragraph", "children": [{"type": "text", "value": "!(https://x)"}]}
{"type": "link", "url": "https://x", "children": [{"type": "text", "value": "https://x"}]}
{"type": "iframe", "src": "<raw url>",
 "data": {"hName": "iframe",
          "hProperties": {"src": "<final url>", "width": 560, "height": 315,
                          "allowfullscreen": true, "frameborder": "0"}},
 "thumbnail": "<thumbnail url>"}
```

Objects keep only non-``None`` attributes when serialized. ``src`` on an
``iframe`` node is always the raw URL written in the marker; the embeddable
URL lives in ``data.hProperties.src``.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Literal, Optional

if TYPE_CHECKING:
    from .providers import Provider

logger = logging.getLogger(__name__)


def _drop_nones(d: Dict[str, Any]) -> Dict[str, Any]:
    """Return a shallow copy of ``d`` without keys mapped to ``None``."""
    return {k: v for k, v in d.items() if v is not None}


NodeType = Literal["root", "paragraph", "text", "link", "iframe"]

# Placeholder resource URL carried by pending embeds until oEmbed settles
PENDING_SRC = "tmp"


# --------------------------------------------------------------------- #
#  Positions
# --------------------------------------------------------------------- #


@dataclass(slots=True, frozen=True)
class Point:
    """1-based line/column plus 0-based offset into the source text."""

    line: int
    column: int
    offset: int

    def to_dict(self) -> Dict[str, int]:
        return {"line": self.line, "column": self.column, "offset": self.offset}


@dataclass(slots=True, frozen=True)
class Position:
    start: Point
    end: Point

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start.to_dict(), "end": self.end.to_dict()}

    def __str__(self) -> str:
        return (
            f"{self.start.line}:{self.start.column}-"
            f"{self.end.line}:{self.end.column}"
        )


# --------------------------------------------------------------------- #
#  Nodes
# --------------------------------------------------------------------- #


@dataclass(slots=True)
class Node:
    """Base node type."""

    type: NodeType
    position: Optional[Position] = None

    def to_dict(self) -> Dict[str, Any]:
        base = {
            "type": self.type,
            "position": self.position.to_dict() if self.position else None,
        }
        return _drop_nones(base)


@dataclass(slots=True)
class Parent(Node):
    """Node holding an ordered list of children."""

    children: List[Node] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        base = Node.to_dict(self)
        base["children"] = [child.to_dict() for child in self.children]
        return base


@dataclass(slots=True)
class Root(Parent):
    type: Literal["root"] = "root"


@dataclass(slots=True)
class Paragraph(Parent):
    type: Literal["paragraph"] = "paragraph"


@dataclass(slots=True)
class Text(Node):
    type: Literal["text"] = "text"
    value: str = ""

    def to_dict(self) -> Dict[str, Any]:
        base = Node.to_dict(self)
        base["value"] = self.value
        return base


@dataclass(slots=True)
class Link(Parent):
    """Hyperlink; used as the fallback when oEmbed resolution fails."""

    type: Literal["link"] = "link"
    url: str = ""
    title: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        base = Parent.to_dict(self)
        base.update(_drop_nones({"url": self.url, "title": self.title}))
        return base


@dataclass(slots=True)
class RenderProperties:
    """Attributes handed to the renderer for the embed element."""

    src: str = PENDING_SRC
    width: Optional[int] = None
    height: Optional[int] = None
    allowfullscreen: bool = True
    frameborder: str = "0"

    def to_dict(self) -> Dict[str, Any]:
        return _drop_nones(
            {
                "src": self.src,
                "width": self.width,
                "height": self.height,
                "allowfullscreen": self.allowfullscreen,
                "frameborder": self.frameborder,
            }
        )


@dataclass(slots=True)
class PendingOEmbed:
    """Sub-state of an embed that still needs remote metadata."""

    url: str
    provider: "Provider"
    fallback: Link


@dataclass(slots=True)
class EmbedData:
    h_name: str = "iframe"
    h_properties: RenderProperties = field(default_factory=RenderProperties)
    oembed: Optional[PendingOEmbed] = None

    def to_dict(self) -> Dict[str, Any]:
        base: Dict[str, Any] = {
            "hName": self.h_name,
            "hProperties": self.h_properties.to_dict(),
        }
        if self.oembed is not None:
            base["oembed"] = {"url": self.oembed.url}
        return base


@dataclass(slots=True)
class Embed(Node):
    """Embeddable resource produced from a ``!(url)`` marker."""

    type: Literal["iframe"] = "iframe"
    src: str = ""
    data: EmbedData = field(default_factory=EmbedData)
    thumbnail: Optional[str] = None

    @property
    def pending(self) -> bool:
        return self.data.oembed is not None

    def to_dict(self) -> Dict[str, Any]:
        base = Node.to_dict(self)
        base.update(
            _drop_nones(
                {
                    "src": self.src,
                    "data": self.data.to_dict(),
                    "thumbnail": self.thumbnail,
                }
            )
        )
        return base


# --------------------------------------------------------------------- #
#  Diagnostics
# --------------------------------------------------------------------- #


@dataclass(slots=True, frozen=True)
class Diagnostic:
    """Advisory message attached to a document; never aborts a pass."""

    message: str
    position: Optional[Position] = None
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return _drop_nones(
            {
                "message": self.message,
                "position": self.position.to_dict() if self.position else None,
                "url": self.url,
            }
        )

    def __str__(self) -> str:
        where = f"{self.position}: " if self.position else ""
        return f"{where}{self.message}"


class Document:
    """Source text plus the diagnostics collected while processing it."""

    def __init__(self, text: str = "", path: str | None = None) -> None:
        self.text = text
        self.path = path
        self.messages: List[Diagnostic] = []

    def report(self, diagnostic: Diagnostic) -> Diagnostic:
        self.messages.append(diagnostic)
        logger.warning("%s%s", f"{self.path}:" if self.path else "", diagnostic)
        return diagnostic


__all__ = [
    "NodeType",
    "PENDING_SRC",
    "Point",
    "Position",
    "Node",
    "Parent",
    "Root",
    "Paragraph",
    "Text",
    "Link",
    "RenderProperties",
    "PendingOEmbed",
    "EmbedData",
    "Embed",
    "Diagnostic",
    "Document",
]
