"""Provider-driven ``!(url)`` embeds with asynchronous oEmbed resolution."""

from __future__ import annotations

from .errors import ConfigurationError, EmbedError, ParseError
from .model import (
    Diagnostic,
    Document,
    Embed,
    EmbedData,
    Link,
    Node,
    Paragraph,
    PendingOEmbed,
    RenderProperties,
    Root,
    Text,
)
from .plugin import EmbedPlugin
from .providers import Provider, ProviderRegistry

__all__ = [
    "EmbedPlugin",
    "Provider",
    "ProviderRegistry",
    "EmbedError",
    "ConfigurationError",
    "ParseError",
    "Diagnostic",
    "Document",
    "Node",
    "Root",
    "Paragraph",
    "Text",
    "Link",
    "Embed",
    "EmbedData",
    "PendingOEmbed",
    "RenderProperties",
]
