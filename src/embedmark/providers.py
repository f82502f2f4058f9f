"""
Provider registry.

A provider is the rule set attached to one hostname. The registry is built
once from a configuration mapping such as::

    {
        "www.youtube.com": {
            "width": 560,
            "height": 315,
            "replace": [["watch?v=", "embed/"]],
            "thumbnail": {"format": "https://img.youtube.com/vi/{id}/0.jpg",
                          "id": ".+/(.+)$"},
            "removeAfter": "&",
        },
        "www.slideshare.net": {
            "width": 595,
            "height": 485,
            "oembed": "https://www.slideshare.net/api/oembed/2",
        },
    }

Keys are accepted in camelCase (``removeAfter``) or snake_case
(``remove_after``). Lookups are exact on the hostname string.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Pattern, Tuple

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_TAG = "iframe"

_KEY_ALIASES = {
    "removeAfter": "remove_after",
    "droppedQueryParameters": "dropped_query_parameters",
    "removeFileName": "remove_file_name",
}


@dataclass(slots=True, frozen=True)
class Provider:
    """Immutable rules for one hostname."""

    hostname: str
    width: int
    height: int
    tag: str = DEFAULT_TAG
    disabled: bool = False
    replace: Tuple[Tuple[str, str], ...] = ()
    thumbnail: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    remove_after: Optional[str] = None
    match: Optional[Pattern[str]] = None
    oembed: Optional[str] = None
    append: Optional[str] = None
    dropped_query_parameters: Tuple[str, ...] = ()
    remove_file_name: bool = False

    def accepts(self, url: str) -> bool:
        """Return ``True`` when the provider is enabled and ``match`` allows ``url``."""
        if self.disabled:
            return False
        if self.match is not None and not self.match.search(url):
            return False
        return True

    @classmethod
    def from_config(cls, hostname: str, raw: Any) -> "Provider":
        """
        Build a :class:`Provider` from one configuration entry.

        :raises ConfigurationError: when the entry is malformed.
        """
        if not isinstance(raw, Mapping):
            raise ConfigurationError(
                f"Provider '{hostname}' must be a mapping, got {type(raw).__name__}"
            )
        cfg = {_KEY_ALIASES.get(k, k): v for k, v in raw.items()}

        missing = [name for name in ("width", "height") if cfg.get(name) is None]
        if missing:
            raise ConfigurationError(
                f"Provider '{hostname}' is missing: {', '.join(missing)}"
            )

        try:
            width = int(cfg["width"])
            height = int(cfg["height"])
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(
                f"Provider '{hostname}' has a non-integer size: {exc}"
            ) from exc

        replace = []
        for rule in cfg.get("replace") or ():
            if isinstance(rule, (str, bytes)) or len(rule) != 2:
                raise ConfigurationError(
                    f"Provider '{hostname}' replace rules must be [from, to] pairs"
                )
            replace.append((str(rule[0]), str(rule[1])))

        thumbnail = cfg.get("thumbnail") or {}
        if not isinstance(thumbnail, Mapping):
            raise ConfigurationError(f"Provider '{hostname}' thumbnail must be a mapping")
        for key, pattern in thumbnail.items():
            if key == "format":
                continue
            try:
                re.compile(str(pattern))
            except re.error as exc:
                raise ConfigurationError(
                    f"Provider '{hostname}' thumbnail pattern '{key}' is invalid: {exc}"
                ) from exc

        match = cfg.get("match")
        if match is not None and not isinstance(match, re.Pattern):
            try:
                match = re.compile(str(match))
            except re.error as exc:
                raise ConfigurationError(
                    f"Provider '{hostname}' has an invalid match pattern: {exc}"
                ) from exc

        return cls(
            hostname=hostname,
            width=width,
            height=height,
            tag=str(cfg.get("tag") or DEFAULT_TAG),
            disabled=cfg.get("disabled") is True,
            replace=tuple(replace),
            thumbnail=MappingProxyType({str(k): str(v) for k, v in thumbnail.items()}),
            remove_after=cfg.get("remove_after") or None,
            match=match,
            oembed=cfg.get("oembed") or None,
            append=cfg.get("append") or None,
            dropped_query_parameters=tuple(cfg.get("dropped_query_parameters") or ()),
            remove_file_name=bool(cfg.get("remove_file_name", False)),
        )


class ProviderRegistry:
    """Read-only mapping of hostname to :class:`Provider`."""

    def __init__(self, config: Mapping[str, Any] | None) -> None:
        if config is None or not isinstance(config, Mapping) or not config:
            raise ConfigurationError(
                "embedmark needs to be passed a non-empty provider configuration mapping"
            )
        providers: Dict[str, Provider] = {
            str(host): Provider.from_config(str(host), raw) for host, raw in config.items()
        }
        self._providers = MappingProxyType(providers)
        logger.debug("Loaded %d providers: %s", len(providers), ", ".join(providers))

    def lookup(self, hostname: str | None) -> Provider | None:
        """Return the provider for ``hostname`` or ``None``."""
        if not hostname:
            return None
        return self._providers.get(hostname)

    def __len__(self) -> int:
        return len(self._providers)

    def __iter__(self) -> Iterator[Provider]:
        return iter(self._providers.values())

    def __contains__(self, hostname: object) -> bool:
        return hostname in self._providers


__all__ = ["DEFAULT_TAG", "Provider", "ProviderRegistry"]
