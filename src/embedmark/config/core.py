import logging
import os
from typing import Any, Dict

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)


class Core:
    def __init__(self, config: dict | None = None) -> None:
        cfg = (config or {}).get("embedmark", {})

        # Validated when a ProviderRegistry is built, not here
        self.PROVIDERS: Dict[str, Any] = dict(cfg.get("providers") or {})

        try:
            self.OEMBED_TIMEOUT_MS: int = int(
                cfg.get("oembed_timeout_ms", os.getenv("OEMBED_TIMEOUT_MS", "1500"))
            )
        except ValueError as exc:
            raise ConfigurationError(f"Invalid oembed_timeout_ms: {exc}") from exc
        if self.OEMBED_TIMEOUT_MS <= 0:
            raise ConfigurationError("oembed_timeout_ms must be a positive integer")

        self.LOG_LEVEL: str = str(cfg.get("log_level", os.getenv("LOG_LEVEL", "INFO"))).upper()

        if not self.PROVIDERS:
            logger.debug("No providers configured under [embedmark.providers]")
