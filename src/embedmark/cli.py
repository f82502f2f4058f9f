from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

from .config import Core, core, load_raw_config
from .errors import EmbedError
from .host import MarkdownHost
from .plugin import EmbedPlugin

logger = logging.getLogger(__name__)

FORMATS = ("json", "markdown")


def _positive_int(value: str) -> int:
    ivalue = int(value)
    if ivalue <= 0:
        raise argparse.ArgumentTypeError("value must be a positive integer")
    return ivalue


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="embedmark",
        description="Resolve !(url) embed markers in a document.",
    )
    subparsers = parser.add_subparsers(
        dest="command", metavar="<command>", required=True
    )

    render_cmd = subparsers.add_parser(
        "render",
        help="Parse a document, resolve its embeds and print the result.",
    )
    render_cmd.add_argument("path", type=Path, help="Document to process ('-' for stdin).")
    render_cmd.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config TOML (defaults to $EMBEDMARK_CONFIG or config.toml).",
    )
    render_cmd.add_argument(
        "--format",
        "-f",
        choices=FORMATS,
        default="json",
        help="Output the resolved tree as JSON or the document as Markdown.",
    )
    render_cmd.add_argument(
        "--timeout-ms",
        type=_positive_int,
        default=None,
        help="oEmbed request timeout in milliseconds (overrides config).",
    )

    providers_cmd = subparsers.add_parser(
        "providers",
        help="List configured providers.",
    )
    providers_cmd.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config TOML (defaults to $EMBEDMARK_CONFIG or config.toml).",
    )
    return parser


def _resolve_settings(args: argparse.Namespace) -> Core:
    if args.config is None:
        return core
    if not args.config.is_file():
        raise EmbedError(f"config file not found: {args.config}")
    return Core(load_raw_config(args.config))


def _read_source(path: Path) -> str:
    if str(path) == "-":
        return sys.stdin.read()
    return path.read_text(encoding="utf-8")


async def _render(args: argparse.Namespace) -> str:
    settings = _resolve_settings(args)
    timeout_ms = args.timeout_ms or settings.OEMBED_TIMEOUT_MS
    plugin = EmbedPlugin(settings.PROVIDERS, timeout_ms=timeout_ms)

    host = MarkdownHost()
    plugin.attach(host)
    tree, document = await plugin.process(
        _read_source(args.path), path=str(args.path), host=host
    )

    if args.format == "markdown":
        return host.stringify(tree)
    payload: Dict[str, Any] = {
        "tree": tree.to_dict(),
        "messages": [msg.to_dict() for msg in document.messages],
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _list_providers(args: argparse.Namespace) -> str:
    settings = _resolve_settings(args)
    plugin = EmbedPlugin(settings.PROVIDERS)
    lines: List[str] = []
    for provider in plugin.registry:
        mode = "oembed" if provider.oembed else "rules"
        state = " (disabled)" if provider.disabled else ""
        lines.append(
            f"{provider.hostname}\t{provider.tag} {provider.width}x{provider.height}\t{mode}{state}"
        )
    return "\n".join(lines)


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "render":
            output = asyncio.run(_render(args))
        else:
            output = _list_providers(args)
    except EmbedError as exc:
        parser.exit(2, f"{parser.prog}: error: {exc}\n")
    except OSError as exc:
        parser.exit(1, f"{parser.prog}: error: {exc}\n")

    print(output, end="" if output.endswith("\n") else "\n")
    return 0


__all__ = ["build_parser", "main"]
