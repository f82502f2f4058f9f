import asyncio
from types import SimpleNamespace

import pytest

from embedmark import ConfigurationError, EmbedPlugin, ParseError
from embedmark.host import MarkdownHost
from embedmark.model import Embed, Link, Paragraph
from embedmark.providers import ProviderRegistry


class RecordingHost:
    def __init__(self):
        self.tokenizers = []
        self.serializers = {}

    def add_block_tokenizer(self, name, tokenizer, *, after=None):
        self.tokenizers.append((name, after))

    def add_serializer(self, node_type, serializer):
        self.serializers[node_type] = serializer


def test_plugin_requires_providers():
    with pytest.raises(ConfigurationError):
        EmbedPlugin(None)
    with pytest.raises(ConfigurationError):
        EmbedPlugin({})


def test_plugin_accepts_built_registry(registry):
    assert EmbedPlugin(registry).registry is registry


def test_attach_registers_tokenizer_and_serializer(providers):
    host = RecordingHost()
    EmbedPlugin(providers).attach(host)
    assert host.tokenizers == [("iframes", "blockquote")]
    assert set(host.serializers) == {"iframe"}


def test_attach_inserts_after_named_tokenizer(providers):
    host = MarkdownHost()
    host.add_block_tokenizer("fence", lambda text, silent: None)
    host.add_block_tokenizer("blockquote", lambda text, silent: None)
    host.add_block_tokenizer("paragraph", lambda text, silent: None)
    EmbedPlugin(providers).attach(host)
    assert host.block_methods == ["fence", "blockquote", "iframes", "paragraph"]


def test_two_hosts_do_not_share_registration(providers):
    first, second = MarkdownHost(), MarkdownHost()
    EmbedPlugin(providers).attach(first)
    assert first.block_methods == ["iframes"]
    assert second.block_methods == []


def test_from_settings_uses_configured_timeout(providers):
    settings = SimpleNamespace(PROVIDERS=providers, OEMBED_TIMEOUT_MS=900)
    plugin = EmbedPlugin.from_settings(settings)
    assert plugin.timeout_ms == 900
    assert "www.youtube.com" in plugin.registry


def test_process_end_to_end(providers):
    async def fetch(url):
        return {"html": '<iframe src="https://player.test/1"></iframe>'}

    text = (
        "Watch this:\n\n"
        "!(https://www.youtube.com/watch?v=abc123)\n\n"
        "!(https://www.slideshare.net/deck/1)\n\n"
        "!(https://unknown.test/clip)\n"
    )
    plugin = EmbedPlugin(providers, fetch=fetch)
    tree, document = asyncio.run(plugin.process(text, path="doc.md"))

    kinds = [type(node) for node in tree.children]
    assert kinds == [Paragraph, Embed, Embed, Paragraph]
    video = tree.children[1]
    assert video.position.start.line == 3
    assert video.position.start.column == 1
    assert tree.children[2].data.h_properties.src == "https://player.test/1"
    assert document.messages == []


def test_round_trip_serializes_raw_urls(providers):
    async def fetch(url):
        raise asyncio.TimeoutError()

    text = (
        "!(https://www.youtube.com/watch?v=abc123&t=4)\n\n"
        "!(https://www.slideshare.net/deck/1)\n\n"
        "!(https://unknown.test/clip)\n"
    )
    host = MarkdownHost()
    plugin = EmbedPlugin(providers, fetch=fetch)
    plugin.attach(host)
    tree, document = asyncio.run(plugin.process(text, host=host))

    assert isinstance(tree.children[1], Link)
    assert document.messages[0].position.start.line == 3
    assert host.stringify(tree) == (
        "!(https://www.youtube.com/watch?v=abc123&t=4)\n\n"
        "<https://www.slideshare.net/deck/1>\n\n"
        "!(https://unknown.test/clip)\n"
    )


def test_parse_error_aborts_the_pass(providers):
    calls = []

    async def fetch(url):  # pragma: no cover - must not run
        calls.append(url)
        return {}

    plugin = EmbedPlugin(providers, fetch=fetch)
    with pytest.raises(ParseError):
        asyncio.run(plugin.process("!(https://www.slideshare.net/a)\n\n!(http)\n"))
    assert calls == []


def test_serializer_rejects_other_nodes():
    with pytest.raises(TypeError):
        EmbedPlugin.serializer(Link(url="https://x.test"))


def test_registry_is_shared_not_copied(providers):
    registry = ProviderRegistry(providers)
    plugin = EmbedPlugin(registry)
    result = plugin.tokenizer("!(https://www.dailymotion.com/video/x1)")
    assert result.node.data.h_name == "video-frame"


def test_default_timeout_is_1500_ms(providers):
    from embedmark.resolver import DEFAULT_TIMEOUT_MS

    assert DEFAULT_TIMEOUT_MS == 1500
    assert EmbedPlugin(providers).timeout_ms == DEFAULT_TIMEOUT_MS


def test_default_transport_receives_plugin_timeout(providers, monkeypatch):
    from embedmark import barrier
    from embedmark.model import Document

    class FakeSession:
        async def __aenter__(self):
            return self

        async def __aexit__(self, *exc):
            return False

    seen = []

    def fake_session_fetcher(session, timeout_ms):
        seen.append((session, timeout_ms))

        async def fetch(url):
            return {"html": '<iframe src="https://player.test/1"></iframe>'}

        return fetch

    monkeypatch.setattr(barrier.aiohttp, "ClientSession", FakeSession)
    monkeypatch.setattr(barrier, "session_fetcher", fake_session_fetcher)

    host = MarkdownHost()
    plugin = EmbedPlugin(providers)
    plugin.attach(host)
    tree = host.parse("!(https://www.slideshare.net/deck/1)\n")
    asyncio.run(plugin.transform(tree, Document()))

    assert len(seen) == 1
    assert isinstance(seen[0][0], FakeSession)
    assert seen[0][1] == 1500
    assert tree.children[0].data.h_properties.src == "https://player.test/1"
