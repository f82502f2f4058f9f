from urllib.parse import parse_qsl, urlsplit

from embedmark.providers import Provider
from embedmark.rewrite import (
    apply_replacements,
    compute_final_url,
    remove_file_name,
)


def _provider(**cfg):
    cfg.setdefault("width", 100)
    cfg.setdefault("height", 100)
    return Provider.from_config("x.test", cfg)


def test_no_rules_leaves_url_untouched():
    url = "https://x.test/v?id=1&b=2"
    assert compute_final_url(_provider(), url) == url


def test_dropped_query_parameters():
    provider = _provider(droppedQueryParameters=["utm_source"])
    final = compute_final_url(provider, "https://x.test/v?id=1&utm_source=a")
    query = urlsplit(final).query
    assert "id=1" in query
    assert "utm_source" not in query


def test_dropped_query_parameters_keep_remaining_order():
    provider = _provider(droppedQueryParameters=["b", "d"])
    final = compute_final_url(provider, "https://x.test/v?c=3&b=2&a=1&d=4")
    assert parse_qsl(urlsplit(final).query) == [("c", "3"), ("a", "1")]


def test_dropping_every_parameter_removes_query():
    provider = _provider(droppedQueryParameters=["utm_source"])
    assert compute_final_url(provider, "https://x.test/v?utm_source=a") == "https://x.test/v"


def test_replacements_apply_in_order_on_previous_output():
    rules = [("http://", "https://"), ("https://www.", "https://")]
    assert apply_replacements("http://www.x.test/a", rules) == "https://x.test/a"


def test_replacement_only_hits_first_occurrence():
    assert apply_replacements("https://x.test/a/a", [("/a", "/b")]) == "https://x.test/b/a"


def test_replacement_with_empty_side_is_skipped():
    assert apply_replacements("https://x.test/a", [("/a", ""), ("", "z")]) == "https://x.test/a"


def test_remove_file_name():
    assert remove_file_name("https://x.test/dir/file.html?q=1") == "https://x.test/dir?q=1"
    assert remove_file_name("https://x.test") == "https://x.test"


def test_remove_after():
    provider = _provider(removeAfter="&list=")
    assert compute_final_url(provider, "https://x.test/v?id=1&list=xyz") == "https://x.test/v?id=1"
    assert compute_final_url(provider, "https://x.test/v?id=1") == "https://x.test/v?id=1"


def test_youtube_style_pipeline():
    provider = _provider(
        replace=[["watch?v=", "embed/"], ["http://", "https://"]],
        removeAfter="&",
        append="?rel=0",
    )
    final = compute_final_url(provider, "http://www.youtube.com/watch?v=abc123&t=4")
    assert final == "https://www.youtube.com/embed/abc123?rel=0"


def test_stage_order_drop_then_replace_then_truncate():
    provider = _provider(
        droppedQueryParameters=["utm_source"],
        replace=[["/v", "/embed"]],
        removeFileName=True,
        removeAfter="?",
        append="/player",
    )
    final = compute_final_url(provider, "https://x.test/v/clip.mp4?utm_source=z&id=7")
    assert final == "https://x.test/embed/player"


def test_transformer_is_deterministic():
    provider = _provider(droppedQueryParameters=["a"], replace=[["x.test", "y.test"]])
    url = "https://x.test/p?a=1&b=2"
    assert compute_final_url(provider, url) == compute_final_url(provider, url)
