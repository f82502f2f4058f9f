from embedmark.providers import Provider
from embedmark.thumbnail import compute_thumbnail


def _provider(thumbnail=None):
    cfg = {"width": 1, "height": 1}
    if thumbnail is not None:
        cfg["thumbnail"] = thumbnail
    return Provider.from_config("x.test", cfg)


def test_no_thumbnail_config_yields_empty_string():
    assert compute_thumbnail(_provider(), "https://x.test/watch/abc") == ""
    assert compute_thumbnail(_provider({"id": "(.+)"}), "https://x.test/watch/abc") == ""


def test_capture_fills_placeholder():
    provider = _provider({"format": "https://img/{id}.jpg", "id": ".+/(.+)$"})
    assert compute_thumbnail(provider, "https://x.test/watch/abc123") == "https://img/abc123.jpg"


def test_every_occurrence_is_replaced():
    provider = _provider({"format": "https://img/{id}/{id}.jpg", "id": ".+/(.+)$"})
    assert compute_thumbnail(provider, "https://x.test/v/q9") == "https://img/q9/q9.jpg"


def test_unmatched_placeholder_is_left_in_place():
    provider = _provider(
        {"format": "https://img/{user}/{id}.jpg", "id": ".+/(.+)$", "user": r"user=(\w+)"}
    )
    assert compute_thumbnail(provider, "https://x.test/v/q9") == "https://img/{user}/q9.jpg"


def test_pattern_without_group_leaves_placeholder():
    provider = _provider({"format": "https://img/{id}.jpg", "id": "watch"})
    assert compute_thumbnail(provider, "https://x.test/watch/abc") == "https://img/{id}.jpg"
