import os, sys
from pathlib import Path

import pytest

# Add src/ to sys.path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

# Keep a developer's config.toml out of the test run
os.environ.setdefault(
    "EMBEDMARK_CONFIG", str(Path(__file__).resolve().parent / "_missing_config.toml")
)
os.environ.setdefault("OEMBED_TIMEOUT_MS", "1500")


PROVIDERS = {
    "www.youtube.com": {
        "width": 560,
        "height": 315,
        "replace": [["watch?v=", "embed/"], ["http://", "https://"]],
        "thumbnail": {"format": "http://img.youtube.com/vi/{id}/0.jpg", "id": ".+/(.+)$"},
        "removeAfter": "&",
    },
    "www.dailymotion.com": {
        "tag": "video-frame",
        "width": 480,
        "height": 270,
        "replace": [["video/", "embed/video/"]],
    },
    "jsfiddle.net": {
        "width": 560,
        "height": 560,
        "match": r"https?://(www\.)?jsfiddle\.net/[\w\d]+/?$",
        "append": "embedded/result/",
    },
    "www.ina.fr": {"disabled": True, "width": 620, "height": 349},
    "www.slideshare.net": {
        "width": 595,
        "height": 485,
        "oembed": "https://www.slideshare.net/api/oembed/2",
    },
}


@pytest.fixture
def providers():
    return {host: dict(cfg) for host, cfg in PROVIDERS.items()}


@pytest.fixture
def registry(providers):
    from embedmark.providers import ProviderRegistry

    return ProviderRegistry(providers)
