from __future__ import annotations

import pytest

from tmdb_provider.configuration import Configuration, ImageHelper


def _configuration() -> Configuration:
    return Configuration.from_payload(
        {
            "images": {
                "base_url": "http://image.tmdb.org/t/p/",
                "secure_base_url": "https://image.tmdb.org/t/p",
                "poster_sizes": ["w92", "w154", "w500", "original"],
                "profile_sizes": ["w45", "h632", "original"],
            },
            "change_keys": ["title", "overview"],
        }
    )


def test_configuration_defaults_missing_sections() -> None:
    configuration = Configuration.from_payload({})
    assert configuration.images.secure_base_url == "https://image.tmdb.org/t/p/"
    assert configuration.change_keys == []


def test_image_helper_builds_secure_urls() -> None:
    helper = ImageHelper(_configuration())
    assert helper.get_url("/kqjL17yufvn9OVLyXYpvtyrFfak.jpg", "w500") == (
        "https://image.tmdb.org/t/p/w500/kqjL17yufvn9OVLyXYpvtyrFfak.jpg"
    )
    assert helper.get_url("poster.jpg") == "https://image.tmdb.org/t/p/original/poster.jpg"


def test_image_helper_insecure_base() -> None:
    helper = ImageHelper(_configuration(), secure=False)
    assert helper.get_url("/a.jpg", "w92") == "http://image.tmdb.org/t/p/w92/a.jpg"


def test_image_helper_rejects_empty_path() -> None:
    with pytest.raises(ValueError):
        ImageHelper(_configuration()).get_url("  ")


def test_nearest_width() -> None:
    helper = ImageHelper(_configuration())
    sizes = _configuration().images.poster_sizes
    assert helper.nearest_width(sizes, 100) == "w154"
    assert helper.nearest_width(sizes, 92) == "w92"
    assert helper.nearest_width(sizes, 2000) == "original"
