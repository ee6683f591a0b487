"""Tests for slug and key generation."""

import re

from streamcircle.identifiers import (
    KEY_LEN,
    create_slug,
    generate_playback_key,
    generate_stream_key,
    slugify,
)


class TestSlugify:
    def test_lowercases_and_dashes(self):
        assert slugify("Jam Night") == "jam-night"

    def test_strips_accents(self):
        assert slugify("Soirée Café") == "soiree-cafe"

    def test_collapses_symbols(self):
        assert slugify("  Rock & Roll!!  ") == "rock-roll"

    def test_trims_edge_dashes(self):
        assert slugify("--hello--") == "hello"


def test_create_slug_adds_random_suffix():
    slug = create_slug("Jam Night")
    assert re.fullmatch(r"jam-night-[a-z0-9]{12}", slug)
    assert create_slug("Jam Night") != slug


def test_keys_are_alphanumeric_and_unique():
    keys = {generate_stream_key() for _ in range(20)} | {
        generate_playback_key() for _ in range(20)
    }
    assert len(keys) == 40
    for key in keys:
        assert len(key) == KEY_LEN
        assert re.fullmatch(r"[A-Za-z0-9]+", key)
