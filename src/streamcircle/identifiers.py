"""Slug and secret generation for rooms."""

from __future__ import annotations

import re
import secrets
import string
import unicodedata

SLUG_ALPHABET = string.ascii_lowercase + string.digits
KEY_ALPHABET = string.ascii_letters + string.digits
SLUG_SUFFIX_LEN = 12
KEY_LEN = 36

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def _random_string(alphabet: str, length: int) -> str:
    return "".join(secrets.choice(alphabet) for _ in range(length))


def slugify(name: str) -> str:
    """Lowercase ASCII slug: accents stripped, runs of other chars become '-'."""
    decomposed = unicodedata.normalize("NFD", name.strip().lower())
    ascii_only = "".join(c for c in decomposed if not unicodedata.combining(c))
    return _NON_ALNUM.sub("-", ascii_only).strip("-")


def create_slug(name: str) -> str:
    """Unique room slug: slugified name plus a random suffix."""
    return f"{slugify(name)}-{_random_string(SLUG_ALPHABET, SLUG_SUFFIX_LEN)}"


def generate_stream_key() -> str:
    """Secret that authorizes RTMP ingest for a room."""
    return _random_string(KEY_ALPHABET, KEY_LEN)


def generate_playback_key() -> str:
    """Capability token that authorizes viewer sessions for a room."""
    return _random_string(KEY_ALPHABET, KEY_LEN)
