"""Random identifiers and URL slugs."""

import re
import secrets

from toolkit.core.errors import SlugifyError

RANDOM_STRING_ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789_+"

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def random_string(length: int) -> str:
    """Return ``length`` characters drawn uniformly from ``RANDOM_STRING_ALPHABET``.

    ``secrets.choice`` rejection-samples each index from the OS CSPRNG, so every
    character is uniform over the 64-symbol alphabet. Non-positive lengths give "".
    """
    return "".join(secrets.choice(RANDOM_STRING_ALPHABET) for _ in range(max(length, 0)))


def slugify(text: str) -> str:
    """Lowercase ``text`` and collapse every run of non ``[a-z0-9]`` characters into ``-``."""
    if text == "":
        raise SlugifyError("cannot slugify an empty string")

    slug = _NON_ALNUM.sub("-", text.lower()).strip("-")
    if not slug:
        raise SlugifyError("the string is empty after slugifying")

    return slug
