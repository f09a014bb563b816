"""Nested document generator.

Every generated document is a single-child chain::

    {"field": "<word>", "children": [
        {"field": "<word>", "children": [
            {"read_target": "read_target", "write_target": "<16 chars>"}]}]}

``depth`` counts the levels from root to leaf, so ``depth == 1`` yields a bare
leaf. Documents at even batch positions carry the sentinel ``read_target``
value and are matched by the read queries; odd positions carry a random word
instead, which fixes read selectivity at ``ceil(count / 2)`` documents.
"""

from __future__ import annotations

import random
import string
from typing import Any

from .errors import InvalidConfigurationError

READ_TARGET_SENTINEL = "read_target"
WRITE_TARGET_BYTE_SIZE = 16

CHILDREN_KEY = "children"
FIELD_KEY = "field"
READ_TARGET_KEY = "read_target"
WRITE_TARGET_KEY = "write_target"

_ALPHANUMERIC = string.ascii_letters + string.digits
_CHUNK_SIZE = 32

LOREM_WORDS: tuple[str, ...] = (
    "alias", "amet", "aperiam", "aut", "beatae", "blanditiis", "commodi",
    "consequatur", "corporis", "culpa", "cumque", "debitis", "delectus",
    "dicta", "dolor", "dolore", "doloribus", "ducimus", "earum", "eius",
    "enim", "eos", "error", "esse", "eum", "eveniet", "excepturi", "facere",
    "facilis", "fuga", "fugiat", "harum", "hic", "illo", "impedit", "ipsa",
    "ipsum", "iste", "itaque", "iure", "labore", "laborum", "libero",
    "magnam", "magni", "maiores", "minima", "minus", "molestiae", "mollitia",
    "natus", "nemo", "neque", "nihil", "nisi", "nobis", "nostrum", "nulla",
    "odio", "odit", "officia", "omnis", "optio", "pariatur", "perferendis",
    "placeat", "porro", "possimus", "quae", "quaerat", "quas", "quia",
    "quibusdam", "quidem", "quis", "quo", "quod", "ratione", "recusandae",
    "rem", "repellat", "rerum", "saepe", "sapiente", "sed", "sequi", "sint",
    "sit", "soluta", "sunt", "tempora", "tempore", "tenetur", "totam",
    "ullam", "unde", "vel", "velit", "veniam", "veritatis", "vero", "vitae",
    "voluptas", "voluptate", "voluptatem",
)


def random_word(rng: random.Random | None = None) -> str:
    """Return a pseudo-random lorem word (never the read sentinel)."""
    return (rng or random).choice(LOREM_WORDS)


def generate_fixed_size_word(byte_size: int, rng: random.Random | None = None) -> str:
    """Return a random alphanumeric string of exactly *byte_size* characters.

    The string is assembled from chunks of at most 32 characters and the
    result is truncated to the requested size, so payloads written by
    different backends and depths always have identical length.
    """
    if byte_size < 0:
        raise InvalidConfigurationError(f"byte_size must be non-negative; got {byte_size}")

    source = rng or random
    result = ""
    while len(result) < byte_size:
        chunk_size = min(byte_size - len(result), _CHUNK_SIZE)
        result += "".join(source.choices(_ALPHANUMERIC, k=chunk_size))
    return result[:byte_size]


def is_targetable(index: int) -> bool:
    """Documents at even batch positions carry the read sentinel."""
    return index % 2 == 0


def _build_leaf(targetable: bool, rng: random.Random | None) -> dict[str, Any]:
    return {
        READ_TARGET_KEY: READ_TARGET_SENTINEL if targetable else random_word(rng),
        WRITE_TARGET_KEY: generate_fixed_size_word(WRITE_TARGET_BYTE_SIZE, rng),
    }


def build_document(depth: int, targetable: bool, rng: random.Random | None = None) -> dict[str, Any]:
    """Build one chain document of the given *depth*.

    The chain is assembled bottom-up: the leaf first, then each enclosing
    level wraps the previous one as its only child.
    """
    if depth < 1:
        raise InvalidConfigurationError(f"depth must be >= 1; got {depth}")

    node = _build_leaf(targetable, rng)
    for _ in range(depth - 1):
        node = {FIELD_KEY: random_word(rng), CHILDREN_KEY: [node]}
    return node


def generate(depth: int, count: int, rng: random.Random | None = None) -> list[dict[str, Any]]:
    """Generate *count* documents of *depth* levels each.

    Parameters
    ----------
    depth:
        Number of levels from root to leaf; must be >= 1.
    count:
        Number of documents; must be >= 0.
    rng:
        Optional random source. Pass a seeded :class:`random.Random` for
        reproducible fixtures; the module-level generator is used otherwise.
    """
    if count < 0:
        raise InvalidConfigurationError(f"count must be non-negative; got {count}")
    return [build_document(depth, is_targetable(i), rng) for i in range(count)]


def chain_depth(document: dict[str, Any]) -> int:
    """Return the number of levels from *document*'s root to its leaf."""
    depth = 1
    node = document
    while CHILDREN_KEY in node:
        node = node[CHILDREN_KEY][0]
        depth += 1
    return depth


def leaf_of(document: dict[str, Any]) -> dict[str, Any]:
    """Return the terminal level of *document*."""
    node = document
    while CHILDREN_KEY in node:
        node = node[CHILDREN_KEY][0]
    return node
