"""
Tags stored in the server description field.

The API has no structured tag storage that the plugin can use for its own
bookkeeping, so tags are written to the free-text description: one tag per
line, either "key" or "key:value". Servers created by earlier versions of the
plugin use the same format.
"""

import logging
import random
import string
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

LOGGER = logging.getLogger(__name__)

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits


def map_to_tokens(tags: Mapping[str, str]) -> List[str]:
    """Convert a tag mapping into sorted "key" / "key:value" tokens."""
    return [f"{k}:{v}" if v != "" else k for k, v in sorted(tags.items())]


def tokens_to_map(tokens: Iterable[str]) -> Dict[str, str]:
    """Convert "key" / "key:value" tokens into a mapping, splitting on the first colon."""
    tags: Dict[str, str] = {}
    for token in tokens:
        if token == "":
            continue
        key, _, value = token.partition(":")
        tags[key] = value
    return tags


def encode_tags(tags: Mapping[str, str]) -> str:
    return "\n".join(map_to_tokens(tags))


def decode_tags(description: str) -> Dict[str, str]:
    return tokens_to_map(description.split("\n"))


def merge_tags(*tag_maps: Optional[Mapping[str, str]]) -> Tuple[List[str], Dict[str, str]]:
    """Merge tag mappings, the last write winning for colliding keys.

    Returns:
        Tuple of the sorted keys and the merged mapping
    """
    tags: Dict[str, str] = {}
    for tag_map in tag_maps:
        if not tag_map:
            continue
        for k, v in tag_map.items():
            if k in tags:
                LOGGER.warning(f"Overwriting tag value for key {k}")
            tags[k] = v
    return sorted(tags), tags


def has_different_tag(expected: Mapping[str, str], actual: Mapping[str, str]) -> bool:
    """Return True if a server tagged with actual does not match the filter expected.

    A server without tags matches no non-empty filter. Otherwise only keys
    present on both sides are compared; a filter key the server lacks does not
    exclude it.
    """
    if not actual:
        return len(expected) > 0
    for k, v in expected.items():
        if k in actual and actual[k] != v:
            return True
    return False


def random_suffix(n: int, rng: random.Random) -> str:
    """Generate a random instance name suffix of length n from [a-z0-9]."""
    return "".join(rng.choice(_SUFFIX_ALPHABET) for _ in range(n))
