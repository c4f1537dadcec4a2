"""Glob matching of resource IDs against ownership patterns like ``ord-*``."""

import re
from functools import lru_cache

WILDCARD = "*"


@lru_cache(maxsize=1024)
def _compile(pattern: str) -> re.Pattern[str]:
    # Only '*' is special; everything else (including regex metacharacters) is literal.
    parts = (re.escape(part) for part in pattern.split(WILDCARD))
    return re.compile(".*".join(parts), re.DOTALL)


def matches(pattern: str, resource_id: str) -> bool:
    """Return True if ``resource_id`` matches the whole of ``pattern``.

    ``*`` stands for zero or more characters of any kind and the match is
    anchored at both ends, so ``ord-*`` matches ``ord-1234`` and ``ord-`` but
    not ``xord-1234``. A pattern without ``*`` matches only itself.
    """
    return _compile(pattern).fullmatch(resource_id) is not None
