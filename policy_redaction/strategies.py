"""
Replacement strategies applied to each matched substring.

    mask      - same-length run of "*"
    hash      - first 16 hex chars of SHA-256(match); stable across calls
    remove    - fixed "[REDACTED]" marker
    tokenize  - fresh opaque token per match; never stable, never reversible

None of the strategies keeps a mapping back to the original text.
"""

import hashlib
import secrets
import time
import re
from typing import Callable

from .models import ReplacementStrategy

MASK_CHAR = "*"
HASH_PREFIX_LENGTH = 16
REMOVED_MARKER = "[REDACTED]"


def content_hash(text: str) -> str:
    """SHA-256 hex digest of text, used for integrity and the hash strategy."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def mask(match: str) -> str:
    return MASK_CHAR * len(match)


def hash_value(match: str) -> str:
    return content_hash(match)[:HASH_PREFIX_LENGTH]


def remove(match: str) -> str:
    return REMOVED_MARKER


def tokenize(match: str) -> str:
    """Return an unmappable token embedding the current time and randomness."""
    return f"[TOKEN_{int(time.time() * 1000)}_{secrets.token_hex(6)}]"


_STRATEGIES: dict[ReplacementStrategy, Callable[[str], str]] = {
    ReplacementStrategy.MASK: mask,
    ReplacementStrategy.HASH: hash_value,
    ReplacementStrategy.REMOVE: remove,
    ReplacementStrategy.TOKENIZE: tokenize,
}


def get_replacer(strategy: ReplacementStrategy) -> Callable[[re.Match], str]:
    """
    Return a callable usable as the ``repl`` argument of ``Pattern.sub``.

    Zero-length matches are returned unchanged so that patterns able to
    match the empty string do not inject replacement text.

    Args:
        strategy: The replacement strategy of the rule being applied.

    Returns:
        A function mapping a regex match to its replacement string.
    """
    transform = _STRATEGIES[ReplacementStrategy(strategy)]

    def replace(match: re.Match) -> str:
        text = match.group(0)
        if not text:
            return text
        return transform(text)

    return replace
