"""
Built-in PII patterns - the fixed detection library.

These patterns serve two purposes:
    - Resolving rules whose pattern_type names a built-in category
      (e.g. {"pattern_type": "email", "replacement": "mask"})
    - The built-in PII pass that runs when a policy enables "pii"

Patterns covered:
    - Email addresses
    - Phone numbers (optional country code, 3-3-4 grouping)
    - US Social Security Numbers (NNN-NN-NNNN)
    - Credit card numbers (16 digits in groups of 4)

The table is built once on first use and exposed read-only. Compiled
``re.Pattern`` objects keep no match position between calls, so a single
table is safe to share across threads.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Mapping, Optional


@dataclass(frozen=True)
class BuiltInPattern:
    """A single built-in detection pattern."""
    category: str  # e.g., "email", "ssn"
    pattern: re.Pattern  # Compiled regex pattern
    token: str  # Fixed replacement used by the built-in pass
    description: str = ""


# Order matters: the built-in pass runs categories in this order
BUILTIN_CATEGORIES = ("email", "phone", "ssn", "credit_card")


@lru_cache(maxsize=None)
def builtin_patterns() -> Mapping[str, BuiltInPattern]:
    """Return the immutable category -> BuiltInPattern table."""
    patterns = [
        BuiltInPattern(
            category="email",
            pattern=re.compile(
                r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b',
                re.IGNORECASE
            ),
            token="[EMAIL_REDACTED]",
            description="Email address"
        ),

        # +1-555-123-4567, 555.123.4567, 5551234567
        BuiltInPattern(
            category="phone",
            pattern=re.compile(
                r'\b(?:\+\d{1,3}[-.]?)?\(?\d{3}\)?[-.]?\d{3}[-.]?\d{4}\b'
            ),
            token="[PHONE_REDACTED]",
            description="Phone number"
        ),

        BuiltInPattern(
            category="ssn",
            pattern=re.compile(r'\b\d{3}-\d{2}-\d{4}\b'),
            token="[SSN_REDACTED]",
            description="US Social Security Number"
        ),

        BuiltInPattern(
            category="credit_card",
            pattern=re.compile(
                r'\b\d{4}[-\s]?\d{4}[-\s]?\d{4}[-\s]?\d{4}\b'
            ),
            token="[CC_REDACTED]",
            description="Credit card number (with or without separators)"
        ),
    ]
    return MappingProxyType({p.category: p for p in patterns})


def get_builtin_pattern(category: str) -> Optional[BuiltInPattern]:
    """Look up a built-in pattern, or None if the category has none."""
    return builtin_patterns().get(category)
