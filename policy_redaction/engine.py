"""
RedactionEngine - Core engine for applying privacy policies to text.

This engine runs two ordered passes over the content:
1. The policy's own redaction rules, in policy order, each one seeing the
   output of the previous one
2. The built-in PII pass (email, phone, SSN, credit card), only when the
   policy enables the "pii" data category

Both passes share the pattern library in ``patterns`` and the replacement
strategies in ``strategies``.

The engine is stateless and safe to call from any number of threads.
"""

import logging
import re
from typing import Optional

from .errors import ConfigurationError, PolicyNotFoundError, ValidationError
from .models import CUSTOM_REGEX, Policy, RedactionResult, RedactionRule
from .patterns import BUILTIN_CATEGORIES, get_builtin_pattern
from .strategies import content_hash, get_replacer

logger = logging.getLogger(__name__)


class RedactionEngine:
    """
    Engine for redacting sensitive data according to a privacy policy.

    Example:
        engine = RedactionEngine()
        policy = Policy.from_dict({
            "id": "pol-1",
            "status": "active",
            "redaction_rules": [{"pattern_type": "email", "replacement": "mask"}],
        })

        result = engine.apply("Contact me at a@b.com please", policy)
        # result.redacted_content: "Contact me at ******* please"
        # result.redaction_count: 1
        # result.patterns_matched: ["email"]

    Counting:
        A custom rule and the built-in pass may target the same category.
        By default both passes count independently. Once a custom rule has
        replaced a category its text rarely matches again, but nothing
        guarantees that. Set ``skip_redacted_builtin_categories`` to skip
        categories in the built-in pass that a custom rule already matched.
    """

    def __init__(self, skip_redacted_builtin_categories: bool = False):
        """
        Initialize the RedactionEngine.

        Args:
            skip_redacted_builtin_categories: If True, the built-in PII pass
                skips any category already matched by a custom rule.
        """
        self.skip_redacted_builtin_categories = skip_redacted_builtin_categories

    def apply(self, content: str, policy: Policy) -> RedactionResult:
        """
        Redact content according to the given policy.

        Args:
            content: The text to sanitize. Must be a non-empty string.
            policy: An active policy.

        Returns:
            A RedactionResult with the sanitized text, the total number of
            replacements, the sorted unique categories that matched and the
            SHA-256 hex digest of the original content.

        Raises:
            ValidationError: If content is missing or empty.
            PolicyNotFoundError: If the policy is not active.
            ConfigurationError: If a custom_regex rule cannot be compiled.
                No partial result is returned.
        """
        if not isinstance(content, str) or not content:
            raise ValidationError("content is required")
        if not policy.is_active:
            raise PolicyNotFoundError(policy.id)

        # Compile every custom matcher up front so a bad rule fails the call
        # before any text is rewritten.
        matchers = [
            self._resolve_matcher(rule, index)
            for index, rule in enumerate(policy.redaction_rules)
        ]

        original_hash = content_hash(content)
        working = content
        total_count = 0
        matched: set[str] = set()

        # Step 1: Policy rules, cumulative
        for rule, matcher in zip(policy.redaction_rules, matchers):
            if matcher is None:
                continue
            working, count = _substitute(matcher, get_replacer(rule.replacement), working)
            if count:
                matched.add(rule.pattern_type)
                total_count += count
                logger.debug(
                    f"Rule '{rule.pattern_type}' ({rule.replacement.value}) "
                    f"redacted {count} match(es)"
                )

        # Step 2: Built-in PII detection
        if policy.detects_pii:
            for category in BUILTIN_CATEGORIES:
                if self.skip_redacted_builtin_categories and category in matched:
                    continue
                builtin = get_builtin_pattern(category)
                working, count = _substitute(
                    builtin.pattern, lambda _m, token=builtin.token: token, working
                )
                if count:
                    matched.add(category)
                    total_count += count
                    logger.debug(f"Built-in '{category}' redacted {count} match(es)")

        logger.info(
            f"Applied policy {policy.id}: {total_count} redaction(s), "
            f"patterns={sorted(matched)}"
        )

        return RedactionResult(
            redacted_content=working,
            redaction_count=total_count,
            patterns_matched=sorted(matched),
            original_hash=original_hash,
        )

    def apply_batch(self, contents: list[str], policy: Policy) -> list[RedactionResult]:
        """
        Redact several texts with the same policy.

        Each text is processed independently; a configuration error in the
        policy fails the whole batch.
        """
        return [self.apply(content, policy) for content in contents]

    @staticmethod
    def _resolve_matcher(rule: RedactionRule, index: int) -> Optional[re.Pattern]:
        """
        Return the compiled pattern for a rule, or None for unknown types.

        Custom expressions are compiled on every call. Compiled patterns hold
        no match position, so sharing one across threads is safe.
        """
        if rule.pattern_type == CUSTOM_REGEX:
            if not rule.regex:
                raise ConfigurationError(
                    f"Rule {index} is custom_regex but has no regex", rule_index=index
                )
            try:
                return re.compile(rule.regex, re.IGNORECASE)
            except re.error as e:
                raise ConfigurationError(
                    f"Rule {index} has an invalid regex: {e}", rule_index=index
                ) from e

        builtin = get_builtin_pattern(rule.pattern_type)
        if builtin is None:
            logger.debug(f"Rule {index}: no pattern for type '{rule.pattern_type}', skipping")
            return None
        return builtin.pattern


def _substitute(pattern: re.Pattern, replacer, text: str) -> tuple[str, int]:
    """Replace every non-empty match of pattern in text; return (text, count)."""
    count = sum(1 for m in pattern.finditer(text) if m.group(0))
    if not count:
        return text, 0

    def replace(match: re.Match) -> str:
        if not match.group(0):
            return ""
        return replacer(match)

    return pattern.sub(replace, text), count

