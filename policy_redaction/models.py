"""
Data model for privacy policies, redaction rules and their results.

Policies are owned by an external store and are read-only here. Results and
audit records are built fresh for every call and discarded once returned or
written to the audit sink.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Optional

from .errors import ConfigurationError

PII_CATEGORY = "pii"
CUSTOM_REGEX = "custom_regex"
PREVIEW_LENGTH = 200


class PolicyStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    DRAFT = "draft"
    ARCHIVED = "archived"


class ReplacementStrategy(str, Enum):
    """How each matched substring is rewritten."""
    MASK = "mask"
    HASH = "hash"
    REMOVE = "remove"
    TOKENIZE = "tokenize"


@dataclass(frozen=True)
class RedactionRule:
    """A single pattern-type + replacement-strategy pair."""
    pattern_type: str  # e.g., "email", "ssn", "custom_regex"
    replacement: ReplacementStrategy
    regex: Optional[str] = None  # Only used for custom_regex

    def __post_init__(self):
        if not isinstance(self.replacement, ReplacementStrategy):
            try:
                replacement = ReplacementStrategy(self.replacement)
            except ValueError:
                raise ConfigurationError(
                    f"Unknown replacement strategy '{self.replacement}'"
                ) from None
            object.__setattr__(self, "replacement", replacement)

    @classmethod
    def from_dict(cls, data: dict[str, Any], index: int = None) -> "RedactionRule":
        """
        Build a rule from a stored mapping.

        Raises:
            ConfigurationError: If the pattern type is missing or the
                                replacement strategy is unknown.
        """
        if not isinstance(data, dict):
            raise ConfigurationError(f"Rule {index} is not a mapping", rule_index=index)

        pattern_type = data.get("pattern_type")
        if not pattern_type:
            raise ConfigurationError(f"Rule {index} has no pattern_type", rule_index=index)

        raw_replacement = data.get("replacement", ReplacementStrategy.MASK.value)
        try:
            replacement = ReplacementStrategy(raw_replacement)
        except ValueError:
            raise ConfigurationError(
                f"Rule {index} uses unknown replacement strategy '{raw_replacement}'",
                rule_index=index,
            ) from None

        return cls(
            pattern_type=str(pattern_type),
            replacement=replacement,
            regex=data.get("regex") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        data = {"pattern_type": self.pattern_type, "replacement": self.replacement.value}
        if self.regex is not None:
            data["regex"] = self.regex
        return data


# Rules a newly created policy starts with
DEFAULT_REDACTION_RULES = (
    RedactionRule("email", ReplacementStrategy.MASK),
    RedactionRule("phone", ReplacementStrategy.MASK),
    RedactionRule("ssn", ReplacementStrategy.REMOVE),
    RedactionRule("credit_card", ReplacementStrategy.REMOVE),
)


@dataclass(frozen=True)
class Policy:
    """
    An organization-scoped privacy policy.

    Only ``status``, ``data_categories`` and ``redaction_rules`` affect
    redaction. The remaining fields are descriptive and passed through.
    """
    id: str
    status: PolicyStatus
    data_categories: frozenset[str] = frozenset()
    redaction_rules: tuple[RedactionRule, ...] = ()
    name: str = ""
    description: str = ""
    scope: str = "organization"
    org_id: Optional[str] = None
    retention_period_days: Optional[int] = None
    audit_enabled: bool = True

    def __post_init__(self):
        if not isinstance(self.status, PolicyStatus):
            try:
                status = PolicyStatus(self.status)
            except ValueError:
                raise ConfigurationError(
                    f"Policy {self.id} has unknown status '{self.status}'"
                ) from None
            object.__setattr__(self, "status", status)
        # Accept any iterable from callers; the stored forms are immutable
        object.__setattr__(self, "data_categories", frozenset(self.data_categories))
        object.__setattr__(self, "redaction_rules", tuple(self.redaction_rules))

    @property
    def is_active(self) -> bool:
        return self.status is PolicyStatus.ACTIVE

    @property
    def detects_pii(self) -> bool:
        return PII_CATEGORY in self.data_categories

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Policy":
        """
        Parse a policy record as stored by the policy store.

        Args:
            data: Mapping with at least ``id`` and ``status``.

        Returns:
            A Policy instance.

        Raises:
            ConfigurationError: If the record is malformed.
        """
        policy_id = data.get("id")
        if not policy_id:
            raise ConfigurationError("Policy record has no id")

        try:
            status = PolicyStatus(data.get("status", PolicyStatus.INACTIVE.value))
        except ValueError:
            raise ConfigurationError(
                f"Policy {policy_id} has unknown status '{data.get('status')}'"
            ) from None

        raw_rules = data.get("redaction_rules") or []
        if not isinstance(raw_rules, (list, tuple)):
            raise ConfigurationError(f"Policy {policy_id} redaction_rules must be a list")

        retention = data.get("retention_period_days")

        return cls(
            id=str(policy_id),
            status=status,
            data_categories=frozenset(data.get("data_categories") or ()),
            redaction_rules=tuple(
                RedactionRule.from_dict(rule, index) for index, rule in enumerate(raw_rules)
            ),
            name=data.get("name", ""),
            description=data.get("description", ""),
            scope=data.get("scope", "organization"),
            org_id=data.get("org_id"),
            retention_period_days=int(retention) if retention is not None else None,
            audit_enabled=_parse_flag(data.get("audit_enabled", True), policy_id),
        )

    def to_dict(self) -> dict[str, Any]:
        data = {
            "id": self.id,
            "status": self.status.value,
            "data_categories": sorted(self.data_categories),
            "redaction_rules": [rule.to_dict() for rule in self.redaction_rules],
            "name": self.name,
            "description": self.description,
            "scope": self.scope,
            "audit_enabled": self.audit_enabled,
        }
        if self.org_id is not None:
            data["org_id"] = self.org_id
        if self.retention_period_days is not None:
            data["retention_period_days"] = self.retention_period_days
        return data


_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off", ""}


def _parse_flag(value: Any, policy_id: str) -> bool:
    """Read a stored boolean that may have been written as a string."""
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        raise ConfigurationError(f"Policy {policy_id} has invalid audit_enabled '{value}'")
    return bool(value)


@dataclass(frozen=True)
class CallerContext:
    """Who is asking: the organization plus optional agent/run attribution."""
    org_id: str
    agent_id: Optional[str] = None
    run_id: Optional[str] = None


@dataclass(frozen=True)
class RedactionResult:
    """Output of a single RedactionEngine.apply() call."""
    redacted_content: str
    redaction_count: int
    patterns_matched: list[str]
    original_hash: str


@dataclass(frozen=True)
class RedactionAuditRecord:
    """
    Append-only evidence that a redaction happened.

    Holds only the hash of the original input and a bounded preview of the
    redacted output, never the original content itself.
    """
    policy_id: str
    org_id: str
    data_type: str
    redaction_count: int
    patterns_matched: list[str]
    original_hash: str
    redacted_preview: str
    timestamp: str
    agent_id: Optional[str] = None
    run_id: Optional[str] = None

    @classmethod
    def from_result(
        cls,
        result: RedactionResult,
        policy_id: str,
        caller: CallerContext,
        data_type: str,
        timestamp: str,
    ) -> "RedactionAuditRecord":
        return cls(
            policy_id=policy_id,
            org_id=caller.org_id,
            data_type=data_type,
            redaction_count=result.redaction_count,
            patterns_matched=list(result.patterns_matched),
            original_hash=result.original_hash,
            redacted_preview=result.redacted_content[:PREVIEW_LENGTH],
            timestamp=timestamp,
            agent_id=caller.agent_id,
            run_id=caller.run_id,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RedactionAuditRecord":
        return cls(
            policy_id=data["policy_id"],
            org_id=data["org_id"],
            data_type=data["data_type"],
            redaction_count=int(data["redaction_count"]),
            patterns_matched=list(data.get("patterns_matched", [])),
            original_hash=data["original_hash"],
            redacted_preview=data.get("redacted_preview", ""),
            timestamp=data["timestamp"],
            agent_id=data.get("agent_id"),
            run_id=data.get("run_id"),
        )
