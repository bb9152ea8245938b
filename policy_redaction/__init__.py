"""
Policy Redaction - privacy-policy driven content redaction

This package scans free-form text (agent prompts and outputs) against an
organization's privacy policy, returns a sanitized copy and writes a
tamper-evident audit record that never contains the original content.

Architecture:
    - RedactionEngine: applies a policy's rules, then the built-in PII pass
    - patterns: the fixed built-in pattern library (email, phone, ssn, credit_card)
    - strategies: mask / hash / remove / tokenize replacements
    - PolicyStore / AuditSink: narrow interfaces to external storage
    - RedactionService: validation, policy lookup, redaction and auditing

Example:
    from policy_redaction import Policy, RedactionEngine

    policy = Policy.from_dict({
        "id": "pol-1",
        "status": "active",
        "data_categories": ["pii"],
    })
    result = RedactionEngine().apply("Call +1-555-123-4567", policy)
    # result.redacted_content: "Call +1-[PHONE_REDACTED]"
    # result.patterns_matched: ["phone"]
"""

from .audit import AuditSink, CloudWatchAuditSink, InMemoryAuditSink
from .engine import RedactionEngine
from .errors import (
    ConfigurationError,
    InternalError,
    PolicyNotFoundError,
    RedactionError,
    ValidationError,
)
from .models import (
    DEFAULT_REDACTION_RULES,
    CallerContext,
    Policy,
    PolicyStatus,
    RedactionAuditRecord,
    RedactionResult,
    RedactionRule,
    ReplacementStrategy,
)
from .policy_store import DynamoDBPolicyStore, InMemoryPolicyStore, PolicyStore
from .service import RedactionOutcome, RedactionService

__all__ = [
    "RedactionEngine",
    "RedactionService",
    "RedactionOutcome",
    "Policy",
    "PolicyStatus",
    "RedactionRule",
    "ReplacementStrategy",
    "RedactionResult",
    "RedactionAuditRecord",
    "CallerContext",
    "DEFAULT_REDACTION_RULES",
    "PolicyStore",
    "InMemoryPolicyStore",
    "DynamoDBPolicyStore",
    "AuditSink",
    "InMemoryAuditSink",
    "CloudWatchAuditSink",
    "RedactionError",
    "ValidationError",
    "PolicyNotFoundError",
    "ConfigurationError",
    "InternalError",
]
