"""
RedactionService - request-level orchestration around the engine.

Flow for a single request:
1. Validate the request (content, policy_id, caller organization)
2. Fetch the active policy from the PolicyStore
3. Run RedactionEngine.apply()
4. Append a RedactionAuditRecord to the AuditSink

An audit failure does not withhold the redacted content: it is logged for
out-of-band reconciliation and reported as ``audit_recorded: False``.
"""

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from .audit import AuditSink
from .engine import RedactionEngine
from .errors import PolicyNotFoundError, RedactionError, ValidationError
from .models import CallerContext, Policy, RedactionAuditRecord, RedactionResult
from .policy_store import PolicyStore

logger = logging.getLogger(__name__)

DEFAULT_DATA_TYPE = "prompt"


@dataclass(frozen=True)
class RedactionOutcome:
    """Result of a redaction request plus whether it was audited."""
    result: RedactionResult
    audit_recorded: bool

    def to_response(self) -> dict[str, Any]:
        return {
            "success": True,
            "redacted_content": self.result.redacted_content,
            "redaction_count": self.result.redaction_count,
            "patterns_matched": list(self.result.patterns_matched),
            "original_hash": self.result.original_hash,
            "audit_recorded": self.audit_recorded,
        }


def new_trace_id() -> str:
    return f"REDACT_ERROR_{int(time.time() * 1000)}"


def error_response(
    code: str,
    message: str,
    retryable: bool = False,
    trace_id: Optional[str] = None,
) -> dict[str, Any]:
    """Build the error payload returned to callers."""
    return {
        "success": False,
        "error": message,
        "code": code,
        "retryable": retryable,
        "trace_id": trace_id or new_trace_id(),
    }


def error_response_from(error: RedactionError) -> dict[str, Any]:
    return error_response(error.code, error.message, error.retryable)


class RedactionService:
    """
    Applies stored privacy policies to content and audits the result.

    Example:
        service = RedactionService(InMemoryPolicyStore([policy]), InMemoryAuditSink())
        outcome = service.redact(
            content="My ssn is 123-45-6789.",
            policy_id="pol-1",
            caller=CallerContext(org_id="org-1"),
        )
        outcome.to_response()["redacted_content"]
        # "My ssn is [REDACTED]."
    """

    def __init__(
        self,
        policy_store: PolicyStore,
        audit_sink: AuditSink,
        engine: Optional[RedactionEngine] = None,
    ):
        self.policy_store = policy_store
        self.audit_sink = audit_sink
        self.engine = engine or RedactionEngine()

    def redact(
        self,
        content: str,
        policy_id: str,
        caller: CallerContext,
        data_type: str = DEFAULT_DATA_TYPE,
    ) -> RedactionOutcome:
        """
        Redact content under the given policy and audit the event.

        Args:
            content: Text to sanitize.
            policy_id: Id of the policy to apply; must be active.
            caller: Organization and optional agent/run attribution.
            data_type: Free-form tag stored on the audit record.

        Returns:
            A RedactionOutcome.

        Raises:
            ValidationError: If content, policy_id or caller.org_id is missing.
            PolicyNotFoundError: If no active policy has this id.
            ConfigurationError: If the policy cannot be applied safely.
        """
        if not isinstance(content, str) or not content:
            raise ValidationError("content and policy_id are required")
        if not policy_id:
            raise ValidationError("content and policy_id are required")
        if caller is None or not caller.org_id:
            raise ValidationError("org_id is required for audit attribution")

        policy = self.get_active_policy(policy_id)
        result = self.engine.apply(content, policy)

        audit_recorded = False
        if policy.audit_enabled:
            audit_recorded = self._record_audit(result, policy, caller, data_type or DEFAULT_DATA_TYPE)
        else:
            logger.info(f"Audit disabled by policy {policy.id}; no record written")

        return RedactionOutcome(result=result, audit_recorded=audit_recorded)

    def get_active_policy(self, policy_id: str) -> Policy:
        """Fetch an active policy or raise PolicyNotFoundError."""
        policy = self.policy_store.get_active_policy(policy_id)
        if policy is None:
            raise PolicyNotFoundError(policy_id)
        return policy

    def recent_logs(self, org_id: str, limit: int = 20) -> list[RedactionAuditRecord]:
        """Most recent audit records for an organization, newest first."""
        if not org_id:
            raise ValidationError("org_id is required")
        return self.audit_sink.recent(org_id, limit)

    def _record_audit(
        self,
        result: RedactionResult,
        policy: Policy,
        caller: CallerContext,
        data_type: str,
    ) -> bool:
        record = RedactionAuditRecord.from_result(
            result,
            policy_id=policy.id,
            caller=caller,
            data_type=data_type,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )
        try:
            self.audit_sink.record(record)
        except Exception as e:
            logger.warning(
                f"Audit write failed for policy {policy.id} "
                f"(original_hash={result.original_hash}); needs reconciliation: {e}"
            )
            return False
        return True
