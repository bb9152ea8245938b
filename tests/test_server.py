"""
Tests for the MCP tools exposed by server.py.

Tests cover:
- redact_sensitive_data end to end against mocked DynamoDB and CloudWatch
- Error payloads for each error category
- list_redaction_logs and describe_policy
- Missing credentials handling
"""

import boto3
from moto import mock_aws

from conftest import create_policy_table

ACTIVE_POLICY = {
    "id": "pol-gdpr",
    "status": "active",
    "name": "GDPR PII Protection Policy",
    "description": "Automatically redact PII from agent interactions",
    "scope": "organization",
    "org_id": "org-1",
    "data_categories": ["pii"],
    "retention_period_days": 365,
    "audit_enabled": True,
    "redaction_rules": [
        {"pattern_type": "email", "replacement": "mask"},
        {"pattern_type": "ssn", "replacement": "remove"},
    ],
}


def seed_policies(*items):
    dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
    table = create_policy_table(dynamodb)
    for item in items:
        table.put_item(Item=item)
    return table


def audit_log_groups():
    client = boto3.client("logs", region_name="us-east-1")
    return client.describe_log_groups()["logGroups"]


class TestRedactSensitiveData:
    """Test suite for the redact_sensitive_data tool."""

    @mock_aws
    def test_redacts_and_writes_audit_record(self):
        seed_policies(ACTIVE_POLICY)

        from server import list_redaction_logs, redact_sensitive_data

        result = redact_sensitive_data(
            "Contact me at a@b.com please, ssn 123-45-6789, call +1-555-123-4567",
            "pol-gdpr",
            org_id="org-1",
            agent_id="agent-1",
        )

        assert result["success"] is True
        assert result["redacted_content"] == (
            "Contact me at ******* please, ssn [REDACTED], call +1-[PHONE_REDACTED]"
        )
        assert result["redaction_count"] == 3
        assert result["patterns_matched"] == ["email", "phone", "ssn"]
        assert len(result["original_hash"]) == 64
        assert result["audit_recorded"] is True

        logs = list_redaction_logs("org-1")
        assert logs["success"] is True
        assert logs["count"] == 1
        entry = logs["logs"][0]
        assert entry["agent_id"] == "agent-1"
        assert entry["original_hash"] == result["original_hash"]
        assert "a@b.com" not in entry["redacted_preview"]

    @mock_aws
    def test_missing_content_writes_no_audit(self):
        seed_policies(ACTIVE_POLICY)

        from server import redact_sensitive_data

        result = redact_sensitive_data("", "pol-gdpr", org_id="org-1")

        assert result["success"] is False
        assert result["code"] == "VALIDATION_ERROR"
        assert result["trace_id"].startswith("REDACT_ERROR_")
        assert audit_log_groups() == []

    @mock_aws
    def test_inactive_policy(self):
        seed_policies({**ACTIVE_POLICY, "id": "pol-old", "status": "inactive"})

        from server import redact_sensitive_data

        result = redact_sensitive_data("a@b.com", "pol-old", org_id="org-1")

        assert result["success"] is False
        assert result["code"] == "POLICY_NOT_FOUND"
        assert result["retryable"] is False

    @mock_aws
    def test_archived_policy_with_bad_rule(self):
        seed_policies({
            **ACTIVE_POLICY,
            "id": "pol-archived",
            "status": "archived",
            "redaction_rules": [{"pattern_type": "email", "replacement": "redact"}],
        })

        from server import redact_sensitive_data

        result = redact_sensitive_data("a@b.com", "pol-archived", org_id="org-1")

        assert result["code"] == "POLICY_NOT_FOUND"

    @mock_aws
    def test_invalid_custom_regex(self):
        seed_policies({
            **ACTIVE_POLICY,
            "id": "pol-broken",
            "redaction_rules": [{"pattern_type": "custom_regex", "regex": "[", "replacement": "mask"}],
        })

        from server import redact_sensitive_data

        result = redact_sensitive_data("a@b.com", "pol-broken", org_id="org-1")

        assert result["code"] == "CONFIG_ERROR"
        assert "redacted_content" not in result
        assert audit_log_groups() == []

    @mock_aws
    def test_uses_default_org_id(self, monkeypatch):
        monkeypatch.setenv("REDACTION_DEFAULT_ORG_ID", "org-env")
        seed_policies(ACTIVE_POLICY)

        from server import list_redaction_logs, redact_sensitive_data

        result = redact_sensitive_data("ssn 123-45-6789", "pol-gdpr")

        assert result["success"] is True
        assert list_redaction_logs("org-env")["count"] == 1

    @mock_aws
    def test_requires_org_id(self):
        seed_policies(ACTIVE_POLICY)

        from server import redact_sensitive_data

        result = redact_sensitive_data("text", "pol-gdpr")

        assert result["code"] == "VALIDATION_ERROR"

    @mock_aws
    def test_missing_policy_table(self):
        from server import redact_sensitive_data

        result = redact_sensitive_data("text", "pol-gdpr", org_id="org-1")

        assert result["success"] is False
        assert result["code"] == "INTERNAL_ERROR"
        assert result["retryable"] is True
        assert "AWS Error" in result["error"]

    def test_handles_missing_credentials(self, monkeypatch):
        """Should return helpful error when AWS credentials are missing."""
        monkeypatch.delenv("AWS_ACCESS_KEY_ID", raising=False)
        monkeypatch.delenv("AWS_SECRET_ACCESS_KEY", raising=False)

        from server import redact_sensitive_data

        result = redact_sensitive_data("text", "pol-gdpr", org_id="org-1")

        assert result["success"] is False
        assert "credentials" in result["error"].lower()


class TestListRedactionLogs:
    """Test suite for the list_redaction_logs tool."""

    @mock_aws
    def test_empty(self):
        from server import list_redaction_logs

        result = list_redaction_logs("org-1")

        assert result["success"] is True
        assert result["count"] == 0
        assert result["logs"] == []

    @mock_aws
    def test_limit_is_clamped(self):
        seed_policies(ACTIVE_POLICY)

        from server import list_redaction_logs, redact_sensitive_data

        for i in range(3):
            redact_sensitive_data(f"message {i}", "pol-gdpr", org_id="org-1")

        assert list_redaction_logs("org-1", limit=0)["count"] == 1
        assert list_redaction_logs("org-1", limit=500)["count"] == 3

    @mock_aws
    def test_requires_org_id(self):
        from server import list_redaction_logs

        assert list_redaction_logs()["code"] == "VALIDATION_ERROR"


class TestDescribePolicy:
    """Test suite for the describe_policy tool."""

    @mock_aws
    def test_describes_active_policy(self):
        seed_policies(ACTIVE_POLICY)

        from server import describe_policy

        result = describe_policy("pol-gdpr")

        assert result["success"] is True
        assert result["builtin_pii_detection"] is True
        assert result["policy"]["name"] == "GDPR PII Protection Policy"
        assert result["policy"]["retention_period_days"] == 365
        assert result["policy"]["redaction_rules"] == ACTIVE_POLICY["redaction_rules"]

    @mock_aws
    def test_unknown_policy(self):
        seed_policies(ACTIVE_POLICY)

        from server import describe_policy

        assert describe_policy("pol-missing")["code"] == "POLICY_NOT_FOUND"

    def test_requires_policy_id(self):
        from server import describe_policy

        assert describe_policy("")["code"] == "VALIDATION_ERROR"
