"""
Policy Redaction - MCP Server for privacy-policy driven redaction

A local MCP (Model Context Protocol) server that lets AI agents sanitize
prompts and outputs against their organization's privacy policies before
the text is stored or forwarded.

Tools:
    - redact_sensitive_data: Apply an active privacy policy to content
    - list_redaction_logs: List recent redaction audit records
    - describe_policy: Summarize the rules of an active policy

Storage:
    - Policies are read from a DynamoDB table (REDACTION_POLICY_TABLE)
    - Audit records are appended to CloudWatch Logs
      (REDACTION_AUDIT_LOG_GROUP / REDACTION_AUDIT_LOG_STREAM)

Safety Constraints:
    - Original content is never logged or stored, only its SHA-256 hash
    - A policy with an invalid custom regex fails the request; no partial
      redaction is returned
"""

import logging
from typing import Any, Optional

import boto3
from botocore.exceptions import ClientError, NoCredentialsError
from dotenv import load_dotenv
from mcp.server.fastmcp import FastMCP

from policy_redaction import (
    CallerContext,
    CloudWatchAuditSink,
    DynamoDBPolicyStore,
    InternalError,
    RedactionEngine,
    RedactionError,
    RedactionService,
    ValidationError,
)
from policy_redaction.audit import MAX_RECENT_RECORDS
from policy_redaction.config import Settings, configure_logging
from policy_redaction.service import error_response, error_response_from

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger("policy_redaction.server")

# Initialize MCP server
mcp = FastMCP(
    "policy-redaction",
    instructions="MCP Server for redacting sensitive data according to organization privacy policies"
)

CREDENTIALS_MESSAGE = (
    "AWS credentials not found. Please set AWS_ACCESS_KEY_ID, "
    "AWS_SECRET_ACCESS_KEY, and AWS_REGION environment variables."
)


def get_dynamodb_resource(settings: Settings):
    """Create and return a DynamoDB resource using environment credentials."""
    return boto3.resource(
        "dynamodb",
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        region_name=settings.aws_region
    )


def get_cloudwatch_client(settings: Settings):
    """Create and return a CloudWatch Logs client using environment credentials."""
    return boto3.client(
        "logs",
        aws_access_key_id=settings.aws_access_key_id,
        aws_secret_access_key=settings.aws_secret_access_key,
        region_name=settings.aws_region
    )


def build_service(settings: Optional[Settings] = None) -> RedactionService:
    """Wire the AWS-backed policy store and audit sink into a service."""
    settings = settings or Settings.from_env()
    policy_store = DynamoDBPolicyStore(
        get_dynamodb_resource(settings).Table(settings.policy_table)
    )
    audit_sink = CloudWatchAuditSink(
        get_cloudwatch_client(settings),
        log_group=settings.audit_log_group,
        log_stream=settings.audit_log_stream,
        lookback_days=settings.audit_lookback_days,
    )
    engine = RedactionEngine(
        skip_redacted_builtin_categories=settings.skip_redacted_builtins
    )
    return RedactionService(policy_store, audit_sink, engine)


def _handle_failure(e: Exception) -> dict[str, Any]:
    """Map an exception raised by a tool into an error payload."""
    if isinstance(e, RedactionError):
        logger.info(f"Request rejected ({e.code}): {e.message}")
        return error_response_from(e)
    if isinstance(e, NoCredentialsError):
        return error_response(InternalError.code, CREDENTIALS_MESSAGE, InternalError.retryable)
    if isinstance(e, ClientError):
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        error_message = e.response.get("Error", {}).get("Message", str(e))
        return error_response(
            InternalError.code,
            f"AWS Error ({error_code}): {error_message}",
            InternalError.retryable,
        )
    response = error_response(
        InternalError.code, f"Unexpected error: {str(e)}", InternalError.retryable
    )
    logger.error(f"Unexpected redaction failure (trace_id={response['trace_id']}): {e!r}")
    return response


@mcp.tool()
def redact_sensitive_data(
    content: str,
    policy_id: str,
    org_id: str = "",
    data_type: str = "prompt",
    agent_id: Optional[str] = None,
    run_id: Optional[str] = None,
) -> dict[str, Any]:
    """
    Redact sensitive data from content using an active privacy policy.

    The policy's redaction rules run first, in order. If the policy enables
    the "pii" data category, built-in detection for emails, phone numbers,
    SSNs and credit cards runs afterwards. An audit record holding the hash
    of the original content and a 200-character preview of the redacted
    content is written for every successful call.

    Args:
        content: The text to sanitize (required, non-empty).
        policy_id: Id of the privacy policy to apply. Must be active.
        org_id: Organization the request is attributed to. Defaults to
                REDACTION_DEFAULT_ORG_ID when empty.
        data_type: Kind of content, e.g. "prompt" or "output". Defaults to "prompt".
        agent_id: Optional agent attribution for the audit record.
        run_id: Optional run attribution for the audit record.

    Returns:
        On success:
        - success: True
        - redacted_content: The sanitized text
        - redaction_count: Total number of replacements
        - patterns_matched: Categories that matched at least once
        - original_hash: SHA-256 hex digest of the original content
        - audit_recorded: Whether the audit record was written

        On failure:
        - success: False
        - error: Human-readable message
        - code: VALIDATION_ERROR, POLICY_NOT_FOUND, CONFIG_ERROR or INTERNAL_ERROR
        - retryable: Whether retrying the same request may succeed
        - trace_id: Identifier for correlating with server logs

    Example usage:
        redact_sensitive_data("My ssn is 123-45-6789.", "pol-gdpr", "org-1")
    """
    try:
        settings = Settings.from_env()
        service = build_service(settings)
        caller = CallerContext(
            org_id=org_id or settings.default_org_id or "",
            agent_id=agent_id,
            run_id=run_id,
        )
        outcome = service.redact(
            content=content,
            policy_id=policy_id,
            caller=caller,
            data_type=data_type,
        )
        return outcome.to_response()

    except Exception as e:
        return _handle_failure(e)


@mcp.tool()
def list_redaction_logs(org_id: str = "", limit: int = 20) -> dict[str, Any]:
    """
    List the most recent redaction audit records for an organization.

    Records never contain original content: only counts, matched
    categories, the original content hash and a redacted preview.

    Args:
        org_id: Organization to list records for. Defaults to
                REDACTION_DEFAULT_ORG_ID when empty.
        limit: Maximum number of records (1-100). Defaults to 20.

    Returns:
        A dictionary containing:
        - success: True or False
        - org_id: The organization queried
        - count: Number of records returned
        - logs: Audit records, newest first
    """
    # Enforce safety limit
    if limit < 1:
        limit = 1
    if limit > MAX_RECENT_RECORDS:
        limit = MAX_RECENT_RECORDS

    try:
        settings = Settings.from_env()
        service = build_service(settings)
        org = org_id or settings.default_org_id or ""
        records = service.recent_logs(org, limit)
        return {
            "success": True,
            "org_id": org,
            "count": len(records),
            "logs": [record.to_dict() for record in records],
        }

    except Exception as e:
        return _handle_failure(e)


@mcp.tool()
def describe_policy(policy_id: str) -> dict[str, Any]:
    """
    Describe an active privacy policy without applying it.

    Args:
        policy_id: Id of the policy to describe.

    Returns:
        A dictionary containing:
        - success: True or False
        - policy: id, name, description, scope, data_categories,
          redaction_rules, retention_period_days and audit_enabled
        - builtin_pii_detection: Whether the built-in PII pass will run
    """
    try:
        if not policy_id:
            raise ValidationError("policy_id is required")
        service = build_service()
        policy = service.get_active_policy(policy_id)
        return {
            "success": True,
            "policy": policy.to_dict(),
            "builtin_pii_detection": policy.detects_pii,
        }

    except Exception as e:
        return _handle_failure(e)


if __name__ == "__main__":
    configure_logging(Settings.from_env())
    # Run the MCP server using stdio transport
    mcp.run()
