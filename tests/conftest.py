"""
Pytest configuration and shared fixtures for Policy Redaction tests.

Uses moto to mock AWS services (DynamoDB, CloudWatch Logs) for safe,
isolated testing without real AWS credentials.
"""

import os
import sys

import pytest

# Add parent directory to path for server imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from policy_redaction import Policy  # noqa: E402

POLICY_TABLE = "privacy-policies"


@pytest.fixture(autouse=True)
def set_aws_credentials(monkeypatch):
    """
    Set mock AWS credentials for moto and reset service settings.
    This runs automatically before each test.
    """
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_REGION"] = "us-east-1"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
    for name in list(os.environ):
        if name.startswith("REDACTION_"):
            monkeypatch.delenv(name, raising=False)
    yield


def make_policy(**overrides) -> Policy:
    """Build an active policy from a plain dict, with sensible defaults."""
    data = {
        "id": "pol-test",
        "status": "active",
        "name": "Test policy",
        "description": "Policy used in tests",
        "data_categories": [],
        "redaction_rules": [],
    }
    data.update(overrides)
    return Policy.from_dict(data)


@pytest.fixture
def policy_factory():
    """Provide the make_policy helper to tests."""
    return make_policy


def create_policy_table(dynamodb):
    """Create the policy table in a mocked DynamoDB."""
    return dynamodb.create_table(
        TableName=POLICY_TABLE,
        KeySchema=[{"AttributeName": "id", "KeyType": "HASH"}],
        AttributeDefinitions=[{"AttributeName": "id", "AttributeType": "S"}],
        BillingMode="PAY_PER_REQUEST",
    )


@pytest.fixture
def policy_table():
    """Provide a mocked DynamoDB policy table."""
    import boto3
    from moto import mock_aws

    with mock_aws():
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
        yield create_policy_table(dynamodb)


@pytest.fixture
def cloudwatch_logs_client():
    """Provide a mocked CloudWatch Logs client."""
    import boto3
    from moto import mock_aws

    with mock_aws():
        client = boto3.client("logs", region_name="us-east-1")
        yield client
