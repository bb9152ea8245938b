"""
Policy stores - where active privacy policies are fetched from.

The redaction service only ever reads policies. Two implementations ship:
    - DynamoDBPolicyStore: one item per policy, keyed by "id"
    - InMemoryPolicyStore: a dict, for tests and embedding

To add another backend, subclass PolicyStore and implement get_policy().
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from .models import Policy, PolicyStatus

logger = logging.getLogger(__name__)


class PolicyStore(ABC):
    """Read-only access to privacy policies."""

    @abstractmethod
    def get_policy(self, policy_id: str) -> Optional[Policy]:
        """
        Fetch a policy by id regardless of its status.

        Returns:
            The parsed Policy, or None if no record exists.

        Raises:
            ConfigurationError: If the stored record is malformed.
        """
        pass

    def get_active_policy(self, policy_id: str) -> Optional[Policy]:
        """Fetch a policy by id, returning None unless it is active."""
        policy = self.get_policy(policy_id)
        if policy is None:
            logger.info(f"Policy {policy_id} not found")
            return None
        if not policy.is_active:
            logger.info(f"Policy {policy_id} is {policy.status.value}, not active")
            return None
        return policy


class InMemoryPolicyStore(PolicyStore):
    """Dictionary-backed policy store."""

    def __init__(self, policies: Optional[list[Policy]] = None):
        self._policies: dict[str, Policy] = {}
        for policy in policies or []:
            self.put_policy(policy)

    def put_policy(self, policy: Policy) -> None:
        self._policies[policy.id] = policy

    def get_policy(self, policy_id: str) -> Optional[Policy]:
        return self._policies.get(policy_id)


class DynamoDBPolicyStore(PolicyStore):
    """
    Policy store backed by a DynamoDB table.

    The table uses a string partition key named ``id``. Items hold the same
    fields as ``Policy.to_dict()``.

    Example:
        dynamodb = boto3.resource("dynamodb", region_name="us-east-1")
        store = DynamoDBPolicyStore(dynamodb.Table("privacy-policies"))
        policy = store.get_active_policy("pol-123")
    """

    def __init__(self, table):
        """
        Args:
            table: A boto3 DynamoDB ``Table`` resource.
        """
        self._table = table

    def _get_item(self, policy_id: str) -> Optional[dict]:
        response = self._table.get_item(Key={"id": policy_id}, ConsistentRead=True)
        return response.get("Item")

    def get_policy(self, policy_id: str) -> Optional[Policy]:
        item = self._get_item(policy_id)
        if item is None:
            return None
        return Policy.from_dict(item)

    def get_active_policy(self, policy_id: str) -> Optional[Policy]:
        """
        Fetch an active policy.

        Status is checked on the raw item before parsing, so a non-active
        record is reported as missing even when its rules or status value
        would not parse.
        """
        item = self._get_item(policy_id)
        if item is None:
            logger.info(f"Policy {policy_id} not found")
            return None
        status = item.get("status")
        if status != PolicyStatus.ACTIVE.value:
            logger.info(f"Policy {policy_id} is {status}, not active")
            return None
        return Policy.from_dict(item)

    def put_policy(self, policy: Policy) -> None:
        """Write a policy record. Used for seeding; the service never writes."""
        self._table.put_item(Item=policy.to_dict())
