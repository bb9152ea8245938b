"""
Audit sinks - append-only destinations for redaction audit records.

Records carry the original content's hash and a preview of the redacted
output only. Sinks never update or delete what they have written.

Implementations:
    - CloudWatchAuditSink: one JSON log event per record in a CloudWatch
      Logs stream
    - InMemoryAuditSink: a list, for tests and embedding
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from typing import Optional

from botocore.exceptions import ClientError

from .models import RedactionAuditRecord

logger = logging.getLogger(__name__)

MAX_RECENT_RECORDS = 100
DEFAULT_LOOKBACK_DAYS = 30


class AuditSink(ABC):
    """Append-only log of redaction events."""

    @abstractmethod
    def record(self, record: RedactionAuditRecord) -> None:
        """Append a record. Raises on failure; callers decide how to react."""
        pass

    @abstractmethod
    def recent(self, org_id: str, limit: int = 20) -> list[RedactionAuditRecord]:
        """Return up to ``limit`` records for an organization, newest first."""
        pass


class InMemoryAuditSink(AuditSink):
    """List-backed audit sink."""

    def __init__(self):
        self._records: list[RedactionAuditRecord] = []

    @property
    def records(self) -> list[RedactionAuditRecord]:
        return list(self._records)

    def record(self, record: RedactionAuditRecord) -> None:
        self._records.append(record)

    def recent(self, org_id: str, limit: int = 20) -> list[RedactionAuditRecord]:
        matching = [r for r in self._records if r.org_id == org_id]
        return list(reversed(matching))[:limit]


class CloudWatchAuditSink(AuditSink):
    """
    Audit sink writing JSON records to a CloudWatch Logs stream.

    The log group and stream are created on first write if they do not
    exist yet.

    Example:
        client = boto3.client("logs", region_name="us-east-1")
        sink = CloudWatchAuditSink(client, "/policy-redaction/audit", "redaction-events")
        sink.record(audit_record)
    """

    def __init__(
        self,
        client,
        log_group: str,
        log_stream: str,
        lookback_days: int = DEFAULT_LOOKBACK_DAYS
    ):
        """
        Args:
            client: A boto3 CloudWatch Logs client.
            log_group: Log group receiving audit records.
            log_stream: Log stream within the group.
            lookback_days: How far back recent() searches.
        """
        self._client = client
        self.log_group = log_group
        self.log_stream = log_stream
        self.lookback_days = max(1, lookback_days)
        self._stream_ready = False

    def _ensure_stream(self) -> None:
        if self._stream_ready:
            return
        try:
            self._client.create_log_group(logGroupName=self.log_group)
            logger.info(f"Created audit log group {self.log_group}")
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") != "ResourceAlreadyExistsException":
                raise
        try:
            self._client.create_log_stream(
                logGroupName=self.log_group,
                logStreamName=self.log_stream
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") != "ResourceAlreadyExistsException":
                raise
        self._stream_ready = True

    def record(self, record: RedactionAuditRecord) -> None:
        self._ensure_stream()
        timestamp_ms = _to_epoch_ms(record.timestamp)
        self._client.put_log_events(
            logGroupName=self.log_group,
            logStreamName=self.log_stream,
            logEvents=[
                {"timestamp": timestamp_ms, "message": json.dumps(record.to_dict())},
            ]
        )

    def recent(self, org_id: str, limit: int = 20) -> list[RedactionAuditRecord]:
        limit = max(1, min(limit, MAX_RECENT_RECORDS))

        # Time range and org scoping happen server side; the org check
        # below still guards against a pattern the backend ignores
        start_time = datetime.now(timezone.utc) - timedelta(days=self.lookback_days)
        params = {
            "logGroupName": self.log_group,
            "logStreamNames": [self.log_stream],
            "startTime": int(start_time.timestamp() * 1000),
            "filterPattern": org_filter_pattern(org_id),
        }
        matching: list[RedactionAuditRecord] = []
        try:
            while True:
                response = self._client.filter_log_events(**params)
                for event in response.get("events", []):
                    parsed = _parse_event(event.get("message", ""))
                    if parsed is not None and parsed.org_id == org_id:
                        matching.append(parsed)
                # Keep only the newest `limit` seen so far
                matching.sort(key=lambda r: r.timestamp, reverse=True)
                del matching[limit:]
                next_token = response.get("nextToken")
                if not next_token:
                    break
                params["nextToken"] = next_token
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ResourceNotFoundException":
                return []
            raise

        return matching


def org_filter_pattern(org_id: str) -> str:
    """CloudWatch Logs JSON filter pattern selecting one organization's records."""
    return f"{{ $.org_id = {json.dumps(org_id)} }}"


def _to_epoch_ms(timestamp: str) -> int:
    return int(datetime.fromisoformat(timestamp).timestamp() * 1000)


def _parse_event(message: str) -> Optional[RedactionAuditRecord]:
    try:
        return RedactionAuditRecord.from_dict(json.loads(message))
    except (ValueError, KeyError, TypeError) as e:
        logger.warning(f"Skipping unreadable audit event: {e}")
        return None
