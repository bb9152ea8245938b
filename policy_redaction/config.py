"""
Runtime settings for the policy redaction service.

Values come from environment variables, optionally loaded from a ``.env``
file by the server entry point via python-dotenv.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_REGION = "us-east-1"
DEFAULT_POLICY_TABLE = "privacy-policies"
DEFAULT_AUDIT_LOG_GROUP = "/policy-redaction/audit"
DEFAULT_AUDIT_LOG_STREAM = "redaction-events"
DEFAULT_AUDIT_LOOKBACK_DAYS = 30

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Service settings resolved from the environment."""
    aws_region: str = DEFAULT_REGION
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    policy_table: str = DEFAULT_POLICY_TABLE
    audit_log_group: str = DEFAULT_AUDIT_LOG_GROUP
    audit_log_stream: str = DEFAULT_AUDIT_LOG_STREAM
    audit_lookback_days: int = DEFAULT_AUDIT_LOOKBACK_DAYS
    default_org_id: Optional[str] = None
    skip_redacted_builtins: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the current process environment."""
        return cls(
            aws_region=os.getenv("AWS_REGION", DEFAULT_REGION),
            aws_access_key_id=os.getenv("AWS_ACCESS_KEY_ID"),
            aws_secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY"),
            policy_table=os.getenv("REDACTION_POLICY_TABLE", DEFAULT_POLICY_TABLE),
            audit_log_group=os.getenv("REDACTION_AUDIT_LOG_GROUP", DEFAULT_AUDIT_LOG_GROUP),
            audit_log_stream=os.getenv("REDACTION_AUDIT_LOG_STREAM", DEFAULT_AUDIT_LOG_STREAM),
            audit_lookback_days=int(
                os.getenv("REDACTION_AUDIT_LOOKBACK_DAYS", DEFAULT_AUDIT_LOOKBACK_DAYS)
            ),
            default_org_id=os.getenv("REDACTION_DEFAULT_ORG_ID") or None,
            skip_redacted_builtins=os.getenv(
                "REDACTION_SKIP_REDACTED_BUILTINS", ""
            ).strip().lower() in _TRUE_VALUES,
            log_level=os.getenv("REDACTION_LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(settings: Settings) -> None:
    """Attach a stderr handler to the package logger at the configured level."""
    package_logger = logging.getLogger("policy_redaction")
    package_logger.setLevel(getattr(logging, settings.log_level, logging.INFO))

    # Only add handler if none exist (avoid duplicate handlers)
    if not package_logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        package_logger.addHandler(handler)
