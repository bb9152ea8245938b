"""
Error taxonomy for the policy redaction service.

Every error carries a stable ``code`` that is reported to callers and a
``retryable`` flag telling them whether resubmitting the same request can
succeed.

    VALIDATION_ERROR  - request is missing required fields
    POLICY_NOT_FOUND  - no active policy with the requested id
    CONFIG_ERROR      - the policy itself is unusable (bad regex, bad strategy)
    INTERNAL_ERROR    - anything unexpected; safe to retry
"""


class RedactionError(Exception):
    """Base exception for all redaction errors."""

    code = "INTERNAL_ERROR"
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RedactionError):
    """
    The request cannot be processed as submitted.

    Raised when:
    - content is missing or empty
    - policy_id is missing
    - no organization id is available for attribution
    """

    code = "VALIDATION_ERROR"


class PolicyNotFoundError(RedactionError):
    """No policy with the given id exists, or it is not active."""

    code = "POLICY_NOT_FOUND"

    def __init__(self, policy_id: str):
        super().__init__(f"Policy not found or inactive: {policy_id}")
        self.policy_id = policy_id


class ConfigurationError(RedactionError):
    """
    A policy is configured in a way that cannot be applied safely.

    Raised when:
    - a custom_regex rule has no expression or it does not compile
    - a rule names an unknown replacement strategy
    - a stored policy record is malformed

    Redaction fails closed on these: skipping a rule would leak data.
    """

    code = "CONFIG_ERROR"

    def __init__(self, message: str, rule_index: int = None):
        super().__init__(message)
        self.rule_index = rule_index


class InternalError(RedactionError):
    """Unexpected failure inside the service or one of its collaborators."""

    code = "INTERNAL_ERROR"
    retryable = True
