"""Error taxonomy for SMS dispatch.

Every failure raised inside the dispatch pipeline derives from
``SmsVerifyError``. The orchestrator catches them and turns them into a
failed ``DispatchResult``; nothing here escapes to HTTP or CLI callers.
"""

from __future__ import annotations

from typing import Optional


class SmsVerifyError(Exception):
    """Base class for dispatch failures.

    Attributes:
        error: Short, user-facing error string.
        details: Optional lower-level message.
    """

    kind = "error"

    def __init__(self, error: str, details: Optional[str] = None) -> None:
        super().__init__(error)
        self.error = error
        self.details = details


class InputError(SmsVerifyError):
    """Missing or malformed verification code, phone number or option."""

    kind = "input_error"


class PolicyRejection(SmsVerifyError):
    """The number was rejected by the VoIP policy; nothing was dispatched."""

    kind = "policy_rejection"

    def __init__(self, error: str, details: Optional[str] = None, rule: Optional[str] = None) -> None:
        super().__init__(error, details)
        self.rule = rule


class CredentialError(SmsVerifyError):
    """Signing credentials are missing."""

    kind = "credential_error"


class RemoteProtocolError(SmsVerifyError):
    """The provider answered with an explicit error code and message."""

    kind = "remote_protocol_error"

    def __init__(self, code: str, message: str, status: Optional[int] = None) -> None:
        super().__init__(
            f"{code}: {message}",
            details=f"SNS returned HTTP {status}" if status is not None else None,
        )
        self.code = code
        self.message = message
        self.status = status


class TransportError(SmsVerifyError):
    """Network failure while talking to the provider."""

    kind = "transport_error"


class UnparseableResponse(SmsVerifyError):
    """The provider reply matched none of the expected shapes."""

    kind = "unparseable_response"
