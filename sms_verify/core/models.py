"""Request and result types for SMS dispatch."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .errors import InputError


SENDER_ID_MAX_LENGTH = 11


class SmsType(str, Enum):
    """SNS SMS message class."""

    TRANSACTIONAL = "Transactional"
    PROMOTIONAL = "Promotional"


@dataclass(frozen=True)
class DispatchRequest:
    """One SMS to publish.

    Attributes:
        phone_number: Normalized E.164 destination.
        message: Final message text (template already rendered).
        sender_id: Alphanumeric sender id, at most 11 characters.
        sms_type: Transactional or Promotional.
    """

    phone_number: str
    message: str
    sender_id: str
    sms_type: SmsType = SmsType.TRANSACTIONAL

    def __post_init__(self) -> None:
        if not self.message:
            raise InputError("Message is required")
        if not self.sender_id or len(self.sender_id) > SENDER_ID_MAX_LENGTH:
            raise InputError(f"Sender ID must be 1 to {SENDER_ID_MAX_LENGTH} characters")

    def to_publish_params(self) -> Dict[str, str]:
        """Render the SNS ``Publish`` query parameters."""
        return {
            "Message": self.message,
            "PhoneNumber": self.phone_number,
            "MessageAttributes.entry.1.Name": "AWS.SNS.SMS.SenderID",
            "MessageAttributes.entry.1.Value.DataType": "String",
            "MessageAttributes.entry.1.Value.StringValue": self.sender_id,
            "MessageAttributes.entry.2.Name": "AWS.SNS.SMS.SMSType",
            "MessageAttributes.entry.2.Value.DataType": "String",
            "MessageAttributes.entry.2.Value.StringValue": self.sms_type.value,
        }


@dataclass
class DispatchResult:
    """Terminal value of a dispatch call, never persisted."""

    success: bool
    message: Optional[str] = None
    message_id: Optional[str] = None
    code: Optional[str] = None
    phone_number: Optional[str] = None
    expires_in: Optional[int] = None
    error: Optional[str] = None
    details: Optional[str] = None
    is_voip: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        """Caller-facing shape with camelCase keys; absent fields are omitted."""
        payload = {
            "success": self.success,
            "message": self.message,
            "messageId": self.message_id,
            "code": self.code,
            "phoneNumber": self.phone_number,
            "expiresIn": self.expires_in,
            "error": self.error,
            "details": self.details,
            "isVoip": self.is_voip,
        }
        return {key: value for key, value in payload.items() if value is not None}
