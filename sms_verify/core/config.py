"""Dispatch configuration.

All recognized options live on ``DispatchOptions`` with their defaults. The
YAML file ``config/sms_config.yaml`` (section ``dispatch``) and a few
environment variables override them; per-request overrides are applied with
``DispatchOptions.override``.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from ..sns.signer import Credentials
from ..utils.config_loader import load_yaml_config
from .models import SmsType


DEFAULT_CONFIG_PATH = "config/sms_config.yaml"


class NormalizerKind(str, Enum):
    BASIC = "basic"
    LIBPHONENUMBER = "libphonenumber"


class VoipDetectionMethod(str, Enum):
    API = "api"
    LIBPHONENUMBER = "libphonenumber"


class MetadataType(str, Enum):
    MINIMAL = "minimal"
    FULL = "full"


@dataclass(frozen=True)
class DispatchOptions:
    """Every option the dispatch pipeline recognizes, with defaults."""

    aws_region: str = "us-east-1"
    block_voip: bool = False
    voip_detection_method: VoipDetectionMethod = VoipDetectionMethod.API
    normalizer: NormalizerKind = NormalizerKind.BASIC
    metadata_type: MetadataType = MetadataType.MINIMAL
    default_region: Optional[str] = None
    sender_id: str = "Verify"
    sms_type: SmsType = SmsType.TRANSACTIONAL
    message_template: str = "Your verification code is: {code}."
    code_length: int = 6
    code_ttl_seconds: int = 600
    lookup_url: str = "https://www.sent.dm/api/phone-lookup"
    voip_carriers: Tuple[str, ...] = ("bandwidth",)
    http_timeout: float = 10.0

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "DispatchOptions":
        """Build options from a plain mapping (YAML section, request body)."""
        return cls().override(**dict(values))

    def override(self, **changes: Any) -> "DispatchOptions":
        """Return a copy with ``changes`` applied; ``None`` values are ignored.

        Raises:
            ValueError: On an unknown option or an invalid enum value.
        """
        known = {f.name for f in dataclasses.fields(self)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ValueError(f"Unknown dispatch option(s): {', '.join(unknown)}")

        coerced: Dict[str, Any] = {}
        for name, value in changes.items():
            if value is None:
                continue
            coerced[name] = _coerce(name, value)
        return dataclasses.replace(self, **coerced)


_ENUM_FIELDS = {
    "voip_detection_method": VoipDetectionMethod,
    "normalizer": NormalizerKind,
    "metadata_type": MetadataType,
    "sms_type": SmsType,
}


def _coerce(name: str, value: Any) -> Any:
    enum_cls = _ENUM_FIELDS.get(name)
    if enum_cls is not None:
        if isinstance(value, enum_cls):
            return value
        for member in enum_cls:
            if str(value).lower() == member.value.lower():
                return member
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValueError(f"Invalid value for {name}: {value!r} (expected one of {allowed})")
    if name == "voip_carriers":
        if isinstance(value, str):
            return (value,)
        return tuple(str(v) for v in value)
    if name in ("code_length", "code_ttl_seconds"):
        return int(value)
    if name == "http_timeout":
        return float(value)
    if name == "block_voip":
        return _parse_bool(name, value)
    return value


_TRUE_STRINGS = frozenset(["true", "1", "yes", "on"])
_FALSE_STRINGS = frozenset(["false", "0", "no", "off", ""])


def _parse_bool(name: str, value: Any) -> bool:
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
        raise ValueError(f"Invalid value for {name}: {value!r} (expected true or false)")
    return bool(value)


def load_dispatch_options(config_path: str = DEFAULT_CONFIG_PATH) -> DispatchOptions:
    """Load options from YAML, then apply environment overrides.

    A missing config file is not an error: defaults are used.
    """
    try:
        section = load_yaml_config(config_path).get("dispatch", {}) or {}
    except FileNotFoundError:
        section = {}

    options = DispatchOptions.from_mapping(section)
    return options.override(
        aws_region=os.getenv("AWS_REGION") or None,
        sender_id=os.getenv("SMS_SENDER_ID") or None,
    )


def load_credentials() -> Credentials:
    """Read the AWS key pair from the environment (empty when unset)."""
    return Credentials(
        access_key_id=os.getenv("AWS_ACCESS_KEY_ID", ""),
        secret_access_key=os.getenv("AWS_SECRET_ACCESS_KEY", ""),
    )
