"""AWS Signature Version 4 request signing.

Signing is a pure function of the request, the signing context and the
credentials. The context carries the timestamp, so a fixed context always
reproduces the same signature.
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Mapping, Optional
from urllib.parse import urlsplit

from ..core.errors import CredentialError
from .canonical import build_canonical_request, sha256_hex


ALGORITHM = "AWS4-HMAC-SHA256"
TERMINATOR = "aws4_request"
DEFAULT_SERVICE = "sns"


@dataclass(frozen=True)
class Credentials:
    """AWS access key pair. The secret never appears in ``repr``."""

    access_key_id: str
    secret_access_key: str = field(repr=False)

    def require(self) -> "Credentials":
        if not self.access_key_id or not self.secret_access_key:
            raise CredentialError(
                "AWS credentials not configured",
                "Please set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY environment variables",
            )
        return self


@dataclass(frozen=True)
class SigningContext:
    """Everything besides the request itself that the signature depends on."""

    credentials: Credentials
    region: str
    timestamp: datetime
    service: str = DEFAULT_SERVICE

    @classmethod
    def now(
        cls,
        credentials: Credentials,
        region: str,
        service: str = DEFAULT_SERVICE,
        clock: Optional[datetime] = None,
    ) -> "SigningContext":
        moment = clock or datetime.now(timezone.utc)
        return cls(
            credentials=credentials,
            region=region,
            timestamp=moment.astimezone(timezone.utc).replace(microsecond=0),
            service=service,
        )

    @property
    def amz_date(self) -> str:
        return self.timestamp.strftime("%Y%m%dT%H%M%SZ")

    @property
    def date_stamp(self) -> str:
        return self.timestamp.strftime("%Y%m%d")

    @property
    def credential_scope(self) -> str:
        return f"{self.date_stamp}/{self.region}/{self.service}/{TERMINATOR}"


def _hmac_sha256(key: bytes, message: str) -> bytes:
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()


def derive_signing_key(secret_access_key: str, date_stamp: str, region: str, service: str = DEFAULT_SERVICE) -> bytes:
    """Derive the per-day, per-region, per-service signing key."""
    k_date = _hmac_sha256(f"AWS4{secret_access_key}".encode("utf-8"), date_stamp)
    k_region = _hmac_sha256(k_date, region)
    k_service = _hmac_sha256(k_region, service)
    return _hmac_sha256(k_service, TERMINATOR)


def string_to_sign(canonical_request_digest: str, context: SigningContext) -> str:
    return "\n".join([ALGORITHM, context.amz_date, context.credential_scope, canonical_request_digest])


def sign(
    method: str,
    url: str,
    headers: Mapping[str, str],
    payload: str,
    context: SigningContext,
) -> Dict[str, str]:
    """Sign a request and return the headers to send with it.

    Args:
        method: HTTP method.
        url: Full request URL; its query must already be canonically encoded.
        headers: Extra headers to sign. Not modified.
        payload: Request body (empty for GET).
        context: Credentials, region, service and timestamp.

    Returns:
        Lower-cased input headers plus ``host``, ``x-amz-date``,
        ``x-amz-content-sha256`` and ``Authorization``.

    Raises:
        CredentialError: If the access key id or secret is missing.
    """
    credentials = context.credentials.require()

    payload_hash = sha256_hex(payload)
    signed: Dict[str, str] = {str(name).lower(): str(value) for name, value in headers.items()}
    signed["host"] = urlsplit(url).netloc
    signed["x-amz-date"] = context.amz_date
    signed["x-amz-content-sha256"] = payload_hash

    canonical = build_canonical_request(method, url, signed, payload_hash)
    signing_key = derive_signing_key(
        credentials.secret_access_key, context.date_stamp, context.region, context.service
    )
    signature = hmac.new(
        signing_key, string_to_sign(canonical.digest(), context).encode("utf-8"), hashlib.sha256
    ).hexdigest()

    signed["Authorization"] = (
        f"{ALGORITHM} Credential={credentials.access_key_id}/{context.credential_scope}, "
        f"SignedHeaders={canonical.signed_headers}, Signature={signature}"
    )
    return signed
