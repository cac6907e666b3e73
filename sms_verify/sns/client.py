"""AWS SNS query API client over plain HTTP.

Requests are signed with our own SigV4 implementation and sent with
``requests``. Replies are small fixed XML documents, so only the handful of
fields we need are extracted with regular expressions.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Mapping, Optional

import requests

from ..api_manager.utils.logger import get_logger, log_event
from ..core.errors import RemoteProtocolError, TransportError, UnparseableResponse
from ..core.models import DispatchRequest
from ..utils.logger import mask_phone
from .canonical import canonical_query_string
from .signer import Credentials, SigningContext, sign


API_VERSION = "2010-03-31"
DEFAULT_REGION = "us-east-1"
CONTENT_TYPE = "application/x-www-form-urlencoded; charset=utf-8"

_ERROR_CODE = re.compile(r"<Code>([^<]+)</Code>")
_ERROR_MESSAGE = re.compile(r"<Message>([^<]+)</Message>")
_RESULT_FIELDS = ("MessageId", "TopicArn", "SubscriptionArn")
_RESULT_PATTERNS = {name: re.compile(rf"<{name}>([^<]+)</{name}>") for name in _RESULT_FIELDS}


def parse_response(body: str) -> Dict[str, str]:
    """Extract the result of an SNS reply.

    Returns:
        ``{"MessageId": ...}``, ``{"TopicArn": ...}`` or
        ``{"SubscriptionArn": ...}`` when present, otherwise ``{"raw": body}``.

    Raises:
        RemoteProtocolError: If the body carries both an error code and an
            error message.
    """
    code = _ERROR_CODE.search(body)
    message = _ERROR_MESSAGE.search(body)
    if code and message:
        raise RemoteProtocolError(code.group(1), message.group(1))

    for name in _RESULT_FIELDS:
        match = _RESULT_PATTERNS[name].search(body)
        if match:
            return {name: match.group(1)}

    return {"raw": body}


class SNSClient:
    """Signed HTTP client for the SNS query API.

    One instance is built per dispatch; it holds the credentials only for
    the lifetime of that call.

    Args:
        credentials: AWS access key pair.
        region: AWS region (default ``us-east-1``).
        session: Optional ``requests.Session`` (tests inject a stub).
        timeout: Per-request timeout in seconds.
    """

    source_name = "sns"

    def __init__(
        self,
        credentials: Credentials,
        region: str = DEFAULT_REGION,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ) -> None:
        self.credentials = credentials
        self.region = region or DEFAULT_REGION
        self.endpoint = f"https://sns.{self.region}.amazonaws.com"
        self.session = session or requests.Session()
        self.timeout = timeout
        self.logger = get_logger("sms_verify.sns")

    def build_url(self, action: str, params: Optional[Mapping[str, str]] = None) -> str:
        query: Dict[str, str] = {"Action": action, "Version": API_VERSION}
        query.update(params or {})
        return f"{self.endpoint}/?{canonical_query_string(query)}"

    def make_request(self, action: str, params: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """Sign and send one GET request, returning the extracted result.

        Raises:
            CredentialError: Missing credentials.
            RemoteProtocolError: Non-2xx status or an error document.
            TransportError: Network failure.
        """
        url = self.build_url(action, params)
        context = SigningContext.now(self.credentials, self.region)
        headers = sign("GET", url, {"Content-Type": CONTENT_TYPE}, "", context)
        return self.send(url, headers)

    def send(self, url: str, signed_headers: Mapping[str, str]) -> Dict[str, str]:
        """Execute a signed request and extract the reply fields."""
        try:
            response = self.session.get(url, headers=dict(signed_headers), timeout=self.timeout)
        except requests.RequestException as exc:
            log_event(self.logger, 40, "SNS request failed", extra={"error": str(exc)})
            raise TransportError("SNS request failed", str(exc)) from exc

        body = response.text or ""
        if not response.ok:
            log_event(self.logger, 40, "SNS API error", extra={"status": response.status_code})
            code = _ERROR_CODE.search(body)
            message = _ERROR_MESSAGE.search(body)
            raise RemoteProtocolError(
                code.group(1) if code else f"HTTP {response.status_code}",
                message.group(1) if message else body,
                status=response.status_code,
            )

        return parse_response(body)

    def publish_sms(self, request: DispatchRequest) -> str:
        """Publish an SMS and return the SNS message id.

        Raises:
            UnparseableResponse: If the reply carries no message id.
        """
        log_event(
            self.logger,
            20,
            "Publishing SMS",
            extra={"to": mask_phone(request.phone_number), "sms_type": request.sms_type.value, "region": self.region},
        )
        result: Dict[str, Any] = self.make_request("Publish", request.to_publish_params())
        message_id = result.get("MessageId")
        if not message_id:
            raise UnparseableResponse("Unexpected response from SNS", str(result.get("raw", ""))[:500])

        log_event(self.logger, 20, "SMS published", extra={"message_id": message_id})
        return message_id
