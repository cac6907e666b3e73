"""Verification orchestrator.

Sequences code validation, phone normalization, the optional VoIP policy and
the signed SNS publish into a single call that always returns a
``DispatchResult``. Every stage raises a taxonomy error; this module is the
only place they are converted into results.
"""

from __future__ import annotations

import re
import secrets
import string
from typing import Callable, Dict, Optional

from ..api_manager.base import PhoneNormalizer, VoipClassifier
from ..api_manager.classifiers import HeuristicVoipClassifier, LookupVoipClassifier
from ..api_manager.normalizers import BasicPhoneNormalizer, LibPhoneNumberNormalizer
from ..api_manager.utils.logger import get_logger, log_event
from ..sns.client import SNSClient
from ..sns.signer import Credentials
from ..utils.logger import mask_phone
from .config import DispatchOptions, MetadataType, NormalizerKind, VoipDetectionMethod
from .errors import InputError, PolicyRejection, SmsVerifyError
from .models import DispatchRequest, DispatchResult


CODE_PATTERN = re.compile(r"^[a-zA-Z0-9]{4,}$")

VOIP_REJECTION_ERROR = "VoIP numbers are not allowed"
VOIP_REJECTION_DETAILS = "This phone number appears to be a VoIP number, which is not supported for verification"
INVALID_PHONE_ERROR = "Invalid phone number format. Please use E.164 format (e.g., +1234567890)"

ClientFactory = Callable[[Credentials, DispatchOptions], SNSClient]


NORMALIZERS: Dict[NormalizerKind, Callable[[DispatchOptions], PhoneNormalizer]] = {
    NormalizerKind.BASIC: lambda options: BasicPhoneNormalizer(),
    NormalizerKind.LIBPHONENUMBER: lambda options: LibPhoneNumberNormalizer(default_region=options.default_region),
}

CLASSIFIERS: Dict[VoipDetectionMethod, Callable[[DispatchOptions], VoipClassifier]] = {
    VoipDetectionMethod.API: lambda options: LookupVoipClassifier(
        lookup_url=options.lookup_url,
        voip_carriers=options.voip_carriers,
        timeout=options.http_timeout,
    ),
    VoipDetectionMethod.LIBPHONENUMBER: lambda options: HeuristicVoipClassifier(
        full_metadata=options.metadata_type is MetadataType.FULL,
    ),
}


def build_normalizer(options: DispatchOptions) -> PhoneNormalizer:
    return NORMALIZERS[options.normalizer](options)


def build_classifier(options: DispatchOptions) -> VoipClassifier:
    return CLASSIFIERS[options.voip_detection_method](options)


def default_client_factory(credentials: Credentials, options: DispatchOptions) -> SNSClient:
    return SNSClient(credentials, region=options.aws_region, timeout=options.http_timeout)


def generate_code(length: int = 6) -> str:
    """Return a random numeric verification code."""
    if length < 4:
        raise ValueError("Verification codes must be at least 4 characters")
    return "".join(secrets.choice(string.digits) for _ in range(length))


def validate_code(code: Optional[str]) -> str:
    if not code:
        raise InputError("Verification code is required")
    if not CODE_PATTERN.match(code):
        raise InputError("Code must be alphanumeric and at least 4 characters")
    return code


class PhoneVerifier:
    """Dispatch pipeline for verification codes and plain SMS.

    Args:
        options: Default options; each call may pass its own.
        credentials: AWS key pair used to sign the publish request.
        classifier: Fixed VoIP classifier. When None, one is built per call
            from ``options.voip_detection_method``.
        normalizer: Fixed phone normalizer. When None, one is built per call
            from ``options.normalizer``.
        client_factory: Builds the SNS client for each call.
    """

    def __init__(
        self,
        options: Optional[DispatchOptions] = None,
        credentials: Optional[Credentials] = None,
        classifier: Optional[VoipClassifier] = None,
        normalizer: Optional[PhoneNormalizer] = None,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self.options = options or DispatchOptions()
        self.credentials = credentials or Credentials("", "")
        self.classifier = classifier
        self.normalizer = normalizer
        self.client_factory = client_factory or default_client_factory
        self.logger = get_logger("sms_verify.orchestrator")

    def verify(
        self,
        phone_number: str,
        code: Optional[str],
        options: Optional[DispatchOptions] = None,
    ) -> DispatchResult:
        """Send a verification code by SMS.

        Returns:
            On success ``message``, ``message_id``, ``code``, ``phone_number``
            and ``expires_in`` are set. On failure ``error`` is set, plus
            ``details`` and ``is_voip`` where relevant.
        """
        options = options or self.options
        try:
            validate_code(code)
            phone = self._prepare_phone(phone_number, options)
            self._enforce_voip_policy(phone, options)
            message = options.message_template.replace("{code}", code)
            message_id = self._dispatch(phone, message, options)
        except SmsVerifyError as exc:
            return self._failure(exc, phone_number)
        except Exception as exc:
            return self._unexpected(exc)

        return DispatchResult(
            success=True,
            message="Verification code sent successfully",
            message_id=message_id,
            code=code,
            phone_number=phone,
            expires_in=options.code_ttl_seconds,
        )

    def send_message(
        self,
        phone_number: str,
        message: str,
        options: Optional[DispatchOptions] = None,
    ) -> DispatchResult:
        """Send a free-form SMS through the same pipeline, without a code."""
        options = options or self.options
        try:
            if not message:
                raise InputError("Message is required")
            phone = self._prepare_phone(phone_number, options)
            self._enforce_voip_policy(phone, options)
            message_id = self._dispatch(phone, message, options)
        except SmsVerifyError as exc:
            return self._failure(exc, phone_number)
        except Exception as exc:
            return self._unexpected(exc)

        return DispatchResult(
            success=True,
            message="SMS sent successfully",
            message_id=message_id,
            phone_number=phone,
        )

    def _prepare_phone(self, phone_number: str, options: DispatchOptions) -> str:
        normalizer = self.normalizer or build_normalizer(options)
        phone = normalizer.normalize(phone_number)
        if not normalizer.is_valid(phone):
            raise InputError(INVALID_PHONE_ERROR)
        return phone

    def _enforce_voip_policy(self, phone: str, options: DispatchOptions) -> None:
        if not options.block_voip:
            return
        classifier = self.classifier or build_classifier(options)
        verdict = classifier.classify(phone)
        if verdict.is_voip:
            log_event(
                self.logger,
                20,
                "Rejected VoIP number",
                extra={"to": mask_phone(phone), "rule": verdict.rule, "method": classifier.source_name},
            )
            raise PolicyRejection(VOIP_REJECTION_ERROR, VOIP_REJECTION_DETAILS, rule=verdict.rule)

    def _dispatch(self, phone: str, message: str, options: DispatchOptions) -> str:
        request = DispatchRequest(
            phone_number=phone,
            message=message,
            sender_id=options.sender_id,
            sms_type=options.sms_type,
        )
        self.credentials.require()
        client = self.client_factory(self.credentials, options)
        return client.publish_sms(request)

    def _failure(self, exc: SmsVerifyError, phone_number: Optional[str]) -> DispatchResult:
        log_event(
            self.logger,
            30,
            "Dispatch failed",
            extra={"kind": exc.kind, "error": exc.error, "to": mask_phone(phone_number)},
        )
        return DispatchResult(
            success=False,
            error=exc.error,
            details=exc.details,
            is_voip=True if isinstance(exc, PolicyRejection) else None,
        )

    def _unexpected(self, exc: Exception) -> DispatchResult:
        self.logger.error(f"Unexpected dispatch error: {exc}", exc_info=True)
        return DispatchResult(success=False, error="Internal error", details=str(exc))


def verify_phone(
    phone_number: str,
    code: Optional[str],
    options: Optional[DispatchOptions] = None,
    credentials: Optional[Credentials] = None,
    **overrides,
) -> DispatchResult:
    """One-shot helper: build a ``PhoneVerifier`` and send a code.

    ``overrides`` are option names (``block_voip=True``,
    ``voip_detection_method="libphonenumber"``, ...) applied on top of
    ``options``.
    """
    try:
        effective = (options or DispatchOptions()).override(**overrides)
    except ValueError as exc:
        return DispatchResult(success=False, error=str(exc))
    return PhoneVerifier(options=effective, credentials=credentials).verify(phone_number, code)
