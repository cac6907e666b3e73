from __future__ import annotations

from typing import Any, Dict, Iterable, Optional

import requests

from ..base import VoipClassification, VoipClassifier
from ..utils.logger import get_logger, log_event


DEFAULT_LOOKUP_URL = "https://www.sent.dm/api/phone-lookup"
DEFAULT_VOIP_CARRIERS = ("bandwidth",)


class LookupVoipClassifier(VoipClassifier):
    """VoIP classifier backed by a third-party phone-intelligence endpoint.

    The lookup is an enrichment: any failure (network error, non-2xx status,
    malformed JSON, missing fields) fails open with ``is_voip=False`` so that
    sending SMS never depends on the lookup service being up.
    """

    source_name = "api"

    def __init__(
        self,
        lookup_url: str = DEFAULT_LOOKUP_URL,
        voip_carriers: Iterable[str] = DEFAULT_VOIP_CARRIERS,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.lookup_url = lookup_url
        self.voip_carriers = tuple(name.lower() for name in voip_carriers)
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = get_logger("sms_verify.voip.lookup")

    def _fetch(self, phone: str) -> Optional[Dict[str, Any]]:
        """Call the lookup endpoint; None when the reply is unusable."""
        try:
            response = self.session.get(
                self.lookup_url,
                params={"phone": phone},
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            log_event(self.logger, 30, "Phone lookup error", extra={"error": str(exc)})
            return None

        if not response.ok:
            log_event(self.logger, 30, "Phone lookup failed", extra={"status": response.status_code})
            return None

        try:
            data = response.json()
        except ValueError as exc:
            log_event(self.logger, 30, "Phone lookup returned malformed JSON", extra={"error": str(exc)})
            return None

        return data if isinstance(data, dict) else None

    def classify(self, phone: str) -> VoipClassification:
        data = self._fetch(phone)
        if not data or not isinstance(data.get("carrier"), dict):
            return VoipClassification(is_voip=False, rule="lookup_unavailable")

        carrier = data["carrier"]
        portability = data.get("portability")

        name = carrier.get("name")
        if not isinstance(name, str):
            return VoipClassification(is_voip=False, rule="lookup_incomplete")
        if any(voip_name in name.lower() for voip_name in self.voip_carriers):
            return VoipClassification(is_voip=True, rule="voip_carrier")

        carrier_type = carrier.get("type")
        if not isinstance(carrier_type, str):
            return VoipClassification(is_voip=False, rule="lookup_incomplete")
        if carrier_type.lower() == "voip":
            return VoipClassification(is_voip=True, rule="carrier_type_voip")

        line_type = portability.get("line_type") if isinstance(portability, dict) else None
        if not isinstance(line_type, str):
            return VoipClassification(is_voip=False, rule="lookup_incomplete")
        # Mobile line type is treated as a liveness risk.
        if line_type.lower() == "mobile":
            return VoipClassification(is_voip=True, rule="mobile_line_type")

        return VoipClassification(is_voip=False, rule="no_match")
