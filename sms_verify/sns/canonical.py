"""Canonical request serialization for AWS Signature Version 4."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from typing import Mapping, Tuple
from urllib.parse import quote, urlsplit


def sha256_hex(data: str) -> str:
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def canonical_query_string(params: Mapping[str, str]) -> str:
    """Render query parameters the way SigV4 canonicalizes them.

    Keys are sorted and both keys and values are percent-encoded per RFC 3986
    (unreserved characters only, ``%20`` for spaces). A query rendered here
    can be used unchanged as the canonical query of a signed request.
    """
    pairs = sorted((quote(str(k), safe="-_.~"), quote(str(v), safe="-_.~")) for k, v in params.items())
    return "&".join(f"{k}={v}" for k, v in pairs)


@dataclass(frozen=True)
class CanonicalRequest:
    """Deterministic serialization of an HTTP request used as signing input.

    Attributes:
        method: HTTP method, upper-case.
        uri: Request path.
        query: Canonical query string (already encoded by the caller).
        headers: ``(name, value)`` pairs, names lower-cased and sorted.
        payload_hash: Hex SHA-256 of the request body.
    """

    method: str
    uri: str
    query: str
    headers: Tuple[Tuple[str, str], ...]
    payload_hash: str

    @property
    def signed_headers(self) -> str:
        return ";".join(name for name, _ in self.headers)

    @property
    def canonical_headers(self) -> str:
        return "\n".join(f"{name}:{value}" for name, value in self.headers)

    def render(self) -> str:
        return "\n".join(
            [
                self.method,
                self.uri,
                self.query,
                self.canonical_headers,
                "",
                self.signed_headers,
                self.payload_hash,
            ]
        )

    def digest(self) -> str:
        return sha256_hex(self.render())


def build_canonical_request(
    method: str,
    url: str,
    headers: Mapping[str, str],
    payload_hash: str,
) -> CanonicalRequest:
    """Build the canonical form of a request.

    The URI is the URL path (``/`` when empty) and the query is everything
    after ``?``, left exactly as the caller encoded it.
    """
    uri = urlsplit(url).path or "/"
    query = url.split("?", 1)[1] if "?" in url else ""
    lowered = {str(name).lower(): str(value).strip() for name, value in headers.items()}
    return CanonicalRequest(
        method=method.upper(),
        uri=uri,
        query=query,
        headers=tuple(sorted(lowered.items())),
        payload_hash=payload_hash,
    )
