"""AWS SNS transport: SigV4 signing and the query API client."""

from .client import SNSClient, parse_response
from .signer import Credentials, SigningContext, derive_signing_key, sign

__all__ = ["SNSClient", "parse_response", "Credentials", "SigningContext", "derive_signing_key", "sign"]
