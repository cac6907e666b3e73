"""Tests for SigV4 key derivation and request signing."""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from datetime import datetime, timedelta, timezone

import pytest

from sms_verify.core.errors import CredentialError
from sms_verify.sns.canonical import build_canonical_request
from sms_verify.sns.signer import Credentials, SigningContext, derive_signing_key, sign, string_to_sign


SECRET = "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY"
URL = "https://sns.us-east-1.amazonaws.com/?Action=ListTopics&Version=2010-03-31"
HEADERS = {"Content-Type": "application/x-www-form-urlencoded; charset=utf-8"}
EMPTY_HASH = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


@pytest.fixture
def context():
    return SigningContext(
        credentials=Credentials("AKIDEXAMPLE", SECRET),
        region="us-east-1",
        timestamp=datetime(2015, 8, 30, 12, 36, 0, tzinfo=timezone.utc),
    )


def test_signing_key_matches_aws_documentation():
    key = derive_signing_key(SECRET, "20120215", "us-east-1", "iam")
    assert key.hex() == "f4780e2d9f65fa895f9c67b32ce1baf0b0d8a43505a000a1a9e090d414db404d"


def test_signing_key_for_sns():
    key = derive_signing_key(SECRET, "20150830", "us-east-1")
    assert key.hex() == "06335a96b049067991745f2ed0707abbfe654ab421405f70d18f86f5aff11e8e"


def test_context_fields(context):
    assert context.amz_date == "20150830T123600Z"
    assert context.date_stamp == "20150830"
    assert context.credential_scope == "20150830/us-east-1/sns/aws4_request"


def test_reference_signature(context):
    signed = sign("GET", URL, HEADERS, "", context)

    assert signed["host"] == "sns.us-east-1.amazonaws.com"
    assert signed["x-amz-date"] == "20150830T123600Z"
    assert signed["x-amz-content-sha256"] == EMPTY_HASH
    assert signed["content-type"] == HEADERS["Content-Type"]
    assert signed["Authorization"] == (
        "AWS4-HMAC-SHA256 Credential=AKIDEXAMPLE/20150830/us-east-1/sns/aws4_request, "
        "SignedHeaders=content-type;host;x-amz-content-sha256;x-amz-date, "
        "Signature=dc8fe58baf0897b62f9b6b1e748070bfddb672b68a7af6f78d03dd3da40098a3"
    )


def test_canonical_request_digest(context):
    signed = sign("GET", URL, HEADERS, "", context)
    unsigned = {k: v for k, v in signed.items() if k != "Authorization"}
    canonical = build_canonical_request("GET", URL, unsigned, EMPTY_HASH)

    assert canonical.digest() == "0062d36ccdc9d838bf1dadfe3c52bbfb4971c383299485ba2a9d36c32755e21e"
    assert string_to_sign(canonical.digest(), context).split("\n") == [
        "AWS4-HMAC-SHA256",
        "20150830T123600Z",
        "20150830/us-east-1/sns/aws4_request",
        "0062d36ccdc9d838bf1dadfe3c52bbfb4971c383299485ba2a9d36c32755e21e",
    ]


def test_signing_is_deterministic(context):
    assert sign("GET", URL, HEADERS, "", context) == sign("GET", URL, HEADERS, "", context)


def test_timestamp_changes_signature(context):
    later = SigningContext(
        credentials=context.credentials,
        region=context.region,
        timestamp=context.timestamp + timedelta(minutes=1),
    )
    signed = sign("GET", URL, HEADERS, "", later)
    assert signed["Authorization"].endswith(
        "Signature=2ccefa8de260af753b3bef513109e7b2bfbe8bc174d3adc794ea6e9cd157314e"
    )


def test_caller_headers_are_not_modified(context):
    headers = dict(HEADERS)
    sign("GET", URL, headers, "", context)
    assert headers == HEADERS


@pytest.mark.parametrize("access_key, secret", [("", SECRET), ("AKIDEXAMPLE", "")])
def test_missing_credentials(access_key, secret):
    context = SigningContext(
        credentials=Credentials(access_key, secret),
        region="us-east-1",
        timestamp=datetime(2015, 8, 30, tzinfo=timezone.utc),
    )
    with pytest.raises(CredentialError) as exc_info:
        sign("GET", URL, HEADERS, "", context)
    assert exc_info.value.error == "AWS credentials not configured"


def test_now_truncates_to_utc_seconds():
    moment = datetime(2015, 8, 30, 14, 36, 0, 123456, tzinfo=timezone(timedelta(hours=2)))
    context = SigningContext.now(Credentials("AKIDEXAMPLE", SECRET), "eu-west-1", clock=moment)
    assert context.amz_date == "20150830T123600Z"
    assert context.service == "sns"


def test_secret_not_in_repr():
    assert SECRET not in repr(Credentials("AKIDEXAMPLE", SECRET))
