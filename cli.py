from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from sms_verify.core.config import DispatchOptions, load_credentials, load_dispatch_options
from sms_verify.core.orchestrator import PhoneVerifier, build_classifier, build_normalizer, generate_code
from sms_verify.utils.logger import setup_logger


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="SMS verification CLI (AWS SNS)")
    parser.add_argument("--config", default="config/sms_config.yaml", help="Dispatch config YAML path")
    parser.add_argument("--log-level", default=None, help="Logging level (default: LOG_LEVEL or INFO)")
    sub = parser.add_subparsers(dest="command", required=True)

    send = sub.add_parser("send", help="Send one verification code")
    send.add_argument("--phone", required=True, help="Destination phone number")
    send.add_argument("--code", default=None, help="Code to send (generated when omitted)")
    send.add_argument("--block-voip", action="store_true", help="Reject VoIP numbers before sending")
    send.add_argument("--voip-method", choices=["api", "libphonenumber"], default=None)
    send.add_argument("--normalizer", choices=["basic", "libphonenumber"], default=None)
    send.add_argument("--sender-id", default=None, help="Sender ID (max 11 characters)")

    screen = sub.add_parser("screen", help="Normalize, validate and VoIP-check a CSV of numbers")
    screen.add_argument("--input", required=True, help="Input CSV")
    screen.add_argument("--output", required=True, help="Output CSV path")
    screen.add_argument("--column", default="phone", help="Column holding phone numbers")
    screen.add_argument("--voip-method", choices=["api", "libphonenumber"], default="libphonenumber")
    screen.add_argument("--normalizer", choices=["basic", "libphonenumber"], default=None)
    return parser.parse_args(argv)


def screen_numbers(df: pd.DataFrame, column: str, options: DispatchOptions) -> pd.DataFrame:
    """Add PHONE_NORMALIZED, PHONE_VALID, IS_VOIP and VOIP_RULE columns.

    Invalid numbers are not sent to the classifier.
    """
    if column not in df.columns:
        raise KeyError(f"Column '{column}' not found in input")

    normalizer = build_normalizer(options)
    classifier = build_classifier(options)

    rows: List[Dict[str, Any]] = []
    for raw in df[column].tolist():
        text = "" if pd.isna(raw) else str(raw).strip()
        normalized = normalizer.normalize(text)
        valid = normalizer.is_valid(normalized)
        if valid:
            verdict = classifier.classify(normalized)
            is_voip, rule = verdict.is_voip, verdict.rule
        else:
            is_voip, rule = None, "invalid_number"
        rows.append({"PHONE_NORMALIZED": normalized, "PHONE_VALID": valid, "IS_VOIP": is_voip, "VOIP_RULE": rule})

    result = df.copy()
    screened = pd.DataFrame(rows, index=df.index)
    for name in screened.columns:
        result[name] = screened[name]
    return result


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logger = setup_logger(log_level=args.log_level)
    options = load_dispatch_options(args.config).override(
        voip_detection_method=args.voip_method,
        normalizer=args.normalizer,
    )

    if args.command == "send":
        options = options.override(block_voip=args.block_voip or None, sender_id=args.sender_id)
        verifier = PhoneVerifier(options=options, credentials=load_credentials())
        code = args.code or generate_code(options.code_length)
        result = verifier.verify(args.phone, code)
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        return 0 if result.success else 1

    input_path = Path(args.input)
    output_path = Path(args.output)
    df = pd.read_csv(input_path, dtype=str)
    logger.info(f"Screening {len(df)} numbers from {input_path}")
    screened = screen_numbers(df, args.column, options)
    screened.to_csv(output_path, index=False)

    voip_count = int(screened["IS_VOIP"].fillna(False).astype(bool).sum())
    invalid_count = int((~screened["PHONE_VALID"]).sum())
    logger.info(f"Screening complete: {voip_count} VoIP, {invalid_count} invalid")
    return 0


if __name__ == "__main__":
    sys.exit(main())
