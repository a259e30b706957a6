"""
Australian compliance validators.

Pure functions: Working with Children Check numbers per state, ABNs,
mobile numbers and the display status of a dated clearance.
"""

import math
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import ensure_utc, utc_now

EXPIRY_WARNING_DAYS = 30

WWCC_PATTERNS = {
    "VIC": re.compile(r"^\d{8}[A-Za-z]$"),
    "NSW": re.compile(r"^WWC\d{7}[EV]$"),
    "QLD": re.compile(r"^\d{5,7}/\d{1,2}$"),
    "WA": re.compile(r"^\d{6,7}$"),
    "SA": re.compile(r"^\d{7}$"),
    "TAS": re.compile(r"^\d{8}$"),
    "NT": re.compile(r"^\d{6,8}$"),
    "ACT": re.compile(r"^\d{8}$"),
}

WWCC_FORMAT_MESSAGES = {
    "VIC": "Victoria WWCC must be 8 digits followed by a letter (e.g., 12345678A)",
    "NSW": "NSW WWCC must start with WWC, followed by 7 digits and E or V (e.g., WWC1234567E)",
    "QLD": "Queensland Blue Card must be 5-7 digits, slash, then 1-2 digits (e.g., 12345/1)",
    "WA": "Western Australia WWCC must be 6-7 digits (e.g., 123456)",
    "SA": "South Australia WWCC must be 7 digits (e.g., 1234567)",
    "TAS": "Tasmania WWCC must be 8 digits (e.g., 12345678)",
    "NT": "Northern Territory WWCC must be 6-8 digits (e.g., 123456)",
    "ACT": "Australian Capital Territory WWCC must be 8 digits (e.g., 12345678)",
}

ABN_WEIGHTS = [10, 1, 3, 5, 7, 9, 11, 13, 15, 17, 19]
MOBILE_PATTERN = re.compile(r"^(\+?61|0)4\d{8}$")


@dataclass
class ValidationResult:
    valid: bool
    message: Optional[str] = None


@dataclass
class ComplianceStatus:
    status: str
    label: str


def normalize_wwcc(number: str) -> str:
    return re.sub(r"[\s-]", "", number).upper()


def validate_wwcc(number: str, state: str) -> ValidationResult:
    state = (state or "").strip().upper()
    pattern = WWCC_PATTERNS.get(state)
    if pattern is None:
        return ValidationResult(
            False,
            f"Invalid state/territory: {state}. Must be one of: {', '.join(WWCC_PATTERNS)}",
        )
    if not pattern.match(normalize_wwcc(number)):
        return ValidationResult(False, WWCC_FORMAT_MESSAGES[state])
    return ValidationResult(True)


def format_wwcc(number: str, state: str) -> str:
    """Display form: ``1234 5678 A`` (VIC), ``WWC 1234567 E`` (NSW)."""
    state = (state or "").upper()
    clean = normalize_wwcc(number)
    if state == "VIC":
        return re.sub(r"^(\d{4})(\d{4})([A-Z])$", r"\1 \2 \3", clean)
    if state == "NSW":
        return re.sub(r"^(WWC)(\d{7})([EV])$", r"\1 \2 \3", clean)
    if state == "QLD":
        return clean
    return " ".join(clean[i : i + 4] for i in range(0, len(clean), 4))


def validate_abn(abn: str) -> ValidationResult:
    clean = re.sub(r"\s+", "", abn or "")
    if not re.fullmatch(r"\d{11}", clean):
        return ValidationResult(False, "ABN must be 11 digits (e.g., 12 345 678 901)")
    digits = [int(c) for c in clean]
    digits[0] -= 1
    if sum(d * w for d, w in zip(digits, ABN_WEIGHTS)) % 89 != 0:
        return ValidationResult(False, "Invalid ABN checksum")
    return ValidationResult(True)


def validate_mobile(phone: str) -> ValidationResult:
    if not MOBILE_PATTERN.match(re.sub(r"\s+", "", phone or "")):
        return ValidationResult(
            False,
            "Australian mobile must start with 04 and be 10 digits (e.g., 0412 345 678)",
        )
    return ValidationResult(True)


def days_until_expiry(expiry: datetime, now: Optional[datetime] = None) -> int:
    now = now or utc_now()
    return math.ceil((ensure_utc(expiry) - now).total_seconds() / 86400)


def is_expired(expiry: datetime, now: Optional[datetime] = None) -> bool:
    return (now or utc_now()) > ensure_utc(expiry)


def is_expiring_soon(
    expiry: datetime, threshold: int = EXPIRY_WARNING_DAYS, now: Optional[datetime] = None
) -> bool:
    return 0 < days_until_expiry(expiry, now) <= threshold


def compliance_status(
    expiry: Optional[datetime], verified: bool, now: Optional[datetime] = None
) -> ComplianceStatus:
    if expiry is None:
        return ComplianceStatus("pending", "Pending Verification")
    if not verified:
        return ComplianceStatus("pending", "Awaiting Verification")
    if is_expired(expiry, now):
        return ComplianceStatus("expired", "Expired")
    if is_expiring_soon(expiry, EXPIRY_WARNING_DAYS, now):
        return ComplianceStatus("expiring", "Expiring Soon")
    return ComplianceStatus("verified", "Verified")
