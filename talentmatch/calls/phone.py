# talentmatch/calls/phone.py
import re

from talentmatch.core.errors import ValidationFailedError

_STRIP = re.compile(r"[\s\-().]")
_E164 = re.compile(r"^\+\d{8,15}$")


def normalize_phone(raw: str | None) -> str:
    """'+1 (415) 555-0100' -> '+14155550100'; anything not E.164 is rejected."""
    phone = _STRIP.sub("", (raw or "").strip())
    if phone.startswith("00"):
        phone = "+" + phone[2:]
    if not _E164.match(phone):
        raise ValidationFailedError(f"Invalid phone number {raw!r}: expected E.164 such as +14155550100")
    return phone
