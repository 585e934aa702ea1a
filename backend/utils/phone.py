import re
from typing import Optional


def normalize_mobile(phone: Optional[str]) -> Optional[str]:
    """
    Normalize a Kenyan mobile number to 254XXXXXXXXX for the SMS API.

    "0712345678" -> "254712345678", "712345678" -> "254712345678",
    "+254 712 345 678" -> "254712345678". Anything shorter than nine digits
    returns None.
    """
    if not phone or not phone.strip():
        return None
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 9 and digits.startswith("7"):
        return f"254{digits}"
    if len(digits) == 10 and digits.startswith("0"):
        return f"254{digits[1:]}"
    if len(digits) == 12 and digits.startswith("254"):
        return digits
    if len(digits) >= 9:
        return digits if digits.startswith("254") else f"254{digits[-9:]}"
    return None


def first_valid_mobile(*phones: Optional[str]) -> Optional[str]:
    """Return the first number that normalizes, e.g. primary then alternate phone."""
    for phone in phones:
        mobile = normalize_mobile(phone)
        if mobile:
            return mobile
    return None
