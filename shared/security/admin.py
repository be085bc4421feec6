"""
Admin-tier authorization for function calls.

Channel addresses arrive in several shapes for the same phone
("+94 77-123 4567", "0771234567", "94771234567@c.us"). Both sides are
normalized to digits in international form and then compared exactly;
substring matching would let short numbers match unrelated ones.
"""
import re
import secrets

_CHANNEL_SUFFIX = re.compile(r"@[\w.]+$")
_NON_DIGITS = re.compile(r"\D")


def normalize_address(address: str | None, country_code: str = "") -> str:
    if not address:
        return ""
    digits = _NON_DIGITS.sub("", _CHANNEL_SUFFIX.sub("", address.strip()))
    if country_code and digits.startswith("0"):
        digits = country_code + digits[1:]
    return digits


def is_admin(caller_address: str | None, admin_address: str | None, country_code: str = "") -> bool:
    caller = normalize_address(caller_address, country_code)
    admin = normalize_address(admin_address, country_code)
    # An unconfigured admin address grants nobody access
    if not caller or not admin:
        return False
    return secrets.compare_digest(caller, admin)
