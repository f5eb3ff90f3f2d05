# loyalty_ledger/core/security.py
import hmac


def normalize_mobile(raw: str) -> str:
    """Strips separators; keeps a leading + for international numbers."""
    s = (raw or "").strip()
    plus = s.startswith("+")
    digits = "".join(ch for ch in s if ch.isdigit())
    if not digits:
        return ""
    return ("+" + digits) if plus else digits


def is_valid_pin(pin: str) -> bool:
    p = pin or ""
    return len(p) == 4 and p.isdigit()


def pin_matches(pin: str, stored: str) -> bool:
    return hmac.compare_digest((pin or "").encode("utf-8"), (stored or "").encode("utf-8"))


MIN_MOBILE_DIGITS = 10


def is_valid_mobile(mobile: str) -> bool:
    return len((mobile or "").lstrip("+")) >= MIN_MOBILE_DIGITS
