import html
import re
from typing import Optional

NOTES_MAX_LENGTH = 2000


def sanitize_notes(value: Optional[str], max_length: int = NOTES_MAX_LENGTH) -> Optional[str]:
    """
    Escape HTML and strip control characters from free-text appointment notes.
    Returns None if input is None; empty strings clear the notes.

    Raises:
        ValueError: If input exceeds max_length
    """
    if value is None:
        return None

    value = str(value).strip()

    if len(value) > max_length:
        raise ValueError(f"Notes exceed maximum length of {max_length} characters")

    value = html.escape(value, quote=True)

    return re.sub(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]", "", value)


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalize a stored phone number to E.164 (+<digits>).

    Returns None when the value has no usable digits, so callers can treat the
    contact channel as unreachable instead of failing.
    """
    if not phone:
        return None

    digits = re.sub(r"\D", "", phone)

    # E.164 allows up to 15 digits; anything shorter than 8 is not dialable
    if len(digits) < 8 or len(digits) > 15:
        return None

    return f"+{digits}"
