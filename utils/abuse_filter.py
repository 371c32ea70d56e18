from typing import Any, Mapping

from constants import DEFAULT_HONEYPOT_FIELD


def is_honeypot_triggered(body: Any, field_name: str = DEFAULT_HONEYPOT_FIELD) -> bool:
    """
    Check the honeypot field for bot detection.

    Humans never see the field, so any non-blank value means an automated sender.

    Args:
        body: Raw request body
        field_name: Name of the hidden form field

    Returns:
        True if the field is present and null or non-empty after trimming
    """
    if not isinstance(body, Mapping) or field_name not in body:
        return False

    # null counts as filled
    value = body[field_name]
    if value is None:
        return True
    return str(value).strip() != ""
