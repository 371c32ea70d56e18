"""
Input sanitization for contact submissions.
Returns trimmed copies of the allowed fields so values are safe to place in
mail headers and log lines.
"""
import re
from typing import Any, Dict

CONTACT_FIELDS = ("name", "email", "message")

# Control characters other than TAB and LF
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b-\x1f\x7f]")
_LINE_BREAKS = re.compile(r"[\r\n]")


def _coerce(value: Any) -> str:
    if value is None or isinstance(value, (dict, list, tuple, set)):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def sanitize_line(value: Any) -> str:
    """Collapse line breaks to spaces, drop control characters and trim."""
    text = _LINE_BREAKS.sub(" ", _coerce(value))
    return _CONTROL_CHARS.sub("", text).replace("\t", " ").strip()


def sanitize_text(value: Any) -> str:
    """Drop carriage returns and control characters but keep line feeds."""
    text = _coerce(value).replace("\r", "")
    return _CONTROL_CHARS.sub("", text).strip()


def sanitize_input(raw: Any) -> Dict[str, str]:
    """
    Return a sanitized copy of the contact fields.

    Args:
        raw: Parsed request body. Anything that is not a mapping is treated as empty.

    Returns:
        Dict with exactly the keys name, email and message
    """
    data = raw if isinstance(raw, dict) else {}
    return {
        "name": sanitize_line(data.get("name")),
        "email": sanitize_line(data.get("email")),
        "message": sanitize_text(data.get("message")),
    }
