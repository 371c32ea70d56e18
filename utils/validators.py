"""
Schema validation for contact submissions.
Collects every field error in one pass instead of failing on the first.
"""
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from models.contact import ContactSubmission, ValidationIssue
from utils.sanitizer import CONTACT_FIELDS

FIELD_LABELS = {
    "name": "Name",
    "email": "Email",
    "message": "Message",
}


def _issue_message(field: str, error: Dict[str, Any]) -> str:
    label = FIELD_LABELS.get(field, field)
    error_type = error.get("type", "")
    ctx = error.get("ctx") or {}

    if error_type == "missing":
        return f"{label} is required"
    if error_type == "string_too_short":
        if ctx.get("min_length") == 1:
            return f"{label} must not be empty"
        return f"{label} must be at least {ctx.get('min_length')} characters"
    if error_type == "string_too_long":
        return f"{label} must be at most {ctx.get('max_length')} characters"
    if field == "email":
        return "Email must be a valid email address"
    return f"{label}: {error.get('msg', 'invalid value')}"


def validate_submission(data: Dict[str, Any]) -> Tuple[Optional[ContactSubmission], List[ValidationIssue]]:
    """
    Validate a sanitized submission.

    Args:
        data: Output of sanitize_input; unknown keys are ignored

    Returns:
        (submission, []) when valid, otherwise (None, issues) with one issue per failing field
    """
    payload = {field: data.get(field) for field in CONTACT_FIELDS if field in data}

    try:
        return ContactSubmission(**payload), []
    except ValidationError as exc:
        issues = []
        for error in exc.errors():
            path = [str(loc) for loc in error["loc"]]
            field = path[0] if path else ""
            issues.append(ValidationIssue(message=_issue_message(field, error), path=path))
        return None, issues
