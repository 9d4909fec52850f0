"""
Input validation utilities
"""
import re
from datetime import date
from typing import Dict, Optional

from taskmaster.config import get_settings

settings = get_settings()

HEX_COLOR_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


class ValidationError(ValueError):
    """One or more invalid input fields, keyed by field name"""

    def __init__(self, errors: Dict[str, str]):
        self.errors = errors
        super().__init__("; ".join(f"{field}: {msg}" for field, msg in errors.items()))


def validate_title(title: Optional[str]) -> str:
    """Validate a task title is present and within the length limit"""
    if title is None or not title.strip():
        raise ValueError("Task title is required")
    if len(title) > settings.TITLE_MAX_LENGTH:
        raise ValueError(f"Title must be less than {settings.TITLE_MAX_LENGTH} characters")
    return title.strip()


def validate_description(description: Optional[str]) -> Optional[str]:
    if description and len(description) > settings.DESCRIPTION_MAX_LENGTH:
        raise ValueError(
            f"Description must be less than {settings.DESCRIPTION_MAX_LENGTH} characters"
        )
    return description


def validate_due_date(due_date: Optional[date], today: Optional[date] = None) -> Optional[date]:
    """Validate that a due date is not in the past"""
    if due_date is None:
        return None
    if due_date < (today or date.today()):
        raise ValueError("Due date cannot be in the past")
    return due_date


def validate_category_name(name: Optional[str]) -> str:
    if name is None or not name.strip():
        raise ValueError("Category name is required")
    if len(name) > settings.CATEGORY_NAME_MAX_LENGTH:
        raise ValueError(
            f"Category name must be less than {settings.CATEGORY_NAME_MAX_LENGTH} characters"
        )
    return name.strip()


def validate_color(color: str) -> str:
    """Validate a #RRGGBB hex color"""
    if not HEX_COLOR_RE.match(color):
        raise ValueError("Color must be a hex value like #3B82F6")
    return color


def _collect(checks) -> Dict[str, str]:
    errors = {}
    for field, check in checks:
        try:
            check()
        except ValueError as e:
            errors[field] = str(e)
    return errors


def task_input_errors(
    title: Optional[str] = None,
    description: Optional[str] = None,
    due_date: Optional[date] = None,
    *,
    partial: bool = False,
    today: Optional[date] = None,
) -> Dict[str, str]:
    """
    Per-field messages for a task form. With partial=True (updates) the
    title is only checked when given and past due dates are allowed.
    """
    checks = []
    if not partial or title is not None:
        checks.append(("title", lambda: validate_title(title)))
    checks.append(("description", lambda: validate_description(description)))
    if not partial:
        checks.append(("dueDate", lambda: validate_due_date(due_date, today)))
    return _collect(checks)


def category_input_errors(
    name: Optional[str] = None,
    color: Optional[str] = None,
    *,
    partial: bool = False,
) -> Dict[str, str]:
    checks = []
    if not partial or name is not None:
        checks.append(("name", lambda: validate_category_name(name)))
    if color is not None:
        checks.append(("color", lambda: validate_color(color)))
    return _collect(checks)
