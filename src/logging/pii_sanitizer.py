"""PII sanitizer: masks personal data in log output.

Masks employee emails and credential fragments (password=..., token=...)
in stdout logs. Entity ids are left intact for tracing.
"""

from __future__ import annotations

import re

# Email pattern
_EMAIL_RE = re.compile(
    r"\b([a-zA-Z0-9._%+-])([a-zA-Z0-9._%+-]*)@([a-zA-Z0-9.-]+)\.([a-zA-Z]{2,})\b"
)

# key=value / key: value credentials
_SECRET_RE = re.compile(
    r"\b(password|old_password|new_password|token|jwt)(\s*[=:]\s*)(\S+)",
    re.IGNORECASE,
)


def sanitize_email(text: str) -> str:
    """Mask emails: jane@example.com → j***@***.com."""

    def _mask(m: re.Match[str]) -> str:
        return f"{m.group(1)}***@***.{m.group(4)}"

    return _EMAIL_RE.sub(_mask, text)


def sanitize_secrets(text: str) -> str:
    """Mask credential values: password=hunter2 → password=***."""

    def _mask(m: re.Match[str]) -> str:
        return f"{m.group(1)}{m.group(2)}***"

    return _SECRET_RE.sub(_mask, text)


def sanitize_pii(text: str) -> str:
    """Mask credentials first, then email addresses."""
    text = sanitize_secrets(text)
    text = sanitize_email(text)
    return text
