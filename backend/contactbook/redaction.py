"""
Sensitive-field redaction for log payloads.

Any mapping key whose lowercased name contains one of SENSITIVE_KEY_PARTS is
replaced with REDACTED, at any depth. Lists are walked element by element.
The input is never mutated.
"""

from typing import Any

SENSITIVE_KEY_PARTS = ("password", "token", "authorization", "secret", "key")
REDACTED = "***REDACTED***"


def is_sensitive_key(key: Any) -> bool:
    lowered = str(key).lower()
    return any(part in lowered for part in SENSITIVE_KEY_PARTS)


def redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: REDACTED if is_sensitive_key(k) else redact(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact(item) for item in value]
    return value
