"""
Conversion of Pydantic/FastAPI validation errors into the API's
``details`` list.

FastAPI collects every violation across path, query and body before the
handler runs; each one becomes ``{"path": "body.email", "message": "..."}``.
"""

from typing import Any, Dict, Iterable, List


def _message(error: Dict[str, Any]) -> str:
    # ValueErrors raised by our own validators carry the text we want verbatim;
    # pydantic prefixes it with "Value error, " in ``msg``.
    if error.get("type") == "value_error":
        ctx = error.get("ctx") or {}
        if "error" in ctx:
            return str(ctx["error"])
    return str(error.get("msg", "Invalid value"))


def format_validation_errors(errors: Iterable[Dict[str, Any]]) -> List[Dict[str, str]]:
    return [
        {
            "path": ".".join(str(part) for part in error.get("loc", ())),
            "message": _message(error),
        }
        for error in errors
    ]
