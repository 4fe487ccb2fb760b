"""
suffixbot logging utilities.

All loggers hang off the ``suffixbot`` package logger; HTTP traffic goes to
``suffixbot.http`` at DEBUG. GitHub tokens and PowerDNS-Admin API keys are
masked before anything reaches a handler.
"""

import logging
import re
from typing import Any

_root_logger = logging.getLogger("suffixbot")
_http_logger = logging.getLogger("suffixbot.http")

_DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_REDACTED = "[REDACTED]"

# (pattern, replacement) pairs applied in order by mask_sensitive_data
_SENSITIVE_PATTERNS = [
    # "Bearer ghp_..." / "token ghs_..."
    (re.compile(r"(Bearer|token)\s+[A-Za-z0-9_\-\.=]{8,}", re.IGNORECASE), rf"\1 {_REDACTED}"),
    (re.compile(r"\bgh[pousr]_[A-Za-z0-9]{20,}\b"), "[GITHUB_TOKEN_REDACTED]"),
    (re.compile(r"\bgithub_pat_[A-Za-z0-9_]{20,}\b"), "[GITHUB_TOKEN_REDACTED]"),
    # key=value and "key": "value"
    (
        re.compile(
            r"(secret|token|password|api_key|x-api-key)['\"]?\s*[:=]\s*['\"][^'\"]+['\"]",
            re.IGNORECASE,
        ),
        rf"\1: {_REDACTED}",
    ),
]

_DEFAULT_SENSITIVE_KEYS = frozenset(
    {"authorization", "x-api-key", "api_key", "token", "secret", "password"}
)


def configure_logging(
    level: int = logging.INFO,
    http_level: int | None = None,
    handler: logging.Handler | None = None,
    format_string: str | None = None,
) -> None:
    """
    Attach a handler to the package logger and set levels.

    Args:
        level: Level for every suffixbot logger
        http_level: Separate level for request/response logging (default: ``level``)
        handler: Destination (default: stderr)
        format_string: Record format (default: time, logger, level, message)

    Example:
        ```python
        import logging
        from suffixbot.logging import configure_logging

        # Show GitHub/PowerDNS-Admin traffic while keeping the rest at INFO
        configure_logging(level=logging.INFO, http_level=logging.DEBUG)
        ```
    """
    target = handler or logging.StreamHandler()
    target.setFormatter(logging.Formatter(format_string or _DEFAULT_FORMAT))

    _root_logger.addHandler(target)
    _root_logger.setLevel(level)
    _http_logger.setLevel(level if http_level is None else http_level)


def level_from_name(name: str | None, default: int = logging.INFO) -> int:
    """Map a level name such as ``"debug"`` (LOG_LEVEL) to a logging level."""
    if not name:
        return default
    value = logging.getLevelName(name.strip().upper())
    return value if isinstance(value, int) else default


def get_logger(name: str | None = None) -> logging.Logger:
    """``suffixbot.<name>``, or the package logger when ``name`` is None."""
    return _root_logger if name is None else logging.getLogger(f"suffixbot.{name}")


def mask_sensitive_data(text: str) -> str:
    """Replace tokens and API keys found in free text."""
    for pattern, replacement in _SENSITIVE_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def _is_sensitive(key: Any, sensitive_keys: frozenset[str] | set[str]) -> bool:
    lowered = str(key).lower()
    return any(marker in lowered for marker in sensitive_keys)


def safe_log_dict(
    data: dict[str, Any], sensitive_keys: set[str] | frozenset[str] | None = None
) -> dict[str, Any]:
    """
    Copy of ``data`` with credential values replaced by ``"[REDACTED]"``.

    A key is sensitive when it contains any of ``sensitive_keys``
    (case-insensitive), so ``X-API-Key`` and ``github_token`` both match.
    Nested dicts, including dicts inside lists, are redacted too.
    """
    keys = _DEFAULT_SENSITIVE_KEYS if sensitive_keys is None else sensitive_keys

    def redact(value: Any) -> Any:
        if isinstance(value, dict):
            return safe_log_dict(value, keys)
        if isinstance(value, list):
            return [redact(item) if isinstance(item, dict) else item for item in value]
        return value

    return {
        key: _REDACTED if _is_sensitive(key, keys) else redact(value)
        for key, value in data.items()
    }


def _debug_http(parts: list[str], body: dict[str, Any] | None) -> None:
    if body:
        parts.append(f"body={safe_log_dict(body)}")
    _http_logger.debug(mask_sensitive_data(" | ".join(parts)))


def log_http_request(
    method: str,
    url: str,
    headers: dict[str, str] | None = None,
    body: dict[str, Any] | None = None,
) -> None:
    """DEBUG-log an outgoing request with headers and body redacted."""
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return
    parts = [f"{method} {url}"]
    if headers:
        parts.append(f"headers={safe_log_dict(headers)}")
    _debug_http(parts, body)


def log_http_response(
    status_code: int,
    url: str,
    body: dict[str, Any] | None = None,
    elapsed_ms: float | None = None,
) -> None:
    """DEBUG-log a response with its body redacted."""
    if not _http_logger.isEnabledFor(logging.DEBUG):
        return
    parts = [f"Response {status_code} from {url}"]
    if elapsed_ms is not None:
        parts.append(f"elapsed={elapsed_ms:.2f}ms")
    _debug_http(parts, body)
