"""Sensitive data redaction for stored webhook bodies."""

import re

_PATTERNS = [
    re.compile(r"AKIA[0-9A-Z]{16}"),
    re.compile(r"(?i)bearer\s+[A-Za-z0-9\-._~+/]+=*"),
    re.compile(r"(?i)(password|passwd|secret|token|api[_-]?key)\s*[=:]\s*[^\s,;&]+"),
    re.compile(r"(?<=://)[^/\s:@]+:[^/\s@]+(?=@)"),
    # long opaque blobs; 40+ so md5/sha1-sized fingerprints survive
    re.compile(r"\b[A-Za-z0-9+/]{40,}={0,2}(?![A-Za-z0-9+/])"),
]

_SENSITIVE_KEYS = {"password", "passwd", "secret", "token", "api_key", "apikey", "authorization"}


def redact_text(text: str) -> str:
    """Redact likely secrets in arbitrary text."""

    redacted = text
    for pattern in _PATTERNS:
        redacted = pattern.sub("[REDACTED]", redacted)
    return redacted


def redact_object(value):
    """Recursively redact strings within lists/dicts, masking sensitive keys outright."""

    if isinstance(value, str):
        return redact_text(value)
    if isinstance(value, list):
        return [redact_object(item) for item in value]
    if isinstance(value, dict):
        return {
            k: "[REDACTED]" if str(k).lower() in _SENSITIVE_KEYS else redact_object(v)
            for k, v in value.items()
        }
    return value
