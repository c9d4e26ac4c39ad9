"""Hashing helpers."""

import hashlib
import json
from typing import Any


def canonical_json(value: Any) -> str:
    """Serialize value with sorted keys and no whitespace."""

    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


def content_fingerprint(value: Any) -> str:
    """Compute deterministic md5 fingerprint for a JSON-compatible value.

    Key order does not matter, so two byte-different but equivalent label
    sets collide on purpose.
    """

    return hashlib.md5(canonical_json(value).encode("utf-8")).hexdigest()
