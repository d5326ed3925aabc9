# src/manifest/fingerprint.py — v1
"""Constructor-argument fingerprinting for manifest entries."""

from __future__ import annotations

import hashlib
import json
from typing import Any, Sequence


def compute_args_fingerprint(constructor_args: Sequence[Any]) -> str:
    """SHA-256 over the canonical JSON encoding of the constructor args.

    Key order inside mappings does not affect the result.
    """
    canonical = json.dumps(
        list(constructor_args), sort_keys=True, separators=(",", ":"), default=str
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
