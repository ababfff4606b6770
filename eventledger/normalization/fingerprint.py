"""Deterministic dedup fingerprints for canonical events."""

import hashlib
import json

FINGERPRINT_LENGTH = 16


def fingerprint_content(client_id: str, metric: str, amount: float, timestamp: str) -> str:
    """Hash the semantic content of an event.

    Only the calendar date of ``timestamp`` participates, so the same event
    re-sent later on the same day (or retried) maps to the same fingerprint.
    """
    content = {
        "client_id": client_id,
        "metric": metric,
        "amount": amount + 0.0,  # -0.0 and 0.0 hash alike
        "date": timestamp.split("T", 1)[0],
    }
    canonical = json.dumps(content, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]
