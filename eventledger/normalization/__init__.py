"""Normalization layer: raw events to canonical, fingerprinted events."""

from eventledger.normalization.events import DEFAULT_ALIASES, EventNormalizer, FieldAliases
from eventledger.normalization.fingerprint import fingerprint_content

__all__ = ["DEFAULT_ALIASES", "EventNormalizer", "FieldAliases", "fingerprint_content"]
