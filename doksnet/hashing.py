"""Content fingerprints used to detect drift in extracted partitions."""

from __future__ import annotations

import hashlib

# Hex digest length of SHA-256
FINGERPRINT_LENGTH = 64
SHORT_HASH_LENGTH = 8


def fingerprint(content: str) -> str:
    """Compute the SHA256 hash of a string's exact UTF-8 bytes.

    Nothing is normalized, so a whitespace or line-ending change produces a
    different fingerprint.

    Args:
        content: Text to hash

    Returns:
        Hex digest of hash
    """
    data = content.encode("utf-8", "surrogatepass")
    return hashlib.sha256(data).hexdigest()


def verify(content: str, expected: str) -> bool:
    """Return True if content still hashes to the expected fingerprint."""
    return fingerprint(content) == expected


def short_hash(value: str) -> str:
    """Abbreviate a fingerprint or mapping id for display."""
    return value[:SHORT_HASH_LENGTH]
