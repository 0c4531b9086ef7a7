"""Content fingerprint used as the translation cache validity token."""

import hashlib


def compute_content_hash(blocks_json: str, source_locale: str) -> str:
    """
    Fingerprint source content for cache validation.

    Hashes the raw serialized JSON, not a normalized form, so any byte
    change (whitespace included) produces a new fingerprint.

    Args:
        blocks_json: Block JSON exactly as stored.
        source_locale: Locale the content is written in.

    Returns:
        SHA-256 hex digest.
    """
    payload = f"{source_locale}::{blocks_json}".encode()
    return hashlib.sha256(payload).hexdigest()
