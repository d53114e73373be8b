"""Message-content handling for logs and events.

Raw message text never reaches application logs or published events.
Use hash_text_for_audit() wherever a message needs to be correlated.
"""
import hashlib


def hash_text_for_audit(text: str) -> str:
    """Hash message text for audit trail without exposing content.

    Used to create a fingerprint of message content that can be
    matched against the original if needed for review.

    Args:
        text: Raw message text

    Returns:
        SHA-256 hash of the text
    """
    return hashlib.sha256(text.encode("utf-8")).hexdigest()
