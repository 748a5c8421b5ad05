"""
Utility functions for SecureLink.
"""

import base64
import binascii
import hmac


def b64encode(data: bytes) -> str:
    """
    Base64 encode bytes to string.

    Args:
        data: Bytes to encode

    Returns:
        Base64-encoded string
    """
    return base64.b64encode(data).decode('ascii')


def b64decode(data: str) -> bytes:
    """
    Strictly Base64 decode a string to bytes.

    Characters outside the Base64 alphabet are rejected instead of being
    silently discarded.

    Args:
        data: Base64-encoded string

    Returns:
        Decoded bytes

    Raises:
        ValueError: If data is not valid Base64
    """
    try:
        return base64.b64decode(data.encode('ascii'), validate=True)
    except (UnicodeEncodeError, binascii.Error) as e:
        raise ValueError(f"Invalid Base64: {e}") from e


def constant_time_compare(a: bytes, b: bytes) -> bool:
    """
    Constant-time comparison to prevent timing attacks.

    Args:
        a: First bytes object
        b: Second bytes object

    Returns:
        True if equal, False otherwise
    """
    return hmac.compare_digest(bytes(a), bytes(b))


def zeroize(buf) -> None:
    """Overwrite a bytearray in place. Other types are left alone."""
    if isinstance(buf, bytearray):
        for i in range(len(buf)):
            buf[i] = 0
