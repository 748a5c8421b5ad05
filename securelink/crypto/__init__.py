"""
Cryptographic primitives for SecureLink.

This package provides implementations of:
- Diffie-Hellman key exchange over built-in MODP groups
- DES/ECB/PKCS#5 session cipher (reference wire format)
- AES-128-GCM session cipher (authenticated alternative)
"""

from .dh import KeyExchangeEngine, KeyPair, generate_params
from .des import DESCipher
from .aead import AESGCMCipher

CIPHER_SUITES = {
    DESCipher.name: DESCipher,
    AESGCMCipher.name: AESGCMCipher,
}

DEFAULT_CIPHER_SUITE = DESCipher.name


def get_cipher_suite(name: str = DEFAULT_CIPHER_SUITE):
    """
    Look up a session cipher suite by name.

    Raises:
        ValueError: If the suite is unknown
    """
    try:
        return CIPHER_SUITES[name.strip().lower()]()
    except KeyError:
        raise ValueError(
            f"Unknown cipher suite {name!r} (available: {sorted(CIPHER_SUITES)})"
        ) from None


__all__ = [
    'KeyExchangeEngine',
    'KeyPair',
    'generate_params',
    'DESCipher',
    'AESGCMCipher',
    'CIPHER_SUITES',
    'DEFAULT_CIPHER_SUITE',
    'get_cipher_suite',
]
