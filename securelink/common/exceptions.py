"""
Custom exceptions for SecureLink.
"""


class SecureLinkException(Exception):
    """Base exception for SecureLink errors."""
    pass


class KeyGenerationError(SecureLinkException):
    """DH domain parameters or key generation unavailable."""
    pass


class AgreementError(SecureLinkException):
    """Peer public key malformed or incompatible with our group."""
    pass


class EncryptionError(SecureLinkException):
    """Encryption/decryption failed."""
    pass


class DecryptionError(EncryptionError):
    """Bad padding, wrong key or corrupted ciphertext."""
    pass


class ProtocolError(SecureLinkException):
    """Protocol violation detected (unexpected EOF, malformed frame)."""
    pass
