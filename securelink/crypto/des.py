"""
DES Encryption/Decryption with PKCS#5 Padding

This module implements DES in ECB mode with PKCS#5 padding and derives the
DES key as the first 8 bytes of SHA-1 over the DH shared secret.
ECB is kept for wire compatibility with existing DES/ECB/PKCS5Padding peers
(not recommended for production! see aead.py).

Single DES is driven through TripleDES keyed K1 = K2 = K3 (the 8-byte key
repeated three times), which reduces EDE to one DES pass.
"""

import hashlib
from cryptography.hazmat.decrepit.ciphers.algorithms import TripleDES
from cryptography.hazmat.primitives.ciphers import Cipher, modes

from ..common.exceptions import DecryptionError, EncryptionError
from ..common.utils import b64encode, b64decode


BLOCK_SIZE = 8
KEY_SIZE = 8


def pkcs5_pad(data: bytes, block_size: int = BLOCK_SIZE) -> bytes:
    """
    Apply PKCS#5 padding to data.

    Args:
        data: Data to pad
        block_size: Block size in bytes (default: 8 for DES)

    Returns:
        Padded data
    """
    padding_length = block_size - (len(data) % block_size)
    padding = bytes([padding_length] * padding_length)
    return data + padding


def pkcs5_unpad(data: bytes, block_size: int = BLOCK_SIZE) -> bytes:
    """
    Remove PKCS#5 padding from data.

    Args:
        data: Padded data
        block_size: Block size in bytes

    Returns:
        Unpadded data

    Raises:
        ValueError: If padding is invalid
    """
    if not data or len(data) % block_size:
        raise ValueError(f"Padded data must be a non-empty multiple of {block_size} bytes")

    padding_length = data[-1]

    if padding_length < 1 or padding_length > block_size:
        raise ValueError(f"Invalid padding length: {padding_length}")

    # Verify all padding bytes are correct
    if data[-padding_length:] != bytes([padding_length] * padding_length):
        raise ValueError("Invalid PKCS#5 padding")

    return data[:-padding_length]


def derive_des_key(shared_secret: bytes) -> bytes:
    """
    Derive a DES key from the DH shared secret.

    The key is derived as:
        K = Trunc_8(SHA1(K_s))

    Args:
        shared_secret: Raw DH shared secret

    Returns:
        8-byte DES key
    """
    return hashlib.sha1(bytes(shared_secret)).digest()[:KEY_SIZE]


def _cipher(key: bytes) -> Cipher:
    return Cipher(TripleDES(bytes(key) * 3), modes.ECB())


def encrypt(plaintext: bytes, key: bytes) -> str:
    """
    Encrypt plaintext using DES ECB mode with PKCS#5 padding.

    Args:
        plaintext: Bytes to encrypt
        key: 8-byte DES key

    Returns:
        Base64-encoded ciphertext

    Raises:
        EncryptionError: If key length is not 8 bytes
    """
    if len(key) != KEY_SIZE:
        raise EncryptionError(f"DES requires {KEY_SIZE}-byte key, got {len(key)} bytes")

    encryptor = _cipher(key).encryptor()
    ciphertext = encryptor.update(pkcs5_pad(plaintext)) + encryptor.finalize()

    return b64encode(ciphertext)


def decrypt(ciphertext_b64: str, key: bytes) -> bytes:
    """
    Decrypt base64-encoded ciphertext using DES ECB mode.

    ECB carries no integrity check. With a wrong key roughly 1 in 256
    attempts still ends in valid padding and returns garbage bytes
    instead of raising; use the aes-gcm suite where that matters.

    Args:
        ciphertext_b64: Base64-encoded ciphertext
        key: 8-byte DES key

    Returns:
        Decrypted plaintext bytes

    Raises:
        DecryptionError: If key length is not 8 bytes or decryption fails
    """
    if len(key) != KEY_SIZE:
        raise DecryptionError(f"DES requires {KEY_SIZE}-byte key, got {len(key)} bytes")

    try:
        ciphertext = b64decode(ciphertext_b64.strip())
        if not ciphertext or len(ciphertext) % BLOCK_SIZE:
            raise ValueError(f"Ciphertext length {len(ciphertext)} is not a multiple of {BLOCK_SIZE}")

        decryptor = _cipher(key).decryptor()
        padded_plaintext = decryptor.update(ciphertext) + decryptor.finalize()

        return pkcs5_unpad(padded_plaintext)

    except ValueError as e:
        raise DecryptionError(f"Decryption failed: {e}") from e


class DESCipher:
    """Reference session cipher suite: SHA-1/8 key, DES/ECB/PKCS5Padding."""

    name = "des-ecb"
    key_size = KEY_SIZE

    def derive_key(self, shared_secret: bytes) -> bytes:
        return derive_des_key(shared_secret)

    def encrypt(self, plaintext: bytes, key: bytes) -> str:
        return encrypt(plaintext, key)

    def decrypt(self, ciphertext: str, key: bytes) -> bytes:
        return decrypt(ciphertext, key)


# Test function for development
if __name__ == "__main__":
    # Test DES encryption/decryption
    test_key = derive_des_key(b'shared secret')
    test_message = "Hello, SecureLink!".encode('utf-8')

    print(f"Original: {test_message}")

    encrypted = encrypt(test_message, test_key)
    print(f"Encrypted (base64): {encrypted}")

    decrypted = decrypt(encrypted, test_key)
    print(f"Decrypted: {decrypted}")

    assert decrypted == test_message, "Encryption/Decryption test failed!"
    print("\n[✓] DES encryption/decryption test passed!")
