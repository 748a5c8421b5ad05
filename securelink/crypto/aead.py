"""
AES-128-GCM session cipher.

Drop-in alternative to the DES/ECB suite: same handshake, same Base64
ciphertext frame, but authenticated. Both peers must be configured with
the same suite; nothing on the wire negotiates it.

Frame payload: Base64(nonce (12 bytes) | ciphertext | tag (16 bytes))
"""

import hashlib
import os
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..common.exceptions import DecryptionError, EncryptionError
from ..common.utils import b64encode, b64decode


KEY_SIZE = 16       # AES-128
NONCE_SIZE = 12     # 96 bits for GCM
TAG_SIZE = 16


class AESGCMCipher:
    """SHA-256/16 key, AES-128-GCM with a random nonce per message."""

    name = "aes-gcm"
    key_size = KEY_SIZE

    def derive_key(self, shared_secret: bytes) -> bytes:
        """K = Trunc_16(SHA256(K_s))"""
        return hashlib.sha256(bytes(shared_secret)).digest()[:KEY_SIZE]

    def encrypt(self, plaintext: bytes, key: bytes) -> str:
        if len(key) != KEY_SIZE:
            raise EncryptionError(f"AES-128 requires {KEY_SIZE}-byte key, got {len(key)} bytes")

        nonce = os.urandom(NONCE_SIZE)
        ciphertext = AESGCM(bytes(key)).encrypt(nonce, plaintext, None)
        return b64encode(nonce + ciphertext)

    def decrypt(self, ciphertext: str, key: bytes) -> bytes:
        if len(key) != KEY_SIZE:
            raise DecryptionError(f"AES-128 requires {KEY_SIZE}-byte key, got {len(key)} bytes")

        try:
            data = b64decode(ciphertext.strip())
        except ValueError as e:
            raise DecryptionError(f"Decryption failed: {e}") from e

        if len(data) < NONCE_SIZE + TAG_SIZE:
            raise DecryptionError("Ciphertext too short")

        try:
            return AESGCM(bytes(key)).decrypt(data[:NONCE_SIZE], data[NONCE_SIZE:], None)
        except InvalidTag as e:
            raise DecryptionError("Decryption failed: authentication tag mismatch") from e
