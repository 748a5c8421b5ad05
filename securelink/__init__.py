"""
SecureLink

A line-based secure messaging handshake implementing:
- Ephemeral Diffie-Hellman key exchange
- SHA-1 derived DES session keys (AES-GCM optional)
- Single encrypted message per connection
- Shared secret re-derivation check
"""

__version__ = "1.0.0"
