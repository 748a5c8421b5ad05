"""
Diffie-Hellman Key Exchange

Implements ephemeral finite-field DH over well-known safe-prime groups.
Public keys travel as DER X.509 SubjectPublicKeyInfo (PKCS#3 dhKeyAgreement),
which any X.509-aware DH implementation can decode.
"""

from dataclasses import dataclass
from typing import Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import dh

from ..common.exceptions import AgreementError, KeyGenerationError


# RFC 2409 - 1024-bit MODP Group (Oakley Group 2)
DH_PRIME_1024 = int(
    "FFFFFFFFFFFFFFFFC90FDAA22168C234C4C6628B80DC1CD1"
    "29024E088A67CC74020BBEA63B139B22514A08798E3404DD"
    "EF9519B3CD3A431B302B0A6DF25F14374FE1356D6D51C245"
    "E485B576625E7EC6F44C42E9A637ED6B0BFF5CB6F406B7ED"
    "EE386BFB5A899FA5AE9F24117C4B1FE649286651ECE65381"
    "FFFFFFFFFFFFFFFF", 16
)

# RFC 3526 - 2048-bit MODP Group (Group 14)
DH_PRIME_2048 = int(
    "FFFFFFFFFFFFFFFFC90FDAA22168C234C4C6628B80DC1CD1"
    "29024E088A67CC74020BBEA63B139B22514A08798E3404DD"
    "EF9519B3CD3A431B302B0A6DF25F14374FE1356D6D51C245"
    "E485B576625E7EC6F44C42E9A637ED6B0BFF5CB6F406B7ED"
    "EE386BFB5A899FA5AE9F24117C4B1FE649286651ECE45B3D"
    "C2007CB8A163BF0598DA48361C55D39A69163FA8FD24CF5F"
    "83655D23DCA3AD961C62F356208552BB9ED529077096966D"
    "670C354E4ABC9804F1746C08CA18217C32905E462E36CE3B"
    "E39E772C180E86039B2783A2EC07A28FB5C55DF06F4C52C9"
    "DE2BCBF6955817183995497CEA956AE515D2261898FA0510"
    "15728E5A8AACAA68FFFFFFFFFFFFFFFF", 16
)

DH_GENERATOR = 2

BUILTIN_GROUPS = {
    1024: DH_PRIME_1024,
    2048: DH_PRIME_2048,
}

SUPPORTED_GROUP_SIZES = frozenset(BUILTIN_GROUPS)
DEFAULT_KEY_SIZE = 1024

# Smallest peer group accepted
MIN_GROUP_SIZE = 1024


def same_group(a: dh.DHParameters, b: dh.DHParameters) -> bool:
    """True if both parameter sets share prime and generator."""
    ours, theirs = a.parameter_numbers(), b.parameter_numbers()
    return (ours.p, ours.g) == (theirs.p, theirs.g)


def generate_params(key_size: int = DEFAULT_KEY_SIZE) -> dh.DHParameters:
    """
    Build DH domain parameters for a built-in group.

    Args:
        key_size: Modulus size in bits (1024 or 2048)

    Returns:
        DH parameters object

    Raises:
        KeyGenerationError: If no group of that size is available
    """
    if key_size not in BUILTIN_GROUPS:
        raise KeyGenerationError(
            f"No built-in DH group of {key_size} bits "
            f"(supported: {sorted(SUPPORTED_GROUP_SIZES)})"
        )

    try:
        return dh.DHParameterNumbers(BUILTIN_GROUPS[key_size], DH_GENERATOR).parameters()
    except (ValueError, UnsupportedAlgorithm) as e:
        raise KeyGenerationError(f"DH parameters unavailable: {e}") from e


@dataclass
class KeyPair:
    """Ephemeral DH key pair. The private half never leaves the process."""
    private_key: dh.DHPrivateKey
    public_key: dh.DHPublicKey


class KeyExchangeEngine:
    """
    Generates ephemeral key pairs on a fixed group and combines them with
    peer public keys.
    """

    def __init__(self, key_size: int = DEFAULT_KEY_SIZE,
                 parameters: Optional[dh.DHParameters] = None):
        """
        Args:
            key_size: Built-in group size, ignored when parameters is given
            parameters: Explicit DH domain parameters

        Raises:
            KeyGenerationError: If the group is unavailable
        """
        self.parameters = parameters if parameters is not None else generate_params(key_size)
        self.key_size = self.parameters.parameter_numbers().p.bit_length()

    @classmethod
    def from_params_file(cls, path: str) -> 'KeyExchangeEngine':
        """
        Create an engine from PEM-encoded DH parameters.

        Raises:
            KeyGenerationError: If the file cannot be read or holds no DH parameters
        """
        try:
            with open(path, "rb") as f:
                parameters = serialization.load_pem_parameters(f.read())
        except (OSError, ValueError, UnsupportedAlgorithm) as e:
            raise KeyGenerationError(f"Cannot load DH parameters from {path}: {e}") from e

        if not isinstance(parameters, dh.DHParameters):
            raise KeyGenerationError(f"{path} does not contain DH parameters")

        return cls(parameters=parameters)

    def generate(self, parameters: Optional[dh.DHParameters] = None) -> KeyPair:
        """
        Generate a fresh key pair.

        Args:
            parameters: Group to generate on (default: the engine's group)

        Returns:
            New KeyPair

        Raises:
            KeyGenerationError: If key generation fails
        """
        params = parameters if parameters is not None else self.parameters
        try:
            private_key = params.generate_private_key()
        except (ValueError, UnsupportedAlgorithm) as e:
            raise KeyGenerationError(f"DH key generation failed: {e}") from e

        return KeyPair(private_key, private_key.public_key())

    @staticmethod
    def export_public(key_pair: KeyPair) -> bytes:
        """Encode the public half as DER SubjectPublicKeyInfo."""
        return key_pair.public_key.public_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PublicFormat.SubjectPublicKeyInfo
        )

    @staticmethod
    def load_public(data: bytes) -> dh.DHPublicKey:
        """
        Reconstruct a peer public key from its DER encoding.

        Args:
            data: DER SubjectPublicKeyInfo bytes

        Returns:
            DH public key

        Raises:
            AgreementError: If the bytes are not a DH public key
        """
        try:
            public_key = serialization.load_der_public_key(data)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise AgreementError(f"Malformed peer public key: {e}") from e

        if not isinstance(public_key, dh.DHPublicKey):
            raise AgreementError(
                f"Peer public key is {type(public_key).__name__}, expected a DH key"
            )

        bits = public_key.parameters().parameter_numbers().p.bit_length()
        if bits < MIN_GROUP_SIZE:
            raise AgreementError(f"Peer DH group is {bits} bits, minimum is {MIN_GROUP_SIZE}")

        return public_key

    @staticmethod
    def derive_shared_secret(private_key: dh.DHPrivateKey,
                             peer_public: dh.DHPublicKey) -> bytes:
        """
        Combine our private key with the peer's public key.

        The result is padded to the byte length of the prime, so it is
        bit-identical on both sides and across repeated calls.

        Args:
            private_key: Own private key
            peer_public: Peer's public key

        Returns:
            Raw shared secret

        Raises:
            AgreementError: If the groups differ or the peer value is invalid
        """
        if not same_group(private_key.parameters(), peer_public.parameters()):
            raise AgreementError("Peer public key uses incompatible DH parameters")

        try:
            return private_key.exchange(peer_public)
        except ValueError as e:
            raise AgreementError(f"DH agreement failed: {e}") from e


# Test function for development
if __name__ == "__main__":
    print("[*] Testing Diffie-Hellman Key Exchange")

    engine = KeyExchangeEngine()
    print(f"\n[1] Group: {engine.key_size} bits, g = {DH_GENERATOR}")

    alice = engine.generate()
    bob = engine.generate()

    alice_pub = engine.load_public(engine.export_public(alice))
    bob_pub = engine.load_public(engine.export_public(bob))
    print(f"\n[2] Encoded public key: {len(engine.export_public(alice))} bytes")

    alice_shared = engine.derive_shared_secret(alice.private_key, bob_pub)
    bob_shared = engine.derive_shared_secret(bob.private_key, alice_pub)

    print(f"\n[3] Shared secrets match: {alice_shared == bob_shared}")
    assert alice_shared == bob_shared, "Shared secrets don't match!"

    print("\n[✓] Diffie-Hellman key exchange test passed!")
