"""
Unit tests for Diffie-Hellman key exchange.

Tests:
- Built-in groups and parameter files
- Public key export / load round trip
- Shared secret symmetry and determinism
- Rejection of malformed or incompatible peer keys
"""

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import dh, ec

from securelink.common.exceptions import AgreementError, KeyGenerationError
from securelink.crypto.dh import (
    DH_PRIME_1024, DH_PRIME_2048, KeyExchangeEngine, generate_params, same_group
)


# RFC 2409 - 768-bit MODP Group (Oakley Group 1), below the accepted minimum
DH_PRIME_768 = int(
    "FFFFFFFFFFFFFFFFC90FDAA22168C234C4C6628B80DC1CD1"
    "29024E088A67CC74020BBEA63B139B22514A08798E3404DD"
    "EF9519B3CD3A431B302B0A6DF25F14374FE1356D6D51C245"
    "E485B576625E7EC6F44C42E9A63A3620FFFFFFFFFFFFFFFF", 16
)


class TestParameters:
    """Tests for DH domain parameters."""

    def test_builtin_group_sizes(self):
        """Built-in primes have the advertised size."""
        assert DH_PRIME_1024.bit_length() == 1024
        assert DH_PRIME_2048.bit_length() == 2048

    def test_default_engine_is_1024_bits(self):
        engine = KeyExchangeEngine()
        assert engine.key_size == 1024
        assert engine.parameters.parameter_numbers().g == 2

    def test_unsupported_size_rejected(self):
        """Unknown group sizes fail with KeyGenerationError."""
        with pytest.raises(KeyGenerationError):
            generate_params(3072)
        with pytest.raises(KeyGenerationError):
            KeyExchangeEngine(key_size=512)

    def test_params_file_round_trip(self, tmp_path):
        """Parameters written as PEM load back into an equivalent engine."""
        path = tmp_path / "dh.pem"
        path.write_bytes(generate_params(2048).parameter_bytes(
            serialization.Encoding.PEM, serialization.ParameterFormat.PKCS3
        ))

        engine = KeyExchangeEngine.from_params_file(str(path))

        assert engine.key_size == 2048
        assert same_group(engine.parameters, generate_params(2048))

    def test_params_file_missing(self, tmp_path):
        with pytest.raises(KeyGenerationError):
            KeyExchangeEngine.from_params_file(str(tmp_path / "missing.pem"))

    def test_params_file_garbage(self, tmp_path):
        path = tmp_path / "bad.pem"
        path.write_text("not a PEM file")
        with pytest.raises(KeyGenerationError):
            KeyExchangeEngine.from_params_file(str(path))


class TestKeyExchange:
    """Tests for key generation and agreement."""

    def test_generate_keypair(self, engine):
        kp = engine.generate()
        assert kp.private_key is not None
        assert kp.public_key is not None

    def test_fresh_keypairs_differ(self, engine):
        a = engine.export_public(engine.generate())
        b = engine.export_public(engine.generate())
        assert a != b

    def test_export_is_deterministic(self, engine):
        kp = engine.generate()
        assert engine.export_public(kp) == engine.export_public(kp)

    def test_export_load_round_trip(self, engine):
        """An exported public key reconstructs a usable key."""
        alice = engine.generate()
        bob = engine.generate()

        loaded = engine.load_public(engine.export_public(bob))

        assert loaded.public_numbers() == bob.public_key.public_numbers()
        engine.derive_shared_secret(alice.private_key, loaded)

    def test_shared_secret_agreement(self, engine):
        """Both parties derive the same shared secret."""
        alice = engine.generate()
        bob = engine.generate()

        alice_secret = engine.derive_shared_secret(
            alice.private_key, engine.load_public(engine.export_public(bob))
        )
        bob_secret = engine.derive_shared_secret(
            bob.private_key, engine.load_public(engine.export_public(alice))
        )

        assert alice_secret == bob_secret

    def test_shared_secret_length_matches_prime(self, engine):
        """Secrets are padded to the byte length of the prime."""
        alice = engine.generate()
        bob = engine.generate()
        for _ in range(5):
            secret = engine.derive_shared_secret(alice.private_key, bob.public_key)
            assert len(secret) == 128

    def test_derivation_is_deterministic(self, engine):
        alice = engine.generate()
        bob = engine.generate()
        first = engine.derive_shared_secret(alice.private_key, bob.public_key)
        second = engine.derive_shared_secret(alice.private_key, bob.public_key)
        assert first == second

    def test_different_peers_different_secrets(self, engine):
        alice = engine.generate()
        bob1 = engine.generate()
        bob2 = engine.generate()

        secret1 = engine.derive_shared_secret(alice.private_key, bob1.public_key)
        secret2 = engine.derive_shared_secret(alice.private_key, bob2.public_key)

        assert secret1 != secret2

    def test_generate_on_explicit_parameters(self, engine):
        kp = engine.generate(generate_params(2048))
        assert kp.public_key.parameters().parameter_numbers().p == DH_PRIME_2048


class TestPeerKeyValidation:
    """Tests for malformed and incompatible peer keys."""

    def test_garbage_bytes_rejected(self, engine):
        with pytest.raises(AgreementError):
            engine.load_public(b"hello")

    def test_non_dh_key_rejected(self, engine):
        """An EC public key is well-formed DER but not a DH key."""
        ec_public = ec.generate_private_key(ec.SECP256R1()).public_key()
        der = ec_public.public_bytes(
            serialization.Encoding.DER, serialization.PublicFormat.SubjectPublicKeyInfo
        )
        with pytest.raises(AgreementError):
            engine.load_public(der)

    def test_small_group_rejected(self, engine):
        params = dh.DHParameterNumbers(DH_PRIME_768, 2).parameters()
        small = KeyExchangeEngine(parameters=params)
        der = small.export_public(small.generate())
        with pytest.raises(AgreementError):
            engine.load_public(der)

    def test_incompatible_groups_rejected(self, engine):
        """A peer key on another group cannot be combined with ours."""
        ours = engine.generate()
        theirs = KeyExchangeEngine(key_size=2048).generate()
        with pytest.raises(AgreementError):
            engine.derive_shared_secret(ours.private_key, theirs.public_key)
