"""
SecureLink Handshake

Drives one session over a line transport, for either role:

Responder (listener):
1. Entry port negotiation
2. Send own DH public key
3. Receive peer DH public key
4. Derive shared secret and session key
5. Receive and decrypt the application message
6. Re-derive the shared secret and compare (Verified / Mismatch)
7. Send the outcome line and close

Initiator (caller):
1. Entry port negotiation, generate own DH key pair
2. Receive responder DH public key
3. Send own DH public key
4. Derive shared secret and session key
5. Encrypt and send the application message
6. Wait for the outcome line and close

The transport is any object with read_line() -> str and write_line(str).
Every session zeroes its key buffers when it ends, on success or failure.
"""

from enum import Enum
from typing import Optional

from ..common.exceptions import AgreementError, DecryptionError, ProtocolError
from ..common.protocol import (
    ENTRY_PORT_PROMPT, EntryPortFrame, Outcome, PublicKeyFrame, SessionResult,
    config_message, parse_frame
)
from ..common.utils import constant_time_compare, zeroize
from ..crypto import get_cipher_suite
from ..crypto.dh import KeyExchangeEngine, same_group


class Role(str, Enum):
    INITIATOR = "initiator"
    RESPONDER = "responder"


class ResponderState(str, Enum):
    AWAIT_PEER_HELLO = "await_peer_hello"
    KEY_SENT = "key_sent"
    PEER_KEY_RECEIVED = "peer_key_received"
    SECRET_DERIVED = "secret_derived"
    MESSAGE_RECEIVED = "message_received"
    VERIFIED = "verified"
    MISMATCH = "mismatch"
    CLOSED = "closed"


class InitiatorState(str, Enum):
    NEW = "new"
    KEY_GENERATED = "key_generated"
    PEER_KEY_RECEIVED = "peer_key_received"
    LOCAL_KEY_SENT = "local_key_sent"
    SECRET_DERIVED = "secret_derived"
    MESSAGE_SENT = "message_sent"
    AWAIT_ACK = "await_ack"
    CLOSED = "closed"


class HandshakeSession:
    """
    State shared by both roles: local key pair, peer public key, shared
    secret and session key. Key buffers are bytearrays so close() can
    overwrite them.
    """

    role: Role

    def __init__(self, transport, engine: Optional[KeyExchangeEngine] = None,
                 cipher=None, verbose: bool = False):
        self.transport = transport
        self.engine = engine if engine is not None else KeyExchangeEngine()
        self.cipher = cipher if cipher is not None else get_cipher_suite()
        self.verbose = verbose

        self.key_pair = None
        self.peer_public = None
        self.shared_secret: Optional[bytearray] = None
        self.session_key: Optional[bytearray] = None

    def _log(self, text: str) -> None:
        if self.verbose:
            print(f"  {text}")

    def _read(self, what: str) -> str:
        try:
            return self.transport.read_line()
        except EOFError as e:
            raise ProtocolError(f"Connection closed while waiting for {what}") from e
        except UnicodeDecodeError as e:
            raise ProtocolError(f"Frame for {what} is not valid UTF-8") from e

    def _send(self, line: str) -> None:
        self.transport.write_line(line)

    def _send_public_key(self) -> None:
        frame = PublicKeyFrame(key=self.engine.export_public(self.key_pair))
        line = frame.to_line()
        self._send(line)
        self._log(f"[>] Sent public key ({line[:32]}...)")

    def _receive_public_key(self) -> None:
        frame = parse_frame(PublicKeyFrame, key=self._read("peer public key"))
        self.peer_public = self.engine.load_public(frame.key)
        self._log("[<] Received peer public key")

    def derive_keys(self) -> None:
        """
        Derive the shared secret and the session key.

        Requires both public keys to have been exchanged.

        Raises:
            ProtocolError: If called before the key exchange
            AgreementError: If the peer key is incompatible
        """
        if self.key_pair is None or self.peer_public is None:
            raise ProtocolError("Both public keys must be exchanged before deriving")

        secret = self.engine.derive_shared_secret(self.key_pair.private_key, self.peer_public)
        self.shared_secret = bytearray(secret)
        self.session_key = bytearray(self.cipher.derive_key(self.shared_secret))
        self._log("[✓] Shared secret derived")

    def close(self) -> None:
        """Zero key buffers and drop key references. The transport is left open."""
        zeroize(self.shared_secret)
        zeroize(self.session_key)
        self.shared_secret = None
        self.session_key = None
        self.key_pair = None
        self.peer_public = None


class Responder(HandshakeSession):
    """Listener side of a session."""

    role = Role.RESPONDER

    def __init__(self, transport, engine: Optional[KeyExchangeEngine] = None,
                 cipher=None, verbose: bool = False):
        super().__init__(transport, engine, cipher, verbose)
        self.state = ResponderState.AWAIT_PEER_HELLO
        self.entry_port: Optional[int] = None
        self.message: Optional[str] = None
        self.outcome: Optional[Outcome] = None

    def negotiate_entry_port(self) -> int:
        """Ask for the entry port, read it and confirm it back."""
        self._send(ENTRY_PORT_PROMPT)
        frame = parse_frame(EntryPortFrame, port=self._read("entry port").strip())
        self.entry_port = frame.port
        self._log(f"[<] Entry port received: {frame.port}")

        self._send(config_message(frame.port))
        self._log(f"[>] Sent configuration: {config_message(frame.port)}")
        return frame.port

    def send_public_key(self) -> None:
        self.key_pair = self.engine.generate()
        self._send_public_key()
        self.state = ResponderState.KEY_SENT

    def receive_peer_key(self) -> None:
        self._receive_public_key()
        self.state = ResponderState.PEER_KEY_RECEIVED

    def derive_keys(self) -> None:
        super().derive_keys()
        self.state = ResponderState.SECRET_DERIVED

    def receive_message(self) -> str:
        """
        Read and decrypt the application message.

        Raises:
            DecryptionError: If the ciphertext does not decrypt to UTF-8 text
        """
        if self.session_key is None:
            raise ProtocolError("Session key must be derived before receiving the message")

        ciphertext = self._read("encrypted message")
        self._log(f"[<] Received encrypted message ({ciphertext[:32]}...)")

        plaintext = self.cipher.decrypt(ciphertext, bytes(self.session_key))
        try:
            self.message = plaintext.decode('utf-8')
        except UnicodeDecodeError as e:
            raise DecryptionError("Decrypted message is not valid UTF-8") from e

        self._log(f"[✓] Decrypted message: {self.message}")
        self.state = ResponderState.MESSAGE_RECEIVED
        return self.message

    def verify(self) -> Outcome:
        """
        Re-run the agreement with the stored keys and compare the result
        with the secret derived earlier.

        A failed re-derivation counts as a mismatch, not an error.
        """
        if self.state is not ResponderState.MESSAGE_RECEIVED:
            raise ProtocolError("Verification happens after the message is received")

        try:
            again = bytearray(self.engine.derive_shared_secret(
                self.key_pair.private_key, self.peer_public
            ))
        except AgreementError as e:
            self._log(f"[✗] Re-derivation failed: {e}")
            again = bytearray()

        matched = constant_time_compare(self.shared_secret, again)
        zeroize(again)

        if matched:
            self.outcome = Outcome.VERIFIED
            self.state = ResponderState.VERIFIED
            self._log("[✓] Shared secret verified")
        else:
            self.outcome = Outcome.MISMATCH
            self.state = ResponderState.MISMATCH
            self._log("[✗] Shared secret mismatch")

        return self.outcome

    def send_outcome(self) -> None:
        self._send(self.outcome.phrase)
        self._log(f"[>] Sent outcome: {self.outcome.phrase}")

    def close(self) -> None:
        super().close()
        self.state = ResponderState.CLOSED

    def run(self) -> SessionResult:
        """Run every step in order. Key material is wiped on exit."""
        try:
            self.negotiate_entry_port()
            self.send_public_key()
            self.receive_peer_key()
            self.derive_keys()
            self.receive_message()
            self.verify()
            self.send_outcome()

            return SessionResult(
                outcome=self.outcome,
                message=self.message,
                entry_port=self.entry_port
            )
        finally:
            self.close()


class Initiator(HandshakeSession):
    """Caller side of a session."""

    role = Role.INITIATOR

    def __init__(self, transport, engine: Optional[KeyExchangeEngine] = None,
                 cipher=None, entry_port: int = 0, verbose: bool = False):
        super().__init__(transport, engine, cipher, verbose)
        self.state = InitiatorState.NEW
        # Raises pydantic.ValidationError (a ValueError) for an out-of-range port
        self.entry_frame = EntryPortFrame(port=entry_port)
        self.config_line: Optional[str] = None
        self.ack: Optional[str] = None

    def negotiate_entry_port(self) -> str:
        """Answer the entry port prompt and return the configuration line."""
        prompt = self._read("entry port prompt")
        self._log(f"[<] {prompt.strip()}")

        self._send(self.entry_frame.to_line())
        self._log(f"[>] Sent entry port: {self.entry_frame.port}")

        self.config_line = self._read("configuration line")
        self._log(f"[<] Configuration received: {self.config_line}")
        return self.config_line

    def generate_key_pair(self) -> None:
        self.key_pair = self.engine.generate()
        self.state = InitiatorState.KEY_GENERATED

    def receive_peer_key(self) -> None:
        """
        Read the responder's public key. If it lives on a different group
        than our engine's, regenerate our key pair on the responder's group.
        """
        self._receive_public_key()

        peer_params = self.peer_public.parameters()
        if not same_group(self.key_pair.private_key.parameters(), peer_params):
            self._log("[*] Adopting responder's DH group")
            self.key_pair = self.engine.generate(peer_params)

        self.state = InitiatorState.PEER_KEY_RECEIVED

    def send_public_key(self) -> None:
        self._send_public_key()
        self.state = InitiatorState.LOCAL_KEY_SENT

    def derive_keys(self) -> None:
        super().derive_keys()
        self.state = InitiatorState.SECRET_DERIVED

    def send_message(self, message: str) -> str:
        """Encrypt and send the application message; returns the ciphertext."""
        if self.session_key is None:
            raise ProtocolError("Session key must be derived before sending the message")

        ciphertext = self.cipher.encrypt(message.encode('utf-8'), bytes(self.session_key))
        self._send(ciphertext)
        self._log(f"[>] Sent encrypted message ({ciphertext[:32]}...)")

        self.state = InitiatorState.MESSAGE_SENT
        return ciphertext

    def await_ack(self) -> str:
        """Return the responder's outcome line as free text."""
        self.state = InitiatorState.AWAIT_ACK
        self.ack = self._read("outcome acknowledgment")
        self._log(f"[<] Server response: {self.ack}")
        return self.ack

    def close(self) -> None:
        super().close()
        self.state = InitiatorState.CLOSED

    def run(self, message: str) -> str:
        """Run every step in order and return the acknowledgment text."""
        try:
            self.negotiate_entry_port()
            self.generate_key_pair()
            self.receive_peer_key()
            self.send_public_key()
            self.derive_keys()
            self.send_message(message)
            return self.await_ack()
        finally:
            self.close()


def run_responder_session(transport, engine: Optional[KeyExchangeEngine] = None,
                          cipher=None, verbose: bool = False) -> SessionResult:
    """
    Serve one session as the responder.

    Returns:
        SessionResult with the outcome and the decrypted message

    Raises:
        ProtocolError: Unexpected EOF or malformed frame
        AgreementError: Unusable peer public key
        DecryptionError: Message could not be decrypted
        OSError: Transport failure
    """
    return Responder(transport, engine, cipher, verbose).run()


def run_initiator_session(transport, message: str,
                          engine: Optional[KeyExchangeEngine] = None,
                          cipher=None, entry_port: int = 0,
                          verbose: bool = False) -> str:
    """
    Run one session as the initiator and send a single message.

    Returns:
        The responder's acknowledgment line (advisory)

    Raises:
        ProtocolError: Unexpected EOF or malformed frame
        AgreementError: Unusable peer public key
        OSError: Transport failure
    """
    return Initiator(transport, engine, cipher, entry_port, verbose).run(message)
