"""
Protocol frame definitions using Pydantic.

Every frame is a single UTF-8 line on the wire. Incoming lines are parsed
into these models so that a malformed frame surfaces as ProtocolError
before any cryptographic work happens.

Frame order:
    1. R -> I  entry port prompt
    2. I -> R  entry port (decimal)
    3. R -> I  configuration line
    4. R -> I  responder public key (Base64 DER SubjectPublicKeyInfo)
    5. I -> R  initiator public key (Base64 DER SubjectPublicKeyInfo)
    6. I -> R  ciphertext (Base64)
    7. R -> I  outcome phrase
"""

from enum import Enum
from typing import Type, TypeVar
from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ProtocolError
from .utils import b64encode, b64decode


ENTRY_PORT_PROMPT = "Enter the entry port: "
CONFIG_MESSAGE_PREFIX = "Communication port: "
SUCCESS_PHRASE = "Message received successfully!"
MISMATCH_PHRASE = "Different key. Message not delivered."


class Outcome(str, Enum):
    """Result of the responder's re-derivation check."""
    VERIFIED = "verified"
    MISMATCH = "mismatch"

    @property
    def phrase(self) -> str:
        """Outcome line sent back to the initiator."""
        return SUCCESS_PHRASE if self is Outcome.VERIFIED else MISMATCH_PHRASE


class EntryPortFrame(BaseModel):
    """Entry port announced by the initiator."""
    port: int = Field(..., ge=0, le=65535, description="Decimal entry port")

    def to_line(self) -> str:
        return str(self.port)


class PublicKeyFrame(BaseModel):
    """DH public key of either peer."""
    key: bytes = Field(..., min_length=1, description="DER SubjectPublicKeyInfo")

    @field_validator('key', mode='before')
    @classmethod
    def decode_base64(cls, value):
        if isinstance(value, str):
            return b64decode(value.strip())
        return value

    def to_line(self) -> str:
        return b64encode(self.key)


class SessionResult(BaseModel):
    """What the responder reports to its caller after a session."""
    outcome: Outcome
    message: str = Field(..., description="Decrypted application message")
    entry_port: int

    @property
    def verified(self) -> bool:
        return self.outcome is Outcome.VERIFIED


M = TypeVar('M', bound=BaseModel)


def parse_frame(model: Type[M], **fields) -> M:
    """
    Validate an incoming frame.

    Args:
        model: Frame model class
        **fields: Raw field values read from the wire

    Returns:
        Validated frame

    Raises:
        ProtocolError: If the frame does not validate
    """
    try:
        return model(**fields)
    except ValidationError as e:
        first = e.errors()[0]['msg'] if e.errors() else str(e)
        raise ProtocolError(f"Malformed {model.__name__}: {first}") from e


def config_message(port: int) -> str:
    """Build the configuration line sent after the entry port is received."""
    return f"{CONFIG_MESSAGE_PREFIX}{port}"
