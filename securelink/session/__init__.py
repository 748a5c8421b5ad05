"""
Session layer for SecureLink.

Includes:
- Line transport over a connected socket
- Responder / Initiator handshake state machines
"""

from .transport import LineTransport
from .handshake import (
    Responder, Initiator, run_responder_session, run_initiator_session
)

__all__ = [
    'LineTransport',
    'Responder',
    'Initiator',
    'run_responder_session',
    'run_initiator_session',
]
