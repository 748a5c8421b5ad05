"""
Shared fixtures for the SecureLink test suite.
"""

import socket
import threading

import pytest

from securelink.crypto.dh import KeyExchangeEngine
from securelink.session.transport import LineTransport


class PeerThread(threading.Thread):
    """Runs one side of a session and keeps its result or exception."""

    def __init__(self, target, *args, **kwargs):
        super().__init__(daemon=True)
        self._call = (target, args, kwargs)
        self.result = None
        self.error = None

    def run(self):
        target, args, kwargs = self._call
        try:
            self.result = target(*args, **kwargs)
        except BaseException as e:
            self.error = e

    def outcome(self, timeout: float = 30.0):
        self.join(timeout)
        assert not self.is_alive(), "peer thread did not finish"
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture(scope="session")
def engine():
    return KeyExchangeEngine()


@pytest.fixture
def transport_pair():
    """Two connected line transports (responder side, initiator side)."""
    left, right = socket.socketpair()
    responder_side, initiator_side = LineTransport(left), LineTransport(right)
    yield responder_side, initiator_side
    responder_side.close()
    initiator_side.close()


@pytest.fixture
def start_peer():
    threads = []

    def _start(target, *args, **kwargs):
        thread = PeerThread(target, *args, **kwargs)
        thread.start()
        threads.append(thread)
        return thread

    yield _start

    for thread in threads:
        thread.join(5)
