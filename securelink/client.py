#!/usr/bin/env python3
"""
SecureLink Client

Implements the initiator side of the protocol: connect, exchange DH public
keys, send one encrypted message and print the server's response.
"""

import argparse
import socket
from typing import Optional

from .common.config import Settings, load_settings
from .common.exceptions import SecureLinkException
from .session import LineTransport, run_initiator_session


class SecureLinkClient:
    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings if settings is not None else load_settings()
        self.host = self.settings.host
        self.port = self.settings.port
        self.engine = self.settings.build_engine()
        self.cipher = self.settings.build_cipher()

    def _log(self, text: str) -> None:
        if self.settings.verbose:
            print(text)

    def send(self, message: str) -> str:
        """
        Open a connection, run one session and close it.

        Returns:
            The server's acknowledgment line
        """
        self._log(f"\n[*] Connecting to {self.host}:{self.port}...")
        sock = socket.create_connection((self.host, self.port))
        self._log(f"[✓] Connected to server {self.host}:{self.port}\n")

        with LineTransport(sock) as transport:
            ack = run_initiator_session(
                transport, message, self.engine, self.cipher,
                entry_port=self.settings.entry_port,
                verbose=self.settings.verbose
            )

        self._log("[*] Disconnected from server")
        return ack


def main():
    parser = argparse.ArgumentParser(description="SecureLink initiator")
    parser.add_argument('message', nargs='?', help="Message to encrypt and send")
    parser.add_argument('--host', help="Server address (env: SERVER_HOST)")
    parser.add_argument('--port', type=int, help="Server port (env: SERVER_PORT)")
    parser.add_argument('--entry-port', type=int, help="Entry port to announce (env: ENTRY_PORT)")
    parser.add_argument('--cipher', dest='cipher_suite', help="des-ecb or aes-gcm (env: CIPHER_SUITE)")
    args = parser.parse_args()

    print("=" * 70)
    print("  SECURELINK CLIENT")
    print("=" * 70 + "\n")

    settings = load_settings(
        host=args.host,
        port=args.port,
        entry_port=args.entry_port,
        cipher_suite=args.cipher_suite,
    )

    message = args.message
    if message is None:
        message = input("Message to encrypt: ")

    try:
        ack = SecureLinkClient(settings).send(message)
    except (SecureLinkException, OSError, ValueError) as e:
        print(f"\n[!] Error: {type(e).__name__}: {e}")
        raise SystemExit(1)

    print(f"\nServer response: {ack}")


if __name__ == "__main__":
    main()
