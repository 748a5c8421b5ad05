#!/usr/bin/env python3
"""
SecureLink Server

Implements the responder side of the protocol:
1. Entry port negotiation
2. DH public key exchange
3. Shared secret and session key derivation
4. Encrypted message reception
5. Shared secret re-derivation check and outcome reply

Connections are served one at a time; a failed session is reported and
the server keeps listening.
"""

import argparse
import socket
import uuid
from typing import List, Optional

from .common.config import Settings, load_settings
from .common.exceptions import SecureLinkException
from .common.protocol import SessionResult
from .session import LineTransport, run_responder_session


class SecureLinkServer:
    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings if settings is not None else load_settings()
        self.host = self.settings.host
        self.port = self.settings.port
        self.engine = self.settings.build_engine()
        self.cipher = self.settings.build_cipher()
        self.server_socket: Optional[socket.socket] = None

        self._log(f"[*] SecureLink Server initialized")
        self._log(f"    DH group: {self.engine.key_size} bits, cipher: {self.cipher.name}")

    def _log(self, text: str) -> None:
        if self.settings.verbose:
            print(text)

    def bind(self) -> socket.socket:
        """Create the listening socket. Port 0 picks a free port."""
        server_socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        server_socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        server_socket.bind((self.host, self.port))
        server_socket.listen(5)

        self.server_socket = server_socket
        self.port = server_socket.getsockname()[1]
        return server_socket

    def serve(self, max_sessions: Optional[int] = None) -> List[SessionResult]:
        """
        Accept connections and run one responder session per connection.

        Args:
            max_sessions: Stop after this many connections (default: forever)

        Returns:
            Results of the completed sessions when max_sessions is given,
            otherwise an empty list. An unbounded server keeps no results.
        """
        if self.server_socket is None:
            self.bind()

        self._log(f"\n[✓] Server listening on {self.host}:{self.port}")
        self._log("[*] Waiting for clients...\n")

        results: List[SessionResult] = []
        served = 0
        try:
            while max_sessions is None or served < max_sessions:
                client_socket, address = self.server_socket.accept()
                served += 1
                self._log(f"[+] New connection from {address[0]}")

                try:
                    result = self.handle_client(client_socket)
                    if max_sessions is not None:
                        results.append(result)
                except (SecureLinkException, OSError, ValueError) as e:
                    self._log(f"[!] Session aborted: {type(e).__name__}: {e}")
                finally:
                    client_socket.close()
                    self._log(f"[-] Client {address[0]} disconnected\n")

        except KeyboardInterrupt:
            self._log("\n[*] Server shutting down...")
        finally:
            self.close()

        return results

    def handle_client(self, client_socket: socket.socket) -> SessionResult:
        """Handle a single client connection."""
        session_id = str(uuid.uuid4())[:8]
        self._log(f"[*] Session ID: {session_id}")

        transport = LineTransport(client_socket)
        try:
            result = run_responder_session(
                transport, self.engine, self.cipher, verbose=self.settings.verbose
            )
        finally:
            transport.close()

        if result.verified:
            self._log(f"[✓] Session {session_id}: message received: {result.message}")
        else:
            self._log(f"[✗] Session {session_id}: key mismatch (message: {result.message})")

        return result

    def close(self) -> None:
        if self.server_socket is not None:
            self.server_socket.close()
            self.server_socket = None


def main():
    parser = argparse.ArgumentParser(description="SecureLink responder")
    parser.add_argument('--host', help="Bind address (env: SERVER_HOST)")
    parser.add_argument('--port', type=int, help="Listening port (env: SERVER_PORT)")
    parser.add_argument('--cipher', dest='cipher_suite', help="des-ecb or aes-gcm (env: CIPHER_SUITE)")
    parser.add_argument('--dh-params', dest='dh_params_path', help="PEM DH parameters (env: DH_PARAMS_PATH)")
    args = parser.parse_args()

    print("=" * 70)
    print("  SECURELINK SERVER")
    print("=" * 70 + "\n")

    settings = load_settings(
        host=args.host,
        port=args.port,
        cipher_suite=args.cipher_suite,
        dh_params_path=args.dh_params_path,
    )

    try:
        server = SecureLinkServer(settings)
    except SecureLinkException as e:
        print(f"[!] Server setup failed: {e}")
        raise SystemExit(1)

    server.serve()


if __name__ == "__main__":
    main()
