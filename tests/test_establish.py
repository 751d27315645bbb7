"""Tests for SSH session establishment with a stubbed paramiko Transport."""

import importlib

import paramiko
import pytest

from moshwrap.core.exceptions import HandshakeError, HostKeyVerificationError, ProxyError
from moshwrap.core.session import RemoteSession
from moshwrap.domain.transport.establish import establish, host_key_name, keyboard_challenge
from moshwrap.domain.trust import FingerprintVerifier, TrustedHostSet, fingerprint

establish_module = importlib.import_module("moshwrap.domain.transport.establish")


class FakeSocket:
    def __init__(self):
        self.closed = False

    def close(self):
        self.closed = True


class FakeDialer:
    def __init__(self, error=None):
        self.error = error
        self.sock = FakeSocket()
        self.calls = []

    def dial(self, host, port, timeout):
        self.calls.append((host, port, timeout))
        if self.error is not None:
            raise self.error
        return self.sock


class FakeTransport:
    """Records authentication attempts; accepts the keys in `accepted`."""

    instances = []

    def __init__(self, sock, server_key, accepted=(), handshake_error=None, interactive=None):
        self.sock = sock
        self.server_key = server_key
        self.accepted = [k.asbytes() for k in accepted]
        self.handshake_error = handshake_error
        self.interactive = interactive
        self.authenticated = False
        self.closed = False
        self.attempts = []
        FakeTransport.instances.append(self)

    def start_client(self):
        if self.handshake_error is not None:
            raise self.handshake_error

    def get_remote_server_key(self):
        return self.server_key

    def auth_publickey(self, username, key):
        self.attempts.append((username, key.asbytes()))
        if key.asbytes() not in self.accepted:
            raise paramiko.AuthenticationException("Authentication failed.")
        self.authenticated = True
        return []

    def auth_interactive(self, username, handler):
        if self.interactive is None:
            raise paramiko.BadAuthenticationType("Bad authentication type", ["publickey"])
        handler(*self.interactive)
        self.authenticated = True
        return []

    def is_authenticated(self):
        return self.authenticated

    def is_active(self):
        return not self.closed

    def close(self):
        self.closed = True


class FakeCredentials:
    def __init__(self, *keys):
        self.keys = tuple(keys)


@pytest.fixture
def client_keys():
    return paramiko.ECDSAKey.generate(), paramiko.ECDSAKey.generate()


@pytest.fixture
def patch_transport(monkeypatch):
    FakeTransport.instances = []

    def install(**kwargs):
        monkeypatch.setattr(
            establish_module.paramiko,
            "Transport",
            lambda sock: FakeTransport(sock, **kwargs),
        )

    return install


@pytest.fixture
def verifier(host_key):
    return FingerprintVerifier(TrustedHostSet("known_hosts", frozenset([fingerprint(host_key)])))


def test_host_key_name() -> None:
    assert host_key_name("example.com", 22) == "example.com"
    assert host_key_name("example.com", 2222) == "[example.com]:2222"
    assert host_key_name("::1", 2222) == "[::1]:2222"


def test_success_with_second_key(patch_transport, verifier, host_key, client_keys) -> None:
    first, second = client_keys
    patch_transport(server_key=host_key, accepted=[second])
    dialer = FakeDialer()

    session = establish("example.com", 22, "alice", verifier, FakeCredentials(first, second),
                        timeout=3.0, dialer=dialer)

    transport = FakeTransport.instances[0]
    assert isinstance(session, RemoteSession)
    assert session.transport is transport
    assert (session.host, session.port, session.user) == ("example.com", 22, "alice")
    assert dialer.calls == [("example.com", 22, 3.0)]
    assert transport.attempts == [("alice", first.asbytes()), ("alice", second.asbytes())]
    assert not transport.closed


def test_untrusted_host_key_closes(patch_transport, verifier, other_key, client_keys) -> None:
    patch_transport(server_key=other_key, accepted=client_keys)
    dialer = FakeDialer()

    with pytest.raises(HostKeyVerificationError) as exc_info:
        establish("example.com", 22, "alice", verifier, FakeCredentials(*client_keys), dialer=dialer)

    transport = FakeTransport.instances[0]
    assert exc_info.value.fingerprint == fingerprint(other_key)
    # No credentials are offered to an unverified host
    assert transport.attempts == []
    assert transport.closed
    assert dialer.sock.closed


def test_verifies_bracketed_name_for_custom_port(patch_transport, host_key, client_keys) -> None:
    seen = []

    class RecordingVerifier:
        def verify(self, hostname, key):
            seen.append((hostname, key))

    patch_transport(server_key=host_key, accepted=client_keys)
    establish("example.com", 2222, "alice", RecordingVerifier(), FakeCredentials(*client_keys),
              dialer=FakeDialer())
    assert seen == [("[example.com]:2222", host_key)]


def test_all_keys_rejected(patch_transport, verifier, host_key, client_keys) -> None:
    patch_transport(server_key=host_key)
    dialer = FakeDialer()

    with pytest.raises(HandshakeError, match="unable to authenticate alice@example.com") as exc_info:
        establish("example.com", 22, "alice", verifier, FakeCredentials(*client_keys), dialer=dialer)

    assert str(exc_info.value).count("publickey") == 2
    assert FakeTransport.instances[0].closed
    assert dialer.sock.closed


def test_empty_agent(patch_transport, verifier, host_key) -> None:
    patch_transport(server_key=host_key)
    with pytest.raises(HandshakeError, match="ssh-agent has no identities"):
        establish("example.com", 22, "alice", verifier, FakeCredentials(), dialer=FakeDialer())


def test_handshake_failure(patch_transport, verifier, host_key, client_keys) -> None:
    patch_transport(server_key=host_key, handshake_error=paramiko.SSHException("Error reading SSH protocol banner"))
    dialer = FakeDialer()

    with pytest.raises(HandshakeError, match="SSH handshake with example.com:22 failed"):
        establish("example.com", 22, "alice", verifier, FakeCredentials(*client_keys), dialer=dialer)
    assert FakeTransport.instances[0].closed
    assert dialer.sock.closed


def test_dial_failure_propagates(patch_transport, verifier, host_key, client_keys) -> None:
    patch_transport(server_key=host_key, accepted=client_keys)
    dialer = FakeDialer(error=ProxyError("SOCKS5 proxy rejected username/password"))

    with pytest.raises(ProxyError):
        establish("example.com", 22, "alice", verifier, FakeCredentials(*client_keys), dialer=dialer)
    assert FakeTransport.instances == []


def test_keyboard_interactive_fallback(patch_transport, verifier, host_key, client_keys) -> None:
    patch_transport(server_key=host_key, interactive=("Welcome", "", []))
    session = establish("example.com", 22, "alice", verifier, FakeCredentials(*client_keys),
                        dialer=FakeDialer(), keyboard_interactive=True)
    assert session.is_active()


def test_keyboard_interactive_not_tried_by_default(patch_transport, verifier, host_key, client_keys) -> None:
    patch_transport(server_key=host_key, interactive=("", "", []))
    with pytest.raises(HandshakeError):
        establish("example.com", 22, "alice", verifier, FakeCredentials(*client_keys), dialer=FakeDialer())


def test_keyboard_interactive_rejects_prompts(patch_transport, verifier, host_key) -> None:
    patch_transport(server_key=host_key, interactive=("", "", [("Password: ", False)]))
    dialer = FakeDialer()
    with pytest.raises(HandshakeError, match="not supported"):
        establish("example.com", 22, "alice", verifier, FakeCredentials(), dialer=dialer,
                  keyboard_interactive=True)
    assert dialer.sock.closed


def test_keyboard_challenge_without_prompts() -> None:
    assert keyboard_challenge("", "", []) == []


def test_keyboard_challenge_with_prompts() -> None:
    with pytest.raises(HandshakeError):
        keyboard_challenge("Login", "", [("Password: ", False)])
