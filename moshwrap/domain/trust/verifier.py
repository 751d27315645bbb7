"""
Host key verification strategies
"""
from pathlib import Path
from typing import Iterable, Union

import paramiko

from ...core.exceptions import HostKeyVerificationError
from ...core.interfaces import HostVerifier
from ...core.logging import get_logger
from .store import TrustedHostSet, TrustStoreEntry, fingerprint, load_trust_store, read_entries

logger = get_logger(__name__)


class FingerprintVerifier(HostVerifier):
    """
    Flat trust model.

    Any key listed in the trust store is accepted for any host. Revoked keys
    are rejected even if they are also listed as trusted.
    """

    def __init__(self, trusted: TrustedHostSet):
        self.trusted = trusted

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "FingerprintVerifier":
        return cls(load_trust_store(path))

    def verify(self, hostname: str, key: paramiko.PKey) -> None:
        fp = fingerprint(key)
        if self.trusted.is_revoked(fp):
            raise HostKeyVerificationError(hostname, fp, "is revoked")
        if fp not in self.trusted:
            raise HostKeyVerificationError(hostname, fp)
        logger.debug("Host key %s for %s found in %s", fp, hostname, self.trusted.path)


class KnownHostsVerifier(HostVerifier):
    """
    Per-host trust model backed by paramiko.HostKeys.

    A key is accepted only if the known_hosts file lists it for the
    presenting hostname (hashed hostnames included).
    """

    def __init__(self, trusted: TrustedHostSet, host_keys: paramiko.HostKeys):
        self.trusted = trusted
        self.host_keys = host_keys

    @classmethod
    def from_entries(cls, path: str, entries: Iterable[TrustStoreEntry]) -> "KnownHostsVerifier":
        entries = list(entries)
        host_keys = paramiko.HostKeys()
        for entry in entries:
            if entry.marker is not None:
                continue
            for hostname in entry.hostnames:
                host_keys.add(hostname, entry.key.get_name(), entry.key)
        return cls(TrustedHostSet.from_entries(path, entries), host_keys)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "KnownHostsVerifier":
        p = Path(path).expanduser()
        return cls.from_entries(str(p), read_entries(p))

    def verify(self, hostname: str, key: paramiko.PKey) -> None:
        fp = fingerprint(key)
        if self.trusted.is_revoked(fp):
            raise HostKeyVerificationError(hostname, fp, "is revoked")

        known = self.host_keys.lookup(hostname)
        if known is None:
            raise HostKeyVerificationError(hostname, fp, "has no entry for this host")

        expected = known.get(key.get_name())
        if expected is None or expected.asbytes() != key.asbytes():
            raise HostKeyVerificationError(hostname, fp, "does not match the known key for this host")
        logger.debug("Host key %s matches known entry for %s", fp, hostname)
