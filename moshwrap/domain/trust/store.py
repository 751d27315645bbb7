"""
Known hosts trust store

Parses an OpenSSH known_hosts file into a flat set of host key fingerprints.
"""
import base64
import binascii
import hashlib
from dataclasses import dataclass
from pathlib import Path
from typing import FrozenSet, Iterable, List, Optional, Tuple, Union

import paramiko
from paramiko.pkey import UnknownKeyType

from ...core.exceptions import TrustStoreError
from ...core.logging import get_logger

logger = get_logger(__name__)

MARKER_CERT_AUTHORITY = "@cert-authority"
MARKER_REVOKED = "@revoked"


def fingerprint_blob(blob: bytes) -> str:
    """SHA256 fingerprint of an SSH wire-encoded public key, OpenSSH style"""
    digest = hashlib.sha256(blob).digest()
    return "SHA256:" + base64.b64encode(digest).decode("ascii").rstrip("=")


def fingerprint(key: paramiko.PKey) -> str:
    """SHA256 fingerprint of a public key"""
    return fingerprint_blob(key.asbytes())


@dataclass(frozen=True)
class TrustStoreEntry:
    """One host key record of a known_hosts file"""
    hostnames: Tuple[str, ...]
    key: paramiko.PKey
    marker: Optional[str] = None

    @property
    def fingerprint(self) -> str:
        return fingerprint(self.key)

    @property
    def is_revoked(self) -> bool:
        return self.marker == MARKER_REVOKED

    @property
    def is_cert_authority(self) -> bool:
        return self.marker == MARKER_CERT_AUTHORITY

    @classmethod
    def from_line(cls, line: str) -> Optional["TrustStoreEntry"]:
        """
        Parse a known_hosts line.

        Format: [@marker] hostname[,hostname...] key-type base64-key [comment]

        Returns:
            Parsed entry, or None for blank and comment lines

        Raises:
            ValueError: If the line is not a valid host key record
        """
        line = line.strip()
        if not line or line.startswith("#"):
            return None

        fields = line.split()
        marker = None
        if fields[0].startswith("@"):
            marker = fields.pop(0)
            if marker not in (MARKER_CERT_AUTHORITY, MARKER_REVOKED):
                raise ValueError(f"unknown marker {marker!r}")

        if len(fields) < 3:
            raise ValueError(f"expected 'hosts key-type key', got {line!r}")

        hosts, key_type, key_data = fields[:3]
        try:
            blob = base64.b64decode(key_data, validate=True)
        except binascii.Error as e:
            raise ValueError(f"invalid base64 key data: {e}") from e

        try:
            key = paramiko.PKey.from_type_string(key_type, blob)
        except UnknownKeyType as e:
            raise ValueError(f"unsupported key type {key_type!r}") from e
        except Exception as e:
            raise ValueError(f"invalid {key_type} key: {e}") from e

        return cls(hostnames=tuple(hosts.split(",")), key=key, marker=marker)


@dataclass(frozen=True)
class TrustedHostSet:
    """Immutable set of trusted host key fingerprints"""
    path: str
    trusted: FrozenSet[str]
    revoked: FrozenSet[str] = frozenset()

    def __contains__(self, fp: str) -> bool:
        return fp in self.trusted and fp not in self.revoked

    def __len__(self) -> int:
        return len(self.trusted)

    def is_revoked(self, fp: str) -> bool:
        return fp in self.revoked

    @classmethod
    def from_entries(cls, path: str, entries: Iterable[TrustStoreEntry]) -> "TrustedHostSet":
        """
        Collect fingerprints of plain host key lines.

        Keys on @revoked lines go to the revoked set. Keys on @cert-authority
        lines sign host certificates and are not trusted as host keys.
        """
        trusted = set()
        revoked = set()
        for entry in entries:
            if entry.is_revoked:
                revoked.add(entry.fingerprint)
            elif not entry.is_cert_authority:
                trusted.add(entry.fingerprint)
        return cls(path=path, trusted=frozenset(trusted), revoked=frozenset(revoked))


def read_entries(path: Union[str, Path]) -> List[TrustStoreEntry]:
    """
    Parse every host key record of a known_hosts file.

    Args:
        path: known_hosts file path (~ is expanded)

    Returns:
        Entries in file order, comments and blank lines skipped

    Raises:
        TrustStoreError: If the file cannot be read or a line is malformed
    """
    p = Path(path).expanduser()
    entries = []

    try:
        fh = p.open("r", encoding="utf-8", errors="replace")
    except OSError as e:
        raise TrustStoreError(str(p), f"cannot open: {e.strerror or e}") from e

    with fh:
        try:
            for lineno, line in enumerate(fh, start=1):
                try:
                    entry = TrustStoreEntry.from_line(line)
                except ValueError as e:
                    raise TrustStoreError(str(p), str(e), lineno=lineno) from e
                if entry is not None:
                    entries.append(entry)
        except OSError as e:
            raise TrustStoreError(str(p), f"read error: {e}") from e

    return entries


def load_trust_store(path: Union[str, Path]) -> TrustedHostSet:
    """
    Build a TrustedHostSet from a known_hosts file.

    Raises:
        TrustStoreError: If the file cannot be read or a line is malformed
    """
    p = Path(path).expanduser()
    trusted = TrustedHostSet.from_entries(str(p), read_entries(p))
    logger.debug("Loaded %d trusted host keys from %s", len(trusted), p)
    return trusted
