"""
Host key trust store and verification
"""
from .store import (
    TrustStoreEntry,
    TrustedHostSet,
    fingerprint,
    fingerprint_blob,
    load_trust_store,
    read_entries,
)
from .verifier import FingerprintVerifier, KnownHostsVerifier

__all__ = [
    "TrustStoreEntry",
    "TrustedHostSet",
    "fingerprint",
    "fingerprint_blob",
    "load_trust_store",
    "read_entries",
    "FingerprintVerifier",
    "KnownHostsVerifier",
]
