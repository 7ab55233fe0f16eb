"""
Ports — Protocol-based interfaces for infrastructure adapters.

These define WHAT the hierarchy core needs from the outside world without
specifying HOW it's done. Following hexagonal architecture:

  Domain ← Ports (protocols) ← Adapters (implementations)

Each port is a Protocol (structural typing) so adapters satisfy
the contract simply by implementing the methods — no inheritance.

  SignatureVerifier    → cryptographic check of a child under an issuer's key
  ExtensionIdResolver  → symbolic extension name ⇄ OID
  CertificateSource    → load certificate records from files/directories
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Protocol, runtime_checkable

from cryptography.x509 import ObjectIdentifier
from railway.result import Result

from cert_hierarchy.domain.models import CertificateRecord

type IssuerCheck = Callable[[CertificateRecord, CertificateRecord], bool]
"""is_issuer(issuer_candidate, child_candidate) — the predicate the hierarchy core consumes."""

# Extension names the issuer check resolves through ExtensionIdResolver.
AUTHORITY_KEY_IDENTIFIER = "id-ce-authorityKeyIdentifier"
SUBJECT_KEY_IDENTIFIER = "id-ce-subjectKeyIdentifier"


@runtime_checkable
class SignatureVerifier(Protocol):
    """
    Port: verify that `child` is signed by the key of `issuer`.

    A negative answer is NOT an error: implementations return False for bad,
    unsupported or unverifiable signatures and never raise for them.
    """

    def verify(self, issuer: CertificateRecord, child: CertificateRecord) -> bool: ...


@runtime_checkable
class ExtensionIdResolver(Protocol):
    """
    Port: resolve X.509 extension identifiers by symbolic name.

    lookup() raises KeyError for an unknown name; name_of() falls back to the
    dotted-string form of an unknown OID.
    """

    def lookup(self, name: str) -> ObjectIdentifier: ...

    def name_of(self, oid: ObjectIdentifier) -> str: ...


@runtime_checkable
class CertificateSource(Protocol):
    """
    Port: load certificate records from a set of filesystem paths.

    The implementation handles:
      1. Directory expansion (configured suffixes)
      2. PEM / DER / PKCS#7 detection
      3. Provenance (origin + position inside the origin)

    Returns Result[list[CertificateRecord]] in input order.
    """

    def load(self, paths: Iterable[Path]) -> Result[list[CertificateRecord]]: ...
