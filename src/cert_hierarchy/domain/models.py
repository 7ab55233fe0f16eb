"""
Domain models — immutable certificate records.

A CertificateRecord is the decoded view of one input certificate plus its
provenance (where it was loaded from). Records carry no graph links: the
parent/child relationships live in CertificateGraph, which addresses
records by their stable index.

All models are frozen dataclasses (immutable) following functional principles.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from cryptography import x509


@dataclass(frozen=True, slots=True)
class CertificateRecord:
    """
    One certificate of the working set.

    `der` holds the exact original DER encoding and is only used to detect
    byte-identical duplicates. `certificate` is the decoded PyCA object the
    signature verifier works on; synthetic records built without key
    material leave it as None.

    `origin` and `position` are provenance only: they never take part in
    equality or issuer checks.
    """

    der: bytes = field(repr=False)
    subject: x509.Name
    issuer: x509.Name
    extensions: Mapping[x509.ObjectIdentifier, x509.ExtensionType] = field(
        default_factory=dict, repr=False, hash=False
    )
    origin: str = field(default="<memory>", compare=False)
    position: int | None = field(default=None, compare=False)
    certificate: x509.Certificate | None = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "extensions", MappingProxyType(dict(self.extensions)))

    @property
    def location(self) -> str:
        """Provenance label: `origin`, or `origin:position` for multi-certificate origins."""
        if self.position is None:
            return self.origin
        return f"{self.origin}:{self.position}"

    @classmethod
    def from_certificate(
        cls,
        certificate: x509.Certificate,
        der: bytes,
        origin: str,
        position: int | None = None,
    ) -> CertificateRecord:
        """Build a record from a decoded certificate and its original encoding."""
        return cls(
            der=der,
            subject=certificate.subject,
            issuer=certificate.issuer,
            extensions={ext.oid: ext.value for ext in certificate.extensions},
            origin=origin,
            position=position,
            certificate=certificate,
        )
