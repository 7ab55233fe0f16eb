"""
Shared test fixtures and builders for the cert-hierarchy test suite.

Two kinds of certificates are used:

  - synthetic records (make_record): names, key identifiers and DER bytes
    chosen by the test, no key material. Paired with FakeVerifier, which
    accepts exactly the (issuer, child) location pairs it is given.
  - real certificates (CertificateFactory): EC keys and X.509 certificates
    generated with cryptography's CertificateBuilder, for the adapters and
    the end-to-end tests.
"""

from __future__ import annotations

import datetime
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path

import pytest
import structlog
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding
from cryptography.x509.oid import ExtensionOID, NameOID

from cert_hierarchy.adapters.oid_registry import OidRegistry
from cert_hierarchy.domain.graph import CertificateGraph
from cert_hierarchy.domain.models import CertificateRecord
from cert_hierarchy.issuer import IssuerPredicate

# ─────────────────────── Synthetic records ───────────────────────


def make_name(common_name: str) -> x509.Name:
    """A one-attribute distinguished name: CN=<common_name>."""
    return x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])


def make_record(
    subject: str,
    issuer: str | None = None,
    *,
    ski: bytes | None = None,
    aki: bytes | None = None,
    der: bytes | None = None,
    origin: str | None = None,
    position: int | None = None,
) -> CertificateRecord:
    """
    Build a synthetic CertificateRecord.

    `issuer` defaults to `subject` (self-issued), `der` to a value unique to
    the subject/issuer pair and `origin` to "<subject>.pem".
    """
    issuer = subject if issuer is None else issuer
    extensions: dict[x509.ObjectIdentifier, x509.ExtensionType] = {}
    if ski is not None:
        extensions[ExtensionOID.SUBJECT_KEY_IDENTIFIER] = x509.SubjectKeyIdentifier(ski)
    if aki is not None:
        extensions[ExtensionOID.AUTHORITY_KEY_IDENTIFIER] = x509.AuthorityKeyIdentifier(
            key_identifier=aki,
            authority_cert_issuer=None,
            authority_cert_serial_number=None,
        )
    return CertificateRecord(
        der=der if der is not None else f"DER({subject}<-{issuer})".encode(),
        subject=make_name(subject),
        issuer=make_name(issuer),
        extensions=extensions,
        origin=origin if origin is not None else f"{subject}.pem",
        position=position,
    )


@dataclass
class FakeVerifier:
    """
    SignatureVerifier double: a signature is valid iff (issuer, child)
    locations are in `valid`. `accept_all` turns every check into a pass.
    """

    valid: set[tuple[str, str]] = field(default_factory=set)
    accept_all: bool = False
    calls: list[tuple[str, str]] = field(default_factory=list)

    def verify(self, issuer: CertificateRecord, child: CertificateRecord) -> bool:
        self.calls.append((issuer.location, child.location))
        return self.accept_all or (issuer.location, child.location) in self.valid


def make_predicate(verifier: FakeVerifier | None = None) -> IssuerPredicate:
    return IssuerPredicate(verifier or FakeVerifier(accept_all=True), OidRegistry())


def edge_locations(graph: CertificateGraph) -> set[tuple[str, str]]:
    """All edges of the graph as (parent location, child location) pairs."""
    return {(graph[parent].location, graph[child].location) for parent, child in graph.edges()}


def has_cycle(graph: CertificateGraph) -> bool:
    """Independent acyclicity check (Kahn's algorithm)."""
    in_degree = {index: graph.parent_count(index) for index in range(len(graph))}
    ready = [index for index, degree in in_degree.items() if degree == 0]
    visited = 0
    while ready:
        node = ready.pop()
        visited += 1
        for child in graph.children_of(node):
            in_degree[child] -= 1
            if in_degree[child] == 0:
                ready.append(child)
    return visited != len(graph)


def links_are_symmetric(graph: CertificateGraph) -> bool:
    return all(
        (child in graph.children_of(parent)) == (parent in graph.parents_of(child))
        for parent in range(len(graph))
        for child in range(len(graph))
    )


# ─────────────────────── Real certificates ───────────────────────


@dataclass
class IssuedCertificate:
    """A generated certificate together with its private key."""

    certificate: x509.Certificate
    key: ec.EllipticCurvePrivateKey

    @property
    def der(self) -> bytes:
        return self.certificate.public_bytes(Encoding.DER)

    @property
    def pem(self) -> bytes:
        return self.certificate.public_bytes(Encoding.PEM)


class CertificateFactory:
    """Generate small EC certificate hierarchies for tests."""

    _NOT_BEFORE = datetime.datetime(2024, 1, 1, tzinfo=datetime.UTC)
    _NOT_AFTER = datetime.datetime(2034, 1, 1, tzinfo=datetime.UTC)

    def __init__(self) -> None:
        self._serial = 1000

    def key(self) -> ec.EllipticCurvePrivateKey:
        return ec.generate_private_key(ec.SECP256R1())

    def issue(
        self,
        subject: str,
        *,
        issuer: IssuedCertificate | None = None,
        key: ec.EllipticCurvePrivateKey | None = None,
        issuer_name: str | None = None,
        issuer_key: ec.EllipticCurvePrivateKey | None = None,
        with_key_ids: bool = True,
    ) -> IssuedCertificate:
        """
        Issue a certificate for `subject`.

        Without `issuer` the certificate is self-signed, unless `issuer_name`
        and `issuer_key` describe a signer explicitly (used to forge
        cross-signatures between existing keys).
        """
        key = key or self.key()
        if issuer is not None:
            signer_name = issuer.certificate.subject
            signer_key = issuer.key
        elif issuer_key is not None:
            signer_name = make_name(issuer_name or subject)
            signer_key = issuer_key
        else:
            signer_name = make_name(subject)
            signer_key = key

        self._serial += 1
        builder = (
            x509.CertificateBuilder()
            .subject_name(make_name(subject))
            .issuer_name(signer_name)
            .public_key(key.public_key())
            .serial_number(self._serial)
            .not_valid_before(self._NOT_BEFORE)
            .not_valid_after(self._NOT_AFTER)
            .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        )
        if with_key_ids:
            builder = builder.add_extension(
                x509.SubjectKeyIdentifier.from_public_key(key.public_key()), critical=False
            ).add_extension(
                x509.AuthorityKeyIdentifier.from_issuer_public_key(signer_key.public_key()),
                critical=False,
            )
        return IssuedCertificate(builder.sign(signer_key, hashes.SHA256()), key)


def record_of(issued: IssuedCertificate, origin: str, position: int | None = None) -> CertificateRecord:
    return CertificateRecord.from_certificate(issued.certificate, issued.der, origin, position)


def write_pem_bundle(path: Path, certificates: Iterable[IssuedCertificate]) -> None:
    path.write_bytes(b"".join(issued.pem for issued in certificates))


@pytest.fixture(scope="session")
def factory() -> CertificateFactory:
    return CertificateFactory()


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Undo any structlog.configure() a test performed."""
    yield
    structlog.reset_defaults()
