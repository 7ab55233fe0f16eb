"""
Issuer predicate — does certificate A issue certificate B?

Domain layer. Three checks, all of which must pass:

  1. child.issuer == issuer.subject         (structured Name equality)
  2. child AKI keyIdentifier == issuer SKI   (only when the child's AKI
                                              carries a non-empty keyIdentifier)
  3. child signature verifies under the issuer's public key

Diagnostics for failed checks 2 and 3 go to structlog; they never change
the boolean answer. A name mismatch (check 1) is the common case and is
not logged.
"""

from __future__ import annotations

import structlog
from cryptography import x509

from cert_hierarchy.domain.models import CertificateRecord
from cert_hierarchy.domain.ports import (
    AUTHORITY_KEY_IDENTIFIER,
    SUBJECT_KEY_IDENTIFIER,
    ExtensionIdResolver,
    SignatureVerifier,
)

log = structlog.get_logger()


class IssuerPredicate:
    """
    Decide issuance between two certificate records.

    The extension OIDs are resolved once, at construction time, through the
    ExtensionIdResolver port; signature checks are delegated to the
    SignatureVerifier port.
    """

    def __init__(self, verifier: SignatureVerifier, oids: ExtensionIdResolver) -> None:
        self._verifier = verifier
        self._aki_oid = oids.lookup(AUTHORITY_KEY_IDENTIFIER)
        self._ski_oid = oids.lookup(SUBJECT_KEY_IDENTIFIER)

    def __call__(self, issuer: CertificateRecord, child: CertificateRecord) -> bool:
        return self.is_issuer(issuer, child)

    def is_issuer(self, issuer: CertificateRecord, child: CertificateRecord) -> bool:
        """True if `issuer` is a valid issuer of `child`."""
        if child.issuer != issuer.subject:
            return False

        if not self._key_identifiers_match(issuer, child):
            return False

        if not self._verifier.verify(issuer, child):
            log.error(
                "issuer.signature_invalid",
                child=child.location,
                issuer=issuer.location,
                message="Claimed child not verified by authority certificate",
            )
            return False

        return True

    def is_self_signed(self, record: CertificateRecord) -> bool:
        """True if the certificate is its own issuer."""
        return self.is_issuer(record, record)

    def _key_identifiers_match(
        self, issuer: CertificateRecord, child: CertificateRecord
    ) -> bool:
        """
        Compare the child's authorityKeyIdentifier with the issuer's subjectKeyIdentifier.

        A child without AKI, or with an AKI that only carries
        authorityCertIssuer/serial, does not discriminate: the check passes.
        """
        aki = child.extensions.get(self._aki_oid)
        if not isinstance(aki, x509.AuthorityKeyIdentifier) or not aki.key_identifier:
            return True

        ski = issuer.extensions.get(self._ski_oid)
        if not isinstance(ski, x509.SubjectKeyIdentifier):
            log.info(
                "issuer.missing_ski",
                issuer=issuer.location,
                child=child.location,
                message="Issuer with no subjectKeyIdentifier",
            )
            return False

        if ski.digest != aki.key_identifier:
            log.info(
                "issuer.ski_mismatch",
                issuer=issuer.location,
                child=child.location,
                message="Issuer with different subjectKeyIdentifier",
            )
            return False

        return True
