"""
OID registry adapter — symbolic names for X.509 extension identifiers.

Implements the ExtensionIdResolver port on top of the OID constants shipped
with cryptography (PyCA). Names follow the RFC 5280 ASN.1 module spelling
(`id-ce-subjectKeyIdentifier`, `id-pe-authorityInfoAccess`, ...), so the
hierarchy core can look extensions up by the same names the RFCs use.
"""

from __future__ import annotations

from collections.abc import Mapping

from cryptography.x509 import ObjectIdentifier
from cryptography.x509.oid import ExtensionOID

from cert_hierarchy.domain.ports import AUTHORITY_KEY_IDENTIFIER, SUBJECT_KEY_IDENTIFIER

_RFC5280_EXTENSION_NAMES: dict[str, ObjectIdentifier] = {
    SUBJECT_KEY_IDENTIFIER: ExtensionOID.SUBJECT_KEY_IDENTIFIER,
    AUTHORITY_KEY_IDENTIFIER: ExtensionOID.AUTHORITY_KEY_IDENTIFIER,
    "id-ce-keyUsage": ExtensionOID.KEY_USAGE,
    "id-ce-extKeyUsage": ExtensionOID.EXTENDED_KEY_USAGE,
    "id-ce-basicConstraints": ExtensionOID.BASIC_CONSTRAINTS,
    "id-ce-nameConstraints": ExtensionOID.NAME_CONSTRAINTS,
    "id-ce-policyConstraints": ExtensionOID.POLICY_CONSTRAINTS,
    "id-ce-certificatePolicies": ExtensionOID.CERTIFICATE_POLICIES,
    "id-ce-policyMappings": ExtensionOID.POLICY_MAPPINGS,
    "id-ce-inhibitAnyPolicy": ExtensionOID.INHIBIT_ANY_POLICY,
    "id-ce-subjectAltName": ExtensionOID.SUBJECT_ALTERNATIVE_NAME,
    "id-ce-issuerAltName": ExtensionOID.ISSUER_ALTERNATIVE_NAME,
    "id-ce-subjectDirectoryAttributes": ExtensionOID.SUBJECT_DIRECTORY_ATTRIBUTES,
    "id-ce-cRLDistributionPoints": ExtensionOID.CRL_DISTRIBUTION_POINTS,
    "id-ce-freshestCRL": ExtensionOID.FRESHEST_CRL,
    "id-pe-authorityInfoAccess": ExtensionOID.AUTHORITY_INFORMATION_ACCESS,
    "id-pe-subjectInfoAccess": ExtensionOID.SUBJECT_INFORMATION_ACCESS,
    "id-pe-tlsfeature": ExtensionOID.TLS_FEATURE,
    "id-pe-ocsp-nocheck": ExtensionOID.OCSP_NO_CHECK,
}


class OidRegistry:
    """
    Bidirectional name ⇄ OID table for certificate extensions.

    Implements the ExtensionIdResolver port. Extra entries (private or
    vendor extensions) can be supplied at construction time; they take
    precedence over the built-in RFC 5280 names.
    """

    def __init__(self, extra: Mapping[str, ObjectIdentifier] | None = None) -> None:
        self._by_name = dict(_RFC5280_EXTENSION_NAMES)
        if extra:
            self._by_name.update(extra)
        self._by_oid = {oid: name for name, oid in self._by_name.items()}

    def lookup(self, name: str) -> ObjectIdentifier:
        """Return the OID registered under `name`. Raises KeyError when unknown."""
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"Unknown extension name: {name!r}") from None

    def name_of(self, oid: ObjectIdentifier) -> str:
        """Symbolic name of an OID, or its dotted string when it is not registered."""
        return self._by_oid.get(oid, oid.dotted_string)
