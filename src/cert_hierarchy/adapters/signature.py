"""
Signature verification adapter — cryptography (PyCA) backed.

Implements the SignatureVerifier port: checks that a child certificate's
signature over its TBSCertificate validates under the issuer certificate's
public key, using the signature algorithm declared by the child.

Verification is delegated to Certificate.verify_directly_issued_by, which
covers RSA (PKCS#1 v1.5 and PSS), ECDSA, DSA, Ed25519 and Ed448. Other key
types, and records without a decoded certificate, are reported as
"not verified", never raised.
"""

from __future__ import annotations

import structlog
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm

from cert_hierarchy.domain.models import CertificateRecord

log = structlog.get_logger()


class CryptographySignatureVerifier:
    """
    Verify certificate signatures with cryptography's public key primitives.

    Implements the SignatureVerifier port.
    """

    def verify(self, issuer: CertificateRecord, child: CertificateRecord) -> bool:
        """True if `child` carries a valid signature made with the key of `issuer`."""
        if issuer.certificate is None or child.certificate is None:
            log.debug(
                "signature.not_decoded",
                issuer=issuer.location,
                child=child.location,
            )
            return False

        try:
            child.certificate.verify_directly_issued_by(issuer.certificate)
        except InvalidSignature:
            log.debug("signature.invalid", issuer=issuer.location, child=child.location)
            return False
        except (UnsupportedAlgorithm, ValueError, TypeError) as e:
            # ValueError also covers an issuer/subject name mismatch.
            log.warning(
                "signature.unverifiable",
                issuer=issuer.location,
                child=child.location,
                error=str(e),
            )
            return False
        return True
