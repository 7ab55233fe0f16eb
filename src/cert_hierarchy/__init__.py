"""
cert_hierarchy — X.509 issuance hierarchy reconstruction.

Loads a pool of certificates (PEM, DER, PKCS#7 bundles), removes
byte-identical duplicates, links every certificate to the certificates
that issued it, and breaks circular issuance claims so the resulting
parent/child graph is acyclic.

Error handling at the adapter boundary uses the Railway-Oriented
Programming (ROP) framework; the hierarchy core itself never fails.
"""

__version__ = "0.1.0"
