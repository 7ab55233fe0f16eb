"""
Certificate loader adapter — files → CertificateRecord list.

Adapter layer — implements the CertificateSource port using:
  - asn1crypto: PEM unarmoring and CMS/PKCS#7 SignedData unwrapping
  - cryptography (PyCA): X.509 decoding (names, extensions, signature data)

Pipeline per file:
  raw bytes
    → PEM?  asn1crypto.pem.unarmor(multiple=True) → DER blocks
      else  the whole file is one DER block
    → each block: X.509 Certificate, or PKCS#7 SignedData whose
      `certificates` field holds the certificates
    → CertificateRecord(origin=file, position=index) — position is None
      when the file held exactly one certificate

A block that is neither a certificate nor a PKCS#7 bundle is logged and
skipped; the rest of the file still loads. A missing or unreadable path
fails the whole load through the Result railway.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path

import structlog
from asn1crypto import cms, pem
from cryptography import x509
from railway import ErrorCode
from railway.result import Result

from cert_hierarchy.domain.models import CertificateRecord

log = structlog.get_logger()

DEFAULT_SUFFIXES = (".pem", ".crt", ".cer", ".der", ".p7b", ".p7c")

_CERTIFICATE_PEM_TYPES = frozenset({"CERTIFICATE", "X509 CERTIFICATE", "TRUSTED CERTIFICATE"})
_PKCS7_PEM_TYPES = frozenset({"PKCS7", "CMS"})

# Raised while decoding a single certificate; any of them rejects that block only.
_UNDECODABLE = (ValueError, x509.DuplicateExtension, x509.UnsupportedGeneralNameType)


# ─────────────────────── Block Decoding ───────────────────────


def _split_blocks(data: bytes, origin: str) -> list[bytes]:
    """Return the DER blocks of a PEM file, or the file itself when it is not PEM."""
    if not pem.detect(data):
        return [data]

    blocks: list[bytes] = []
    for type_name, _headers, der_bytes in pem.unarmor(data, multiple=True):
        if type_name in _CERTIFICATE_PEM_TYPES or type_name in _PKCS7_PEM_TYPES:
            blocks.append(der_bytes)
        else:
            log.debug("loader.pem_block_ignored", origin=origin, pem_type=type_name)
    return blocks


def _unwrap_pkcs7(der_bytes: bytes) -> list[bytes]:
    """Extract the DER certificates carried in a CMS/PKCS#7 SignedData bundle."""
    content_info = cms.ContentInfo.load(der_bytes)
    if content_info["content_type"].native != "signed_data":
        raise ValueError(f"Unsupported CMS content type: {content_info['content_type'].native}")
    certs_set = content_info["content"]["certificates"]
    if not certs_set:
        return []
    return [cert_choice.chosen.dump() for cert_choice in certs_set if cert_choice.name == "certificate"]


def _decode_block(der_bytes: bytes) -> list[tuple[x509.Certificate, bytes]]:
    """
    Decode one DER block into (certificate, original DER) pairs.

    Tries a plain X.509 certificate first, then a PKCS#7 bundle.
    Raises ValueError when the block is neither, and DuplicateExtension or
    UnsupportedGeneralNameType when a certificate carries unusable extensions.
    """
    try:
        certificate = x509.load_der_x509_certificate(der_bytes)
    except ValueError as cert_error:
        try:
            inner = _unwrap_pkcs7(der_bytes)
        except (ValueError, TypeError, KeyError) as cms_error:
            raise ValueError(
                f"Neither an X.509 certificate ({cert_error}) nor a PKCS#7 bundle ({cms_error})"
            ) from cms_error
        pairs = [(x509.load_der_x509_certificate(der), der) for der in inner]
    else:
        pairs = [(certificate, der_bytes)]

    for certificate, _der in pairs:
        # Extensions are parsed lazily; malformed ones raise here.
        certificate.extensions  # noqa: B018
    return pairs


def _decode_certificates(data: bytes, origin: str) -> list[tuple[x509.Certificate, bytes]]:
    """Decode every certificate in a file's content, skipping undecodable blocks."""
    decoded: list[tuple[x509.Certificate, bytes]] = []
    for block_index, der_bytes in enumerate(_split_blocks(data, origin)):
        try:
            decoded.extend(_decode_block(der_bytes))
        except _UNDECODABLE as e:
            log.warning(
                "loader.block_skipped",
                origin=origin,
                block=block_index,
                error=str(e),
            )
    return decoded


def _to_records(
    decoded: list[tuple[x509.Certificate, bytes]],
    origin: str,
) -> list[CertificateRecord]:
    """Wrap decoded certificates into records; a lone certificate gets no position."""
    single = len(decoded) == 1
    return [
        CertificateRecord.from_certificate(
            certificate,
            der=der_bytes,
            origin=origin,
            position=None if single else position,
        )
        for position, (certificate, der_bytes) in enumerate(decoded)
    ]


# ─────────────────────── Public Loader Class ───────────────────────


class FileCertificateSource:
    """
    Load certificates from files and directories.

    Implements the CertificateSource port. Directories are expanded to the
    files whose suffix is in `suffixes`, in sorted order (recursively unless
    `recursive` is False) so repeated runs see the same input order.
    """

    def __init__(
        self,
        suffixes: Iterable[str] = DEFAULT_SUFFIXES,
        recursive: bool = True,
    ) -> None:
        self._suffixes = frozenset(suffix.lower() for suffix in suffixes)
        self._recursive = recursive

    def load(self, paths: Iterable[Path]) -> Result[list[CertificateRecord]]:
        """
        Load every certificate found under `paths`, in input order.

        Returns Result.failure(NOT_FOUND) for a path that does not exist and
        Result.failure(TECHNICAL_ERROR) for a file that cannot be read.
        """
        return (
            Result.all_of([self.load_path(Path(path)) for path in paths])
            .map(lambda per_path: [record for records in per_path for record in records])
            .peek(lambda records: log.info("loader.complete", certificates=len(records)))
        )

    def load_path(self, path: Path) -> Result[list[CertificateRecord]]:
        """Load one file, or every matching file below one directory."""
        if not path.exists():
            return Result.failure(ErrorCode.NOT_FOUND, f"Certificate path not found: {path}")
        if path.is_dir():
            return Result.all_of([self.load_file(file) for file in self._expand(path)]).map(
                lambda per_file: [record for records in per_file for record in records]
            )
        return self.load_file(path)

    def load_file(self, path: Path) -> Result[list[CertificateRecord]]:
        """Read and decode a single file."""
        return (
            Result.from_computation(
                path.read_bytes,
                ErrorCode.TECHNICAL_ERROR,
                f"Failed to read certificate file {path}",
            )
            .flat_map(lambda data: Result.from_computation(
                lambda: _to_records(_decode_certificates(data, str(path)), str(path)),
                ErrorCode.VALIDATION_ERROR,
                f"Malformed certificate file {path}",
            ))
            .peek(lambda records: log.debug("loader.file_loaded", origin=str(path), certificates=len(records)))
        )

    def _expand(self, directory: Path) -> Iterator[Path]:
        pattern = "**/*" if self._recursive else "*"
        for candidate in sorted(directory.glob(pattern)):
            if candidate.is_file() and candidate.suffix.lower() in self._suffixes:
                yield candidate
