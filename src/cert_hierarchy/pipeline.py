"""
Pipeline — the ROP chain from input paths to a repaired hierarchy.

Stages, connected on the railway:

  source.load(paths)                    → Result[list[CertificateRecord]]
    → ensure non-empty pool              → VALIDATION_ERROR otherwise
      → CertificateGraph(records)
        → compute_hierarchy(graph)       → Result[CertificateGraph]

The hierarchy core never fails on bad input; an exception escaping it is a
bug and is captured as TECHNICAL_ERROR at this boundary.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

from railway import ErrorCode
from railway.result import Result

from cert_hierarchy.domain.graph import CertificateGraph
from cert_hierarchy.domain.models import CertificateRecord
from cert_hierarchy.domain.ports import CertificateSource, IssuerCheck
from cert_hierarchy.hierarchy import compute_hierarchy


def build_hierarchy(
    records: list[CertificateRecord],
    is_issuer: IssuerCheck,
) -> Result[CertificateGraph]:
    """Wrap records in a fresh arena and compute its hierarchy."""

    def _compute() -> CertificateGraph:
        graph = CertificateGraph(records)
        compute_hierarchy(graph, is_issuer)
        return graph

    return Result.from_computation(
        _compute,
        ErrorCode.TECHNICAL_ERROR,
        "Failed to compute certificate hierarchy",
    )


def run_pipeline(
    source: CertificateSource,
    is_issuer: IssuerCheck,
    paths: Iterable[Path],
) -> Result[CertificateGraph]:
    """
    Load the certificate pool from `paths` and build its issuance graph.

    Returns Result[CertificateGraph] on success, or the failure of the first
    failing stage.
    """
    return (
        source.load(paths)
        .ensure(
            lambda records: len(records) > 0,
            ErrorCode.VALIDATION_ERROR,
            "No certificates found in the given paths",
        )
        .flat_map(lambda records: build_hierarchy(records, is_issuer))
    )
