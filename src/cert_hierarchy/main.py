"""
Application entry point — wires dependencies and runs the pipeline once.

Composition root: creates concrete adapters and injects them into the
pipeline. This is the ONLY place where concrete classes are instantiated;
everything else depends on Protocol interfaces.

Responsibilities:
  1. Load and validate configuration from environment
  2. Configure structlog
  3. Create concrete adapters (loader, OID registry, signature verifier)
  4. Run the pipeline and log a summary of the resulting hierarchy
"""

from __future__ import annotations

import logging
import sys

import structlog
from railway.failure import FailureDescription

from cert_hierarchy import __version__
from cert_hierarchy.adapters.oid_registry import OidRegistry
from cert_hierarchy.adapters.signature import CryptographySignatureVerifier
from cert_hierarchy.adapters.x509_loader import FileCertificateSource
from cert_hierarchy.config import AppSettings
from cert_hierarchy.domain.graph import CertificateGraph
from cert_hierarchy.issuer import IssuerPredicate
from cert_hierarchy.pipeline import run_pipeline


def configure_structlog(log_level: str = "INFO") -> None:
    """
    Configure structlog for human-readable console logging.

    Unknown level names fall back to INFO.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _create_adapters(settings: AppSettings) -> tuple[FileCertificateSource, IssuerPredicate]:
    """Instantiate the certificate source and the issuer predicate from settings."""
    source = FileCertificateSource(
        suffixes=settings.loader.suffixes,
        recursive=settings.loader.recursive,
    )
    predicate = IssuerPredicate(
        verifier=CryptographySignatureVerifier(),
        oids=OidRegistry(),
    )
    return source, predicate


def _log_summary(graph: CertificateGraph) -> None:
    log = structlog.get_logger()
    for root in graph.roots():
        log.info(
            "app.root",
            certificate=graph[root].location,
            subject=graph[root].subject.rfc4514_string(),
            children=graph.child_count(root),
        )
    log.info("app.done", certificates=len(graph), edges=graph.edge_count)


def _log_failure(error: FailureDescription) -> None:
    structlog.get_logger().error(
        "app.pipeline_failed",
        code=error.code.value,
        error=error.message,
        cause=str(error.exception) if error.exception else None,
    )


def main() -> int:
    """Build the hierarchy of the configured certificate pool. Returns the exit code."""
    try:
        settings = AppSettings()
    except Exception as e:
        print(f"FATAL: Configuration error — {e}", file=sys.stderr)  # noqa: T201
        return 1

    configure_structlog(settings.log_level)
    log = structlog.get_logger()
    log.info(
        "app.starting",
        version=__version__,
        log_level=settings.log_level,
        inputs=[str(path) for path in settings.input_paths],
    )

    source, predicate = _create_adapters(settings)
    result = run_pipeline(source, predicate, settings.input_paths)

    if result.is_success():
        _log_summary(result.value())
        return 0
    _log_failure(result.error())
    return 1


if __name__ == "__main__":
    sys.exit(main())
