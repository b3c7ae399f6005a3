"""Searchable reference-topic catalog built from package documentation."""

from src.refindex.build import parse_package_spec, run_build, run_build_async
from src.refindex.domain.errors import CatalogBuildError, MetadataParseError, RetrievalError, UnpackError
from src.refindex.domain.models import BuildResult, CatalogRow, PackageRequest

__all__ = [
    "BuildResult",
    "CatalogBuildError",
    "CatalogRow",
    "MetadataParseError",
    "PackageRequest",
    "parse_package_spec",
    "RetrievalError",
    "run_build",
    "run_build_async",
    "UnpackError",
]
