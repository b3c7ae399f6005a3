from pathlib import Path
from typing import Protocol, Sequence, runtime_checkable

import aiohttp

from src.refindex.domain.models import (
    BuildReport,
    CatalogRow,
    FetchedArchive,
    PackageDescription,
    RawTopicRecord,
)


@runtime_checkable
class PackageRepositoryPort(Protocol):
    async def fetch_archives(
        self,
        session: aiohttp.ClientSession,
        packages: Sequence[str],
        dest_dir: str | Path,
        progress_callback=None,
    ) -> list[FetchedArchive]:
        """Download every requested archive or raise RetrievalError."""
        ...


@runtime_checkable
class TopicExtractorPort(Protocol):
    def extract(self, package_dir: str | Path, package: str) -> list[RawTopicRecord]:
        """Flatten a package's documentation metadata into one record per alias."""
        ...

    def describe(self, package_dir: str | Path, package: str) -> PackageDescription: ...


@runtime_checkable
class SiteProbePort(Protocol):
    async def find_base_url(
        self,
        session: aiohttp.ClientSession,
        package: str,
        candidate_urls: Sequence[str],
    ) -> str | None: ...


@runtime_checkable
class CatalogSinkPort(Protocol):
    def write_catalog(self, catalog: Sequence[CatalogRow], name: str) -> list[Path]: ...


@runtime_checkable
class ReportSinkPort(Protocol):
    def write_report(self, report: BuildReport, name: str) -> Path: ...
