from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from time import perf_counter
from typing import Callable, Sequence

import aiohttp
from tqdm import tqdm

from src.config.logger_config import logger
from src.refindex.application.ports import PackageRepositoryPort, SiteProbePort, TopicExtractorPort
from src.refindex.domain.catalog import filter_catalog, join_topics
from src.refindex.domain.errors import MetadataParseError
from src.refindex.domain.models import (
    BuildReport,
    BuildResult,
    PackageDescription,
    PackageRequest,
    RawTopicRecord,
)
from src.refindex.infrastructure.archive import unpack_archives

SessionFactory = Callable[[], aiohttp.ClientSession]


@dataclass(frozen=True)
class BuildCatalogConfig:
    pattern: str | None = None
    drop_deprecated: bool = False
    resolve_missing_urls: bool = True
    show_progress: bool = True
    connector_limit: int = 0
    connector_limit_per_host: int = 10
    connector_ttl_dns_cache: int = 300


class BuildCatalogWorkflow:
    """Fetch, unpack, extract, join and filter; strictly in that order."""

    def __init__(
        self,
        client: PackageRepositoryPort,
        extractor: TopicExtractorPort,
        site_probe: SiteProbePort | None = None,
        config: BuildCatalogConfig | None = None,
        session_factory: SessionFactory | None = None,
    ) -> None:
        self.client = client
        self.extractor = extractor
        self.site_probe = site_probe
        self.config = config or BuildCatalogConfig()
        self.session_factory = session_factory or self._default_session

    async def run(self, requests: Sequence[PackageRequest], workspace: str | Path) -> BuildResult:
        started = perf_counter()
        validate_requests(requests)
        scratch = Path(workspace)
        names = [request.package for request in requests]
        logger.info(
            "Catalog build started: packages={}, pattern={}, drop_deprecated={}, resolve_missing_urls={}",
            len(names),
            self.config.pattern,
            self.config.drop_deprecated,
            self.config.resolve_missing_urls,
        )

        async with self.session_factory() as session:
            with tqdm(
                total=len(names),
                desc="Fetch packages",
                unit=" pkg",
                leave=True,
                disable=not self.config.show_progress,
            ) as progress:
                archives = await self.client.fetch_archives(
                    session,
                    names,
                    scratch / "archives",
                    progress_callback=lambda _package, _ok: progress.update(1),
                )
            package_dirs = unpack_archives(archives, scratch / "src")
            tables, descriptions, degraded = self._extract_all(names, package_dirs)
            resolved, unresolved = await self._resolve_base_urls(session, requests, descriptions)

        joined = join_topics(tables, resolved)
        catalog = filter_catalog(joined, self.config.pattern, drop_deprecated=self.config.drop_deprecated)
        report = BuildReport(
            requested_total=len(names),
            retrieved_total=len(archives),
            topic_records_total=sum(len(table) for table in tables),
            joined_total=len(joined),
            catalog_total=len(catalog),
            excluded_total=len(joined) - len(catalog),
            degraded_packages=tuple(degraded),
            unresolved_packages=tuple(unresolved),
            package_versions={archive.package: archive.version for archive in archives},
            duration_ms=int((perf_counter() - started) * 1000),
            generated_at=datetime.now(timezone.utc).isoformat(),
        )
        logger.info(
            "Catalog build completed: requested_total={}, topic_records_total={}, joined_total={}, catalog_total={}, excluded_total={}, degraded_packages={}, unresolved_packages={}, duration_ms={}",
            report.requested_total,
            report.topic_records_total,
            report.joined_total,
            report.catalog_total,
            report.excluded_total,
            list(report.degraded_packages),
            list(report.unresolved_packages),
            report.duration_ms,
        )
        return BuildResult(catalog=tuple(catalog), report=report)

    def _extract_all(
        self,
        names: Sequence[str],
        package_dirs: dict[str, Path],
    ) -> tuple[list[list[RawTopicRecord]], dict[str, PackageDescription], list[str]]:
        tables: list[list[RawTopicRecord]] = []
        descriptions: dict[str, PackageDescription] = {}
        degraded: list[str] = []
        for name in tqdm(
            names,
            total=len(names),
            desc="Extract topics",
            unit=" pkg",
            leave=True,
            disable=not self.config.show_progress,
        ):
            package_dir = package_dirs[name]
            descriptions[name] = self.extractor.describe(package_dir, name)
            try:
                table = self.extractor.extract(package_dir, name)
            except MetadataParseError as exc:
                logger.warning(
                    "Documentation metadata unreadable, package indexed as empty: package={}, path={}, reason={}",
                    name,
                    exc.path,
                    exc.reason,
                )
                degraded.append(name)
                table = []
            tables.append(table)
        return tables, descriptions, degraded

    async def _resolve_base_urls(
        self,
        session: aiohttp.ClientSession,
        requests: Sequence[PackageRequest],
        descriptions: dict[str, PackageDescription],
    ) -> tuple[list[PackageRequest], list[str]]:
        resolved: list[PackageRequest] = []
        unresolved: list[str] = []
        for request in requests:
            if request.base_url:
                resolved.append(request)
                continue
            base_url = None
            if self.config.resolve_missing_urls and self.site_probe is not None:
                description = descriptions.get(request.package)
                candidates = description.urls if description is not None else ()
                base_url = await self.site_probe.find_base_url(session, request.package, candidates)
            if base_url is None:
                unresolved.append(request.package)
                logger.warning("Package has no documentation base URL, its topics are dropped: package={}", request.package)
            resolved.append(replace(request, base_url=base_url))
        return resolved, unresolved

    def _default_session(self) -> aiohttp.ClientSession:
        connector = aiohttp.TCPConnector(
            limit=self.config.connector_limit,
            limit_per_host=self.config.connector_limit_per_host,
            ttl_dns_cache=self.config.connector_ttl_dns_cache,
        )
        return aiohttp.ClientSession(connector=connector)


async def build_catalog_async(
    requests: Sequence[PackageRequest],
    workspace: str | Path,
    *,
    client: PackageRepositoryPort,
    extractor: TopicExtractorPort,
    site_probe: SiteProbePort | None = None,
    config: BuildCatalogConfig | None = None,
    session_factory: SessionFactory | None = None,
) -> BuildResult:
    workflow = BuildCatalogWorkflow(
        client=client,
        extractor=extractor,
        site_probe=site_probe,
        config=config,
        session_factory=session_factory,
    )
    return await workflow.run(requests, workspace)


def validate_requests(requests: Sequence[PackageRequest]) -> None:
    if not requests:
        raise ValueError("At least one package must be requested.")
    seen: set[str] = set()
    duplicates: list[str] = []
    for request in requests:
        if not request.package:
            raise ValueError("Package identifiers must be non-empty.")
        if request.package in seen and request.package not in duplicates:
            duplicates.append(request.package)
        seen.add(request.package)
    if duplicates:
        raise ValueError(f"Duplicate package identifiers: {', '.join(duplicates)}")
