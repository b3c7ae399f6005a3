from __future__ import annotations
import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping, Sequence

from src.config.logger_config import logger
from src.config.settings import Settings, load_settings
from src.refindex.application.workflows.build_catalog import BuildCatalogConfig, BuildCatalogWorkflow
from src.refindex.domain.models import BuildResult, PackageRequest
from src.refindex.infrastructure.catalog_sink import CatalogFileSink, JsonReportSink
from src.refindex.infrastructure.fetch_event_log import FetchEventLog
from src.refindex.infrastructure.rd_parser import RdTopicExtractor
from src.refindex.infrastructure.repository_client import PackageRepositoryClient
from src.refindex.infrastructure.scratch import scratch_workspace
from src.refindex.infrastructure.site_probe import PkgdownSiteProbe
from src.refindex.presets import get_preset

DEFAULT_CATALOG_NAME = "topics"

PackagesArg = Sequence[PackageRequest | str] | Mapping[str, str | None]


def parse_package_spec(spec: str) -> PackageRequest:
    """Parse ``name`` or ``name=base_url`` into a request."""
    name, sep, base_url = spec.partition("=")
    name = name.strip()
    if not name:
        raise ValueError(f"Invalid package spec: {spec!r}")
    base_url = base_url.strip() if sep else ""
    return PackageRequest(package=name, base_url=base_url or None)


def to_requests(packages: PackagesArg) -> list[PackageRequest]:
    if isinstance(packages, Mapping):
        return [PackageRequest(package=name, base_url=url or None) for name, url in packages.items()]
    return [item if isinstance(item, PackageRequest) else parse_package_spec(item) for item in packages]


async def run_build_async(
    packages: PackagesArg | None = None,
    *,
    preset: str | None = None,
    pattern: str | None = None,
    repository_url: str | None = None,
    output_dir: str | Path | None = None,
    catalog_name: str | None = None,
    include_internal: bool = True,
    drop_deprecated: bool = False,
    resolve_missing_urls: bool = True,
    include_links: bool = False,
    timeout_seconds: float | None = None,
    max_concurrency: int | None = None,
    settings: Settings | None = None,
    show_progress: bool = True,
    write_outputs: bool = True,
) -> BuildResult:
    settings = settings or load_settings()
    selected = get_preset(preset) if preset else None
    requests = to_requests(packages) if packages else list(selected.packages if selected else ())
    if pattern is None and selected is not None:
        pattern = selected.pattern
    name = catalog_name or (selected.name if selected else DEFAULT_CATALOG_NAME)
    output_path = Path(output_dir) if output_dir is not None else settings.output_dir
    run_id = _build_run_id()

    event_log = FetchEventLog(output_path / "events", run_id=run_id)
    client = PackageRepositoryClient(
        repository_url=repository_url or settings.repository_url,
        timeout_seconds=timeout_seconds or settings.timeout_seconds,
        max_concurrency=max_concurrency or settings.max_concurrency,
        event_log=event_log,
    )
    workflow = BuildCatalogWorkflow(
        client=client,
        extractor=RdTopicExtractor(include_internal=include_internal),
        site_probe=PkgdownSiteProbe(client),
        config=BuildCatalogConfig(
            pattern=pattern,
            drop_deprecated=drop_deprecated,
            resolve_missing_urls=resolve_missing_urls,
            show_progress=show_progress,
        ),
    )
    logger.info("Catalog run started: run_id={}, catalog_name={}, output_dir={}", run_id, name, str(output_path))
    try:
        with scratch_workspace(prefix=run_id, root=settings.scratch_root) as workspace:
            result = await workflow.run(requests, workspace)
    finally:
        event_log.close()

    if write_outputs:
        CatalogFileSink(output_path, include_links=include_links).write_catalog(result.catalog, name)
        JsonReportSink(output_path).write_report(result.report, name)
    return result


def run_build(
    packages: PackagesArg | None = None,
    *,
    preset: str | None = None,
    pattern: str | None = None,
    repository_url: str | None = None,
    output_dir: str | Path | None = None,
    catalog_name: str | None = None,
    include_internal: bool = True,
    drop_deprecated: bool = False,
    resolve_missing_urls: bool = True,
    include_links: bool = False,
    timeout_seconds: float | None = None,
    max_concurrency: int | None = None,
    settings: Settings | None = None,
    show_progress: bool = True,
    write_outputs: bool = True,
) -> BuildResult:
    return asyncio.run(
        run_build_async(
            packages,
            preset=preset,
            pattern=pattern,
            repository_url=repository_url,
            output_dir=output_dir,
            catalog_name=catalog_name,
            include_internal=include_internal,
            drop_deprecated=drop_deprecated,
            resolve_missing_urls=resolve_missing_urls,
            include_links=include_links,
            timeout_seconds=timeout_seconds,
            max_concurrency=max_concurrency,
            settings=settings,
            show_progress=show_progress,
            write_outputs=write_outputs,
        )
    )


def _build_run_id() -> str:
    return datetime.now(timezone.utc).strftime("refindex_%Y%m%dT%H%M%S%fZ")
