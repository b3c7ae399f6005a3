import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Sequence

import aiohttp

from src.config.logger_config import logger
from src.config.settings import DEFAULT_MAX_CONCURRENCY, DEFAULT_REPOSITORY_URL, DEFAULT_TIMEOUT_SECONDS
from src.refindex.domain.errors import RetrievalError
from src.refindex.domain.models import FetchedArchive
from src.refindex.infrastructure.dcf import parse_dcf
from src.refindex.infrastructure.fetch_event_log import (
    OUTCOME_HTTP_ERROR,
    OUTCOME_NETWORK_ERROR,
    OUTCOME_SUCCESS,
    OUTCOME_UNEXPECTED_ERROR,
    FetchEventLog,
)

DownloadProgressCallback = Callable[[str, bool], None]

_NETWORK_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)


class PackageRepositoryClient:
    """Downloads source archives from a CRAN-style package repository.

    A single failed request is final: nothing is retried, and any package
    that cannot be retrieved aborts the whole fetch with ``RetrievalError``.
    """

    def __init__(
        self,
        repository_url: str = DEFAULT_REPOSITORY_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        event_log: FetchEventLog | None = None,
    ) -> None:
        self.repository_url = repository_url
        self.timeout_seconds = timeout_seconds
        self.max_concurrency = max_concurrency
        self.event_log = event_log

    @property
    def contrib_url(self) -> str:
        return f"{self.repository_url.rstrip('/')}/src/contrib"

    def archive_url(self, package: str, version: str) -> str:
        return f"{self.contrib_url}/{package}_{version}.tar.gz"

    async def fetch_index(self, session: aiohttp.ClientSession) -> dict[str, str] | None:
        body = await self.get_bytes(session, f"{self.contrib_url}/PACKAGES", operation="fetch_index")
        if body is None:
            return None
        index: dict[str, str] = {}
        for record in parse_dcf(body.decode("utf-8", errors="replace")):
            name = record.get("Package")
            version = record.get("Version")
            if name and version:
                index[name] = version
        logger.info("Repository index loaded: repository_url={}, packages={}", self.repository_url, len(index))
        return index

    async def download_archive(
        self,
        session: aiohttp.ClientSession,
        package: str,
        version: str,
        dest_dir: Path,
    ) -> FetchedArchive | None:
        url = self.archive_url(package, version)
        body = await self.get_bytes(session, url, operation="download_archive", package=package)
        if body is None:
            return None
        archive_path = dest_dir / f"{package}_{version}.tar.gz"
        archive_path.write_bytes(body)
        logger.debug("Archive saved: package={}, version={}, path={}", package, version, str(archive_path))
        return FetchedArchive(package=package, version=version, archive_path=archive_path)

    async def fetch_archives(
        self,
        session: aiohttp.ClientSession,
        packages: Sequence[str],
        dest_dir: str | Path,
        progress_callback: DownloadProgressCallback | None = None,
    ) -> list[FetchedArchive]:
        archive_dir = Path(dest_dir)
        archive_dir.mkdir(parents=True, exist_ok=True)

        index = await self.fetch_index(session)
        if index is None:
            raise RetrievalError(packages, detail="repository index unavailable")

        missing = [name for name in packages if name not in index]
        if missing:
            logger.error("Packages not found in repository index: {}", missing)

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _download(name: str) -> FetchedArchive | None:
            async with semaphore:
                archive = await self.download_archive(session, name, index[name], archive_dir)
            if progress_callback is not None:
                progress_callback(name, archive is not None)
            return archive

        available = [name for name in packages if name in index]
        results = await asyncio.gather(*(_download(name) for name in available))
        archives = {archive.package: archive for archive in results if archive is not None}

        failed = [name for name in packages if name not in archives]
        if failed:
            raise RetrievalError(failed)
        return [archives[name] for name in packages]

    async def get_bytes(
        self,
        session: aiohttp.ClientSession,
        url: str,
        *,
        operation: str,
        package: str | None = None,
    ) -> bytes | None:
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        started_at = datetime.now(timezone.utc)
        try:
            async with session.get(url, timeout=timeout) as resp:
                if resp.status != 200:
                    await self._record(operation, url, OUTCOME_HTTP_ERROR, started_at, package, http_status=resp.status)
                    logger.error("HTTP {} for {}: package={}", resp.status, url, package)
                    return None
                body = await resp.read()
                await self._record(
                    operation, url, OUTCOME_SUCCESS, started_at, package, http_status=resp.status, size_bytes=len(body)
                )
                return body
        except _NETWORK_ERRORS as exc:
            await self._record(
                operation,
                url,
                OUTCOME_NETWORK_ERROR,
                started_at,
                package,
                http_status=getattr(exc, "status", None),
                error=exc,
            )
            logger.error(
                "Request failed for {}: package={}, error_type={}, error={}",
                url,
                package,
                type(exc).__name__,
                exc,
            )
            return None
        except Exception as exc:
            await self._record(operation, url, OUTCOME_UNEXPECTED_ERROR, started_at, package, error=exc)
            logger.exception("Unexpected error requesting {}: package={}", url, package)
            return None

    async def _record(
        self,
        operation: str,
        url: str,
        outcome: str,
        started_at: datetime,
        package: str | None,
        *,
        http_status: int | None = None,
        size_bytes: int | None = None,
        error: BaseException | None = None,
    ) -> None:
        if self.event_log is None:
            return
        try:
            await self.event_log.write_fetch_event(
                operation=operation,
                url=url,
                outcome=outcome,
                started_at=started_at,
                package=package,
                http_status=http_status,
                size_bytes=size_bytes,
                error=error,
            )
        except Exception as exc:
            logger.warning("Failed to persist fetch event: {}", exc)
