from typing import Sequence

import aiohttp
from bs4 import BeautifulSoup

from src.config.logger_config import logger
from src.refindex.domain.rules import REFERENCE_DIR, normalize_base_url
from src.refindex.infrastructure.repository_client import PackageRepositoryClient


def looks_like_reference_index(html: str) -> bool:
    soup = BeautifulSoup(html, "html.parser")
    generator = soup.find("meta", attrs={"name": "generator"})
    if generator is not None and "pkgdown" in str(generator.get("content", "")).lower():
        return True
    title = soup.title.get_text(" ", strip=True).lower() if soup.title else ""
    return "reference" in title or "package index" in title


class PkgdownSiteProbe:
    """Finds which of a package's advertised URLs hosts a pkgdown reference index."""

    def __init__(self, client: PackageRepositoryClient) -> None:
        self.client = client

    async def find_base_url(
        self,
        session: aiohttp.ClientSession,
        package: str,
        candidate_urls: Sequence[str],
    ) -> str | None:
        for candidate in candidate_urls:
            base_url = normalize_base_url(candidate)
            body = await self.client.get_bytes(
                session,
                f"{base_url}{REFERENCE_DIR}index.html",
                operation="probe_site",
                package=package,
            )
            if body is None:
                continue
            if looks_like_reference_index(body.decode("utf-8", errors="replace")):
                logger.info("Resolved documentation site: package={}, base_url={}", package, base_url)
                return base_url
            logger.debug("Candidate is not a reference index: package={}, url={}", package, base_url)
        logger.warning("No documentation site found: package={}, candidates={}", package, list(candidate_urls))
        return None
