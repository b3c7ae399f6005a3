"""Infrastructure adapters for the topic catalog build."""

from src.refindex.infrastructure.archive import unpack_archives
from src.refindex.infrastructure.catalog_sink import CatalogFileSink, JsonReportSink
from src.refindex.infrastructure.fetch_event_log import FetchEventLog
from src.refindex.infrastructure.rd_parser import RdTopicExtractor
from src.refindex.infrastructure.repository_client import PackageRepositoryClient
from src.refindex.infrastructure.scratch import scratch_workspace
from src.refindex.infrastructure.site_probe import PkgdownSiteProbe

__all__ = [
    "CatalogFileSink",
    "FetchEventLog",
    "JsonReportSink",
    "PackageRepositoryClient",
    "PkgdownSiteProbe",
    "RdTopicExtractor",
    "scratch_workspace",
    "unpack_archives",
]
