"""Domain models, errors and pure table stages for the topic catalog."""

from src.refindex.domain.catalog import filter_catalog, flatten_topic_tables, join_topics, sort_and_dedupe
from src.refindex.domain.errors import CatalogBuildError, MetadataParseError, RetrievalError, UnpackError
from src.refindex.domain.models import (
    BuildReport,
    BuildResult,
    CatalogRow,
    FetchedArchive,
    JoinedTopic,
    PackageDescription,
    PackageRequest,
    RawTopicRecord,
)

__all__ = [
    "BuildReport",
    "BuildResult",
    "CatalogBuildError",
    "CatalogRow",
    "FetchedArchive",
    "filter_catalog",
    "flatten_topic_tables",
    "join_topics",
    "JoinedTopic",
    "MetadataParseError",
    "PackageDescription",
    "PackageRequest",
    "RawTopicRecord",
    "RetrievalError",
    "sort_and_dedupe",
    "UnpackError",
]
