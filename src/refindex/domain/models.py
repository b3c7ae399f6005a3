from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from src.refindex.domain.rules import build_topic_link


@dataclass(frozen=True)
class PackageRequest:
    package: str
    base_url: str | None = None


@dataclass(frozen=True)
class FetchedArchive:
    package: str
    version: str
    archive_path: Path


@dataclass(frozen=True)
class PackageDescription:
    package: str
    version: str | None
    urls: tuple[str, ...] = field(default_factory=tuple)
    encoding: str | None = None


@dataclass(frozen=True)
class RawTopicRecord:
    alias: str
    title: str | None
    package: str
    file_out: str
    internal: bool = False


@dataclass(frozen=True)
class JoinedTopic:
    alias: str | None
    url: str | None
    title: str | None
    package: str | None


@dataclass(frozen=True)
class CatalogRow:
    alias: str
    url: str
    title: str
    package: str

    def to_dict(self, include_link: bool = False) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "alias": self.alias,
            "url": self.url,
            "title": self.title,
            "package": self.package,
        }
        if include_link:
            payload["topic"] = build_topic_link(self.alias, self.url)
        return payload


@dataclass(frozen=True)
class BuildReport:
    requested_total: int
    retrieved_total: int
    topic_records_total: int
    joined_total: int
    catalog_total: int
    excluded_total: int
    degraded_packages: tuple[str, ...]
    unresolved_packages: tuple[str, ...]
    package_versions: dict[str, str]
    duration_ms: int
    generated_at: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "requested_total": self.requested_total,
            "retrieved_total": self.retrieved_total,
            "topic_records_total": self.topic_records_total,
            "joined_total": self.joined_total,
            "catalog_total": self.catalog_total,
            "excluded_total": self.excluded_total,
            "degraded_packages": list(self.degraded_packages),
            "unresolved_packages": list(self.unresolved_packages),
            "package_versions": dict(self.package_versions),
            "duration_ms": self.duration_ms,
            "generated_at": self.generated_at,
        }


@dataclass(frozen=True)
class BuildResult:
    catalog: tuple[CatalogRow, ...]
    report: BuildReport
