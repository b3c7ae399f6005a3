"""Pure table stages of the catalog build: join, filter, sort and dedupe.

Nothing here touches the network or the filesystem, so every stage can be
exercised against a fixed in-memory table.
"""

from typing import Iterable, Pattern, Sequence

from src.config.logger_config import logger
from src.refindex.domain.models import CatalogRow, JoinedTopic, PackageRequest, RawTopicRecord
from src.refindex.domain.rules import (
    DEPRECATED_RULE,
    EXCLUSION_RULES,
    ExclusionRule,
    build_topic_url,
    compile_alias_pattern,
    normalize_title,
)


def flatten_topic_tables(tables: Iterable[Sequence[RawTopicRecord]]) -> list[RawTopicRecord]:
    return [record for table in tables for record in table]


def join_topics(
    tables: Iterable[Sequence[RawTopicRecord]],
    requests: Sequence[PackageRequest],
) -> list[JoinedTopic]:
    base_urls = {request.package: request.base_url for request in requests}
    joined: list[JoinedTopic] = []
    dropped = 0
    for record in flatten_topic_tables(tables):
        if record.package not in base_urls:
            dropped += 1
            continue
        base_url = base_urls[record.package]
        joined.append(
            JoinedTopic(
                alias=record.alias,
                url=build_topic_url(base_url, record.file_out) if base_url and record.file_out else None,
                title=normalize_title(record.title) if record.title is not None else None,
                package=record.package,
            )
        )
    if dropped:
        logger.warning("Dropped {} topic rows without a matching package request", dropped)
    return joined


def filter_catalog(
    rows: Iterable[JoinedTopic],
    pattern: str | Pattern[str] | None = None,
    *,
    drop_deprecated: bool = False,
) -> list[CatalogRow]:
    alias_pattern = compile_alias_pattern(pattern)
    rules = EXCLUSION_RULES + ((DEPRECATED_RULE,) if drop_deprecated else ())

    kept: list[CatalogRow] = []
    for row in rows:
        if row.alias is None or not alias_pattern.search(row.alias):
            continue
        if not (row.alias and row.title and row.url and row.package):
            continue
        if _excluded_by(row, rules) is not None:
            continue
        kept.append(CatalogRow(alias=row.alias, url=row.url, title=row.title, package=row.package))

    return sort_and_dedupe(kept)


def sort_and_dedupe(rows: Iterable[CatalogRow]) -> list[CatalogRow]:
    # Full-key sort keeps the output independent of input order.
    ordered = sorted(rows, key=lambda row: (row.alias, row.package, row.url, row.title))
    seen: set[tuple[str, str, str]] = set()
    result: list[CatalogRow] = []
    for row in ordered:
        key = (row.alias, row.package, row.url)
        if key in seen:
            continue
        seen.add(key)
        result.append(row)
    return result


def _excluded_by(row: JoinedTopic, rules: Sequence[ExclusionRule]) -> str | None:
    for rule in rules:
        value = getattr(row, rule.field)
        if value is not None and rule.matches(value):
            return rule.rule_id
    return None
