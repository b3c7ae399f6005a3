import re
from dataclasses import dataclass
from html import escape
from typing import Callable, Pattern

from pathvalidate import sanitize_filename as lib_sanitize

REFERENCE_DIR = "reference/"
PIPE_OPERATOR = "%>%"
PACKAGE_SENTINEL = "_PACKAGE"
MATCH_EVERYTHING = r"[\s\S]*"

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def build_topic_url(base_url: str, file_out: str) -> str:
    return f"{base_url}{REFERENCE_DIR}{file_out}"


def normalize_title(title: str) -> str:
    return _LINE_BREAK.sub(" ", title)


def normalize_base_url(url: str) -> str:
    return url.rstrip("/") + "/"


def build_topic_link(alias: str, url: str) -> str:
    return f"<a href='{escape(url, quote=True)}'  target='_blank'><tt>{escape(alias)}</tt></a>"


def sanitize_filename(name: str) -> str:
    safe_name = lib_sanitize(name, replacement_text="_")
    if not safe_name:
        return "catalog"
    return safe_name


def compile_alias_pattern(pattern: str | Pattern[str] | None) -> Pattern[str]:
    if pattern is None:
        return re.compile(MATCH_EVERYTHING)
    if isinstance(pattern, re.Pattern):
        return pattern
    return re.compile(pattern)


@dataclass(frozen=True)
class ExclusionRule:
    rule_id: str
    field: str
    matches: Callable[[str], bool]


# Applied in order; a row matching any rule is dropped.
EXCLUSION_RULES: tuple[ExclusionRule, ...] = (
    ExclusionRule("alias_reexport", "alias", lambda alias: "reexport" in alias),
    ExclusionRule("alias_package_suffix", "alias", lambda alias: alias.endswith("-package")),
    ExclusionRule("title_internal", "title", lambda title: title.startswith("Internal")),
    ExclusionRule("title_tidy_eval", "title", lambda title: title.startswith("Tidy eval")),
    ExclusionRule("alias_package_sentinel", "alias", lambda alias: alias == PACKAGE_SENTINEL),
    ExclusionRule("title_pipe", "title", lambda title: title == "Pipe"),
    ExclusionRule("alias_pipe_operator", "alias", lambda alias: alias == PIPE_OPERATOR),
    ExclusionRule(
        "title_reexports",
        "title",
        lambda title: title == "Objects exported from other packages",
    ),
)

DEPRECATED_RULE = ExclusionRule("title_deprecated", "title", lambda title: "deprecated" in title.lower())
