import codecs
import re
from dataclasses import dataclass
from pathlib import Path

from src.config.logger_config import logger
from src.refindex.domain.errors import MetadataParseError
from src.refindex.domain.models import PackageDescription, RawTopicRecord
from src.refindex.infrastructure.dcf import parse_dcf, split_urls

_MACRO_NAME = re.compile(r"[A-Za-z]+")
_ENCODING_DECL = re.compile(rb"^[ \t]*\\encoding\{([^{}]+)\}", re.MULTILINE)
_DESCRIPTION_ENCODING = re.compile(rb"^Encoding:[ \t]*(\S+)", re.MULTILINE)
_SIMPLE_MARKUP = re.compile(r"\\[A-Za-z]+(?:\[[^\]]*\])?\{([^{}]*)\}")
_ESCAPED = re.compile(r"\\([%{}\\])")
_SYMBOL_MACROS = (
    (re.compile(r"\\R(?:\{\})?(?![A-Za-z])"), "R"),
    (re.compile(r"\\(?:l)?dots(?:\{\})?(?![A-Za-z])"), "..."),
)


@dataclass(frozen=True)
class RdTopic:
    name: str
    aliases: tuple[str, ...]
    title: str | None
    internal: bool
    doc_type: str | None
    file_out: str


def strip_comments(text: str) -> str:
    return "\n".join(_strip_line_comment(line) for line in text.splitlines())


def _strip_line_comment(line: str) -> str:
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "%":
            return line[:i]
        i += 1
    return line


def read_braced(text: str, start: int, path: str | Path) -> tuple[str, int]:
    """Return the body of the brace group opening at ``start`` and the index after it."""
    depth = 0
    i = start
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start + 1 : i], i + 1
        i += 1
    raise MetadataParseError(path, "unterminated braced argument")


def iter_sections(text: str, path: str | Path) -> list[tuple[str, str]]:
    """List top-level ``\\macro{body}`` sections of an Rd document, in order."""
    sections: list[tuple[str, str]] = []
    depth = 0
    i = 0
    while i < len(text):
        ch = text[i]
        if ch == "\\":
            match = _MACRO_NAME.match(text, i + 1)
            if match is None:
                i += 2
                continue
            end = match.end()
            if depth == 0 and end < len(text) and text[end] == "{":
                body, i = read_braced(text, end, path)
                sections.append((match.group(0), body))
                continue
            i = end
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth < 0:
                raise MetadataParseError(path, "unbalanced braces")
        i += 1
    if depth != 0:
        raise MetadataParseError(path, "unbalanced braces")
    return sections


def rd_to_text(value: str) -> str:
    for pattern, replacement in _SYMBOL_MACROS:
        value = pattern.sub(replacement, value)
    previous = None
    while previous != value:
        previous = value
        value = _SIMPLE_MARKUP.sub(r"\1", value)
    return _ESCAPED.sub(r"\1", value)


def clean_title(raw: str) -> str | None:
    lines = [line.strip() for line in rd_to_text(raw).splitlines()]
    title = "\n".join(line for line in lines if line)
    return title or None


def parse_rd_text(text: str, path: str | Path) -> RdTopic:
    name: str | None = None
    aliases: list[str] = []
    title: str | None = None
    internal = False
    doc_type: str | None = None

    for macro, body in iter_sections(strip_comments(text), path):
        if macro == "name":
            name = rd_to_text(body).strip()
        elif macro == "alias":
            alias = rd_to_text(body).strip()
            if alias:
                aliases.append(alias)
        elif macro == "title":
            title = clean_title(body)
        elif macro == "keyword":
            internal = internal or body.strip() == "internal"
        elif macro == "docType":
            doc_type = body.strip() or None

    if not name:
        raise MetadataParseError(path, "missing \\name")
    return RdTopic(
        name=name,
        aliases=tuple(aliases),
        title=title,
        internal=internal,
        doc_type=doc_type,
        file_out=f"{Path(path).stem}.html",
    )


def known_encoding(name: str | None) -> str | None:
    if not name:
        return None
    try:
        return codecs.lookup(name.strip()).name
    except LookupError:
        logger.warning("Unknown declared encoding ignored: encoding={}", name)
        return None


def decode_rd(raw: bytes, package_encoding: str | None = None) -> str:
    """Decode Rd source using its \\encoding{} declaration, else the package encoding, else UTF-8."""
    match = _ENCODING_DECL.search(raw)
    declared = match.group(1).decode("ascii", errors="replace") if match else None
    encoding = known_encoding(declared) or known_encoding(package_encoding) or "utf-8"
    return raw.decode(encoding, errors="replace")


def parse_rd_file(path: str | Path, package_encoding: str | None = None) -> RdTopic:
    rd_path = Path(path)
    try:
        raw = rd_path.read_bytes()
    except OSError as exc:
        raise MetadataParseError(rd_path, f"unreadable: {exc}") from exc
    return parse_rd_text(decode_rd(raw, package_encoding), rd_path)


def read_description(package_dir: str | Path, package: str) -> PackageDescription:
    path = Path(package_dir) / "DESCRIPTION"
    if not path.is_file():
        return PackageDescription(package=package, version=None)
    raw = path.read_bytes()
    match = _DESCRIPTION_ENCODING.search(raw)
    encoding = known_encoding(match.group(1).decode("ascii", errors="replace")) if match else None
    records = parse_dcf(raw.decode(encoding or "utf-8", errors="replace"))
    fields = records[0] if records else {}
    return PackageDescription(
        package=package,
        version=fields.get("Version"),
        urls=split_urls(fields.get("URL")),
        encoding=encoding,
    )


class RdTopicExtractor:
    """Turns a package's ``man/*.Rd`` files into one topic record per alias."""

    def __init__(self, include_internal: bool = True) -> None:
        self.include_internal = include_internal

    def discover(self, package_dir: str | Path) -> list[Path]:
        man_dir = Path(package_dir) / "man"
        if not man_dir.is_dir():
            return []
        return sorted(p for p in man_dir.iterdir() if p.is_file() and p.suffix.lower() == ".rd")

    def extract(self, package_dir: str | Path, package: str) -> list[RawTopicRecord]:
        rd_files = self.discover(package_dir)
        if not rd_files:
            logger.info("No documentation metadata found: package={}", package)
            return []

        package_encoding = read_description(package_dir, package).encoding
        records: list[RawTopicRecord] = []
        for rd_path in rd_files:
            topic = parse_rd_file(rd_path, package_encoding)
            if topic.internal and not self.include_internal:
                continue
            records.extend(
                RawTopicRecord(
                    alias=alias,
                    title=topic.title,
                    package=package,
                    file_out=topic.file_out,
                    internal=topic.internal,
                )
                for alias in topic.aliases
            )
        logger.debug(
            "Extracted topics: package={}, rd_files={}, records={}",
            package,
            len(rd_files),
            len(records),
        )
        return records

    def describe(self, package_dir: str | Path, package: str) -> PackageDescription:
        return read_description(package_dir, package)
