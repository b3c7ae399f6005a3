"""Reader for Debian control file records (CRAN PACKAGES index, DESCRIPTION)."""

import re

_FIELD = re.compile(r"^([A-Za-z0-9_.@/-]+):\s?(.*)$")


def parse_dcf(text: str) -> list[dict[str, str]]:
    records: list[dict[str, str]] = []
    current: dict[str, str] = {}
    last_key: str | None = None

    for line in text.splitlines():
        if not line.strip():
            if current:
                records.append(current)
            current = {}
            last_key = None
            continue
        if line[0] in " \t":
            if last_key is not None:
                current[last_key] = f"{current[last_key]}\n{line.strip()}".strip()
            continue
        match = _FIELD.match(line)
        if match is None:
            last_key = None
            continue
        last_key = match.group(1)
        current[last_key] = match.group(2).strip()

    if current:
        records.append(current)
    return records


def split_urls(value: str | None) -> tuple[str, ...]:
    if not value:
        return ()
    urls = []
    for token in re.split(r"[,\s]+", value):
        token = token.strip().strip("<>")
        if token.startswith(("http://", "https://")) and token not in urls:
            urls.append(token)
    return tuple(urls)
