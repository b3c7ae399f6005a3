from pathlib import Path
from typing import Iterable


class CatalogBuildError(Exception):
    """Base class for failures raised while building a topic catalog."""


class _PackageSetError(CatalogBuildError):
    verb = "failed"

    def __init__(self, packages: Iterable[str], detail: str | None = None) -> None:
        self.packages = tuple(packages)
        self.detail = detail
        quoted = ", ".join(f"'{name}'" for name in self.packages)
        message = f"packages {quoted} {self.verb}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class RetrievalError(_PackageSetError):
    """One or more requested packages could not be downloaded."""

    verb = "were not downloaded"


class UnpackError(_PackageSetError):
    """One or more downloaded archives could not be extracted."""

    verb = "did not unpack correctly"


class MetadataParseError(CatalogBuildError):
    """A package documentation file is malformed."""

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")
