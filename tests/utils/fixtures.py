import io
import shutil
import tarfile
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from src.refindex.domain.models import BuildReport, BuildResult, CatalogRow


@contextmanager
def managed_temp_dir(prefix: str, root: str = "tests/tmp") -> Iterator[Path]:
    base_tmp = Path(root)
    base_tmp.mkdir(parents=True, exist_ok=True)
    tmp_path = Path(tempfile.mkdtemp(prefix=f"{prefix}_", dir=base_tmp))
    try:
        yield tmp_path
    finally:
        shutil.rmtree(tmp_path, ignore_errors=True)


def rd_source(name: str, aliases: list[str], title: str | None, keywords: tuple[str, ...] = ()) -> str:
    lines = [f"\\name{{{name}}}"]
    lines.extend(f"\\alias{{{alias}}}" for alias in aliases)
    if title is not None:
        lines.append(f"\\title{{{title}}}")
    lines.extend(f"\\keyword{{{keyword}}}" for keyword in keywords)
    lines.append("\\description{Generated for tests.}")
    return "\n".join(lines) + "\n"


def source_archive_bytes(package: str, files: dict[str, str]) -> bytes:
    """Build a ``.tar.gz`` laid out like a source package: ``<package>/<relative path>``."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
        for relative, content in files.items():
            data = content.encode("utf-8")
            info = tarfile.TarInfo(name=f"{package}/{relative}")
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


def write_source_archive(path: Path, package: str, files: dict[str, str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(source_archive_bytes(package, files))
    return path


def sample_build_result() -> BuildResult:
    return BuildResult(
        catalog=(CatalogRow(alias="foo", url="https://a.example/reference/foo.html", title="Foo", package="alpha"),),
        report=BuildReport(
            requested_total=1,
            retrieved_total=1,
            topic_records_total=1,
            joined_total=1,
            catalog_total=1,
            excluded_total=0,
            degraded_packages=(),
            unresolved_packages=(),
            package_versions={"alpha": "1.0"},
            duration_ms=1,
            generated_at="2020-01-01T00:00:00+00:00",
        ),
    )
