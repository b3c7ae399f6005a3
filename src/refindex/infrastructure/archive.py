import tarfile
from pathlib import Path
from typing import Sequence

from src.config.logger_config import logger
from src.refindex.domain.errors import UnpackError
from src.refindex.domain.models import FetchedArchive


def unpack_archive(archive: FetchedArchive, dest_dir: Path) -> Path:
    """Extract one source archive and return the package directory it produced."""
    with tarfile.open(archive.archive_path, mode="r:*") as tar:
        tar.extractall(dest_dir, filter="data")
    package_dir = dest_dir / archive.package
    if not package_dir.is_dir():
        raise FileNotFoundError(f"archive did not contain a '{archive.package}' directory")
    return package_dir


def unpack_archives(archives: Sequence[FetchedArchive], dest_dir: str | Path) -> dict[str, Path]:
    target = Path(dest_dir)
    target.mkdir(parents=True, exist_ok=True)

    unpacked: dict[str, Path] = {}
    failed: list[str] = []
    for archive in archives:
        try:
            unpacked[archive.package] = unpack_archive(archive, target)
        except (tarfile.TarError, EOFError, OSError) as exc:
            failed.append(archive.package)
            logger.error(
                "Failed to unpack archive: package={}, path={}, error_type={}, error={}",
                archive.package,
                str(archive.archive_path),
                type(exc).__name__,
                exc,
            )
            continue
        archive.archive_path.unlink(missing_ok=True)

    if failed:
        raise UnpackError(failed)
    logger.info("Unpacked {} archives into {}", len(unpacked), str(target))
    return unpacked
