import shutil
import tempfile
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from src.config.logger_config import logger


@contextmanager
def scratch_workspace(prefix: str = "refindex", root: str | Path | None = None) -> Iterator[Path]:
    """Yield a fresh scratch directory that is removed on every exit path."""
    base = Path(root) if root is not None else Path(tempfile.gettempdir())
    base.mkdir(parents=True, exist_ok=True)
    workspace = base / f"{prefix}_{uuid.uuid4().hex}"
    workspace.mkdir(parents=True)
    logger.debug("Scratch workspace acquired: path={}", str(workspace))
    try:
        yield workspace
    finally:
        shutil.rmtree(workspace, ignore_errors=True)
        if workspace.exists():
            logger.warning("Scratch workspace could not be fully removed: path={}", str(workspace))
        else:
            logger.debug("Scratch workspace released: path={}", str(workspace))
