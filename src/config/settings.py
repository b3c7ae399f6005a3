# 文件索引建置的執行設定

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

DEFAULT_REPOSITORY_URL = "https://cran.rstudio.com/"
DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_MAX_CONCURRENCY = 5
DEFAULT_OUTPUT_DIR = "artifacts/refindex"
DEFAULT_LOG_DIR = "logs"
DEFAULT_LOG_LEVEL = "DEBUG"


@dataclass(frozen=True)
class Settings:
    repository_url: str = DEFAULT_REPOSITORY_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    scratch_root: Path | None = None
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    log_dir: Path = Path(DEFAULT_LOG_DIR)
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def effective_scratch_root(self) -> Path:
        return self.scratch_root or Path(tempfile.gettempdir())


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    if env is None:
        load_dotenv()
        env = os.environ

    scratch_root = (env.get("REFINDEX_SCRATCH_ROOT") or "").strip()
    return Settings(
        repository_url=(env.get("REFINDEX_REPOSITORY_URL") or DEFAULT_REPOSITORY_URL).strip(),
        timeout_seconds=_positive_float(env, "REFINDEX_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS),
        max_concurrency=_positive_int(env, "REFINDEX_MAX_CONCURRENCY", DEFAULT_MAX_CONCURRENCY),
        scratch_root=Path(scratch_root) if scratch_root else None,
        output_dir=Path(env.get("REFINDEX_OUTPUT_DIR") or DEFAULT_OUTPUT_DIR),
        log_dir=Path(env.get("REFINDEX_LOG_DIR") or DEFAULT_LOG_DIR),
        log_level=(env.get("REFINDEX_LOG_LEVEL") or DEFAULT_LOG_LEVEL).strip().upper(),
    )


def _positive_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = (env.get(key) or "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{key} must be positive, got {raw!r}")
    return value


def _positive_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = (env.get(key) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{key} must be positive, got {raw!r}")
    return value
