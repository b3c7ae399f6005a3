import asyncio
import json
from collections import Counter
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from src.config.logger_config import logger

OUTCOME_SUCCESS = "success"
OUTCOME_HTTP_ERROR = "http_error"
OUTCOME_NETWORK_ERROR = "network_error"
OUTCOME_UNEXPECTED_ERROR = "unexpected_error"


@dataclass(frozen=True)
class FetchEvent:
    """One HTTP request made while building a catalog."""

    run_id: str
    operation: str
    package: str | None
    url: str
    outcome: str
    http_status: int | None
    size_bytes: int | None
    error: dict[str, str] | None
    started_at: str
    finished_at: str
    elapsed_ms: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class FetchEventLog:
    """Append-only JSONL record of repository and documentation-site requests for one run.

    Each line is a ``FetchEvent``; ``outcome_counts`` tallies what was written so
    the run can summarise its network activity once the log is closed.
    """

    def __init__(self, output_dir: str | Path, run_id: str) -> None:
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.run_id = run_id
        self.file_path = self.output_dir / f"fetch_events_{run_id}.jsonl"
        self.outcome_counts: Counter[str] = Counter()
        self._lock = asyncio.Lock()
        self._handle = self.file_path.open("a", encoding="utf-8")
        self._closed = False

    async def write_fetch_event(
        self,
        *,
        operation: str,
        url: str,
        outcome: str,
        started_at: datetime,
        package: str | None = None,
        http_status: int | None = None,
        size_bytes: int | None = None,
        error: BaseException | None = None,
    ) -> FetchEvent:
        finished_at = datetime.now(timezone.utc)
        event = FetchEvent(
            run_id=self.run_id,
            operation=operation,
            package=package,
            url=url,
            outcome=outcome,
            http_status=http_status,
            size_bytes=size_bytes,
            error={"type": type(error).__name__, "message": str(error)} if error is not None else None,
            started_at=started_at.isoformat(),
            finished_at=finished_at.isoformat(),
            elapsed_ms=max(0, int((finished_at - started_at).total_seconds() * 1000)),
        )
        async with self._lock:
            if self._closed:
                raise RuntimeError(f"Fetch event log for run {self.run_id} is closed.")
            self._handle.write(json.dumps(event.to_dict(), ensure_ascii=False) + "\n")
            self._handle.flush()
            self.outcome_counts[outcome] += 1
        return event

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._handle.close()
        logger.info(
            "Fetch event log closed: path={}, outcomes={}",
            str(self.file_path),
            dict(self.outcome_counts),
        )
