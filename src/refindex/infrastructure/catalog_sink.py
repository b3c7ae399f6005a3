import csv
import json
from pathlib import Path
from typing import Sequence

from src.config.logger_config import logger
from src.refindex.domain.models import BuildReport, CatalogRow
from src.refindex.domain.rules import sanitize_filename

CATALOG_COLUMNS = ("alias", "url", "title", "package")


class CatalogFileSink:
    def __init__(self, output_dir: str | Path, include_links: bool = False) -> None:
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.include_links = include_links

    def write_catalog(self, catalog: Sequence[CatalogRow], name: str) -> list[Path]:
        stem = sanitize_filename(name)
        rows = [row.to_dict(include_link=self.include_links) for row in catalog]

        json_path = self.output_dir / f"{stem}.json"
        with json_path.open("w", encoding="utf-8") as f:
            json.dump(rows, f, ensure_ascii=False, indent=2)
            f.write("\n")

        columns = CATALOG_COLUMNS + (("topic",) if self.include_links else ())
        csv_path = self.output_dir / f"{stem}.csv"
        with csv_path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=columns)
            writer.writeheader()
            writer.writerows(rows)

        logger.info("Catalog written: rows={}, json_path={}, csv_path={}", len(rows), str(json_path), str(csv_path))
        return [json_path, csv_path]


class JsonReportSink:
    def __init__(self, output_dir: str | Path) -> None:
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def write_report(self, report: BuildReport, name: str) -> Path:
        report_path = self.output_dir / f"{sanitize_filename(name)}_report.json"
        report_path.write_text(
            json.dumps(report.to_dict(), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        logger.info("Build report written: report_path={}", str(report_path))
        return report_path
