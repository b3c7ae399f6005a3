"""CLI entrypoint: python -m src.refindex --package recipes=https://recipes.tidymodels.org/"""

import argparse
import json

from src.config.logger_config import logger
from src.refindex.build import run_build
from src.refindex.domain.errors import RetrievalError, UnpackError
from src.refindex.presets import PRESETS


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Build a searchable catalog of package reference topics")
    parser.add_argument(
        "--package",
        action="append",
        default=[],
        metavar="NAME[=BASE_URL]",
        help="Package to index, optionally with its documentation site base URL (repeatable)",
    )
    parser.add_argument("--preset", choices=sorted(PRESETS), help="Named catalog preset")
    parser.add_argument("--pattern", help="Regular expression an alias must match to be kept")
    parser.add_argument("--repo", help="Package repository URL")
    parser.add_argument("--output-dir", help="Directory for catalog, report and fetch events")
    parser.add_argument("--name", help="Catalog file name stem")
    parser.add_argument("--timeout", type=float, help="Per-request timeout in seconds")
    parser.add_argument("--concurrency", type=int, help="Maximum concurrent downloads")
    parser.add_argument("--exclude-internal", action="store_true", help="Skip topics with keyword internal")
    parser.add_argument("--drop-deprecated", action="store_true", help="Drop topics whose title mentions deprecated")
    parser.add_argument("--no-resolve-urls", action="store_true", help="Do not probe for missing base URLs")
    parser.add_argument("--links", action="store_true", help="Add an HTML link column to the catalog")
    parser.add_argument("--no-progress", action="store_true", help="Disable progress bars")
    args = parser.parse_args(argv)

    if not args.package and not args.preset:
        parser.error("at least one --package or a --preset is required")

    try:
        result = run_build(
            args.package or None,
            preset=args.preset,
            pattern=args.pattern,
            repository_url=args.repo,
            output_dir=args.output_dir,
            catalog_name=args.name,
            include_internal=not args.exclude_internal,
            drop_deprecated=args.drop_deprecated,
            resolve_missing_urls=not args.no_resolve_urls,
            include_links=args.links,
            timeout_seconds=args.timeout,
            max_concurrency=args.concurrency,
            show_progress=not args.no_progress,
        )
    except (RetrievalError, UnpackError) as exc:
        logger.error("Catalog build aborted: {}", exc)
        print(json.dumps({"error": type(exc).__name__, "packages": list(exc.packages), "message": str(exc)}))
        return 2
    except ValueError as exc:
        parser.error(str(exc))

    print(json.dumps(result.report.to_dict(), ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
