"""
Manifest Analyzer: command line entry point.

Usage:
    # Analyze a manifest and print the analysis as JSON
    python main.py analyze data/manifest.csv

    # Analyze and keep the result in the configured store
    python main.py analyze data/manifest.csv --save

    # Stored analyses (newest first) and portfolio totals
    python main.py list
    python main.py summary

    # Estimator and store status
    python main.py health
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

import structlog

from config import check_connection, configure_logging, settings
from exceptions import AppError
from services.manifest_analysis_service import get_manifest_analysis_service

logger = structlog.get_logger(__name__)


def _print_json(data) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


async def _analyze(path: Path, save: bool) -> dict:
    service = get_manifest_analysis_service()
    content = path.read_bytes()
    if save:
        analysis = await service.upload(content, path.name)
    else:
        analysis = await service.analyze(content, path.name)
    return analysis.model_dump(mode="json")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Liquidation manifest analysis")
    commands = parser.add_subparsers(dest="command", required=True)

    analyze = commands.add_parser("analyze", help="Analyze a CSV manifest")
    analyze.add_argument("file", type=Path, help="Path to the manifest file")
    analyze.add_argument("--save", action="store_true", help="Store the analysis")

    commands.add_parser("list", help="List stored analyses, newest first")
    commands.add_parser("summary", help="Portfolio totals across stored analyses")
    commands.add_parser("health", help="Show estimator and store status")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()

    logger.info(
        "manifest_analyzer_starting",
        command=args.command,
        environment=settings.environment,
        estimator="claude" if settings.estimator_configured else "rules",
        store=settings.store_backend
    )

    try:
        if args.command == "analyze":
            if not args.file.is_file():
                logger.error("manifest_file_not_found", path=str(args.file))
                return 2
            _print_json(asyncio.run(_analyze(args.file, args.save)))
        elif args.command == "list":
            service = get_manifest_analysis_service()
            _print_json([
                {
                    "manifest_id": a.manifest_id,
                    "file_name": a.file_name,
                    "upload_timestamp": a.upload_timestamp.isoformat(),
                    "valid_items": a.valid_items,
                    "recommended_action": a.executive_summary.recommended_action.value,
                }
                for a in service.list_analyses()
            ])
        elif args.command == "summary":
            _print_json(get_manifest_analysis_service().get_portfolio_summary().model_dump(mode="json"))
        elif args.command == "health":
            store = check_connection()
            _print_json({
                "estimator": "claude" if settings.estimator_configured else "rules",
                "estimator_model": settings.estimator_model if settings.estimator_configured else None,
                "store": store,
            })
            return 0 if store["status"] == "healthy" else 1
    except AppError as e:
        logger.error("manifest_analyzer_failed", code=e.code, error=e.message)
        _print_json(e.to_dict())
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
