#!/usr/bin/env python3
"""Bulk-import employees from a local CSV file.

Run from the backend/ directory:

    python3 scripts/import_employees.py employees.csv [--database-url URL] [--remove] [--verbose]

The header row names the columns (name, email, position, department,
photoUrl; any order, extra columns ignored). Prints the import report as
JSON. Exits with status 1 when the file cannot be imported at all.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys

from sqlalchemy.exc import SQLAlchemyError

_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from roster.core.config import Settings  # noqa: E402
from roster.models.imports import ImportReport  # noqa: E402
from roster.services.import_pipeline import ImportPipeline, ImportPipelineError  # noqa: E402
from roster.services.import_source import FileImportSource  # noqa: E402
from roster.services.record_store import RecordStore  # noqa: E402

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bulk-import employees from a CSV file")
    parser.add_argument("path", help="CSV file to import")
    parser.add_argument("--database-url", default=None, help="Override DATABASE_URL")
    parser.add_argument("--encoding", default=None, help="Override IMPORT_ENCODING")
    parser.add_argument("--delimiter", default=None, help="Override IMPORT_DELIMITER")
    parser.add_argument("--remove", action="store_true", help="Delete the file once it has been read")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    settings = Settings()
    if args.database_url:
        settings.DATABASE_URL = args.database_url
    if args.encoding:
        settings.IMPORT_ENCODING = args.encoding
    if args.delimiter:
        settings.IMPORT_DELIMITER = args.delimiter
    return settings


async def import_file(args: argparse.Namespace) -> ImportReport:
    settings = build_settings(args)
    if not settings.DATABASE_URL:
        raise ImportPipelineError("DATABASE_URL is not set (use --database-url)")

    store = RecordStore()
    try:
        await store.initialize(settings)
        pipeline = ImportPipeline(
            store,
            encoding=settings.IMPORT_ENCODING,
            delimiter=settings.IMPORT_DELIMITER,
        )
        source = FileImportSource(args.path, chunk_size=settings.IMPORT_CHUNK_SIZE, remove=args.remove)
        logger.info("Importing %s", args.path)
        return await pipeline.run(source)
    finally:
        await store.close()


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        report = asyncio.run(import_file(args))
    except ImportPipelineError as e:
        logger.error("Import failed: %s", e)
        return 1
    except (SQLAlchemyError, OSError) as e:
        logger.error("Database unavailable: %s", e)
        return 1

    print(report.model_dump_json(by_alias=True, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
