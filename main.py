#!/usr/bin/env python3
"""
Conimex - Content Import Engine

Main entry point. Reads a v3 or v4 export, normalizes every record into the
canonical content model and upserts it into the DuckDB database.
"""

import logging
import sys
import argparse
from typing import Optional

from conimex.config import ConfigManager
from conimex.database import DatabaseManager, Session
from conimex.errors import ConimexError
from conimex.importers import BaseImporter, ExportFileImporter, MockImporter
from conimex.importers.mock import SAMPLE_CONTENTTYPES, SAMPLE_TAXONOMIES
from conimex.ingest import DocumentImporter, ImportContext
from conimex.reporting import ImportStats, LoggingReporter
from conimex.schema import SchemaRegistry


def setup_logging(config: ConfigManager):
    """Configure logging for the application."""
    level = getattr(logging, str(config.get("logging.level", "INFO")).upper(), logging.INFO)
    format_str = config.get("logging.format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    log_file = config.log_filename

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(log_file)
        ],
        # ConfigManager may already have logged through the default handler
        force=True
    )


def build_context(config: ConfigManager, registry: SchemaRegistry, args) -> ImportContext:
    """Build the read-only import context from configuration and CLI overrides."""
    return ImportContext(
        registry=registry,
        available_locales=tuple(args.locale) if args.locale else tuple(config.available_locales),
        clear_interval=config.clear_interval,
        skip_users=args.skip_users or config.skip_users,
        default_user_locale=config.default_user_locale,
        default_backend_theme=config.default_backend_theme
    )


def run_import(importer: BaseImporter, context: ImportContext, db_path: str) -> ImportStats:
    """
    Import the document provided by ``importer`` into the database at ``db_path``.
    """
    document = importer.get_document()

    with DatabaseManager(db_path) as db:
        db.initialize_database()
        logging.info("Database initialized")

        session = Session(db)
        runner = DocumentImporter(context, session, LoggingReporter())
        stats = runner.import_document(document)

        logging.info(
            f"Database now holds {db.count_rows('contents')} content items, "
            f"{db.count_rows('users')} users and {db.count_rows('relations')} relations"
        )
        return stats


def parse_arguments(argv: Optional[list] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Conimex - import v3/v4 content exports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py export.yaml                       # Import an export file
  python main.py export.json --db site.db          # Import into a specific database
  python main.py export.yaml --skip-users          # Import content only
  python main.py export.yaml --locale en --locale nl
  python main.py --mock                            # Import the built-in sample export
        """
    )

    parser.add_argument(
        "export_file",
        nargs="?",
        help="Path to the .yaml, .yml or .json export file"
    )

    parser.add_argument(
        "--config",
        default="config.yaml",
        help="Path to the configuration file (default: config.yaml)"
    )

    parser.add_argument(
        "--db",
        type=str,
        help="Path to the DuckDB database (default: database.filename from config)"
    )

    parser.add_argument(
        "--skip-users",
        action="store_true",
        help="Do not import the __users block"
    )

    parser.add_argument(
        "--locale",
        action="append",
        help="Locale to import translations for (repeatable; overrides locales.available)"
    )

    parser.add_argument(
        "--mock",
        action="store_true",
        help="Import the built-in sample export against the built-in sample schema"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="Conimex 0.1.0"
    )

    args = parser.parse_args(argv)
    if not args.mock and not args.export_file:
        parser.error("an export file is required unless --mock is given")
    return args


def main(argv: Optional[list] = None):
    """Main entry point."""
    args = parse_arguments(argv)
    config = ConfigManager(args.config)
    setup_logging(config)

    logging.info("Conimex - Content Import Engine")

    try:
        if args.mock:
            importer = MockImporter()
            registry = SchemaRegistry(SAMPLE_CONTENTTYPES, SAMPLE_TAXONOMIES)
        else:
            importer = ExportFileImporter(args.export_file)
            registry = SchemaRegistry.from_files(config.contenttypes_path, config.taxonomy_path)

        logging.info(f"Importing against content types: {', '.join(registry.list_content_types())}")
        context = build_context(config, registry, args)
        stats = run_import(importer, context, args.db or config.database_filename)

    except KeyboardInterrupt:
        logging.info("Import interrupted by user")
        print("\nImport interrupted.")
        sys.exit(1)

    except (ConimexError, FileNotFoundError, ValueError) as e:
        logging.error(f"Import failed: {e}")
        print(f"\nImport failed: {e}")
        sys.exit(1)

    print(stats.summary())
    if stats.aborted_blocks:
        sys.exit(1)


if __name__ == "__main__":
    main()
