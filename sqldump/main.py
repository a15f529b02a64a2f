#!/usr/bin/env python3
"""
SQL Dump - CLI Entry Point
==========================
Exports MySQL / Drizzle databases as SQL dumps that recreate schema, data,
triggers, routines, events and foreign key constraints.
"""

import argparse
import logging
import sys

import yaml

from .config import ConfigLoader
from .exceptions import ConfigurationError
from .exporter import DatabaseExporter
from .utils import print_dry_run_info, setup_logging


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='SQL Dump - export databases as SQL statements'
    )
    parser.add_argument(
        '-c', '--config',
        default='config.yaml',
        help='Path to configuration file (default: config.yaml)'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Show what would be exported without connecting'
    )
    parser.add_argument(
        '-d', '--database',
        help='Export only the specified database (must be defined in config)'
    )
    parser.add_argument(
        '-i', '--instance',
        help='Export only databases from the specified instance'
    )

    args = parser.parse_args()

    # Load configuration
    try:
        config = ConfigLoader(args.config)
        config.get_export_options()
    except FileNotFoundError:
        print(f"Error: Configuration file '{args.config}' not found")
        sys.exit(1)
    except yaml.YAMLError as e:
        print(f"Error: Invalid YAML in configuration file: {e}")
        sys.exit(1)
    except ConfigurationError as e:
        print(f"Error: {e}")
        sys.exit(1)

    # Setup logging
    log_settings = config.get_logging_settings()
    if args.verbose:
        log_settings['level'] = 'DEBUG'
    setup_logging(log_settings)

    databases = config.get_databases()
    if args.database:
        databases = [db for db in databases if db['name'] == args.database]
    if args.instance:
        databases = [db for db in databases if db.get('instance', 'primary') == args.instance]

    if args.dry_run:
        logging.info("DRY RUN MODE - Nothing will be exported")
        print_dry_run_info(databases, config.config.get('export') or {})
        sys.exit(0)

    try:
        exporter = DatabaseExporter(config)
        stats = exporter.run(
            database_filter=args.database,
            instance_filter=args.instance
        )

        logging.info("=" * 50)
        logging.info("EXPORT COMPLETE")
        logging.info(f"Databases: {len(stats.databases)}")
        logging.info(f"Tables: {stats.total_tables}")
        logging.info(f"Total Rows: {stats.total_rows}")

        if stats.errors:
            logging.warning(f"Errors: {len(stats.errors)}")
            for err in stats.errors:
                logging.warning(f"  - {err['database']}/{err['table']}: {err['error']}")
            sys.exit(1)

    except Exception as e:
        logging.error(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
