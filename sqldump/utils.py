"""
Utility functions for SQL Dump.
"""

import logging
import sys
from pathlib import Path
from typing import Any

# Output file charset -> MySQL charset name for SET NAMES
MYSQL_CHARSET_MAP = {
    'big5': 'big5',
    'cp-866': 'cp866',
    'euc-jp': 'ujis',
    'euc-kr': 'euckr',
    'gb2312': 'gb2312',
    'gbk': 'gbk',
    'iso-8859-1': 'latin1',
    'iso-8859-2': 'latin2',
    'iso-8859-7': 'greek',
    'iso-8859-8': 'hebrew',
    'iso-8859-8-i': 'hebrew',
    'iso-8859-9': 'latin5',
    'iso-8859-13': 'latin7',
    'iso-8859-15': 'latin1',
    'koi8-r': 'koi8r',
    'shift_jis': 'sjis',
    'tis-620': 'tis620',
    'utf-8': 'utf8',
    'windows-1250': 'cp1250',
    'windows-1251': 'cp1251',
    'windows-1252': 'latin1',
    'windows-1256': 'cp1256',
    'windows-1257': 'cp1257',
}


def setup_logging(log_settings: dict[str, Any]) -> None:
    """Setup logging configuration."""
    log_level = getattr(logging, log_settings.get('level', 'INFO').upper())
    log_file = log_settings.get('file')

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )


def backquote(name: str, do_it: bool = True) -> str:
    """Quote an identifier with backquotes, doubling embedded backquotes."""
    if not do_it or name == '*':
        return name
    return '`' + name.replace('`', '``') + '`'


def add_slashes(value: str) -> str:
    """Escape a string for use inside a single-quoted SQL literal."""
    return value.replace('\\', '\\\\').replace("'", "''")


def print_dry_run_info(databases: list[dict[str, Any]], export_settings: dict[str, Any]) -> None:
    """Print information about what would be dumped in dry-run mode."""
    structure_or_data = export_settings.get('structure_or_data', 'structure_and_data')
    logging.info(f"Dump contents: {structure_or_data}")

    for db in databases:
        logging.info(f"Would dump database: {db['name']} from instance: {db.get('instance', 'primary')}")

        if db.get('where_clause'):
            logging.info(f"  Database-level where_clause: {db['where_clause']}")
        if db.get('row_limit') is not None:
            logging.info(f"  Database-level row_limit: {db['row_limit']}")

        tables = db.get('tables', '*')
        if tables == '*':
            logging.info("  - All tables and views")
        else:
            for t in tables:
                logging.info(f"  - {t['name'] if isinstance(t, dict) else t}")

        for pattern in db.get('exclude_tables', []):
            logging.info(f"  (excluding '{pattern}')")
