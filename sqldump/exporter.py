"""
Export orchestration for SQL Dump.

DatabaseExporter walks the configured databases and drives the formatter in
dump order: header, database header, routines, tables (structure, data,
triggers), views, constraints and events, footer.
"""

import fnmatch
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from .config import ConfigLoader
from .connection import DatabaseConnection
from .dialects import get_dialect
from .formatter import SqlDumpFormatter
from .models import (
    ConstraintSet,
    DatabaseStats,
    DataSelection,
    ExportMode,
    ExportStats,
    ExportType,
    ServerInfo,
    TableStats,
)
from .output import FileOutputSink
from .relations import StaticRelationStore
from .utils import backquote

VIEW_TYPES = ('VIEW', 'SYSTEM VIEW')


class OutputAborted(Exception):
    """Raised when the output sink refuses a write."""

    pass


class DatabaseExporter:
    """Main class for database export operations."""

    def __init__(self, config: ConfigLoader):
        self.config = config
        self.output_settings = config.get_output_settings()
        self.defaults = config.get_defaults()
        self.options = config.get_export_options()
        relations = config.get_relations()
        self.relations = StaticRelationStore(relations) if relations else None
        self.stats = ExportStats()

    def _compile_exclusion_patterns(self, exclude_patterns: list[str]) -> list[re.Pattern]:
        """
        Pre-compile exclusion patterns to regex for faster matching.

        Converts fnmatch patterns to compiled regex patterns.
        """
        return [re.compile(fnmatch.translate(pattern)) for pattern in exclude_patterns]

    def _is_table_excluded(
        self,
        table_name: str,
        exclude_patterns: list[str],
        compiled_patterns: Optional[list[re.Pattern]] = None
    ) -> bool:
        """
        Check if a table should be excluded based on patterns.

        Supports:
        - Exact matches: 'users_backup'
        - Wildcard patterns: '*_old', 'tmp_*', '*_backup_*'
        """
        if compiled_patterns:
            for i, compiled in enumerate(compiled_patterns):
                if compiled.match(table_name):
                    logging.debug(f"Table '{table_name}' excluded by pattern '{exclude_patterns[i]}'")
                    return True
        else:
            for pattern in exclude_patterns:
                if fnmatch.fnmatch(table_name, pattern):
                    logging.debug(f"Table '{table_name}' excluded by pattern '{pattern}'")
                    return True
        return False

    def run(
        self,
        database_filter: Optional[str] = None,
        instance_filter: Optional[str] = None
    ) -> ExportStats:
        """Run the export for all configured databases.

        Args:
            database_filter: If specified, only export this database name
            instance_filter: If specified, only export databases from this instance
        """
        output_dir = Path(self.output_settings.get('directory', './dumps'))
        output_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        databases = self._filter_databases(database_filter, instance_filter)

        logging.info(f"Starting export of {len(databases)} database(s)")

        for db_config in databases:
            self._export_database(db_config, output_dir, timestamp)

        return self.stats

    def _filter_databases(
        self,
        database_filter: Optional[str],
        instance_filter: Optional[str]
    ) -> list[dict[str, Any]]:
        """Filter databases based on provided filters."""
        databases = self.config.get_databases()

        if database_filter:
            databases = [db for db in databases if db['name'] == database_filter]
            if not databases:
                logging.warning(f"No database named '{database_filter}' found in configuration")

        if instance_filter:
            databases = [db for db in databases if db.get('instance', 'primary') == instance_filter]
            if not databases:
                logging.warning(f"No databases found for instance '{instance_filter}'")

        return databases

    def _output_path(self, output_dir: Path, db_name: str, timestamp: str) -> Path:
        if self.output_settings.get('timestamp_suffix', True):
            return output_dir / f"{db_name}_{timestamp}.sql"
        return output_dir / f"{db_name}.sql"

    def _export_database(
        self,
        db_config: dict[str, Any],
        output_dir: Path,
        timestamp: str
    ) -> None:
        """Export a single database to its own file."""
        db_name = db_config['name']
        instance_name = db_config.get('instance', 'primary')

        db_stats = DatabaseStats(name=db_name, instance=instance_name)

        try:
            instance_config = self.config.get_instance(instance_name)
            dialect = get_dialect(instance_config.get('dialect', 'mysql'))
            port = instance_config.get('port', DatabaseConnection.DEFAULT_PORT)

            with DatabaseConnection(
                host=instance_config['host'],
                port=port,
                user=instance_config['user'],
                password=instance_config['password'],
                database=db_name,
                dialect=dialect
            ) as conn, FileOutputSink(
                self._output_path(output_dir, db_name, timestamp),
                compress=self.output_settings.get('compress', False)
            ) as sink:
                db_stats.file_path = str(sink.path)
                formatter = SqlDumpFormatter(
                    conn,
                    sink,
                    self.options,
                    dialect=dialect,
                    server_info=ServerInfo(
                        host=instance_config['host'],
                        port=port,
                        version=conn.server_version()
                    ),
                    relations=self.relations
                )
                self._write_database(formatter, conn, db_config, db_stats)

        except OutputAborted as e:
            logging.error(f"Export of database '{db_name}' aborted: {e}")
            self.stats.errors.append({
                'database': db_name,
                'table': None,
                'error': str(e)
            })
        except Exception as e:
            logging.error(f"Error exporting database '{db_name}': {e}")
            self.stats.errors.append({
                'database': db_name,
                'table': None,
                'error': str(e)
            })

        self.stats.databases.append(db_stats)

    @staticmethod
    def _check(result: bool, step: str) -> None:
        if not result:
            raise OutputAborted(f"writing {step} failed")

    def _write_database(
        self,
        formatter: SqlDumpFormatter,
        conn: DatabaseConnection,
        db_config: dict[str, Any],
        db_stats: DatabaseStats
    ) -> None:
        """Drive the formatter through one database."""
        db_name = db_config['name']
        options = self.options
        has_structure = options.structure_or_data.has_structure
        has_data = options.structure_or_data.has_data
        constraints = ConstraintSet()

        self._check(formatter.export_header(), 'header')
        self._check(formatter.export_db_header(db_name), 'database header')

        if self.output_settings.get('create_database', True):
            export_type = ExportType.SERVER
            self._check(formatter.export_db_create(db_name), 'CREATE DATABASE')
        else:
            export_type = ExportType.DATABASE

        if has_structure and options.procedure_function:
            self._check(formatter.export_routines(db_name), 'routines')

        tables, views = self._get_tables_to_dump(conn, db_config)
        logging.info(f"Exporting {len(tables)} table(s) and {len(views)} view(s) from '{db_name}'")

        for table_config in tables:
            table_name = table_config['name']
            table_stats = TableStats(table=table_name)

            if has_structure:
                self._check(
                    formatter.export_structure(
                        db_name, table_name, ExportMode.CREATE_TABLE, export_type, constraints,
                        relation=options.relation, mime=options.mime, dates=options.dates
                    ),
                    f"structure of '{table_name}'"
                )

            if has_data:
                selection = DataSelection.from_configs(self.defaults, db_config, table_config)
                query = self._build_select_query(db_name, table_name, selection)
                logging.debug(f"Dumping table '{table_name}' with query: {query[:200]}")
                self._check(formatter.export_data(db_name, table_name, query), f"data of '{table_name}'")
                table_stats.rows_dumped = formatter.rows_exported

            if has_structure:
                self._check(
                    formatter.export_structure(
                        db_name, table_name, ExportMode.TRIGGERS, export_type, constraints
                    ),
                    f"triggers of '{table_name}'"
                )

            table_stats.success = True
            self._record_table(table_stats, db_stats)

        if has_structure:
            # stand-ins first so views referring to other views can be created
            for view in views:
                self._check(
                    formatter.export_structure(
                        db_name, view, ExportMode.STAND_IN, export_type, constraints
                    ),
                    f"stand-in of '{view}'"
                )
            for view in views:
                self._check(
                    formatter.export_structure(
                        db_name, view, ExportMode.CREATE_VIEW, export_type, constraints,
                        dates=options.dates
                    ),
                    f"view '{view}'"
                )

        # flushing the constraints clears the buffers
        db_stats.drop_foreign_keys = constraints.drop_foreign_keys
        if db_stats.drop_foreign_keys:
            logging.debug(f"Foreign keys of '{db_name}' can be dropped with:\n{db_stats.drop_foreign_keys}")
        self._check(formatter.export_db_footer(db_name, constraints), 'database footer')
        self._check(formatter.export_footer(), 'footer')

    def _record_table(self, table_stats: TableStats, db_stats: DatabaseStats) -> None:
        db_stats.tables.append(table_stats)
        db_stats.total_rows += table_stats.rows_dumped
        self.stats.total_tables += 1
        self.stats.total_rows += table_stats.rows_dumped
        logging.info(f"  ✓ {table_stats.table}: {table_stats.rows_dumped} rows")

    def _get_tables_to_dump(
        self,
        conn: DatabaseConnection,
        db_config: dict[str, Any]
    ) -> tuple[list[dict[str, Any]], list[str]]:
        """Get tables and views to dump, applying exclusion patterns."""
        db_name = db_config['name']
        tables_config = db_config.get('tables', '*')
        exclude_patterns = db_config.get('exclude_tables', [])
        compiled_patterns = self._compile_exclusion_patterns(exclude_patterns) if exclude_patterns else None

        table_types = dict(conn.get_tables(db_name))

        if tables_config == '*':
            candidates = [{'name': t} for t in table_types]
        else:
            candidates = [t if isinstance(t, dict) else {'name': t} for t in tables_config]

        tables = []
        views = []
        for table_config in candidates:
            name = table_config['name']
            if exclude_patterns and self._is_table_excluded(name, exclude_patterns, compiled_patterns):
                continue
            if name not in table_types:
                logging.warning(f"Table '{name}' not found in database '{db_name}'")
                continue
            if table_types[name] in VIEW_TYPES:
                views.append(name)
            else:
                tables.append(table_config)

        excluded_count = len(candidates) - len(tables) - len(views)
        if excluded_count > 0:
            logging.info(f"Skipped {excluded_count} table(s) excluded or missing")
        return tables, views

    def _build_select_query(
        self,
        db: str,
        table: str,
        selection: DataSelection
    ) -> str:
        """Build the SELECT query for a table's data."""
        query = f"SELECT * FROM {backquote(db)}.{backquote(table)}"

        if selection.where_clause:
            query += f" WHERE {selection.where_clause}"

        if selection.order_by:
            query += f" ORDER BY {backquote(selection.order_by)} {selection.order_direction.value}"

        if selection.row_limit is not None and selection.row_limit >= 0:
            query += f" LIMIT {selection.row_limit}"

        return query
