"""
Database connection management for SQL Dump.

DatabaseConnection is the access layer the formatter reads metadata and rows
through. Driver errors are re-raised as MetadataError so the formatter can
report them inline without knowing about mysql.connector.
"""

import logging
import re
from typing import Any, Iterator, Optional, Sequence

import mysql.connector
from mysql.connector import Error as MySQLError
from mysql.connector.constants import FieldFlag, FieldType

from .dialects import MYSQL, Dialect
from .encoding import build_unique_condition
from .exceptions import ConnectionError, MetadataError
from .models import ColumnInfo, FieldMeta, TableStatus, Trigger
from .utils import add_slashes, backquote

BIT_LENGTH_PATTERN = re.compile(r'^bit\((\d+)\)', re.IGNORECASE)

# Column holding the definition in SHOW CREATE <type> results
DEFINITION_COLUMNS = {
    'PROCEDURE': 2,
    'FUNCTION': 2,
    'EVENT': 3,
}


class DatabaseConnection:
    """Manages MySQL database connections with context manager support."""

    DEFAULT_PORT = 3306
    DEFAULT_CHARSET = 'utf8mb4'

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        database: Optional[str] = None,
        dialect: Dialect = MYSQL
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.database = database
        self.dialect = dialect
        self.connection = None

    def __enter__(self) -> "DatabaseConnection":
        """Context manager entry - establish connection."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - close connection."""
        self.disconnect()

    def connect(self) -> None:
        """Establish database connection."""
        try:
            self.connection = mysql.connector.connect(
                host=self.host,
                port=self.port,
                user=self.user,
                password=self.password,
                database=self.database,
                charset=self.DEFAULT_CHARSET,
                use_unicode=True
            )
            logging.info(f"Connected to {self.host}:{self.port}/{self.database or 'N/A'}")
        except MySQLError as e:
            logging.error(f"Failed to connect to database: {e}")
            raise ConnectionError(f"Failed to connect to database: {e}") from e

    def disconnect(self) -> None:
        """Close database connection."""
        if self.connection and self.connection.is_connected():
            self.connection.close()
            logging.debug("Database connection closed")

    def execute_query(self, query: str, params: Optional[tuple] = None) -> list[tuple]:
        """Execute a query and return results."""
        cursor = self.connection.cursor()
        try:
            cursor.execute(query, params)
            return cursor.fetchall()
        except MySQLError as e:
            raise MetadataError(str(e), getattr(e, 'errno', None)) from e
        finally:
            cursor.close()

    def execute_dict(self, query: str, params: Optional[tuple] = None) -> list[dict[str, Any]]:
        """Execute a query and return results as dictionaries."""
        cursor = self.connection.cursor(dictionary=True)
        try:
            cursor.execute(query, params)
            return cursor.fetchall()
        except MySQLError as e:
            raise MetadataError(str(e), getattr(e, 'errno', None)) from e
        finally:
            cursor.close()

    def execute(self, statement: str) -> None:
        """Execute a statement that returns no rows (SET ...)."""
        self.execute_query(statement)

    def fetch_value(self, query: str, params: Optional[tuple] = None) -> Any:
        """Execute a query and return the first column of the first row."""
        results = self.execute_query(query, params)
        return results[0][0] if results else None

    def get_cursor(self, buffered: bool = False):
        """Get a cursor for streaming large results.

        Args:
            buffered: If False (default), uses server-side cursor for memory-efficient
                     streaming of large result sets. If True, uses buffered cursor.
        """
        return self.connection.cursor(buffered=buffered)

    def server_version(self) -> str:
        """Get the server version string."""
        return self.connection.get_server_info() or "Unknown"

    def get_tables(self, db: str) -> list[tuple[str, str]]:
        """Get (name, table type) for all tables and views of a database."""
        results = self.execute_query(f"SHOW FULL TABLES FROM {backquote(db)}")
        return [(row[0], row[1]) for row in results]

    def is_view(self, db: str, table: str) -> bool:
        """Check whether a table is a view."""
        table_type = self.fetch_value(
            "SELECT TABLE_TYPE FROM information_schema.TABLES"
            " WHERE TABLE_SCHEMA = %s AND TABLE_NAME = %s",
            (db, table)
        )
        return table_type in ('VIEW', 'SYSTEM VIEW')

    def get_table_status(self, db: str, table: str) -> Optional[TableStatus]:
        """Get SHOW TABLE STATUS information for a table."""
        pattern = table.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')
        rows = self.execute_dict(
            f"SHOW TABLE STATUS FROM {backquote(db)} LIKE %s",
            (pattern,)
        )
        return TableStatus.from_row(rows[0]) if rows else None

    def get_table_dates(self, db: str, table: str) -> dict[str, Any]:
        """Get creation and update times from the Drizzle data dictionary."""
        rows = self.execute_dict(
            "SELECT TABLE_CREATION_TIME AS Create_time, TABLE_UPDATE_TIME AS Update_time"
            " FROM data_dictionary.TABLES WHERE TABLE_SCHEMA = %s AND TABLE_NAME = %s",
            (db, table)
        )
        return rows[0] if rows else {}

    def get_create_table(self, db: str, table: str) -> str:
        """Get CREATE TABLE statement."""
        results = self.execute_query(f"SHOW CREATE TABLE {backquote(db)}.{backquote(table)}")
        if not results:
            raise MetadataError(f"No definition returned for {db}.{table}")
        return results[0][1]

    def get_columns_full(self, db: str, table: str) -> list[ColumnInfo]:
        """Get column information for a table."""
        results = self.execute_dict(f"SHOW FULL COLUMNS FROM {backquote(db)}.{backquote(table)}")
        return [
            ColumnInfo(
                name=row['Field'],
                type=row['Type'],
                nullable=row['Null'],
                key=row['Key'],
                default=row['Default'],
                extra=row['Extra']
            )
            for row in results
        ]

    def get_db_collation(self, db: str) -> str:
        """Get the default collation of a database."""
        collation = self.fetch_value(
            "SELECT DEFAULT_COLLATION_NAME FROM information_schema.SCHEMATA"
            " WHERE SCHEMA_NAME = %s",
            (db,)
        )
        if collation is None:
            collation = self.fetch_value("SELECT @@collation_database")
        return collation

    def get_procedures_or_functions(self, db: str, routine_type: str) -> list[str]:
        """Get names of stored procedures or functions ('PROCEDURE' / 'FUNCTION')."""
        results = self.execute_query(
            "SELECT SPECIFIC_NAME FROM information_schema.ROUTINES"
            " WHERE ROUTINE_SCHEMA = %s AND ROUTINE_TYPE = %s ORDER BY SPECIFIC_NAME",
            (db, routine_type)
        )
        return [row[0] for row in results]

    def get_events(self, db: str) -> list[str]:
        """Get names of scheduled events."""
        results = self.execute_query(
            "SELECT EVENT_NAME FROM information_schema.EVENTS"
            " WHERE EVENT_SCHEMA = %s ORDER BY EVENT_NAME",
            (db,)
        )
        return [row[0] for row in results]

    def get_definition(self, db: str, object_type: str, name: str) -> str:
        """Get the CREATE statement of a procedure, function or event."""
        column = DEFINITION_COLUMNS[object_type]
        results = self.execute_query(
            f"SHOW CREATE {object_type} {backquote(db)}.{backquote(name)}"
        )
        if not results:
            raise MetadataError(f"No definition returned for {object_type} {db}.{name}")
        return results[0][column]

    def get_triggers(self, db: str, table: str) -> list[Trigger]:
        """Get triggers defined on a table."""
        rows = self.execute_dict(
            "SELECT TRIGGER_NAME, ACTION_TIMING, EVENT_MANIPULATION, EVENT_OBJECT_TABLE,"
            " ACTION_STATEMENT FROM information_schema.TRIGGERS"
            " WHERE EVENT_OBJECT_SCHEMA = %s AND EVENT_OBJECT_TABLE = %s"
            " ORDER BY ACTION_ORDER",
            (db, table)
        )
        return [
            Trigger(
                name=row['TRIGGER_NAME'],
                timing=row['ACTION_TIMING'],
                event=row['EVENT_MANIPULATION'],
                table=row['EVENT_OBJECT_TABLE'],
                statement=row['ACTION_STATEMENT'],
            )
            for row in rows
        ]

    def stream_query(
        self,
        query: str,
        db: Optional[str] = None,
        table: Optional[str] = None
    ) -> tuple[list[FieldMeta], Iterator[tuple]]:
        """
        Run a query on an unbuffered cursor.

        Returns the result's field metadata and an iterator over its rows.
        The cursor is closed once the iterator is exhausted or closed. Passing
        ``db`` and ``table`` lets BIT columns carry their declared length.
        """
        cursor = self.get_cursor(buffered=False)
        try:
            cursor.execute(query)
        except MySQLError as e:
            self._close_cursor(cursor)
            raise MetadataError(str(e), getattr(e, 'errno', None)) from e

        fields = [self._field_meta(column) for column in cursor.description or []]
        if table and any(f.is_bit for f in fields):
            self._fill_bit_lengths(fields, db or self.database, table)
        return fields, self._iter_rows(cursor)

    def _iter_rows(self, cursor) -> Iterator[tuple]:
        try:
            for row in cursor:
                yield row
        except MySQLError as e:
            raise MetadataError(str(e), getattr(e, 'errno', None)) from e
        finally:
            self._close_cursor(cursor)

    def _close_cursor(self, cursor) -> None:
        # an unbuffered cursor must be drained before the connection is reused
        if getattr(self.connection, 'unread_result', False):
            self.connection.consume_results()
        cursor.close()

    @staticmethod
    def _field_meta(column: Sequence[Any]) -> FieldMeta:
        """Build FieldMeta from a cursor description entry."""
        name, type_code = column[0], column[1]
        flags = column[7] if len(column) > 7 and column[7] else 0

        if type_code == FieldType.BIT:
            type_name = 'bit'
        elif type_code in FieldType.get_timestamp_types():
            type_name = FieldType.get_info(type_code).lower()
        elif type_code in FieldType.get_binary_types():
            type_name = 'blob'
        elif type_code in FieldType.get_number_types():
            type_name = 'int' if type_code != FieldType.NEWDECIMAL else 'real'
        else:
            type_name = 'string'

        return FieldMeta(
            name=name,
            type=type_name,
            numeric=type_code in FieldType.get_number_types() and type_code != FieldType.BIT,
            blob=type_code in FieldType.get_binary_types() or bool(flags & FieldFlag.BLOB),
            binary=bool(flags & FieldFlag.BINARY),
            primary_key=bool(flags & FieldFlag.PRI_KEY),
            unique_key=bool(flags & FieldFlag.UNIQUE_KEY),
        )

    def _fill_bit_lengths(self, fields: list[FieldMeta], db: str, table: str) -> None:
        try:
            columns = {c.name: c.type for c in self.get_columns_full(db, table)}
        except MetadataError as e:
            logging.warning(f"Could not read BIT column lengths of '{table}': {e}")
            return
        for field in fields:
            match = BIT_LENGTH_PATTERN.match(columns.get(field.name, ''))
            if field.is_bit and match:
                field.length = int(match.group(1))

    def escape_string(self, value: str) -> str:
        """Escape a string for embedding in a single-quoted literal."""
        return add_slashes(value)

    def get_unique_condition(self, fields: Sequence[FieldMeta], row: Sequence[Any]) -> tuple[str, bool]:
        """Compute a WHERE condition identifying ``row``."""
        return build_unique_condition(fields, row, self.escape_string)
