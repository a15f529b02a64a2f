"""
SQL dump formatting.

SqlDumpFormatter turns table metadata and rows into SQL statements and
pushes them to an output sink. Every export_* method returns False as soon as
a write to the sink fails; errors reading from the server are written into
the dump as comments and the export goes on.
"""

import logging
import platform
import re
from datetime import datetime
from typing import Any, Iterator, Optional

from .connection import DatabaseConnection
from .constraints import extract_constraints
from .dialects import MYSQL, Dialect
from .encoding import ValueEncoder
from .exceptions import MetadataError
from .models import (
    ConstraintSet,
    ExportMode,
    ExportOptions,
    ExportType,
    FieldMeta,
    ServerInfo,
    StatementType,
    TableStatus,
)
from .output import OutputSink
from .relations import RelationStore
from .utils import MYSQL_CHARSET_MAP, backquote
from .version import __version__

# Identifier, optionally qualified and aliased: `db`.`tbl`.`col` AS `alias`
_IDENTIFIER = r'(?:`(?:[^`]|``)+`|\w+)'
SELECT_LIST_PATTERN = re.compile(r'^\s*SELECT\s+(?:DISTINCT\s+)?(.*?)\s+FROM\s', re.IGNORECASE | re.DOTALL)
COLUMN_EXPR_PATTERN = re.compile(
    rf'^(?:{_IDENTIFIER}\.)*({_IDENTIFIER})(?:\s+(?:AS\s+)?{_IDENTIFIER})?$',
    re.IGNORECASE
)
AUTO_INCREMENT_PATTERN = re.compile(r'AUTO_INCREMENT\s*=\s*([0-9])+')
ROW_FORMAT_PATTERN = re.compile(r"ROW_FORMAT='(\S+)'")
HEADER_COMMENT_SPLIT = re.compile(r'\\n|\n')

DATE_FORMAT = '%b %d, %Y at %I:%M %p'


def split_select_list(select_list: str) -> list[str]:
    """Split a select list on top-level commas."""
    parts = []
    depth = 0
    quote = None
    current = []
    for char in select_list:
        if quote:
            if char == quote:
                quote = None
        elif char in ('`', "'", '"'):
            quote = char
        elif char == '(':
            depth += 1
        elif char == ')':
            depth -= 1
        elif char == ',' and depth == 0:
            parts.append(''.join(current).strip())
            current = []
            continue
        current.append(char)
    parts.append(''.join(current).strip())
    return parts


def resolve_select_columns(sql_query: str) -> Optional[list[Optional[str]]]:
    """
    Find the real column names behind a simple SELECT list.

    Returns one entry per select expression: the column name, or None for
    expressions that are not plain column references. Returns None when the
    select list cannot be mapped to result columns (``*``, no FROM).
    """
    match = SELECT_LIST_PATTERN.match(sql_query)
    if not match:
        return None

    columns: list[Optional[str]] = []
    for expr in split_select_list(match.group(1)):
        if expr == '*' or expr.endswith('.*'):
            return None
        column_match = COLUMN_EXPR_PATTERN.match(expr)
        if not column_match or column_match.group(1).isdigit():
            columns.append(None)
            continue
        name = column_match.group(1)
        if name.startswith('`'):
            name = name[1:-1].replace('``', '`')
        columns.append(name)
    return columns


def _close_rows(rows: Iterator[tuple]) -> None:
    close = getattr(rows, 'close', None)
    if close is not None:
        close()


def format_date(value: Any) -> str:
    if isinstance(value, datetime):
        return value.strftime(DATE_FORMAT)
    return str(value)


class SqlDumpFormatter:
    """Formats database objects and rows as an SQL dump."""

    DELIMITER = '$$'
    TRIGGER_DELIMITER = '//'
    TITLE = 'SQL Dump'

    def __init__(
        self,
        access: DatabaseConnection,
        sink: OutputSink,
        options: ExportOptions,
        dialect: Dialect = MYSQL,
        server_info: Optional[ServerInfo] = None,
        relations: Optional[RelationStore] = None
    ):
        self.access = access
        self.sink = sink
        self.options = options
        self.dialect = dialect
        self.server_info = server_info or ServerInfo(host='localhost')
        self.relations = relations
        self.crlf = options.crlf
        self.encoder = ValueEncoder(options, access.escape_string)
        self.rows_exported = 0
        self._old_time_zone: Optional[str] = None

    # ------------------------------------------------------------------
    # helpers

    def comment(self, text: str = '') -> str:
        """Return a comment line, or nothing when comments are disabled."""
        if not self.options.include_comments:
            return ''
        return '--' + (' ' + text if text else '') + self.crlf

    def possible_crlf(self) -> str:
        return self.crlf if self.options.include_comments else ''

    def quote(self, name: str) -> str:
        """Backquote an identifier if backquotes are enabled."""
        return backquote(name, self.options.backquotes)

    def formatted_table_name(self, table: str) -> str:
        if self.options.backquotes:
            return backquote(table)
        return f"'{table}'"

    def _try_execute(self, statement: str) -> None:
        try:
            self.access.execute(statement)
        except MetadataError as e:
            logging.warning(f"Statement failed: {statement}: {e}")

    # ------------------------------------------------------------------
    # header and footer

    def export_header(self) -> bool:
        """Output the dump preamble."""
        crlf = self.crlf
        options = self.options

        if self.dialect.supports_sql_mode:
            compat = '' if options.compatibility == 'NONE' else options.compatibility
            self._try_execute(f'SET SQL_MODE="{compat}"')

        host_string = f"Host: {self.server_info.host}"
        if self.server_info.port:
            host_string += f":{self.server_info.port}"

        head = (
            self.comment(self.TITLE)
            + self.comment(f'version {__version__}')
            + self.comment()
            + self.comment(host_string)
            + self.comment(f"Generation Time: {datetime.now().strftime(DATE_FORMAT)}")
            + self.comment(f"Server version: {self.server_info.version}")
            + self.comment(f"Python Version: {platform.python_version()}")
            + self.possible_crlf()
        )

        if options.header_comment:
            # the two characters \n split lines, as does a real newline
            head += self.comment()
            for line in HEADER_COMMENT_SPLIT.split(options.header_comment):
                head += self.comment(line)
            head += self.comment()

        if options.disable_fk:
            head += 'SET FOREIGN_KEY_CHECKS=0;' + crlf

        # keep exported AUTO_INCREMENT columns at their value, even 0
        if options.compatibility == 'NONE' and self.dialect.supports_sql_mode:
            head += 'SET SQL_MODE = "NO_AUTO_VALUE_ON_ZERO";' + crlf

        if options.use_transaction:
            head += 'SET AUTOCOMMIT = 0;' + crlf + 'START TRANSACTION;' + crlf

        if options.utc_time and self.dialect.supports_utc_switch:
            head += 'SET time_zone = "+00:00";' + crlf
            try:
                self._old_time_zone = self.access.fetch_value('SELECT @@session.time_zone')
                self.access.execute('SET time_zone = "+00:00"')
            except MetadataError as e:
                logging.warning(f"Could not switch session time zone to UTC: {e}")

        head += self.possible_crlf()

        if options.as_file and self.dialect.supports_charset_directives:
            set_names = MYSQL_CHARSET_MAP.get(options.charset_of_file, MYSQL_CHARSET_MAP['utf-8'])
            head += (
                crlf
                + '/*!40101 SET @OLD_CHARACTER_SET_CLIENT=@@CHARACTER_SET_CLIENT */;' + crlf
                + '/*!40101 SET @OLD_CHARACTER_SET_RESULTS=@@CHARACTER_SET_RESULTS */;' + crlf
                + '/*!40101 SET @OLD_COLLATION_CONNECTION=@@COLLATION_CONNECTION */;' + crlf
                + f'/*!40101 SET NAMES {set_names} */;' + crlf + crlf
            )

        return self.sink.write(head)

    def export_footer(self) -> bool:
        """Output the dump postamble and restore session settings."""
        crlf = self.crlf
        options = self.options
        foot = ''

        if options.disable_fk:
            foot += 'SET FOREIGN_KEY_CHECKS=1;' + crlf

        if options.use_transaction:
            foot += 'COMMIT;' + crlf

        if (options.as_file
                and options.charset_of_file in MYSQL_CHARSET_MAP
                and self.dialect.supports_charset_directives):
            foot += (
                crlf
                + '/*!40101 SET CHARACTER_SET_CLIENT=@OLD_CHARACTER_SET_CLIENT */;' + crlf
                + '/*!40101 SET CHARACTER_SET_RESULTS=@OLD_CHARACTER_SET_RESULTS */;' + crlf
                + '/*!40101 SET COLLATION_CONNECTION=@OLD_COLLATION_CONNECTION */;' + crlf
            )

        if self._old_time_zone is not None:
            self._try_execute(f'SET time_zone = "{self._old_time_zone}"')
            self._old_time_zone = None

        return self.sink.write(foot)

    # ------------------------------------------------------------------
    # database level

    def export_db_create(self, db: str) -> bool:
        """Output DROP/CREATE DATABASE and USE statements."""
        crlf = self.crlf
        db_name = self.quote(db)

        if self.options.drop_database:
            if not self.sink.write(f'DROP DATABASE {db_name};{crlf}'):
                return False

        create_query = f'CREATE DATABASE {db_name}'
        try:
            collation = self.access.get_db_collation(db)
        except MetadataError as e:
            logging.warning(f"Could not read collation of database '{db}': {e}")
            collation = None

        if collation:
            if self.dialect.collation_only_create_database:
                create_query += f' COLLATE {collation}'
            elif '_' in collation:
                charset = collation.split('_', 1)[0]
                create_query += f' DEFAULT CHARACTER SET {charset} COLLATE {collation}'
            else:
                create_query += f' DEFAULT CHARACTER SET {collation}'
        if not self.sink.write(create_query + ';' + crlf):
            return False

        if self.options.backquotes and (self.options.compatibility == 'NONE'
                                        or self.dialect.backquote_use_in_any_mode):
            return self.sink.write(f'USE {backquote(db)};{crlf}')
        return self.sink.write(f'USE {db};{crlf}')

    def export_db_header(self, db: str) -> bool:
        """Output the database heading comment."""
        if self.options.backquotes:
            name = backquote(db)
        else:
            name = f"'{db}'"
        head = self.comment() + self.comment(f'Database: {name}') + self.comment()
        return self.sink.write(head)

    def export_db_footer(self, db: str, constraints: ConstraintSet) -> bool:
        """Output the collected constraints, then the database's events."""
        if not self.flush_constraints(constraints):
            return False

        if (self.options.structure_or_data.has_structure
                and self.options.procedure_function
                and self.dialect.supports_events):
            return self.export_events(db)
        return True

    def flush_constraints(self, constraints: ConstraintSet) -> bool:
        """Write the collected ALTER TABLE constraint statements once."""
        if constraints.is_empty:
            return True
        text = constraints.constraints
        constraints.clear()
        return self.sink.write(text)

    def export_routines(self, db: str) -> bool:
        """Output stored procedures and functions."""
        if not self.dialect.supports_routines:
            return True

        crlf = self.crlf
        delimiter = self.DELIMITER
        try:
            procedure_names = self.access.get_procedures_or_functions(db, 'PROCEDURE')
            function_names = self.access.get_procedures_or_functions(db, 'FUNCTION')
        except MetadataError as e:
            return self.sink.write(self.comment(f'Error reading routines: ({e})'))

        if not procedure_names and not function_names:
            return True

        text = crlf + f'DELIMITER {delimiter}' + crlf
        for routine_type, heading, names in (
            ('PROCEDURE', 'Procedures', procedure_names),
            ('FUNCTION', 'Functions', function_names),
        ):
            if not names:
                continue
            text += self.comment() + self.comment(heading) + self.comment()
            for name in names:
                text += self._routine_definition(db, routine_type, name)
        text += 'DELIMITER ;' + crlf

        return self.sink.write(text)

    def export_events(self, db: str) -> bool:
        """Output scheduled events."""
        crlf = self.crlf
        try:
            event_names = self.access.get_events(db)
        except MetadataError as e:
            return self.sink.write(self.comment(f'Error reading events: ({e})'))

        if not event_names:
            return True

        text = (
            crlf + f'DELIMITER {self.DELIMITER}' + crlf
            + self.comment() + self.comment('Events') + self.comment()
        )
        for name in event_names:
            text += self._routine_definition(db, 'EVENT', name)
        text += 'DELIMITER ;' + crlf

        return self.sink.write(text)

    def _routine_definition(self, db: str, object_type: str, name: str) -> str:
        crlf = self.crlf
        try:
            definition = self.access.get_definition(db, object_type, name)
        except MetadataError as e:
            logging.warning(f"Could not read {object_type.lower()} '{name}': {e}")
            return self.comment(f'Error reading {object_type.lower()} {backquote(name)}: ({e})')

        text = ''
        if self.options.drop_table:
            text += f'DROP {object_type} IF EXISTS {backquote(name)}{self.DELIMITER}{crlf}'
        return text + definition + self.DELIMITER + crlf + crlf

    # ------------------------------------------------------------------
    # table level

    def _read_status(self, db: str, table: str, show_dates: bool) -> Optional[TableStatus]:
        status = self.access.get_table_status(db, table)
        if status is not None and show_dates and self.dialect.status_lacks_dates:
            dates = self.access.get_table_dates(db, table)
            status.create_time = dates.get('Create_time') or status.create_time
            status.update_time = dates.get('Update_time') or status.update_time
        return status

    def get_table_def(
        self,
        db: str,
        table: str,
        constraints: ConstraintSet,
        show_dates: bool = False,
        add_semicolon: bool = True,
        view: bool = False
    ) -> str:
        """
        Return the CREATE statement of a table or view.

        Foreign key constraints are moved into ``constraints``. On a metadata
        error only a comment naming the error is returned.
        """
        crlf = self.crlf
        schema_create = ''
        auto_increment = ''
        new_crlf = crlf

        try:
            status = self._read_status(db, table, show_dates)
        except MetadataError as e:
            logging.warning(f"Could not read status of table '{table}': {e}")
            return self.comment(f'in use({e})')

        if status is not None:
            if self.options.auto_increment and status.auto_increment:
                auto_increment = f' AUTO_INCREMENT={status.auto_increment} '

            if show_dates:
                for label, value in (
                    ('Creation', status.create_time),
                    ('Last update', status.update_time),
                    ('Last check', status.check_time),
                ):
                    if value:
                        schema_create += self.comment(f'{label}: {format_date(value)}')
                        new_crlf = self.comment() + crlf

        schema_create += new_crlf

        # a view's DROP was issued by export_structure
        if self.options.drop_table and not view:
            schema_create += f'DROP TABLE IF EXISTS {self.quote(table)};{crlf}'

        if self.dialect.supports_quote_show_create:
            self._try_execute(f'SET SQL_QUOTE_SHOW_CREATE = {1 if self.options.backquotes else 0}')

        try:
            create_query = self.access.get_create_table(db, table)
        except MetadataError as e:
            # for example a crashed table
            logging.warning(f"Could not read definition of '{table}': {e}")
            return self.comment(f'in use({e})')

        create_query = self.normalize_line_endings(create_query)

        # SHOW CREATE was issued with the database name, the view must not carry it
        if view:
            create_query = create_query.replace(backquote(db) + '.', '')

        if self.options.if_not_exists:
            create_query = re.sub(r'^CREATE TABLE', 'CREATE TABLE IF NOT EXISTS', create_query, count=1)

        if self.dialect.quotes_row_format:
            create_query = ROW_FORMAT_PATTERN.sub(r'ROW_FORMAT=\1', create_query)

        create_query = extract_constraints(
            create_query,
            db,
            table,
            crlf,
            constraints,
            comment=None if self.options.no_constraints_comments else self.comment
        )
        schema_create += create_query

        # the server reports the current counter, not the one to recreate
        schema_create = AUTO_INCREMENT_PATTERN.sub('', schema_create)
        schema_create += auto_increment

        return schema_create + (';' + crlf if add_semicolon else '')

    def normalize_line_endings(self, create_query: str) -> str:
        """Convert the server's line endings to the configured terminator."""
        for eol in ('\r\n', '\n', '\r'):
            if f'({eol} ' in create_query:
                return create_query.replace(eol, self.crlf)
        return create_query

    def get_table_def_stand_in(self, db: str, view: str) -> str:
        """Return a placeholder table definition for a view."""
        crlf = self.crlf
        try:
            columns = self.access.get_columns_full(db, view)
        except MetadataError as e:
            logging.warning(f"Could not read columns of view '{view}': {e}")
            return self.comment(f'in use({e})')

        create_query = ''
        if self.options.drop_table:
            create_query += f'DROP VIEW IF EXISTS {backquote(view)};{crlf}'

        create_query += 'CREATE TABLE '
        if self.options.if_not_exists:
            create_query += 'IF NOT EXISTS '
        create_query += backquote(view) + ' (' + crlf
        create_query += ','.join(f'{backquote(c.name)} {c.type}{crlf}' for c in columns)
        return create_query + ');' + crlf

    def get_table_comments(
        self,
        db: str,
        table: str,
        do_relation: bool = False,
        do_mime: bool = False
    ) -> str:
        """Return MIME type and relation comments for a table."""
        if self.relations is None:
            return ''

        schema_create = ''
        quote = self.quote

        mime_map = self.relations.get_mime(db, table) if do_mime else {}
        if mime_map:
            schema_create += (
                self.possible_crlf()
                + self.comment()
                + self.comment(f'MIME TYPES FOR TABLE {quote(table)}:')
            )
            for field_name, mime in mime_map.items():
                schema_create += (
                    self.comment(f'  {quote(field_name)}')
                    + self.comment(f'      {quote(mime)}')
                )
            schema_create += self.comment()

        relations = self.relations.get_foreigners(db, table) if do_relation else {}
        if relations:
            schema_create += (
                self.possible_crlf()
                + self.comment()
                + self.comment(f'RELATIONS FOR TABLE {quote(table)}:')
            )
            for field_name, relation in relations.items():
                schema_create += (
                    self.comment(f'  {quote(field_name)}')
                    + self.comment(
                        f'      {quote(relation.foreign_table)} -> {quote(relation.foreign_field)}'
                    )
                )
            schema_create += self.comment()

        return schema_create

    def export_structure(
        self,
        db: str,
        table: str,
        export_mode: ExportMode,
        export_type: ExportType,
        constraints: ConstraintSet,
        relation: bool = False,
        mime: bool = False,
        dates: bool = False
    ) -> bool:
        """Output a table's structure, triggers, view or view stand-in."""
        crlf = self.crlf
        formatted_table_name = self.formatted_table_name(table)
        dump = (
            self.possible_crlf()
            + self.comment('-' * 56)
            + self.possible_crlf()
            + self.comment()
        )

        if export_mode == ExportMode.CREATE_TABLE:
            dump += self.comment(f'Table structure for table {formatted_table_name}')
            dump += self.comment()
            dump += self.get_table_def(db, table, constraints, dates)
            dump += self.get_table_comments(db, table, relation, mime)
        elif export_mode == ExportMode.TRIGGERS:
            dump = self._triggers(db, table, formatted_table_name)
        elif export_mode == ExportMode.CREATE_VIEW:
            dump += self.comment(f'Structure for view {formatted_table_name}') + self.comment()
            # remove the stand-in table created earlier
            if export_type != ExportType.TABLE:
                dump += f'DROP TABLE IF EXISTS {backquote(table)};{crlf}'
            dump += self.get_table_def(db, table, constraints, dates, True, True)
        elif export_mode == ExportMode.STAND_IN:
            dump += self.comment(f'Stand-in structure for view {formatted_table_name}') + self.comment()
            dump += self.get_table_def_stand_in(db, table)

        # only callers copying tables apply the deferred constraints query
        constraints.take_query()

        return self.sink.write(dump)

    def _triggers(self, db: str, table: str, formatted_table_name: str) -> str:
        crlf = self.crlf
        try:
            triggers = self.access.get_triggers(db, table)
        except MetadataError as e:
            logging.warning(f"Could not read triggers of '{table}': {e}")
            return self.comment(f'Error reading triggers: ({e})')

        if not triggers:
            return ''

        delimiter = self.TRIGGER_DELIMITER
        dump = (
            self.possible_crlf()
            + self.comment()
            + self.comment(f'Triggers {formatted_table_name}')
            + self.comment()
        )
        for trigger in triggers:
            dump += f'DROP TRIGGER IF EXISTS {backquote(trigger.name)};{crlf}'
            dump += f'DELIMITER {delimiter}{crlf}'
            dump += (
                f'CREATE TRIGGER {backquote(trigger.name)} {trigger.timing} {trigger.event}'
                f' ON {backquote(trigger.table)}{crlf}'
                f' FOR EACH ROW {trigger.statement}{crlf}'
                f'{delimiter}{crlf}'
            )
            dump += 'DELIMITER ;' + crlf
        return dump

    # ------------------------------------------------------------------
    # data

    def _column_list(self, sql_query: str, fields: list[FieldMeta]) -> list[str]:
        columns = resolve_select_columns(sql_query)
        field_set = []
        for j, field in enumerate(fields):
            if columns and j < len(columns) and columns[j]:
                field.orgname = columns[j]
                field_set.append(self.quote(columns[j]))
            else:
                field_set.append(self.quote(field.orgname or field.name))
        return field_set

    def export_data(self, db: str, table: str, sql_query: str) -> bool:
        """Output the rows returned by ``sql_query`` as SQL statements."""
        crlf = self.crlf
        options = self.options
        formatted_table_name = self.formatted_table_name(table)
        self.rows_exported = 0

        try:
            is_view = self.access.is_view(db, table)
        except MetadataError as e:
            logging.warning(f"Could not determine whether '{table}' is a view: {e}")
            is_view = False

        if is_view:
            head = (
                self.possible_crlf()
                + self.comment()
                + self.comment(f'VIEW  {formatted_table_name}')
                + self.comment('Data: None')
                + self.comment()
                + self.possible_crlf()
            )
            return self.sink.write(head)

        try:
            fields, rows = self.access.stream_query(sql_query, db, table)
        except MetadataError as e:
            logging.warning(f"Error reading data of '{table}': {e}")
            return self.sink.write(self.comment(f'Error reading data: ({e})'))

        field_set = self._column_list(sql_query, fields)
        table_name = self.quote(table)

        if options.type == StatementType.UPDATE:
            schema_insert = 'UPDATE '
            if options.ignore:
                schema_insert += 'IGNORE '
            schema_insert += f'{table_name} SET'
        else:
            sql_command = 'REPLACE' if options.type == StatementType.REPLACE else 'INSERT'

            insert_modifier = ''
            if options.delayed and self.dialect.supports_delayed:
                insert_modifier = ' DELAYED'
            if options.type == StatementType.INSERT and options.ignore:
                insert_modifier += ' IGNORE'

            if options.truncate and sql_command == 'INSERT':
                truncate_head = (
                    self.possible_crlf()
                    + self.comment()
                    + self.comment(f'Truncate table before insert {formatted_table_name}')
                    + self.comment()
                    + crlf
                )
                if not self.sink.write(truncate_head + f'TRUNCATE TABLE {table_name};' + crlf):
                    _close_rows(rows)
                    return False

            if options.insert_syntax.lists_columns:
                schema_insert = (
                    f"{sql_command}{insert_modifier} INTO {table_name}"
                    f" ({', '.join(field_set)}) VALUES"
                )
            else:
                schema_insert = f'{sql_command}{insert_modifier} INTO {table_name} VALUES'

        extended = options.insert_syntax.is_extended and options.type != StatementType.UPDATE
        if extended:
            separator = ','
            schema_insert += crlf
        else:
            separator = ';'

        current_row = 0
        query_size = 0
        try:
            for row in rows:
                if self.rows_exported == 0:
                    head = (
                        self.possible_crlf()
                        + self.comment()
                        + self.comment(f'Dumping data for table {formatted_table_name}')
                        + self.comment()
                        + crlf
                    )
                    if not self.sink.write(head):
                        return False

                current_row += 1
                self.rows_exported += 1
                values = self.encoder.encode_row(row, fields)

                if options.type == StatementType.UPDATE:
                    assignments = ','.join(
                        f'{column} = {value}' for column, value in zip(field_set, values)
                    )
                    condition, _ = self.access.get_unique_condition(fields, row)
                    insert_line = f'{schema_insert} {assignments} WHERE {condition}'
                elif extended:
                    insert_line = '(' + ','.join(values) + ')'
                    if current_row == 1:
                        insert_line = schema_insert + insert_line
                    elif (options.max_query_size > 0
                          and query_size + len(insert_line.encode('utf-8')) > options.max_query_size):
                        if not self.sink.write(';' + crlf):
                            return False
                        query_size = 0
                        current_row = 1
                        insert_line = schema_insert + insert_line
                    query_size += len(insert_line.encode('utf-8'))
                else:
                    insert_line = schema_insert + '(' + ','.join(values) + ')'

                prefix = '' if current_row == 1 else separator + crlf
                if not self.sink.write(prefix + insert_line):
                    return False
        except MetadataError as e:
            logging.warning(f"Error reading data of '{table}' after {self.rows_exported} row(s): {e}")
            if current_row > 0 and not self.sink.write(';' + crlf):
                return False
            return self.sink.write(self.comment(f'Error reading data: ({e})'))
        finally:
            _close_rows(rows)

        if current_row > 0:
            return self.sink.write(';' + crlf)
        return True
