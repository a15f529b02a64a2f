"""
Data models and enums for SQL Dump.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Optional, Any

from .exceptions import ConfigurationError


class StatementType(Enum):
    """Statement used to dump table rows."""
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    REPLACE = "REPLACE"


class InsertSyntax(Enum):
    """Syntax of INSERT/REPLACE statements.

    complete: column names in every statement
    extended: multiple rows per statement
    both: column names and multiple rows
    none: neither
    """
    COMPLETE = "complete"
    EXTENDED = "extended"
    BOTH = "both"
    NONE = "none"

    @property
    def lists_columns(self) -> bool:
        return self in (InsertSyntax.COMPLETE, InsertSyntax.BOTH)

    @property
    def is_extended(self) -> bool:
        return self in (InsertSyntax.EXTENDED, InsertSyntax.BOTH)


class StructureOrData(Enum):
    """What to dump for each table."""
    STRUCTURE = "structure"
    DATA = "data"
    STRUCTURE_AND_DATA = "structure_and_data"

    @property
    def has_structure(self) -> bool:
        return self in (StructureOrData.STRUCTURE, StructureOrData.STRUCTURE_AND_DATA)

    @property
    def has_data(self) -> bool:
        return self in (StructureOrData.DATA, StructureOrData.STRUCTURE_AND_DATA)


class OrderDirection(Enum):
    """Sort order direction."""
    ASC = "ASC"
    DESC = "DESC"


class ExportMode(Enum):
    """Kind of structure output for a single table or view."""
    CREATE_TABLE = "create_table"
    TRIGGERS = "triggers"
    CREATE_VIEW = "create_view"
    STAND_IN = "stand_in"


class ExportType(Enum):
    """Scope of an export run."""
    SERVER = "server"
    DATABASE = "database"
    TABLE = "table"


@dataclass
class ColumnInfo:
    """Database column metadata."""
    name: str
    type: str
    nullable: str
    key: str
    default: Any
    extra: str


@dataclass
class FieldMeta:
    """Metadata for one column of a streamed result set."""
    name: str
    type: str = "string"
    orgname: Optional[str] = None
    numeric: bool = False
    blob: bool = False
    binary: bool = False
    primary_key: bool = False
    unique_key: bool = False
    length: Optional[int] = None

    @property
    def is_bit(self) -> bool:
        return self.type == "bit"

    @property
    def is_timestamp(self) -> bool:
        return self.type == "timestamp"


@dataclass
class TableStatus:
    """Subset of SHOW TABLE STATUS for one table."""
    name: str
    auto_increment: Optional[int] = None
    create_time: Optional[datetime] = None
    update_time: Optional[datetime] = None
    check_time: Optional[datetime] = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "TableStatus":
        return cls(
            name=row.get('Name', ''),
            auto_increment=row.get('Auto_increment'),
            create_time=row.get('Create_time'),
            update_time=row.get('Update_time'),
            check_time=row.get('Check_time'),
        )


@dataclass
class Trigger:
    """A trigger attached to a table."""
    name: str
    timing: str
    event: str
    table: str
    statement: str


@dataclass
class Relation:
    """A foreign key relation annotation for one column."""
    foreign_table: str
    foreign_field: str
    foreign_db: Optional[str] = None


@dataclass
class ServerInfo:
    """Describes the server the dump was taken from."""
    host: str
    port: Optional[int] = None
    version: str = ""


@dataclass
class ConstraintSet:
    """Foreign key text collected while dumping the tables of one database.

    ``constraints`` is written to the dump by flush_constraints().
    ``constraints_query`` holds the same ALTER statements without comments; a
    dump never re-applies them, so export_structure() discards it per table.
    ``drop_foreign_keys`` collects the matching DROP FOREIGN KEY statements and
    ends up in DatabaseStats.drop_foreign_keys.
    """
    constraints: Optional[str] = None
    constraints_query: str = ""
    drop_foreign_keys: str = ""

    @property
    def is_empty(self) -> bool:
        return self.constraints is None

    def take_query(self) -> str:
        """Return and clear the deferred constraints query."""
        query, self.constraints_query = self.constraints_query, ""
        return query

    def clear(self) -> None:
        self.constraints = None
        self.constraints_query = ""
        self.drop_foreign_keys = ""


@dataclass(frozen=True)
class ExportOptions:
    """Immutable snapshot of the export options for one run."""
    include_comments: bool = True
    header_comment: str = ""
    dates: bool = False
    relation: bool = False
    mime: bool = False
    use_transaction: bool = False
    disable_fk: bool = False
    compatibility: str = "NONE"
    drop_database: bool = False
    structure_or_data: StructureOrData = StructureOrData.STRUCTURE_AND_DATA
    drop_table: bool = False
    procedure_function: bool = False
    if_not_exists: bool = False
    auto_increment: bool = True
    backquotes: bool = True
    truncate: bool = False
    delayed: bool = False
    ignore: bool = False
    type: StatementType = StatementType.INSERT
    insert_syntax: InsertSyntax = InsertSyntax.BOTH
    max_query_size: int = 50000
    hex_for_blob: bool = True
    utc_time: bool = True
    crlf: str = "\n"
    as_file: bool = True
    charset_of_file: str = "utf-8"
    no_constraints_comments: bool = False

    _ENUMS = {
        'structure_or_data': StructureOrData,
        'type': StatementType,
        'insert_syntax': InsertSyntax,
    }

    @classmethod
    def from_config(cls, export_config: dict[str, Any]) -> "ExportOptions":
        """Build options from the ``export`` section of the configuration."""
        known = {f.name for f in fields(cls)}
        unknown = set(export_config) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown export option(s): {', '.join(sorted(unknown))}"
            )

        settings = {}
        for key, value in export_config.items():
            enum_cls = cls._ENUMS.get(key)
            if enum_cls is not None and not isinstance(value, enum_cls):
                try:
                    value = enum_cls(value)
                except ValueError:
                    raise ConfigurationError(
                        f"Invalid value '{value}' for export option '{key}'"
                    ) from None
            settings[key] = value

        if 'max_query_size' in settings:
            settings['max_query_size'] = int(settings['max_query_size'] or 0)
        return cls(**settings)


@dataclass
class DataSelection:
    """Merged row selection settings for dumping a table's data."""
    row_limit: Optional[int] = None
    order_by: Optional[str] = None
    order_direction: OrderDirection = OrderDirection.ASC
    where_clause: Optional[str] = None

    @classmethod
    def from_configs(
        cls,
        defaults: dict[str, Any],
        db_config: dict[str, Any],
        table_config: dict[str, Any]
    ) -> "DataSelection":
        """
        Create DataSelection by merging configs with priority: table > database > defaults.
        """
        settings = {}
        for key in ['row_limit', 'order_by', 'order_direction', 'where_clause']:
            if key in defaults:
                settings[key] = defaults[key]
            if key in db_config:
                settings[key] = db_config[key]
            if key in table_config:
                settings[key] = table_config[key]
        if 'order_direction' in settings:
            settings['order_direction'] = OrderDirection(str(settings['order_direction']).upper())
        return cls(**settings)


@dataclass
class TableStats:
    """Statistics for a single table dump."""
    table: str
    rows_dumped: int = 0
    success: bool = False
    error: Optional[str] = None


@dataclass
class DatabaseStats:
    """Statistics for a single database dump."""
    name: str
    instance: str
    file_path: str = ""
    tables: list[TableStats] = field(default_factory=list)
    total_rows: int = 0
    # DROP FOREIGN KEY statements that undo the dumped constraints
    drop_foreign_keys: str = ""


@dataclass
class ExportStats:
    """Overall export statistics."""
    databases: list[DatabaseStats] = field(default_factory=list)
    total_tables: int = 0
    total_rows: int = 0
    errors: list[dict[str, Any]] = field(default_factory=list)
