"""
SQL Dump
========
Exports MySQL and Drizzle databases as SQL dumps with support for:
- Structure, data or both
- INSERT / REPLACE / UPDATE statements, extended inserts with a size limit
- Foreign keys moved into ALTER TABLE statements after all tables
- Triggers, stored routines and events
- View stand-ins to resolve view dependencies
- Compressed output
"""

from .config import ConfigLoader
from .connection import DatabaseConnection
from .constraints import extract_constraints
from .dialects import DRIZZLE, MYSQL, Dialect, get_dialect
from .encoding import ValueEncoder, build_unique_condition
from .exceptions import ConfigurationError, ConnectionError, MetadataError, SqlDumpError
from .exporter import DatabaseExporter
from .formatter import SqlDumpFormatter
from .main import main
from .models import (
    ColumnInfo,
    ConstraintSet,
    DatabaseStats,
    DataSelection,
    ExportMode,
    ExportOptions,
    ExportStats,
    ExportType,
    FieldMeta,
    InsertSyntax,
    OrderDirection,
    ServerInfo,
    StatementType,
    StructureOrData,
    TableStats,
    TableStatus,
    Trigger,
)
from .output import BufferOutputSink, FileOutputSink, OutputSink
from .relations import RelationStore, StaticRelationStore
from .utils import backquote, print_dry_run_info, setup_logging
from .version import __version__

__all__ = [
    # Main entry point
    "main",
    # Core classes
    "ConfigLoader",
    "DatabaseConnection",
    "DatabaseExporter",
    "SqlDumpFormatter",
    "ValueEncoder",
    "extract_constraints",
    "build_unique_condition",
    # Dialects
    "Dialect",
    "MYSQL",
    "DRIZZLE",
    "get_dialect",
    # Output
    "OutputSink",
    "BufferOutputSink",
    "FileOutputSink",
    # Relations
    "RelationStore",
    "StaticRelationStore",
    # Models
    "ColumnInfo",
    "ConstraintSet",
    "DatabaseStats",
    "DataSelection",
    "ExportMode",
    "ExportOptions",
    "ExportStats",
    "ExportType",
    "FieldMeta",
    "InsertSyntax",
    "OrderDirection",
    "ServerInfo",
    "StatementType",
    "StructureOrData",
    "TableStats",
    "TableStatus",
    "Trigger",
    # Exceptions
    "SqlDumpError",
    "ConfigurationError",
    "ConnectionError",
    "MetadataError",
    # Utilities
    "backquote",
    "print_dry_run_info",
    "setup_logging",
    "__version__",
]
