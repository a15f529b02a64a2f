"""
Exception hierarchy for SQL Dump.
"""


class SqlDumpError(Exception):
    """Base exception for all dump errors."""

    pass


class ConfigurationError(SqlDumpError):
    """Raised when the configuration file is invalid or incomplete."""

    pass


class ConnectionError(SqlDumpError):
    """Raised when a database connection cannot be established."""

    pass


class MetadataError(SqlDumpError):
    """Raised when a metadata or data query fails on the server.

    These errors are recoverable: the formatter reports them as a comment in
    the dump and moves on to the next table or statement.
    """

    def __init__(self, message: str, errno: int | None = None):
        super().__init__(message)
        self.errno = errno
