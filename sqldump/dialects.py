"""
Server dialect capabilities.

MySQL and Drizzle share the dump format but differ in what the server
supports and how it reports some metadata. The formatter checks these flags
instead of comparing dialect names.
"""

from dataclasses import dataclass

from .exceptions import ConfigurationError


@dataclass(frozen=True)
class Dialect:
    """Capabilities of a source server dialect."""
    name: str
    supports_routines: bool = True
    supports_events: bool = True
    supports_delayed: bool = True
    supports_sql_mode: bool = True
    supports_charset_directives: bool = True
    supports_quote_show_create: bool = True
    supports_utc_switch: bool = True
    # ROW_FORMAT='COMPACT' in SHOW CREATE TABLE must be unquoted
    quotes_row_format: bool = False
    # SHOW TABLE STATUS has no creation/update times
    status_lacks_dates: bool = False
    collation_only_create_database: bool = False
    # USE keeps its backquotes whatever the compatibility mode
    backquote_use_in_any_mode: bool = False


MYSQL = Dialect(name="mysql")

DRIZZLE = Dialect(
    name="drizzle",
    supports_routines=False,
    supports_events=False,
    supports_delayed=False,
    supports_sql_mode=False,
    supports_charset_directives=False,
    supports_quote_show_create=False,
    supports_utc_switch=False,
    quotes_row_format=True,
    status_lacks_dates=True,
    collation_only_create_database=True,
    backquote_use_in_any_mode=True,
)

DIALECTS = {dialect.name: dialect for dialect in (MYSQL, DRIZZLE)}


def get_dialect(name: str) -> Dialect:
    """Look up a dialect by name (case insensitive)."""
    try:
        return DIALECTS[name.lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown dialect '{name}', expected one of: {', '.join(sorted(DIALECTS))}"
        ) from None
