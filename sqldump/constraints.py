"""
Extraction of foreign key constraints from CREATE TABLE statements.

Foreign keys are cut out of each table definition and re-emitted as
ALTER TABLE statements after all tables of a database were created, so that
tables can be loaded in any order.
"""

import logging
import re
from typing import Callable, Optional

from .models import ConstraintSet
from .utils import backquote

CONSTRAINT_PATTERN = re.compile(r'CONSTRAINT|FOREIGN\s+KEY')
CONSTRAINT_START_PATTERN = re.compile(r'^\s*(CONSTRAINT|FOREIGN\s+KEY)')
CONSTRAINT_NAME_PATTERN = re.compile(r'(CONSTRAINT)(\s)(\S*)(\s)')
FOREIGN_KEY_PATTERN = re.compile(r'(FOREIGN\s+KEY)')
TRAILING_COMMA_PATTERN = re.compile(r',$')


def find_constraint_start(lines: list[str]) -> Optional[int]:
    """Return the index of the first constraint line, or None."""
    for i, line in enumerate(lines):
        if CONSTRAINT_START_PATTERN.match(line):
            return i
    return None


def rewrite_constraint_line(line: str) -> tuple[str, Optional[str]]:
    """
    Turn a constraint line of a table definition into an ADD clause.

    Returns:
        Tuple of (ADD clause, constraint name or None). Only named
        constraints yield a name usable for DROP FOREIGN KEY.
    """
    if 'CONSTRAINT' not in line:
        return FOREIGN_KEY_PATTERN.sub(r'ADD \1', line, count=1), None

    clause = re.sub(r'(CONSTRAINT)', r'ADD \1', line, count=1)
    match = CONSTRAINT_NAME_PATTERN.search(line)
    return clause, match.group(3) if match else None


def extract_constraints(
    create_query: str,
    db: str,
    table: str,
    crlf: str,
    constraints: ConstraintSet,
    comment: Optional[Callable[..., str]] = None
) -> str:
    """
    Remove the constraint block from a CREATE TABLE statement.

    The removed lines are rewritten into ALTER TABLE statements and appended
    to ``constraints``. Pass ``comment`` to get the comment headings in the
    display buffer.

    Returns:
        The CREATE TABLE statement without constraints. Text without a
        constraint block is returned unchanged.
    """
    if not CONSTRAINT_PATTERN.search(create_query):
        return create_query

    lines = create_query.split(crlf)
    start = find_constraint_start(lines)
    if start is None:
        return create_query

    if start > 0:
        lines[start - 1] = TRAILING_COMMA_PATTERN.sub('', lines[start - 1])

    if constraints.constraints is None:
        if comment is None:
            constraints.constraints = ''
        else:
            constraints.constraints = (
                crlf
                + comment()
                + comment('Constraints for dumped tables')
                + comment()
            )

    if comment is not None:
        constraints.constraints += (
            crlf
            + comment()
            + comment(f'Constraints for table {backquote(table)}')
            + comment()
        )

    clauses = []
    drops = []
    end = len(lines)
    for j in range(start, len(lines)):
        if not CONSTRAINT_PATTERN.search(lines[j]):
            end = j
            break
        clause, name = rewrite_constraint_line(lines[j])
        clauses.append(TRAILING_COMMA_PATTERN.sub('', clause))
        if name is not None:
            drops.append(f'DROP FOREIGN KEY {name}')

    alter = f'ALTER TABLE {backquote(table)}{crlf}' + f',{crlf}'.join(clauses)
    constraints.constraints += alter + ';' + crlf
    constraints.constraints_query += alter + ';'
    if drops:
        constraints.drop_foreign_keys += (
            f'ALTER TABLE {backquote(db)}.{backquote(table)}{crlf}'
            + ', '.join(drops)
            + ';' + crlf
        )

    logging.debug(f"Extracted {len(clauses)} constraint(s) from table '{table}'")

    return crlf.join(lines[:start]) + crlf + crlf.join(lines[end:])
