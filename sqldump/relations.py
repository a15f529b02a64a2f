"""
Relation and MIME type annotations for dumped tables.
"""

from typing import Any

from .models import Relation


class RelationStore:
    """Source of foreign key relation and MIME type annotations."""

    def get_foreigners(self, db: str, table: str) -> dict[str, Relation]:
        """Return column name -> relation for a table."""
        return {}

    def get_mime(self, db: str, table: str) -> dict[str, str]:
        """Return column name -> MIME type for a table."""
        return {}


class StaticRelationStore(RelationStore):
    """
    Annotations declared in the configuration file.

    Expected layout, keyed by ``database.table``::

        relations:
          shop.orders:
            foreign_keys:
              customer_id: customers.id
            mime:
              invoice: application/pdf
    """

    def __init__(self, relations: dict[str, Any]):
        self.relations = relations or {}

    def _table_config(self, db: str, table: str) -> dict[str, Any]:
        return self.relations.get(f"{db}.{table}") or {}

    def get_foreigners(self, db: str, table: str) -> dict[str, Relation]:
        foreigners = {}
        for column, target in self._table_config(db, table).get('foreign_keys', {}).items():
            parts = target.split('.')
            if len(parts) == 3:
                foreign_db, foreign_table, foreign_field = parts
            else:
                foreign_db = None
                foreign_table, foreign_field = parts[0], parts[-1]
            foreigners[column] = Relation(
                foreign_table=foreign_table,
                foreign_field=foreign_field,
                foreign_db=foreign_db,
            )
        return foreigners

    def get_mime(self, db: str, table: str) -> dict[str, str]:
        return dict(self._table_config(db, table).get('mime', {}))
