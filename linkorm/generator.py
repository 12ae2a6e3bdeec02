import logging

from linkorm.builder import QueryBuilder
from linkorm.orm_types import ForeignKey

logger = logging.getLogger("LinkORM.schema")


class SchemaGenerator:
    def __init__(self, query_builder=None):
        self.query_builder = query_builder or QueryBuilder()

    def _quote(self, identifier):
        return self.query_builder._quote(identifier)

    def generate_create_table(self, mapper):
        table_name = mapper.table_name
        column_defs = []
        pk_cols = mapper.primary_keys
        single_pk = len(pk_cols) == 1

        for name, col in mapper.columns.items():
            constraints = []
            if single_pk and name == pk_cols[0]:
                constraints.append("PRIMARY KEY")
                if col.auto_increment:
                    constraints.append("AUTOINCREMENT")
            if not col.nullable:
                constraints.append("NOT NULL")
            if col.unique and not col.pk:
                constraints.append("UNIQUE")
            column_defs.append(" ".join([self._quote(name), col.sql_type] + constraints))

        if not single_pk:
            quoted = ", ".join(self._quote(c) for c in pk_cols)
            column_defs.append(f"PRIMARY KEY ({quoted})")

        for name, col in mapper.columns.items():
            if isinstance(col, ForeignKey):
                column_defs.append(
                    f"FOREIGN KEY ({self._quote(name)}) "
                    f"REFERENCES {self._quote(col.target_table)} ({self._quote(col.target_column)}) "
                    f"ON DELETE {col.on_delete} ON UPDATE {col.on_update}"
                )

        return f"CREATE TABLE IF NOT EXISTS {self._quote(table_name)} ({', '.join(column_defs)});"

    def generate_drop_table(self, mapper):
        return f"DROP TABLE IF EXISTS {self._quote(mapper.table_name)};"

    def create_table(self, engine, mapper, drop_first=False):
        if drop_first:
            engine.execute(self.generate_drop_table(mapper))
        engine.execute(self.generate_create_table(mapper))
        logger.debug(f"Table {mapper.table_name} ready")

    def drop_table(self, engine, mapper):
        engine.execute(self.generate_drop_table(mapper))

    def create_all(self, engine, mappers, drop_first=False):
        """Create tables for ``mappers`` given in dependency order (referenced tables first)."""
        mappers = list(mappers)
        if drop_first:
            self.drop_all(engine, mappers)
        for mapper in mappers:
            self.create_table(engine, mapper)

    def drop_all(self, engine, mappers):
        """Drop tables for ``mappers`` given in dependency order; dependents are dropped first."""
        for mapper in reversed(list(mappers)):
            self.drop_table(engine, mapper)
