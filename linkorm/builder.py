import re

from linkorm.filters import (
    FilterExpression, ComparisonFilter, InFilter, LikeFilter, NullFilter,
    BetweenFilter, NotFilter, CombinedFilter, ColumnFilter,
)

_COMPARISON_OPERATORS = {'=', '!=', '<', '<=', '>', '>='}


class QueryBuilder:
    def __init__(self):
        self._safe_ident_pattern = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*$')

    def _quote(self, identifier):
        if not identifier or not self._safe_ident_pattern.match(str(identifier)):
            raise ValueError(f"Unsafe SQL identifier: {identifier}")
        return f'"{identifier}"'

    def _ref(self, table_name, column):
        if table_name is None:
            return self._quote(column)
        return f"{self._quote(table_name)}.{self._quote(column)}"

    def build_insert(self, table_name, data):
        """Build INSERT SQL from table name and data dict. Does not use mapper."""
        table = self._quote(table_name)
        if not data:
            return f"INSERT INTO {table} DEFAULT VALUES", ()
        fields = list(data.keys())
        quoted_fields = [self._quote(f) for f in fields]
        placeholders = ", ".join(["?" for _ in fields])
        values = [data[f] for f in fields]
        sql = f"INSERT INTO {table} ({', '.join(quoted_fields)}) VALUES ({placeholders})"
        return sql, tuple(values)

    def build_select(self, mapper, where=None, order_by=None, limit=None, offset=None, through=None):
        """
        SELECT the mapper's columns. ``through`` is an
        ``(assoc_table, local_key, remote_key, local_id)`` tuple restricting
        the rows to those linked to ``local_id`` in the join table.
        """
        table_name = mapper.table_name
        table = self._quote(table_name)
        cols = [f"{self._ref(table_name, c)} AS {self._quote(c)}" for c in mapper.columns.keys()]

        sql = f"SELECT {', '.join(cols)} FROM {table}"
        join_sql, where_parts, params = self._through_join(mapper, through)
        sql += join_sql

        where_sql, where_params = self.build_where(where, table_name)
        if where_sql:
            where_parts.append(where_sql)
            params.extend(where_params)
        if where_parts:
            sql += " WHERE " + " AND ".join(where_parts)

        if order_by:
            order_clauses = []
            for column, direction in order_by:
                direction = direction.upper()
                if direction not in ("ASC", "DESC"):
                    raise ValueError(f"Invalid order direction: {direction}")
                order_clauses.append(f"{self._ref(table_name, column)} {direction}")
            sql += " ORDER BY " + ", ".join(order_clauses)

        if limit is not None:
            sql += f" LIMIT {int(limit)}"
            if offset is not None: sql += f" OFFSET {int(offset)}"
        elif offset is not None:
            sql += f" LIMIT -1 OFFSET {int(offset)}"

        return sql, tuple(params)

    def build_count(self, mapper, where=None, through=None):
        table_name = mapper.table_name
        sql = f"SELECT COUNT(*) AS count FROM {self._quote(table_name)}"
        join_sql, where_parts, params = self._through_join(mapper, through)
        sql += join_sql

        where_sql, where_params = self.build_where(where, table_name)
        if where_sql:
            where_parts.append(where_sql)
            params.extend(where_params)
        if where_parts:
            sql += " WHERE " + " AND ".join(where_parts)
        return sql, tuple(params)

    def _through_join(self, mapper, through):
        if through is None:
            return "", [], []
        assoc_table, local_key, remote_key, local_id = through
        join_sql = (
            f" JOIN {self._quote(assoc_table)} ON "
            f"{self._ref(mapper.table_name, mapper.pk)} = {self._ref(assoc_table, remote_key)}"
        )
        return join_sql, [f"{self._ref(assoc_table, local_key)} = ?"], [local_id]

    def build_update(self, table_name, data, where):
        """Build UPDATE SQL from table name, data dict and equality ``where`` dict."""
        if not where:
            raise ValueError("update requires a WHERE clause")
        table = self._quote(table_name)
        set_parts = []
        params = []
        for col, val in data.items():
            set_parts.append(f"{self._quote(col)} = ?")
            params.append(val)
        where_sql, where_params = self.build_where(where, None)
        params.extend(where_params)
        sql = f"UPDATE {table} SET {', '.join(set_parts)} WHERE {where_sql}"
        return sql, tuple(params)

    def build_delete(self, table_name, where=None):
        """Build DELETE SQL from table name and optional filter. Does not use mapper."""
        sql = f"DELETE FROM {self._quote(table_name)}"
        where_sql, params = self.build_where(where, None)
        if where_sql:
            sql += f" WHERE {where_sql}"
        return sql, tuple(params)

    def build_m2m_select(self, assoc_table, local_id, local_key, remote_key, remote_ids=None):
        """Remote ids currently linked to ``local_id``, optionally restricted to ``remote_ids``."""
        table = self._quote(assoc_table)
        sql = f"SELECT {self._quote(remote_key)} FROM {table} WHERE {self._quote(local_key)} = ?"
        params = [local_id]
        if remote_ids is not None:
            in_sql, in_params = self._in_clause(self._quote(remote_key), remote_ids)
            sql += f" AND {in_sql}"
            params.extend(in_params)
        return sql, tuple(params)

    def build_m2m_update(self, assoc_table, local_id, remote_id, local_key, remote_key, data):
        return self.build_update(assoc_table, data, {local_key: local_id, remote_key: remote_id})

    def build_m2m_delete(self, assoc_table, local_id, remote_ids, local_key, remote_key):
        table = self._quote(assoc_table)
        in_sql, in_params = self._in_clause(self._quote(remote_key), remote_ids)
        sql = f"DELETE FROM {table} WHERE {self._quote(local_key)} = ? AND {in_sql}"
        return sql, (local_id, *in_params)

    def build_m2m_cleanup(self, assoc_table, local_id, local_key):
        table = self._quote(assoc_table)
        l_key = self._quote(local_key)
        sql = f"DELETE FROM {table} WHERE {l_key} = ?"
        return sql, (local_id,)

    def _in_clause(self, ref, values, negate=False):
        values = list(values)
        if not values:
            return ("1 = 1" if negate else "0 = 1"), []
        placeholders = ", ".join("?" for _ in values)
        op = "NOT IN" if negate else "IN"
        return f"{ref} {op} ({placeholders})", values

    def build_where(self, where, table_name):
        """Turn a ``where`` dict or FilterExpression into ``(sql, params)``."""
        if where is None:
            return "", []
        if isinstance(where, FilterExpression):
            return self.compile_filter(where, table_name)
        if not isinstance(where, dict):
            raise TypeError(f"Unsupported where clause: {where!r}")

        parts, params = [], []
        for column, value in where.items():
            ref = self._ref(table_name, column)
            if value is None:
                parts.append(f"{ref} IS NULL")
            elif isinstance(value, (list, tuple, set)):
                in_sql, in_params = self._in_clause(ref, value)
                parts.append(in_sql)
                params.extend(in_params)
            else:
                parts.append(f"{ref} = ?")
                params.append(value)
        return " AND ".join(parts), params

    def compile_filter(self, expr, table_name):
        if isinstance(expr, CombinedFilter):
            compiled = [self.compile_filter(f, table_name) for f in expr.filters]
            sql = f" {expr.logic} ".join(f"({s})" for s, _ in compiled)
            return sql, [p for _, params in compiled for p in params]

        if isinstance(expr, NotFilter):
            sql, params = self.compile_filter(expr.filter_expr, table_name)
            return f"NOT ({sql})", params

        ref = self._ref(table_name, expr.column_name)

        if isinstance(expr, ComparisonFilter):
            if expr.operator not in _COMPARISON_OPERATORS:
                raise ValueError(f"Unsupported operator: {expr.operator}")
            if expr.is_field_comparison:
                return f"{ref} {expr.operator} {self._ref(table_name, expr.value.column_name)}", []
            if expr.value is None and expr.operator in ('=', '!='):
                return f"{ref} IS {'NOT ' if expr.operator == '!=' else ''}NULL", []
            return f"{ref} {expr.operator} ?", [expr.value]

        if isinstance(expr, InFilter):
            return self._in_clause(ref, expr.values, negate=expr.negate)

        if isinstance(expr, LikeFilter):
            if expr.case_sensitive:
                return f"{ref} LIKE ?", [expr.pattern]
            return f"LOWER({ref}) LIKE LOWER(?)", [expr.pattern]

        if isinstance(expr, NullFilter):
            return f"{ref} IS {'NOT ' if expr.negate else ''}NULL", []

        if isinstance(expr, BetweenFilter):
            return f"{ref} BETWEEN ? AND ?", [expr.lower, expr.upper]

        if isinstance(expr, ColumnFilter):
            raise TypeError(f"Incomplete filter on column '{expr.column_name}'")
        raise TypeError(f"Unsupported filter expression: {expr!r}")
