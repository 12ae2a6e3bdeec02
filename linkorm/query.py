from linkorm.errors import ModelError
from linkorm.filters import FilterExpression, col, and_


class Query:
    def __init__(self, model_class):
        self.model_class = model_class
        self.orm = model_class.get_orm()
        self.mapper = model_class._mapper
        self.filters = []
        self._order = []
        self._limit = None
        self._offset = None
        self._through = None

    def filter(self, *expressions, **kwargs):
        for expr in expressions:
            self.where(expr)
        if kwargs:
            self.where(kwargs)
        return self

    def where(self, where):
        if where is None:
            return self
        if isinstance(where, dict):
            unknown = [name for name in where if name not in self.mapper.columns]
            if unknown:
                raise ModelError(
                    f"Model {self.mapper.model_name} has no column(s) {', '.join(unknown)}",
                    details={"columns": unknown}
                )
            where = and_(*[self._equality(name, value) for name, value in where.items()])
        elif not isinstance(where, FilterExpression):
            raise TypeError(f"Unsupported where clause: {where!r}")
        self.filters.append(where)
        return self

    def _equality(self, name, value):
        column = self.mapper.columns[name]
        if isinstance(value, (list, tuple, set)):
            return col(name).in_([column.to_db(v) for v in value])
        return col(name) == column.to_db(value)

    def order_by(self, order, direction="ASC"):
        """Accepts ``"name"``, ``("name", "DESC")`` or a list of either."""
        if order is None:
            return self
        if isinstance(order, str):
            self._order.append((order, direction))
        elif isinstance(order, tuple):
            self._order.append(order)
        else:
            for item in order:
                self.order_by(item, direction)
        return self

    def limit(self, value):
        self._limit = value
        return self

    def offset(self, value):
        self._offset = value
        return self

    def join_through(self, assoc_table, local_key, remote_key, local_id):
        """Restrict results to rows linked to ``local_id`` through ``assoc_table``."""
        self._through = (assoc_table, local_key, remote_key, local_id)
        return self

    def _where_clause(self):
        if not self.filters:
            return None
        if len(self.filters) == 1:
            return self.filters[0]
        return and_(*self.filters)

    def all(self):
        sql, params = self.orm.query_builder.build_select(
            self.mapper, self._where_clause(), order_by=self._order,
            limit=self._limit, offset=self._offset, through=self._through
        )
        rows = self.orm.engine.execute(sql, params)
        return [self.mapper.hydrate(row) for row in rows]

    def first(self):
        self.limit(1)
        results = self.all()
        if not results:
            return None
        return results[0]

    def count(self):
        sql, params = self.orm.query_builder.build_count(
            self.mapper, self._where_clause(), through=self._through
        )
        rows = self.orm.engine.execute(sql, params)
        return rows[0]["count"]
