from datetime import datetime


class Column:
    sql_type = "TEXT"

    def __init__(self, dtype, pk=False, nullable=True, unique=False, default=None, auto_increment=False):
        self.dtype = dtype
        self.pk = pk
        self.nullable = nullable
        self.unique = unique
        self.default = default
        self.auto_increment = auto_increment

    def get_default(self):
        return self.default() if callable(self.default) else self.default

    def to_db(self, value):
        return value

    def from_db(self, value):
        return value

    def __repr__(self):
        flags = [f for f in ("pk", "unique", "auto_increment") if getattr(self, f)]
        if not self.nullable:
            flags.append("not_null")
        return f"<{' '.join([self.__class__.__name__] + flags)}>"


class Text(Column):
    def __init__(self, pk=False, nullable=True, unique=False, default=None):
        super().__init__(str, pk, nullable, unique, default)


class Number(Column):
    sql_type = "INTEGER"

    def __init__(self, pk=False, nullable=True, unique=False, default=None, auto_increment=False):
        super().__init__(int, pk, nullable, unique, default, auto_increment)


class Real(Column):
    sql_type = "REAL"

    def __init__(self, pk=False, nullable=True, unique=False, default=None):
        super().__init__(float, pk, nullable, unique, default)


class Boolean(Column):
    sql_type = "INTEGER"

    def __init__(self, nullable=True, default=None):
        super().__init__(bool, nullable=nullable, default=default)

    def to_db(self, value):
        return None if value is None else int(bool(value))

    def from_db(self, value):
        return None if value is None else bool(value)


class DateTime(Column):
    def __init__(self, nullable=True, default=None):
        super().__init__(datetime, nullable=nullable, default=default)

    def to_db(self, value):
        return value.isoformat() if isinstance(value, datetime) else value

    def from_db(self, value):
        return datetime.fromisoformat(value) if isinstance(value, str) else value


class ForeignKey(Column):
    sql_type = "INTEGER"

    def __init__(self, target_table, target_column, pk=False, nullable=True, unique=False,
                 on_delete="CASCADE", on_update="CASCADE", referenced=None):
        # ``referenced`` is the target column; the key stores values the same way
        super().__init__(referenced.dtype if referenced else int, pk=pk, nullable=nullable, unique=unique)
        self.target_table = target_table
        self.target_column = target_column
        self.on_delete = on_delete
        self.on_update = on_update
        self.referenced = referenced
        if referenced is not None:
            self.sql_type = referenced.sql_type

    def to_db(self, value):
        return self.referenced.to_db(value) if self.referenced else value

    def from_db(self, value):
        return self.referenced.from_db(value) if self.referenced else value

    def __repr__(self):
        return f"<ForeignKey {self.target_table}({self.target_column})>"
