import re
from datetime import datetime, timezone

from linkorm.errors import ModelError
from linkorm.inflection import pluralize
from linkorm.orm_types import Column, Number, DateTime, ForeignKey
from linkorm.states import ObjectState

_IDENTIFIER = re.compile(r'^[a-zA-Z_][a-zA-Z0-9_]*$')

TIMESTAMP_COLUMNS = ("created_at", "updated_at")


class Mapper:
    def __init__(self, cls, columns, meta_attrs):
        self.cls = cls
        self.meta = meta_attrs or {}

        self.model_name = self.meta.get("model_name", cls.__name__)
        self.timestamps = self.meta.get("timestamps", True)
        self.declared_columns = dict(columns)
        self.columns = {}
        self.primary_keys = []
        self.pk = None
        self.associations = {}

        self._resolve_table_name()
        self._resolve_columns()
        self._resolve_pk()

    def __repr__(self):
        cols = ", ".join(self.columns.keys())
        return (
            f"<Mapper model={self.model_name} table={self.table_name} "
            f"columns=[{cols}] pk={'+'.join(self.primary_keys)}>"
        )

    def _resolve_table_name(self):
        if "table_name" in self.meta:
            self.table_name = self.meta["table_name"]
        elif self.meta.get("freeze_table_name", False):
            self.table_name = self.model_name
        else:
            self.table_name = pluralize(self.model_name)
        if not _IDENTIFIER.match(self.table_name or ""):
            raise ModelError(
                f"Invalid table name '{self.table_name}' for model {self.model_name}",
                details={"table_name": self.table_name}
            )

    def _resolve_columns(self):
        declared = {}
        for name, col in self.declared_columns.items():
            if isinstance(col, type) and issubclass(col, Column):
                col = col()
            if not isinstance(col, Column):
                raise ModelError(f"Attribute '{name}' of model {self.model_name} is not a column type")
            if not _IDENTIFIER.match(name):
                raise ModelError(f"Invalid column name '{name}' for model {self.model_name}")
            declared[name] = col
        self.declared_columns = declared

        if not any(col.pk for col in declared.values()):
            self.columns["id"] = Number(pk=True, nullable=False, auto_increment=True)
        self.columns.update(declared)

        if self.timestamps:
            for name in TIMESTAMP_COLUMNS:
                self.columns.setdefault(name, DateTime())

    def _resolve_pk(self):
        self.primary_keys = [name for name, col in self.columns.items() if col.pk]
        if not self.primary_keys:
            raise ModelError(f"Model {self.model_name} has no primary key defined")
        self.pk = self.primary_keys[0]

    @property
    def auto_increment_pk(self):
        if len(self.primary_keys) != 1:
            return None
        col = self.columns[self.pk]
        return self.pk if col.auto_increment else None

    def add_column(self, name, column):
        """Add a column after definition, e.g. a join-table key."""
        if name in self.columns:
            return
        if column.pk and self.auto_increment_pk:
            # an explicit key replaces the generated id
            self.columns.pop(self.auto_increment_pk)
        self.columns[name] = column
        self.declared_columns[name] = column
        self._resolve_pk()

    def foreign_keys(self):
        return {name: col for name, col in self.columns.items() if isinstance(col, ForeignKey)}

    def stamp(self, instance, creating):
        if not self.timestamps:
            return
        now = datetime.now(timezone.utc)
        if creating and instance.__dict__.get("created_at") is None:
            object.__setattr__(instance, "created_at", now)
        object.__setattr__(instance, "updated_at", now)

    def insert_data(self, instance):
        self.stamp(instance, creating=True)
        data = {}
        for name, col in self.columns.items():
            value = instance.__dict__.get(name)
            if value is None and name == self.auto_increment_pk:
                continue
            data[name] = col.to_db(value)
        return data

    def update_data(self, instance, changed):
        self.stamp(instance, creating=False)
        names = list(changed)
        if self.timestamps and "updated_at" not in names:
            names.append("updated_at")
        return {name: self.columns[name].to_db(instance.__dict__.get(name)) for name in names}

    def pk_values(self, instance):
        return {name: instance.__dict__.get(name) for name in self.primary_keys}

    def hydrate(self, row):
        obj = self.cls.__new__(self.cls)
        object.__setattr__(obj, '_orm_state', ObjectState.PERSISTENT)
        keys = row.keys()
        for name, col in self.columns.items():
            value = row[name] if name in keys else None
            object.__setattr__(obj, name, col.from_db(value))
        obj._take_snapshot()
        return obj
