"""
Many-to-many associations.

``Source.belongs_to_many(Target, through=..., alias=...)`` resolves (or
registers) the join table and installs accessors on ``Source``. With
``alias="Tasks"``:

    user.get_tasks()            user.count_tasks()
    user.add_task(task)         user.add_tasks([t1, t2])
    user.set_tasks([t1, t2])    user.create_task(name="...")
    user.remove_task(task)      user.remove_tasks([t1, t2])
    user.has_task(task)         user.has_tasks([t1, t2])

Every accessor goes to the database; nothing is cached on the instance.
"""
import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from linkorm.errors import AssociationError
from linkorm.inflection import pluralize, singularize, underscore, combine_table_names
from linkorm.model import Model
from linkorm.orm_types import ForeignKey
from linkorm.query import Query

logger = logging.getLogger("LinkORM.associations")


class BelongsToMany:
    association_type = "BelongsToMany"

    def __init__(self, source, target, through=None, alias=None, foreign_key=None, other_key=None,
                 through_timestamps=False):
        if not (isinstance(target, type) and issubclass(target, Model)) or target._mapper is None:
            raise AssociationError(f"{source.__name__}.belongs_to_many called with something that is not a model")
        self.orm = source.get_orm()
        if target.get_orm() is not self.orm:
            raise AssociationError("Both sides of an association must belong to the same LinkORM instance")

        self.source = source
        self.target = target
        self.is_self_association = source is target

        if alias:
            self.plural = alias
            self.singular = singularize(alias)
        else:
            self.plural = pluralize(target._mapper.model_name)
            self.singular = singularize(target._mapper.model_name)
        self.as_ = self.plural

        if self.as_ in source._mapper.associations:
            raise AssociationError(
                f"Alias {self.as_} is already used by another association on {source._mapper.model_name}"
            )

        self.foreign_key = foreign_key or self._key_name(singularize(source._mapper.model_name), source)
        if other_key:
            self.other_key = other_key
        elif self.is_self_association:
            self.other_key = self._key_name(self.singular, target)
        else:
            self.other_key = self._key_name(singularize(target._mapper.model_name), target)
        if self.foreign_key == self.other_key:
            raise AssociationError(
                f"Join table keys of {source._mapper.model_name}.{self.as_} are both '{self.foreign_key}'; "
                "pass an alias or explicit keys"
            )

        self.through_model = self._resolve_through_model(through, through_timestamps)
        self.accessors = self._accessor_names()
        self._check_accessors()

        source._mapper.associations[self.as_] = self
        self._install_accessors()
        logger.info(
            f"{source._mapper.model_name}.belongs_to_many({target._mapper.model_name}) "
            f"as {self.as_} through {self.through_name}"
        )

    def __repr__(self):
        return (f"<BelongsToMany {self.source._mapper.model_name}.{self.as_} -> "
                f"{self.target._mapper.model_name} through={self.through_name}>")

    @staticmethod
    def _key_name(name, model):
        return f"{underscore(name)}_{model._mapper.pk}"

    @property
    def through_name(self):
        return self.through_model._mapper.model_name

    @property
    def through_table(self):
        return self.through_model._mapper.table_name

    # -- declaration -------------------------------------------------------

    def _resolve_through_model(self, through, through_timestamps):
        if isinstance(through, type) and issubclass(through, Model):
            model = through
            if model.get_orm() is not self.orm:
                raise AssociationError("Through model belongs to another LinkORM instance")
        else:
            if through is None:
                name = combine_table_names(self.source._mapper.table_name, self.target._mapper.table_name)
            elif isinstance(through, str):
                name = through
            else:
                raise AssociationError(f"Invalid through option: {through!r}")

            model = self.orm.model_manager.get_model(name)
            if model is None:
                model = self.orm.define(name, {
                    self.foreign_key: self._key_column(self.source, pk=True),
                    self.other_key: self._key_column(self.target, pk=True),
                }, table_name=name, timestamps=through_timestamps)

        model._mapper.add_column(self.foreign_key, self._key_column(self.source))
        model._mapper.add_column(self.other_key, self._key_column(self.target))
        return model

    @staticmethod
    def _key_column(model, pk=False):
        mapper = model._mapper
        return ForeignKey(mapper.table_name, mapper.pk, pk=pk, nullable=False,
                          referenced=mapper.columns[mapper.pk])

    def _accessor_names(self):
        plural = underscore(self.plural)
        singular = underscore(self.singular)
        if plural == singular:
            raise AssociationError(
                f"Alias {self.plural} has identical singular and plural forms; use a distinct alias"
            )
        return {
            "get": f"get_{plural}",
            "set": f"set_{plural}",
            "add_multiple": f"add_{plural}",
            "add": f"add_{singular}",
            "create": f"create_{singular}",
            "remove": f"remove_{singular}",
            "remove_multiple": f"remove_{plural}",
            "has_single": f"has_{singular}",
            "has_all": f"has_{plural}",
            "count": f"count_{plural}",
        }

    def _check_accessors(self):
        taken = [
            name for name in self.accessors.values()
            if name in self.source._mapper.columns or hasattr(self.source, name)
        ]
        if taken:
            raise AssociationError(
                f"Accessor(s) {', '.join(taken)} clash with existing attributes of "
                f"{self.source._mapper.model_name}",
                details={"accessors": taken}
            )

    def _install_accessors(self):
        methods = {
            "get": self.get, "set": self.set, "add": self.add, "add_multiple": self.add,
            "create": self.create, "remove": self.remove, "remove_multiple": self.remove,
            "has_single": self.has, "has_all": self.has, "count": self.count,
        }
        for key, method in methods.items():
            setattr(self.source, self.accessors[key], self._make_accessor(self.accessors[key], method))

    def _make_accessor(self, name, method):
        def accessor(instance, *args, **kwargs):
            return method(instance, *args, **kwargs)

        accessor.__name__ = name
        accessor.__qualname__ = f"{self.source.__name__}.{name}"
        accessor.__doc__ = method.__doc__
        return accessor

    # -- helpers -----------------------------------------------------------

    def _source_id(self, instance):
        if not isinstance(instance, self.source):
            raise AssociationError(f"{instance!r} is not a {self.source._mapper.model_name}")
        if instance.is_new_record:
            raise AssociationError(f"{instance!r} must be saved before using its {self.as_} association")
        return instance.__dict__.get(self.source._mapper.pk)

    def _target_ids(self, targets):
        """Primary keys of ``targets``: one instance/key or any iterable of them, duplicates dropped."""
        if targets is None:
            return []
        if isinstance(targets, Iterable) and not isinstance(targets, (str, bytes)):
            items = list(targets)
        else:
            items = [targets]
        ids = []
        for item in items:
            if isinstance(item, Model):
                if not isinstance(item, self.target):
                    raise AssociationError(
                        f"{item!r} is not a {self.target._mapper.model_name}, cannot use it in {self.as_}"
                    )
                if item.is_new_record:
                    raise AssociationError(f"{item!r} must be saved before it can be associated")
                value = item.__dict__.get(self.target._mapper.pk)
            else:
                value = item
            if value not in ids:
                ids.append(value)
        return ids

    def _linked_ids(self, source_id, target_ids=None):
        sql, params = self.orm.query_builder.build_m2m_select(
            self.through_table, source_id, self.foreign_key, self.other_key, target_ids
        )
        return {row[0] for row in self.orm.engine.execute(sql, params)}

    def _insert_row(self, source_id, target_id, through):
        values = dict(through or {})
        values[self.foreign_key] = source_id
        values[self.other_key] = target_id
        self.through_model(**values)._insert()

    def _update_row(self, source_id, target_id, through):
        mapper = self.through_model._mapper
        data = {name: mapper.columns[name].to_db(value) for name, value in through.items()}
        if mapper.timestamps:
            data["updated_at"] = mapper.columns["updated_at"].to_db(datetime.now(timezone.utc))
        sql, params = self.orm.query_builder.build_m2m_update(
            self.through_table, source_id, target_id, self.foreign_key, self.other_key, data
        )
        self.orm.engine.execute_write(sql, params)

    def _check_through_values(self, through):
        if not through:
            return
        columns = self.through_model._mapper.columns
        unknown = [name for name in through if name not in columns]
        keys = [name for name in through if name in (self.foreign_key, self.other_key)]
        if unknown or keys:
            raise AssociationError(
                f"Invalid join table attribute(s) for {self.through_name}: {', '.join(unknown + keys)}"
            )

    # -- accessors ---------------------------------------------------------

    def _scoped_query(self, instance):
        source_id = self._source_id(instance)
        return Query(self.target).join_through(
            self.through_table, self.foreign_key, self.other_key, source_id
        )

    def get(self, instance, where=None, order=None, limit=None, offset=None):
        return (self._scoped_query(instance)
                .where(where).order_by(order).limit(limit).offset(offset).all())

    def count(self, instance, where=None):
        return self._scoped_query(instance).where(where).count()

    def has(self, instance, targets):
        source_id = self._source_id(instance)
        ids = self._target_ids(targets)
        if not ids:
            return True
        linked = self._linked_ids(source_id, ids)
        return all(target_id in linked for target_id in ids)

    def add(self, instance, targets, through=None):
        """Link ``targets``; pairs already linked only get their ``through`` values updated."""
        source_id = self._source_id(instance)
        ids = self._target_ids(targets)
        self._check_through_values(through)
        if not ids:
            return
        with self.orm.transaction():
            linked = self._linked_ids(source_id, ids)
            for target_id in ids:
                if target_id in linked:
                    if through:
                        self._update_row(source_id, target_id, through)
                    continue
                self._insert_row(source_id, target_id, through)
        logger.debug(f"{instance!r}.{self.as_}: added {ids}")

    def set(self, instance, targets, through=None):
        """Make ``targets`` the complete associated set; ``None`` or ``[]`` clears it."""
        source_id = self._source_id(instance)
        ids = self._target_ids(targets)
        self._check_through_values(through)
        with self.orm.transaction():
            if not ids:
                sql, params = self.orm.query_builder.build_m2m_cleanup(
                    self.through_table, source_id, self.foreign_key
                )
                self.orm.engine.execute_write(sql, params)
                return

            linked = self._linked_ids(source_id)
            obsolete = [target_id for target_id in linked if target_id not in ids]
            if obsolete:
                sql, params = self.orm.query_builder.build_m2m_delete(
                    self.through_table, source_id, obsolete, self.foreign_key, self.other_key
                )
                self.orm.engine.execute_write(sql, params)

            for target_id in ids:
                if target_id in linked:
                    if through:
                        self._update_row(source_id, target_id, through)
                    continue
                self._insert_row(source_id, target_id, through)
        logger.debug(f"{instance!r}.{self.as_}: set to {ids}")

    def remove(self, instance, targets):
        source_id = self._source_id(instance)
        ids = self._target_ids(targets)
        if not ids:
            return 0
        sql, params = self.orm.query_builder.build_m2m_delete(
            self.through_table, source_id, ids, self.foreign_key, self.other_key
        )
        removed = self.orm.engine.execute_write(sql, params)
        logger.debug(f"{instance!r}.{self.as_}: removed {ids}")
        return removed

    def create(self, instance, through=None, **values):
        """Create a target row from ``values`` and link it."""
        self._source_id(instance)
        self._check_through_values(through)
        with self.orm.transaction():
            new_target = self.target.create(**values)
            self.add(instance, new_target, through=through)
        return new_target
