from linkorm.errors import ModelError, RecordNotFoundError
from linkorm.mapper import Mapper
from linkorm.orm_types import Column
from linkorm.query import Query
from linkorm.states import ObjectState


class Model:
    _mapper = None
    _orm = None

    def __repr__(self):
        pk_val = self.__dict__.get(self._mapper.pk) if self._mapper else None
        return f"<{self.__class__.__name__}(id={pk_val if pk_val is not None else 'New'})>"

    def __init__(self, **kwargs):
        mapper = self._mapper
        if mapper is None:
            raise ModelError(f"{self.__class__.__name__} is not bound to a LinkORM instance")
        object.__setattr__(self, '_orm_state', ObjectState.TRANSIENT)
        object.__setattr__(self, '_previous', {})
        for name, col in mapper.columns.items():
            object.__setattr__(self, name, col.get_default())
        for key, value in kwargs.items():
            if key not in mapper.columns:
                raise ModelError(f"Model {mapper.model_name} has no attribute '{key}'")
            setattr(self, key, value)

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)

        columns = {
            name: col
            for name, col in cls.__dict__.items()
            if isinstance(col, Column) or (isinstance(col, type) and issubclass(col, Column))
        }

        meta_cls = cls.__dict__.get("Meta")
        meta_attrs = {}
        if meta_cls:
            for attr in dir(meta_cls):
                if not attr.startswith('_'):
                    meta_attrs[attr] = getattr(meta_cls, attr)

        orm = meta_attrs.pop("orm", None)
        if orm is None:
            # abstract: nothing to map
            return

        reserved = [name for name in columns if callable(getattr(Model, name, None))]
        if reserved:
            raise ModelError(f"Column name(s) {', '.join(reserved)} clash with Model methods")

        cls._mapper = Mapper(cls, columns, meta_attrs)
        cls._orm = orm
        for name in columns:
            # instances hold plain values, the column objects live on the mapper
            delattr(cls, name)
        orm.model_manager.add_model(cls)

    def __setattr__(self, name, value):
        mapper = self._mapper
        if name in mapper.primary_keys and self._orm_state == ObjectState.PERSISTENT:
            current_id = self.__dict__.get(name)
            if current_id is not None and current_id != value:
                raise AttributeError(
                    f"Cannot change primary key '{name}' "
                    f"for {self.__class__.__name__} after it has been persisted."
                )
        object.__setattr__(self, name, value)

    def __eq__(self, other):
        if not isinstance(other, Model) or other._mapper is not self._mapper:
            return NotImplemented
        if self.is_new_record or other.is_new_record:
            return self is other
        return self._mapper.pk_values(self) == other._mapper.pk_values(other)

    def __hash__(self):
        if self.is_new_record:
            return id(self)
        return hash((self._mapper.table_name, tuple(self._mapper.pk_values(self).values())))

    @property
    def is_new_record(self):
        return self._orm_state == ObjectState.TRANSIENT

    # -- class level -------------------------------------------------------

    @classmethod
    def get_orm(cls):
        if cls._orm is None:
            raise ModelError(f"{cls.__name__} is not bound to a LinkORM instance")
        return cls._orm

    @classmethod
    def model_name(cls):
        return cls._mapper.model_name

    @classmethod
    def table_name(cls):
        return cls._mapper.table_name

    @classmethod
    def query(cls):
        return Query(cls)

    @classmethod
    def create(cls, **values):
        instance = cls(**values)
        return instance.save()

    @classmethod
    def bulk_create(cls, records):
        """Insert dicts or unsaved instances in one transaction, returning the instances."""
        instances = [r if isinstance(r, cls) else cls(**r) for r in records]
        with cls.get_orm().transaction():
            for instance in instances:
                instance._insert()
        return instances

    @classmethod
    def find_all(cls, where=None, order=None, limit=None, offset=None):
        return cls.query().where(where).order_by(order).limit(limit).offset(offset).all()

    @classmethod
    def find_one(cls, where=None, order=None):
        return cls.query().where(where).order_by(order).first()

    @classmethod
    def find_by_pk(cls, pk):
        if pk is None:
            return None
        return cls.query().where({cls._mapper.pk: pk}).first()

    @classmethod
    def count(cls, where=None):
        return cls.query().where(where).count()

    @classmethod
    def destroy_all(cls, where=None):
        orm = cls.get_orm()
        sql, params = orm.query_builder.build_delete(cls._mapper.table_name, where)
        return orm.engine.execute_write(sql, params)

    @classmethod
    def sync(cls, force=False):
        orm = cls.get_orm()
        orm.schema_generator.create_table(orm.engine, cls._mapper, drop_first=force)
        return cls

    @classmethod
    def drop(cls):
        orm = cls.get_orm()
        orm.schema_generator.drop_table(orm.engine, cls._mapper)

    @classmethod
    def belongs_to_many(cls, target, through=None, alias=None, foreign_key=None, other_key=None,
                        through_timestamps=False):
        """
        Declare a many-to-many association to ``target`` and install the
        collection accessors (``get_<plural>``, ``add_<singular>``, ...) on
        this model. Declare the reverse side on ``target`` with the same
        ``through`` to share one join table.
        """
        from linkorm.associations import BelongsToMany
        return BelongsToMany(
            cls, target, through=through, alias=alias, foreign_key=foreign_key,
            other_key=other_key, through_timestamps=through_timestamps
        )

    @classmethod
    def get_associations(cls):
        return dict(cls._mapper.associations)

    # -- instance level ----------------------------------------------------

    def get(self, name):
        if name not in self._mapper.columns:
            raise ModelError(f"Model {self._mapper.model_name} has no attribute '{name}'")
        return self.__dict__.get(name)

    def to_dict(self):
        return {name: self.__dict__.get(name) for name in self._mapper.columns}

    def changed(self):
        return [
            name for name in self._mapper.columns
            if self.__dict__.get(name) != self._previous.get(name)
        ]

    def _take_snapshot(self):
        object.__setattr__(self, '_previous', self.to_dict())

    def _pk_where(self):
        values = self._mapper.pk_values(self)
        if any(v is None for v in values.values()):
            raise ModelError(f"{self!r} has no primary key value")
        return values

    def save(self):
        if self._orm_state == ObjectState.DELETED:
            raise RecordNotFoundError(f"{self!r} has been destroyed")
        if self.is_new_record:
            self._insert()
        else:
            self._update()
        return self

    def _insert(self):
        orm = self.get_orm()
        mapper = self._mapper
        sql, params = orm.query_builder.build_insert(mapper.table_name, mapper.insert_data(self))
        row_id = orm.engine.execute_insert(sql, params)
        auto_pk = mapper.auto_increment_pk
        if auto_pk and self.__dict__.get(auto_pk) is None:
            object.__setattr__(self, auto_pk, row_id)
        object.__setattr__(self, '_orm_state', ObjectState.PERSISTENT)
        self._take_snapshot()

    def _update(self):
        changed = self.changed()
        if not changed:
            return
        orm = self.get_orm()
        mapper = self._mapper
        sql, params = orm.query_builder.build_update(
            mapper.table_name, mapper.update_data(self, changed), self._pk_where()
        )
        if orm.engine.execute_write(sql, params) == 0:
            raise RecordNotFoundError(f"{self!r} no longer exists in {mapper.table_name}")
        self._take_snapshot()

    def destroy(self):
        if self.is_new_record or self._orm_state == ObjectState.DELETED:
            return
        orm = self.get_orm()
        sql, params = orm.query_builder.build_delete(self._mapper.table_name, self._pk_where())
        orm.engine.execute_write(sql, params)
        object.__setattr__(self, '_orm_state', ObjectState.DELETED)

    def reload(self):
        fresh = self.query().where(self._pk_where()).first()
        if fresh is None:
            raise RecordNotFoundError(f"{self!r} no longer exists in {self._mapper.table_name}")
        for name in self._mapper.columns:
            object.__setattr__(self, name, fresh.__dict__.get(name))
        self._take_snapshot()
        return self
