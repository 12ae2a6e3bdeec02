import logging

from linkorm.builder import QueryBuilder
from linkorm.database import DatabaseEngine
from linkorm.errors import ModelError, ModelNotFoundError
from linkorm.generator import SchemaGenerator
from linkorm.model import Model
from linkorm.model_manager import ModelManager
from linkorm.orm_types import Column
from linkorm.settings import get_settings

logger = logging.getLogger("LinkORM")

DEFINE_OPTIONS = {"table_name", "freeze_table_name", "timestamps"}


class LinkORM:
    """
    Entry point: owns the database connection, the model registry and the
    SQL/schema builders shared by every model defined on it.
    """

    def __init__(self, database_path=None, settings=None, engine=None):
        self.settings = settings or get_settings()
        self.engine = engine or DatabaseEngine(
            database_path or self.settings.DATABASE_PATH, echo=self.settings.ECHO_SQL
        )
        self.query_builder = QueryBuilder()
        self.schema_generator = SchemaGenerator(self.query_builder)
        self.model_manager = ModelManager(self)

    def __repr__(self):
        return f"<LinkORM dialect={self.dialect} models={len(self.model_manager)}>"

    @property
    def dialect(self):
        return self.engine.dialect

    @property
    def models(self):
        return dict(self.model_manager.models)

    def define(self, model_name, attributes=None, **options):
        """
        Define a model named ``model_name`` with ``attributes`` mapping field
        names to column types. Options: ``table_name``, ``freeze_table_name``,
        ``timestamps``.
        """
        unknown = set(options) - DEFINE_OPTIONS
        if unknown:
            raise ModelError(f"Unknown model option(s): {', '.join(sorted(unknown))}")

        namespace = dict(attributes or {})
        invalid = [
            name for name, value in namespace.items()
            if not (isinstance(value, Column) or (isinstance(value, type) and issubclass(value, Column)))
        ]
        if invalid:
            raise ModelError(f"Attribute(s) {', '.join(invalid)} of model {model_name} are not column types",
                             details={"attributes": invalid})

        meta = type("Meta", (), {"orm": self, "model_name": model_name, **options})
        namespace["Meta"] = meta
        model = type(model_name, (Model,), namespace)
        logger.info(f"Defined model {model_name} (table {model._mapper.table_name})")
        return model

    def is_defined(self, model_name):
        return self.model_manager.has_model(model_name)

    def model(self, model_name):
        model = self.model_manager.get_model(model_name)
        if model is None:
            raise ModelNotFoundError(f"Model {model_name} has not been defined",
                                     details={"model_name": model_name})
        return model

    def sync(self, force=False):
        """Create every registered table; ``force`` drops them first."""
        mappers = [model._mapper for model in self.model_manager.sorted_models()]
        self.schema_generator.create_all(self.engine, mappers, drop_first=force)
        logger.info(f"Synchronized {len(mappers)} table(s){' (forced)' if force else ''}")
        return self

    def drop_all(self):
        mappers = [model._mapper for model in self.model_manager.sorted_models()]
        self.schema_generator.drop_all(self.engine, mappers)

    def transaction(self):
        return self.engine.transaction()

    def close(self):
        self.engine.close()

    def __enter__(self): return self
    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
