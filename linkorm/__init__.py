# LinkORM - a lightweight Python ORM with many-to-many associations
from linkorm.orm import LinkORM
from linkorm.model import Model
from linkorm.associations import BelongsToMany
from linkorm.orm_types import Column, Text, Number, Real, Boolean, DateTime, ForeignKey
from linkorm.filters import col, and_, or_
from linkorm.errors import (
    LinkORMError,
    ConfigurationError,
    ModelError,
    ModelNotFoundError,
    RecordNotFoundError,
    AssociationError,
    DatabaseError,
)

__version__ = "0.1.0"
__all__ = [
    "LinkORM", "Model", "BelongsToMany",
    "Column", "Text", "Number", "Real", "Boolean", "DateTime", "ForeignKey",
    "col", "and_", "or_",
    "LinkORMError", "ConfigurationError", "ModelError", "ModelNotFoundError",
    "RecordNotFoundError", "AssociationError", "DatabaseError",
]
