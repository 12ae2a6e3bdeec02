from typing import Any, Dict, Optional


class LinkORMError(Exception):
    """Base for every error raised by linkorm."""
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(LinkORMError):
    """Invalid or missing settings."""
    def __init__(self, message: str, invalid_fields: list[str] = None):
        super().__init__(message=message, details={"invalid_fields": invalid_fields or []})


class ModelError(LinkORMError):
    """A model definition cannot be built or ordered."""
    pass


class ModelNotFoundError(ModelError):
    """No model registered under the requested name."""
    pass


class RecordNotFoundError(LinkORMError):
    """A row expected in the database is gone."""
    pass


class AssociationError(LinkORMError):
    """Invalid association declaration or accessor call."""
    pass


class DatabaseError(LinkORMError):
    """A statement failed in the database driver."""
    pass
