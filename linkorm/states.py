from enum import Enum, auto

class ObjectState(Enum):
    TRANSIENT = auto()
    PERSISTENT = auto()
    DELETED = auto()
