"""Todo record and validation helpers."""
from bson import ObjectId
from bson.errors import InvalidId

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUSES = (STATUS_PENDING, STATUS_COMPLETED)

LIST_ALL = "all"
LIST_CRITERIA = (LIST_ALL, STATUS_PENDING, STATUS_COMPLETED)

STATUS_FIELD = "status"
OBJECTID_HEX_LEN = 24


class TodoError(Exception):
    """Base class for every error the todo commands report."""


class ConfigError(TodoError):
    pass


class StoreConnectionError(TodoError):
    pass


class UsageError(TodoError):
    pass


class InvalidTodoId(UsageError):
    pass


class StoreOperationError(TodoError):
    pass


class Todo:
    def __init__(self, description, status=STATUS_PENDING, id=None):
        self.id = id
        self.description = description
        self.status = status

    @classmethod
    def from_document(cls, doc):
        return cls(
            description=_text(doc.get("description")),
            status=_text(doc.get(STATUS_FIELD)),
            id=doc.get("_id"),
        )

    def to_document(self):
        """Document for insert_one; leaves _id out so MongoDB assigns it."""
        doc = {"description": self.description, STATUS_FIELD: self.status}
        if self.id is not None:
            doc["_id"] = self.id
        return doc

    def __eq__(self, other):
        if not isinstance(other, Todo):
            return NotImplemented
        return (self.id, self.description, self.status) == (other.id, other.description, other.status)

    def __repr__(self):
        return f"<Todo {self.id} {self.status}>"


def _text(value):
    return "" if value is None else str(value)


class UpdateOutcome:
    def __init__(self, matched):
        self.matched = matched


class DeleteOutcome:
    def __init__(self, deleted):
        self.deleted = deleted


def parse_object_id(s):
    """Convert a 24-char hex string to ObjectId; raise InvalidTodoId otherwise.

    An ObjectId is returned as is, so callers can parse once and pass it on.
    """
    if isinstance(s, ObjectId):
        return s
    text = s.strip() if isinstance(s, str) else ""
    if len(text) != OBJECTID_HEX_LEN or not all(c in "0123456789abcdefABCDEF" for c in text):
        raise InvalidTodoId(f"invalid todo ID {s!r}")
    try:
        return ObjectId(text)
    except InvalidId as e:
        raise InvalidTodoId(f"invalid todo ID {s!r}: {e}") from e


def list_filter(criterion):
    """Mongo filter for a list criterion (all, pending or completed)."""
    if criterion not in LIST_CRITERIA:
        raise UsageError("invalid criteria for listing todo(s)")
    if criterion == LIST_ALL:
        return {}
    return {STATUS_FIELD: criterion}


def parse_update_argument(s):
    """Split '<id>,<new status>' into (id, new status)."""
    if "," not in s:
        raise UsageError("invalid update info. please use 'todo --help'")
    parts = s.split(",")
    return parts[0], parts[1]
