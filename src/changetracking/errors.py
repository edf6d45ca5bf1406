"""
Exception hierarchy for change tracking.

Every error raised by the tracker itself derives from ChangeTrackingError and
also from the builtin exception a caller would naturally catch for it
(ValueError for a duplicate add, TypeError for an unsupported collection type,
KeyError for an unknown item). Getter/setter failures are never wrapped.
"""


class ChangeTrackingError(Exception):
    """Base class for all change tracking errors."""


class DuplicateItem(ChangeTrackingError, ValueError):
    """Item is already tracked."""

    def __init__(self, item):
        self.item = item
        super().__init__(f"Item {type(item).__name__} at {id(item):#x} is already tracked")


class ItemNotTracked(ChangeTrackingError, KeyError):
    """Item was never added (or was removed)."""

    def __init__(self, item):
        self.item = item
        super().__init__(f"Item {type(item).__name__} at {id(item):#x} is not tracked")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0]


class UnsupportedCollectionType(ChangeTrackingError, TypeError):
    """Collection property declared with a type exposing no supported contract."""

    def __init__(self, property_name: str, declared_type):
        self.property_name = property_name
        self.declared_type = declared_type
        super().__init__(
            f"Type {declared_type!r} of property '{property_name}' is not supported as trackable collection"
        )


class _RestoreError(ChangeTrackingError, RuntimeError):
    _reason = ""

    def __init__(self, property_name: str):
        self.property_name = property_name
        super().__init__(f"Can't restore values of property '{property_name}': {self._reason}")


class NoContainerInstance(_RestoreError):
    """Collection property holds no container to restore into."""
    _reason = "no instance of collection found"


class ReadOnlyContainer(_RestoreError):
    """Live collection does not allow mutation."""
    _reason = "the collection is read only"


class FixedSizeMismatch(_RestoreError):
    """Fixed-size live collection cannot hold the stored number of values."""
    _reason = "the collection has fixed size which doesn't match the number of stored values"

    def __init__(self, property_name: str, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(property_name)
