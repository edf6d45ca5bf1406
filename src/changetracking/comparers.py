"""
Equality policies used to decide whether a tracked value changed.

A comparer answers two questions: are two values equal, and what is a value's
hash under that notion of equality. The hash is only needed for unordered
collection comparison, where values are counted in a dict; comparers that
cannot hash (CallableComparer) make the multiset check fall back to pairwise
matching.
"""
from typing import Any, Callable, Optional, Union


class ValueComparer:
    """Natural equality with explicit None handling.

    Both None -> equal. Exactly one None -> not equal. The same object is
    always equal to itself (so a stored NaN stays clean). Otherwise the snapshot
    side's ``==`` decides, so an asymmetric ``__eq__`` on the stored value wins.
    """

    supports_hash = True

    def equals(self, stored: Any, current: Any) -> bool:
        if stored is None:
            return current is None
        if current is None:
            return False
        return stored is current or bool(stored == current)

    def hash(self, value: Any) -> int:
        return hash(value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class KeyComparer(ValueComparer):
    """Compare and hash values through a key function (e.g. ``str.casefold``)."""

    def __init__(self, key: Callable[[Any], Any]):
        self.key = key

    def equals(self, stored: Any, current: Any) -> bool:
        if stored is None or current is None:
            return stored is current
        return stored is current or bool(self.key(stored) == self.key(current))

    def hash(self, value: Any) -> int:
        return hash(None) if value is None else hash(self.key(value))

    def __repr__(self) -> str:
        return f"KeyComparer({getattr(self.key, '__qualname__', self.key)!r})"


class IdentityComparer(ValueComparer):
    """Reference equality: two values are equal only if they are the same object."""

    def equals(self, stored: Any, current: Any) -> bool:
        return stored is current

    def hash(self, value: Any) -> int:
        return id(value)


class CallableComparer(ValueComparer):
    """Wrap a plain ``(stored, current) -> bool`` function.

    The function only ever sees non-None pairs; None handling follows
    ValueComparer. No hash is available.
    """

    supports_hash = False

    def __init__(self, func: Callable[[Any, Any], bool]):
        self.func = func

    def equals(self, stored: Any, current: Any) -> bool:
        if stored is None or current is None:
            return stored is current
        return stored is current or bool(self.func(stored, current))

    def hash(self, value: Any) -> int:
        raise TypeError(f"{self!r} does not support hashing")

    def __repr__(self) -> str:
        return f"CallableComparer({getattr(self.func, '__qualname__', self.func)!r})"


DEFAULT_COMPARER = ValueComparer()

ComparerLike = Union[ValueComparer, Callable[[Any, Any], bool], None]


def as_comparer(comparer: ComparerLike) -> Optional[ValueComparer]:
    """Normalize a comparer argument: None stays None, callables get wrapped."""
    if comparer is None or isinstance(comparer, ValueComparer):
        return comparer
    if callable(comparer):
        return CallableComparer(comparer)
    raise TypeError(f"Expected a ValueComparer or a callable, got {type(comparer).__name__}")


def values_equal(stored: Any, current: Any, comparer: Optional[ValueComparer] = None) -> bool:
    return (comparer or DEFAULT_COMPARER).equals(stored, current)
