"""
Capabilities of live collection containers.

Rollback refills the container a collection property holds. What "refill"
means depends on the container:

- fixed size (FixedSizeList, or anything indexable-assignable that cannot
  grow): overwrite index by index, lengths must match
- mutable sequence (list, deque, bytearray): clear, then append in order
- mutable set: clear, then add
- anything else (tuple, frozenset, range): read only

These checks look at the container object, not at the declared type.
"""
from collections.abc import Mapping, MutableSequence, MutableSet, Sequence
from typing import Any, Iterable, List


class FixedSizeList(Sequence):
    """Indexable, item-assignable sequence whose length never changes.

    The Python counterpart of a fixed-size array property: values can be
    replaced in place, but nothing can be appended, inserted or removed.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Iterable[Any] = ()):
        self._values = list(values)

    @classmethod
    def of_size(cls, size: int, fill: Any = None) -> "FixedSizeList":
        return cls([fill] * size)

    def __getitem__(self, index):
        if isinstance(index, slice):
            return FixedSizeList(self._values[index])
        return self._values[index]

    def __setitem__(self, index: int, value: Any) -> None:
        if isinstance(index, slice):
            raise TypeError("FixedSizeList does not support slice assignment")
        self._values[index] = value

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, FixedSizeList):
            return self._values == other._values
        return NotImplemented

    __hash__ = None

    def __repr__(self) -> str:
        return f"FixedSizeList({self._values!r})"


def is_fixed_size(container: Any) -> bool:
    """True if items can be replaced by index but the length cannot change."""
    if isinstance(container, (MutableSequence, MutableSet, Mapping)):
        return False
    return hasattr(container, "__setitem__") and hasattr(container, "__len__")


def is_read_only(container: Any) -> bool:
    """True if the container's contents cannot be replaced at all."""
    if isinstance(container, (MutableSequence, MutableSet)):
        return False
    return not is_fixed_size(container)


def repopulate(container: Any, values: List[Any]) -> None:
    """Replace the contents of ``container`` with ``values``, keeping their order.

    Callers validate with is_fixed_size()/is_read_only() first; this function
    assumes the container accepts the values.
    """
    if isinstance(container, MutableSequence):
        container.clear()
        for value in values:
            container.append(value)
    elif isinstance(container, MutableSet):
        container.clear()
        for value in values:
            container.add(value)
    else:
        for index, value in enumerate(values):
            container[index] = value
