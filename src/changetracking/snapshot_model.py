"""
Per-property snapshots: the baseline a tracked property is compared against.

PropertySnapshot keeps the last accepted value of a scalar property.
CollectionSnapshot keeps a materialized copy of a collection property's
elements, and optionally the container object itself.

Both share one small contract:
- accept(): adopt the live value as the new baseline
- restore(): write the baseline back onto the item
- is_dirty(): does the live value differ from the baseline

Snapshots hold a back reference to their item; the tracker owns the mapping
from item to snapshots.
"""
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from changetracking.collection_containers import is_fixed_size, is_read_only, repopulate
from changetracking.comparers import DEFAULT_COMPARER, IdentityComparer, ValueComparer, values_equal
from changetracking.errors import FixedSizeMismatch, NoContainerInstance, ReadOnlyContainer
from changetracking.properties import CollectionKind, TrackedProperty

logger = logging.getLogger(__name__)

_IDENTITY = IdentityComparer()


class PropertySnapshot:
    """Snapshot of a scalar property.

    Values are stored by reference: mutating a stored object in place is not
    seen as a change of the property.
    """

    def __init__(self, item: Any, prop: TrackedProperty, comparer: Optional[ValueComparer] = None):
        self.item = item
        self.prop = prop
        self.comparer = comparer
        self.last_accepted_value: Any = None

    def read(self) -> Any:
        """Read the live value (getter errors propagate)."""
        return self.prop.get(self.item)

    def accept(self) -> None:
        self.last_accepted_value = self.read()

    def restore(self) -> None:
        self.prop.set(self.item, self.last_accepted_value)

    def is_dirty(self) -> bool:
        return not values_equal(self.last_accepted_value, self.read(), self.comparer)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.prop.name!r}, last_accepted={self.last_accepted_value!r})"


class CollectionSnapshot(PropertySnapshot):
    """Snapshot of a collection-valued property.

    ``values`` is a list copy of the elements at the last accept, or None when
    the property held no collection. With ``store_container_instance`` the
    container object is also kept (compared by identity) and restore() refills
    that object and puts it back on the item; without it, restore() refills
    whatever container the item holds at that moment.

    ``comparer`` applies to elements. Ordered snapshots compare element by
    element; unordered ones compare occurrence counts.
    """

    def __init__(self, item: Any, prop: TrackedProperty, comparer: Optional[ValueComparer] = None,
                 ordered: bool = True, store_container_instance: bool = True):
        super().__init__(item, prop, comparer)
        self.ordered = ordered
        self.store_container_instance = store_container_instance
        self.values: Optional[List[Any]] = None

    def accept(self) -> None:
        live = self.read()
        if self.store_container_instance:
            self.last_accepted_value = live
        self.values = None if live is None else list(live)

    def restore(self) -> None:
        if self.values is None:
            # Baseline had no collection at all
            self.prop.set(self.item, None)
            return

        container = self.last_accepted_value if self.store_container_instance else self.read()
        name = self.prop.name

        if container is None:
            raise NoContainerInstance(name)
        if is_fixed_size(container):
            if len(container) != len(self.values):
                raise FixedSizeMismatch(name, expected=len(self.values), actual=len(container))
        elif is_read_only(container):
            raise ReadOnlyContainer(name)

        repopulate(container, self.values)
        # Write back even when unchanged: the setter may copy or validate
        self.prop.set(self.item, container)
        logger.debug(f"Restored {len(self.values)} value(s) into '{name}'")

    def is_dirty(self) -> bool:
        live = self.read()
        if self.store_container_instance and not _IDENTITY.equals(self.last_accepted_value, live):
            return True
        if live is None:
            return self.values is not None
        if self.values is None:
            return True

        current = list(live)
        if self.ordered:
            return not sequence_equal(self.values, current, self.comparer)
        return not multiset_equal(self.values, current, self.comparer)

    def __repr__(self) -> str:
        return (f"CollectionSnapshot({self.prop.name!r}, values={self.values!r}, "
                f"ordered={self.ordered}, store_container_instance={self.store_container_instance})")


def sequence_equal(stored: List[Any], current: List[Any], comparer: Optional[ValueComparer] = None) -> bool:
    """Element-wise equality; different lengths are never equal."""
    if len(stored) != len(current):
        return False
    comparer = comparer or DEFAULT_COMPARER
    return all(comparer.equals(a, b) for a, b in zip(stored, current))


class _ComparerKey:
    """Dict key delegating hash and equality to a comparer."""

    __slots__ = ("value", "comparer", "_hash")

    def __init__(self, value: Any, comparer: ValueComparer):
        self.value = value
        self.comparer = comparer
        self._hash = comparer.hash(value)

    def __hash__(self) -> int:
        return self._hash

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, _ComparerKey) and self.comparer.equals(self.value, other.value)


def _hashed_counts(values: Iterable[Any], comparer: ValueComparer) -> Dict[_ComparerKey, int]:
    counts: Dict[_ComparerKey, int] = {}
    for value in values:
        key = _ComparerKey(value, comparer)
        counts[key] = counts.get(key, 0) + 1
    return counts


def _pairwise_counts(values: Iterable[Any], comparer: ValueComparer) -> List[Tuple[Any, int]]:
    counts: List[List[Any]] = []
    for value in values:
        for entry in counts:
            if comparer.equals(entry[0], value):
                entry[1] += 1
                break
        else:
            counts.append([value, 1])
    return [(value, count) for value, count in counts]


def multiset_equal(stored: List[Any], current: List[Any], comparer: Optional[ValueComparer] = None) -> bool:
    """Order-insensitive equality: same length, same distinct values, same counts.

    Values are counted in a dict keyed by the comparer's equality. Comparers
    without hashing, or unhashable values, fall back to pairwise matching.
    """
    if len(stored) != len(current):
        return False
    comparer = comparer or DEFAULT_COMPARER

    if comparer.supports_hash:
        try:
            stored_counts = _hashed_counts(stored, comparer)
            current_counts = _hashed_counts(current, comparer)
        except TypeError:  # unhashable value
            pass
        else:
            if len(stored_counts) != len(current_counts):
                return False
            return all(current_counts.get(key, 0) == count for key, count in stored_counts.items())

    stored_pairs = _pairwise_counts(stored, comparer)
    current_pairs = _pairwise_counts(current, comparer)
    if len(stored_pairs) != len(current_pairs):
        return False
    for value, count in stored_pairs:
        match = next((c for v, c in current_pairs if comparer.equals(value, v)), 0)
        if match != count:
            return False
    return True


def snapshot_for(item: Any, prop: TrackedProperty, comparer: Optional[ValueComparer] = None,
                 store_container_instance: bool = True) -> PropertySnapshot:
    """Build the snapshot variant matching ``prop`` (not yet accepted).

    Raises UnsupportedCollectionType for collection properties whose declared
    type is neither ordered nor unordered.
    """
    if not prop.is_collection:
        return PropertySnapshot(item, prop, comparer)
    return CollectionSnapshot(
        item,
        prop,
        comparer,
        ordered=prop.collection_kind is CollectionKind.ORDERED,
        store_container_instance=store_container_instance,
    )
