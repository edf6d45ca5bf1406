"""
ChangeTracker: dirty tracking with accept/reject for caller-owned objects.

The tracker maps every tracked item to one snapshot per tracked property.
Callers mutate items directly, ask which items or properties are dirty, and
either accept the live values as the new baseline or reject them (restore the
baseline onto the item).

Accept and reject notify subscribers before touching an item. Each subscriber
receives a ChangeTransition and may set ``cancel`` to skip that item, or
remove entries from ``dirty_properties`` to act on a subset only.

Processing is sequential: items in the order given (insertion order for "all
items"), snapshots in tracking order. The first error aborts the call; items
and properties already handled keep their new state.

Thread safety: Not thread-safe. Use one tracker per thread or lock around it.
"""
from dataclasses import dataclass, field
import logging
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from changetracking.comparers import ComparerLike, ValueComparer, as_comparer
from changetracking.config import TrackerConfig, get_default_config
from changetracking.errors import DuplicateItem, ItemNotTracked
from changetracking.properties import TrackedProperty, collection_kind, trackable_properties
from changetracking.snapshot_model import PropertySnapshot, snapshot_for

logger = logging.getLogger(__name__)

ComparerMap = Mapping[Union[TrackedProperty, str], ComparerLike]


@dataclass
class ChangeTransition:
    """Payload handed to accept/reject subscribers, one per dirty item.

    ``dirty_properties_source`` lists every dirty property and never changes.
    ``dirty_properties`` starts as a copy; subscribers may remove entries to
    narrow the operation. Setting ``cancel`` skips the item entirely.
    """
    item: Any
    dirty_properties_source: Tuple[TrackedProperty, ...]
    dirty_properties: List[TrackedProperty] = field(default_factory=list)
    cancel: bool = False

    @classmethod
    def create(cls, item: Any, properties: Iterable[TrackedProperty]) -> 'ChangeTransition':
        properties = tuple(properties)
        return cls(item=item, dirty_properties_source=properties, dirty_properties=list(properties))


ChangesHandler = Callable[[ChangeTransition], None]


@dataclass
class _TrackedEntry:
    item: Any
    snapshots: List[PropertySnapshot]

    def dirty_snapshots(self) -> List[PropertySnapshot]:
        return [s for s in self.snapshots if s.is_dirty()]


class DirtyItemsView:
    """Re-iterable view of (item, dirty properties) pairs.

    Every iteration re-checks the live values; nothing is cached between
    traversals.
    """

    def __init__(self, tracker: 'ChangeTracker'):
        self._tracker = tracker

    def __iter__(self) -> Iterator[Tuple[Any, List[TrackedProperty]]]:
        return self._tracker.iter_dirty_items()

    def __repr__(self) -> str:
        return f"DirtyItemsView(tracked={len(self._tracker)})"


class ChangeTracker:
    """Set-like collection of tracked items with accept/reject.

    Items are keyed by identity: two equal but distinct objects are two items,
    and unhashable objects (e.g. plain dataclasses) can be tracked.

    Args:
        properties: Fixed property list used by every add(). When omitted,
            add() takes properties per call or derives them from the item's
            class with trackable_properties().
        comparers: Comparers keyed by TrackedProperty or property name. With a
            fixed property list, entries for untracked properties are dropped.
        config: Defaults for open choices; the module default otherwise.
    """

    def __init__(self, properties: Optional[Iterable[TrackedProperty]] = None,
                 comparers: Optional[ComparerMap] = None,
                 config: Optional[TrackerConfig] = None):
        self.config = config or get_default_config()
        self._items: Dict[int, _TrackedEntry] = {}
        self._tracking_properties: Optional[List[TrackedProperty]] = (
            list(properties) if properties is not None else None
        )
        self._comparers: Dict[Union[TrackedProperty, str], ComparerLike] = dict(comparers or {})

        if self._tracking_properties is not None and self._comparers:
            known = set(self._tracking_properties) | {p.name for p in self._tracking_properties}
            dropped = [k for k in self._comparers if k not in known]
            for key in dropped:
                del self._comparers[key]
            if dropped:
                logger.debug(f"Ignoring comparers for untracked properties: {dropped}")

        self._on_accept_callbacks: List[ChangesHandler] = []
        self._on_reject_callbacks: List[ChangesHandler] = []

    # ========== SET-LIKE SURFACE ==========

    def add(self, item: Any, properties: Optional[Iterable[TrackedProperty]] = None,
            comparers: Optional[ComparerMap] = None) -> None:
        """Start tracking ``item`` and take its current values as the baseline.

        Raises:
            DuplicateItem: ``item`` is already tracked.
            UnsupportedCollectionType: a collection property has an unsupported
                declared type. Nothing is registered.
        """
        if id(item) in self._items:
            raise DuplicateItem(item)

        if properties is None:
            properties = self._tracking_properties
        if properties is None:
            properties = trackable_properties(type(item))
        properties = list(properties)
        comparers = self._comparers if comparers is None else comparers

        for prop in properties:
            if prop.is_collection:
                collection_kind(prop.declared_type, prop.name)

        snapshots = [
            snapshot_for(item, prop, self._comparer_for(prop, comparers), self._store_instance(prop))
            for prop in properties
        ]
        for snapshot in snapshots:
            snapshot.accept()

        self._items[id(item)] = _TrackedEntry(item, snapshots)
        logger.debug(f"Tracking {type(item).__name__} at {id(item):#x}: {[p.name for p in properties]}")

    def add_range(self, items: Iterable[Any]) -> None:
        """Add each item in turn; stops at the first failing add."""
        for item in items:
            self.add(item)

    def remove(self, item: Any) -> bool:
        """Stop tracking ``item``. Returns False if it was not tracked."""
        entry = self._items.pop(id(item), None)
        if entry is None:
            return False
        logger.debug(f"Stopped tracking {type(item).__name__} at {id(item):#x}")
        return True

    def clear(self) -> None:
        count = len(self._items)
        self._items.clear()
        logger.debug(f"Cleared {count} tracked item(s)")

    def contains(self, item: Any) -> bool:
        return id(item) in self._items

    def count(self) -> int:
        return len(self._items)

    def __contains__(self, item: Any) -> bool:
        return self.contains(item)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return (entry.item for entry in self._items.values())

    def __repr__(self) -> str:
        return f"ChangeTracker(items={len(self._items)})"

    def tracking_properties(self) -> List[TrackedProperty]:
        """The fixed property list given at construction (empty if none)."""
        return list(self._tracking_properties or [])

    def properties_of(self, item: Any) -> List[TrackedProperty]:
        """Properties tracked for ``item``, in tracking order."""
        return [s.prop for s in self._entry(item).snapshots]

    # ========== DIRTY QUERIES ==========

    def is_dirty(self, item: Any) -> bool:
        return any(s.is_dirty() for s in self._entry(item).snapshots)

    def dirty_properties(self, item: Any) -> List[TrackedProperty]:
        return [s.prop for s in self._entry(item).dirty_snapshots()]

    def iter_dirty_items(self) -> Iterator[Tuple[Any, List[TrackedProperty]]]:
        """Yield (item, dirty properties) for every item with changes."""
        for entry in list(self._items.values()):
            dirty = entry.dirty_snapshots()
            if dirty:
                yield entry.item, [s.prop for s in dirty]

    @property
    def dirty_items(self) -> DirtyItemsView:
        return DirtyItemsView(self)

    # ========== ACCEPT / REJECT ==========

    def accept_changes(self, *items: Any) -> None:
        """Adopt live values as the baseline for ``items`` (all items if none given)."""
        self._process(items, "accept", self._on_accept_callbacks)

    def reject_changes(self, *items: Any) -> None:
        """Write the baseline back onto ``items`` (all items if none given).

        Raises:
            NoContainerInstance, ReadOnlyContainer, FixedSizeMismatch: a
                collection property cannot be refilled. Earlier items and
                properties stay restored.
        """
        self._process(items, "reject", self._on_reject_callbacks)

    def on_accept_changes(self, callback: ChangesHandler) -> None:
        """Subscribe to accept transitions (called before the item is touched)."""
        if callback not in self._on_accept_callbacks:
            self._on_accept_callbacks.append(callback)

    def off_accept_changes(self, callback: ChangesHandler) -> None:
        if callback in self._on_accept_callbacks:
            self._on_accept_callbacks.remove(callback)

    def on_reject_changes(self, callback: ChangesHandler) -> None:
        """Subscribe to reject transitions (called before the item is touched)."""
        if callback not in self._on_reject_callbacks:
            self._on_reject_callbacks.append(callback)

    def off_reject_changes(self, callback: ChangesHandler) -> None:
        if callback in self._on_reject_callbacks:
            self._on_reject_callbacks.remove(callback)

    # ========== INTERNALS ==========

    def _entry(self, item: Any) -> _TrackedEntry:
        entry = self._items.get(id(item))
        if entry is None:
            raise ItemNotTracked(item)
        return entry

    def _comparer_for(self, prop: TrackedProperty, comparers: ComparerMap) -> Optional[ValueComparer]:
        comparer = comparers.get(prop)
        if comparer is None:
            comparer = comparers.get(prop.name)
        return as_comparer(comparer) or self.config.default_comparer

    def _store_instance(self, prop: TrackedProperty) -> bool:
        if prop.store_container_instance is None:
            return self.config.store_container_instance
        return prop.store_container_instance

    @staticmethod
    def _notify(callbacks: List[ChangesHandler], transition: ChangeTransition) -> None:
        cancelled = False
        for callback in list(callbacks):
            callback(transition)
            # First cancel wins: later subscribers cannot clear it
            cancelled = cancelled or transition.cancel
            transition.cancel = cancelled

    def _process(self, items: Tuple[Any, ...], operation: str, callbacks: List[ChangesHandler]) -> None:
        entries = [self._entry(item) for item in items] if items else list(self._items.values())
        handled = skipped = 0

        for entry in entries:
            dirty = entry.dirty_snapshots()
            if not dirty:
                continue

            if callbacks:
                transition = ChangeTransition.create(entry.item, [s.prop for s in dirty])
                self._notify(callbacks, transition)
                if transition.cancel or not transition.dirty_properties:
                    logger.debug(f"{operation} cancelled for {type(entry.item).__name__} at {id(entry.item):#x}")
                    skipped += 1
                    continue
                selected = [s for s in dirty if s.prop in transition.dirty_properties]
            else:
                selected = dirty

            for snapshot in selected:
                if operation == "accept":
                    snapshot.accept()
                else:
                    snapshot.restore()
            handled += 1
            logger.debug(f"{operation}: {type(entry.item).__name__} at {id(entry.item):#x} "
                         f"{[s.prop.name for s in selected]}")

        if handled or skipped:
            logger.info(f"{operation} changes: {handled} item(s) updated, {skipped} skipped by subscribers")
