"""
Property descriptors and the selector that derives them from a class.

The tracker never inspects items itself. It consumes an ordered list of
TrackedProperty descriptors, either built by hand:

    TrackedProperty("name", str)
    TrackedProperty("tags", List[str], is_collection=True)

or derived from the item's class with trackable_properties():

    @dataclass
    class Customer:
        name: str
        tags: List[str] = tracked_collection(default_factory=list)
        cache: dict = ignore(default_factory=dict)

    trackable_properties(Customer)  # [name, tags]

Plain classes contribute their public annotated attributes and every property
that has both a getter and a setter. Options for properties go on the getter
with @track_options.
"""
from collections.abc import Collection, Mapping, Sequence
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
import logging
from types import UnionType
import typing
from typing import Any, Callable, Dict, List, Optional, Union, get_args, get_origin

from changetracking.errors import UnsupportedCollectionType

logger = logging.getLogger(__name__)

# Metadata keys (dataclass field metadata and getter attribute)
IGNORE_KEY = "changetracking.ignore"
COLLECTION_KEY = "changetracking.collection"
STORE_INSTANCE_KEY = "changetracking.store_container_instance"
_OPTIONS_ATTR = "__changetracking_options__"

_UNION_ORIGINS = (Union, UnionType)


class CollectionKind(Enum):
    """Supported collection contracts."""
    ORDERED = "ordered"      # indexable: compared as a sequence
    UNORDERED = "unordered"  # add/clear/iterate: compared as a multiset


@dataclass(frozen=True)
class TrackedProperty:
    """Descriptor of one tracked property.

    Identity is (name, declared_type); accessors and flags do not take part in
    equality, so a descriptor rebuilt from the same class matches the original.
    """
    name: str
    declared_type: Any = object
    getter: Optional[Callable[[Any], Any]] = field(default=None, compare=False, repr=False)
    setter: Optional[Callable[[Any, Any], None]] = field(default=None, compare=False, repr=False)
    is_collection: bool = field(default=False, compare=False)
    # None -> tracker config decides (defaults to storing the instance)
    store_container_instance: Optional[bool] = field(default=None, compare=False)

    def get(self, item: Any) -> Any:
        if self.getter is not None:
            return self.getter(item)
        return getattr(item, self.name)

    def set(self, item: Any, value: Any) -> None:
        if self.setter is not None:
            self.setter(item, value)
        else:
            setattr(item, self.name, value)

    @property
    def collection_kind(self) -> CollectionKind:
        return collection_kind(self.declared_type, self.name)


def _unwrap_optional(declared_type: Any) -> Any:
    if get_origin(declared_type) in _UNION_ORIGINS:
        args = [a for a in get_args(declared_type) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return declared_type


def collection_kind(declared_type: Any, property_name: str = "<unnamed>") -> CollectionKind:
    """Classify a declared collection type.

    Sequences (list, tuple, deque, FixedSizeList, ...) are ORDERED. Any other
    sized iterable container (set, frozenset, ...) is UNORDERED. Strings,
    bytes, mappings and non-collection types are rejected.
    """
    resolved = _unwrap_optional(declared_type)
    origin = get_origin(resolved) or resolved
    if not isinstance(origin, type):
        raise UnsupportedCollectionType(property_name, declared_type)
    if issubclass(origin, (str, bytes, Mapping)):
        raise UnsupportedCollectionType(property_name, declared_type)
    if issubclass(origin, Sequence):
        return CollectionKind.ORDERED
    if issubclass(origin, Collection):
        return CollectionKind.UNORDERED
    raise UnsupportedCollectionType(property_name, declared_type)


# ==================== SELECTOR ====================

def ignore(**field_kwargs) -> Any:
    """dataclasses.field() that the selector skips."""
    metadata = dict(field_kwargs.pop("metadata", None) or {})
    metadata[IGNORE_KEY] = True
    return field(metadata=metadata, **field_kwargs)


def tracked_collection(store_container_instance: Optional[bool] = None, **field_kwargs) -> Any:
    """dataclasses.field() marking a collection-valued property.

    Args:
        store_container_instance: If True, rollback also restores the container
            object itself before refilling it. If False, rollback refills
            whatever container the property holds at that time and fails when
            it holds None. None defers to the tracker configuration.
    """
    metadata = dict(field_kwargs.pop("metadata", None) or {})
    metadata[COLLECTION_KEY] = True
    metadata[STORE_INSTANCE_KEY] = store_container_instance
    return field(metadata=metadata, **field_kwargs)


def track_options(*, ignore: bool = False, collection: bool = False,
                  store_container_instance: Optional[bool] = None) -> Callable:
    """Attach selector options to a property getter (apply below @property)."""
    def decorator(func):
        setattr(func, _OPTIONS_ATTR, {
            IGNORE_KEY: ignore,
            COLLECTION_KEY: collection,
            STORE_INSTANCE_KEY: store_container_instance,
        })
        return func
    return decorator


def _type_hints(cls: type) -> Dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError) as e:
        # Unresolvable forward reference: keep the raw annotations
        logger.debug(f"Could not resolve type hints of {cls.__name__}: {e}")
        hints: Dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            hints.update(getattr(klass, "__annotations__", {}))
        return hints


def _return_type(getter: Callable) -> Any:
    try:
        return typing.get_type_hints(getter).get("return", object)
    except (NameError, TypeError):
        return getattr(getter, "__annotations__", {}).get("return", object)


def _from_options(name: str, declared_type: Any, options: Mapping) -> Optional[TrackedProperty]:
    if options.get(IGNORE_KEY):
        return None
    return TrackedProperty(
        name=name,
        declared_type=declared_type,
        is_collection=bool(options.get(COLLECTION_KEY, False)),
        store_container_instance=options.get(STORE_INSTANCE_KEY),
    )


def trackable_properties(cls: type) -> List[TrackedProperty]:
    """Derive the ordered list of trackable properties of ``cls``.

    Order: dataclass fields (or public class annotations for plain classes) in
    declaration order, then read/write properties in MRO-reversed definition
    order. Names starting with an underscore are skipped.
    """
    hints = _type_hints(cls)
    result: List[TrackedProperty] = []
    seen = set()

    if is_dataclass(cls):
        for f in fields(cls):
            if f.name.startswith("_"):
                continue
            seen.add(f.name)
            prop = _from_options(f.name, hints.get(f.name, f.type), f.metadata)
            if prop is not None:
                result.append(prop)
    else:
        for name, declared_type in hints.items():
            if name.startswith("_") or typing.get_origin(declared_type) is typing.ClassVar:
                continue
            if isinstance(getattr(cls, name, None), property):
                continue
            seen.add(name)
            result.append(TrackedProperty(name, declared_type))

    for klass in reversed(cls.__mro__):
        for name, member in vars(klass).items():
            if name.startswith("_") or name in seen or not isinstance(member, property):
                continue
            if member.fget is None or member.fset is None:
                continue
            seen.add(name)
            prop = _from_options(name, _return_type(member.fget), getattr(member.fget, _OPTIONS_ATTR, {}))
            if prop is not None:
                result.append(prop)

    logger.debug(f"Trackable properties of {cls.__name__}: {[p.name for p in result]}")
    return result


def properties_by_name(cls: type, *names: str) -> List[TrackedProperty]:
    """Select trackable properties of ``cls`` by name, in the order given."""
    by_name = {p.name: p for p in trackable_properties(cls)}
    missing = [n for n in names if n not in by_name]
    if missing:
        raise AttributeError(f"{cls.__name__} has no trackable properties {missing}")
    return [by_name[n] for n in names]
