"""
In-memory change tracking for caller-owned objects.

Snapshot the tracked properties of objects when they are added, detect which
properties changed since, and either accept the changes (new baseline) or
reject them (restore the baseline onto the objects).

Quick Start:
    >>> from dataclasses import dataclass, field
    >>> from typing import List
    >>> from changetracking import ChangeTracker, tracked_collection
    >>>
    >>> @dataclass
    ... class Customer:
    ...     name: str
    ...     tags: List[str] = tracked_collection(default_factory=list)
    >>>
    >>> tracker = ChangeTracker()
    >>> customer = Customer("Ada", ["vip"])
    >>> tracker.add(customer)
    >>> customer.name = "Grace"
    >>> customer.tags.append("new")
    >>> [p.name for p in tracker.dirty_properties(customer)]
    ['name', 'tags']
    >>> tracker.reject_changes(customer)
    >>> customer
    Customer(name='Ada', tags=['vip'])

Cancelling or narrowing a commit:
    >>> def keep_name(transition):
    ...     transition.dirty_properties[:] = [
    ...         p for p in transition.dirty_properties if p.name != "name"]
    >>> tracker.on_accept_changes(keep_name)

Modules:
    - change_tracker: ChangeTracker and the ChangeTransition payload
    - snapshot_model: scalar and collection property snapshots
    - properties: property descriptors and the dataclass/property selector
    - comparers: equality policies
    - collection_containers: live container capabilities, FixedSizeList
    - config: tracker defaults
    - errors: exception hierarchy
"""

from changetracking.change_tracker import ChangeTracker, ChangeTransition, ChangesHandler, DirtyItemsView
from changetracking.collection_containers import FixedSizeList
from changetracking.comparers import (
    DEFAULT_COMPARER,
    CallableComparer,
    IdentityComparer,
    KeyComparer,
    ValueComparer,
    as_comparer,
)
from changetracking.config import TrackerConfig, get_default_config, reset_default_config, set_default_config
from changetracking.errors import (
    ChangeTrackingError,
    DuplicateItem,
    FixedSizeMismatch,
    ItemNotTracked,
    NoContainerInstance,
    ReadOnlyContainer,
    UnsupportedCollectionType,
)
from changetracking.properties import (
    CollectionKind,
    TrackedProperty,
    collection_kind,
    ignore,
    properties_by_name,
    track_options,
    trackable_properties,
    tracked_collection,
)
from changetracking.snapshot_model import CollectionSnapshot, PropertySnapshot

__all__ = [
    # Tracker
    'ChangeTracker',
    'ChangeTransition',
    'ChangesHandler',
    'DirtyItemsView',
    # Snapshots
    'PropertySnapshot',
    'CollectionSnapshot',
    # Properties
    'TrackedProperty',
    'CollectionKind',
    'collection_kind',
    'trackable_properties',
    'properties_by_name',
    'ignore',
    'tracked_collection',
    'track_options',
    # Comparers
    'ValueComparer',
    'KeyComparer',
    'IdentityComparer',
    'CallableComparer',
    'DEFAULT_COMPARER',
    'as_comparer',
    # Containers
    'FixedSizeList',
    # Configuration
    'TrackerConfig',
    'set_default_config',
    'get_default_config',
    'reset_default_config',
    # Errors
    'ChangeTrackingError',
    'DuplicateItem',
    'ItemNotTracked',
    'UnsupportedCollectionType',
    'NoContainerInstance',
    'ReadOnlyContainer',
    'FixedSizeMismatch',
]

__version__ = '1.0.0'
__description__ = 'In-memory change tracking with accept/reject transactions'
