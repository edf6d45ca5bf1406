"""Integration tests for changetracking.

Tests usage patterns of an editable-entity form: load entities, let the user
edit them, then save some, discard others, and veto saves that fail checks.
"""
from dataclasses import dataclass
from typing import List, Set

from changetracking import ChangeTracker, KeyComparer, ignore, tracked_collection


@dataclass
class Customer:
    name: str
    tags: List[str] = tracked_collection(default_factory=list)
    groups: Set[str] = tracked_collection(store_container_instance=False, default_factory=set)
    render_cache: dict = ignore(default_factory=dict)


def test_readme_quick_start_example():
    """Quick start from the package docstring."""
    tracker = ChangeTracker()
    customer = Customer("Ada", ["vip"])
    tracker.add(customer)

    customer.name = "Grace"
    customer.tags.append("new")
    assert [p.name for p in tracker.dirty_properties(customer)] == ["name", "tags"]

    tracker.reject_changes(customer)
    assert customer == Customer("Ada", ["vip"])


def test_ignored_fields_never_dirty():
    """Fields marked with ignore() are not tracked."""
    tracker = ChangeTracker()
    customer = Customer("Ada")
    tracker.add(customer)
    customer.render_cache["html"] = "<b>Ada</b>"
    customer.render_cache = {}
    assert not tracker.is_dirty(customer)


def test_save_with_validation_veto():
    """A subscriber vetoes saving invalid entities; valid ones are committed."""
    tracker = ChangeTracker(comparers={"name": KeyComparer(str.strip)})
    valid, invalid = Customer("Ada"), Customer("Bob")
    tracker.add_range([valid, invalid])

    def validate(transition):
        if not transition.item.name.strip():
            transition.cancel = True

    tracker.on_accept_changes(validate)

    valid.name = "Ada Lovelace"
    invalid.name = "   "
    tracker.accept_changes()

    dirty = [item for item, _ in tracker.dirty_items]
    assert dirty == [invalid]

    tracker.reject_changes(invalid)
    assert invalid.name == "Bob"
    assert list(tracker.dirty_items) == []


def test_whitespace_only_edit_is_not_a_change():
    """Per-property comparer decides what counts as a change."""
    tracker = ChangeTracker(comparers={"name": KeyComparer(str.strip)})
    customer = Customer("Ada")
    tracker.add(customer)
    customer.name = "  Ada "
    assert not tracker.is_dirty(customer)


def test_discard_set_edits_in_place():
    """Unordered collections restore into the container the entity holds."""
    tracker = ChangeTracker()
    customer = Customer("Ada", groups={"staff", "admins"})
    tracker.add(customer)

    replacement = {"guests"}
    customer.groups = replacement
    assert tracker.is_dirty(customer)

    tracker.reject_changes()
    assert customer.groups is replacement
    assert replacement == {"staff", "admins"}
