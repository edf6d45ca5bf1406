"""Tests for equality policies."""
import pytest

from changetracking import CallableComparer, IdentityComparer, KeyComparer, ValueComparer, as_comparer
from changetracking.comparers import values_equal


class AlwaysEqual:
    """Claims equality with anything, including None."""

    def __eq__(self, other):
        return True

    __hash__ = object.__hash__


class TestValueComparer:
    """Natural equality with explicit None handling."""

    def test_both_none_equal(self):
        assert values_equal(None, None)

    def test_one_none_not_equal(self):
        assert not values_equal(None, "x")
        assert not values_equal("x", None)

    def test_none_check_precedes_custom_eq(self):
        """A permissive __eq__ never makes a value equal to None."""
        assert not values_equal(AlwaysEqual(), None)
        assert not values_equal(None, AlwaysEqual())

    def test_natural_equality(self):
        assert values_equal(1, 1.0)
        assert values_equal("a", "a")
        assert not values_equal("a", "b")

    def test_same_object_equal_even_if_eq_says_no(self):
        nan = float("nan")
        assert values_equal(nan, nan)
        assert not values_equal(nan, float("nan"))

    def test_hash_is_builtin_hash(self):
        assert ValueComparer().hash("abc") == hash("abc")


class TestKeyComparer:
    """Equality through a key function."""

    def test_same_object_short_circuits_key(self):
        nan = float("nan")
        assert KeyComparer(float).equals(nan, nan)

    def test_case_insensitive(self):
        comparer = KeyComparer(str.casefold)
        assert comparer.equals("Ada", "ADA")
        assert comparer.hash("Ada") == comparer.hash("ada")

    def test_none_handling(self):
        comparer = KeyComparer(str.casefold)
        assert comparer.equals(None, None)
        assert not comparer.equals(None, "a")


class TestIdentityComparer:
    """Reference equality."""

    def test_equal_values_distinct_objects(self):
        comparer = IdentityComparer()
        assert not comparer.equals([1], [1])

    def test_same_object(self):
        value = [1]
        assert IdentityComparer().equals(value, value)


class TestAsComparer:
    """Normalizing comparer arguments."""

    def test_none_passthrough(self):
        assert as_comparer(None) is None

    def test_instance_passthrough(self):
        comparer = KeyComparer(abs)
        assert as_comparer(comparer) is comparer

    def test_callable_wrapped(self):
        comparer = as_comparer(lambda a, b: abs(a) == abs(b))
        assert isinstance(comparer, CallableComparer)
        assert comparer.equals(-2, 2)
        assert not comparer.supports_hash
        with pytest.raises(TypeError):
            comparer.hash(2)

    def test_callable_never_sees_none(self):
        calls = []
        comparer = as_comparer(lambda a, b: calls.append((a, b)) or True)
        assert not comparer.equals(None, 1)
        assert calls == []

    def test_rejects_other_objects(self):
        with pytest.raises(TypeError):
            as_comparer(42)
