"""The implementation of an ordered, hybrid indexed/associative collection of data
and chainable functional operations over it.
"""

import logging
from collections.abc import Iterable, Mapping
from functools import cmp_to_key
from operator import itemgetter
from typing import Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

K = TypeVar("K")
V = TypeVar("V")


def _is_index(key):
    return isinstance(key, int)


def _is_aggregate(value):
    return isinstance(value, (list, tuple, Mapping, Collection))


def _normalize(elements):
    """Coerce an arbitrary input into a fresh ordered dict."""
    if elements is None:
        return {}
    if isinstance(elements, Collection):
        return dict(elements._elements)
    if isinstance(elements, Mapping):
        return dict(elements)
    if isinstance(elements, (str, bytes)) or not isinstance(elements, Iterable):
        return {0: elements}
    return {index: value for (index, value) in enumerate(elements)}


def _values_of(aggregate):
    if isinstance(aggregate, Collection):
        return list(aggregate._elements.values())
    if isinstance(aggregate, Mapping):
        return list(aggregate.values())
    return list(aggregate)


def _flatten(values, depth):
    """Concatenate the values of nested aggregates, descending `depth` levels.

    Keys of nested aggregates are discarded. A depth that never reaches 1 by
    decrementing (zero, negative, infinite) flattens all the way down.
    """
    out = []
    for value in values:
        if not _is_aggregate(value):
            out.append(value)
        elif depth == 1:
            out.extend(_values_of(value))
        else:
            out.extend(_flatten(_values_of(value), depth - 1))
    return out


def _ensure_callable(callback, operation):
    if not callable(callback):
        raise TypeError(
            f"{operation}() expects a callable, got {type(callback).__name__}"
        )


class Collection(Generic[K, V]):
    """An ordered map from keys to values that also behaves like a list.

    Keys are either supplied by the caller or assigned implicitly as one past
    the largest integer key currently stored. Mutating operations (add, remove,
    reset, each, sort, last) change the collection and return it for chaining;
    derivation operations (flatten, reverse, unique, map, filter, keys, values,
    merge, flip) leave it untouched and return a new collection.

    Instances are not safe to mutate from several threads without external
    locking.
    """

    def __init__(self, elements=None):
        self._elements = _normalize(elements)

    @classmethod
    def collect(cls, elements=None) -> "Collection":
        """Create a new collection from a scalar, a sequence or a mapping."""
        return cls(elements)

    def __repr__(self):
        return f"Collection({self._elements})"

    def _next_index(self):
        indexes = [key for key in self._elements if _is_index(key)]
        if len(indexes) == 0:
            return 0
        return max(max(indexes) + 1, 0)

    def add(self, value: V, key: K = None) -> "Collection[K, V]":
        """Store value at key, or append it under the next implicit key.

        A falsy key (0, "", False, None) counts as no key at all, so
        add(value, 0) appends rather than writing to key 0.
        """
        if key:
            self._elements[key] = value
        else:
            self._elements[self._next_index()] = value
        return self

    def get(self, key: K, default=None):
        return self._elements.get(key, default)

    def remove(self, key: K) -> "Collection[K, V]":
        """Remove the entry at key if there is one."""
        if self.has_key(key):
            del self._elements[key]
        return self

    def reset(self) -> "Collection[K, V]":
        self._elements = {}
        return self

    def has(self, value) -> bool:
        """Check whether any entry holds a value equal to `value`."""
        return value in self._elements.values()

    def has_key(self, key) -> bool:
        return key in self._elements

    def each(self, callback: Callable[[V, K], object]) -> "Collection[K, V]":
        """Invoke callback(value, key) for every entry, stopping as soon as the
        callback returns False.
        """
        _ensure_callable(callback, "each")
        for (key, value) in list(self._elements.items()):
            if callback(value, key) is False:
                break
        return self

    def last(self, default=None):
        """Remove and return the most recently positioned value.

        An empty collection has no last value; `default` is returned instead.
        """
        if len(self._elements) == 0:
            logger.debug("last() called on an empty collection")
            return default
        (_, value) = self._elements.popitem()
        return value

    def sort(self, comparator: Callable[[V, V], int] = None) -> "Collection[K, V]":
        """Sort the values in place with a three-way comparator, keeping each
        key attached to its value. Without a comparator values are compared
        directly.
        """
        if comparator is None:
            key = itemgetter(1)
        else:
            _ensure_callable(comparator, "sort")
            key = cmp_to_key(lambda a, b: comparator(a[1], b[1]))
        self._elements = dict(sorted(self._elements.items(), key=key))
        return self

    def flatten(self, depth=1) -> "Collection":
        """Splice the values of nested lists, tuples and mappings into a single
        implicitly keyed collection, `depth` levels deep.
        """
        if isinstance(depth, bool) or not isinstance(depth, (int, float)):
            raise TypeError(f"flatten() depth must be a number, got {depth!r}")
        return Collection(_flatten(self._elements.values(), depth))

    def reverse(self, preserve_keys=True) -> "Collection[K, V]":
        """Reverse the order of the entries.

        With preserve_keys=False integer keys are renumbered from zero in the
        new order; other keys always stay with their values.
        """
        items = reversed(list(self._elements.items()))
        if preserve_keys:
            return Collection(dict(items))
        out = {}
        position = 0
        for (key, value) in items:
            if _is_index(key):
                out[position] = value
                position += 1
            else:
                out[key] = value
        return Collection(out)

    def unique(self) -> "Collection[K, V]":
        """Keep only the first occurrence of every distinct value."""
        hashable_seen = set()
        unhashable_seen = []
        out = {}
        for (key, value) in self._elements.items():
            try:
                if value in hashable_seen:
                    continue
                hashable_seen.add(value)
            except TypeError:
                if value in unhashable_seen:
                    continue
                unhashable_seen.append(value)
            out[key] = value
        return Collection(out)

    def map(self, f: Callable[[V], object]) -> "Collection":
        """Apply a function to all values in the collection."""
        _ensure_callable(f, "map")
        return Collection({key: f(value) for (key, value) in self._elements.items()})

    def filter(self, f: Callable[[V], object]) -> "Collection[K, V]":
        """Filter out values for which f(value) is falsy. Keys are not renumbered."""
        _ensure_callable(f, "filter")
        return Collection(
            {key: value for (key, value) in self._elements.items() if f(value)}
        )

    def implode(self, separator="") -> str:
        """Join all values into a string. None renders as an empty string."""
        if not isinstance(separator, str):
            raise TypeError(
                f"implode() separator must be a string, got {type(separator).__name__}"
            )
        parts = []
        for (key, value) in self._elements.items():
            if _is_aggregate(value):
                raise TypeError(f"implode() cannot join the aggregate value at {key!r}")
            parts.append("" if value is None else str(value))
        return separator.join(parts)

    def keys(self) -> "Collection[int, K]":
        return Collection(list(self._elements.keys()))

    def values(self) -> "Collection[int, V]":
        return Collection(list(self._elements.values()))

    def merge(self, elements) -> "Collection":
        """Merge another collection, mapping or sequence into a new collection.

        Integer keys from both sides are renumbered consecutively, so positional
        entries concatenate. Any other key keeps its first position and takes
        the value that arrives last.
        """
        out = {}
        position = 0
        for source in (self._elements, _normalize(elements)):
            for (key, value) in source.items():
                if _is_index(key):
                    out[position] = value
                    position += 1
                else:
                    out[key] = value
        return Collection(out)

    def flip(self) -> "Collection[V, K]":
        """Swap keys and values.

        Values that cannot serve as keys are skipped, and when two values
        collide the later entry wins.
        """
        out = {}
        for (key, value) in self._elements.items():
            try:
                hash(value)
            except TypeError:
                logger.warning(
                    "flip() skipping unhashable %s value at key %r",
                    type(value).__name__,
                    key,
                )
                continue
            if value in out:
                logger.debug(
                    "flip() key %r from %r overwritten by %r", value, out[value], key
                )
            out[value] = key
        return Collection(out)

    def count(self) -> int:
        """Count the number of entries in the collection."""
        return len(self._elements)

    def to_array(self) -> dict:
        """Return the entries as a plain dict, keys and order intact."""
        return dict(self._elements)

    def __len__(self):
        return self.count()

    def __iter__(self):
        return iter(list(self._elements.items()))

    def __getitem__(self, key):
        return self.get(key)

    def __setitem__(self, key, value):
        self.add(value, key)

    def __contains__(self, key):
        return self.has_key(key)

    def __delitem__(self, key):
        self.remove(key)


collect = Collection.collect


if __name__ == "__main__":
    a = collect([1, [2, 3], [4, [5, 6]]])
    b = collect({"apple": "$5", "banana": "$2"})
    c = collect([3, 1, 2, 1, 3])

    print(a.flatten())
    print(a.flatten(2))
    print(b.flip())
    print(b.merge({"apple": "$3", "kiwi": "$2"}))
    print(c.unique())
    print(c.sort(lambda x, y: x - y))
    print(c.filter(lambda data: data > 1).map(lambda data: data * data))
    print(collect([]).add(1).add(2).remove(0))
    print(b.keys().implode(", "))
