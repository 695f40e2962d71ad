"""Data anchor — key bookkeeping that lives outside the trackers.

Each Tracker's key index is stored here instead of on the instance, so
draining a tracker's obligations never sees key entries. The tables are
weak on the tracker side: an unreachable tracker takes its index with it.

Invariant: key in key_indexes[t]  <->  key in key_owners[t][id(obj)].
"""

from __future__ import annotations

import weakref
from typing import Any

# tracker -> {key: tracked object}
key_indexes: weakref.WeakKeyDictionary[Any, dict[Any, Any]] = weakref.WeakKeyDictionary()

# tracker -> {id(tracked object): {keys}}
key_owners: weakref.WeakKeyDictionary[Any, dict[int, set]] = weakref.WeakKeyDictionary()


def index_for(tracker, *, create: bool = False) -> dict[Any, Any] | None:
    """Return the tracker's key index, creating it on first keyed add."""
    index = key_indexes.get(tracker)
    if index is None and create:
        index = {}
        key_indexes[tracker] = index
        key_owners[tracker] = {}
    return index


def bind(tracker, key: Any, obj: object) -> None:
    """Store obj under key. The key must be free."""
    index_for(tracker, create=True)[key] = obj
    key_owners[tracker].setdefault(id(obj), set()).add(key)


def unbind_key(tracker, key: Any) -> Any | None:
    """Free key. Returns the object it held, or None."""
    index = key_indexes.get(tracker)
    if index is None or key not in index:
        return None
    obj = index.pop(key)
    owners = key_owners[tracker]
    keys = owners.get(id(obj))
    if keys is not None:
        keys.discard(key)
        if not keys:
            del owners[id(obj)]
    return obj


def unbind_object(tracker, obj: object) -> None:
    """Free every key that holds obj."""
    owners = key_owners.get(tracker)
    if not owners:
        return
    keys = owners.pop(id(obj), None)
    if keys:
        index = key_indexes[tracker]
        for key in keys:
            del index[key]


def discard(tracker) -> None:
    """Drop the tracker's key index entirely."""
    index = key_indexes.pop(tracker, None)
    if index is not None:
        index.clear()
    key_owners.pop(tracker, None)
