"""
Id-keyed entity registries.

Projectiles and attacking creeps point at their target by id and resolve it through a
registry each tick, so a sold, destroyed or killed target just reads back as None.
"""
from __future__ import annotations

import itertools
from typing import Iterator, Optional


class EntityRegistry:
    """Insertion-ordered id -> entity map with stable, never-reused ids."""

    def __init__(self, id_attr: str, start: int = 1):
        self.id_attr = id_attr
        self._ids = itertools.count(start)
        self._items: dict[int, object] = {}

    def next_id(self) -> int:
        return next(self._ids)

    def add(self, entity) -> int:
        """Register `entity`, assigning an id if it has none yet. Returns the id."""
        entity_id = getattr(entity, self.id_attr, None)
        if entity_id is None:
            entity_id = self.next_id()
            setattr(entity, self.id_attr, entity_id)
        self._items[entity_id] = entity
        return entity_id

    def get(self, entity_id: Optional[int]):
        """Resolve a weak reference. Missing or dead entities come back as None."""
        if entity_id is None:
            return None
        entity = self._items.get(entity_id)
        if entity is None or not getattr(entity, "is_alive", True):
            return None
        return entity

    def remove(self, entity_or_id) -> Optional[object]:
        entity_id = entity_or_id if isinstance(entity_or_id, int) else getattr(entity_or_id, self.id_attr, None)
        return self._items.pop(entity_id, None)

    def clear(self) -> None:
        self._items.clear()

    def alive(self) -> list:
        return [e for e in self._items.values() if getattr(e, "is_alive", True)]

    def __contains__(self, entity_id) -> bool:
        return entity_id in self._items

    def __iter__(self) -> Iterator:
        # Snapshot so callers may add/remove while iterating.
        return iter(list(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)
