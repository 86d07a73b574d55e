"""Namespace-keyed storage of registered schema trees."""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional

from .schema_tree import SchemaTree


class NamespaceStore:
    """Mapping from namespace URI to schema trees in registration order.

    Several documents may share one namespace; the order they were added is the
    order lookups search them in.
    """

    def __init__(self) -> None:
        self._items: Dict[str, List[SchemaTree]] = {}

    def exists(self, key: str) -> bool:
        return key in self._items

    def get(self, key: str) -> Optional[List[SchemaTree]]:
        return self._items.get(key)

    def set(self, key: str, value: List[SchemaTree]) -> None:
        self._items[key] = value

    def add(self, key: str, tree: SchemaTree) -> None:
        """Append ``tree`` to the bucket for ``key``, creating it if absent."""
        bucket = self.get(key) if self.exists(key) else []
        bucket.append(tree)
        self.set(key, bucket)

    def namespaces(self) -> List[str]:
        return list(self._items)

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)
