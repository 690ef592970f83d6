"""
Immutable template registries.

Template tables are plain values handed to whatever needs them (catalogue,
requirement matcher, reshaper) instead of module-level globals, so tests can
substitute their own fixtures. Declaration order is preserved and is part of
the contract: polymer classification walks ``list_all()`` and the first
matching template wins.
"""

from __future__ import annotations

from typing import Callable, Dict, Generic, Iterable, Iterator, List, Mapping, Optional, TypeVar

T = TypeVar("T")


class TemplateRegistry(Mapping[str, T], Generic[T]):
    """
    Read-only, ordered id -> template mapping.

    Args:
        templates: Templates in declaration order.
        key: Function returning a template's id. Defaults to ``template.id``.
    """

    def __init__(
        self,
        templates: Iterable[T] = (),
        key: Optional[Callable[[T], str]] = None,
    ):
        self._key = key or (lambda t: t.id)
        self._entries: Dict[str, T] = {}
        for template in templates:
            template_id = self._key(template)
            if template_id in self._entries:
                raise ValueError(f"Duplicate template id: {template_id}")
            self._entries[template_id] = template

    def lookup(self, template_id: Optional[str]) -> Optional[T]:
        """Template by id (case-insensitive), None when absent."""
        if not template_id:
            return None
        template = self._entries.get(template_id)
        if template is None:
            template = self._entries.get(template_id.lower())
        return template

    def list_all(self) -> List[T]:
        """All templates in declaration order."""
        return list(self._entries.values())

    def filter(self, predicate: Callable[[T], bool]) -> List[T]:
        return [t for t in self._entries.values() if predicate(t)]

    def find(self, predicate: Callable[[T], bool]) -> Optional[T]:
        """First template, in declaration order, satisfying ``predicate``."""
        for template in self._entries.values():
            if predicate(template):
                return template
        return None

    def with_entries(self, extra: Iterable[T]) -> "TemplateRegistry[T]":
        """New registry with ``extra`` appended (or replacing same ids in place)."""
        merged = dict(self._entries)
        for template in extra:
            merged[self._key(template)] = template
        return TemplateRegistry(merged.values(), key=self._key)

    def __getitem__(self, template_id: str) -> T:
        return self._entries[template_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"TemplateRegistry({list(self._entries)})"
