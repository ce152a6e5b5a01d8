"""Contract every target collection must satisfy to receive fixtures."""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

Selector = Mapping[str, Any]
Document = dict[str, Any]


@runtime_checkable
class TargetCollection(Protocol):
    """Externally-owned document store the fixtures populate."""

    @property
    def name(self) -> str: ...

    def create(self, payload: Mapping[str, Any]) -> Any: ...

    def update_by_id(self, doc_id: Any, patch: Mapping[str, Any]) -> int: ...

    def remove_by_selector(self, selector: Selector) -> int: ...

    def find_by_selector(self, selector: Selector) -> list[Document]: ...

    def find_one_by_selector(self, selector: Selector) -> Document | None: ...
