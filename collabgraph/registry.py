from __future__ import annotations


class EntityRegistry:
    """
    Interns free-text entity names (institution, country, continent) into
    sequential ids of the form `<prefix>_<n>`, starting at 1 in first-seen order.
    Matching is exact: no case folding, no fuzzy matching. One registry per layer.
    """

    def __init__(self, prefix: str):
        self.prefix = prefix
        self._ids: dict[str, str] = {}

    def resolve(self, name: str) -> str:
        entity_id = self._ids.get(name)
        if entity_id is None:
            entity_id = f"{self.prefix}_{len(self._ids) + 1}"
            self._ids[name] = entity_id
        return entity_id

    def __contains__(self, name: str) -> bool:
        return name in self._ids

    def __len__(self) -> int:
        return len(self._ids)
