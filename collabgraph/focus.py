"""
Focus/highlight state for an interactive layer view.

Two states: idle (nothing selected) and focused on one node. Selecting a node
dims everything outside its closed neighborhood, marks the node itself as
highlighted, its neighbors as labelled, and every edge touching it as
highlighted. Each transition recomputes the emphasis from scratch, so nothing
from a previous selection survives. The renderer holds no state of its own; it
applies the classes reported by `Emphasis`.

Events are handled one at a time, to completion.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from collabgraph.details import DetailPanel, detail_panel
from collabgraph.layers import LayerGraph

IDLE = "idle"
FOCUSED = "focused"

DIM_CLASS = "dim"
NODE_HL_CLASS = "nodeHL"
NEIGHBOR_HL_CLASS = "neighborHL"
EDGE_HL_CLASS = "edgeHL"

CANCEL_KEYS = ("Escape",)


@dataclass(frozen=True)
class Emphasis:
    dimmed: frozenset[str] = frozenset()
    highlighted: str | None = None
    neighbors: frozenset[str] = frozenset()
    highlighted_edges: frozenset[str] = frozenset()

    @property
    def is_clear(self) -> bool:
        return self.highlighted is None and not self.dimmed and not self.highlighted_edges

    def node_classes(self, node_id: str) -> set[str]:
        if node_id == self.highlighted:
            return {NODE_HL_CLASS}
        if node_id in self.neighbors:
            return {NEIGHBOR_HL_CLASS}
        if node_id in self.dimmed:
            return {DIM_CLASS}
        return set()

    def edge_classes(self, edge_id: str) -> set[str]:
        return {EDGE_HL_CLASS} if edge_id in self.highlighted_edges else set()


NO_EMPHASIS = Emphasis()


@dataclass(frozen=True)
class InteractionEvent:
    kind: str  # tap | key | pan | zoom
    target: str | None = None
    key: str | None = None


class FocusStateMachine:
    def __init__(self, graph: LayerGraph, preview_limit: int | None = None):
        self.graph = graph
        self.preview_limit = graph.spec.preview_limit if preview_limit is None else int(preview_limit)
        self._nodes: set[str] = set(graph.node_ids())
        self._neighbors: dict[str, set[str]] = {nid: set() for nid in self._nodes}
        self._incident: dict[str, set[str]] = {nid: set() for nid in self._nodes}
        for e in graph.edges:
            self._neighbors.setdefault(e.source, set()).add(e.target)
            self._neighbors.setdefault(e.target, set()).add(e.source)
            self._incident.setdefault(e.source, set()).add(e.id)
            self._incident.setdefault(e.target, set()).add(e.id)
        self.focused: str | None = None
        self.emphasis: Emphasis = NO_EMPHASIS
        self.popup: DetailPanel | None = None

    @property
    def state(self) -> str:
        return FOCUSED if self.focused is not None else IDLE

    def neighbors(self, node_id: str) -> set[str]:
        return set(self._neighbors.get(node_id, ()))

    def select(self, node_id: str) -> Emphasis:
        if node_id not in self._nodes:
            return self.emphasis
        self._clear()
        neighbors = self.neighbors(node_id) - {node_id}
        closed = neighbors | {node_id}
        self.focused = node_id
        self.emphasis = Emphasis(
            dimmed=frozenset(self._nodes - closed),
            highlighted=node_id,
            neighbors=frozenset(neighbors),
            highlighted_edges=frozenset(self._incident.get(node_id, ())),
        )
        info = self.graph.info.get(node_id)
        if info is not None:
            self.popup = detail_panel(info, self.preview_limit)
        return self.emphasis

    def deselect(self) -> Emphasis:
        self._clear()
        return self.emphasis

    def viewport_changed(self) -> Emphasis:
        # The popup is anchored to screen coordinates and would drift from its node.
        self.popup = None
        return self.emphasis

    def handle(self, event: InteractionEvent) -> Emphasis:
        if event.kind == "tap":
            if event.target is None:
                return self.deselect()
            return self.select(event.target)
        if event.kind == "key":
            if event.key in CANCEL_KEYS:
                return self.deselect()
            return self.emphasis
        if event.kind in ("pan", "zoom"):
            return self.viewport_changed()
        raise ValueError(f"Unknown interaction event kind: {event.kind!r}")

    def class_map(self) -> dict[str, list[str]]:
        out: dict[str, list[str]] = {}
        for nid in self.graph.node_ids():
            classes = self.emphasis.node_classes(nid)
            if classes:
                out[nid] = sorted(classes)
        for e in self.graph.edges:
            classes = self.emphasis.edge_classes(e.id)
            if classes:
                out[e.id] = sorted(classes)
        return out

    def popup_payload(self) -> dict[str, Any] | None:
        return self.popup.to_dict() if self.popup else None

    def _clear(self):
        self.focused = None
        self.emphasis = NO_EMPHASIS
        self.popup = None
