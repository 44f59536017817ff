"""
Graph assembly for the five co-occurrence layers.

Each layer is one configuration of the same pipeline:
- pick the pivot key (what entities are grouped by) and the entity key from each record,
- fold the record into that entity's metadata,
- count co-occurrences across pivot groups,
- keep only entities with at least one edge.

Layers:
  authors       author <-> author via shared paper
  institutions  institution <-> institution via shared paper
  countries     country <-> country via shared paper
  continents    continent <-> continent via shared paper
  papers        paper <-> paper via shared author
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Iterable

from collabgraph.cooccurrence import aggregate, edge_key
from collabgraph.errors import EmptyGraphError
from collabgraph.records import Record
from collabgraph.registry import EntityRegistry


# ---------- Sticky field helpers ----------

def sticky_label(current: str, placeholder: str, candidate: str) -> str:
    # First real value wins; the id fallback and blanks count as placeholders.
    if candidate and (not current or current == placeholder):
        return candidate
    return current


def add_unique(items: list[str], value: str):
    if value and value not in items:
        items.append(value)


def remember_name(names: dict[str, str], entity_id: str, name: str):
    current = names.get(entity_id)
    if current is None:
        names[entity_id] = name or entity_id
    else:
        names[entity_id] = sticky_label(current, entity_id, name)


# ---------- Per-entity metadata ----------

@dataclass
class PaperRef:
    id: str
    title: str
    year: str = ""


@dataclass
class AuthorInfo:
    id: str
    name: str
    institutions: list[str] = field(default_factory=list)
    countries: list[str] = field(default_factory=list)
    papers: dict[str, PaperRef] = field(default_factory=dict)


@dataclass
class InstitutionInfo:
    id: str
    name: str
    countries: list[str] = field(default_factory=list)
    authors: dict[str, str] = field(default_factory=dict)


@dataclass
class CountryInfo:
    id: str
    name: str
    institutions: list[str] = field(default_factory=list)


@dataclass
class ContinentInfo:
    id: str
    name: str
    countries: list[str] = field(default_factory=list)


@dataclass
class PaperInfo:
    id: str
    title: str
    year: str = ""
    authors: dict[str, str] = field(default_factory=dict)


def _update_author(info: AuthorInfo, rec: Record):
    info.name = sticky_label(info.name, info.id, rec.author_name)
    add_unique(info.institutions, rec.institution)
    add_unique(info.countries, rec.country)
    paper = info.papers.get(rec.paper_id)
    if paper is None:
        info.papers[rec.paper_id] = PaperRef(id=rec.paper_id, title=rec.paper_title or rec.paper_id, year=rec.paper_year)
    else:
        paper.title = sticky_label(paper.title, paper.id, rec.paper_title)
        if not paper.year and rec.paper_year:
            paper.year = rec.paper_year


def _update_institution(info: InstitutionInfo, rec: Record):
    add_unique(info.countries, rec.country)
    if rec.author_id:
        remember_name(info.authors, rec.author_id, rec.author_name)


def _update_country(info: CountryInfo, rec: Record):
    add_unique(info.institutions, rec.institution)


def _update_continent(info: ContinentInfo, rec: Record):
    add_unique(info.countries, rec.country)


def _update_paper(info: PaperInfo, rec: Record):
    info.title = sticky_label(info.title, info.id, rec.paper_title)
    if not info.year and rec.paper_year:
        info.year = rec.paper_year
    if rec.author_id:
        remember_name(info.authors, rec.author_id, rec.author_name)


# ---------- Layer configuration ----------

@dataclass(frozen=True)
class LayerSpec:
    name: str
    pivot: Callable[[Record], str]
    entity: Callable[[Record], str]
    new_info: Callable[[str, str], Any]
    update_info: Callable[[Any, Record], None]
    label: Callable[[Any], str]
    size_metric: str
    size: Callable[[Any], int]
    preview_limit: int
    empty_message: str
    # Free-text entities get synthesized ids from a per-layer registry.
    id_prefix: str | None = None
    # Fold metadata from rows that lack a pivot key (they still add no edges).
    info_without_pivot: bool = False
    node_extra: Callable[[Any], dict[str, Any]] | None = None


AUTHORS = LayerSpec(
    name="authors",
    pivot=lambda r: r.paper_id,
    entity=lambda r: r.author_id,
    new_info=lambda entity_id, key: AuthorInfo(id=entity_id, name=key),
    update_info=_update_author,
    label=lambda info: info.name,
    size_metric="paperCount",
    size=lambda info: len(info.papers),
    preview_limit=25,
    empty_message="No author nodes/edges created. Check 'author_id' and 'paper_id'.",
)

INSTITUTIONS = LayerSpec(
    name="institutions",
    pivot=lambda r: r.paper_id,
    entity=lambda r: r.institution,
    new_info=lambda entity_id, key: InstitutionInfo(id=entity_id, name=key),
    update_info=_update_institution,
    label=lambda info: info.name,
    size_metric="authorCount",
    size=lambda info: len(info.authors),
    preview_limit=25,
    empty_message="No institution nodes/edges created. Check 'institution' and 'paper_id' columns.",
    id_prefix="inst",
)

COUNTRIES = LayerSpec(
    name="countries",
    pivot=lambda r: r.paper_id,
    entity=lambda r: r.country,
    new_info=lambda entity_id, key: CountryInfo(id=entity_id, name=key),
    update_info=_update_country,
    label=lambda info: info.name,
    size_metric="instCount",
    size=lambda info: len(info.institutions),
    preview_limit=25,
    empty_message="No country nodes/edges created. Check 'country' and 'paper_id' columns.",
    id_prefix="cty",
)

CONTINENTS = LayerSpec(
    name="continents",
    pivot=lambda r: r.paper_id,
    entity=lambda r: r.continent,
    new_info=lambda entity_id, key: ContinentInfo(id=entity_id, name=key),
    update_info=_update_continent,
    label=lambda info: info.name,
    size_metric="countryCount",
    size=lambda info: len(info.countries),
    preview_limit=25,
    empty_message="No continent nodes/edges created. Check 'continent' and 'paper_id' columns.",
    id_prefix="cont",
)

PAPERS = LayerSpec(
    name="papers",
    pivot=lambda r: r.author_id,
    entity=lambda r: r.paper_id,
    new_info=lambda entity_id, key: PaperInfo(id=entity_id, title=key),
    update_info=_update_paper,
    label=lambda info: info.title,
    size_metric="authorCount",
    size=lambda info: len(info.authors),
    preview_limit=30,
    empty_message="No paper nodes/edges created. Check 'paper_id', 'paper_title', and author columns.",
    info_without_pivot=True,
    node_extra=lambda info: {"year": info.year},
)

LAYERS: dict[str, LayerSpec] = {spec.name: spec for spec in (AUTHORS, INSTITUTIONS, COUNTRIES, CONTINENTS, PAPERS)}


# ---------- Assembled graph ----------

@dataclass(frozen=True)
class Node:
    id: str
    label: str
    size: int
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Edge:
    id: str
    source: str
    target: str
    weight: int


@dataclass
class LayerGraph:
    spec: LayerSpec
    nodes: list[Node]
    edges: list[Edge]
    info: dict[str, Any]
    skipped_rows: int = 0

    @property
    def layer(self) -> str:
        return self.spec.name

    @property
    def is_empty(self) -> bool:
        return not self.nodes and not self.edges

    def node_ids(self) -> list[str]:
        return [n.id for n in self.nodes]

    def degree(self) -> dict[str, int]:
        deg: dict[str, int] = {n.id: 0 for n in self.nodes}
        for e in self.edges:
            deg[e.source] = deg.get(e.source, 0) + 1
            deg[e.target] = deg.get(e.target, 0) + 1
        return deg

    def elements(self) -> list[dict[str, Any]]:
        out: list[dict[str, Any]] = []
        for n in self.nodes:
            data = {"id": n.id, "label": n.label, self.spec.size_metric: n.size}
            data.update(n.extra)
            out.append({"data": data})
        for e in self.edges:
            out.append({"data": {"id": e.id, "source": e.source, "target": e.target, "weight": e.weight}})
        return out

    def require_elements(self) -> list[dict[str, Any]]:
        if self.is_empty:
            raise EmptyGraphError(self.layer, self.spec.empty_message)
        return self.elements()

    def info_payload(self) -> dict[str, dict[str, Any]]:
        return {n.id: asdict(self.info[n.id]) for n in self.nodes if n.id in self.info}


def build_layer(records: Iterable[Record], spec: LayerSpec) -> LayerGraph:
    registry = EntityRegistry(spec.id_prefix) if spec.id_prefix else None
    info: dict[str, Any] = {}
    groups: dict[str, set[str]] = {}
    skipped = 0

    for rec in records:
        key = spec.entity(rec)
        pivot = spec.pivot(rec)
        if not key or (not pivot and not spec.info_without_pivot):
            skipped += 1
            continue
        entity_id = registry.resolve(key) if registry else key
        entity = info.get(entity_id)
        if entity is None:
            entity = spec.new_info(entity_id, key)
            info[entity_id] = entity
        spec.update_info(entity, rec)
        if not pivot:
            skipped += 1
            continue
        groups.setdefault(pivot, set()).add(entity_id)

    co = aggregate(groups.values())

    nodes: list[Node] = []
    for entity_id, entity in info.items():
        if entity_id not in co.touched:
            continue
        extra = spec.node_extra(entity) if spec.node_extra else {}
        nodes.append(Node(id=entity_id, label=spec.label(entity), size=int(spec.size(entity)), extra=extra))

    edges = [
        Edge(id=edge_key(a, b), source=a, target=b, weight=int(w))
        for (a, b), w in co.weights.items()
    ]
    return LayerGraph(spec=spec, nodes=nodes, edges=edges, info=info, skipped_rows=skipped)


def build_all_layers(records: list[Record], names: Iterable[str] | None = None) -> dict[str, LayerGraph]:
    selected = list(names) if names else list(LAYERS.keys())
    unknown = [n for n in selected if n not in LAYERS]
    if unknown:
        raise ValueError(f"Unknown layer(s): {', '.join(unknown)}. Expected one of {', '.join(LAYERS)}.")
    return {name: build_layer(records, LAYERS[name]) for name in selected}
