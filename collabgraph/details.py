"""
Detail-panel content for a focused entity.

The panel shows a bounded preview of the entity's main collection (papers for an
author, authors for an institution or paper, institutions for a country, countries
for a continent) plus a count of what was left out. Markup and positioning belong
to the renderer; this module only decides what goes in and in which order.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from collabgraph.layers import AuthorInfo, ContinentInfo, CountryInfo, InstitutionInfo, PaperInfo, PaperRef

PLACEHOLDER = "—"


@dataclass(frozen=True)
class PreviewItem:
    label: str
    note: str = ""


@dataclass(frozen=True)
class DetailPanel:
    title: str
    subtitle: str = ""
    counts: dict[str, int] = field(default_factory=dict)
    fields: dict[str, str] = field(default_factory=dict)
    section: str = ""
    items: list[PreviewItem] = field(default_factory=list)
    more: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "subtitle": self.subtitle,
            "counts": dict(self.counts),
            "fields": dict(self.fields),
            "section": self.section,
            "items": [{"label": i.label, "note": i.note} for i in self.items],
            "more": self.more,
        }


# ---------- Ordering ----------

def sort_names(names: Iterable[str]) -> list[str]:
    return sorted(names, key=lambda s: (s.casefold(), s))


def sort_papers_newest_first(papers: Iterable[PaperRef]) -> list[PaperRef]:
    # Year strings compare descending; blanks sink to the end, ties keep first-seen order.
    return sorted(papers, key=lambda p: p.year or "", reverse=True)


def preview(items: list, limit: int) -> tuple[list, int]:
    limit = max(0, int(limit))
    return items[:limit], max(0, len(items) - limit)


def first_with_more(values: list[str]) -> str:
    if not values:
        return PLACEHOLDER
    if len(values) == 1:
        return values[0]
    return f"{values[0]} (+{len(values) - 1} more)"


# ---------- Per-layer panels ----------

def author_panel(info: AuthorInfo, limit: int) -> DetailPanel:
    papers = sort_papers_newest_first(info.papers.values())
    shown, more = preview(papers, limit)
    return DetailPanel(
        title=info.name,
        subtitle=f"Author ID: {info.id}",
        counts={
            "Institutions": len(info.institutions),
            "Countries": len(info.countries),
            "Papers": len(papers),
        },
        fields={
            "Institution": first_with_more(info.institutions),
            "Country": first_with_more(info.countries),
        },
        section="Papers",
        items=[PreviewItem(label=p.title, note=p.year) for p in shown],
        more=more,
    )


def institution_panel(info: InstitutionInfo, limit: int) -> DetailPanel:
    authors = sort_names(info.authors.values())
    shown, more = preview(authors, limit)
    return DetailPanel(
        title=info.name,
        counts={"Authors": len(authors), "Countries": len(info.countries)},
        fields={"Country": first_with_more(info.countries)},
        section="Authors",
        items=[PreviewItem(label=name) for name in shown],
        more=more,
    )


def country_panel(info: CountryInfo, limit: int) -> DetailPanel:
    institutions = sort_names(info.institutions)
    shown, more = preview(institutions, limit)
    return DetailPanel(
        title=info.name,
        counts={"Institutions": len(institutions)},
        section="Institutions",
        items=[PreviewItem(label=name) for name in shown],
        more=more,
    )


def continent_panel(info: ContinentInfo, limit: int) -> DetailPanel:
    countries = sort_names(info.countries)
    shown, more = preview(countries, limit)
    return DetailPanel(
        title=info.name,
        counts={"Countries": len(countries)},
        section="Countries",
        items=[PreviewItem(label=name) for name in shown],
        more=more,
    )


def paper_panel(info: PaperInfo, limit: int) -> DetailPanel:
    authors = sort_names(info.authors.values())
    shown, more = preview(authors, limit)
    return DetailPanel(
        title=info.title,
        subtitle=f"Year: {info.year or PLACEHOLDER}",
        counts={"Authors": len(authors)},
        section="Authors",
        items=[PreviewItem(label=name) for name in shown],
        more=more,
    )


PANEL_BUILDERS: dict[type, Callable[[Any, int], DetailPanel]] = {
    AuthorInfo: author_panel,
    InstitutionInfo: institution_panel,
    CountryInfo: country_panel,
    ContinentInfo: continent_panel,
    PaperInfo: paper_panel,
}


def detail_panel(info: Any, limit: int) -> DetailPanel | None:
    builder = PANEL_BUILDERS.get(type(info))
    if builder is None:
        return None
    return builder(info, limit)
