"""
Pairwise co-occurrence counting over pivot groups.

Every pivot group (the entities seen together on one paper, or the papers one
author wrote) adds 1 to the weight of each unordered pair of distinct entities in
it. Ids are sorted as plain strings before pairing so a pair always has the same
key regardless of input order. A group of k entities costs O(k^2) pairs.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from itertools import combinations
from typing import Iterable

EDGE_KEY_SEP = "|"
EDGE_KEY_ESCAPE = "\\"


def _escape_part(part: str) -> str:
    return part.replace(EDGE_KEY_ESCAPE, EDGE_KEY_ESCAPE * 2).replace(EDGE_KEY_SEP, EDGE_KEY_ESCAPE + EDGE_KEY_SEP)


def edge_key(a: str, b: str) -> str:
    # Ids are free text; escaping keeps ("a|b", "c") and ("a", "b|c") apart.
    return f"{_escape_part(a)}{EDGE_KEY_SEP}{_escape_part(b)}"


@dataclass
class Cooccurrence:
    # (a, b) with a < b -> number of groups containing both
    weights: Counter = field(default_factory=Counter)
    touched: set[str] = field(default_factory=set)


def aggregate(groups: Iterable[Iterable[str]]) -> Cooccurrence:
    result = Cooccurrence()
    for group in groups:
        members = sorted(set(group))
        if len(members) < 2:
            continue
        for a, b in combinations(members, 2):
            result.weights[(a, b)] += 1
        result.touched.update(members)
    return result
