#!/usr/bin/env python3
"""
Audit the graph payloads under Output/graphs/.

This is a lightweight sanity check intended to catch common regressions:
- Edges pointing at nodes that are not in the payload, or at themselves
- Edge ids that are not the canonical escaped "source|target" with source < target
- Element ids used more than once within a payload
- Non-positive weights
- Nodes with no edges (isolated entities must be dropped) or without metadata

Usage:
  python3 scripts/audit_graph_payloads.py [Output/graphs]
"""

from __future__ import annotations

import glob
import json
import os
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable


GRAPHS_ROOT = os.path.join("Output", "graphs")


@dataclass(frozen=True)
class Finding:
    kind: str
    path: str
    detail: str


def _read_json(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _escape_part(part: str) -> str:
    return part.replace("\\", "\\\\").replace("|", "\\|")


def expected_edge_id(source: str, target: str) -> str:
    return f"{_escape_part(source)}|{_escape_part(target)}"


def _split_elements(elements: list) -> tuple[list[dict], list[dict]]:
    nodes: list[dict] = []
    edges: list[dict] = []
    for el in elements:
        data = el.get("data") if isinstance(el, dict) else None
        if not isinstance(data, dict):
            continue
        if "source" in data and "target" in data:
            edges.append(data)
        else:
            nodes.append(data)
    return nodes, edges


def audit_payload(path: str) -> list[Finding]:
    findings: list[Finding] = []
    data = _read_json(path)
    elements = data.get("elements")
    if not isinstance(elements, list):
        return [Finding("payload.elements_type", path, f"Expected list, got {type(elements).__name__}")]
    if not elements:
        return [Finding("payload.empty", path, "No nodes/edges in payload")]

    nodes, edges = _split_elements(elements)
    node_ids = {str(n.get("id")) for n in nodes}
    info = data.get("info") or {}
    size_metric = data.get("size_metric")

    seen_ids: set[str] = set()
    for el in nodes + edges:
        eid = str(el.get("id"))
        if eid in seen_ids:
            findings.append(Finding("element.duplicate_id", path, eid))
        seen_ids.add(eid)

    degree: dict[str, int] = {nid: 0 for nid in node_ids}
    for e in edges:
        src = str(e.get("source"))
        dst = str(e.get("target"))
        eid = str(e.get("id"))
        if src == dst:
            findings.append(Finding("edge.self_loop", path, f"{eid}"))
            continue
        if src not in node_ids or dst not in node_ids:
            findings.append(Finding("edge.dangling", path, f"{eid} references a missing node"))
        if not src < dst or eid != expected_edge_id(src, dst):
            findings.append(Finding("edge.non_canonical_id", path, f"{eid} (source={src}, target={dst})"))
        w = e.get("weight")
        if not isinstance(w, int) or w < 1:
            findings.append(Finding("edge.weight", path, f"{eid} has weight {w!r}"))
        degree[src] = degree.get(src, 0) + 1
        degree[dst] = degree.get(dst, 0) + 1

    for n in nodes:
        nid = str(n.get("id"))
        if degree.get(nid, 0) == 0:
            findings.append(Finding("node.isolated", path, nid))
        if nid not in info:
            findings.append(Finding("node.missing_info", path, nid))
        if size_metric and not isinstance(n.get(size_metric), int):
            findings.append(Finding("node.size_metric", path, f"{nid} lacks integer '{size_metric}'"))

    return findings


def payload_paths(root: str) -> list[str]:
    return [p for p in sorted(glob.glob(os.path.join(root, "*.json"))) if os.path.basename(p) != "summary.json"]


def audit_graphs(root: str = GRAPHS_ROOT) -> list[Finding]:
    findings: list[Finding] = []
    for path in payload_paths(root):
        findings.extend(audit_payload(path))
    return findings


def _summarize(findings: Iterable[Finding], audited: list[str]) -> str:
    by_layer: dict[str, dict[str, int]] = {}
    for f in findings:
        layer = os.path.splitext(os.path.basename(f.path))[0]
        counts = by_layer.setdefault(layer, {})
        counts[f.kind] = counts.get(f.kind, 0) + 1

    total = sum(sum(c.values()) for c in by_layer.values())
    lines = [f"Payloads audited: {len(audited)}", f"Findings: {total}"]
    for layer in sorted(by_layer):
        counts = by_layer[layer]
        lines.append(f"{layer}: {sum(counts.values())}")
        for kind, count in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0])):
            lines.append(f"  - {kind}: {count}")
    return "\n".join(lines)


def _write_report(findings: list[Finding], root: str, audited: list[str]) -> str:
    report_dir = os.path.join(root, "reports")
    os.makedirs(report_dir, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    path = os.path.join(report_dir, f"graph_audit_{stamp}.md")

    lines = ["# Graph Payload Audit", "", f"- Timestamp (UTC): `{stamp}`", f"- Root: `{root}`", ""]
    lines += ["```", _summarize(findings, audited), "```", ""]
    for payload in audited:
        own = [f for f in findings if f.path == payload]
        if not own:
            continue
        lines += [f"## {os.path.basename(payload)}", ""]
        lines += [f"- **{f.kind}**: {f.detail}" for f in own[:100]]
        if len(own) > 100:
            lines.append(f"- _(showing 100 of {len(own)})_")
        lines.append("")

    with open(path, "w", encoding="utf-8") as fp:
        fp.write("\n".join(lines))
    return path


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    root = args[0] if args else GRAPHS_ROOT
    if not os.path.isdir(root):
        print(f"Missing `{root}/` folder; nothing to audit.", file=sys.stderr)
        return 2

    audited = payload_paths(root)
    findings = audit_graphs(root)

    print(_summarize(findings, audited))
    if findings:
        print(f"Report written: {_write_report(findings, root, audited)}")

    return 1 if findings else 0


if __name__ == "__main__":
    raise SystemExit(main())
