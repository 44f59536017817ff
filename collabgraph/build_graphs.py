#!/usr/bin/env python3
"""
Build the co-occurrence graphs (authors, institutions, countries, continents, papers)
from a flat author/paper/affiliation table and write one render payload per layer.

Pipeline:
- Read records from a semicolon-delimited CSV (data/mockup_data.csv) or a DuckDB table.
- Build each requested layer: group by pivot, count shared memberships, drop isolated entities.
- Write Output/graphs/<layer>.json ({elements, info, details}) for the graph viewer, plus summary.json.

Usage:
    python -m collabgraph.build_graphs [--base|--root /path/to/repo] [--csv data.csv | --db atlas.duckdb --table records] [--layers authors papers]

Everything is recomputed from the full table on each run.
"""
from __future__ import annotations

import argparse
import json
import pathlib
from typing import Any

try:
    import numpy as np
except Exception as e:
    raise SystemExit(
        "Missing Python dependency 'numpy'. Install it with:\n"
        "  python -m pip install -e .\n"
        f"Original error: {e}"
    )

from collabgraph.details import detail_panel
from collabgraph.errors import EmptyGraphError, GraphBuildError
from collabgraph.layers import LAYERS, LayerGraph, build_all_layers
from collabgraph.records import Record, load_csv_records, load_duckdb_records

# ---------- Paths ----------

def resolve_paths(base_arg: str | None) -> dict[str, pathlib.Path]:
    repo_root = pathlib.Path(base_arg).expanduser().resolve() if base_arg else pathlib.Path(__file__).resolve().parents[1]
    output = repo_root / "Output"
    graphs_dir = output / "graphs"
    csv_path = repo_root / "data" / "mockup_data.csv"
    graphs_dir.mkdir(parents=True, exist_ok=True)
    return {
        "repo_root": repo_root,
        "output": output,
        "graphs_dir": graphs_dir,
        "csv_path": csv_path,
    }

# ---------- Loading ----------

def load_records(args: argparse.Namespace, paths: dict[str, pathlib.Path]) -> tuple[list[Record], str]:
    if args.db:
        db_path = pathlib.Path(args.db).expanduser()
        print(f"[graphs] Loading records from {db_path} (table {args.table})")
        return load_duckdb_records(db_path, args.table), f"{db_path}::{args.table}"
    csv_path = pathlib.Path(args.csv).expanduser() if args.csv else paths["csv_path"]
    print(f"[graphs] Loading records from {csv_path}")
    return load_csv_records(csv_path, delimiter=args.delimiter), str(csv_path)

# ---------- Summary ----------

def layer_stats(graph: LayerGraph) -> dict[str, Any]:
    if graph.is_empty:
        return {
            "available": False,
            "reason": graph.spec.empty_message,
            "skipped_rows": graph.skipped_rows,
        }
    deg = np.asarray(list(graph.degree().values()), dtype=np.float64)
    weights = np.asarray([e.weight for e in graph.edges], dtype=np.float64)
    sizes = np.asarray([n.size for n in graph.nodes], dtype=np.float64)
    return {
        "available": True,
        "nodes": len(graph.nodes),
        "edges": len(graph.edges),
        "entities_seen": len(graph.info),
        "skipped_rows": graph.skipped_rows,
        "size_metric": graph.spec.size_metric,
        "size_max": int(sizes.max()) if sizes.size else 0,
        "degree_mean": round(float(deg.mean()), 4) if deg.size else 0.0,
        "degree_max": int(deg.max()) if deg.size else 0,
        "weight_mean": round(float(weights.mean()), 4) if weights.size else 0.0,
        "weight_max": int(weights.max()) if weights.size else 0,
    }

# ---------- Export ----------

def write_layer_payload(graphs_dir: pathlib.Path, graph: LayerGraph, preview_limit: int | None = None) -> pathlib.Path:
    out_path = graphs_dir / f"{graph.layer}.json"
    elements = graph.require_elements()
    limit = graph.spec.preview_limit if preview_limit is None else preview_limit
    details: dict[str, Any] = {}
    for node in graph.nodes:
        panel = detail_panel(graph.info[node.id], limit) if node.id in graph.info else None
        if panel is not None:
            details[node.id] = panel.to_dict()
    payload = {
        "layer": graph.layer,
        "size_metric": graph.spec.size_metric,
        "preview_limit": limit,
        "elements": elements,
        "info": graph.info_payload(),
        "details": details,
    }
    out_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    print(f"[graphs] {graph.layer}: {len(graph.nodes)} nodes, {len(graph.edges)} edges -> {out_path}")
    return out_path


def write_summary(graphs_dir: pathlib.Path, summary: dict[str, Any]) -> pathlib.Path:
    out_path = graphs_dir / "summary.json"
    graphs_dir.mkdir(parents=True, exist_ok=True)
    out_path.write_text(json.dumps(summary, indent=2))
    print(f"[graphs] Wrote summary to {out_path}")
    return out_path

# ---------- Main entry ----------

def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(description="Build co-occurrence graph payloads from an author/paper table.")
    parser.add_argument("--base", help="Repo root (defaults to package parent)", default=None)
    parser.add_argument("--root", dest="base", help="Alias for --base", default=None)
    parser.add_argument("--csv", help="Input CSV (default data/mockup_data.csv)", default=None)
    parser.add_argument("--delimiter", help="CSV delimiter", default=";")
    parser.add_argument("--db", help="Read records from this DuckDB file instead of the CSV", default=None)
    parser.add_argument("--table", help="DuckDB table holding the records", default="records")
    parser.add_argument("--layers", nargs="*", choices=list(LAYERS.keys()), default=None, help="Layers to build (default all).")
    parser.add_argument("--out", help="Output directory (default Output/graphs)", default=None)
    parser.add_argument("--preview-limit", type=int, default=None, help="Detail-panel preview length (default 25, 30 for papers).")
    args = parser.parse_args(argv)

    paths = resolve_paths(args.base)
    graphs_dir = pathlib.Path(args.out).expanduser() if args.out else paths["graphs_dir"]
    graphs_dir.mkdir(parents=True, exist_ok=True)

    try:
        records, source = load_records(args, paths)
    except GraphBuildError as e:
        raise SystemExit(str(e))
    print(f"[graphs] Loaded {len(records)} records")

    graphs = build_all_layers(records, args.layers)

    layer_summary: dict[str, Any] = {}
    failures: list[str] = []
    for name, graph in graphs.items():
        layer_summary[name] = layer_stats(graph)
        try:
            layer_summary[name]["payload"] = str(write_layer_payload(graphs_dir, graph, preview_limit=args.preview_limit))
        except EmptyGraphError as e:
            print(f"[graphs] {name}: {e}")
            failures.append(str(e))

    write_summary(
        graphs_dir,
        {
            "source": source,
            "records": len(records),
            "layers": layer_summary,
        },
    )
    if failures and len(failures) == len(graphs):
        raise SystemExit("\n".join(failures))


if __name__ == "__main__":
    main()
