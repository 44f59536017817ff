"""
Tabular records for the co-occurrence graphs.

Rows arrive from a semicolon-delimited export (or a DuckDB table with the same
columns) and are turned into frozen `Record`s whose fields have all passed
through `normalize`. Only `author_id` and `paper_id` act as identifiers; the
other fields are display or grouping strings and are never case-folded.
"""
from __future__ import annotations

import math
import pathlib
from dataclasses import dataclass, fields
from typing import Any, Iterable, Mapping

try:
    import duckdb  # pip install duckdb>=1.0.0
except Exception as e:
    raise SystemExit(
        "Missing Python dependency 'duckdb'. Install it with:\n"
        "  python -m pip install -e .\n"
        f"Original error: {e}"
    )

try:
    import pandas as pd
except Exception as e:
    raise SystemExit(
        "Missing Python dependency 'pandas'. Install it with:\n"
        "  python -m pip install -e .\n"
        f"Original error: {e}"
    )

from collabgraph.errors import InputFetchError

BOM = "\ufeff"


# ---------- Normalizer ----------

def normalize(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    if value is pd.NA:
        return ""
    text = str(value).strip()
    if text.startswith(BOM):
        text = text[1:].strip()
    return text


# ---------- Records ----------

@dataclass(frozen=True)
class Record:
    author_id: str = ""
    author_name: str = ""
    paper_id: str = ""
    paper_title: str = ""
    paper_year: str = ""
    institution: str = ""
    country: str = ""
    continent: str = ""

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> "Record":
        return cls(**{f.name: normalize(row.get(f.name)) for f in fields(cls)})


def is_blank_row(row: Mapping[str, Any]) -> bool:
    return all(normalize(v) == "" for v in row.values())


def records_from_rows(rows: Iterable[Mapping[str, Any]]) -> list[Record]:
    records: list[Record] = []
    for row in rows:
        if is_blank_row(row):
            continue
        records.append(Record.from_mapping(row))
    return records


def records_from_frame(df: pd.DataFrame) -> list[Record]:
    if df.empty:
        return []
    # Header cells can carry the BOM of the file's first byte.
    df = df.rename(columns=lambda c: normalize(c))
    return records_from_rows(df.to_dict(orient="records"))


# ---------- Loaders ----------

def load_csv_records(csv_path: pathlib.Path, delimiter: str = ";") -> list[Record]:
    if not csv_path.exists():
        raise InputFetchError(f"Failed to read records: {csv_path} does not exist")
    try:
        df = pd.read_csv(
            csv_path,
            sep=delimiter,
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            encoding="utf-8",
        )
    except pd.errors.EmptyDataError:
        return []
    except (OSError, UnicodeDecodeError, pd.errors.ParserError) as e:
        raise InputFetchError(f"Failed to read records from {csv_path}: {e}") from e
    return records_from_frame(df)


def _quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


def load_duckdb_records(db_path: pathlib.Path, table: str) -> list[Record]:
    if not db_path.exists():
        raise InputFetchError(f"Failed to read records: {db_path} does not exist")
    try:
        con = duckdb.connect(str(db_path), read_only=True)
    except duckdb.Error as e:
        raise InputFetchError(f"Failed to open DuckDB database {db_path}: {e}") from e
    try:
        columns = [row[0] for row in con.execute(f"DESCRIBE {_quote_ident(table)}").fetchall()]
        # Cast everything to text so integer years do not come back as floats.
        select = ", ".join(f"CAST({_quote_ident(c)} AS VARCHAR) AS {_quote_ident(c)}" for c in columns)
        df = con.execute(f"SELECT {select} FROM {_quote_ident(table)}").df()
    except duckdb.Error as e:
        raise InputFetchError(f"Failed to read table '{table}' from {db_path}: {e}") from e
    finally:
        con.close()
    return records_from_frame(df)
