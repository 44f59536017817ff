import pathlib
import tempfile
import unittest

import duckdb
import pandas as pd

from collabgraph.errors import InputFetchError
from collabgraph.records import Record, load_csv_records, load_duckdb_records, normalize, records_from_frame


class NormalizeTests(unittest.TestCase):
    def test_null_like_values_become_empty(self):
        self.assertEqual(normalize(None), "")
        self.assertEqual(normalize(float("nan")), "")
        self.assertEqual(normalize(pd.NA), "")

    def test_trims_and_strips_single_leading_bom(self):
        self.assertEqual(normalize("  a1  "), "a1")
        self.assertEqual(normalize("\ufeffa1"), "a1")
        self.assertEqual(normalize(" \ufeff a1 "), "a1")

    def test_coerces_to_text_without_case_folding(self):
        self.assertEqual(normalize(2021), "2021")
        self.assertEqual(normalize("ETH Zurich"), "ETH Zurich")


class RecordFrameTests(unittest.TestCase):
    def test_blank_rows_are_dropped_and_missing_columns_are_empty(self):
        df = pd.DataFrame(
            {
                "\ufeffauthor_id": [" a1 ", "", "a2"],
                "paper_id": ["p1", "  ", "p1"],
                "extra": ["x", "", ""],
            }
        )

        records = records_from_frame(df)

        self.assertEqual(len(records), 2)
        self.assertEqual(records[0], Record(author_id="a1", paper_id="p1"))
        self.assertEqual(records[1].author_id, "a2")
        self.assertEqual(records[1].institution, "")

    def test_empty_frame(self):
        self.assertEqual(records_from_frame(pd.DataFrame()), [])


class LoaderTests(unittest.TestCase):
    def test_load_semicolon_csv(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = pathlib.Path(tmp) / "rows.csv"
            path.write_text(
                "author_id;author_name;paper_id;paper_title;paper_year;institution;country;continent\n"
                "a1;Jane Doe;p1;Graphs, Revisited;2021;MIT;USA;North America\n"
                ";;;;;;;\n"
                "a2; John Roe ;p1;;;ETH;Switzerland;Europe\n",
                encoding="utf-8",
            )

            records = load_csv_records(path)

        self.assertEqual(len(records), 2)
        self.assertEqual(records[0].paper_title, "Graphs, Revisited")
        self.assertEqual(records[1].author_name, "John Roe")
        self.assertEqual(records[1].paper_year, "")

    def test_missing_csv_raises_input_fetch_error(self):
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(InputFetchError):
                load_csv_records(pathlib.Path(tmp) / "nope.csv")

    def test_empty_csv_yields_no_records(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = pathlib.Path(tmp) / "empty.csv"
            path.write_text("", encoding="utf-8")
            self.assertEqual(load_csv_records(path), [])

    def test_load_duckdb_table_casts_to_text(self):
        with tempfile.TemporaryDirectory() as tmp:
            db_path = pathlib.Path(tmp) / "rows.duckdb"
            con = duckdb.connect(str(db_path))
            con.execute("CREATE TABLE records (author_id VARCHAR, paper_id VARCHAR, paper_year INTEGER, country VARCHAR)")
            con.execute("INSERT INTO records VALUES ('a1', 'p1', 2020, NULL), ('a2', 'p1', NULL, 'Chile')")
            con.close()

            records = load_duckdb_records(db_path, "records")

        self.assertEqual(len(records), 2)
        self.assertEqual(records[0].paper_year, "2020")
        self.assertEqual(records[0].country, "")
        self.assertEqual(records[1].paper_year, "")
        self.assertEqual(records[1].country, "Chile")

    def test_missing_duckdb_table_raises_input_fetch_error(self):
        with tempfile.TemporaryDirectory() as tmp:
            db_path = pathlib.Path(tmp) / "rows.duckdb"
            duckdb.connect(str(db_path)).close()
            with self.assertRaises(InputFetchError):
                load_duckdb_records(db_path, "records")


if __name__ == "__main__":
    unittest.main()
