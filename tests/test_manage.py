import contextlib
import io
import json
import os
import tempfile
from unittest import TestCase

from openpyxl import load_workbook

from adminlist.core_services.Sqlite3Database import Sqlite3Database
from adminlist.manage import main

from support import make_config, plain_model

ITEMS_DDL = "CREATE TABLE items (id INTEGER PRIMARY KEY, name TEXT, note TEXT)"


def run(argv):
    out = io.StringIO()
    with contextlib.redirect_stdout(out):
        code = main(argv)
    return code, out.getvalue()


class TestManage(TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.database = os.path.join(self.tmp.name, "items.db")
        db = Sqlite3Database(self.database, config=make_config())
        plain_model(db, "items", ITEMS_DDL, [
            {"id": 1, "name": "alpha", "note": "first"},
            {"id": 2, "name": "beta", "note": "second"},
            {"id": 3, "name": "gamma", "note": "third"},
        ])
        db.close()

    def tearDown(self):
        self.tmp.cleanup()

    def test_list(self):
        code, output = run(["list", "items", "--database", self.database, "--limit", "2",
                            "--order-field", "name", "--order-dir", "asc"])
        self.assertEqual(code, 0)
        data = json.loads(output)
        self.assertEqual([row["name"] for row in data["rows"]], ["alpha", "beta"])
        self.assertEqual(data["page_info"]["total_pages"], 2)

    def test_list_search_and_columns(self):
        code, output = run(["list", "items", "--database", self.database, "--search", "eco",
                            "--columns", "note, name"])
        data = json.loads(output)
        self.assertEqual([row["name"] for row in data["rows"]], ["beta"])
        visible = [key for key, column in data["info"].items() if column["type"] != "hidden"]
        self.assertEqual(visible, ["note", "name"])

    def test_export(self):
        target = os.path.join(self.tmp.name, "out.xlsx")
        code, output = run(["export", "items", "--database", self.database, "--output", target])
        self.assertEqual(code, 0)
        self.assertEqual(output.strip(), f"Exported 3 rows to {target}")

        sheet = load_workbook(target).active
        self.assertEqual([cell.value for cell in sheet[1]], ["id", "name", "note"])
        self.assertEqual(sheet.max_row, 4)

    def test_no_command_prints_help(self):
        code, output = run([])
        self.assertEqual(code, 1)
        self.assertIn("Admin list tool", output)
