import io
import json
from unittest import TestCase

from flask import Flask
from markupsafe import Markup
from openpyxl import load_workbook

from adminlist import AdminList
from adminlist.dsl.modellist import TableBuilder
from adminlist.dsl.modellist.export import XLSX_MIMETYPE, cell_value

from support import make_config, make_db, seed_clinic


class ClinicList(TableBuilder):
    def configure(self):
        self.order_by("id", "asc").set_default_actions()

    def get_export_header(self):
        return "Clinic patients"


class TestWeb(TestCase):
    def setUp(self):
        self.db = make_db()
        self.patients, _ = seed_clinic(self.db)
        self.app = Flask(__name__)
        self.app.testing = True
        AdminList(self.app, {
            "patients": lambda request: ClinicList(self.patients, "patients", request, config=make_config()),
        })
        self.client = self.app.test_client()

    def tearDown(self):
        self.db.close()

    def test_config_is_registered(self):
        self.assertFalse(self.app.config["ADMINLIST"].debug)
        self.assertEqual(list(self.app.adminlist_tables), ["patients"])

    def test_list_as_json(self):
        response = self.client.get("/adminlist/patients?patients[limit]=2&patients[page]=2")
        self.assertEqual(response.status_code, 200)

        payload = response.get_json()
        self.assertTrue(payload["update_table"])
        self.assertEqual(payload["table_id"], "patients")
        self.assertEqual([row["name"] for row in payload["data"]["rows"]], ["Carol", "Dave"])
        self.assertEqual(payload["data"]["page_info"]["total_pages"], 3)
        self.assertIn("delete", payload["data"]["info"]["action"]["options"])

    def test_unknown_table(self):
        self.assertEqual(self.client.get("/adminlist/nope").status_code, 404)
        self.assertEqual(self.client.get("/adminlist/nope/export").status_code, 404)

    def test_post_runs_row_action(self):
        response = self.client.post("/adminlist/patients", data={
            "patients[table_action]": "delete",
            "patients[table_ids][]": ["2", "4"],
        })
        payload = response.get_json()
        self.assertEqual((payload["success"], payload["msg"]), (True, "2 items deleted"))
        self.assertEqual([row["name"] for row in payload["data"]["rows"]], ["Alice", "Carol", "Eve"])

    def test_export(self):
        response = self.client.get("/adminlist/patients/export")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.mimetype, XLSX_MIMETYPE)
        self.assertIn("patients.xlsx", response.headers["Content-Disposition"])

        sheet = load_workbook(io.BytesIO(response.data)).active
        self.assertEqual(sheet.title, "patients")
        self.assertEqual(sheet["A1"].value, "Clinic patients")
        headers = [cell.value for cell in sheet[3]]
        self.assertEqual(headers[:3], ["id", "Name", "Email"])
        self.assertNotIn("tags", headers)
        self.assertNotIn("Action", headers)
        self.assertEqual([cell.value for cell in sheet[4]][:2], [1, "Alice"])
        self.assertEqual(sheet.max_row, 8)

    def test_cli_commands(self):
        runner = self.app.test_cli_runner()
        result = runner.invoke(args=["adminlist", "tables"])
        self.assertEqual(result.output, "patients\n")

        result = runner.invoke(args=["adminlist", "show", "patients", "--limit", "1"])
        self.assertEqual(result.exit_code, 0)
        data = json.loads(result.output)
        self.assertEqual([row["name"] for row in data["rows"]], ["Alice"])

        result = runner.invoke(args=["adminlist", "show", "nope"])
        self.assertEqual(result.exit_code, 1)


class TestCellValue(TestCase):
    def test_cell_value(self):
        self.assertEqual(cell_value(None), "")
        self.assertEqual(cell_value(3), 3)
        self.assertEqual(cell_value(['<b>x</b>', 2]), "<b>x</b>, 2")
        self.assertEqual(cell_value(Markup('<a href="#">Alice</a>')), "Alice")
        self.assertEqual(cell_value({"a": 1}), "{'a': 1}")
