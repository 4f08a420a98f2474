from unittest import TestCase

from adminlist.core_services.Database import DatabaseError, NoResultsFound
from adminlist.database.ModelCollection import ModelCollection
from adminlist.utilities.DataKlass import DataKlass

from support import Doctor, Patient, make_db, plain_model, seed_clinic


class TestModelSchema(TestCase):
    def test_create_table_sql(self):
        self.assertEqual(
            Doctor.create_table_sql(),
            'CREATE TABLE IF NOT EXISTS "doctors" ("id" INTEGER PRIMARY KEY, "name" VARCHAR(100))',
        )
        self.assertIn('"doctor_id" INTEGER REFERENCES doctors(id)', Patient.create_table_sql())

    def test_rules_come_from_declared_fields(self):
        rules = Patient(make_db()).get_rules("list")
        self.assertEqual(list(rules)[:3], ["id", "name", "email"])
        self.assertEqual(rules["name"]["label"], "Name")
        self.assertEqual(rules["notes"]["label"], "notes")
        self.assertEqual(rules["id"]["type"], "int")
        self.assertTrue(rules["id"]["primary"])
        self.assertEqual((rules["photos"]["type"], rules["photos"]["form-type"]), ("array", "image"))
        self.assertEqual(rules["created_at"]["type"], "datetime")

    def test_introspected_model(self):
        db = make_db()
        model = plain_model(db, "items", "CREATE TABLE items (code TEXT PRIMARY KEY, qty INTEGER, price REAL)")
        self.assertEqual(model.get_primary_key(), "code")
        rules = model.get_rules()
        self.assertEqual(list(rules), ["code", "qty", "price"])
        self.assertEqual([rules[k]["type"] for k in rules], ["text", "int", "float"])


class TestModelQueries(TestCase):
    def setUp(self):
        self.db = make_db()
        self.patients, self.doctors = seed_clinic(self.db)

    def tearDown(self):
        self.db.close()

    def test_get_hydrates_json_fields(self):
        result = self.patients.get(self.patients.query().where('"id"', "=", 1))
        self.assertIsInstance(result, ModelCollection)
        alice = result.first()
        self.assertIsInstance(alice, DataKlass)
        self.assertEqual(alice.tags, ["vip", "new"])
        self.assertEqual(alice.photos[0]["url"], "/p/1.jpg")
        self.assertEqual(result.raw[0]["tags"], '["vip", "new"]')
        self.assertEqual(result.columns[:3], ["id", "name", "email"])

    def test_get_by_id_and_ids(self):
        self.assertEqual(self.patients.get_by_id(3).name, "Carol")
        self.assertIsNone(self.patients.get_by_id(99))
        found = self.patients.get_by_ids(["1", "3", "", None])
        self.assertEqual(sorted(found.pluck("name")), ["Alice", "Carol"])
        self.assertEqual(self.patients.get_by_ids([]), [])

    def test_count_ignores_limit(self):
        query = self.patients.query().where('"status"', "=", "active").limit(1)
        self.assertEqual(self.patients.count(query), 3)
        self.assertEqual(len(self.patients.get(query)), 1)
        self.assertEqual(self.patients.count(), 5)

    def test_save_update_and_delete(self):
        new_id = self.doctors.save({"name": "Cuddy"})
        self.assertEqual(self.doctors.get_by_id(new_id).name, "Cuddy")

        self.doctors.save({"name": "Lisa Cuddy"}, new_id)
        self.assertEqual(self.doctors.get_by_id(new_id).name, "Lisa Cuddy")

        self.assertTrue(self.doctors.delete(new_id))
        self.assertFalse(self.doctors.delete(new_id))

    def test_load_relationships(self):
        result = self.patients.get(self.patients.query().order_by('"id"'), with_=["doctor", "unknown"])
        by_name = {record.name: record for record in result}
        self.assertEqual(by_name["Alice"].doctor.name, "Grey")
        self.assertEqual(by_name["Bob"].get_path("doctor.name"), "House")
        self.assertIsNone(by_name["Dave"].doctor)
        self.assertNotIn("doctor", result.columns)

    def test_order_has_joins_once(self):
        query = self.patients.query().order_has("doctor", "name", "asc").order_has("doctor", "name", "desc")
        self.assertEqual(
            query.to_sql(),
            'SELECT "patients".* FROM patients LEFT JOIN "doctors" AS "doctor" '
            'ON "doctor"."id" = "patients"."doctor_id" ORDER BY "doctor"."name" DESC',
        )
        names = [record.name for record in self.patients.get(query.order_by('"patients"."id"'))]
        self.assertEqual(names, ["Bob", "Carol", "Alice", "Eve", "Dave"])

    def test_database_errors(self):
        with self.assertRaises(DatabaseError) as caught:
            self.db.query("SELECT * FROM nowhere")
        self.assertIn("nowhere", str(caught.exception))
        self.assertIn("nowhere", self.patients.get_last_error())

        with self.assertRaises(NoResultsFound):
            self.db.results_or_fail("SELECT * FROM doctors WHERE id = %s", [42])
        self.assertEqual(self.db.results_or_fail("SELECT * FROM doctors WHERE id = %s", [42], lambda: []), [])

    def test_get_var(self):
        self.assertEqual(self.db.get_var("SELECT name FROM doctors WHERE id = %s", [2]), "Grey")
        self.assertEqual(self.db.get_var("SELECT name FROM doctors WHERE id = %s", [9], default="-"), "-")
