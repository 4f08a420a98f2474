from unittest import TestCase

from adminlist.core_services.Request import RequestContext
from adminlist.dsl.modellist.actions import ActionManager
from adminlist.dsl.modellist.context import BuilderContext
from adminlist.dsl.modellist.exceptions import BuilderException

from support import make_config, make_db, seed_clinic


class ActionCase(TestCase):
    def setUp(self):
        self.db = make_db()
        self.patients, _ = seed_clinic(self.db)
        self.calls = []

    def tearDown(self):
        self.db.close()

    def manager(self, params=None):
        context = BuilderContext(self.patients, "patients", RequestContext(params or {}), config=make_config())
        return ActionManager(context)


class TestRowActions(ActionCase):
    def test_build_row_action_config(self):
        manager = self.manager()
        manager.set_row_actions({
            "view": {"label": "View", "link": "?id=%id%", "target": "_blank", "class": "btn", "fetch": True},
            "plain": {},
        })
        self.assertEqual(manager.get_row_actions(), {
            "view": {"label": "View", "link": "?id=%id%", "target": "_blank",
                     "class": "js-single-action btn", "fetch": "post"},
            "plain": {"label": "plain"},
        })

    def test_fetch_mode_posts_links(self):
        manager = self.manager()
        manager.context.set_fetch_mode()
        manager.add_row_action("view", {"label": "View", "link": "?id=%id%"})
        self.assertEqual(manager.get_row_actions()["view"]["fetch"], "post")

    def test_requested_row_action_runs_with_records(self):
        def ping(records, request):
            self.calls.append((sorted(records.pluck("name")), request.string("table_action")))
            return True

        manager = self.manager({"patients[table_action]": "ping", "patients[table_ids]": "3,1"})
        manager.set_row_actions({"ping": {"label": "Ping", "action": ping}})

        self.assertTrue(manager.has_executed())
        self.assertEqual(self.calls, [(["Alice", "Carol"], "ping")])
        self.assertEqual(manager.get_action_results(), {"success": True})
        self.assertFalse(manager.execute_row_action_if_requested())
        self.assertEqual(len(self.calls), 1)

    def test_unrequested_action_does_not_run(self):
        manager = self.manager({"patients[table_action]": "other"})
        manager.set_row_actions({"ping": {"label": "Ping", "action": lambda records, request: self.calls.append(1)}})
        self.assertFalse(manager.has_executed())
        self.assertEqual(manager.get_action_results(), {})

    def test_show_if_filter(self):
        manager = self.manager({"patients[filters]": '["status:inactive"]'})
        manager.set_row_actions({
            "activate": {"label": "Activate", "show_if_filter": {"status": "inactive"}},
            "archive": {"label": "Archive", "show_if_filter": {"status": "active"}},
        })
        self.assertEqual(list(manager.get_row_actions()), ["activate"])

        manager = self.manager()
        manager.set_row_actions({"archive": {"label": "Archive", "show_if_filter": {"status": "active"}}})
        self.assertEqual(list(manager.get_row_actions()), ["archive"])

    def test_default_actions(self):
        def remove(records, request):
            return {"success": True, "msg": "removed"}

        manager = self.manager()
        manager.add_row_action("view", {"label": "View", "link": "?id=%id%"})
        manager.set_default_actions(delete_handler=remove)
        manager.set_default_actions({"edit": {"label": "Change", "link": "/edit/%id%"}}, delete_handler=remove)

        actions = manager.get_row_actions()
        self.assertEqual(list(actions), ["view", "edit", "delete"])
        self.assertEqual(actions["edit"], {"label": "Change", "link": "/edit/%id%"})
        self.assertEqual(actions["delete"], {
            "label": "Delete",
            "class": "js-single-action link-action-danger",
            "confirm": "Are you sure you want to delete this item?",
        })
        self.assertIs(manager.action_functions["delete"], remove)

    def test_default_edit_link_uses_page(self):
        manager = ActionManager(BuilderContext(self.patients, "patients", page="clinic", config=make_config()))
        manager.set_default_actions()
        self.assertEqual(manager.get_row_actions()["edit"]["link"], "?page=clinic&action=edit&id=%id%")
        self.assertNotIn("delete", manager.action_functions)


class TestBulkActions(ActionCase):
    def params(self, action, ids=("1", "2")):
        return {"patients[table_action]": action, "patients[table_ids][]": list(ids)}

    def test_batch_mode_runs_once(self):
        def archive(records, request):
            self.calls.append(sorted(records.pluck("id")))
            return {"archived": len(records)}

        manager = self.manager(self.params("archive"))
        manager.set_bulk_actions({"archive": {"label": "Archive", "action": archive, "mode": "batch"}})

        self.assertEqual(self.calls, [[1, 2]])
        self.assertEqual(manager.get_action_results(), {"archived": 2})
        self.assertFalse(manager.execute_bulk_action_if_requested())
        self.assertEqual(len(self.calls), 1)

    def test_single_mode_runs_per_id(self):
        def touch(record, request):
            self.calls.append(record.name)
            return {f"touched_{record.id}": True}

        manager = self.manager(self.params("touch", ("2", "5")))
        manager.set_bulk_actions({"touch": {"label": "Touch", "action": touch}})

        self.assertEqual(self.calls, ["Bob", "Eve"])
        self.assertEqual(manager.get_action_results(), {"touched_2": True, "touched_5": True})
        self.assertTrue(manager.should_update_table())

    def test_needs_ids_and_a_callable(self):
        manager = self.manager({"patients[table_action]": "archive"})
        manager.set_bulk_actions({"archive": {"label": "Archive", "action": lambda r, q: self.calls.append(1)}})
        self.assertEqual(self.calls, [])

        manager = self.manager(self.params("archive"))
        manager.set_bulk_actions({"archive": {"label": "Archive"}})
        self.assertFalse(manager.has_executed())

    def test_update_table_flag(self):
        manager = self.manager(self.params("export"))
        manager.set_bulk_actions({
            "export": {"label": "Export", "action": lambda r, q: None, "mode": "batch", "update_table": False},
        })
        self.assertFalse(manager.should_update_table())
        manager.reset()
        self.assertTrue(manager.should_update_table())
        self.assertFalse(manager.has_executed())

    def test_add_bulk_action_keys(self):
        manager = self.manager()
        self.assertEqual(manager.add_bulk_action({"label": "Mark as paid"}), "mark_as_paid")
        self.assertEqual(manager.add_bulk_action({"label": "Drop", "key": "remove"}), "remove")
        self.assertEqual(manager.add_bulk_action({"label": "Other"}, "custom"), "custom")
        self.assertEqual(manager.get_bulk_action_labels(),
                         {"mark_as_paid": "Mark as paid", "remove": "Drop", "custom": "Other"})
        self.assertNotIn("key", manager.get_bulk_actions()["remove"])

        with self.assertRaises(BuilderException):
            manager.add_bulk_action({"action": print})

    def test_normalize_results(self):
        self.assertEqual(ActionManager.normalize_results({"a": 1}), {"a": 1})
        self.assertEqual(ActionManager.normalize_results(False), {"success": False})
        self.assertEqual(ActionManager.normalize_results([1]), {"function_results": [1]})
