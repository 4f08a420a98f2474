from unittest import TestCase

from adminlist.dsl.modellist.page_info import PageInfo


class TestPageInfo(TestCase):
    def test_defaults(self):
        info = PageInfo()
        self.assertEqual(info.page, 1)
        self.assertEqual(info.limit, 10)
        self.assertEqual(info.order_dir, "desc")
        self.assertEqual(info.pagination_limit, 14)
        self.assertTrue(info.ajax and info.pagination and info.auto_scroll)
        self.assertFalse(info.footer or info.json)
        self.assertEqual(info.bulk_actions, {})

    def test_limit_start_is_derived(self):
        for page in range(1, 6):
            for limit in (1, 7, 25):
                info = PageInfo(page=page, limit=limit)
                self.assertEqual(info.limit_start, page * limit - limit)
                self.assertGreaterEqual(info.limit_start, 0)

        info = PageInfo(page=3, limit=10)
        info.set_page(4)
        self.assertEqual(info.limit_start, 30)

    def test_order_dir_is_normalized(self):
        info = PageInfo()
        info.set_order("name", "ASC")
        self.assertEqual((info.order_field, info.order_dir), ("name", "asc"))
        info.order_dir = "sideways"
        self.assertEqual(info.order_dir, "desc")

    def test_limit_is_at_least_one(self):
        self.assertEqual(PageInfo(limit=0).limit, 1)
        info = PageInfo().set_limit(0)
        self.assertEqual(info.limit, 1)
        self.assertEqual(info.set_limit("-4").limit, 1)
        self.assertEqual(PageInfo(limit=0, total_record=3).total_pages, 3)

    def test_total_pages(self):
        self.assertEqual(PageInfo(limit=10, total_record=0).total_pages, 1)
        self.assertEqual(PageInfo(limit=10, total_record=21).total_pages, 3)

    def test_fluent_setters_and_to_dict(self):
        info = (
            PageInfo(id="users")
            .set_total(42)
            .set_limit(20)
            .set_primary_key("id")
            .add_bulk_action("archive", "Archive")
            .set_input_hidden("token", "abc")
            .set_table_attrs({"class": "table"})
            .set_custom_data({"tab": "all"})
            .set_pagination_flags(pag_goto_show=False, pagination_limit=5, unknown=True)
        )
        data = info.to_dict()

        self.assertEqual(data["total_record"], 42)
        self.assertEqual(data["total_pages"], 3)
        self.assertEqual(data["limit_start"], 0)
        self.assertEqual(data["bulk_actions"], {"archive": "Archive"})
        self.assertEqual(data["input_hidden"], {"token": "abc"})
        self.assertEqual(data["custom_data"], {"tab": "all"})
        self.assertFalse(data["pag_goto_show"])
        self.assertEqual(data["pagination_limit"], 5)
        self.assertNotIn("unknown", data)
