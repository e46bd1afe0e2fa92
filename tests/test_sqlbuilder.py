import unittest

from offerseed.sqlbuilder import MultiReplace, ShapeMismatch


class MultiReplaceTests(unittest.TestCase):
    def test_build_renders_one_statement_with_flattened_params(self):
        stmt = MultiReplace("segments", ["segment_id", "filter_kind"], key_columns=["segment_id"])
        stmt.append(1, "olc_8")
        stmt.append(2, "purchase")

        sql, params = stmt.build()

        self.assertTrue(sql.startswith("INSERT INTO segments (segment_id, filter_kind)"))
        self.assertIn("VALUES (%s, %s), (%s, %s)", sql)
        self.assertIn("ON CONFLICT (segment_id) DO UPDATE SET filter_kind = EXCLUDED.filter_kind", sql)
        self.assertEqual(params, [1, "olc_8", 2, "purchase"])
        self.assertEqual(sql.count("%s"), len(params))

    def test_without_key_columns_is_plain_insert(self):
        stmt = MultiReplace("offers", ["a", "b"])
        stmt.append(1, 2)
        stmt.append(1, 2)

        sql, params = stmt.build()

        self.assertNotIn("ON CONFLICT", sql)
        self.assertEqual(params, [1, 2, 1, 2])

    def test_duplicate_keys_collapse_to_last_row(self):
        stmt = MultiReplace("segments", ["segment_id", "filter_value"], key_columns=["segment_id"])
        stmt.append(7, "old")
        stmt.append(8, "other")
        stmt.append(7, "new")

        _, params = stmt.build()

        self.assertEqual(params, [7, "new", 8, "other"])
        self.assertEqual(len(stmt), 3)

    def test_key_only_table_does_nothing_on_conflict(self):
        stmt = MultiReplace("tags", ["tag"], key_columns=["tag"])
        stmt.append("x")
        self.assertIn("ON CONFLICT (tag) DO NOTHING", stmt.build().sql)

    def test_placeholders_wrap_columns(self):
        stmt = MultiReplace(
            "cities",
            ["city_name", "center"],
            placeholders={"center": "ST_GeomFromText(%s, 4326)"},
        )
        stmt.append("New York", "POINT(-73.99 40.72)")
        self.assertIn("VALUES (%s, ST_GeomFromText(%s, 4326))", stmt.build().sql)

    def test_append_with_wrong_arity_raises(self):
        stmt = MultiReplace("segments", ["a", "b", "c"])
        with self.assertRaises(ShapeMismatch):
            stmt.append(1, 2)
        with self.assertRaises(ShapeMismatch):
            stmt.append(1, 2, 3, 4)
        self.assertEqual(len(stmt), 0)

    def test_build_after_clear_is_empty(self):
        stmt = MultiReplace("segments", ["a"])
        stmt.append(1)
        stmt.clear()

        statement = stmt.build()

        self.assertFalse(statement)
        self.assertEqual(statement.sql, "")
        self.assertEqual(statement.params, [])
        self.assertEqual(stmt.table, "segments")
        self.assertEqual(stmt.columns, ("a",))

    def test_builder_is_reusable_after_clear(self):
        stmt = MultiReplace("segments", ["a"])
        stmt.append(1)
        stmt.clear()
        stmt.append(2)
        self.assertEqual(stmt.build().params, [2])

    def test_unknown_key_column_is_rejected(self):
        with self.assertRaises(ValueError):
            MultiReplace("segments", ["a"], key_columns=["b"])
