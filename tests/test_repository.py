import os
import tempfile
import unittest
from datetime import datetime

from assetrecon.database import DataSource
from assetrecon.hierarchy import build_deep_tree, build_two_level
from assetrecon.repository import AssetRepository
from assetrecon.resolve import FAILED, FOUND, resolve_codes

SCHEMA = [
    """CREATE TABLE as_asset (
        AS_CODE TEXT, AS_NAME TEXT, AS_LV INTEGER, OPERATING TEXT, OPERATING_NAME TEXT,
        AS_TYPE_NAME TEXT, AS_ADDRESS TEXT, AS_CONSTRUCTION_AREA REAL, AS_USABLE_AREA REAL,
        UP_AS_CODE TEXT, AS_STATE TEXT, U_DELETE INTEGER,
        NEW_AS_CODE TEXT, NEW_AS_NAME TEXT, OLD_AS_CODE TEXT, OLD_AS_NAME TEXT)""",
    "CREATE TABLE con_contracts (ID TEXT, CON_CODE TEXT, U_DELETE INTEGER, START_DATE TEXT, END_DATE TEXT, CON_STATE TEXT)",
    "CREATE TABLE con_contracts_detail (CONTRACTS_ID TEXT, AS_CODE TEXT)",
]

INSERT_ASSET = """INSERT INTO as_asset VALUES (
    :code, :name, :lv, 'Office', :area, 'Building', 'Main St', :built, NULL,
    :parent, :state, :deleted, :new_code, NULL, :old_code, NULL)"""


def _asset(code, lv, parent=None, state="CHECKED", area="East", deleted=1, new_code=None, old_code=None, built=10):
    return dict(code=code, name=f"Asset {code}", lv=lv, parent=parent, state=state, area=area,
                deleted=deleted, new_code=new_code, old_code=old_code, built=built)


class RepositoryTests(unittest.TestCase):
    def setUp(self):
        self.source = DataSource({"url": "sqlite://"}, name="test")
        for ddl in SCHEMA:
            self.source.execute(ddl)
        for row in [
            _asset("B1", 1, state="CHECKED_BLUE", built=None),
            _asset("B1-1", 2, parent="B1", state="CHECKED_BLUE"),
            _asset("B2", 1, state="CHECKED_BLUE", area="West"),
            _asset("T", -99),
            _asset("T-1", 1, parent="T", old_code="B1"),
            _asset("T-1-1", 2, parent="T-1", state="INIT"),
            _asset("T-1-2", 2, parent="T-1", deleted=0),
            _asset("OLD9", 2, new_code="T-1-1"),
        ]:
            self.source.execute(INSERT_ASSET, row)
        self.source.execute("INSERT INTO con_contracts VALUES ('c1', 'CON-1', 1, '2020-01-01 00:00:00', '2099-01-01 00:00:00', 'CHECKED')")
        self.source.execute("INSERT INTO con_contracts VALUES ('c2', 'CON-OLD', 1, '2000-01-01 00:00:00', '2001-01-01 00:00:00', 'CHECKED')")
        self.source.execute("INSERT INTO con_contracts_detail VALUES ('c1', 'B1')")
        self.source.execute("INSERT INTO con_contracts_detail VALUES ('c2', 'B1-1')")
        self.repo = AssetRepository(self.source, "East", datetime(2025, 9, 25))

    def tearDown(self):
        self.source.close()

    def test_blue_queries_scope_area_and_attach_active_contract(self):
        parents = self.repo.blue_top_assets()
        self.assertEqual([p.code for p in parents], ["B1"])
        self.assertEqual(parents[0].contract_code, "CON-1")
        self.assertEqual(parents[0].built_area, 0)
        children = self.repo.blue_children("B1")
        self.assertEqual([c.code for c in children], ["B1-1"])
        self.assertEqual(children[0].contract_code, "")

        rows = build_two_level(parents, self.repo.blue_children)
        self.assertEqual(rows[0].child_code_list, "B1-1")

    def test_red_tree_skips_deleted_rows(self):
        roots = self.repo.red_top_assets()
        self.assertEqual([r.code for r in roots], ["T"])
        rows = build_deep_tree(roots, self.repo.red_children)
        self.assertEqual([r.record.code for r in rows], ["T", "T-1", "T-1-1"])
        self.assertEqual(rows[1].record.old_code, "B1")
        self.assertEqual(rows[2].parent_code, "T-1")

    def test_new_asset_info(self):
        info = self.repo.new_asset_info("OLD9")
        self.assertEqual(info["new_code"], "T-1-1")
        self.assertEqual(info["new_level"], 2)
        self.assertIsNone(self.repo.new_asset_info("T"))


class ConnectionRecoveryTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        url = "sqlite:///" + os.path.join(self.tmp.name, "assets.db")
        self.source = DataSource({"url": url}, name="file")
        self.source.execute(SCHEMA[0])
        for row in [_asset("T-1-1", 2), _asset("OLD9", 2, new_code="T-1-1")]:
            self.source.execute(INSERT_ASSET, row)
        self.repo = AssetRepository(self.source, "East")

    def tearDown(self):
        self.source.close()
        self.tmp.cleanup()

    def test_batch_continues_after_dropped_connection(self):
        def lookup(code):
            if code == "DROP":
                self.source.connection.invalidate()
            return self.repo.new_asset_info(code)

        rows = [{"Code": "OLD9"}, {"Code": "DROP"}, {"Code": "OLD9"}]
        results = resolve_codes(rows, lookup, delay=0, sleep=lambda _: None)

        self.assertEqual([r.status for r in results], [FOUND, FAILED, FOUND])
        self.assertEqual(results[2].new_code, "T-1-1")


if __name__ == "__main__":
    unittest.main()
