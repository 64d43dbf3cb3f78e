import unittest

from assetrecon.match import closest_name, find_match, match
from assetrecon.models import AssetRecord


class MatchTests(unittest.TestCase):
    def _asset(self, code, name, old_code=""):
        return AssetRecord(code=code, name=name, old_code=old_code)

    def test_old_code_pointer_beats_name(self):
        blue = self._asset("B1", "Tower")
        same_name = self._asset("R9", "Tower")
        renamed = self._asset("R1", "Tower North", old_code="B1")
        found, method = find_match(blue, [same_name, renamed])
        self.assertIs(found, renamed)
        self.assertEqual(method, "code")

    def test_source_old_code_points_at_candidate(self):
        red = self._asset("R1", "Tower", old_code="B1")
        other = self._asset("B7", "Tower")
        blue = self._asset("B1", "Old Tower")
        found, method = find_match(red, [other, blue])
        self.assertIs(found, blue)
        self.assertEqual(method, "code")

    def test_name_fallback_is_exact_and_first_wins(self):
        src = self._asset("B2", "Annex")
        first = self._asset("R2", "Annex")
        second = self._asset("R3", "Annex")
        lower = self._asset("R4", "annex")
        found, method = find_match(src, [lower, first, second])
        self.assertIs(found, first)
        self.assertEqual(method, "name")

    def test_no_match_returns_none(self):
        found, method = find_match(self._asset("B3", "Shed"), [self._asset("R5", "Garage")])
        self.assertIsNone(found)
        self.assertEqual(method, "none")
        self.assertIsNone(match(self._asset("B3", "Shed"), []))

    def test_empty_codes_and_names_never_match(self):
        src = self._asset("", "")
        self.assertIsNone(match(src, [self._asset("R1", "", old_code="")]))

    def test_closest_name_hint(self):
        src = self._asset("B3", "Warehouse A")
        hint = closest_name(src, [self._asset("R1", "Warehouse A1"), self._asset("R2", "Office")])
        self.assertEqual(hint, "Warehouse A1")
        self.assertEqual(closest_name(src, [self._asset("R2", "Office")]), "")


if __name__ == "__main__":
    unittest.main()
