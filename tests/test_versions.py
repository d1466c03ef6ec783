import unittest

from helpmeai.versions import SemVer, coerce, compare_versions, matches, parse_version, satisfies


class TestWildcard(unittest.TestCase):
    def test_star_matches_anything(self) -> None:
        for version in ("1.2.3", "", "garbage", "^1.0.0", "latest", "workspace:*"):
            with self.subTest(version=version):
                self.assertTrue(matches(version, "*"))


class TestMalformedInput(unittest.TestCase):
    def test_malformed_versions_do_not_match(self) -> None:
        for version in ("", "garbage", "latest", "workspace:*", "next"):
            for range_ in (">=1.0.0", "^1.0.0", "1.x", "<2.0.0"):
                with self.subTest(version=version, range_=range_):
                    self.assertFalse(matches(version, range_))

    def test_malformed_ranges_do_not_match(self) -> None:
        for range_ in (">=>=1", "not a range", "^1.2.3 - 2", "1.2.3.4.5.a"):
            with self.subTest(range_=range_):
                self.assertFalse(matches("1.2.3", range_))

    def test_non_string_input_does_not_raise(self) -> None:
        self.assertFalse(matches(None, ">=1.0.0"))  # type: ignore[arg-type]
        self.assertFalse(matches("1.0.0", None))  # type: ignore[arg-type]


class TestCoerce(unittest.TestCase):
    def test_loose_versions(self) -> None:
        cases = {
            "v2": "2.0.0",
            "^5.1": "5.1.0",
            "5.x": "5.0.0",
            "5": "5.0.0",
            "~1.2.3": "1.2.3",
            "1.2.3.4": "1.2.3",
            "1.2.3-beta.1": "1.2.3",
        }
        for raw, expected in cases.items():
            with self.subTest(raw=raw):
                coerced = coerce(raw)
                self.assertIsNotNone(coerced)
                self.assertEqual(str(coerced), expected)

    def test_uncoercible(self) -> None:
        self.assertIsNone(coerce("latest"))
        self.assertIsNone(coerce(""))


class TestRanges(unittest.TestCase):
    def test_disjoint_ranges_pick_the_right_major(self) -> None:
        self.assertFalse(matches("5.2.0", ">=4.0.0 <5.0.0"))
        self.assertTrue(matches("5.2.0", ">=5.0.0"))

    def test_caret_declared_dependency(self) -> None:
        self.assertTrue(matches("^3.2.1", ">=3.0.0"))

    def test_caret(self) -> None:
        self.assertTrue(matches("1.9.9", "^1.2.3"))
        self.assertFalse(matches("2.0.0", "^1.2.3"))
        self.assertFalse(matches("1.2.2", "^1.2.3"))
        self.assertTrue(matches("0.2.9", "^0.2.3"))
        self.assertFalse(matches("0.3.0", "^0.2.3"))
        self.assertTrue(matches("0.0.3", "^0.0.3"))
        self.assertFalse(matches("0.0.4", "^0.0.3"))
        self.assertTrue(matches("1.4.0", "^1.x"))

    def test_tilde(self) -> None:
        self.assertTrue(matches("1.2.9", "~1.2.3"))
        self.assertFalse(matches("1.3.0", "~1.2.3"))
        self.assertTrue(matches("1.9.0", "~1"))

    def test_x_ranges_and_partials(self) -> None:
        self.assertTrue(matches("5.4.1", "5.x"))
        self.assertFalse(matches("6.0.0", "5.x"))
        self.assertTrue(matches("5.4.1", "5"))
        self.assertTrue(matches("1.2.7", "1.2.x"))
        self.assertFalse(matches("1.3.0", "1.2.x"))
        self.assertTrue(matches("2.0.0", ">1"))
        self.assertFalse(matches("1.9.9", ">1"))
        self.assertTrue(matches("1.2.9", "<=1.2"))
        self.assertFalse(matches("1.3.0", "<=1.2"))

    def test_hyphen(self) -> None:
        self.assertTrue(matches("2.3.4", "1.2.3 - 2.3.4"))
        self.assertFalse(matches("2.3.5", "1.2.3 - 2.3.4"))
        self.assertTrue(matches("2.3.9", "1.2.3 - 2.3"))
        self.assertFalse(matches("2.4.0", "1.2.3 - 2.3"))

    def test_alternatives_and_spaced_operators(self) -> None:
        self.assertTrue(matches("3.1.0", "^1.0.0 || ^3.0.0"))
        self.assertFalse(matches("2.1.0", "^1.0.0 || ^3.0.0"))
        self.assertTrue(matches("1.5.0", ">= 1.0.0 < 2.0.0"))

    def test_prerelease_only_matches_same_core(self) -> None:
        self.assertTrue(matches("1.0.0-rc.1", "1.0.0-rc.1"))
        self.assertFalse(satisfies(SemVer(1, 2, 4, ("beta",)), ">=1.2.3"))
        self.assertTrue(satisfies(SemVer(1, 2, 4, ("beta",)), ">=1.2.4-alpha"))


class TestCompare(unittest.TestCase):
    def test_prerelease_ordering(self) -> None:
        ordered = ["1.0.0-alpha", "1.0.0-alpha.1", "1.0.0-beta", "1.0.0-beta.2", "1.0.0-beta.11", "1.0.0"]
        parsed = [parse_version(v) for v in ordered]
        for lower, higher in zip(parsed, parsed[1:]):
            with self.subTest(lower=str(lower), higher=str(higher)):
                self.assertEqual(compare_versions(lower, higher), -1)
                self.assertEqual(compare_versions(higher, lower), 1)

    def test_strict_parse(self) -> None:
        self.assertEqual(parse_version("v1.2.3+build.5"), SemVer(1, 2, 3))
        self.assertIsNone(parse_version("1.2"))
        self.assertIsNone(parse_version("^1.2.3"))
