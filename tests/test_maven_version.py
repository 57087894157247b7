"""Tests for Maven version ordering and ranges."""

import pytest

from versioning.maven_version import MavenVersion, VersionRange, highest


class TestMavenVersionOrdering:
    """Maven ComparableVersion-like ordering."""

    def test_numeric_items_compare_numerically(self):
        assert MavenVersion("1.10.0") > MavenVersion("1.9.0")
        assert MavenVersion("2") > MavenVersion("1.99")

    def test_trailing_zeros_and_release_aliases_are_equal(self):
        assert MavenVersion("1.0") == MavenVersion("1")
        assert MavenVersion("1.0.0") == MavenVersion("1.0.0.Final")
        assert MavenVersion("26.0.0.Final") == MavenVersion("26.0.0.GA")
        assert hash(MavenVersion("1.0")) == hash(MavenVersion("1.0.0"))

    def test_qualifier_order(self):
        ordered = ["1.0-alpha1", "1.0-beta2", "1.0-M1", "1.0-CR1", "1.0-SNAPSHOT", "1.0", "1.0-sp1"]
        assert sorted(reversed(ordered), key=MavenVersion) == ordered

    def test_unknown_qualifier_sorts_after_release(self):
        assert MavenVersion("1.0-foo") > MavenVersion("1.0")

    def test_highest(self):
        assert highest(["1.0.0", "1.4.0", "1.10.0.Final", "1.9.0"]) == "1.10.0.Final"
        assert highest([]) is None


class TestVersionRange:
    """Bracketed Maven range semantics."""

    def test_half_open_range(self):
        r = VersionRange("[1,2)")
        assert r.contains("1.0.0")
        assert r.contains("1.9.9")
        assert not r.contains("2.0.0")
        assert not r.contains("0.9")

    def test_open_lower_bound(self):
        r = VersionRange("(,1.5]")
        assert r.contains("0.1")
        assert r.contains("1.5")
        assert not r.contains("1.5.1")

    def test_exact_forms(self):
        assert VersionRange("[1.2]").contains("1.2.0")
        assert not VersionRange("[1.2]").contains("1.2.1")
        assert VersionRange("1.2").contains("1.2")

    def test_union_of_ranges(self):
        r = VersionRange("[1,2),[3,4]")
        assert r.contains("1.5")
        assert r.contains("4")
        assert not r.contains("2.5")

    @pytest.mark.parametrize("spec", ["", "[1,2", "[2,1]", "(1.0)", "[[1,2]]", "[1,2]x"])
    def test_malformed_ranges_raise(self, spec):
        with pytest.raises(ValueError):
            VersionRange(spec)
