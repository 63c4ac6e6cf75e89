"""
Tests for record ordering — comparator rule, stability, header toggle.
"""

from bundlectl.core.models.bundle import ModuleRecord, UpdateRecord
from bundlectl.core.services.sorting import (
    compare,
    descending_comparator,
    get_comparator,
    next_sort,
    sort_records,
)


def rec(**kw) -> ModuleRecord:
    return ModuleRecord(**kw)


class TestDescendingComparator:
    def test_both_missing_equal(self):
        assert descending_comparator({}, {}, "version") == 0
        assert descending_comparator(rec(version=""), rec(version=""), "version") == 0

    def test_b_missing_puts_a_first(self):
        assert descending_comparator({"version": "1.0"}, {}, "version") == -1

    def test_b_smaller_puts_a_first(self):
        assert descending_comparator(rec(name="b"), rec(name="a"), "name") == -1

    def test_a_missing_puts_b_first(self):
        assert descending_comparator({}, {"version": "2.0"}, "version") == 1

    def test_b_greater_puts_b_first(self):
        assert descending_comparator(rec(name="a"), rec(name="b"), "name") == 1

    def test_equal_values(self):
        assert descending_comparator(rec(name="a"), rec(name="a"), "name") == 0

    def test_unknown_field_counts_as_missing(self):
        assert descending_comparator(rec(name="a"), rec(name="b"), "nope") == 0


class TestCompare:
    def test_desc_is_base_rule(self):
        a, b = {"version": "1.0"}, {"version": "2.0"}
        assert compare(a, b, "version", "desc") == descending_comparator(a, b, "version")

    def test_asc_negates(self):
        a, b = {"version": "1.0"}, {"version": "2.0"}
        assert compare(a, b, "version", "asc") == -compare(a, b, "version", "desc")

    def test_missing_versus_defined(self):
        missing, defined = {"version": None}, {"version": "2.0"}
        # descending: the defined value comes first
        assert compare(missing, defined, "version", "desc") == 1
        # ascending: the missing value comes first
        assert compare(missing, defined, "version", "asc") == -1

    def test_lexicographic_not_semantic(self):
        assert compare({"version": "10.0"}, {"version": "9.0"}, "version", "asc") == -1

    def test_get_comparator_matches_compare(self):
        cmp = get_comparator("desc", "name")
        assert cmp(rec(name="a"), rec(name="b")) == compare(rec(name="a"), rec(name="b"), "name", "desc")


class TestSortRecords:
    def test_ascending_and_stable(self):
        first_b = rec(name="b", version="1")
        second_b = rec(name="b", version="2")
        result = sort_records([first_b, rec(name="a"), second_b], "name", "asc")
        assert result[0].name == "a"
        assert result[1] is first_b
        assert result[2] is second_b

    def test_descending(self):
        result = sort_records([rec(name="a"), rec(name="c"), rec(name="b")], "name", "desc")
        assert [r.name for r in result] == ["c", "b", "a"]

    def test_missing_values_last_when_descending(self):
        records = [rec(name="x", version=""), rec(name="y", version="1.0"), rec(name="z", version="2.0")]
        result = sort_records(records, "version", "desc")
        assert [r.name for r in result] == ["z", "y", "x"]

    def test_missing_values_first_when_ascending(self):
        records = [rec(name="y", version="1.0"), rec(name="x", version="")]
        assert [r.name for r in sort_records(records, "version", "asc")] == ["x", "y"]

    def test_does_not_mutate_input(self):
        records = [rec(name="b"), rec(name="a")]
        sort_records(records)
        assert [r.name for r in records] == ["b", "a"]

    def test_update_records_without_field(self):
        updates = [UpdateRecord(name="b"), UpdateRecord(name="a")]
        # UpdateRecord has no "version" attribute: everything ties, order kept
        assert [u.name for u in sort_records(updates, "version")] == ["b", "a"]


class TestNextSort:
    def test_same_column_ascending_flips(self):
        assert next_sort("name", "asc", "name") == ("name", "desc")

    def test_same_column_descending_back_to_ascending(self):
        assert next_sort("name", "desc", "name") == ("name", "asc")

    def test_other_column_starts_ascending(self):
        assert next_sort("name", "asc", "state") == ("state", "asc")
