"""Tests for the SuttaCentral identifier algebra."""

import pytest

from sutta_search.domain import scid
from sutta_search.domain.scid import SuttaCentralId
from sutta_search.errors import PartNumberError, ScidError


WELL_FORMED = [
    "mn1",
    "mn1.1",
    "mn1-5",
    "an1.31-40",
    "sn45.8:1.2",
    "thig1.1:2.3",
    "dn33:1.10.31",
    "mn1.1/en/sujato",
    "thag1.1a",
    "tha-ap1",
]


class TestPartNumber:
    def test_plain_number(self):
        assert scid.part_number("5", "mn5") == [5]

    def test_letter_suffix_adds_rank(self):
        assert scid.part_number("1a", "thag1.1a") == [1, 1]
        assert scid.part_number("3c", "x3c") == [3, 3]

    def test_caret_letter_ranks_below_bare_number(self):
        assert scid.part_number("1^z", "x") == [1, -1]
        assert scid.part_number("1^b", "x") == [1, -25]

    def test_malformed_level_raises(self):
        with pytest.raises(PartNumberError) as excinfo:
            scid.part_number("xyz", "mn1.xyz")
        assert excinfo.value.part == "xyz"
        assert excinfo.value.scid == "mn1.xyz"


class TestNumbers:
    def test_low_and_high_numbers_flatten_levels(self):
        assert scid.scid_numbers_low("an1.31-40:2.3") == [1, 31, 2, 3]
        assert scid.scid_numbers_high("an1.31-40:2.3") == [1, 40, 2, 3]

    def test_bilara_path_uses_basename(self):
        assert scid.scid_numbers_low("root/pli/ms/sutta/mn/mn12_root-pli-ms.json") == [12]

    def test_suffix_is_ignored(self):
        assert scid.scid_numbers_low("mn1.2/en/sujato") == [1, 2]


class TestCompare:
    @pytest.mark.parametrize("value", WELL_FORMED)
    def test_reflexive(self, value):
        assert scid.compare_low(value, value) == 0
        assert scid.compare_high(value, value) == 0

    def test_document_order(self):
        assert scid.compare_low("mn1", "mn2") < 0
        assert scid.compare_low("mn2", "mn1") > 0
        assert scid.compare_low("mn1.1", "mn1.2") < 0

    def test_numeric_not_lexical(self):
        assert scid.compare_low("mn2", "mn10") < 0
        assert scid.compare_low("sn1.9", "sn1.10") < 0

    def test_prefix_compares_first(self):
        assert scid.compare_low("an100", "mn1") < 0
        assert scid.compare_low("sn1", "mn99") > 0

    def test_results_are_signs(self):
        assert scid.compare_low("mn1", "mn50") == -1
        assert scid.compare_high("mn50", "mn1") == 1

    def test_missing_level_against_non_zero(self):
        assert scid.compare_low("mn1", "mn1.1") == -1
        assert scid.compare_low("mn1.1", "mn1") == 1

    def test_missing_level_against_zero_is_smaller(self):
        assert scid.compare_low("mn1", "mn1.0") == -1
        assert scid.compare_low("mn1.0", "mn1") == 1

    def test_ranges_use_their_bounds(self):
        assert scid.compare_low("mn1-5", "mn3") < 0
        assert scid.compare_high("mn1-5", "mn3") > 0

    def test_segments_extend_the_path(self):
        assert scid.compare_low("mn1:1.1", "mn1:1.2") < 0
        assert scid.compare_low("mn1:2.1", "mn1:10.1") < 0

    def test_suffixed_and_path_forms(self):
        assert scid.compare_low("mn1.1/en/sujato", "mn1.2") < 0
        assert scid.compare_low("root/pli/ms/sutta/mn1_root-pli-ms.json", "mn2") < 0

    def test_malformed_input_raises(self):
        with pytest.raises(PartNumberError):
            scid.compare_low("mn1.xyz", "mn1.1")


class TestSorting:
    def test_sort_low(self):
        assert scid.sort_low(["mn10", "mn2", "sn1", "mn1.2", "mn1"]) == ["mn1", "mn1.2", "mn2", "mn10", "sn1"]

    def test_high_key(self):
        assert sorted(["mn1-10", "mn3", "mn1-2"], key=scid.high_key) == ["mn1-2", "mn3", "mn1-10"]


class TestRanges:
    def test_range_low(self):
        assert scid.range_low("mn1-5") == "mn1"
        assert scid.range_low("an1.31-40") == "an1.31"
        assert scid.range_low("mn1.1-3/en/sujato") == "mn1.1/en/sujato"

    def test_range_high(self):
        assert scid.range_high("mn1-5") == "mn5"
        assert scid.range_high("an1.31-40") == "an1.40"

    def test_range_high_with_segment_gets_sentinel(self):
        assert scid.range_high("mn1-5:1") == "mn5:1.9999"
        assert scid.range_high("mn1:2.3") == "mn1:2.3.9999"

    def test_single_id_bounds(self):
        assert scid.range_low("mn1") == "mn1"
        assert scid.range_high("mn1") == "mn1"


class TestMatch:
    def test_overlap(self):
        assert scid.match("mn1.3", "mn1.1-5") is True
        assert scid.match("mn1.6", "mn1.1-5") is False

    def test_range_overlaps_range(self):
        assert scid.match("an1.1-10", "an1.5-20") is True
        assert scid.match("an1.1-10", "an1.11-20") is False

    def test_comma_patterns_are_ored(self):
        assert scid.match("mn1.3", "sn1, mn1.1-5") is True
        assert scid.match("mn9", "sn1, mn1.1-5") is False

    def test_segment_is_ignored_unless_pattern_has_one(self):
        assert scid.match("mn1:2.3", "mn1") is True

    def test_segment_pattern(self):
        assert scid.match("mn1:2.3", "mn1:2.1-5") is True
        assert scid.match("mn1:3.1", "mn1:2.1-5") is False

    def test_glob_pattern(self):
        assert scid.match("mn1.5", "mn1.*") is True
        assert scid.match("mn2.1", "mn1.*") is False
        assert scid.match("mn12", "mn1?") is True

    def test_pattern_suffix_and_case_are_ignored(self):
        assert scid.match("mn1.3", "MN1.1-5/en/sujato") is True


class TestValidation:
    def test_test_accepts_scids(self):
        assert scid.test("mn1.1")
        assert scid.test("MN 1.1")
        assert scid.test("mn1. 2")
        assert scid.test("mn1, sn2.3:4.5/en/sujato")

    def test_test_rejects_non_scids(self):
        assert not scid.test("xyz")
        assert not scid.test("test-bad!!!")
        assert not scid.test("mn1, hello")

    def test_languages(self):
        assert scid.languages("mn1/en/sujato, mn2/de, mn3/en") == ["en", "de"]
        assert scid.languages("mn1") == []
        assert scid.languages("not a scid") == []

    def test_normalize(self):
        assert scid.normalize("  MN 1. 2 ") == "mn1.2"

    def test_scid_regexp(self):
        assert scid.scid_regexp("mn1.*").fullmatch("mn1.5")
        assert not scid.scid_regexp("mn1.*").fullmatch("mn105")
        assert scid.scid_regexp(None).fullmatch("anything")


class TestParse:
    def test_parse_normalizes(self):
        assert scid.parse("MN 1.1") == SuttaCentralId("mn1.1")
        assert SuttaCentralId.parse("sn45.8:1.2/en/sujato").scid == "sn45.8:1.2/en/sujato"

    @pytest.mark.parametrize("text", ["hello", "mn", "1.1", "mn1 extra words"])
    def test_parse_rejects_bad_grammar(self, text):
        with pytest.raises(ScidError):
            scid.parse(text)

    def test_parse_rejects_bad_levels(self):
        with pytest.raises(PartNumberError):
            scid.parse("mn1.xyz")

    def test_parse_rejects_non_strings(self):
        with pytest.raises(ScidError):
            scid.parse(None)  # type: ignore[arg-type]


class TestSuttaCentralId:
    def test_parts(self):
        value = SuttaCentralId("mn1.1:2.3")
        assert value.sutta == "mn1.1"
        assert value.nikaya == "mn"
        assert value.groups == ["2", "3"]
        assert value.section_parts() == ["mn1", "1"]
        assert value.segment_parts() == ["2", "3"]
        assert str(value) == "mn1.1:2.3"

    def test_document_id_has_no_groups(self):
        value = SuttaCentralId("mn1")
        assert value.groups is None
        assert value.parent is None

    def test_hyphenated_nikaya(self):
        assert SuttaCentralId("tha-ap1").nikaya == "tha-ap"

    def test_parent(self):
        assert SuttaCentralId("mn1:2.3").parent == SuttaCentralId("mn1:2.")
        assert SuttaCentralId("mn1:2").parent == SuttaCentralId("mn1:")

    def test_bounds(self):
        value = SuttaCentralId("mn1-5")
        assert value.low == SuttaCentralId("mn1")
        assert value.high == SuttaCentralId("mn5")

    def test_standard_form(self):
        assert scid.standard_form("mn1.1") == "MN1.1"
        assert scid.standard_form("thig1.1") == "Thig1.1"
        assert scid.standard_form("sn12.1") == "SN12.1"
        assert scid.standard_form("kp1") == "kp1"

    def test_add_to_segment(self):
        assert SuttaCentralId("mn1:2.3").add(0, 1) == SuttaCentralId("mn1:2.4")
        assert SuttaCentralId("mn1:2.3").add(1) == SuttaCentralId("mn1:3.0")

    def test_add_to_document(self):
        assert scid.add("mn1.2", 0, 1) == SuttaCentralId("mn1.3")
        assert scid.add("mn1.2", 1) == SuttaCentralId("mn2.2")

    def test_add_without_nikaya_raises(self):
        with pytest.raises(ScidError):
            SuttaCentralId("1.2").add(1)

    def test_instance_match(self):
        assert SuttaCentralId("mn1.3").match("mn1.1-5")

    def test_requires_string(self):
        with pytest.raises(ScidError):
            SuttaCentralId(12)  # type: ignore[arg-type]
